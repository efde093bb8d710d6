"""Export compositor exceptions."""


class ExportError(Exception):
    """The composite could not be produced."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Export failed: {reason}")
