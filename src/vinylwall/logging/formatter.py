"""JSON log formatter for structured logging output."""

import json
import logging
from datetime import UTC, datetime


class JSONLogFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects.

    Output format::

        {"timestamp": "...", "level": "INFO", "service": "vinylwall",
         "logger": "vinylwall.session", "message": "...", "owner_key": "...", ...}
    """

    def __init__(self, service: str = "vinylwall") -> None:
        super().__init__()
        self._service = service

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "service": self._service,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Include owner_key if passed via ``extra``
        owner_key = getattr(record, "owner_key", None)
        if owner_key:
            entry["owner_key"] = owner_key

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
