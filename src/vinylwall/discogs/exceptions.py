"""Collection client exceptions."""


class CollectionClientError(Exception):
    """Base exception for collection client errors."""


class UpstreamError(CollectionClientError):
    """The catalog relay returned a non-retryable error; the whole load is aborted."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Upstream error: HTTP {status_code}" + (f" ({detail})" if detail else ""))


class ThrottledError(CollectionClientError):
    """The catalog relay returned 429 Too Many Requests for a page. Retryable."""

    def __init__(self, page: int, attempt: int) -> None:
        self.page = page
        self.attempt = attempt
        super().__init__(f"Throttled on page {page} (attempt {attempt})")


class ExhaustedRetriesError(CollectionClientError):
    """A page stayed throttled for every allowed attempt."""

    def __init__(self, page: int, attempts: int) -> None:
        self.page = page
        self.attempts = attempts
        super().__init__(f"Rate limit persisted on page {page} after {attempts} attempts")
