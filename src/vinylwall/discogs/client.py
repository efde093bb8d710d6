"""Async collection client for the Discogs catalog relay, with 429 backoff."""

import asyncio
import logging
from collections.abc import Callable

import httpx
from pydantic import ValidationError

from vinylwall.discogs.constants import (
    DEFAULT_CATALOG_RELAY_URL,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_BASE_DELAY,
    ERROR_DETAIL_LIMIT,
    FIRST_PAGE,
    OWNER_PARAM,
    PER_PAGE,
)
from vinylwall.discogs.exceptions import ExhaustedRetriesError, ThrottledError, UpstreamError
from vinylwall.discogs.models import CollectionItem, CollectionPage, RelayErrorBody
from vinylwall.discogs.normalizers import dedupe_ids, normalize_release

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


def _error_detail(response: httpx.Response) -> str:
    """Pull a short, displayable detail out of a relay error response."""
    try:
        body = RelayErrorBody.model_validate(response.json())
    except (ValueError, ValidationError):
        return response.text[:ERROR_DETAIL_LIMIT]
    detail = body.error or f"HTTP {response.status_code}"
    if body.details:
        detail = f"{detail}: {body.details}"
    return detail[:ERROR_DETAIL_LIMIT]


class CollectionClient:
    """Fetches a complete collection from the catalog relay.

    Pages are requested strictly in order because the total page count is
    only known once page 1 answers. HTTP 429 is the only retryable status:
    each page gets ``max_attempts`` tries with a linear backoff of
    ``retry_base_delay * attempt`` seconds. Any other failure aborts the load
    and discards everything fetched so far.
    """

    def __init__(
        self,
        relay_url: str = DEFAULT_CATALOG_RELAY_URL,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        per_page: int = PER_PAGE,
    ) -> None:
        self._relay_url = relay_url
        self._max_attempts = max(1, max_attempts)
        self._retry_base_delay = retry_base_delay
        self._per_page = min(per_page, PER_PAGE)
        self._client = httpx.AsyncClient(timeout=request_timeout, headers={"Accept": "application/json"})

    async def close(self) -> None:
        """Close underlying HTTP client."""
        await self._client.aclose()

    async def _request_page(self, owner_key: str, page: int, attempt: int) -> CollectionPage:
        """Request one page once. Raises ThrottledError on 429."""
        params = {OWNER_PARAM: owner_key, "page": page, "per_page": self._per_page}
        try:
            response = await self._client.get(self._relay_url, params=params)
        except httpx.TransportError as exc:
            raise UpstreamError(503, f"Relay unavailable: {exc}"[:ERROR_DETAIL_LIMIT]) from exc

        if response.status_code == 429:
            raise ThrottledError(page=page, attempt=attempt)
        if not 200 <= response.status_code < 300:
            raise UpstreamError(status_code=response.status_code, detail=_error_detail(response))

        try:
            return CollectionPage.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise UpstreamError(502, f"Malformed page {page} from relay") from exc

    async def fetch_page(
        self,
        owner_key: str,
        page: int,
        *,
        total_pages: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> CollectionPage:
        """Fetch one page, retrying on 429 with linear backoff."""
        for attempt in range(1, self._max_attempts + 1):
            try:
                return await self._request_page(owner_key, page, attempt)
            except ThrottledError:
                if attempt >= self._max_attempts:
                    break
                delay = self._retry_base_delay * attempt
                of_total = f" of {total_pages}" if total_pages else ""
                message = (
                    f"Rate limited on page {page}{of_total}, "
                    f"retrying in {delay:.1f}s ({attempt}/{self._max_attempts})"
                )
                logger.warning(
                    "Relay rate limited (429) on page %d, sleeping %.1fs (attempt %d/%d)",
                    page,
                    delay,
                    attempt,
                    self._max_attempts,
                )
                if on_progress is not None:
                    on_progress(message)
                await asyncio.sleep(delay)

        raise ExhaustedRetriesError(page=page, attempts=self._max_attempts)

    async def fetch_all_items(
        self,
        owner_key: str,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> list[CollectionItem]:
        """Fetch and normalize every release in ``owner_key``'s collection.

        Raises UpstreamError or ExhaustedRetriesError; never returns a partial set.
        """
        items: list[CollectionItem] = []
        page = FIRST_PAGE
        total_pages = 1

        while page <= total_pages:
            result = await self.fetch_page(
                owner_key,
                page,
                total_pages=total_pages if page > FIRST_PAGE else None,
                on_progress=on_progress,
            )
            total_pages = max(result.pagination.pages, 1)
            items.extend(normalize_release(raw) for raw in result.releases)

            logger.info("Fetched page %d of %d for %s (%d items so far)", page, total_pages, owner_key, len(items))
            if on_progress is not None:
                on_progress(f"page {page} of {total_pages}")
            page += 1

        return dedupe_ids(items)
