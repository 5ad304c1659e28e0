"""Fetch a player's stats row from the stats API."""
import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

from ..config import DEFAULT_FETCH_TIMEOUT
from ..errors import FetchError, PayloadError

log = logging.getLogger("progressbot.fetch")


@dataclass(frozen=True)
class StatsQuery:
    type: str
    id: str


class StatsClient:
    """
    Single-shot client for ``GET {base_url}?type=...&id=...``.

    No retries: a failed request is reported to the caller as FetchError.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    def build_url(self, query: StatsQuery) -> httpx.URL:
        return httpx.URL(self.base_url).copy_merge_params({"type": query.type, "id": query.id})

    async def fetch(self, query: StatsQuery) -> List:
        url = self.build_url(query)
        log.info("Fetching data from URL: %s", url)

        try:
            if self._client is not None:
                resp = await self._client.get(url, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.get(url)
        except httpx.HTTPError as exc:
            log.error("Fetch failed for %s: %s", url, exc)
            raise FetchError(None, f"request to stats API failed: {exc}") from exc

        if not resp.is_success:
            log.error("Fetch error: %s %s", resp.status_code, resp.reason_phrase)
            raise FetchError(resp.status_code)

        return parse_row_data(resp)


def parse_row_data(resp: httpx.Response) -> List:
    try:
        payload = resp.json()
    except ValueError as exc:
        raise PayloadError("stats API returned a body that is not JSON") from exc

    log.debug("API response data: %s", payload)

    if not isinstance(payload, dict):
        raise PayloadError("stats API payload is not an object")
    row = payload.get("rowData")
    if not isinstance(row, list):
        raise PayloadError("stats API payload has no rowData list")
    return row
