"""
HTTP client for the Jolpica (Ergast-compatible) F1 API with:
- Per-request timeout
- Limit/offset pagination over MRData tables
- Rate limiting between requests
- Session-based connection pooling

Retries and disk caching are handled one level up by RetryingFetcher, so a
single call here is exactly one logical attempt.
"""
import time
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter

from f1points.config import cfg
from f1points.utils.logger import logger


class JolpicaClient:
    """
    HTTP client for the Jolpica F1 REST API.

    Every method returns plain Python records (lists of dicts) taken from the
    ``MRData`` envelope.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: int | None = None,
        page_limit: int | None = None,
        rate_limit_delay: float | None = None,
    ) -> None:
        self.base_url = (base_url or cfg.api.base_url).rstrip("/")
        self.timeout = timeout or cfg.api.timeout
        self.page_limit = page_limit or cfg.api.page_limit
        self.rate_limit_delay = cfg.api.rate_limit_delay if rate_limit_delay is None else rate_limit_delay
        self._last_request_time: float = 0.0

        self.session = requests.Session()
        adapter = HTTPAdapter(pool_connections=4, pool_maxsize=4, max_retries=0)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)
        self.session.headers.update({"Accept": "application/json"})

    def _rate_limit(self) -> None:
        """Enforce minimum delay between requests."""
        elapsed = time.monotonic() - self._last_request_time
        wait = self.rate_limit_delay - elapsed
        if wait > 0:
            time.sleep(wait)
        self._last_request_time = time.monotonic()

    def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Optional[dict]:
        """
        Fetch a single page from a Jolpica endpoint.

        Args:
            path: Endpoint path without extension (e.g. '2023/5/results').
            params: Query parameters dict (limit, offset).

        Returns:
            The ``MRData`` dict, or None when the endpoint answers 404.
        """
        url = f"{self.base_url}/{path.strip('/')}.json"
        logger.debug(f"Fetching: {url} params={params}")

        self._rate_limit()
        try:
            response = self.session.get(url, params=params or {}, timeout=self.timeout)
            if response.status_code == 404:
                logger.warning(f"Not found: {url}")
                return None
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.HTTPError as e:
            logger.error(f"HTTP error for {url}: {e}")
            raise
        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed for {url}: {e}")
            raise

        if not isinstance(data, dict) or "MRData" not in data:
            raise ValueError(f"Unexpected response shape from {url}")
        return data["MRData"]

    def get_table(self, path: str, table: str, list_key: str) -> list[dict]:
        """
        Fetch every record of an MRData table, following pagination.

        Args:
            path: Endpoint path (e.g. '2023/drivers').
            table: Table name inside MRData (e.g. 'DriverTable').
            list_key: List inside the table (e.g. 'Drivers').

        Returns:
            All records across pages; empty if the endpoint has no data.
        """
        records: list[dict] = []
        offset = 0
        while True:
            mr_data = self.get(path, params={"limit": self.page_limit, "offset": offset})
            if mr_data is None:
                break

            page = mr_data.get(table, {}).get(list_key, [])
            records.extend(page)

            total = int(mr_data.get("total", 0) or 0)
            offset += self.page_limit
            if not page or offset >= total:
                break

        return records
