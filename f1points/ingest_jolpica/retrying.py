"""
Cache-first fetcher with bounded retries.

    fetch(kind, **params)
      1. cache hit  -> return cached table, no network access
      2. otherwise  -> up to max_retries attempts, fixed delay between them
      3. first non-empty, well-shaped result is normalized, cached once, returned
      4. all attempts failed -> FetchError, nothing cached
"""
import time
from typing import Any, Callable, Optional

import pandas as pd

from f1points.cache.store import CacheStore, cache_key
from f1points.config import cfg
from f1points.errors import FetchError
from f1points.ingest_jolpica.api_client import JolpicaClient
from f1points.ingest_jolpica.fetchers import FETCH_SPECS, FetchSpec, coerce_types, records_to_payload
from f1points.utils.logger import logger


class RetryingFetcher:
    """
    Single retry/cache loop shared by every data kind.

    Args:
        client: Remote source passed as first argument to each FetchSpec.remote.
        cache: CacheStore used for lookups and writes.
        max_retries: Attempts per request (>= 1).
        retry_delay: Seconds slept between attempts.
        specs: Mapping kind -> FetchSpec; defaults to the Jolpica specs.
        sleep: Sleep function (injectable for tests).
    """

    def __init__(
        self,
        client: Any = None,
        cache: Optional[CacheStore] = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        specs: Optional[dict[str, FetchSpec]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client if client is not None else JolpicaClient()
        self.cache = cache if cache is not None else CacheStore()
        self.max_retries = max(1, max_retries if max_retries is not None else cfg.api.max_retries)
        self.retry_delay = cfg.api.retry_delay if retry_delay is None else retry_delay
        self.specs = specs if specs is not None else FETCH_SPECS
        self.sleep = sleep

    def _spec(self, kind: str) -> FetchSpec:
        try:
            return self.specs[kind]
        except KeyError:
            raise ValueError(f"Unknown data kind '{kind}'. Known: {sorted(self.specs)}") from None

    def _from_payload(self, spec: FetchSpec, payload: list[dict]) -> pd.DataFrame:
        return coerce_types(pd.DataFrame(payload, columns=spec.columns), spec.dtypes)

    @staticmethod
    def _is_well_shaped(spec: FetchSpec, df: pd.DataFrame) -> bool:
        if df is None or df.empty:
            return False
        if any(col not in df.columns for col in spec.columns):
            return False
        return all(df[col].notna().all() for col in spec.required)

    def fetch(self, kind: str, **params: Any) -> pd.DataFrame:
        """
        Fetch a normalized table for (kind, params).

        Raises:
            FetchError: every attempt raised or returned empty/malformed data.
        """
        spec = self._spec(kind)
        key = cache_key(kind, params)

        cached = self.cache.get(key)
        if cached is not None:
            return self._from_payload(spec, cached)

        # Serialise same-key fetches so concurrent callers never race the remote.
        with self.cache.lock_for(key):
            cached = self.cache.get(key)
            if cached is not None:
                return self._from_payload(spec, cached)

            last_error: Optional[BaseException] = None
            for attempt in range(1, self.max_retries + 1):
                try:
                    records = spec.remote(self.client, **params)
                    df = spec.normalizer(records, **params)
                except Exception as e:
                    last_error = e
                    logger.warning(f"Attempt {attempt}/{self.max_retries} failed for {key}: {e}")
                else:
                    if self._is_well_shaped(spec, df):
                        df = df.reset_index(drop=True)
                        self.cache.put(key, records_to_payload(df), kind=kind)
                        return df
                    last_error = None
                    logger.warning(f"Attempt {attempt}/{self.max_retries} returned no usable data for {key}")

                if attempt < self.max_retries:
                    logger.info(f"Retrying {key} in {self.retry_delay:g}s...")
                    self.sleep(self.retry_delay)

        logger.error(f"Giving up on {key} after {self.max_retries} attempts")
        raise FetchError(kind, params, self.max_retries, last_error)
