"""
Season points builder.

For one season: resolve the calendar, the driver/constructor name lookups,
and every round's results, then rescore each result and join display names.
Rounds that cannot be fetched are skipped; a season with nothing usable
raises NoDataError.
"""
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import pandas as pd
from tqdm import tqdm

from f1points.config import cfg
from f1points.errors import FetchError, NoDataError, PipelineCancelled
from f1points.ingest_jolpica.retrying import RetryingFetcher
from f1points.points.scoring import POST_2010, ScoringTable
from f1points.utils.logger import logger


RACE_POINTS_COLUMNS = [
    "season", "round", "driver_id", "driver_name", "constructor_id", "constructor_name",
    "position", "original_points", "new_points", "status",
]


@dataclass
class SeasonPoints:
    season: int
    rows: pd.DataFrame
    rounds_requested: int
    rounds_processed: int
    failed_rounds: list[int] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return self.rows.empty


def _name_lookup(fetcher: RetryingFetcher, kind: str, id_col: str, name_col: str, **params) -> dict[str, str]:
    """Fetch an id -> display name mapping; an unavailable lookup is an empty dict."""
    try:
        df = fetcher.fetch(kind, **params)
    except FetchError as e:
        logger.warning(f"  Could not resolve {kind} names ({e}); falling back to raw ids.")
        return {}
    return dict(zip(df[id_col], df[name_col]))


def score_results(
    results: pd.DataFrame,
    scoring: ScoringTable,
    driver_names: dict[str, str],
    constructor_names: dict[str, str],
) -> pd.DataFrame:
    """
    Rescore raw race results and attach display names.

    Args:
        results: RaceResultRow table (one or more rounds).
        scoring: Table applied to each row's position.
        driver_names: driver_id -> name; missing ids fall back to the id.
        constructor_names: constructor_id -> name; missing ids fall back to the id.

    Returns:
        Scored rows with RACE_POINTS_COLUMNS, sorted by (round, position),
        unclassified entries last within a round.
    """
    if results is None or results.empty:
        return pd.DataFrame(columns=RACE_POINTS_COLUMNS)

    df = results.copy()
    df["new_points"] = scoring.score_series(df["position"])
    df["original_points"] = df["original_points"].astype(float)
    df["driver_name"] = df["driver_id"].map(lambda d: driver_names.get(d) or d)
    df["constructor_name"] = df["constructor_id"].map(lambda c: constructor_names.get(c) or c)

    df = df.sort_values(["round", "position"], na_position="last", kind="stable")
    return df[RACE_POINTS_COLUMNS].reset_index(drop=True)


def build_season(
    season: int,
    fetcher: RetryingFetcher,
    scoring: ScoringTable = POST_2010,
    cancel: Optional[threading.Event] = None,
    pace: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> SeasonPoints:
    """
    Build scored race rows for a single season.

    Args:
        season: Championship year.
        fetcher: Cache-first fetcher for schedule, results and names.
        scoring: Scoring table applied to finishing positions.
        cancel: Checked between rounds; when set, PipelineCancelled is raised.
        pace: Seconds slept between round fetches (defaults to config).
        sleep: Sleep function (injectable for tests).

    Returns:
        SeasonPoints with the scored rows and round bookkeeping.

    Raises:
        NoDataError: no schedule, or no round produced results.
    """
    pace = cfg.api.rate_limit_delay if pace is None else pace
    logger.info(f"Processing season {season}...")

    try:
        schedule = fetcher.fetch("schedule", season=season)
    except FetchError as e:
        raise NoDataError(season, f"schedule unavailable ({e})") from e

    rounds = sorted(int(r) for r in schedule["round"].unique())

    driver_names = _name_lookup(fetcher, "drivers", "driver_id", "driver_name", season=season)
    constructor_names = _name_lookup(fetcher, "constructors", "constructor_id", "constructor_name")

    frames = []
    failed: list[int] = []
    for i, rnd in enumerate(tqdm(rounds, desc=f"Season {season}", unit="round", leave=False)):
        if cancel is not None and cancel.is_set():
            raise PipelineCancelled(f"Cancelled during season {season} before round {rnd}")
        try:
            frames.append(fetcher.fetch("results", season=season, round=rnd))
        except FetchError as e:
            logger.warning(f"  Skipping {season} round {rnd}: {e}")
            failed.append(rnd)

        if pace > 0 and i < len(rounds) - 1:
            sleep(pace)

    if not frames:
        raise NoDataError(season, f"no results for any of {len(rounds)} rounds")

    rows = score_results(pd.concat(frames, ignore_index=True), scoring, driver_names, constructor_names)
    logger.info(f"  Processed {len(frames)} of {len(rounds)} races for season {season}")

    return SeasonPoints(
        season=season,
        rows=rows,
        rounds_requested=len(rounds),
        rounds_processed=len(frames),
        failed_rounds=failed,
    )
