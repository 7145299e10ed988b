"""
Team-mate pair comparison across seasons.

Uses final driver championship standings to rank every constructor's
driver pairing by combined points, optionally highlighting one team/season.

Only constructors with exactly two drivers in the final standings form a
pair. Constructors with more (mid-season swaps) or fewer drivers are not
ranked; they are returned separately so callers can see what was left out.
"""
import threading
from dataclasses import dataclass
from typing import Optional

import pandas as pd
from tqdm import tqdm

from f1points.errors import FetchError, PipelineCancelled, TotalFailureError
from f1points.ingest_jolpica.retrying import RetryingFetcher
from f1points.utils.logger import logger


PAIR_COLUMNS = [
    "rank", "season", "team", "driver1", "driver2",
    "driver1_points", "driver2_points", "difference", "combined_points",
]


@dataclass
class TeamPairs:
    pairs: pd.DataFrame
    excluded: pd.DataFrame


def final_standings(fetcher: RetryingFetcher, season: int) -> pd.DataFrame:
    """Driver standings after the last round of a season."""
    standings = fetcher.fetch("standings", season=season)
    last_round = standings["round"].max()
    return standings[standings["round"] == last_round].reset_index(drop=True)


def collect_standings(
    fetcher: RetryingFetcher,
    start_year: int,
    end_year: int,
    cancel: Optional[threading.Event] = None,
) -> pd.DataFrame:
    """
    Final standings for every season in [start_year, end_year].

    Seasons whose standings cannot be fetched are skipped.

    Raises:
        TotalFailureError: no season could be fetched.
    """
    frames = []
    for season in tqdm(range(start_year, end_year + 1), desc="Standings", unit="season"):
        if cancel is not None and cancel.is_set():
            raise PipelineCancelled(f"Cancelled before season {season}")
        try:
            frames.append(final_standings(fetcher, season))
        except FetchError as e:
            logger.warning(f"  Skipping standings for {season}: {e}")

    if not frames:
        raise TotalFailureError(start_year, end_year)
    logger.info(f"Fetched final standings for {len(frames)} seasons")
    return pd.concat(frames, ignore_index=True)


def build_team_pairs(standings: pd.DataFrame) -> TeamPairs:
    """
    Pair up team-mates and rank pairs by combined points.

    driver1 is the better-placed driver of the pair.
    """
    df = standings.dropna(subset=["driver_id", "constructor_id"])
    df = df.sort_values(["season", "constructor_id", "position"], na_position="last", kind="stable")

    sizes = df.groupby(["season", "constructor_id"])["driver_id"].transform("nunique")
    unpaired = df[sizes != 2]
    if unpaired.empty:
        excluded = pd.DataFrame(columns=["season", "constructor_id", "constructor_name", "drivers", "driver_ids"])
    else:
        excluded = (
            unpaired.groupby(["season", "constructor_id", "constructor_name"])
            .agg(drivers=("driver_id", "nunique"), driver_ids=("driver_id", lambda s: ", ".join(s)))
            .reset_index()
        )
    for row in excluded.itertuples(index=False):
        logger.warning(f"  {row.season} {row.constructor_name}: {row.drivers} drivers, not ranked as a pair")

    paired = df[sizes == 2]
    if paired.empty:
        return TeamPairs(pairs=pd.DataFrame(columns=PAIR_COLUMNS), excluded=excluded)

    pairs = (
        paired.groupby(["season", "constructor_id"], sort=False)
        .agg(
            team=("constructor_name", "first"),
            driver1=("driver_name", "first"),
            driver2=("driver_name", "last"),
            driver1_points=("points", "first"),
            driver2_points=("points", "last"),
            combined_points=("points", "sum"),
        )
        .reset_index()
    )
    pairs["difference"] = pairs["driver1_points"] - pairs["driver2_points"]
    pairs = pairs.sort_values(["combined_points", "season"], ascending=[False, True], kind="stable")
    pairs["rank"] = range(1, len(pairs) + 1)

    logger.info(f"Found {len(pairs)} team pairs across {pairs['season'].nunique()} seasons")
    return TeamPairs(pairs=pairs[PAIR_COLUMNS].reset_index(drop=True), excluded=excluded)


def highlight_pair(pairs: pd.DataFrame, team: str, season: int) -> pd.DataFrame:
    """
    Mark the pair for a team (case-insensitive substring) in a season.

    Returns:
        Copy of pairs with a boolean ``is_target`` column.
    """
    out = pairs.copy()
    in_season = out["season"] == season
    out["is_target"] = in_season & out["team"].str.lower().str.contains(team.lower(), regex=False, na=False)
    if not out["is_target"].any():
        logger.warning(f"No {team} pair found for {season}; the season may be incomplete.")
    return out
