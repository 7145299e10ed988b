"""
Summary statistics over the rescored datasets.

Works on the outputs of the points pipeline (race-by-race and cumulative
tables) and produces small DataFrames for reporting.
"""
from pathlib import Path
from typing import Optional

import pandas as pd

from f1points.config import cfg
from f1points.points.cumulative import final_totals
from f1points.points.scoring import ScoringTable
from f1points.utils.logger import logger
from f1points.utils.time_utils import utc_now


def season_summary(race_points: pd.DataFrame) -> pd.DataFrame:
    """Distinct races, drivers and total entries per season."""
    if race_points.empty:
        return pd.DataFrame(columns=["season", "races", "drivers", "entries"])
    return (
        race_points.groupby("season")
        .agg(races=("round", "nunique"), drivers=("driver_id", "nunique"), entries=("driver_id", "size"))
        .reset_index()
        .sort_values("season")
        .reset_index(drop=True)
    )


def top_drivers(cumulative: pd.DataFrame, n: int = 10) -> pd.DataFrame:
    """Top-n drivers per season by rescored total, ties broken by driver_id."""
    totals = final_totals(cumulative)
    if totals.empty:
        return totals
    totals = totals.sort_values(["season", "total_points", "driver_id"], ascending=[True, False, True])
    top = totals.groupby("season", sort=True).head(n).copy()
    top["rank"] = top.groupby("season").cumcount() + 1
    return top.reset_index(drop=True)


def points_distribution(race_points: pd.DataFrame) -> pd.DataFrame:
    """Per-season mean/median/max rescored points per entry and count of scoring entries."""
    if race_points.empty:
        return pd.DataFrame(columns=[
            "season", "avg_points_per_race", "median_points_per_race",
            "max_points_per_race", "drivers_scoring_points",
        ])
    return (
        race_points.groupby("season")
        .agg(
            avg_points_per_race=("new_points", "mean"),
            median_points_per_race=("new_points", "median"),
            max_points_per_race=("new_points", "max"),
            drivers_scoring_points=("new_points", lambda s: int((s > 0).sum())),
        )
        .reset_index()
    )


def constructor_totals(cumulative: pd.DataFrame, n: int = 5) -> pd.DataFrame:
    """
    Top-n constructors per season.

    A constructor's total is the sum of its drivers' final rescored totals,
    using the team each driver was last classified with.
    """
    totals = final_totals(cumulative)
    if totals.empty:
        return pd.DataFrame(columns=["season", "constructor_name", "total_points", "drivers"])
    teams = (
        totals.groupby(["season", "constructor_name"])
        .agg(total_points=("total_points", "sum"), drivers=("driver_id", "nunique"))
        .reset_index()
        .sort_values(["season", "total_points"], ascending=[True, False])
    )
    return teams.groupby("season").head(n).reset_index(drop=True)


def scoring_comparison(cumulative: pd.DataFrame, n: int = 10) -> pd.DataFrame:
    """
    Drivers whose season total moved most between original and rescored points.

    Drivers who score nothing under the new table are left out.
    """
    totals = final_totals(cumulative)
    if totals.empty:
        return pd.DataFrame(columns=["season", "driver_id", "driver_name", "new_total", "original_total", "difference"])
    cmp = totals.rename(columns={"total_points": "new_total", "total_original_points": "original_total"})
    cmp["difference"] = cmp["new_total"] - cmp["original_total"]
    cmp = cmp[cmp["new_total"] > 0]
    cmp = cmp.reindex(cmp["difference"].abs().sort_values(ascending=False, kind="stable").index)
    return cmp[["season", "driver_id", "driver_name", "new_total", "original_total", "difference"]].head(n).reset_index(drop=True)


def race_wins(race_points: pd.DataFrame, n: int = 5) -> pd.DataFrame:
    """Top-n race winners per season, most wins first, ties broken by rescored points."""
    winners = race_points[race_points["position"].eq(1).fillna(False).astype(bool)]
    if winners.empty:
        return pd.DataFrame(columns=["season", "driver_id", "driver_name", "constructor_name", "wins", "total_points"])
    wins = (
        winners.groupby(["season", "driver_id", "driver_name", "constructor_name"])
        .agg(wins=("position", "size"), total_points=("new_points", "sum"))
        .reset_index()
        .sort_values(["season", "wins", "total_points", "driver_id"], ascending=[True, False, False, True])
    )
    return wins.groupby("season").head(n).reset_index(drop=True)


def podiums(race_points: pd.DataFrame, n: int = 5) -> pd.DataFrame:
    """
    Top-n podium finishers per season.

    Counts top-3 finishes split into wins, seconds and thirds, plus the
    rescored points earned in those races. Ranked by podiums, then points.
    """
    columns = ["season", "driver_id", "driver_name", "constructor_name",
               "podiums", "wins", "second", "third", "total_points"]
    top3 = race_points[race_points["position"].le(3).fillna(False).astype(bool)]
    if top3.empty:
        return pd.DataFrame(columns=columns)
    counts = (
        top3.groupby(["season", "driver_id", "driver_name", "constructor_name"])
        .agg(
            podiums=("position", "size"),
            wins=("position", lambda s: int((s == 1).sum())),
            second=("position", lambda s: int((s == 2).sum())),
            third=("position", lambda s: int((s == 3).sum())),
            total_points=("new_points", "sum"),
        )
        .reset_index()
        .sort_values(["season", "podiums", "total_points", "driver_id"], ascending=[True, False, False, True])
    )
    return counts.groupby("season").head(n)[columns].reset_index(drop=True)


def log_summary(race_points: pd.DataFrame, cumulative: pd.DataFrame, top_n: int = 3) -> None:
    """Log a human-readable report of the datasets."""
    logger.info(
        f"Seasons: {', '.join(str(s) for s in sorted(race_points['season'].unique()))} | "
        f"entries: {len(race_points)} | drivers: {race_points['driver_id'].nunique()}"
    )
    for row in season_summary(race_points).itertuples(index=False):
        logger.info(f"  {row.season}: {row.races} races, {row.drivers} drivers, {row.entries} entries")

    for season, group in top_drivers(cumulative, n=top_n).groupby("season"):
        logger.info(f"Top {top_n} drivers {season} (rescored):")
        for row in group.itertuples(index=False):
            logger.info(
                f"  {row.rank:2d}. {row.driver_name:<20} ({row.constructor_name}) - "
                f"{row.total_points:3.0f} points (original: {row.total_original_points:3.0f})"
            )

    logger.info("Points distribution:")
    for row in points_distribution(race_points).itertuples(index=False):
        logger.info(
            f"  {row.season}: avg {row.avg_points_per_race:.2f}, median {row.median_points_per_race:g}, "
            f"max {row.max_points_per_race:g}, {row.drivers_scoring_points} scoring entries"
        )

    for season, group in constructor_totals(cumulative).groupby("season"):
        logger.info(f"Constructors {season}:")
        for i, row in enumerate(group.itertuples(index=False), start=1):
            logger.info(f"  {i}. {row.constructor_name:<20} - {row.total_points:3.0f} points ({row.drivers} drivers)")

    diffs = scoring_comparison(cumulative)
    if not diffs.empty:
        logger.info("Biggest changes vs. original scoring:")
        for i, row in enumerate(diffs.itertuples(index=False), start=1):
            logger.info(
                f"  {i:2d}. {row.driver_name:<20} {row.season}: {row.difference:+4.0f} "
                f"(new: {row.new_total:3.0f}, original: {row.original_total:3.0f})"
            )

    for season, group in race_wins(race_points).groupby("season"):
        logger.info(f"Race wins {season}:")
        for i, row in enumerate(group.itertuples(index=False), start=1):
            logger.info(
                f"  {i}. {row.driver_name:<20} ({row.constructor_name}) - "
                f"{row.wins} wins, {row.total_points:3.0f} points"
            )

    for season, group in podiums(race_points).groupby("season"):
        logger.info(f"Podiums {season}:")
        for i, row in enumerate(group.itertuples(index=False), start=1):
            logger.info(
                f"  {i}. {row.driver_name:<20} ({row.constructor_name}) - {row.podiums} podiums "
                f"({row.wins}W, {row.second} 2nd, {row.third} 3rd), {row.total_points:3.0f} points"
            )


def write_summary_file(
    race_points: pd.DataFrame,
    output_dir: Path | None = None,
    scoring: Optional[ScoringTable] = None,
) -> Path:
    """
    Write a short plain-text report next to the datasets.

    Returns:
        Path of the written driver_points_summary.txt.
    """
    output_dir = Path(output_dir or cfg.paths.output)
    output_dir.mkdir(parents=True, exist_ok=True)
    scoring = scoring or ScoringTable.preset(cfg.pipeline.scoring_system)

    seasons = ", ".join(str(s) for s in sorted(race_points["season"].unique()))
    races = race_points[["season", "round"]].drop_duplicates().shape[0]
    lines = [
        "F1 Driver Points Analysis Summary",
        "=================================",
        "",
        f"Generated: {utc_now().isoformat(timespec='seconds')}",
        f"Seasons analyzed: {seasons}",
        f"Total races: {races}",
        f"Total race entries: {len(race_points)}",
        f"Total drivers: {race_points['driver_id'].nunique()}",
        f"Scoring system: {scoring.name} ({', '.join(f'{p:g}' for p in scoring.points)})",
    ]

    path = output_dir / cfg.pipeline.summary_name
    path.write_text("\n".join(lines) + "\n")
    logger.info(f"Summary saved → {path}")
    return path
