"""
Multi-season points pipeline.

For each season in [start_year, end_year]:
  1. build_season   → rescored race-by-race rows
  2. accumulate     → cumulative totals per driver

Seasons without data are skipped; if no season produced anything the run
fails with TotalFailureError and no output files are written.

Outputs (in cfg.paths.output):
  - driver_points_race_by_race.{csv,parquet}
  - driver_points_cumulative.{csv,parquet}
"""
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pandas as pd
from tqdm import tqdm

from f1points.config import cfg
from f1points.errors import NoDataError, PipelineCancelled, TotalFailureError
from f1points.ingest_jolpica.retrying import RetryingFetcher
from f1points.points.cumulative import CUMULATIVE_COLUMNS, accumulate
from f1points.points.scoring import ScoringTable
from f1points.points.season_builder import RACE_POINTS_COLUMNS, SeasonPoints, build_season
from f1points.utils.logger import logger


@dataclass
class PointsRun:
    race_points: pd.DataFrame
    cumulative: pd.DataFrame
    seasons: list[SeasonPoints] = field(default_factory=list)
    skipped_seasons: list[int] = field(default_factory=list)

    def season_report(self) -> pd.DataFrame:
        """Rounds processed vs requested for every successful season."""
        return pd.DataFrame(
            [
                {
                    "season": s.season,
                    "rounds_processed": s.rounds_processed,
                    "rounds_requested": s.rounds_requested,
                    "failed_rounds": s.failed_rounds,
                }
                for s in self.seasons
            ],
            columns=["season", "rounds_processed", "rounds_requested", "failed_rounds"],
        )


def run_points_pipeline(
    start_year: int | None = None,
    end_year: int | None = None,
    fetcher: Optional[RetryingFetcher] = None,
    scoring: Optional[ScoringTable] = None,
    cancel: Optional[threading.Event] = None,
    pace: float | None = None,
) -> PointsRun:
    """
    Recalculate driver points for a range of seasons.

    Args:
        start_year: First season (inclusive), defaults to config.
        end_year: Last season (inclusive), defaults to config.
        fetcher: Cache-first fetcher; a default Jolpica one is built if None.
        scoring: Scoring table; defaults to the configured system.
        cancel: Checked between seasons and rounds.
        pace: Seconds slept between round fetches (defaults to config).

    Returns:
        PointsRun with the concatenated race-by-race and cumulative tables.

    Raises:
        TotalFailureError: no season in the range produced data.
        PipelineCancelled: cancel was set before the run finished.
    """
    start_year = cfg.pipeline.start_year if start_year is None else start_year
    end_year = cfg.pipeline.end_year if end_year is None else end_year
    if start_year > end_year:
        raise ValueError(f"start_year ({start_year}) must not be after end_year ({end_year})")

    fetcher = fetcher or RetryingFetcher()
    scoring = scoring or ScoringTable.preset(cfg.pipeline.scoring_system)

    logger.info(f"Recalculating points for {start_year}-{end_year} using the {scoring.name} system")
    logger.info(f"Scoring: {', '.join(f'{p:g}' for p in scoring.points)}")

    seasons: list[SeasonPoints] = []
    skipped: list[int] = []
    race_frames = []
    cumulative_frames = []

    for season in tqdm(range(start_year, end_year + 1), desc="Seasons", unit="season"):
        if cancel is not None and cancel.is_set():
            raise PipelineCancelled(f"Cancelled before season {season}")
        try:
            result = build_season(season, fetcher, scoring=scoring, cancel=cancel, pace=pace)
        except NoDataError as e:
            logger.warning(f"  ✗ {e}")
            skipped.append(season)
            continue

        seasons.append(result)
        race_frames.append(result.rows)
        cumulative_frames.append(accumulate(result.rows))

    if not seasons:
        raise TotalFailureError(start_year, end_year)

    run = PointsRun(
        race_points=pd.concat(race_frames, ignore_index=True)[RACE_POINTS_COLUMNS],
        cumulative=pd.concat(cumulative_frames, ignore_index=True)[CUMULATIVE_COLUMNS],
        seasons=seasons,
        skipped_seasons=skipped,
    )
    log_run_summary(run, start_year, end_year)
    return run


def log_run_summary(run: PointsRun, start_year: int, end_year: int) -> None:
    """Log per-season round counts and overall totals."""
    for row in run.season_report().itertuples(index=False):
        marker = "✅" if row.rounds_processed == row.rounds_requested else "⚠"
        missing = f" (failed rounds: {', '.join(map(str, row.failed_rounds))})" if row.failed_rounds else ""
        logger.info(f"  {marker} {row.season}: {row.rounds_processed}/{row.rounds_requested} rounds{missing}")
    for season in run.skipped_seasons:
        logger.info(f"  ✗ {season}: no data")

    logger.info(
        f"Seasons processed: {len(run.seasons)} of {end_year - start_year + 1} | "
        f"race entries: {len(run.race_points)} | "
        f"drivers: {run.race_points['driver_id'].nunique()}"
    )


def _write_atomic(df: pd.DataFrame, path: Path) -> None:
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        if path.suffix == ".parquet":
            df.to_parquet(tmp_path, index=False)
        else:
            df.to_csv(tmp_path, index=False)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def write_outputs(run: PointsRun, output_dir: Path | None = None) -> dict[str, Path]:
    """
    Save both datasets as CSV and Parquet.

    Returns:
        Mapping of "<dataset>_<format>" → written path.
    """
    output_dir = Path(output_dir or cfg.paths.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    datasets = {
        cfg.pipeline.race_points_name: run.race_points,
        cfg.pipeline.cumulative_name: run.cumulative,
    }
    written: dict[str, Path] = {}
    for name, df in datasets.items():
        for fmt in ("csv", "parquet"):
            path = output_dir / f"{name}.{fmt}"
            _write_atomic(df, path)
            written[f"{name}_{fmt}"] = path
            logger.info(f"Saved {len(df)} rows → {path}")
    return written


def load_outputs(output_dir: Path | None = None) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Read previously written race-by-race and cumulative CSVs.

    Raises:
        FileNotFoundError: the points pipeline has not been run yet.
    """
    output_dir = Path(output_dir or cfg.paths.output)
    race_path = output_dir / f"{cfg.pipeline.race_points_name}.csv"
    cumulative_path = output_dir / f"{cfg.pipeline.cumulative_name}.csv"
    for path in (race_path, cumulative_path):
        if not path.exists():
            raise FileNotFoundError(f"{path} not found. Run `points` first.")

    race_points = pd.read_csv(race_path, dtype={"driver_id": str, "constructor_id": str})
    cumulative = pd.read_csv(cumulative_path, dtype={"driver_id": str, "constructor_id": str})
    for df in (race_points, cumulative):
        df["position"] = df["position"].astype("Int64")
    return race_points, cumulative
