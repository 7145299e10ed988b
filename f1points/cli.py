"""
Click-based CLI for the F1 points recalculation pipeline.

Usage:
    python -m f1points.cli setup
    python -m f1points.cli points --start 2020 --end 2022
    python -m f1points.cli summary
    python -m f1points.cli team-pairs --start 2003 --end 2025 --team mclaren --year 2025
    python -m f1points.cli clear-cache --kind results
"""
import signal
import threading

import click
from f1points.config import cfg
from f1points.errors import PipelineCancelled, TotalFailureError
from f1points.utils.logger import setup_logger, logger


@click.group()
@click.option("--log-level", default=None, help="Minimum log level (defaults to F1_LOG_LEVEL or INFO).")
def cli(log_level: str | None) -> None:
    """🏎️  F1 Points Recalculation Pipeline"""
    setup_logger(log_dir=cfg.paths.logs, level=log_level)


@cli.command()
def setup() -> None:
    """Initialize project directories."""
    logger.info("Setting up project directories...")
    cfg.paths.setup()
    logger.success("✅ All directories created.")


@cli.command()
@click.option("--start", "start_year", default=cfg.pipeline.start_year, show_default=True, help="First season.")
@click.option("--end", "end_year", default=cfg.pipeline.end_year, show_default=True, help="Last season.")
@click.option("--scoring", default=cfg.pipeline.scoring_system, show_default=True, help="Scoring system preset.")
def points(start_year: int, end_year: int, scoring: str) -> None:
    """Recalculate driver points for a range of seasons and save CSV/Parquet."""
    from f1points.analysis.summary import log_summary
    from f1points.points.pipeline import run_points_pipeline, write_outputs
    from f1points.points.scoring import ScoringTable

    cfg.paths.setup()

    # Ctrl-C stops the run between rounds instead of mid-request.
    cancel = threading.Event()
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancel.set())

    try:
        table = ScoringTable.preset(scoring)
        run = run_points_pipeline(start_year, end_year, scoring=table, cancel=cancel)
    except (ValueError, TotalFailureError, PipelineCancelled) as e:
        raise click.ClickException(str(e)) from e
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    write_outputs(run)
    log_summary(run.race_points, run.cumulative)
    logger.success("✅ Points calculation complete.")


@cli.command()
@click.option("--top", default=10, show_default=True, help="Drivers listed per season.")
def summary(top: int) -> None:
    """Summarize previously generated points datasets and save a text report."""
    from f1points.analysis.summary import log_summary, write_summary_file
    from f1points.points.pipeline import load_outputs

    try:
        race_points, cumulative = load_outputs()
    except FileNotFoundError as e:
        raise click.ClickException(str(e)) from e
    log_summary(race_points, cumulative, top_n=top)
    write_summary_file(race_points)


@cli.command("team-pairs")
@click.option("--start", "start_year", default=2003, show_default=True, help="First season.")
@click.option("--end", "end_year", default=2025, show_default=True, help="Last season.")
@click.option("--team", default="mclaren", show_default=True, help="Team to highlight.")
@click.option("--year", default=2025, show_default=True, help="Season of the highlighted pair.")
@click.option("--top", default=20, show_default=True, help="Pairs listed.")
def team_pairs(start_year: int, end_year: int, team: str, year: int, top: int) -> None:
    """Rank team-mate pairs by combined championship points."""
    from f1points.analysis.team_pairs import build_team_pairs, collect_standings, highlight_pair
    from f1points.ingest_jolpica.retrying import RetryingFetcher

    cfg.paths.setup()
    try:
        standings = collect_standings(RetryingFetcher(), start_year, end_year)
    except TotalFailureError as e:
        raise click.ClickException(str(e)) from e

    result = build_team_pairs(standings)
    ranked = highlight_pair(result.pairs, team, year)

    out_path = cfg.paths.output / "team_pairs_comparison.csv"
    ranked.to_csv(out_path, index=False)
    logger.info(f"Saved {len(ranked)} pairs → {out_path}")

    for row in ranked.head(top).itertuples(index=False):
        marker = " ◀" if row.is_target else ""
        logger.info(
            f"  {row.rank:3d}. {row.season} {row.team:<20} {row.driver1} & {row.driver2} "
            f"- {row.combined_points:.0f}{marker}"
        )


@cli.command("clear-cache")
@click.option("--kind", default=None, help="Only clear one data kind (schedule, results, drivers, ...).")
def clear_cache(kind: str | None) -> None:
    """Delete cached API responses."""
    from f1points.cache.store import CacheStore

    removed = CacheStore().clear(kind=kind)
    logger.success(f"✅ Removed {removed} cache entries.")


if __name__ == "__main__":
    cli()
