"""
Project-wide configuration using Pydantic Settings.
API settings, paths, and pipeline defaults live here.
"""
from pathlib import Path
from pydantic_settings import BaseSettings


ROOT_DIR = Path(__file__).resolve().parent.parent


class APIConfig(BaseSettings):
    base_url: str = "https://api.jolpi.ca/ergast/f1"
    timeout: int = 30  # seconds per HTTP request
    max_retries: int = 3
    retry_delay: float = 2.0  # seconds between attempts
    rate_limit_delay: float = 0.5  # seconds between rounds
    page_limit: int = 100

    model_config = {"env_prefix": "JOLPICA_"}


class PathConfig(BaseSettings):
    root: Path = ROOT_DIR
    data: Path = ROOT_DIR / "data"
    cache: Path = ROOT_DIR / "data" / "cache"
    output: Path = ROOT_DIR / "plots"
    logs: Path = ROOT_DIR / "logs"

    def setup(self) -> None:
        """Create all directories if they don't exist."""
        for field_name, path in self.model_dump().items():
            if isinstance(path, Path):
                path.mkdir(parents=True, exist_ok=True)

    model_config = {"env_prefix": "F1_PATH_"}


class PipelineConfig(BaseSettings):
    start_year: int = 2020
    end_year: int = 2022
    scoring_system: str = "2010"

    # Output file stems
    race_points_name: str = "driver_points_race_by_race"
    cumulative_name: str = "driver_points_cumulative"
    summary_name: str = "driver_points_summary.txt"

    model_config = {"env_prefix": "F1_POINTS_"}


class LogConfig(BaseSettings):
    level: str = "INFO"
    file_stem: str = "f1_points"
    rotation: str = "1 day"
    retention: str = "7 days"

    model_config = {"env_prefix": "F1_LOG_"}


class Config:
    """Unified project configuration."""

    api: APIConfig = APIConfig()
    paths: PathConfig = PathConfig()
    pipeline: PipelineConfig = PipelineConfig()
    logging: LogConfig = LogConfig()


# Singleton instance
cfg = Config()
