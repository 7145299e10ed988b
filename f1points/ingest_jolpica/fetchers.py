"""
Endpoint-specific fetchers for the Jolpica API.

Each data kind is described by a FetchSpec:
  - remote:     one attempt against the API, returns raw record dicts
  - normalizer: raw records -> typed DataFrame with a fixed column set
  - dtypes:     column types re-applied to cached payloads

RetryingFetcher runs the cache/retry loop once for all of them.
"""
import json
from dataclasses import dataclass
from typing import Any, Callable

import pandas as pd

from f1points.ingest_jolpica.api_client import JolpicaClient
from f1points.utils.logger import logger
from f1points.utils.time_utils import parse_race_date


RemoteCall = Callable[..., list[dict]]
Normalizer = Callable[..., pd.DataFrame]


@dataclass(frozen=True)
class FetchSpec:
    kind: str
    remote: RemoteCall
    normalizer: Normalizer
    dtypes: dict[str, str]
    required: tuple[str, ...] = ()

    @property
    def columns(self) -> list[str]:
        return list(self.dtypes)


# ── Remote calls (one attempt each) ──────────────────────────────────────────

def fetch_schedule(client: JolpicaClient, season: int) -> list[dict]:
    """
    Fetch the race calendar for a season.

    Returns:
        List of Ergast race dicts (round, raceName, date, Circuit, ...).
    """
    logger.debug(f"Fetching schedule for {season}...")
    return client.get_table(str(season), "RaceTable", "Races")


def fetch_results(client: JolpicaClient, season: int, round: int) -> list[dict]:
    """
    Fetch race results for a single round.

    Ergast paginates over result rows, so a race may be split across pages;
    the Results lists are flattened here.
    """
    logger.debug(f"Fetching results for {season} round {round}...")
    races = client.get_table(f"{season}/{round}/results", "RaceTable", "Races")
    rows = []
    for race in races:
        for result in race.get("Results", []):
            rows.append({**result, "season": race.get("season", season), "round": race.get("round", round)})
    return rows


def fetch_drivers(client: JolpicaClient, season: int) -> list[dict]:
    logger.debug(f"Fetching drivers for {season}...")
    return client.get_table(f"{season}/drivers", "DriverTable", "Drivers")


def fetch_constructors(client: JolpicaClient) -> list[dict]:
    """Fetch every constructor ever registered (not season-scoped)."""
    logger.debug("Fetching constructors...")
    return client.get_table("constructors", "ConstructorTable", "Constructors")


def fetch_driver_standings(client: JolpicaClient, season: int) -> list[dict]:
    """
    Fetch the final driver standings for a season.

    Returns:
        Flattened DriverStandings entries with season and round attached.
    """
    logger.debug(f"Fetching driver standings for {season}...")
    lists = client.get_table(f"{season}/driverStandings", "StandingsTable", "StandingsLists")
    rows = []
    for standings in lists:
        for entry in standings.get("DriverStandings", []):
            rows.append({**entry, "season": standings.get("season", season), "round": standings.get("round")})
    return rows


# ── Normalizers ──────────────────────────────────────────────────────────────

def _classified_position(result: dict) -> int | None:
    """Finishing position, or None for non-classified entries (R, D, W, N, E, F)."""
    text = str(result.get("positionText", result.get("position", "")))
    return int(text) if text.isdigit() else None


def normalize_schedule(records: list[dict], season: int) -> pd.DataFrame:
    rows = []
    for race in records:
        race_date = parse_race_date(race.get("date"))
        rows.append({
            "season": race.get("season", season),
            "round": race.get("round"),
            "race_name": race.get("raceName", ""),
            "circuit_name": race.get("Circuit", {}).get("circuitName", ""),
            "date": race_date.isoformat() if race_date else None,
        })
    df = pd.DataFrame(rows, columns=list(SCHEDULE_DTYPES))
    if df.empty:
        return df
    df = coerce_types(df, SCHEDULE_DTYPES)
    return df.drop_duplicates("round").sort_values("round").reset_index(drop=True)


def normalize_results(records: list[dict], season: int, round: int) -> pd.DataFrame:
    rows = []
    for result in records:
        rows.append({
            "season": result.get("season", season),
            "round": result.get("round", round),
            "driver_id": result.get("Driver", {}).get("driverId"),
            "constructor_id": result.get("Constructor", {}).get("constructorId"),
            "position": _classified_position(result),
            "original_points": result.get("points", 0),
            "status": result.get("status", ""),
        })
    df = pd.DataFrame(rows, columns=list(RESULTS_DTYPES))
    return coerce_types(df, RESULTS_DTYPES) if not df.empty else df


def normalize_drivers(records: list[dict], season: int) -> pd.DataFrame:
    rows = [
        {
            "driver_id": d.get("driverId"),
            "driver_name": f"{d.get('givenName', '')} {d.get('familyName', '')}".strip() or d.get("driverId"),
        }
        for d in records
    ]
    df = pd.DataFrame(rows, columns=list(DRIVERS_DTYPES))
    return coerce_types(df, DRIVERS_DTYPES).drop_duplicates("driver_id") if not df.empty else df


def normalize_constructors(records: list[dict]) -> pd.DataFrame:
    rows = [{"constructor_id": c.get("constructorId"), "constructor_name": c.get("name")} for c in records]
    df = pd.DataFrame(rows, columns=list(CONSTRUCTORS_DTYPES))
    return coerce_types(df, CONSTRUCTORS_DTYPES).drop_duplicates("constructor_id") if not df.empty else df


def normalize_driver_standings(records: list[dict], season: int) -> pd.DataFrame:
    rows = []
    for entry in records:
        driver = entry.get("Driver", {})
        # Drivers who changed team mid-season list every constructor; the last one is current.
        constructors = entry.get("Constructors") or [{}]
        constructor = constructors[-1]
        rows.append({
            "season": entry.get("season", season),
            "round": entry.get("round"),
            "driver_id": driver.get("driverId"),
            "driver_name": f"{driver.get('givenName', '')} {driver.get('familyName', '')}".strip(),
            "constructor_id": constructor.get("constructorId"),
            "constructor_name": constructor.get("name", constructor.get("constructorId")),
            "position": entry.get("position"),
            "points": entry.get("points", 0),
            "wins": entry.get("wins", 0),
        })
    df = pd.DataFrame(rows, columns=list(STANDINGS_DTYPES))
    return coerce_types(df, STANDINGS_DTYPES) if not df.empty else df


# ── Type coercion ────────────────────────────────────────────────────────────

def coerce_types(df: pd.DataFrame, dtypes: dict[str, str]) -> pd.DataFrame:
    """
    Cast columns to their declared types.

    'str' keeps missing values as None, 'Int64' is a nullable integer,
    'int' and 'float' fill missing values with 0.
    """
    df = df.copy()
    for col, dtype in dtypes.items():
        if col not in df.columns:
            df[col] = None
        if dtype == "str":
            df[col] = df[col].map(lambda v: None if pd.isna(v) else str(v))
        elif dtype == "Int64":
            df[col] = pd.to_numeric(df[col], errors="coerce").astype("Int64")
        elif dtype == "int":
            df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0).astype(int)
        elif dtype == "float":
            df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0).astype(float)
        else:
            raise ValueError(f"Unknown dtype '{dtype}' for column {col}")
    return df[list(dtypes)]


SCHEDULE_DTYPES = {
    "season": "int",
    "round": "int",
    "race_name": "str",
    "circuit_name": "str",
    "date": "str",
}

RESULTS_DTYPES = {
    "season": "int",
    "round": "int",
    "driver_id": "str",
    "constructor_id": "str",
    "position": "Int64",
    "original_points": "float",
    "status": "str",
}

DRIVERS_DTYPES = {"driver_id": "str", "driver_name": "str"}

CONSTRUCTORS_DTYPES = {"constructor_id": "str", "constructor_name": "str"}

STANDINGS_DTYPES = {
    "season": "int",
    "round": "int",
    "driver_id": "str",
    "driver_name": "str",
    "constructor_id": "str",
    "constructor_name": "str",
    "position": "Int64",
    "points": "float",
    "wins": "int",
}


FETCH_SPECS: dict[str, FetchSpec] = {
    "schedule": FetchSpec("schedule", fetch_schedule, normalize_schedule, SCHEDULE_DTYPES, ("round",)),
    "results": FetchSpec(
        "results", fetch_results, normalize_results, RESULTS_DTYPES, ("driver_id", "constructor_id")
    ),
    "drivers": FetchSpec("drivers", fetch_drivers, normalize_drivers, DRIVERS_DTYPES, ("driver_id",)),
    "constructors": FetchSpec(
        "constructors", fetch_constructors, normalize_constructors, CONSTRUCTORS_DTYPES, ("constructor_id",)
    ),
    "standings": FetchSpec(
        "standings", fetch_driver_standings, normalize_driver_standings, STANDINGS_DTYPES,
        ("driver_id", "constructor_id"),
    ),
}


def records_to_payload(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a normalized DataFrame to JSON-safe records (NA -> None)."""
    return json.loads(df.to_json(orient="records"))
