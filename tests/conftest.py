"""
Pytest fixtures for the F1 points pipeline tests.

FakeJolpicaClient serves Ergast-shaped payloads from an in-memory dict so the
real fetch specs, normalizers and cache run without network access.
"""
import copy

import pandas as pd
import pytest
import requests

from f1points.cache.store import CacheStore
from f1points.ingest_jolpica.retrying import RetryingFetcher


DRIVERS = {
    "max_verstappen": ("Max", "Verstappen", "red_bull"),
    "perez": ("Sergio", "Pérez", "red_bull"),
    "hamilton": ("Lewis", "Hamilton", "mercedes"),
}

CONSTRUCTORS = {"red_bull": "Red Bull", "mercedes": "Mercedes"}


class FakeJolpicaClient:
    """
    Stand-in for JolpicaClient.

    Args:
        tables: endpoint path -> list of records returned by get_table.
        failures: endpoint path -> number of calls that raise before succeeding.
    """

    def __init__(self, tables: dict | None = None, failures: dict | None = None) -> None:
        self.tables = tables or {}
        self.failures = failures or {}
        self.calls: list[str] = []

    def get_table(self, path: str, table: str, list_key: str) -> list[dict]:
        self.calls.append(path)
        remaining = self.failures.get(path, 0)
        if remaining:
            self.failures[path] = remaining - 1
            raise requests.ConnectionError(f"connection reset for {path}")
        return copy.deepcopy(self.tables.get(path, []))

    def count(self, path: str) -> int:
        return self.calls.count(path)


def ergast_result(driver_id: str, position, points: float, status: str = "Finished") -> dict:
    """One Ergast Results entry; a non-int position is used as positionText."""
    given, family, constructor_id = DRIVERS[driver_id]
    classified = isinstance(position, int)
    return {
        "number": "1",
        "position": str(position) if classified else "20",
        "positionText": str(position) if classified else position,
        "points": str(points),
        "Driver": {"driverId": driver_id, "givenName": given, "familyName": family},
        "Constructor": {"constructorId": constructor_id, "name": CONSTRUCTORS[constructor_id]},
        "status": status,
    }


def make_season_tables(season: int = 2023, n_rounds: int = 10) -> dict[str, list[dict]]:
    """
    A season where Verstappen wins, Pérez is second and Hamilton third,
    except round 2 (Verstappen gets a fastest-lap bonus point) and round 4
    (Hamilton retires).
    """
    tables: dict[str, list[dict]] = {
        str(season): [
            {
                "season": str(season),
                "round": str(rnd),
                "raceName": f"Grand Prix {rnd}",
                "date": f"{season}-{rnd + 2:02d}-05",
                "Circuit": {"circuitId": f"c{rnd}", "circuitName": f"Circuit {rnd}"},
            }
            for rnd in range(1, n_rounds + 1)
        ],
        f"{season}/drivers": [
            {"driverId": d, "givenName": g, "familyName": f} for d, (g, f, _) in DRIVERS.items()
        ],
        "constructors": [{"constructorId": c, "name": n} for c, n in CONSTRUCTORS.items()],
    }
    for rnd in range(1, n_rounds + 1):
        results = [
            ergast_result("max_verstappen", 1, 26 if rnd == 2 else 25),
            ergast_result("perez", 2, 18),
            ergast_result("hamilton", "R", 0, status="Engine") if rnd == 4 else ergast_result("hamilton", 3, 15),
        ]
        tables[f"{season}/{rnd}/results"] = [
            {"season": str(season), "round": str(rnd), "raceName": f"Grand Prix {rnd}", "Results": results}
        ]
    return tables


@pytest.fixture
def season_tables() -> dict[str, list[dict]]:
    return make_season_tables(2023, 10)


@pytest.fixture
def fake_client(season_tables) -> FakeJolpicaClient:
    return FakeJolpicaClient(tables=season_tables)


@pytest.fixture
def sleeps() -> list[float]:
    """Records every delay requested by the code under test."""
    return []


@pytest.fixture
def cache(tmp_path) -> CacheStore:
    return CacheStore(cache_dir=tmp_path / "cache")


@pytest.fixture
def fetcher(fake_client, cache, sleeps) -> RetryingFetcher:
    return RetryingFetcher(
        client=fake_client,
        cache=cache,
        max_retries=3,
        retry_delay=2,
        sleep=sleeps.append,
    )


@pytest.fixture
def scored_rows() -> pd.DataFrame:
    """Scored race rows for two drivers over three rounds, deliberately unsorted."""
    return pd.DataFrame([
        {"season": 2023, "round": 3, "driver_id": "a", "driver_name": "A", "constructor_id": "t",
         "constructor_name": "T", "position": 2, "original_points": 18.0, "new_points": 18.0, "status": "Finished"},
        {"season": 2023, "round": 1, "driver_id": "a", "driver_name": "A", "constructor_id": "t",
         "constructor_name": "T", "position": 1, "original_points": 26.0, "new_points": 25.0, "status": "Finished"},
        {"season": 2023, "round": 1, "driver_id": "b", "driver_name": "B", "constructor_id": "u",
         "constructor_name": "U", "position": 2, "original_points": 18.0, "new_points": 18.0, "status": "Finished"},
        {"season": 2023, "round": 2, "driver_id": "b", "driver_name": "B", "constructor_id": "u",
         "constructor_name": "U", "position": None, "original_points": 0.0, "new_points": 0.0, "status": "Accident"},
        {"season": 2023, "round": 2, "driver_id": "a", "driver_name": "A", "constructor_id": "t",
         "constructor_name": "T", "position": 1, "original_points": 25.0, "new_points": 25.0, "status": "Finished"},
        {"season": 2023, "round": 3, "driver_id": "b", "driver_name": "B", "constructor_id": "u",
         "constructor_name": "U", "position": 1, "original_points": 25.0, "new_points": 25.0, "status": "Finished"},
    ]).astype({"position": "Int64"})
