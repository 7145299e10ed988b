"""
Unit tests for summary statistics and team-pair comparison.
"""
import pandas as pd
import pytest

from conftest import FakeJolpicaClient
from f1points.analysis.summary import (
    constructor_totals,
    log_summary,
    podiums,
    points_distribution,
    race_wins,
    scoring_comparison,
    season_summary,
    top_drivers,
    write_summary_file,
)
from f1points.analysis.team_pairs import build_team_pairs, collect_standings, final_standings, highlight_pair
from f1points.errors import TotalFailureError
from f1points.points.cumulative import accumulate
from f1points.points.scoring import POST_2010
from f1points.utils.logger import logger


class TestSummary:
    def test_season_summary(self, scored_rows):
        summary = season_summary(scored_rows)
        assert summary.to_dict("records") == [{"season": 2023, "races": 3, "drivers": 2, "entries": 6}]

    def test_top_drivers_ranked(self, scored_rows):
        top = top_drivers(accumulate(scored_rows), n=1)
        assert top["driver_id"].tolist() == ["a"]
        assert top["rank"].tolist() == [1]
        assert top.loc[0, "total_points"] == 68.0

    def test_points_distribution(self, scored_rows):
        dist = points_distribution(scored_rows).iloc[0]
        assert dist["max_points_per_race"] == 25.0
        assert dist["drivers_scoring_points"] == 5

    def test_constructor_totals(self, scored_rows):
        teams = constructor_totals(accumulate(scored_rows))
        assert teams["constructor_name"].tolist() == ["T", "U"]
        assert teams["total_points"].tolist() == [68.0, 43.0]

    def test_scoring_comparison(self, scored_rows):
        cmp = scoring_comparison(accumulate(scored_rows)).set_index("driver_id")
        assert cmp.loc["a", "difference"] == -1.0
        assert cmp.loc["b", "difference"] == 0.0
        assert cmp.index[0] == "a"

    def test_race_wins_ignores_unclassified(self, scored_rows):
        wins = race_wins(scored_rows)
        assert dict(zip(wins["driver_id"], wins["wins"])) == {"a": 2, "b": 1}
        assert wins["constructor_name"].tolist() == ["T", "U"]
        assert wins["total_points"].tolist() == [50.0, 25.0]

    def test_race_wins_top_n(self, scored_rows):
        assert race_wins(scored_rows, n=1)["driver_id"].tolist() == ["a"]

    def test_podiums(self, scored_rows):
        top = podiums(scored_rows).set_index("driver_id")
        assert top.index.tolist() == ["a", "b"]
        assert top.loc["a", ["podiums", "wins", "second", "third"]].tolist() == [3, 2, 1, 0]
        assert top.loc["a", "total_points"] == 68.0
        # b's retirement is not a podium
        assert top.loc["b", ["podiums", "wins", "second", "third"]].tolist() == [2, 1, 1, 0]

    def test_podiums_top_n_per_season(self, scored_rows):
        later = scored_rows.assign(season=2024)
        top = podiums(pd.concat([scored_rows, later], ignore_index=True), n=1)
        assert top[["season", "driver_id"]].values.tolist() == [[2023, "a"], [2024, "a"]]

    def test_log_summary_reports_every_section(self, scored_rows):
        messages = []
        sink_id = logger.add(messages.append, format="{message}")
        try:
            log_summary(scored_rows, accumulate(scored_rows))
        finally:
            logger.remove(sink_id)
        text = "".join(messages)
        for heading in ("Top 3 drivers 2023", "Points distribution", "Constructors 2023",
                        "Biggest changes", "Race wins 2023", "Podiums 2023"):
            assert heading in text
        assert "3 podiums (2W, 1 2nd, 0 3rd)" in text

    def test_summary_file(self, scored_rows, tmp_path):
        path = write_summary_file(scored_rows, tmp_path / "plots", scoring=POST_2010)
        text = path.read_text()
        assert path.name == "driver_points_summary.txt"
        assert "Seasons analyzed: 2023" in text
        assert "Total races: 3" in text
        assert "Total race entries: 6" in text
        assert "Total drivers: 2" in text
        assert "25, 18, 15, 12, 10, 8, 6, 4, 2, 1" in text

    def test_empty_inputs(self):
        empty = pd.DataFrame(columns=["season", "round", "driver_id", "position", "new_points"])
        assert season_summary(empty).empty
        assert points_distribution(empty).empty
        assert top_drivers(pd.DataFrame()).empty
        assert scoring_comparison(pd.DataFrame()).empty


def _standings_entry(driver_id, constructor_id, position, points):
    return {
        "position": str(position), "points": str(points), "wins": "0",
        "Driver": {"driverId": driver_id, "givenName": driver_id.title(), "familyName": ""},
        "Constructors": [{"constructorId": constructor_id, "name": constructor_id.title()}],
    }


def _standings(season, round_, entries):
    return {"season": str(season), "round": str(round_), "DriverStandings": entries}


@pytest.fixture
def standings_client() -> FakeJolpicaClient:
    return FakeJolpicaClient(tables={
        "2024/driverStandings": [
            _standings(2024, 23, [
                _standings_entry("norris", "mclaren", 2, 374),
                _standings_entry("piastri", "mclaren", 4, 292),
                _standings_entry("lawson", "rb", 10, 4),
                _standings_entry("ricciardo", "rb", 11, 12),
                _standings_entry("tsunoda", "rb", 12, 30),
            ]),
        ],
        "2025/driverStandings": [
            _standings(2025, 1, [_standings_entry("norris", "mclaren", 1, 25)]),
            _standings(2025, 2, [
                _standings_entry("piastri", "mclaren", 1, 44),
                _standings_entry("norris", "mclaren", 2, 43),
            ]),
        ],
    })


class TestTeamPairs:
    def test_final_standings_use_last_round(self, standings_client, fetcher):
        fetcher.client = standings_client
        df = final_standings(fetcher, 2025)
        assert df["round"].unique().tolist() == [2]
        assert len(df) == 2

    def test_pairs_and_exclusions(self, standings_client, fetcher):
        fetcher.client = standings_client
        standings = collect_standings(fetcher, 2024, 2025)
        result = build_team_pairs(standings)

        pairs = result.pairs
        assert pairs["rank"].tolist() == [1, 2]
        assert pairs.loc[0, "season"] == 2024
        assert pairs.loc[0, "combined_points"] == 666.0
        assert pairs.loc[0, "driver1"] == "Norris"
        assert pairs.loc[0, "difference"] == 82.0

        assert result.excluded["constructor_id"].tolist() == ["rb"]
        assert result.excluded.loc[0, "drivers"] == 3

    def test_highlight(self, standings_client, fetcher):
        fetcher.client = standings_client
        pairs = build_team_pairs(collect_standings(fetcher, 2024, 2025)).pairs
        marked = highlight_pair(pairs, "McLaren", 2025)
        assert marked["is_target"].tolist() == [False, True]

    def test_missing_seasons_skipped(self, standings_client, fetcher):
        fetcher.client = standings_client
        standings = collect_standings(fetcher, 2023, 2024)
        assert standings["season"].unique().tolist() == [2024]

    def test_no_standings_is_fatal(self, fetcher):
        fetcher.client = FakeJolpicaClient()
        with pytest.raises(TotalFailureError):
            collect_standings(fetcher, 2098, 2099)
