"""
Unit tests for the season points builder.
"""
import threading

import pandas as pd
import pytest

from f1points.errors import NoDataError, PipelineCancelled
from f1points.points.scoring import POST_2010, ScoringTable
from f1points.points.season_builder import RACE_POINTS_COLUMNS, build_season, score_results


class TestScoreResults:
    def test_rescoring_example(self):
        results = pd.DataFrame({
            "season": [2023] * 4,
            "round": [1, 1, 1, 1],
            "driver_id": ["a", "b", "c", "d"],
            "constructor_id": ["t", "t", "u", "u"],
            "position": pd.array([1, 2, 3, 11], dtype="Int64"),
            "original_points": [25.0, 18.0, 15.0, 0.0],
            "status": ["Finished"] * 4,
        })
        scored = score_results(results, POST_2010, {}, {})
        assert scored["new_points"].tolist() == [25.0, 18.0, 15.0, 0.0]
        assert scored["original_points"].tolist() == [25.0, 18.0, 15.0, 0.0]

    def test_empty_results(self):
        scored = score_results(pd.DataFrame(), POST_2010, {}, {})
        assert scored.empty
        assert list(scored.columns) == RACE_POINTS_COLUMNS

    def test_names_fall_back_to_ids(self):
        results = pd.DataFrame({
            "season": [2023], "round": [1], "driver_id": ["rookie"], "constructor_id": ["newteam"],
            "position": pd.array([1], dtype="Int64"), "original_points": [25.0], "status": ["Finished"],
        })
        scored = score_results(results, POST_2010, {"someone": "Some One"}, {})
        assert scored.loc[0, "driver_name"] == "rookie"
        assert scored.loc[0, "constructor_name"] == "newteam"


class TestBuildSeason:
    def test_full_season(self, fetcher):
        season = build_season(2023, fetcher, pace=0)

        assert season.rounds_requested == 10
        assert season.rounds_processed == 10
        assert season.failed_rounds == []
        assert len(season.rows) == 30
        assert list(season.rows.columns) == RACE_POINTS_COLUMNS

    def test_names_are_joined(self, fetcher):
        rows = build_season(2023, fetcher, pace=0).rows
        first = rows.iloc[0]
        assert first["driver_name"] == "Max Verstappen"
        assert first["constructor_name"] == "Red Bull"

    def test_bonus_points_are_not_carried_over(self, fetcher):
        rows = build_season(2023, fetcher, pace=0).rows
        winner = rows[(rows["round"] == 2) & (rows["driver_id"] == "max_verstappen")].iloc[0]
        assert winner["original_points"] == 26.0
        assert winner["new_points"] == 25.0

    def test_rows_sorted_by_round_then_position(self, fetcher):
        rows = build_season(2023, fetcher, pace=0).rows
        round4 = rows[rows["round"] == 4]
        assert round4["driver_id"].tolist() == ["max_verstappen", "perez", "hamilton"]
        assert pd.isna(round4.iloc[-1]["position"])
        assert round4.iloc[-1]["new_points"] == 0.0
        assert rows["round"].is_monotonic_increasing

    def test_failed_round_is_skipped(self, fetcher, fake_client):
        fake_client.failures["2023/5/results"] = 99

        season = build_season(2023, fetcher, pace=0)

        assert season.rounds_processed == 9
        assert season.failed_rounds == [5]
        assert 5 not in set(season.rows["round"])
        assert len(season.rows) == 27

    def test_missing_name_lookups_degrade(self, fetcher, fake_client):
        fake_client.failures["2023/drivers"] = 99
        fake_client.failures["constructors"] = 99

        rows = build_season(2023, fetcher, pace=0).rows

        assert len(rows) == 30
        assert (rows["driver_name"] == rows["driver_id"]).all()
        assert (rows["constructor_name"] == rows["constructor_id"]).all()

    def test_no_schedule_is_no_data(self, fetcher):
        with pytest.raises(NoDataError) as exc_info:
            build_season(2099, fetcher, pace=0)
        assert exc_info.value.season == 2099

    def test_empty_schedule_is_no_data(self, fetcher, fake_client, cache):
        fake_client.tables["2023"] = []
        with pytest.raises(NoDataError, match="schedule unavailable"):
            build_season(2023, fetcher, pace=0)
        assert fake_client.count("2023/1/results") == 0
        assert cache.keys() == []

    def test_no_results_is_no_data(self, fetcher, fake_client):
        for rnd in range(1, 11):
            fake_client.failures[f"2023/{rnd}/results"] = 99
        with pytest.raises(NoDataError):
            build_season(2023, fetcher, pace=0)

    def test_custom_scoring_table(self, fetcher):
        table = ScoringTable(name="winner-only", points=[1])
        rows = build_season(2023, fetcher, scoring=table, pace=0).rows
        assert rows["new_points"].sum() == 10.0

    def test_cancel_between_rounds(self, fetcher, fake_client):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(PipelineCancelled):
            build_season(2023, fetcher, cancel=cancel, pace=0)
        assert not any(path.endswith("/results") for path in fake_client.calls)

    def test_pacing_between_rounds(self, fetcher):
        delays = []
        build_season(2023, fetcher, pace=0.5, sleep=delays.append)
        assert delays == [0.5] * 9
