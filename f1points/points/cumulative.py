"""
Running championship totals per driver.
"""
from typing import Optional

import pandas as pd


CUMULATIVE_COLUMNS = [
    "season", "round", "driver_id", "driver_name", "constructor_id", "constructor_name",
    "position", "new_points", "cumulative_points", "original_points", "cumulative_original_points",
]


def accumulate(rows: Optional[pd.DataFrame]) -> pd.DataFrame:
    """
    Compute cumulative points per (season, driver_id), ordered by round.

    Both the rescored points and the original points get a running sum so
    the two championships can be compared round by round.

    Args:
        rows: Scored race rows (see RACE_POINTS_COLUMNS).

    Returns:
        DataFrame with CUMULATIVE_COLUMNS sorted by (season, driver_id, round).
        Empty input yields an empty frame with the same columns.
    """
    if rows is None or rows.empty:
        return pd.DataFrame(columns=CUMULATIVE_COLUMNS)

    df = rows.sort_values(["season", "driver_id", "round"], kind="stable").reset_index(drop=True)
    grouped = df.groupby(["season", "driver_id"], sort=False)
    df["cumulative_points"] = grouped["new_points"].cumsum()
    df["cumulative_original_points"] = grouped["original_points"].cumsum()

    return df[CUMULATIVE_COLUMNS]


def final_totals(cumulative: pd.DataFrame) -> pd.DataFrame:
    """
    Season totals per driver: the last cumulative value of each group.

    Returns:
        One row per (season, driver_id) with total_points,
        total_original_points and races.
    """
    if cumulative is None or cumulative.empty:
        return pd.DataFrame(columns=[
            "season", "driver_id", "driver_name", "constructor_name",
            "total_points", "total_original_points", "races",
        ])

    ordered = cumulative.sort_values(["season", "driver_id", "round"], kind="stable")
    totals = ordered.groupby(["season", "driver_id"], sort=True).agg(
        driver_name=("driver_name", "last"),
        constructor_name=("constructor_name", "last"),
        total_points=("cumulative_points", "last"),
        total_original_points=("cumulative_original_points", "last"),
        races=("round", "nunique"),
    )
    return totals.reset_index()
