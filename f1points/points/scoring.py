"""
Per-position scoring tables.

The pipeline scores every result with an injected ScoringTable so that
alternate systems (or test tables) can be swapped in without touching the
builder. Bonus points (fastest lap, sprints) are never awarded here.
"""
from typing import Any

import pandas as pd
from pydantic import BaseModel, field_validator


class ScoringTable(BaseModel):
    """Points awarded for finishing positions 1..len(points)."""

    name: str
    points: list[float]

    model_config = {"frozen": True}

    @field_validator("points")
    @classmethod
    def _non_negative(cls, v: list[float]) -> list[float]:
        if any(p < 0 for p in v):
            raise ValueError("points must be non-negative")
        return v

    def score(self, position: Any) -> float:
        """
        Points for a finishing position.

        Anything that is not a position inside the table (None, NaN, 0,
        negative, beyond the last scoring place, non-numeric) scores 0.
        """
        try:
            if pd.isna(position):
                return 0.0
            pos = int(position)
        except (TypeError, ValueError):
            return 0.0
        if pos != position or not 1 <= pos <= len(self.points):
            return 0.0
        return float(self.points[pos - 1])

    def score_series(self, positions: pd.Series) -> pd.Series:
        """Vectorised score() over a Series of positions."""
        return positions.map(self.score).astype(float)

    @classmethod
    def preset(cls, name: str) -> "ScoringTable":
        try:
            return SCORING_SYSTEMS[str(name)]
        except KeyError:
            raise ValueError(f"Unknown scoring system '{name}'. Known: {sorted(SCORING_SYSTEMS)}") from None


# Historical race scoring systems, keyed by the first season they applied.
SCORING_SYSTEMS: dict[str, ScoringTable] = {
    "1991": ScoringTable(name="1991", points=[10, 6, 4, 3, 2, 1]),
    "2003": ScoringTable(name="2003", points=[10, 8, 6, 5, 4, 3, 2, 1]),
    "2010": ScoringTable(name="2010", points=[25, 18, 15, 12, 10, 8, 6, 4, 2, 1]),
}

POST_2010 = SCORING_SYSTEMS["2010"]
