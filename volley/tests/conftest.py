"""Shared test fixtures."""

import pytest

from volley.engine.scoring import ScoringEngine
from volley.models.match import GameConfig


@pytest.fixture
def engine():
    """Best-of-3 to 25 with a 15-point tie-break."""
    config = GameConfig(max_sets=3, points_per_set=25, has_tie_break=True, tie_break_points=15)
    return ScoringEngine(config)


@pytest.fixture
def session_names():
    """Twenty players: two courts, one full queue team and a partial one."""
    return [f"Player {i}" for i in range(20)]
