"""
Match data models — Rule configuration, set history, the undo log,
and the complete match aggregate (scores plus roster).
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from volley.config import settings
from volley.models.roster import RosterState, RotationReport


# ── Enums ────────────────────────────────────────────────────────────────────

class TeamId(str, Enum):
    A = "A"
    B = "B"

    @property
    def opponent(self) -> TeamId:
        return TeamId.B if self is TeamId.A else TeamId.A


class DeuceType(str, Enum):
    STANDARD = "standard"
    SUDDEN_DEATH_3PT = "sudden_death_3pt"


class RotationMode(str, Enum):
    STANDARD = "standard"
    BALANCED = "balanced"


class GameMode(str, Enum):
    INDOOR = "indoor"
    BEACH = "beach"


# ── Core Models ──────────────────────────────────────────────────────────────

class GameConfig(BaseModel):
    """Rule parameters for a match. Not changed while a match is active."""
    mode: GameMode = GameMode.INDOOR
    max_sets: Literal[1, 3, 5] = 5
    points_per_set: Literal[15, 21, 25] = 25
    has_tie_break: bool = True
    tie_break_points: int = Field(default=15, ge=1, le=99, description="Target for the deciding set")
    deuce_type: DeuceType = DeuceType.STANDARD
    rotation_mode: RotationMode = RotationMode.STANDARD

    @property
    def sets_to_win(self) -> int:
        return self.max_sets // 2 + 1


class SetHistory(BaseModel):
    """Final score of a completed set."""
    set_number: int
    score_a: int
    score_b: int
    winner: TeamId


class PointAction(BaseModel):
    type: Literal["POINT"] = "POINT"
    team: TeamId
    prev_score_a: int
    prev_score_b: int
    prev_serving_team: Optional[TeamId] = None
    prev_in_sudden_death: bool = False


class TimeoutAction(BaseModel):
    type: Literal["TIMEOUT"] = "TIMEOUT"
    team: TeamId
    prev_timeouts_a: int
    prev_timeouts_b: int


ActionLogEntry = Annotated[Union[PointAction, TimeoutAction], Field(discriminator="type")]


class MatchState(BaseModel):
    """Complete match state, roster included, so one copy covers both."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    config: GameConfig = Field(default_factory=GameConfig)
    team_a_name: str = settings.DEFAULT_TEAM_A_NAME
    team_b_name: str = settings.DEFAULT_TEAM_B_NAME

    # Scores & sets
    score_a: int = 0
    score_b: int = 0
    sets_a: int = 0
    sets_b: int = 0
    current_set: int = 1

    # History & undo
    history: list[SetHistory] = Field(default_factory=list)
    action_log: list[ActionLogEntry] = Field(default_factory=list)
    last_snapshot: Optional[MatchState] = None
    is_match_over: bool = False
    match_winner: Optional[TeamId] = None

    # Play status
    serving_team: Optional[TeamId] = None
    swapped_sides: bool = False
    timeouts_a: int = 0
    timeouts_b: int = 0
    in_sudden_death: bool = False
    match_duration_seconds: int = 0
    is_timer_running: bool = False

    # Roster
    roster: RosterState = Field(default_factory=RosterState)
    rotation_report: Optional[RotationReport] = None

    def score_of(self, team: TeamId) -> int:
        return self.score_a if team == TeamId.A else self.score_b

    def sets_of(self, team: TeamId) -> int:
        return self.sets_a if team == TeamId.A else self.sets_b

    def timeouts_of(self, team: TeamId) -> int:
        return self.timeouts_a if team == TeamId.A else self.timeouts_b

    @property
    def score_display(self) -> str:
        """Human-readable score string."""
        parts = [f"{s.score_a}-{s.score_b}" for s in self.history]
        if not self.is_match_over:
            parts.append(f"({self.score_a}-{self.score_b})")
        return " | ".join(parts)


class GameStatus(BaseModel):
    """Flags derived from the raw counters. Computed on demand, never stored."""
    is_tie_break: bool
    points_to_win_set: int
    sets_needed_to_win: int
    is_set_point_a: bool
    is_set_point_b: bool
    is_match_point_a: bool
    is_match_point_b: bool
    is_deuce: bool
    is_sudden_death: bool
    is_match_active: bool
    can_undo: bool


MatchState.model_rebuild()
