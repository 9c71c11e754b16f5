"""
Roster data models — Players, teams, the waiting queue and rotation reports.
"""

from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, Field

from volley.config import settings


def new_id() -> str:
    return str(uuid.uuid4())


class Player(BaseModel):
    """A player instance on court or in the queue."""
    id: str = Field(default_factory=new_id)
    name: str
    skill_level: int = Field(default=settings.DEFAULT_SKILL_LEVEL, ge=1, le=5)
    is_fixed: bool = Field(default=False, description="Locked: exempt from automatic movement")
    fixed_side: Optional[str] = Field(default=None, description="Team id the lock was taken on")
    original_index: int = Field(default=0, description="Stable seed order for restoring grouping")


class Team(BaseModel):
    """An ordered group of players. Court teams use ids 'A' and 'B'."""
    id: str = Field(default_factory=new_id)
    name: str
    color: str = "indigo"
    players: list[Player] = Field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.players)

    @property
    def total_skill(self) -> int:
        return sum(p.skill_level for p in self.players)

    @property
    def average_skill(self) -> float:
        if not self.players:
            return 0.0
        return self.total_skill / len(self.players)

    def has_player(self, player_id: str) -> bool:
        return any(p.id == player_id for p in self.players)


class RotationReport(BaseModel):
    """Forecast of a post-match rotation, replayed verbatim at commit."""
    outgoing_team: Team
    incoming_team: Team
    retained_players: list[Player] = Field(default_factory=list)
    stolen_players: list[Player] = Field(default_factory=list)
    queue_after_rotation: list[Team] = Field(default_factory=list)


class DeletedPlayerRecord(BaseModel):
    """A removed player and the team it came from, for undo-remove."""
    player: Player
    origin_id: str


def _court_team(team_id: str, name: str, color_index: int) -> Team:
    colors = settings.TEAM_COLORS
    return Team(id=team_id, name=name, color=colors[color_index % len(colors)])


class RosterState(BaseModel):
    """Both courts plus the FIFO queue of waiting teams."""
    court_a: Team = Field(default_factory=lambda: _court_team("A", settings.DEFAULT_TEAM_A_NAME, 0))
    court_b: Team = Field(default_factory=lambda: _court_team("B", settings.DEFAULT_TEAM_B_NAME, 1))
    queue: list[Team] = Field(default_factory=list)
    last_report: Optional[RotationReport] = None
    deleted: list[DeletedPlayerRecord] = Field(default_factory=list)

    @property
    def teams(self) -> list[Team]:
        """Court A, court B, then queue teams in order."""
        return [self.court_a, self.court_b, *self.queue]

    @property
    def all_players(self) -> list[Player]:
        return [p for team in self.teams for p in team.players]

    @property
    def total_players(self) -> int:
        return sum(team.size for team in self.teams)

    def find_team(self, team_id: str) -> Optional[Team]:
        for team in self.teams:
            if team.id == team_id:
                return team
        return None

    def find_player(self, player_id: str) -> tuple[Optional[Team], Optional[Player]]:
        for team in self.teams:
            for player in team.players:
                if player.id == player_id:
                    return team, player
        return None, None


_ID_NAMESPACE = uuid.UUID("6f1c9a52-3d0e-4b7a-9c61-2a8f5e4d7b10")


def derive_id(*parts: object) -> str:
    """Stable id from the given parts, so pure operations stay repeatable."""
    return str(uuid.uuid5(_ID_NAMESPACE, ":".join(str(p) for p in parts)))
