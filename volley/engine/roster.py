"""
Roster Manager — Manual roster edits, balancing dispatch and rotation commit.

Every operation takes a RosterState and returns a new one; the input is
never mutated. A rejected request returns the very same instance, which
lets callers tell a no-op from a change with an identity check.
"""

from __future__ import annotations

import logging
from typing import Optional

from volley.config import settings
from volley.engine.balancing import balance_teams_snake, distribute_standard
from volley.engine.names import sanitize_input
from volley.models.match import RotationMode, TeamId
from volley.models.roster import (
    DeletedPlayerRecord,
    Player,
    RosterState,
    RotationReport,
    Team,
)

logger = logging.getLogger(__name__)

QUEUE_TARGET = "Queue"
COURT_IDS = (TeamId.A.value, TeamId.B.value)


class RosterManager:
    """
    Copy-on-write operations over a RosterState.

    Usage:
        manager = RosterManager()
        roster = manager.generate_teams(RosterState(), ["Ana", "Bia", ...])
        roster = manager.balance_teams(roster, RotationMode.BALANCED)
    """

    def __init__(self, capacity: Optional[int] = None):
        self.capacity = capacity or settings.PLAYERS_PER_TEAM

    # ── Team generation & balancing ──────────────────────────────────────────

    def generate_teams(
        self,
        roster: RosterState,
        names: list[str],
        skills: Optional[dict[str, int]] = None,
    ) -> RosterState:
        """Seed courts and queue from a list of names, in order."""
        skills = skills or {}
        clean = [sanitize_input(n) for n in names]
        clean = [n for n in clean if n]
        if not clean:
            logger.debug("generate_teams ignored: no valid names")
            return roster

        players = [
            Player(
                name=name,
                skill_level=_clamp_skill(skills.get(name, settings.DEFAULT_SKILL_LEVEL)),
                original_index=idx,
            )
            for idx, name in enumerate(clean)
        ]

        cap = self.capacity
        new = roster.model_copy(deep=True)
        new.court_a = new.court_a.model_copy(update={"name": "Team A", "players": players[:cap]})
        new.court_b = new.court_b.model_copy(update={"name": "Team B", "players": players[cap:cap * 2]})

        new.queue = []
        remaining = players[cap * 2:]
        for start in range(0, len(remaining), cap):
            self._append_queue_team(new, remaining[start:start + cap])

        new.last_report = None
        new.deleted = []
        logger.info(
            "Generated teams for %d players (%d waiting teams)", len(players), len(new.queue),
        )
        return new

    def balance_teams(self, roster: RosterState, mode: RotationMode) -> RosterState:
        """Redistribute every player with the strategy for ``mode``."""
        strategy = balance_teams_snake if mode == RotationMode.BALANCED else distribute_standard
        court_a, court_b, queue = strategy(
            roster.all_players, roster.court_a, roster.court_b, roster.queue, self.capacity,
        )
        new = roster.model_copy(deep=True)
        new.court_a, new.court_b, new.queue = court_a, court_b, queue
        return new

    # ── Manual moves ─────────────────────────────────────────────────────────

    def move_player(
        self,
        roster: RosterState,
        player_id: str,
        from_id: str,
        to_id: str,
    ) -> RosterState:
        """
        Move one player between teams.

        ``to_id`` is 'A', 'B', a queue team id, or 'Queue' for the back of
        the queue. Locked players cannot leave a court; a full target or an
        unknown team rejects the move.
        """
        if from_id == to_id:
            return roster

        new = roster.model_copy(deep=True)
        source = new.find_team(from_id)
        target = None if to_id == QUEUE_TARGET else new.find_team(to_id)
        if source is None or (to_id != QUEUE_TARGET and target is None):
            logger.debug("move_player ignored: unknown team %s -> %s", from_id, to_id)
            return roster
        if target is not None and target.size >= self.capacity:
            logger.debug("move_player ignored: team %s is full", to_id)
            return roster

        player = next((p for p in source.players if p.id == player_id), None)
        if player is None:
            return roster
        if player.is_fixed and from_id in COURT_IDS:
            logger.debug("move_player ignored: %s is locked on court %s", player.name, from_id)
            return roster

        source.players = [p for p in source.players if p.id != player_id]
        self._drop_empty_queue_teams(new)

        if target is not None:
            target.players.append(player)
            landed = target.id
        else:
            landed = self._place_in_queue(new, player)

        player.fixed_side = landed if player.is_fixed else None
        return new

    def toggle_player_fixed(self, roster: RosterState, player_id: str) -> RosterState:
        new = roster.model_copy(deep=True)
        team, player = new.find_player(player_id)
        if player is None:
            return roster
        player.is_fixed = not player.is_fixed
        player.fixed_side = team.id if player.is_fixed else None
        return new

    # ── Add / remove ─────────────────────────────────────────────────────────

    def add_player(
        self,
        roster: RosterState,
        name: str,
        target: str = QUEUE_TARGET,
        skill_level: Optional[int] = None,
    ) -> RosterState:
        safe_name = sanitize_input(name)
        if not safe_name:
            return roster

        new = roster.model_copy(deep=True)
        next_index = max((p.original_index for p in new.all_players), default=-1) + 1
        player = Player(
            name=safe_name,
            skill_level=_clamp_skill(skill_level or settings.DEFAULT_SKILL_LEVEL),
            original_index=next_index,
        )

        if target == QUEUE_TARGET:
            self._place_in_queue(new, player)
            return new

        team = new.find_team(target)
        if team is None or team.size >= self.capacity:
            logger.debug("add_player ignored: team %s unavailable", target)
            return roster
        team.players.append(player)
        return new

    def remove_player(self, roster: RosterState, player_id: str) -> RosterState:
        """Remove a player, remembering where it came from for undo."""
        team, player = roster.find_player(player_id)
        if player is None:
            return roster
        if player.is_fixed and team.id in COURT_IDS:
            logger.debug("remove_player ignored: %s is locked on court", player.name)
            return roster

        new = roster.model_copy(deep=True)
        new.deleted.append(DeletedPlayerRecord(player=player.model_copy(), origin_id=team.id))
        owner = new.find_team(team.id)
        owner.players = [p for p in owner.players if p.id != player_id]
        self._drop_empty_queue_teams(new)
        return new

    def undo_remove_player(self, roster: RosterState) -> RosterState:
        """Restore the most recently removed player to its team, or the queue."""
        if not roster.deleted:
            return roster

        new = roster.model_copy(deep=True)
        record = new.deleted.pop()
        origin = new.find_team(record.origin_id)
        if origin is not None and origin.size < self.capacity:
            origin.players.append(record.player)
        else:
            self._place_in_queue(new, record.player)
        return new

    def commit_deletions(self, roster: RosterState) -> RosterState:
        if not roster.deleted:
            return roster
        return roster.model_copy(update={"deleted": []})

    # ── Renames ──────────────────────────────────────────────────────────────

    def update_team_name(self, roster: RosterState, team_id: str, name: str) -> RosterState:
        safe_name = sanitize_input(name)
        if not safe_name or roster.find_team(team_id) is None:
            return roster
        new = roster.model_copy(deep=True)
        new.find_team(team_id).name = safe_name
        return new

    def update_player_name(self, roster: RosterState, player_id: str, name: str) -> RosterState:
        safe_name = sanitize_input(name)
        if not safe_name:
            return roster
        new = roster.model_copy(deep=True)
        _, player = new.find_player(player_id)
        if player is None:
            return roster
        player.name = safe_name
        return new

    def update_player_skill(self, roster: RosterState, player_id: str, skill_level: int) -> RosterState:
        if not 1 <= skill_level <= 5:
            return roster
        new = roster.model_copy(deep=True)
        _, player = new.find_player(player_id)
        if player is None:
            return roster
        player.skill_level = skill_level
        return new

    # ── Rotation commit ──────────────────────────────────────────────────────

    def apply_rotation(
        self,
        roster: RosterState,
        winner: TeamId,
        report: RotationReport,
    ) -> RosterState:
        """Replay a previewed rotation: the incoming team takes the loser's court."""
        loser_side = winner.opponent.value
        incoming = report.incoming_team.model_copy(deep=True)
        incoming.id = loser_side
        for player in incoming.players:
            if player.is_fixed:
                player.fixed_side = loser_side

        new = roster.model_copy(deep=True)
        if loser_side == TeamId.A.value:
            new.court_a = incoming
        else:
            new.court_b = incoming
        new.queue = [team.model_copy(deep=True) for team in report.queue_after_rotation]
        new.last_report = report.model_copy(deep=True)
        return new

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _append_queue_team(self, roster: RosterState, players: list[Player]) -> Team:
        colors = settings.TEAM_COLORS
        number = len(roster.queue) + 1
        team = Team(
            name=f"{settings.QUEUE_TEAM_PREFIX} {number}",
            color=colors[(number + 1) % len(colors)],
            players=players,
        )
        roster.queue.append(team)
        return team

    def _place_in_queue(self, roster: RosterState, player: Player) -> str:
        """Append to the last queue team if it has room, else open a new one."""
        if roster.queue and roster.queue[-1].size < self.capacity:
            roster.queue[-1].players.append(player)
            return roster.queue[-1].id
        return self._append_queue_team(roster, [player]).id

    @staticmethod
    def _drop_empty_queue_teams(roster: RosterState) -> None:
        roster.queue = [team for team in roster.queue if team.players]


def _clamp_skill(value: int) -> int:
    return max(1, min(5, int(value)))
