"""
Rotation Engine — Post-match replacement of the losing team.

The loser's unlocked players go to the back of the queue, the head of the
queue comes on court together with the loser's locked players, and any gap
is filled by taking unlocked players from later queue teams.

Every function here is pure: inputs are copied, never mutated, and ids
created along the way are derived from the inputs, so the same inputs
always give the same report.
"""

from __future__ import annotations

import logging
from typing import Optional

from volley.config import settings
from volley.engine.balancing import average_skill, total_skill
from volley.models.match import RotationMode
from volley.models.roster import Player, RotationReport, Team, derive_id

logger = logging.getLogger(__name__)


class _RotationDraft:
    """Working copies shared by both gap-filling strategies."""

    def __init__(self, loser: Team, queue: list[Team], capacity: int):
        self.capacity = capacity
        self.outgoing = loser.model_copy(deep=True)
        self.queue = [team.model_copy(deep=True) for team in queue]

        # 1. Loser splits into anchors and leavers
        self.retained = [p.model_copy() for p in loser.players if p.is_fixed]
        leavers = [p.model_copy() for p in loser.players if not p.is_fixed]
        if leavers:
            self.queue.append(Team(
                id=derive_id("leavers", loser.id, *(p.id for p in leavers)),
                name=loser.name,
                color=loser.color,
                players=leavers,
            ))

        # 2. Head of the queue comes on, merged with the anchors
        base = self.queue.pop(0)
        players = [*base.players, *(p.model_copy() for p in self.retained)]

        # 3. Eject down to capacity, unlocked players first
        overflow: list[Player] = []
        while len(players) > capacity:
            idx = next((i for i, p in enumerate(players) if not p.is_fixed), 0)
            overflow.append(players.pop(idx))
        if overflow:
            self.queue.append(Team(
                id=derive_id("overflow", base.id, *(p.id for p in overflow)),
                name="Overflow",
                color=base.color,
                players=overflow,
            ))

        self.incoming = Team(
            id=derive_id("incoming", base.id, loser.id),
            name=base.name,
            color=base.color,
            players=players,
        )
        self.stolen: list[Player] = []

    @property
    def needs_players(self) -> bool:
        return len(self.incoming.players) < self.capacity

    def steal(self, team_index: int, player_index: int) -> None:
        player = self.queue[team_index].players.pop(player_index)
        self.incoming.players.append(player)
        self.stolen.append(player.model_copy())

    def report(self) -> RotationReport:
        return RotationReport(
            outgoing_team=self.outgoing,
            incoming_team=self.incoming,
            retained_players=self.retained,
            stolen_players=self.stolen,
            queue_after_rotation=[team for team in self.queue if team.players],
        )


def get_standard_rotation_result(
    winner: Team,
    loser: Team,
    queue: list[Team],
    capacity: Optional[int] = None,
) -> Optional[RotationReport]:
    """
    Fill the incoming team by scanning queue teams in order and, within
    each, taking the last unlocked player first.

    Returns None when the queue is empty.
    """
    if not queue:
        return None
    draft = _RotationDraft(loser, queue, capacity or settings.PLAYERS_PER_TEAM)

    while draft.needs_players:
        candidate = _last_unlocked(draft.queue)
        if candidate is None:
            break
        draft.steal(*candidate)

    return _finish(draft, RotationMode.STANDARD)


def get_balanced_rotation_result(
    winner: Team,
    loser: Team,
    queue: list[Team],
    capacity: Optional[int] = None,
) -> Optional[RotationReport]:
    """
    Fill the incoming team one player at a time, each time choosing the
    unlocked queue player that brings the incoming average skill closest
    to the winning team's average.

    The target average is taken once, before any player moves.
    Returns None when the queue is empty.
    """
    if not queue:
        return None
    draft = _RotationDraft(loser, queue, capacity or settings.PLAYERS_PER_TEAM)
    target_avg = average_skill(winner.players)

    while draft.needs_players:
        current_sum = total_skill(draft.incoming.players)
        next_count = len(draft.incoming.players) + 1
        best: Optional[tuple[float, int, int]] = None

        for t_idx, team in enumerate(draft.queue):
            for p_idx, player in enumerate(team.players):
                if player.is_fixed:
                    continue
                delta = abs((current_sum + player.skill_level) / next_count - target_avg)
                if best is None or delta < best[0]:
                    best = (delta, t_idx, p_idx)

        if best is None:
            break
        draft.steal(best[1], best[2])

    return _finish(draft, RotationMode.BALANCED)


def get_rotation_preview(
    winner: Team,
    loser: Team,
    queue: list[Team],
    mode: RotationMode = RotationMode.STANDARD,
    capacity: Optional[int] = None,
) -> Optional[RotationReport]:
    """Dispatch to the rotation strategy for the given mode."""
    if mode == RotationMode.BALANCED:
        return get_balanced_rotation_result(winner, loser, queue, capacity)
    return get_standard_rotation_result(winner, loser, queue, capacity)


def _last_unlocked(queue: list[Team]) -> Optional[tuple[int, int]]:
    for t_idx, team in enumerate(queue):
        for p_idx in range(len(team.players) - 1, -1, -1):
            if not team.players[p_idx].is_fixed:
                return t_idx, p_idx
    return None


def _finish(draft: _RotationDraft, mode: RotationMode) -> RotationReport:
    report = draft.report()
    logger.debug(
        "%s rotation: %s out, %s in (%d players, %d stolen), %d teams waiting",
        mode.value, report.outgoing_team.name, report.incoming_team.name,
        len(report.incoming_team.players), len(report.stolen_players),
        len(report.queue_after_rotation),
    )
    return report
