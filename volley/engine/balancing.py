"""
Balancing Engine — Partitions a flat player pool into two courts plus queue.

Two strategies:
- Standard: restores seed order, filling buckets linearly.
- Balanced: greedy snake draft, always feeding the weakest bucket.

Both keep locked (fixed) players in the bucket they already occupy and
conserve the total number of players.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from volley.config import settings
from volley.models.roster import Player, Team, derive_id

logger = logging.getLogger(__name__)

BalanceResult = tuple[Team, Team, list[Team]]


def split_anchors(teams: list[Team]) -> tuple[list[list[Player]], set[str]]:
    """Per-team lists of fixed players, plus the set of their ids."""
    anchors = [[p.model_copy() for p in team.players if p.is_fixed] for team in teams]
    fixed_ids = {p.id for group in anchors for p in group}
    return anchors, fixed_ids


def total_skill(players: list[Player]) -> int:
    return sum(p.skill_level for p in players)


def average_skill(players: list[Player]) -> float:
    if not players:
        return 0.0
    return total_skill(players) / len(players)


def distribute_standard(
    all_players: list[Player],
    court_a: Team,
    court_b: Team,
    queue: list[Team],
    capacity: Optional[int] = None,
) -> BalanceResult:
    """Fill court A, court B, then queue teams in seed order up to capacity."""
    capacity = capacity or settings.PLAYERS_PER_TEAM
    structure = [court_a, court_b, *queue]
    anchors, fixed_ids = split_anchors(structure)

    pool = sorted(
        (p.model_copy() for p in all_players if p.id not in fixed_ids),
        key=lambda p: p.original_index,
    )

    last_anchored = max((i for i, group in enumerate(anchors) if group), default=-1)
    buckets = [list(anchors[i]) for i in range(max(2, last_anchored + 1))]

    idx = 0
    for player in pool:
        while idx < len(buckets) and len(buckets[idx]) >= capacity:
            idx += 1
        if idx == len(buckets):
            buckets.append([])
        buckets[idx].append(player)

    return _rebuild(buckets, court_a, court_b, queue)


def balance_teams_snake(
    all_players: list[Player],
    court_a: Team,
    court_b: Team,
    queue: list[Team],
    capacity: Optional[int] = None,
) -> BalanceResult:
    """
    Greedy skill draft across both courts and every queue team.

    Players are taken strongest first and each goes to the non-full bucket
    with the lowest total skill (ties go to the earlier bucket).
    """
    capacity = capacity or settings.PLAYERS_PER_TEAM
    structure = [court_a, court_b, *queue]
    anchors, fixed_ids = split_anchors(structure)

    pool = sorted(
        (p.model_copy() for p in all_players if p.id not in fixed_ids),
        key=lambda p: (-p.skill_level, p.original_index),
    )

    total = len(pool) + len(fixed_ids)
    bucket_count = max(2, math.ceil(total / capacity), len(structure))
    buckets = [list(anchors[i]) if i < len(anchors) else [] for i in range(bucket_count)]

    for player in pool:
        open_buckets = [i for i, bucket in enumerate(buckets) if len(bucket) < capacity]
        if not open_buckets:
            buckets.append([])
            open_buckets = [len(buckets) - 1]
        target = min(open_buckets, key=lambda i: (total_skill(buckets[i]), i))
        buckets[target].append(player)

    logger.debug(
        "Balanced %d players into %d buckets (skill sums %s)",
        total, len(buckets), [total_skill(b) for b in buckets],
    )
    return _rebuild(buckets, court_a, court_b, queue)


def _rebuild(
    buckets: list[list[Player]],
    court_a: Team,
    court_b: Team,
    queue: list[Team],
) -> BalanceResult:
    """Map buckets back onto team identities; empty queue buckets are dropped."""
    new_a = court_a.model_copy(update={"players": buckets[0]})
    new_b = court_b.model_copy(update={"players": buckets[1]})

    colors = settings.TEAM_COLORS
    new_queue: list[Team] = []
    for i, bucket in enumerate(buckets[2:], start=2):
        if not bucket:
            continue
        if i - 2 < len(queue):
            new_queue.append(queue[i - 2].model_copy(update={"players": bucket}))
        else:
            new_queue.append(Team(
                id=derive_id("bucket", i, bucket[0].id),
                name=f"Team {i + 1}",
                color=colors[i % len(colors)],
                players=bucket,
            ))
    return new_a, new_b, new_queue
