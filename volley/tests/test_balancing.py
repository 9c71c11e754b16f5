"""
Tests for the Balancing Engine — standard restore and greedy skill draft.
"""

from volley.engine.balancing import balance_teams_snake, distribute_standard, total_skill
from volley.models.roster import Player, Team


def make_players(skills, prefix="p", start=0, fixed=()):
    """Players named ``{prefix}{i}`` with the given skills; ``fixed`` holds indexes to lock."""
    return [
        Player(
            id=f"{prefix}{start + i}",
            name=f"{prefix.upper()}{start + i}",
            skill_level=skill,
            original_index=start + i,
            is_fixed=i in fixed,
        )
        for i, skill in enumerate(skills)
    ]


def make_team(team_id, players, name=None):
    return Team(id=team_id, name=name or f"Team {team_id}", players=players)


def flatten(court_a, court_b, queue):
    return [*court_a.players, *court_b.players, *(p for t in queue for p in t.players)]


class TestDistributeStandard:

    def test_restores_seed_order(self):
        players = make_players([3] * 14)
        shuffled = list(reversed(players))
        a, b, queue = distribute_standard(
            shuffled, make_team("A", shuffled[:6]), make_team("B", shuffled[6:12]),
            [make_team("q1", shuffled[12:])],
        )
        assert [p.original_index for p in a.players] == list(range(6))
        assert [p.original_index for p in b.players] == list(range(6, 12))
        assert [p.original_index for p in queue[0].players] == [12, 13]
        assert queue[0].id == "q1"

    def test_anchor_stays_put(self):
        players = make_players([3] * 12, fixed={0})
        # p0 is locked on court B
        court_a = make_team("A", players[1:7])
        court_b = make_team("B", [players[0], *players[7:12]])
        a, b, queue = distribute_standard(players, court_a, court_b, [])
        assert b.players[0].id == "p0"
        assert "p0" not in [p.id for p in a.players]
        assert len(a.players) == 6 and len(b.players) == 6
        assert queue == []

    def test_overflow_spills_into_new_queue_teams(self):
        players = make_players([3] * 20)
        a, b, queue = distribute_standard(players, make_team("A", []), make_team("B", []), [])
        assert [len(t.players) for t in queue] == [6, 2]
        assert len(flatten(a, b, queue)) == 20

    def test_conserves_count_with_anchors_in_queue(self):
        players = make_players([2, 4, 1, 5, 3, 3, 2, 4, 1], fixed={8})
        court_a = make_team("A", players[:4])
        court_b = make_team("B", players[4:8])
        queue = [make_team("q1", [players[8]])]
        a, b, new_queue = distribute_standard(players, court_a, court_b, queue)
        result = flatten(a, b, new_queue)
        assert len(result) == len(players)
        assert new_queue[0].players[0].id == "p8"

    def test_inputs_not_mutated(self):
        players = make_players([3] * 8)
        court_a = make_team("A", players[:2])
        distribute_standard(players, court_a, make_team("B", []), [])
        assert len(court_a.players) == 2


class TestBalanceTeamsSnake:

    def test_eight_players_two_buckets_of_four(self):
        players = make_players([5, 4, 3, 3, 2, 2, 1, 1])
        a, b, queue = balance_teams_snake(
            players, make_team("A", []), make_team("B", []), [], capacity=4,
        )
        assert len(a.players) == 4 and len(b.players) == 4
        assert abs(total_skill(a.players) - total_skill(b.players)) <= 1
        assert queue == []

    def test_feeds_weakest_bucket_around_locked_star(self):
        players = make_players([5, 5, 4, 3, 2, 1], fixed={0})
        court_a = make_team("A", [players[0]])
        court_b = make_team("B", players[1:])
        a, b, _ = balance_teams_snake(players, court_a, court_b, [], capacity=3)
        assert a.players[0].id == "p0"
        # A opens with 5 locked, so the next 5 goes to B
        assert b.players[0].id == "p1"
        assert abs(total_skill(a.players) - total_skill(b.players)) <= 2

    def test_balances_across_queue_teams(self):
        players = make_players([5, 5, 5, 1, 1, 1, 3, 3, 3, 3, 3, 3, 5, 1, 3, 3, 1, 5])
        a, b, queue = balance_teams_snake(
            players, make_team("A", []), make_team("B", []), [make_team("q1", [])],
        )
        sums = [total_skill(t.players) for t in (a, b, *queue)]
        assert max(sums) - min(sums) <= 2
        assert len(flatten(a, b, queue)) == 18

    def test_never_moves_locked_players(self):
        players = make_players([1, 5, 2, 4, 3, 3, 5, 5, 1, 1, 2, 2, 4], fixed={0, 6, 12})
        court_a = make_team("A", players[:6])
        court_b = make_team("B", players[6:12])
        queue = [make_team("q1", [players[12]])]
        a, b, new_queue = balance_teams_snake(players, court_a, court_b, queue)
        assert "p0" in [p.id for p in a.players]
        assert "p6" in [p.id for p in b.players]
        assert "p12" in [p.id for p in new_queue[0].players]
        assert len(flatten(a, b, new_queue)) == 13

    def test_new_queue_team_ids_are_stable(self):
        players = make_players([3] * 15)
        first = balance_teams_snake(players, make_team("A", []), make_team("B", []), [])
        second = balance_teams_snake(players, make_team("A", []), make_team("B", []), [])
        assert [t.id for t in first[2]] == [t.id for t in second[2]]

    def test_team_identity_preserved(self):
        players = make_players([3] * 4)
        court_a = Team(id="A", name="Sharks", color="rose", players=players[:2])
        a, _, _ = balance_teams_snake(players, court_a, make_team("B", players[2:]), [])
        assert (a.id, a.name, a.color) == ("A", "Sharks", "rose")
