"""
Volleyball Scoring Engine — State machine for match scoring and rotation.

Implements:
- Rally-point scoring with configurable set length and 2-point lead
- Deciding-set tie-break target
- Sudden death (first to 3, must be ahead) entered at target-1 all
- Set and match completion with a one-step snapshot undo across the boundary
- Per-action undo log for points and timeouts
- Timeouts (2 per side per set) and an externally driven match clock
- Post-match rotation preview and commit
- Roster edits, kept in the same aggregate as the score

Invalid requests never raise: they leave the state untouched.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Union

from volley.engine.roster import QUEUE_TARGET, RosterManager
from volley.engine.rotation import get_rotation_preview
from volley.models.match import (
    DeuceType,
    GameConfig,
    GameStatus,
    MatchState,
    PointAction,
    RotationMode,
    SetHistory,
    TeamId,
    TimeoutAction,
)
from volley.models.roster import RosterState, RotationReport

logger = logging.getLogger(__name__)

MIN_LEAD_TO_WIN = 2
MAX_SCORE = 200
MAX_TIMEOUTS_PER_SET = 2
SUDDEN_DEATH_POINTS = 3

Listener = Callable[[MatchState], None]


class ScoringEngine:
    """
    Volleyball match state machine.

    Usage:
        engine = ScoringEngine(GameConfig(max_sets=3))
        engine.generate_teams(["Ana", "Bia", "Caio", ...])
        engine.add_point("A")
        engine.undo()
        print(engine.match.score_display)
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        roster_manager: Optional[RosterManager] = None,
    ):
        self.roster_manager = roster_manager or RosterManager()
        self.match = MatchState(config=config or GameConfig())
        self._listeners: list[Listener] = []

    @classmethod
    def from_state(cls, state: MatchState) -> ScoringEngine:
        """Rehydrate an engine around a previously saved state."""
        engine = cls(state.config)
        engine.match = state.model_copy(deep=True)
        return engine

    def subscribe(self, listener: Listener) -> None:
        """Register a callback invoked with the full state after each change."""
        self._listeners.append(listener)

    # ── Scoring ──────────────────────────────────────────────────────────────

    def add_point(self, team: Union[TeamId, str]) -> MatchState:
        """Score a rally for ``team``. Main entry point of the state machine."""
        side = _as_team(team)
        m = self.match
        if side is None or m.is_match_over:
            return m
        if m.score_of(side) + 1 > MAX_SCORE:
            logger.debug("add_point ignored: score ceiling reached for %s", side.value)
            return m

        score_a = m.score_a + (1 if side == TeamId.A else 0)
        score_b = m.score_b + (1 if side == TeamId.B else 0)
        target = self.points_to_win_set()

        entering_sudden_death = False
        if m.config.deuce_type == DeuceType.SUDDEN_DEATH_3PT and not m.in_sudden_death:
            if score_a == target - 1 and score_b == target - 1:
                score_a = score_b = 0
                entering_sudden_death = True
                logger.info("Sudden death at %d-%d in set %d", target - 1, target - 1, m.current_set)

        sudden_death = m.in_sudden_death or entering_sudden_death
        set_winner = _set_winner(score_a, score_b, target, sudden_death)

        if set_winner is None:
            m.action_log.append(PointAction(
                team=side,
                prev_score_a=m.score_a,
                prev_score_b=m.score_b,
                prev_serving_team=m.serving_team,
                prev_in_sudden_death=m.in_sudden_death,
            ))
            m.score_a, m.score_b = score_a, score_b
            m.serving_team = side
            m.in_sudden_death = sudden_death
            m.is_timer_running = True
            m.last_snapshot = None
            return self._changed()

        m.last_snapshot = None
        before = m.model_copy(deep=True)
        self._finish_set(before, set_winner, score_a, score_b)
        return self._changed()

    def subtract_point(self, team: Union[TeamId, str]) -> MatchState:
        """Manual correction. Bypasses the action log and the snapshot."""
        side = _as_team(team)
        m = self.match
        if side is None or m.is_match_over:
            return m
        new_score = m.score_of(side) - 1
        if not 0 <= new_score <= MAX_SCORE:
            return m
        if side == TeamId.A:
            m.score_a = new_score
        else:
            m.score_b = new_score
        return self._changed()

    def use_timeout(self, team: Union[TeamId, str]) -> MatchState:
        side = _as_team(team)
        m = self.match
        if side is None or m.is_match_over:
            return m
        if m.timeouts_of(side) >= MAX_TIMEOUTS_PER_SET:
            logger.debug("use_timeout ignored: %s has no timeouts left", side.value)
            return m

        m.action_log.append(TimeoutAction(
            team=side, prev_timeouts_a=m.timeouts_a, prev_timeouts_b=m.timeouts_b,
        ))
        if side == TeamId.A:
            m.timeouts_a += 1
        else:
            m.timeouts_b += 1
        m.last_snapshot = None
        return self._changed()

    def undo(self) -> MatchState:
        """
        Reverse the last action.

        A pending snapshot (set or match boundary) is restored wholesale,
        roster included. Otherwise the last logged point or timeout is
        rolled back from its stored previous values.
        """
        m = self.match
        if m.last_snapshot is not None:
            # The clock is wall time, not part of the rolled-back play
            restored = m.last_snapshot
            restored.match_duration_seconds = m.match_duration_seconds
            restored.is_timer_running = m.is_timer_running
            self.match = restored
            logger.info("Undo restored state before set %d ended", self.match.current_set)
            return self._changed()
        if m.is_match_over or not m.action_log:
            return m

        action = m.action_log.pop()
        if isinstance(action, PointAction):
            m.score_a = action.prev_score_a
            m.score_b = action.prev_score_b
            m.serving_team = action.prev_serving_team
            m.in_sudden_death = action.prev_in_sudden_death
        else:
            m.timeouts_a = action.prev_timeouts_a
            m.timeouts_b = action.prev_timeouts_b
        return self._changed()

    def reset_match(self) -> MatchState:
        """Start the match over, keeping names, rosters, queue and config."""
        self.match = self._fresh_match(self.match.config)
        return self._changed()

    def apply_settings(self, config: GameConfig, reset: bool = False) -> MatchState:
        """Replace the rules. Refused mid-match unless ``reset`` is requested."""
        if self.is_match_active() and not reset:
            logger.debug("apply_settings ignored: match in progress")
            return self.match
        if reset:
            self.match = self._fresh_match(config)
        else:
            self.match.config = config
        return self._changed()

    # ── Serve, sides & clock ─────────────────────────────────────────────────

    def set_serving_team(self, team: Optional[Union[TeamId, str]]) -> MatchState:
        side = _as_team(team) if team is not None else None
        if team is not None and side is None:
            return self.match
        self.match.serving_team = side
        return self._changed()

    def toggle_sides(self) -> MatchState:
        self.match.swapped_sides = not self.match.swapped_sides
        return self._changed()

    def start_timer(self) -> MatchState:
        if self.match.is_match_over or self.match.is_timer_running:
            return self.match
        self.match.is_timer_running = True
        return self._changed()

    def stop_timer(self) -> MatchState:
        if not self.match.is_timer_running:
            return self.match
        self.match.is_timer_running = False
        return self._changed()

    def tick(self) -> MatchState:
        """Advance the match clock by one second (driven externally)."""
        if not self.match.is_timer_running or self.match.is_match_over:
            return self.match
        self.match.match_duration_seconds += 1
        return self._changed()

    # ── Rotation ─────────────────────────────────────────────────────────────

    def get_rotation_preview(
        self,
        winner: Union[TeamId, str],
        mode: Optional[RotationMode] = None,
    ) -> Optional[RotationReport]:
        """Side-effect-free forecast of the rotation after ``winner`` wins."""
        side = _as_team(winner)
        if side is None:
            return None
        roster = self.match.roster
        winner_team, loser_team = (
            (roster.court_a, roster.court_b) if side == TeamId.A
            else (roster.court_b, roster.court_a)
        )
        return get_rotation_preview(
            winner_team, loser_team, roster.queue,
            mode or self.match.config.rotation_mode,
            self.roster_manager.capacity,
        )

    def rotate_teams(
        self,
        winner: Optional[Union[TeamId, str]] = None,
        report: Optional[RotationReport] = None,
    ) -> MatchState:
        """
        Commit a rotation and start the next match.

        ``report`` defaults to the preview computed when the match ended,
        so what was shown is exactly what gets applied. Only a finished
        match can rotate, and a report must describe the loser's court.
        """
        m = self.match
        if not m.is_match_over:
            logger.debug("rotate_teams ignored: match still in progress")
            return m
        side = _as_team(winner) if winner is not None else m.match_winner
        if side is None:
            logger.debug("rotate_teams ignored: no winner")
            return m

        if report is None and side == m.match_winner:
            report = m.rotation_report
        report = report or self.get_rotation_preview(side)
        if report is None:
            logger.warning("Rotation produced no incoming team: the queue is empty")
            return m
        if report.outgoing_team.id != side.opponent.value:
            logger.debug(
                "rotate_teams ignored: report replaces court %s but %s lost",
                report.outgoing_team.id, side.opponent.value,
            )
            return m

        roster = self.roster_manager.apply_rotation(m.roster, side, report)
        self.match = self._fresh_match(m.config, roster)
        logger.info(
            "Rotation committed: %s replaced %s", report.incoming_team.name, report.outgoing_team.name,
        )
        return self._changed()

    # ── Roster edits ─────────────────────────────────────────────────────────

    def generate_teams(self, names: list[str], skills: Optional[dict[str, int]] = None) -> MatchState:
        return self._edit_roster(self.roster_manager.generate_teams, names, skills)

    def balance_teams(self, mode: Optional[RotationMode] = None) -> MatchState:
        return self._edit_roster(
            self.roster_manager.balance_teams, mode or self.match.config.rotation_mode,
        )

    def move_player(self, player_id: str, from_id: str, to_id: str) -> MatchState:
        return self._edit_roster(self.roster_manager.move_player, player_id, from_id, to_id)

    def toggle_player_fixed(self, player_id: str) -> MatchState:
        return self._edit_roster(self.roster_manager.toggle_player_fixed, player_id)

    def add_player(self, name: str, target: str = QUEUE_TARGET, skill_level: Optional[int] = None) -> MatchState:
        return self._edit_roster(self.roster_manager.add_player, name, target, skill_level)

    def remove_player(self, player_id: str) -> MatchState:
        return self._edit_roster(self.roster_manager.remove_player, player_id)

    def undo_remove_player(self) -> MatchState:
        return self._edit_roster(self.roster_manager.undo_remove_player)

    def commit_deletions(self) -> MatchState:
        return self._edit_roster(self.roster_manager.commit_deletions)

    def update_team_name(self, team_id: str, name: str) -> MatchState:
        return self._edit_roster(self.roster_manager.update_team_name, team_id, name)

    def update_player_name(self, player_id: str, name: str) -> MatchState:
        return self._edit_roster(self.roster_manager.update_player_name, player_id, name)

    def update_player_skill(self, player_id: str, skill_level: int) -> MatchState:
        return self._edit_roster(self.roster_manager.update_player_skill, player_id, skill_level)

    # ── Derived state ────────────────────────────────────────────────────────

    def is_tie_break(self) -> bool:
        cfg = self.match.config
        return cfg.has_tie_break and self.match.current_set == cfg.max_sets

    def points_to_win_set(self) -> int:
        cfg = self.match.config
        return cfg.tie_break_points if self.is_tie_break() else cfg.points_per_set

    def is_match_active(self) -> bool:
        m = self.match
        return m.score_a > 0 or m.score_b > 0 or m.sets_a > 0 or m.sets_b > 0 or m.current_set > 1

    def can_undo(self) -> bool:
        m = self.match
        return m.last_snapshot is not None or (not m.is_match_over and bool(m.action_log))

    def get_status(self) -> GameStatus:
        """Set point, match point, deuce and related flags for display."""
        m = self.match
        sets_needed = m.config.sets_to_win
        target = SUDDEN_DEATH_POINTS if m.in_sudden_death else self.points_to_win_set()
        lead_needed = 1 if m.in_sudden_death else MIN_LEAD_TO_WIN

        def set_point(own: int, other: int) -> bool:
            if m.is_match_over:
                return False
            return own + 1 >= target and own + 1 - other >= lead_needed

        sp_a = set_point(m.score_a, m.score_b)
        sp_b = set_point(m.score_b, m.score_a)
        return GameStatus(
            is_tie_break=self.is_tie_break(),
            points_to_win_set=self.points_to_win_set(),
            sets_needed_to_win=sets_needed,
            is_set_point_a=sp_a,
            is_set_point_b=sp_b,
            is_match_point_a=sp_a and m.sets_a == sets_needed - 1,
            is_match_point_b=sp_b and m.sets_b == sets_needed - 1,
            is_deuce=(
                not m.in_sudden_death
                and m.score_a == m.score_b
                and m.score_a >= self.points_to_win_set() - 1
            ),
            is_sudden_death=m.in_sudden_death,
            is_match_active=self.is_match_active(),
            can_undo=self.can_undo(),
        )

    # ── Internals ────────────────────────────────────────────────────────────

    def _finish_set(self, before: MatchState, winner: TeamId, score_a: int, score_b: int) -> None:
        m = self.match
        m.last_snapshot = before
        m.history.append(SetHistory(
            set_number=m.current_set, score_a=score_a, score_b=score_b, winner=winner,
        ))
        if winner == TeamId.A:
            m.sets_a += 1
        else:
            m.sets_b += 1
        logger.info("Set %d to %s (%d-%d)", m.current_set, winner.value, score_a, score_b)

        if m.sets_of(winner) == m.config.sets_to_win:
            m.score_a, m.score_b = score_a, score_b
            m.is_match_over = True
            m.match_winner = winner
            m.is_timer_running = False
            m.in_sudden_death = False
            m.serving_team = None
            m.rotation_report = self.get_rotation_preview(winner)
            logger.info("Match won by %s (%d-%d in sets)", winner.value, m.sets_a, m.sets_b)
            return

        m.current_set += 1
        m.is_timer_running = True
        m.score_a = m.score_b = 0
        m.timeouts_a = m.timeouts_b = 0
        m.serving_team = None
        m.in_sudden_death = False
        m.action_log = []

    def _fresh_match(self, config: GameConfig, roster: Optional[RosterState] = None) -> MatchState:
        roster = roster or self.match.roster
        return MatchState(
            config=config,
            team_a_name=roster.court_a.name,
            team_b_name=roster.court_b.name,
            roster=roster,
        )

    def _edit_roster(self, operation: Callable[..., RosterState], *args) -> MatchState:
        roster = self.match.roster
        updated = operation(roster, *args)
        if updated is roster:
            return self.match
        m = self.match
        m.roster = updated
        m.last_snapshot = None
        if m.is_match_over:
            m.rotation_report = self.get_rotation_preview(m.match_winner)
        self._sync_names()
        return self._changed()

    def _sync_names(self) -> None:
        m = self.match
        m.team_a_name = m.roster.court_a.name
        m.team_b_name = m.roster.court_b.name

    def _changed(self) -> MatchState:
        for listener in self._listeners:
            listener(self.match)
        return self.match


def _as_team(team: Union[TeamId, str, None]) -> Optional[TeamId]:
    try:
        return TeamId(team)
    except ValueError:
        return None


def _set_winner(score_a: int, score_b: int, target: int, sudden_death: bool) -> Optional[TeamId]:
    if sudden_death:
        if score_a >= SUDDEN_DEATH_POINTS and score_a > score_b:
            return TeamId.A
        if score_b >= SUDDEN_DEATH_POINTS and score_b > score_a:
            return TeamId.B
        return None
    if score_a >= target and score_a - score_b >= MIN_LEAD_TO_WIN:
        return TeamId.A
    if score_b >= target and score_b - score_a >= MIN_LEAD_TO_WIN:
        return TeamId.B
    return None
