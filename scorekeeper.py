# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Deterministic inning scorekeeper.

Applies one resolved plate appearance to a :class:`GameState` and returns
the next state, enforcing the scoring rules:

1. Walk-off clamping (home runs credit every run, anything else stops at
   the winning run).
2. RBI attribution.
3. Earned / unearned classification.
4. Score, outs, bases and lineup update.
5. Box score update.
6. Walk-off termination (left on base is always 0).
7. Half-inning transition, skip-bottom-9th and end of game.
8. Extra innings, bounded by the inning safety ceiling.

The scorekeeper makes no random decisions. Everything stochastic happens
upstream in whatever produces the :class:`PlateAppearanceResolution`.

Earned runs use a deliberately light policy: if any runner's advance on the
play was error-assisted, every run on that play is unearned, including
runners who would have scored anyway. Official scoring reconstructs the
inning without the error; that reconstruction is not attempted here.
"""

from __future__ import annotations

import copy
import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict

from box_score import BoxScore
from config import (
    DEFAULT_PITCHER_ID,
    LINEUP_SIZE,
    MAX_INNINGS,
    OUTS_PER_HALF,
    REGULATION_INNINGS,
)
from line_score import LineScore
from models import (
    BaseState,
    GameState,
    Half,
    OutcomeType,
    PlateAppearanceResolution,
    Team,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ScorekeeperError(Exception):
    """Raised when the scorekeeper is asked to do something that breaks a game invariant."""

    def __init__(self, message: str, state: GameState | None = None):
        self.state = state
        super().__init__(message)


class GameAlreadyFinalError(ScorekeeperError):
    """Raised when a plate appearance is applied to a finished game."""


class InningLimitExceededError(ScorekeeperError):
    """Raised when a game runs past the inning safety ceiling."""


# ---------------------------------------------------------------------------
# Result of one plate appearance
# ---------------------------------------------------------------------------

class ApplyResult(BaseModel):
    """The next state plus the deltas already written to the ledgers."""
    model_config = ConfigDict(frozen=True)

    state_before: GameState
    state_after: GameState
    batter_lineup_index: int
    runs_credited: int
    rbi: int
    earned_runs: int
    unearned_runs: int
    outs_after: int
    is_walkoff: bool = False
    half_ended: bool = False
    left_on_base: Optional[int] = None
    lob_degraded: bool = False

    @property
    def is_final(self) -> bool:
        return self.state_after.is_final


# ---------------------------------------------------------------------------
# Scoring rules
# ---------------------------------------------------------------------------

def runs_needed_for_walkoff(state: GameState) -> int | None:
    """Runs that would end the game on this play, or None if a walk-off is impossible."""
    if not state.is_walkoff_situation():
        return None
    return state.defense_score - state.offense_score + 1


def clamp_runs(state: GameState, resolution: PlateAppearanceResolution) -> tuple[int, bool]:
    """Return ``(credited_runs, walkoff)``.

    A home run is a dead ball: every runner and the batter complete the
    circuit, so all runs count. On any other play the game ends the moment
    the winning run touches the plate.
    """
    needed = runs_needed_for_walkoff(state)
    runs = resolution.runs_scored
    if needed is None or runs < needed:
        return runs, False
    if resolution.outcome is OutcomeType.HOME_RUN:
        return runs, True
    return needed, True


def compute_rbi(state: GameState, resolution: PlateAppearanceResolution, credited_runs: int) -> int:
    """RBI for the batter. The first matching rule wins."""
    outcome = resolution.outcome
    if outcome is OutcomeType.REACH_ON_ERROR:
        return 0
    if outcome.is_free_pass and state.bases.is_loaded:
        return 1
    if resolution.is_sac_fly:
        return 1
    return credited_runs


def classify_runs(resolution: PlateAppearanceResolution, credited_runs: int) -> tuple[int, int]:
    """Return ``(earned, unearned)`` for the runs credited on this play."""
    if resolution.outcome is OutcomeType.REACH_ON_ERROR:
        return 0, credited_runs
    if resolution.had_error and resolution.any_advance_on_error:
        return 0, credited_runs
    return credited_runs, 0


def _score_changes(state: GameState, runs: int, earned: int, unearned: int) -> dict:
    if state.offense is Team.AWAY:
        return {
            "away_score": state.away_score + runs,
            "away_earned_runs": state.away_earned_runs + earned,
            "away_unearned_runs": state.away_unearned_runs + unearned,
            "away_lineup_index": (state.away_lineup_index + 1) % LINEUP_SIZE,
        }
    return {
        "home_score": state.home_score + runs,
        "home_earned_runs": state.home_earned_runs + earned,
        "home_unearned_runs": state.home_unearned_runs + unearned,
        "home_lineup_index": (state.home_lineup_index + 1) % LINEUP_SIZE,
    }


# ---------------------------------------------------------------------------
# Scorekeeper
# ---------------------------------------------------------------------------

class InningScorekeeper:
    """Owns the line score and box score for exactly one game.

    :meth:`apply` is the only writer of both ledgers. The ``line_score`` and
    ``box_score`` properties hand out copies, so readers cannot alter them.
    """

    def __init__(self) -> None:
        self._line_score = LineScore()
        self._box_score = BoxScore()
        self._current_half_runs = 0
        self._pitchers: dict[Team, int] = {
            Team.AWAY: DEFAULT_PITCHER_ID,
            Team.HOME: DEFAULT_PITCHER_ID,
        }
        self.degraded_lob_count = 0

    # -- read access ---------------------------------------------------------

    @property
    def line_score(self) -> LineScore:
        return copy.deepcopy(self._line_score)

    @property
    def box_score(self) -> BoxScore:
        return copy.deepcopy(self._box_score)

    @property
    def away_lob(self) -> list[int]:
        return self._line_score.lob(Team.AWAY)

    @property
    def home_lob(self) -> list[int]:
        return self._line_score.lob(Team.HOME)

    @property
    def away_total_lob(self) -> int:
        return self._line_score.total_lob(Team.AWAY)

    @property
    def home_total_lob(self) -> int:
        return self._line_score.total_lob(Team.HOME)

    @property
    def current_half_runs(self) -> int:
        return self._current_half_runs

    def pitcher_of_record(self, team: Team) -> int:
        return self._pitchers[team]

    def set_pitcher(self, team: Team, pitcher_id: int) -> None:
        """Make *pitcher_id* the pitcher of record for *team* while it is in the field."""
        self._pitchers[team] = pitcher_id

    # -- transition ----------------------------------------------------------

    def apply(self, state: GameState, resolution: PlateAppearanceResolution) -> ApplyResult:
        """Apply one plate appearance and return the next state.

        The next batter starts a fresh count, so balls and strikes always
        reset to 0-0, even when the play changes nothing else.

        Raises:
            GameAlreadyFinalError: *state* is already final.
            InningLimitExceededError: *state* is past the inning ceiling.
        """
        if state.is_final:
            raise GameAlreadyFinalError(
                "Cannot apply a plate appearance to a game that is already final "
                f"({state.score_display()}).",
                state=state,
            )
        if state.inning > MAX_INNINGS:
            raise InningLimitExceededError(
                f"Game exceeded maximum inning limit ({MAX_INNINGS}). "
                f"Current inning: {state.inning}. "
                "This indicates a runaway simulation; no result is recorded.",
                state=state,
            )

        batter_index = state.batting_order_index

        runs, walkoff = clamp_runs(state, resolution)
        rbi = compute_rbi(state, resolution, runs)
        earned, unearned = classify_runs(resolution, runs)

        outs_after = min(state.outs + resolution.outs_added, OUTS_PER_HALF)
        if walkoff:
            # The half never completes on a walk-off.
            outs_after = min(outs_after, OUTS_PER_HALF - 1)
        outs_made = outs_after - state.outs
        if walkoff and resolution.outcome is not OutcomeType.HOME_RUN:
            bases = BaseState.empty()
        else:
            bases = resolution.new_bases

        changes = _score_changes(state, runs, earned, unearned)
        changes.update(balls=0, strikes=0)

        self._current_half_runs += runs
        self._box_score.record_plate_appearance(
            offense=state.offense,
            lineup_index=batter_index,
            pitcher_id=self._pitchers[state.defense],
            outcome=resolution.outcome,
            outs=outs_made,
            rbi=rbi,
            earned_runs=earned,
            unearned_runs=unearned,
            is_sac_fly=resolution.is_sac_fly,
        )
        logger.debug(
            "%s %d: %s, %d run(s), %d RBI, %d out(s)",
            state.half.value, state.inning, resolution.outcome.value, runs, rbi, outs_after,
        )

        result = dict(
            state_before=state,
            batter_lineup_index=batter_index,
            runs_credited=runs,
            rbi=rbi,
            earned_runs=earned,
            unearned_runs=unearned,
            outs_after=outs_after,
        )

        if walkoff:
            # The game ends the instant the winning run scores: nobody is
            # left on base and the half is recorded as played so far.
            self._flush_half(state.offense, left_on_base=0)
            new_state = state.evolve(
                **changes,
                outs=outs_after,
                bases=bases,
                is_final=True,
            )
            logger.info("Walk-off in the %d: %s", state.inning, new_state.score_display())
            return ApplyResult(**result, state_after=new_state, is_walkoff=True,
                               half_ended=True, left_on_base=0)

        if outs_after < OUTS_PER_HALF:
            new_state = state.evolve(**changes, outs=outs_after, bases=bases)
            return ApplyResult(**result, state_after=new_state)

        lob, degraded = self._left_on_base(state, resolution)
        self._flush_half(state.offense, left_on_base=lob)
        new_state = self._end_half_inning(state.evolve(**changes))
        return ApplyResult(**result, state_after=new_state, half_ended=True,
                           left_on_base=lob, lob_degraded=degraded)

    # -- half-inning bookkeeping ---------------------------------------------

    def _left_on_base(self, state: GameState,
                      resolution: PlateAppearanceResolution) -> tuple[int, bool]:
        if resolution.bases_at_third_out is not None:
            return resolution.bases_at_third_out.occupied_count(), False

        # Producer did not snapshot the third out. Post-play bases can
        # disagree with the true count (e.g. a runner scored first).
        self.degraded_lob_count += 1
        lob = resolution.new_bases.occupied_count()
        logger.warning(
            "No bases_at_third_out snapshot for the play ending %s %d; "
            "left on base computed from post-play bases (%s) = %d",
            state.half.value, state.inning, resolution.new_bases, lob,
        )
        return lob, True

    def _flush_half(self, team: Team, left_on_base: int) -> None:
        self._line_score.record_inning(team, self._current_half_runs, left_on_base)
        self._current_half_runs = 0

    def _end_half_inning(self, state: GameState) -> GameState:
        """Transition after the third out. *state* holds the post-play scores."""
        cleared = dict(outs=0, bases=BaseState.empty())
        late_inning = state.inning >= REGULATION_INNINGS

        if state.half is Half.TOP:
            if late_inning and state.home_score > state.away_score:
                # Home team already leads; the bottom half is not played.
                self._line_score.record_skipped_inning(Team.HOME)
                logger.info("Home team leads after the top of the %d; game over: %s",
                            state.inning, state.score_display())
                return state.evolve(**cleared, is_final=True)
            logger.info("End of top %d: %s", state.inning, state.score_display())
            return state.evolve(
                **cleared,
                half=Half.BOTTOM,
                offense=state.defense,
                defense=state.offense,
            )

        if late_inning and state.home_score != state.away_score:
            logger.info("Game over after %d innings: %s", state.inning, state.score_display())
            return state.evolve(**cleared, is_final=True)

        if late_inning:
            logger.info("Tied after %d innings (%s); playing the %d",
                        state.inning, state.score_display(), state.inning + 1)
        return state.evolve(
            **cleared,
            inning=state.inning + 1,
            half=Half.TOP,
            offense=state.defense,
            defense=state.offense,
        )
