# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Game loop around the inning scorekeeper.

Pulls one :class:`PlateAppearanceResolution` at a time from a resolver,
applies it, records a play-by-play event, and stops when the game is final.
The resolver is the seam for the upstream (randomized) plate appearance
machinery; a scripted resolver is provided for replays and tests.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from box_score import BoxScore
from line_score import LineScore
from models import GameState, Half, OutcomeType, PlateAppearanceResolution, Team
from scorekeeper import ApplyResult, InningScorekeeper, ScorekeeperError

logger = logging.getLogger(__name__)

Resolver = Callable[[GameState], PlateAppearanceResolution]


class SimulationError(Exception):
    """Raised when the resolver cannot drive the game to a final state."""


# ---------------------------------------------------------------------------
# Play-by-play event
# ---------------------------------------------------------------------------

_OUTCOME_PHRASES: dict[OutcomeType, str] = {
    OutcomeType.STRIKEOUT: "Strikeout",
    OutcomeType.WALK: "Walk",
    OutcomeType.HIT_BY_PITCH: "Hit by pitch",
    OutcomeType.IN_PLAY_OUT: "In play, out",
    OutcomeType.SINGLE: "Single",
    OutcomeType.DOUBLE: "Double",
    OutcomeType.TRIPLE: "Triple",
    OutcomeType.HOME_RUN: "Home run",
    OutcomeType.REACH_ON_ERROR: "Reached on error",
}


@dataclass
class PlayEvent:
    inning: int
    half: str  # "TOP" or "BOTTOM"
    batting_team: str
    batter_lineup_index: int
    outcome: str
    description: str
    outs_after: int
    runs_scored: int = 0
    rbi: int = 0
    is_walkoff: bool = False
    score_home: int = 0
    score_away: int = 0

    def to_dict(self) -> dict:
        return {
            "inning": self.inning,
            "half": self.half,
            "batting_team": self.batting_team,
            "batter": self.batter_lineup_index,
            "outcome": self.outcome,
            "description": self.description,
            "outs_after": self.outs_after,
            "runs_scored": self.runs_scored,
            "rbi": self.rbi,
            "is_walkoff": self.is_walkoff,
            "score": {"home": self.score_home, "away": self.score_away},
        }

    @classmethod
    def from_result(cls, resolution: PlateAppearanceResolution, result: ApplyResult) -> PlayEvent:
        before = result.state_before
        after = result.state_after
        return cls(
            inning=before.inning,
            half=before.half.value,
            batting_team=before.offense.value,
            batter_lineup_index=result.batter_lineup_index,
            outcome=resolution.outcome.value,
            description=describe_play(resolution, result),
            outs_after=result.outs_after,
            runs_scored=result.runs_credited,
            rbi=result.rbi,
            is_walkoff=result.is_walkoff,
            score_home=after.home_score,
            score_away=after.away_score,
        )


def describe_play(resolution: PlateAppearanceResolution, result: ApplyResult) -> str:
    desc = _OUTCOME_PHRASES[resolution.outcome]
    if resolution.is_sac_fly:
        desc = "Sacrifice fly"
    elif resolution.is_double_play:
        desc = "Grounded into double play"
    elif resolution.outcome is OutcomeType.IN_PLAY_OUT and resolution.outs_added == 3:
        desc = "Triple play"
    if result.is_walkoff:
        desc = f"Walk-off {desc[0].lower()}{desc[1:]}"
    if result.runs_credited:
        desc += f", {result.runs_credited} run(s) scored"
    if resolution.outs_added:
        desc += f" ({result.outs_after} out)"
    return desc


# ---------------------------------------------------------------------------
# Game result
# ---------------------------------------------------------------------------

@dataclass
class GameResult:
    final_state: GameState
    line_score: LineScore
    box_score: BoxScore
    play_log: list[PlayEvent] = field(default_factory=list)
    away_total_lob: int = 0
    home_total_lob: int = 0
    degraded_lob_count: int = 0

    @property
    def winner(self) -> Team | None:
        s = self.final_state
        if s.home_score > s.away_score:
            return Team.HOME
        if s.away_score > s.home_score:
            return Team.AWAY
        return None

    @property
    def innings(self) -> int:
        return self.final_state.inning

    @property
    def log_hash(self) -> str:
        """SHA-256 over the play log and final score, for replay comparison."""
        lines = [
            f"{e.inning}|{e.half}|{e.batting_team}|{e.batter_lineup_index}|{e.outcome}|{e.outs_after}"
            for e in self.play_log
        ]
        lines.append(f"FINAL:{self.final_state.away_score}-{self.final_state.home_score}")
        return hashlib.sha256("\n".join(lines).encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Resolvers
# ---------------------------------------------------------------------------

def scripted_resolver(resolutions: Iterable[PlateAppearanceResolution]) -> Resolver:
    """Resolver that replays a fixed sequence of plate appearances."""
    remaining = iter(resolutions)

    def resolve(state: GameState) -> PlateAppearanceResolution:
        try:
            return next(remaining)
        except StopIteration:
            raise SimulationError(
                f"Scripted resolutions ran out before the game ended ({state.situation_display()})"
            ) from None

    return resolve


# ---------------------------------------------------------------------------
# Simulator
# ---------------------------------------------------------------------------

def _has_prior_runs(state: GameState) -> bool:
    return any((
        state.away_score, state.home_score,
        state.away_earned_runs, state.away_unearned_runs,
        state.home_earned_runs, state.home_unearned_runs,
    ))


class GameSimulator:
    """Runs one game: resolver -> scorekeeper -> play log, until final."""

    def __init__(self, resolver: Resolver):
        self.resolver = resolver
        self.scorekeeper = InningScorekeeper()

    def run(self, initial_state: GameState | None = None) -> GameResult:
        """Play until final.

        *initial_state* may start mid-game but must be scoreless, since runs
        scored before it would be missing from the line score.
        """
        state = initial_state or GameState.initial()
        if _has_prior_runs(state):
            raise SimulationError(
                "Initial state carries runs the line score cannot account for "
                f"({state.score_display()}); start from a scoreless state."
            )
        play_log: list[PlayEvent] = []

        while not state.is_final:
            resolution = self.resolver(state)
            try:
                result = self.scorekeeper.apply(state, resolution)
            except ScorekeeperError as exc:
                logger.error("Simulation aborted at %s: %s", state.situation_display(), exc)
                raise
            play_log.append(PlayEvent.from_result(resolution, result))
            state = result.state_after

        logger.info(
            "Final after %d innings: %s (%d plate appearances)",
            state.inning, state.score_display(), len(play_log),
        )
        return GameResult(
            final_state=state,
            line_score=self.scorekeeper.line_score,
            box_score=self.scorekeeper.box_score,
            play_log=play_log,
            away_total_lob=self.scorekeeper.away_total_lob,
            home_total_lob=self.scorekeeper.home_total_lob,
            degraded_lob_count=self.scorekeeper.degraded_lob_count,
        )


def simulate_game(resolutions: Iterable[PlateAppearanceResolution],
                  initial_state: GameState | None = None) -> GameResult:
    """Replay a fixed sequence of plate appearances through a fresh scorekeeper."""
    return GameSimulator(scripted_resolver(resolutions)).run(initial_state)


# ---------------------------------------------------------------------------
# Serialization support
# ---------------------------------------------------------------------------

def game_result_to_dict(result: GameResult) -> dict:
    """Plain-dict view of a finished game for report formatters."""
    state = result.final_state
    winner = result.winner
    return {
        "final_score": {"away": state.away_score, "home": state.home_score},
        "winner": winner.value if winner else None,
        "innings": result.innings,
        "ended_in": "TOP" if state.half is Half.TOP else "BOTTOM",
        "earned_runs": {"away": state.away_earned_runs, "home": state.home_earned_runs},
        "unearned_runs": {"away": state.away_unearned_runs, "home": state.home_unearned_runs},
        "line_score": result.line_score.to_dict(),
        "box_score": result.box_score.to_dict(),
        "left_on_base": {"away": result.away_total_lob, "home": result.home_total_lob},
        "degraded_lob_count": result.degraded_lob_count,
        "play_log": [e.to_dict() for e in result.play_log],
        "log_hash": result.log_hash,
    }
