# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Data models for the inning scorekeeper.

Two immutable values flow through the engine:

* :class:`GameState` -- one instant of a game (count, inning/half, outs,
  bases, scores, lineup cursors, finality and earned/unearned counters).
* :class:`PlateAppearanceResolution` -- what happened on one plate
  appearance, fully resolved upstream.

Both are frozen Pydantic models, so out-of-range values are rejected the
moment a value is built and a state can never be mutated in place.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from config import LINEUP_SIZE, REGULATION_INNINGS


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Team(str, Enum):
    AWAY = "AWAY"
    HOME = "HOME"

    @property
    def opponent(self) -> Team:
        return Team.HOME if self is Team.AWAY else Team.AWAY


class Half(str, Enum):
    TOP = "TOP"
    BOTTOM = "BOTTOM"


class OutcomeType(str, Enum):
    STRIKEOUT = "STRIKEOUT"
    WALK = "WALK"
    HIT_BY_PITCH = "HIT_BY_PITCH"
    IN_PLAY_OUT = "IN_PLAY_OUT"
    SINGLE = "SINGLE"
    DOUBLE = "DOUBLE"
    TRIPLE = "TRIPLE"
    HOME_RUN = "HOME_RUN"
    REACH_ON_ERROR = "REACH_ON_ERROR"

    @property
    def total_bases(self) -> int:
        """Bases credited to the batter for a hit (0 for everything else)."""
        return _lookup(_TOTAL_BASES, self)

    @property
    def is_hit(self) -> bool:
        return self.total_bases > 0

    @property
    def is_at_bat(self) -> bool:
        """Walks and hit-by-pitch are plate appearances but not at-bats."""
        return _lookup(_COUNTS_AS_AT_BAT, self)

    @property
    def is_free_pass(self) -> bool:
        return self in (OutcomeType.WALK, OutcomeType.HIT_BY_PITCH)


# Every OutcomeType must appear in each table; _lookup refuses gaps.
_TOTAL_BASES: dict[OutcomeType, int] = {
    OutcomeType.STRIKEOUT: 0,
    OutcomeType.WALK: 0,
    OutcomeType.HIT_BY_PITCH: 0,
    OutcomeType.IN_PLAY_OUT: 0,
    OutcomeType.SINGLE: 1,
    OutcomeType.DOUBLE: 2,
    OutcomeType.TRIPLE: 3,
    OutcomeType.HOME_RUN: 4,
    OutcomeType.REACH_ON_ERROR: 0,
}

_COUNTS_AS_AT_BAT: dict[OutcomeType, bool] = {
    OutcomeType.STRIKEOUT: True,
    OutcomeType.WALK: False,
    OutcomeType.HIT_BY_PITCH: False,
    OutcomeType.IN_PLAY_OUT: True,
    OutcomeType.SINGLE: True,
    OutcomeType.DOUBLE: True,
    OutcomeType.TRIPLE: True,
    OutcomeType.HOME_RUN: True,
    OutcomeType.REACH_ON_ERROR: True,
}


def _lookup(table: dict[OutcomeType, Any], outcome: OutcomeType) -> Any:
    try:
        return table[outcome]
    except KeyError:
        raise ValueError(f"Unhandled outcome type: {outcome!r}") from None


# ---------------------------------------------------------------------------
# Bases and play flags
# ---------------------------------------------------------------------------

class BaseState(BaseModel):
    """Occupancy of first, second and third base."""
    model_config = ConfigDict(frozen=True)

    first: bool = False
    second: bool = False
    third: bool = False

    @classmethod
    def empty(cls) -> BaseState:
        return cls()

    @classmethod
    def loaded(cls) -> BaseState:
        return cls(first=True, second=True, third=True)

    def occupied_count(self) -> int:
        return int(self.first) + int(self.second) + int(self.third)

    @property
    def is_empty(self) -> bool:
        return self.occupied_count() == 0

    @property
    def is_loaded(self) -> bool:
        return self.occupied_count() == 3

    def any(self) -> bool:
        return not self.is_empty

    def __str__(self) -> str:
        """Return occupancy like '1_3' for runners on first and third."""
        return (
            ("1" if self.first else "_") +
            ("2" if self.second else "_") +
            ("3" if self.third else "_")
        )


class PlayFlags(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_double_play: bool = False
    is_sac_fly: bool = False


# ---------------------------------------------------------------------------
# Game state
# ---------------------------------------------------------------------------

class GameState(BaseModel):
    """One instant of a game. Replaced wholesale on every transition."""
    model_config = ConfigDict(frozen=True)

    balls: int = Field(default=0, ge=0, le=3)
    strikes: int = Field(default=0, ge=0, le=2)
    inning: int = Field(default=1, ge=1)
    half: Half = Half.TOP
    outs: int = Field(default=0, ge=0, le=2)
    bases: BaseState = Field(default_factory=BaseState)
    away_score: int = Field(default=0, ge=0)
    home_score: int = Field(default=0, ge=0)
    away_lineup_index: int = Field(default=0, ge=0, le=LINEUP_SIZE - 1)
    home_lineup_index: int = Field(default=0, ge=0, le=LINEUP_SIZE - 1)
    offense: Team = Team.AWAY
    defense: Team = Team.HOME
    is_final: bool = False
    away_earned_runs: int = Field(default=0, ge=0)
    away_unearned_runs: int = Field(default=0, ge=0)
    home_earned_runs: int = Field(default=0, ge=0)
    home_unearned_runs: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _offense_and_defense_differ(self) -> GameState:
        if self.offense == self.defense:
            raise ValueError(
                f"offense and defense must be different teams (both {self.offense.value})"
            )
        return self

    @classmethod
    def initial(cls) -> GameState:
        """Top of the 1st, 0-0, bases empty, no outs."""
        return cls()

    def evolve(self, **changes: Any) -> GameState:
        """Return a copy with *changes* applied, validated like a fresh state.

        ``model_copy(update=...)`` skips validation, so the copy is rebuilt
        through the constructor instead.
        """
        data = {name: getattr(self, name) for name in type(self).model_fields}
        data.update(changes)
        return type(self)(**data)

    # -- team-relative accessors --------------------------------------------

    def score_of(self, team: Team) -> int:
        return self.away_score if team is Team.AWAY else self.home_score

    def lineup_index_of(self, team: Team) -> int:
        return self.away_lineup_index if team is Team.AWAY else self.home_lineup_index

    @property
    def offense_score(self) -> int:
        return self.score_of(self.offense)

    @property
    def defense_score(self) -> int:
        return self.score_of(self.defense)

    @property
    def batting_order_index(self) -> int:
        return self.lineup_index_of(self.offense)

    def is_walkoff_situation(self) -> bool:
        """True when a run scored now could end the game on the spot."""
        return (
            self.half is Half.BOTTOM
            and self.inning >= REGULATION_INNINGS
            and self.offense is Team.HOME
            and self.home_score <= self.away_score
        )

    # -- display -------------------------------------------------------------

    def count_display(self) -> str:
        return f"{self.balls}-{self.strikes}"

    def score_display(self) -> str:
        return f"Away {self.away_score} - Home {self.home_score}"

    def situation_display(self) -> str:
        half_str = "Top" if self.half is Half.TOP else "Bot"
        on_bases = []
        if self.bases.first:
            on_bases.append("1st")
        if self.bases.second:
            on_bases.append("2nd")
        if self.bases.third:
            on_bases.append("3rd")
        runners_str = "runners on " + ", ".join(on_bases) if on_bases else "bases empty"
        text = f"{half_str} {self.inning}, {self.outs} out, {runners_str}, {self.score_display()}"
        return f"{text} (final)" if self.is_final else text


# ---------------------------------------------------------------------------
# Plate appearance resolution
# ---------------------------------------------------------------------------

class PlateAppearanceResolution(BaseModel):
    """Everything the upstream resolvers decided about one plate appearance.

    ``advance_on_error`` is keyed by each runner's *starting* base.
    ``bases_at_third_out`` is the occupancy at the instant the third out
    was recorded; producers that predate it leave it ``None``.
    """
    model_config = ConfigDict(frozen=True)

    outs_added: int = Field(ge=0, le=3)
    runs_scored: int = Field(ge=0)
    new_bases: BaseState
    outcome: OutcomeType
    flags: Optional[PlayFlags] = None
    had_error: bool = False
    advance_on_error: Optional[BaseState] = None
    bases_at_third_out: Optional[BaseState] = None

    @property
    def is_sac_fly(self) -> bool:
        return self.flags is not None and self.flags.is_sac_fly

    @property
    def is_double_play(self) -> bool:
        return self.flags is not None and self.flags.is_double_play

    @property
    def any_advance_on_error(self) -> bool:
        return self.advance_on_error is not None and self.advance_on_error.any()
