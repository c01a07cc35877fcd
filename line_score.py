"""Inning-by-inning run ledger with a parallel left-on-base ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from config import BASES_COUNT
from models import Team


class InningMarker(str, Enum):
    """Placeholder entry for an inning a team never batted in."""
    SKIPPED = "X"


InningEntry = int | InningMarker


@dataclass
class LineScore:
    """Runs per half-inning for both teams.

    An entry is a run count, :attr:`InningMarker.SKIPPED` (home team leading
    after the top of the 9th), or absent when the inning has not been played.
    A walk-off half is recorded with the runs actually scored in it.
    """
    away_innings: list[InningEntry] = field(default_factory=list)
    home_innings: list[InningEntry] = field(default_factory=list)
    away_lob: list[int] = field(default_factory=list)
    home_lob: list[int] = field(default_factory=list)

    def _innings(self, team: Team) -> list[InningEntry]:
        return self.away_innings if team is Team.AWAY else self.home_innings

    def _lob(self, team: Team) -> list[int]:
        return self.away_lob if team is Team.AWAY else self.home_lob

    # -- recording -----------------------------------------------------------

    def record_inning(self, team: Team, runs: int, left_on_base: int = 0) -> None:
        """Append a completed (or walk-off truncated) half-inning."""
        if runs < 0:
            raise ValueError(f"Runs in an inning cannot be negative: {runs}")
        if not 0 <= left_on_base <= BASES_COUNT:
            raise ValueError(f"Left on base must be between 0 and {BASES_COUNT}: {left_on_base}")
        self._innings(team).append(runs)
        self._lob(team).append(left_on_base)

    def record_skipped_inning(self, team: Team) -> None:
        """Mark the home team's unplayed bottom half."""
        if team is not Team.HOME:
            raise ValueError("Only the home team can have a skipped half-inning")
        self.home_innings.append(InningMarker.SKIPPED)

    # -- queries -------------------------------------------------------------

    def innings(self, team: Team) -> list[InningEntry]:
        return list(self._innings(team))

    def inning_runs(self, team: Team, inning: int) -> InningEntry | None:
        """Entry for a 1-based inning, or None if that half has not been played."""
        entries = self._innings(team)
        if inning < 1 or inning > len(entries):
            return None
        return entries[inning - 1]

    def inning_display(self, team: Team, inning: int) -> str:
        entry = self.inning_runs(team, inning)
        if entry is None:
            return "-"
        if entry is InningMarker.SKIPPED:
            return entry.value
        return str(entry)

    def total(self, team: Team) -> int:
        return sum(e for e in self._innings(team) if not isinstance(e, InningMarker))

    def lob(self, team: Team) -> list[int]:
        return list(self._lob(team))

    def total_lob(self, team: Team) -> int:
        return sum(self._lob(team))

    @property
    def innings_played(self) -> int:
        return max(len(self.away_innings), len(self.home_innings))

    def validate(self, away_score: int, home_score: int) -> bool:
        """True when the ledger totals agree with the scoreboard."""
        return self.total(Team.AWAY) == away_score and self.total(Team.HOME) == home_score

    def to_dict(self) -> dict:
        def entries(team: Team) -> list:
            return [e.value if isinstance(e, InningMarker) else e for e in self._innings(team)]

        return {
            "away": {
                "innings": entries(Team.AWAY),
                "runs": self.total(Team.AWAY),
                "lob": self.total_lob(Team.AWAY),
            },
            "home": {
                "innings": entries(Team.HOME),
                "runs": self.total(Team.HOME),
                "lob": self.total_lob(Team.HOME),
            },
        }
