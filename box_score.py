"""Per-player batting and pitching ledgers for one game."""

from __future__ import annotations

from dataclasses import dataclass, field

from models import OutcomeType, Team


# ---------------------------------------------------------------------------
# Stat lines
# ---------------------------------------------------------------------------

@dataclass
class BatterGameStats:
    pa: int = 0
    ab: int = 0
    hits: int = 0
    singles: int = 0
    doubles: int = 0
    triples: int = 0
    hr: int = 0
    bb: int = 0
    hbp: int = 0
    k: int = 0
    sf: int = 0
    rbi: int = 0
    # Only the batter's own home runs; runs scored later as a runner are
    # not attributed because bases do not track which batter occupies them.
    runs: int = 0
    total_bases: int = 0

    def to_dict(self) -> dict:
        return {
            "PA": self.pa, "AB": self.ab, "H": self.hits, "R": self.runs,
            "RBI": self.rbi, "BB": self.bb, "K": self.k, "HBP": self.hbp,
            "1B": self.singles, "2B": self.doubles, "3B": self.triples,
            "HR": self.hr, "SF": self.sf, "TB": self.total_bases,
        }


@dataclass
class PitcherGameStats:
    batters_faced: int = 0
    outs_recorded: int = 0  # 3 = 1.0 IP
    hits: int = 0
    runs: int = 0
    earned_runs: int = 0
    unearned_runs: int = 0
    bb: int = 0
    hbp: int = 0
    k: int = 0
    hr_allowed: int = 0

    @property
    def ip(self) -> float:
        full = self.outs_recorded // 3
        partial = self.outs_recorded % 3
        return full + partial / 10.0

    def to_dict(self) -> dict:
        return {
            "IP": self.ip, "BF": self.batters_faced, "H": self.hits,
            "R": self.runs, "ER": self.earned_runs, "UER": self.unearned_runs,
            "BB": self.bb, "HBP": self.hbp, "K": self.k, "HR": self.hr_allowed,
        }


# ---------------------------------------------------------------------------
# Box score
# ---------------------------------------------------------------------------

@dataclass
class BoxScore:
    """Batter lines keyed by lineup slot (0-8), pitcher lines by pitcher id."""
    away_batters: dict[int, BatterGameStats] = field(default_factory=dict)
    home_batters: dict[int, BatterGameStats] = field(default_factory=dict)
    away_pitchers: dict[int, PitcherGameStats] = field(default_factory=dict)
    home_pitchers: dict[int, PitcherGameStats] = field(default_factory=dict)

    def batters(self, team: Team) -> dict[int, BatterGameStats]:
        return self.away_batters if team is Team.AWAY else self.home_batters

    def pitchers(self, team: Team) -> dict[int, PitcherGameStats]:
        return self.away_pitchers if team is Team.AWAY else self.home_pitchers

    def get_batter_stats(self, team: Team, lineup_index: int) -> BatterGameStats:
        batters = self.batters(team)
        if lineup_index not in batters:
            batters[lineup_index] = BatterGameStats()
        return batters[lineup_index]

    def get_pitcher_stats(self, team: Team, pitcher_id: int) -> PitcherGameStats:
        pitchers = self.pitchers(team)
        if pitcher_id not in pitchers:
            pitchers[pitcher_id] = PitcherGameStats()
        return pitchers[pitcher_id]

    # -- recording -----------------------------------------------------------

    def record_batter(self, team: Team, lineup_index: int, outcome: OutcomeType,
                      rbi: int, batter_scored: bool, is_sac_fly: bool = False) -> None:
        stats = self.get_batter_stats(team, lineup_index)
        stats.pa += 1
        if is_sac_fly:
            stats.sf += 1
        elif outcome.is_at_bat:
            stats.ab += 1

        match outcome:
            case OutcomeType.SINGLE:
                stats.singles += 1
            case OutcomeType.DOUBLE:
                stats.doubles += 1
            case OutcomeType.TRIPLE:
                stats.triples += 1
            case OutcomeType.HOME_RUN:
                stats.hr += 1
            case OutcomeType.WALK:
                stats.bb += 1
            case OutcomeType.HIT_BY_PITCH:
                stats.hbp += 1
            case OutcomeType.STRIKEOUT:
                stats.k += 1
            case OutcomeType.IN_PLAY_OUT | OutcomeType.REACH_ON_ERROR:
                pass
            case _:
                raise ValueError(f"Unhandled outcome type: {outcome!r}")

        if outcome.is_hit:
            stats.hits += 1
            stats.total_bases += outcome.total_bases
        stats.rbi += rbi
        if batter_scored:
            stats.runs += 1

    def record_pitcher(self, team: Team, pitcher_id: int, outcome: OutcomeType,
                       outs: int, earned_runs: int, unearned_runs: int) -> None:
        stats = self.get_pitcher_stats(team, pitcher_id)
        match outcome:
            case OutcomeType.HOME_RUN:
                stats.hr_allowed += 1
            case OutcomeType.WALK:
                stats.bb += 1
            case OutcomeType.HIT_BY_PITCH:
                stats.hbp += 1
            case OutcomeType.STRIKEOUT:
                stats.k += 1
            case (OutcomeType.SINGLE | OutcomeType.DOUBLE | OutcomeType.TRIPLE
                  | OutcomeType.IN_PLAY_OUT | OutcomeType.REACH_ON_ERROR):
                pass
            case _:
                raise ValueError(f"Unhandled outcome type: {outcome!r}")

        stats.batters_faced += 1
        stats.outs_recorded += outs
        stats.runs += earned_runs + unearned_runs
        stats.earned_runs += earned_runs
        stats.unearned_runs += unearned_runs
        if outcome.is_hit:
            stats.hits += 1

    def record_plate_appearance(self, *, offense: Team, lineup_index: int,
                                pitcher_id: int, outcome: OutcomeType, outs: int,
                                rbi: int, earned_runs: int, unearned_runs: int,
                                is_sac_fly: bool = False) -> None:
        """Push one plate appearance into both the batter and pitcher lines."""
        self.record_batter(
            offense, lineup_index, outcome,
            rbi=rbi,
            batter_scored=outcome is OutcomeType.HOME_RUN,
            is_sac_fly=is_sac_fly,
        )
        self.record_pitcher(
            offense.opponent, pitcher_id, outcome,
            outs=outs,
            earned_runs=earned_runs,
            unearned_runs=unearned_runs,
        )

    # -- validation ----------------------------------------------------------

    def team_hits(self, team: Team) -> int:
        return sum(b.hits for b in self.batters(team).values())

    def validate_team_hits(self, team: Team, expected_team_hits: int) -> bool:
        return self.team_hits(team) == expected_team_hits

    def total_pitcher_outs(self, team: Team) -> int:
        """Outs recorded by all of *team*'s pitchers."""
        return sum(p.outs_recorded for p in self.pitchers(team).values())

    def validate_defensive_outs(self, team: Team, expected_outs: int) -> bool:
        """27 for a full nine, 24 for the visitors when the home 9th is skipped,
        plus 3 per completed defensive half in extras."""
        return self.total_pitcher_outs(team) == expected_outs

    def to_dict(self) -> dict:
        def side(team: Team) -> dict:
            return {
                "batting": {i: s.to_dict() for i, s in sorted(self.batters(team).items())},
                "pitching": {pid: s.to_dict() for pid, s in sorted(self.pitchers(team).items())},
                "hits": self.team_hits(team),
            }

        return {"away": side(Team.AWAY), "home": side(Team.HOME)}
