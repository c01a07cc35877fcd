# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0", "pytest"]
# ///
"""Tests for the scripted game loop.

Plays complete games through the scorekeeper and checks:
1. Regulation games end after the bottom of the 9th, or the top when home leads
2. Extra innings and walk-offs end the game on the spot
3. Line score totals always match the final score
4. Box score hits and defensive outs reconcile with the play log
5. Left on base totals, including the degraded fallback
6. Play-by-play events and descriptions
7. Deterministic replay via the play log hash
8. Runaway games stop at the inning ceiling
"""

import json
import logging
import sys
from pathlib import Path

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from line_score import InningMarker
from models import BaseState, GameState, Half, OutcomeType, PlateAppearanceResolution, Team
from scorekeeper import InningLimitExceededError, InningScorekeeper
from simulation import (
    GameSimulator,
    SimulationError,
    describe_play,
    game_result_to_dict,
    scripted_resolver,
    simulate_game,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def k(bases=None, snapshot=True):
    bases = bases or BaseState.empty()
    return PlateAppearanceResolution(
        outs_added=1, runs_scored=0, new_bases=bases,
        outcome=OutcomeType.STRIKEOUT,
        bases_at_third_out=bases if snapshot else None,
    )


def walk(new_bases):
    return PlateAppearanceResolution(
        outs_added=0, runs_scored=0, new_bases=new_bases, outcome=OutcomeType.WALK,
    )


def single(runs=0, new_bases=None):
    return PlateAppearanceResolution(
        outs_added=0, runs_scored=runs,
        new_bases=new_bases or BaseState(first=True),
        outcome=OutcomeType.SINGLE,
    )


def homer(runs=1):
    return PlateAppearanceResolution(
        outs_added=0, runs_scored=runs, new_bases=BaseState.empty(),
        outcome=OutcomeType.HOME_RUN,
    )


def quiet_half():
    return [k(), k(), k()]


def quiet_halves(n):
    return [pa for _ in range(n) for pa in quiet_half()]


def away_wins_one_nothing():
    """Leadoff homer in the top of the 1st, nothing else all game."""
    return [homer(), *quiet_half()] + quiet_halves(17)


def home_wins_without_bottom_ninth():
    return quiet_half() + [homer(), *quiet_half()] + quiet_halves(15)


def home_walks_off_in_tenth():
    return quiet_halves(19) + [single(), homer(2)]


# ---------------------------------------------------------------------------
# Regulation games
# ---------------------------------------------------------------------------

def test_away_win_plays_bottom_ninth():
    result = simulate_game(away_wins_one_nothing())
    state = result.final_state

    assert state.is_final
    assert (state.away_score, state.home_score) == (1, 0)
    assert state.inning == 9
    assert state.half is Half.BOTTOM
    assert result.winner is Team.AWAY
    assert result.innings == 9
    assert len(result.play_log) == 55


def test_away_win_line_score():
    result = simulate_game(away_wins_one_nothing())
    ls = result.line_score
    assert ls.innings(Team.AWAY) == [1] + [0] * 8
    assert ls.innings(Team.HOME) == [0] * 9
    assert ls.validate(result.final_state.away_score, result.final_state.home_score)


def test_away_win_box_score_reconciles():
    result = simulate_game(away_wins_one_nothing())
    box = result.box_score
    assert box.validate_team_hits(Team.AWAY, 1)
    assert box.validate_team_hits(Team.HOME, 0)
    assert box.validate_defensive_outs(Team.HOME, 27)
    assert box.validate_defensive_outs(Team.AWAY, 27)
    assert box.get_batter_stats(Team.AWAY, 0).hr == 1
    assert box.get_pitcher_stats(Team.HOME, 0).earned_runs == 1


def test_lineup_turns_over():
    result = simulate_game(away_wins_one_nothing())
    # 28 away batters and 27 home batters came up.
    assert result.final_state.away_lineup_index == 1
    assert result.final_state.home_lineup_index == 0
    assert result.box_score.get_batter_stats(Team.AWAY, 0).pa == 4
    assert result.box_score.get_batter_stats(Team.AWAY, 1).pa == 3


def test_home_lead_skips_bottom_ninth():
    result = simulate_game(home_wins_without_bottom_ninth())
    state = result.final_state
    ls = result.line_score

    assert state.is_final
    assert state.inning == 9
    assert state.half is Half.TOP
    assert result.winner is Team.HOME
    assert ls.inning_runs(Team.HOME, 9) is InningMarker.SKIPPED
    assert ls.inning_display(Team.HOME, 9) == "X"
    assert ls.total(Team.HOME) == 1
    assert ls.validate(state.away_score, state.home_score)


def test_skipped_bottom_ninth_defensive_outs():
    result = simulate_game(home_wins_without_bottom_ninth())
    # Home batted eight times, so the visitors' pitchers recorded 24 outs.
    assert result.box_score.validate_defensive_outs(Team.AWAY, 24)
    assert result.box_score.validate_defensive_outs(Team.HOME, 27)


# ---------------------------------------------------------------------------
# Extra innings and walk-offs
# ---------------------------------------------------------------------------

def test_extra_inning_walkoff_home_run():
    result = simulate_game(home_walks_off_in_tenth())
    state = result.final_state

    assert state.is_final
    assert state.inning == 10
    assert state.half is Half.BOTTOM
    assert (state.away_score, state.home_score) == (0, 2)
    assert result.line_score.innings(Team.HOME) == [0] * 9 + [2]
    assert result.line_score.lob(Team.HOME)[-1] == 0
    assert result.box_score.validate_defensive_outs(Team.HOME, 30)
    assert result.box_score.validate_defensive_outs(Team.AWAY, 27)


def test_walkoff_event_description():
    result = simulate_game(home_walks_off_in_tenth())
    last = result.play_log[-1]
    assert last.is_walkoff
    assert last.description == "Walk-off home run, 2 run(s) scored"
    assert last.score_home == 2
    assert last.inning == 10
    assert last.half == "BOTTOM"


def test_walkoff_single_with_bases_loaded_clamped():
    script = quiet_halves(17) + [
        walk(BaseState(first=True)),
        walk(BaseState(first=True, second=True)),
        walk(BaseState.loaded()),
        single(runs=2),
    ]
    result = simulate_game(script)

    assert (result.final_state.away_score, result.final_state.home_score) == (0, 1)
    assert result.final_state.bases.is_empty
    assert result.play_log[-1].runs_scored == 1
    assert result.play_log[-1].rbi == 1
    assert result.home_total_lob == 0


def test_game_from_custom_initial_state():
    start = GameState(inning=9, half=Half.BOTTOM, offense=Team.HOME, defense=Team.AWAY,
                      outs=2, bases=BaseState(third=True))
    result = simulate_game([single(runs=1)], initial_state=start)
    state = result.final_state

    assert state.is_final
    assert (state.away_score, state.home_score) == (0, 1)
    assert len(result.play_log) == 1
    assert result.line_score.validate(state.away_score, state.home_score)


def test_walkoff_event_outs_match_final_state():
    start = GameState(inning=9, half=Half.BOTTOM, offense=Team.HOME, defense=Team.AWAY,
                      outs=2, bases=BaseState(third=True))
    run_on_out = PlateAppearanceResolution(
        outs_added=1, runs_scored=1, new_bases=BaseState.empty(),
        outcome=OutcomeType.IN_PLAY_OUT,
    )
    result = simulate_game([run_on_out], initial_state=start)

    assert result.play_log[-1].is_walkoff
    assert result.play_log[-1].outs_after == result.final_state.outs == 2


def test_initial_state_with_runs_is_rejected():
    start = GameState(inning=9, half=Half.BOTTOM, offense=Team.HOME, defense=Team.AWAY,
                      outs=2, bases=BaseState(third=True), away_score=3, home_score=3)
    with pytest.raises(SimulationError, match="line score cannot account"):
        simulate_game([single(runs=1)], initial_state=start)


def test_initial_state_with_only_earned_run_counters_is_rejected():
    start = GameState(away_earned_runs=1)
    with pytest.raises(SimulationError):
        simulate_game(away_wins_one_nothing(), initial_state=start)


# ---------------------------------------------------------------------------
# Line score invariant per half-inning
# ---------------------------------------------------------------------------

def test_line_score_matches_score_after_every_half():
    sk = InningScorekeeper()
    state = GameState.initial()
    halves = 0
    for resolution in home_walks_off_in_tenth():
        result = sk.apply(state, resolution)
        state = result.state_after
        if result.half_ended:
            halves += 1
            assert sk.line_score.validate(state.away_score, state.home_score)
    assert state.is_final
    assert halves == 20


# ---------------------------------------------------------------------------
# Left on base
# ---------------------------------------------------------------------------

def test_left_on_base_totals():
    first_second = BaseState(first=True, second=True)
    script = [
        homer(),
        walk(BaseState(first=True)),
        walk(first_second),
        k(first_second), k(first_second), k(first_second),
    ] + quiet_halves(17)
    result = simulate_game(script)

    assert result.away_total_lob == 2
    assert result.line_score.lob(Team.AWAY)[0] == 2
    assert result.home_total_lob == 0
    assert result.degraded_lob_count == 0


def test_degraded_left_on_base_is_counted(caplog):
    script = [homer(), k(), k(), k(BaseState(first=True), snapshot=False)] + quiet_halves(17)
    with caplog.at_level(logging.WARNING, logger="scorekeeper"):
        result = simulate_game(script)

    assert result.degraded_lob_count == 1
    assert result.away_total_lob == 1
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 1


# ---------------------------------------------------------------------------
# Play-by-play
# ---------------------------------------------------------------------------

def test_play_events_track_batter_and_outs():
    result = simulate_game(away_wins_one_nothing())
    first, second = result.play_log[0], result.play_log[1]
    assert first.batting_team == "AWAY"
    assert first.batter_lineup_index == 0
    assert first.outcome == "HOME_RUN"
    assert first.runs_scored == 1
    assert first.outs_after == 0
    assert second.batter_lineup_index == 1
    assert second.outs_after == 1
    assert second.description == "Strikeout (1 out)"


def test_describe_special_plays():
    sk = InningScorekeeper()
    state = GameState(outs=0, bases=BaseState.loaded())
    triple_play = PlateAppearanceResolution(
        outs_added=3, runs_scored=0, new_bases=BaseState.empty(),
        outcome=OutcomeType.IN_PLAY_OUT, bases_at_third_out=BaseState.loaded(),
    )
    result = sk.apply(state, triple_play)
    assert describe_play(triple_play, result) == "Triple play (3 out)"


def test_event_to_dict():
    result = simulate_game(away_wins_one_nothing())
    d = result.play_log[0].to_dict()
    assert d["inning"] == 1
    assert d["half"] == "TOP"
    assert d["score"] == {"home": 0, "away": 1}


# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------

def test_replay_produces_identical_hash():
    a = simulate_game(away_wins_one_nothing())
    b = simulate_game(away_wins_one_nothing())
    assert a.log_hash == b.log_hash
    assert len(a.log_hash) == 64


def test_different_games_hash_differently():
    a = simulate_game(away_wins_one_nothing())
    b = simulate_game(home_wins_without_bottom_ninth())
    assert a.log_hash != b.log_hash


# ---------------------------------------------------------------------------
# Failure modes
# ---------------------------------------------------------------------------

def test_script_running_out_raises():
    with pytest.raises(SimulationError, match="ran out"):
        simulate_game(quiet_half())


def test_scripted_resolver_replays_in_order():
    resolve = scripted_resolver([homer(), k()])
    state = GameState.initial()
    assert resolve(state).outcome is OutcomeType.HOME_RUN
    assert resolve(state).outcome is OutcomeType.STRIKEOUT
    with pytest.raises(SimulationError):
        resolve(state)


def test_endless_tie_hits_inning_ceiling(caplog):
    simulator = GameSimulator(lambda state: k())
    with caplog.at_level(logging.ERROR, logger="simulation"):
        with pytest.raises(InningLimitExceededError, match="exceeded maximum inning limit"):
            simulator.run()
    assert any("Simulation aborted" in r.getMessage() for r in caplog.records)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def test_game_result_to_dict():
    result = simulate_game(home_wins_without_bottom_ninth())
    d = game_result_to_dict(result)

    assert d["final_score"] == {"away": 0, "home": 1}
    assert d["winner"] == "HOME"
    assert d["innings"] == 9
    assert d["ended_in"] == "TOP"
    assert d["line_score"]["home"]["innings"][-1] == "X"
    assert d["earned_runs"] == {"away": 0, "home": 1}
    assert d["box_score"]["home"]["hits"] == 1
    assert d["log_hash"] == result.log_hash
    assert len(d["play_log"]) == len(result.play_log)
    # Must be JSON serializable for report output
    json.dumps(d)
