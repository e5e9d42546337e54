"""
Tests for the standings table: points from config, tie-breakers, only completed matches count.
"""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from champhub.models import ChampionshipConfig, ChampionshipMatch, MatchStatus
from champhub.services.standings import compute_standings

TEAMS = [("a", "Alpha"), ("b", "Bravo"), ("c", "Charlie")]


def _match(home, away, hs=None, as_=None, round=1):
    status = MatchStatus.COMPLETED.value if hs is not None else MatchStatus.SCHEDULED.value
    return ChampionshipMatch(
        id=f"{home}-{away}-{round}",
        championship_id="champ",
        round=round,
        sequence=1,
        home_team_id=home,
        away_team_id=away,
        home_score=hs,
        away_score=as_,
        status=status,
        created_at=datetime.now(timezone.utc),
    )


def test_every_team_listed_without_results():
    rows = compute_standings(TEAMS, [_match("a", "b"), _match("b", "c")])
    assert [r.name for r in rows] == ["Alpha", "Bravo", "Charlie"]
    assert all(r.played == 0 and r.points == 0 for r in rows)


def test_default_points_win_draw_loss():
    rows = compute_standings(TEAMS, [_match("a", "b", 2, 0), _match("b", "c", 1, 1)])
    by_id = {r.team_id: r for r in rows}
    assert by_id["a"].points == 3 and by_id["a"].wins == 1
    assert by_id["b"].points == 1 and by_id["b"].losses == 1 and by_id["b"].draws == 1
    assert by_id["c"].points == 1
    assert by_id["a"].goal_difference == 2
    assert by_id["b"].goals_for == 1 and by_id["b"].goals_against == 3
    assert rows[0].team_id == "a"


def test_custom_points_from_config():
    cfg = ChampionshipConfig(points_win=2, points_draw=1, points_loss=1)
    rows = compute_standings(TEAMS, [_match("a", "b", 1, 0)], cfg)
    by_id = {r.team_id: r for r in rows}
    assert by_id["a"].points == 2
    assert by_id["b"].points == 1


def test_scheduled_matches_ignored():
    rows = compute_standings(TEAMS, [_match("a", "b", 3, 0), _match("c", "a")])
    by_id = {r.team_id: r for r in rows}
    assert by_id["a"].played == 1
    assert by_id["c"].played == 0


def test_goal_difference_breaks_points_tie():
    matches = [_match("a", "c", 1, 0), _match("b", "c", 4, 0)]
    rows = compute_standings(TEAMS, matches)
    assert [r.team_id for r in rows[:2]] == ["b", "a"]


def test_head_to_head_when_configured_first():
    # a and b level on points; b has better goal difference but lost to a.
    matches = [
        _match("a", "b", 1, 0, round=1),
        _match("a", "c", 0, 0, round=2),
        _match("b", "c", 5, 0, round=3),
        _match("c", "b", 0, 0, round=4),
    ]
    default_rows = compute_standings(TEAMS, matches)
    assert default_rows[0].team_id == "b"

    cfg = ChampionshipConfig(tie_breakers=["head_to_head", "goal_difference"])
    rows = compute_standings(TEAMS, matches, cfg)
    assert [r.team_id for r in rows] == ["a", "b", "c"]


def test_name_is_final_tiebreak():
    teams = [("z", "zulu"), ("y", "Yankee")]
    rows = compute_standings(teams, [_match("z", "y", 1, 1)])
    assert [r.name for r in rows] == ["Yankee", "zulu"]


def test_results_for_unknown_teams_skipped():
    rows = compute_standings(TEAMS, [_match("a", "gone", 2, 0)])
    assert all(r.played == 0 for r in rows)


def test_to_dict_includes_goal_difference():
    row = compute_standings(TEAMS, [_match("a", "b", 3, 1)])[0]
    d = row.to_dict()
    assert d["team_id"] == "a"
    assert d["goal_difference"] == 2
    assert d["points"] == 3


def test_head_to_head_cycle_order_independent_of_input():
    """a beats b, b beats c, c beats a: the tied trio falls back to name order."""
    matches = [
        _match("a", "b", 1, 0, round=1),
        _match("b", "c", 1, 0, round=2),
        _match("c", "a", 1, 0, round=3),
    ]
    cfg = ChampionshipConfig(tie_breakers=["head_to_head"])
    orders = [
        [r.team_id for r in compute_standings(teams, matches, cfg)]
        for teams in (TEAMS, TEAMS[1:] + TEAMS[:1], list(reversed(TEAMS)))
    ]
    assert orders == [["a", "b", "c"]] * 3


def test_head_to_head_mini_table_inside_tied_group():
    """Four teams level on points; head-to-head among the tied group only."""
    teams = TEAMS + [("d", "Delta")]
    matches = [
        _match("a", "b", 2, 0, round=1),
        _match("c", "d", 0, 1, round=1),
        _match("a", "c", 0, 1, round=2),
        _match("b", "d", 3, 0, round=2),
        _match("a", "d", 0, 0, round=3),
        _match("b", "c", 0, 0, round=3),
    ]
    # Every team: 1 win, 1 draw, 1 loss -> 4 points.
    cfg = ChampionshipConfig(tie_breakers=["head_to_head", "goals_for"])
    rows = compute_standings(teams, matches, cfg)
    assert all(r.points == 4 for r in rows)
    # Each member took 4 points off the rest, so goals_for decides: b 3, a 2, then c and d on 1 by name.
    assert [r.team_id for r in rows] == ["b", "a", "c", "d"]
