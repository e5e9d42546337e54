"""
Standings table from recorded match results.

Points come from the championship config (win/draw/loss). Ties on points are
broken by the configured tie-breakers in order. Head-to-head groups every team
still level at that point and ranks the group as a mini-league on the points
its members took off each other. Team name, then id, is the final key so the
order never depends on input order.
"""
from __future__ import annotations

from dataclasses import dataclass
from itertools import groupby
from typing import Any, Iterable, Sequence

from champhub.models import ChampionshipConfig, ChampionshipMatch, MatchStatus, TieBreaker


@dataclass
class StandingRow:
    team_id: str
    name: str
    played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def to_dict(self) -> dict[str, Any]:
        return {
            "team_id": self.team_id,
            "name": self.name,
            "played": self.played,
            "wins": self.wins,
            "draws": self.draws,
            "losses": self.losses,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
            "goal_difference": self.goal_difference,
            "points": self.points,
        }


# (team, opponent) -> points team earned against opponent
H2HMap = dict[tuple[str, str], int]


def _apply_result(
    table: dict[str, StandingRow],
    h2h: H2HMap,
    m: ChampionshipMatch,
    config: ChampionshipConfig,
) -> None:
    home = table.get(m.home_team_id)
    away = table.get(m.away_team_id)
    if home is None or away is None:
        return
    hs, as_ = int(m.home_score or 0), int(m.away_score or 0)
    home.played += 1
    away.played += 1
    home.goals_for += hs
    home.goals_against += as_
    away.goals_for += as_
    away.goals_against += hs
    if hs > as_:
        home.wins += 1
        away.losses += 1
        home_pts, away_pts = config.points_win, config.points_loss
    elif hs < as_:
        away.wins += 1
        home.losses += 1
        home_pts, away_pts = config.points_loss, config.points_win
    else:
        home.draws += 1
        away.draws += 1
        home_pts = away_pts = config.points_draw
    home.points += home_pts
    away.points += away_pts
    h2h[(home.team_id, away.team_id)] = h2h.get((home.team_id, away.team_id), 0) + home_pts
    h2h[(away.team_id, home.team_id)] = h2h.get((away.team_id, home.team_id), 0) + away_pts


def _metric(row: StandingRow, tb: str) -> int:
    if tb == TieBreaker.WINS.value:
        return row.wins
    if tb == TieBreaker.GOAL_DIFFERENCE.value:
        return row.goal_difference
    if tb == TieBreaker.GOALS_FOR.value:
        return row.goals_for
    return 0


def _group_h2h_points(group: Sequence[StandingRow], h2h: H2HMap) -> dict[str, int]:
    """Points each team of a tied group earned against the other members."""
    ids = [r.team_id for r in group]
    return {
        a: sum(h2h.get((a, b), 0) for b in ids if b != a)
        for a in ids
    }


def _order(rows: list[StandingRow], tie_breakers: Sequence[str], h2h: H2HMap) -> list[StandingRow]:
    """
    Sort by points and the tie-breakers before the first head_to_head, then
    resolve each cluster still level with a head-to-head mini-table and the
    remaining tie-breakers.
    """
    h2h_key = TieBreaker.HEAD_TO_HEAD.value
    if h2h_key in tie_breakers:
        idx = list(tie_breakers).index(h2h_key)
        before, after = list(tie_breakers[:idx]), list(tie_breakers[idx + 1:])
    else:
        before, after = list(tie_breakers), None

    def prefix(r: StandingRow) -> tuple[int, ...]:
        return (r.points, *(_metric(r, tb) for tb in before))

    ordered = sorted(
        rows,
        key=lambda r: (tuple(-v for v in prefix(r)), r.name.lower(), r.team_id),
    )
    if after is None:
        return ordered

    out: list[StandingRow] = []
    for _, cluster in groupby(ordered, key=prefix):
        group = list(cluster)
        if len(group) > 1:
            scores = _group_h2h_points(group, h2h)
            group.sort(key=lambda r: -scores[r.team_id])
            resolved: list[StandingRow] = []
            for _, level in groupby(group, key=lambda r: scores[r.team_id]):
                resolved.extend(_order(list(level), after, h2h))
            group = resolved
        out.extend(group)
    return out


def compute_standings(
    teams: Iterable[tuple[str, str]],
    matches: Iterable[ChampionshipMatch],
    config: ChampionshipConfig | None = None,
) -> list[StandingRow]:
    """
    teams: (team_id, name) pairs; every team gets a row even with no results.
    Only completed matches count.
    """
    config = config or ChampionshipConfig()
    table: dict[str, StandingRow] = {tid: StandingRow(team_id=tid, name=name) for tid, name in teams}
    h2h: H2HMap = {}
    for m in matches:
        if m.status != MatchStatus.COMPLETED.value:
            continue
        _apply_result(table, h2h, m, config)
    return _order(list(table.values()), list(config.tie_breakers or []), h2h)
