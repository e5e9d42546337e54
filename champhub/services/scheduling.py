"""
Deterministic round-robin schedule generation for championships.

Round-robin is used so every team plays every other team exactly once; a championship
runs N-1 rounds (N even) or N rounds (N odd). Each team plays at most one match per round.

BYE handling: when the number of teams is odd, we add a virtual BYE. Each round one
team is paired with BYE and rests; those pairings never reach the output.

Uses the circle method: fix the first team, rotate the others each round. Home/away
alternates with round parity relative to the fixed team. Same team list ordering
yields the same schedule (deterministic for persistence).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Hashable, Sequence


class InvalidParticipantCount(ValueError):
    """Fewer than two participants supplied to the scheduler."""


class _Bye:
    """Sentinel for the empty slot added when the participant count is odd."""

    def __repr__(self) -> str:
        return "BYE"


# Distinct from every caller-supplied identifier (compares by identity).
BYE = _Bye()


@dataclass(frozen=True)
class Fixture:
    """A single scheduled pairing. round is 1-based."""
    round: int
    home: Hashable
    away: Hashable

    def __post_init__(self) -> None:
        if self.home == self.away:
            raise ValueError(f"Fixture cannot pair {self.home!r} with itself")


def _circle_rounds(participants: Sequence[Hashable]) -> list[list[tuple[Hashable, Hashable]]]:
    """
    Raw circle-method rounds as (home, away) pairs, BYE pairings included.
    participants must already be padded to an even count.
    """
    n = len(participants)
    fixed = participants[0]
    rotating = list(participants[1:])
    rounds: list[list[tuple[Hashable, Hashable]]] = []
    for r in range(n - 1):
        pairs: list[tuple[Hashable, Hashable]] = []
        # rotating has n-1 entries: [0] meets the fixed team, the rest fold end to end.
        left_pairs = [(fixed, rotating[0])]
        for i in range(1, n // 2):
            left_pairs.append((rotating[i], rotating[n - 1 - i]))
        for left, right in left_pairs:
            if r % 2 == 0:
                pairs.append((left, right))
            else:
                pairs.append((right, left))
        rounds.append(pairs)
        rotating = [rotating[-1]] + rotating[:-1]
    return rounds


def _padded(participants: Sequence[Hashable]) -> list[Hashable]:
    ids = list(participants)
    if len(ids) < 2:
        raise InvalidParticipantCount(
            f"At least two teams required to generate a schedule (got {len(ids)})"
        )
    if len(ids) % 2 == 1:
        ids.append(BYE)
    return ids


def generate_schedule(participants: Sequence[Hashable]) -> tuple[Fixture, ...]:
    """
    Single round-robin schedule for the given ordered participants.
    Fixtures come out in round order, then in pairing order within the round.
    Duplicate identifiers are a caller error; de-duplicate before calling.
    """
    ids = _padded(participants)
    fixtures: list[Fixture] = []
    for r, pairs in enumerate(_circle_rounds(ids)):
        for home, away in pairs:
            if home is BYE or away is BYE:
                continue
            fixtures.append(Fixture(round=r + 1, home=home, away=away))
    return tuple(fixtures)


def generate_double_schedule(participants: Sequence[Hashable]) -> tuple[Fixture, ...]:
    """
    Double round-robin: the single schedule, then a second leg with the same
    pairings, home and away swapped, rounds continuing after the first leg.
    """
    first_leg = generate_schedule(participants)
    n = len(participants)
    leg_rounds = n - 1 if n % 2 == 0 else n
    second_leg = tuple(
        Fixture(round=f.round + leg_rounds, home=f.away, away=f.home) for f in first_leg
    )
    return first_leg + second_leg


def resting_participants(participants: Sequence[Hashable]) -> dict[int, Hashable]:
    """Round number -> participant paired with BYE that round. Empty for even counts."""
    ids = _padded(participants)
    resting: dict[int, Hashable] = {}
    for r, pairs in enumerate(_circle_rounds(ids)):
        for home, away in pairs:
            if home is BYE:
                resting[r + 1] = away
            elif away is BYE:
                resting[r + 1] = home
    return resting


def round_count(schedule: Sequence[Fixture]) -> int:
    return max((f.round for f in schedule), default=0)


def fixtures_to_rows(schedule: Sequence[Fixture]) -> list[dict[str, Any]]:
    """
    Return list of rows: { "round": int, "sequence": int, "home_team_id", "away_team_id" }.
    sequence is the 1-based position of the fixture within its round.
    """
    rows: list[dict[str, Any]] = []
    seq_by_round: dict[int, int] = {}
    for f in schedule:
        seq_by_round[f.round] = seq_by_round.get(f.round, 0) + 1
        rows.append({
            "round": f.round,
            "sequence": seq_by_round[f.round],
            "home_team_id": f.home,
            "away_team_id": f.away,
        })
    return rows
