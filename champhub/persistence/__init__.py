"""
Persistence layer for championship data.
No business logic, no scheduling — only read/write interfaces.
"""
from .db import get_connection, init_db
from .repositories import (
    UserRepository,
    ChampionshipRepository,
    TeamRepository,
    SponsorRepository,
    AthleteRepository,
    MatchRepository,
)

__all__ = [
    "get_connection",
    "init_db",
    "UserRepository",
    "ChampionshipRepository",
    "TeamRepository",
    "SponsorRepository",
    "AthleteRepository",
    "MatchRepository",
]
