"""
Data models for the championship backend.
Domain objects only — no persistence or API logic.

Organizers (users) own championships; championships have teams; teams have
athletes and sponsors; matches are the persisted round-robin fixtures.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


# ---------- Match status ----------
class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"


# ---------- Tie-breakers ----------
class TieBreaker(str, Enum):
    """Applied in configured order after points."""
    WINS = "wins"
    GOAL_DIFFERENCE = "goal_difference"
    GOALS_FOR = "goals_for"
    HEAD_TO_HEAD = "head_to_head"


DEFAULT_TIE_BREAKERS = [
    TieBreaker.WINS.value,
    TieBreaker.GOAL_DIFFERENCE.value,
    TieBreaker.GOALS_FOR.value,
    TieBreaker.HEAD_TO_HEAD.value,
]


# ---------- Plans ----------
@dataclass(frozen=True)
class Plan:
    """Subscription tier. None for a limit means unlimited."""
    name: str
    price: str
    period: str
    features: tuple[str, ...]
    max_active_championships: int | None
    max_teams_per_championship: int | None
    is_free: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "price": self.price,
            "period": self.period,
            "features": list(self.features),
            "is_free": self.is_free,
            "max_active_championships": self.max_active_championships,
            "max_teams_per_championship": self.max_teams_per_championship,
        }


PLANS: dict[str, Plan] = {
    "Starter": Plan(
        name="Starter",
        price="Grátis",
        period="30 dias",
        is_free=True,
        features=(
            "1 Campeonato ativo",
            "Até 8 equipes",
            "Tabelas automáticas",
            "Súmula digital básica",
            "Link público do campeonato",
        ),
        max_active_championships=1,
        max_teams_per_championship=8,
    ),
    "Pro": Plan(
        name="Pro",
        price="R$ 49,90",
        period="/mês",
        features=(
            "Até 5 campeonatos ativos",
            "Até 32 equipes por torneio",
            "Gestão financeira básica",
            "Súmula com estatísticas",
            "Geração automática de confrontos",
            "Suporte via chat",
        ),
        max_active_championships=5,
        max_teams_per_championship=32,
    ),
    "Elite": Plan(
        name="Elite",
        price="R$ 89,90",
        period="/mês",
        features=(
            "Campeonatos ilimitados",
            "Equipes ilimitadas",
            "Site personalizado (White Label)",
            "App exclusivo para atletas",
            "API de integração",
            "Gestor financeiro completo",
            "Suporte Prioritário 24/7",
        ),
        max_active_championships=None,
        max_teams_per_championship=None,
    ),
}
DEFAULT_PLAN = "Starter"


def get_plan(name: str | None) -> Plan:
    """Unknown or missing plan names fall back to the free tier."""
    return PLANS.get(name or DEFAULT_PLAN, PLANS[DEFAULT_PLAN])


# ---------- User ----------
@dataclass
class User:
    """
    An organizer account. email is the login key; password_hash never plain text.
    """
    id: str
    email: str
    name: str
    created_at: datetime
    plan: str = DEFAULT_PLAN
    password_hash: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "plan": self.plan,
            "created_at": self.created_at.isoformat(),
        }


# ---------- Championship config (JSON column) ----------
@dataclass
class ChampionshipConfig:
    """
    Rules, scoring, contacts and visibility toggles.
    Stored as JSON; missing keys read back as these defaults.
    """
    organizer_phone: str = ""
    organizer_email: str = ""
    organizer_site: str = ""
    organizer_insta: str = ""
    organizer_face: str = ""
    rules_text: str = ""
    points_win: int = 3
    points_draw: int = 1
    points_loss: int = 0
    suspension_yellow: int = 3
    suspension_red: int = 1
    suspension_blue: int = 0
    tie_breakers: list[str] = field(default_factory=lambda: list(DEFAULT_TIE_BREAKERS))
    prizes: dict[str, str] = field(default_factory=lambda: {"first": "", "second": "", "third": ""})
    public_inscription: bool = False
    show_stats_publicly: bool = True
    allow_comments: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "organizer_phone": self.organizer_phone,
            "organizer_email": self.organizer_email,
            "organizer_site": self.organizer_site,
            "organizer_insta": self.organizer_insta,
            "organizer_face": self.organizer_face,
            "rules_text": self.rules_text,
            "points_win": self.points_win,
            "points_draw": self.points_draw,
            "points_loss": self.points_loss,
            "suspension_yellow": self.suspension_yellow,
            "suspension_red": self.suspension_red,
            "suspension_blue": self.suspension_blue,
            "tie_breakers": list(self.tie_breakers),
            "prizes": dict(self.prizes),
            "public_inscription": self.public_inscription,
            "show_stats_publicly": self.show_stats_publicly,
            "allow_comments": self.allow_comments,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ChampionshipConfig":
        """Build from stored JSON, ignoring unknown keys."""
        cfg = cls()
        if not data:
            return cfg
        for key in cfg.to_dict():
            if key in data and data[key] is not None:
                setattr(cfg, key, data[key])
        prizes = {"first": "", "second": "", "third": ""}
        prizes.update(cfg.prizes or {})
        cfg.prizes = prizes
        return cfg


# ---------- Championship ----------
@dataclass
class Championship:
    """
    A competition owned by one organizer. Owns teams and the match schedule.
    """
    id: str
    user_id: str
    name: str
    sport: str
    type: str
    start_date: str | None
    end_date: str | None
    location: str
    description: str
    logo_url: str | None
    cover_url: str | None
    config: ChampionshipConfig
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "sport": self.sport,
            "type": self.type,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "location": self.location,
            "description": self.description,
            "logo_url": self.logo_url,
            "cover_url": self.cover_url,
            "config": self.config.to_dict(),
            "created_at": self.created_at.isoformat(),
        }


# ---------- Team ----------
@dataclass
class Team:
    """A team registered to one championship."""
    id: str
    championship_id: str
    user_id: str
    name: str
    coach: str
    contact_phone: str
    logo_url: str | None
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "championship_id": self.championship_id,
            "name": self.name,
            "coach": self.coach,
            "contact_phone": self.contact_phone,
            "logo_url": self.logo_url,
            "created_at": self.created_at.isoformat(),
        }


# ---------- TeamSponsor ----------
@dataclass
class TeamSponsor:
    id: str
    team_id: str
    name: str
    logo_url: str | None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "team_id": self.team_id, "name": self.name, "logo_url": self.logo_url}


# ---------- Athlete ----------
@dataclass
class Athlete:
    """A rostered player of a team. shirt_number, position and document are optional."""
    id: str
    team_id: str
    name: str
    shirt_number: int | None
    position: str | None
    document: str | None
    created_at: datetime

    def to_dict(self, include_document: bool = True) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "team_id": self.team_id,
            "name": self.name,
            "shirt_number": self.shirt_number,
            "position": self.position,
            "created_at": self.created_at.isoformat(),
        }
        if include_document:
            d["document"] = self.document
        return d


# ---------- ChampionshipMatch (persisted fixture) ----------
@dataclass
class ChampionshipMatch:
    """
    A scheduled or completed fixture. Created by schedule replacement;
    scores stay None until a result is recorded.
    """
    id: str
    championship_id: str
    round: int
    sequence: int
    home_team_id: str
    away_team_id: str
    home_score: int | None
    away_score: int | None
    status: str  # MatchStatus value
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "championship_id": self.championship_id,
            "round": self.round,
            "sequence": self.sequence,
            "home_team_id": self.home_team_id,
            "away_team_id": self.away_team_id,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
        }
