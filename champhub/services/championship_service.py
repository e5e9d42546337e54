"""
Championship service: ownership guards, plan limits, team registry, schedule lifecycle.

Schedule replacement is a two-step protocol: propose_schedule() returns the fixtures
a replace would store plus a fingerprint; confirm_schedule() regenerates from the
current team list and only replaces the stored fixtures (and their results) when
the fingerprint still matches.
"""
from __future__ import annotations

import hashlib
import json
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from champhub.models import (
    Athlete,
    Championship,
    ChampionshipConfig,
    ChampionshipMatch,
    Team,
    TeamSponsor,
    TieBreaker,
    User,
    get_plan,
)
from champhub.persistence.repositories import (
    AthleteRepository,
    ChampionshipRepository,
    MatchRepository,
    SponsorRepository,
    TeamRepository,
    UserRepository,
)
from champhub.services.scheduling import (
    Fixture,
    fixtures_to_rows,
    generate_double_schedule,
    generate_schedule,
    resting_participants,
    round_count,
)
from champhub.services.standings import StandingRow, compute_standings

logger = logging.getLogger(__name__)

# ---------- Exceptions ----------


class ChampionshipError(ValueError):
    """Base for championship domain errors."""


class NotFoundError(ChampionshipError):
    """Championship, team, athlete, sponsor or match does not exist."""


class PermissionDeniedError(ChampionshipError):
    """Caller does not own the championship."""


class PlanLimitError(ChampionshipError):
    """Organizer's plan does not allow another championship or team."""


class DuplicateTeamError(ChampionshipError):
    """A team with the same name is already registered in the championship."""


class ConfirmationRequiredError(ChampionshipError):
    """Destructive operation attempted without the matching confirmation."""


class StaleProposalError(ChampionshipError):
    """The team list changed since the schedule was proposed."""


class ScheduleConflictError(ChampionshipError):
    """Team removal blocked by stored fixtures that reference it."""


class InvalidResultError(ChampionshipError):
    """Scores must be non-negative integers."""


# ---------- Schedule proposal ----------


@dataclass
class ScheduleProposal:
    championship_id: str
    legs: int
    team_ids: list[str]
    fixtures: tuple[Fixture, ...]
    resting: dict[int, str]
    fingerprint: str
    existing_fixtures: int = 0
    existing_results: int = 0
    rows: list[dict[str, Any]] = field(default_factory=list)

    @property
    def rounds(self) -> int:
        return round_count(self.fixtures)

    @property
    def destructive(self) -> bool:
        """True when confirming would discard stored fixtures."""
        return self.existing_fixtures > 0


def _fingerprint(team_ids: list[str], legs: int) -> str:
    """Identical team order and leg count always produce the same schedule."""
    payload = json.dumps({"teams": team_ids, "legs": legs}, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


_VALID_LEGS = (1, 2)
_CHAMPIONSHIP_FIELDS = (
    "name", "sport", "type", "start_date", "end_date", "location", "description",
    "logo_url", "cover_url",
)


# ---------- ChampionshipService ----------


class ChampionshipService:
    """
    Domain logic for championships. Persistence is delegated to repositories.
    Mutating methods take the acting user's id and check ownership.
    """

    def __init__(self) -> None:
        self._user_repo = UserRepository()
        self._champ_repo = ChampionshipRepository()
        self._team_repo = TeamRepository()
        self._sponsor_repo = SponsorRepository()
        self._athlete_repo = AthleteRepository()
        self._match_repo = MatchRepository()

    # ---------- Lookups & guards ----------

    def get_championship(self, conn: sqlite3.Connection, championship_id: str) -> Championship:
        champ = self._champ_repo.get(conn, championship_id)
        if champ is None:
            raise NotFoundError(f"Championship not found: {championship_id}")
        return champ

    def get_owned_championship(
        self, conn: sqlite3.Connection, user_id: str, championship_id: str
    ) -> Championship:
        champ = self.get_championship(conn, championship_id)
        if champ.user_id != user_id:
            raise PermissionDeniedError("Only the championship organizer can change it")
        return champ

    def get_owned_team(self, conn: sqlite3.Connection, user_id: str, team_id: str) -> tuple[Team, Championship]:
        team = self._team_repo.get(conn, team_id)
        if team is None:
            raise NotFoundError(f"Team not found: {team_id}")
        champ = self.get_owned_championship(conn, user_id, team.championship_id)
        return team, champ

    def _get_athlete(self, conn: sqlite3.Connection, athlete_id: str) -> Athlete:
        athlete = self._athlete_repo.get(conn, athlete_id)
        if athlete is None:
            raise NotFoundError(f"Athlete not found: {athlete_id}")
        return athlete

    def _get_match(self, conn: sqlite3.Connection, match_id: str) -> ChampionshipMatch:
        match = self._match_repo.get(conn, match_id)
        if match is None:
            raise NotFoundError(f"Match not found: {match_id}")
        return match

    def _get_user(self, conn: sqlite3.Connection, user_id: str) -> User:
        user = self._user_repo.get(conn, user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}")
        return user

    @staticmethod
    def is_active(champ: Championship, today: date | None = None) -> bool:
        """Active until its end date has passed. No end date means active."""
        return _end_date_active(champ.end_date, today)

    def _check_active_limit(
        self, conn: sqlite3.Connection, user: User, exclude_id: str | None = None
    ) -> None:
        """Raise PlanLimitError when the user already has the plan's maximum of active championships."""
        plan = get_plan(user.plan)
        if plan.max_active_championships is None:
            return
        active = [
            c for c in self._champ_repo.list_by_user(conn, user.id)
            if c.id != exclude_id and self.is_active(c)
        ]
        if len(active) >= plan.max_active_championships:
            raise PlanLimitError(
                f"Plan {plan.name} allows {plan.max_active_championships} active championship(s)"
            )

    # ---------- Championships ----------

    def list_championships(self, conn: sqlite3.Connection, user_id: str) -> list[Championship]:
        return self._champ_repo.list_by_user(conn, user_id)

    def create_championship(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        fields: dict[str, Any],
        config: ChampionshipConfig | None = None,
    ) -> Championship:
        user = self._get_user(conn, user_id)
        if not (fields.get("name") or "").strip():
            raise ChampionshipError("Championship name is required")
        if _end_date_active(fields.get("end_date")):
            self._check_active_limit(conn, user)
        config = config or ChampionshipConfig()
        if not config.organizer_email:
            config.organizer_email = user.email
        _validate_config(config)
        clean = {k: fields.get(k) for k in _CHAMPIONSHIP_FIELDS if k in fields}
        clean["name"] = clean["name"].strip()
        champ = self._champ_repo.create(conn, user_id, clean, config)
        logger.info("Championship %s created by %s", champ.id, user_id)
        return champ

    def update_championship(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        championship_id: str,
        fields: dict[str, Any],
        config: ChampionshipConfig | None = None,
    ) -> Championship:
        champ = self.get_owned_championship(conn, user_id, championship_id)
        clean = {k: fields[k] for k in _CHAMPIONSHIP_FIELDS if k in fields}
        if "end_date" in clean and not self.is_active(champ) and _end_date_active(clean["end_date"]):
            # Reopening a finished championship takes an active slot again.
            self._check_active_limit(conn, self._get_user(conn, user_id), exclude_id=championship_id)
        if "name" in clean:
            if not (clean["name"] or "").strip():
                raise ChampionshipError("Championship name is required")
            clean["name"] = clean["name"].strip()
        if config is not None:
            _validate_config(config)
        self._champ_repo.update(conn, championship_id, clean, config)
        return self.get_championship(conn, championship_id)

    def delete_championship(
        self, conn: sqlite3.Connection, user_id: str, championship_id: str, confirm_name: str | None
    ) -> None:
        """The organizer must type the exact championship name to delete it."""
        champ = self.get_owned_championship(conn, user_id, championship_id)
        if confirm_name != champ.name:
            raise ConfirmationRequiredError(
                "Confirmation name does not match; deletion cancelled"
            )
        self._champ_repo.delete(conn, championship_id)
        logger.info("Championship %s deleted by %s", championship_id, user_id)

    # ---------- Teams ----------

    def list_teams(self, conn: sqlite3.Connection, championship_id: str) -> list[Team]:
        self.get_championship(conn, championship_id)
        return self._team_repo.list_by_championship(conn, championship_id)

    def add_team(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        championship_id: str,
        name: str,
        coach: str = "",
        contact_phone: str = "",
        logo_url: str | None = None,
    ) -> Team:
        self.get_owned_championship(conn, user_id, championship_id)
        name = (name or "").strip()
        if not name:
            raise ChampionshipError("Team name is required")
        if self._team_repo.get_by_name(conn, championship_id, name) is not None:
            raise DuplicateTeamError(f"Team '{name}' is already registered in this championship")
        plan = get_plan(self._get_user(conn, user_id).plan)
        if plan.max_teams_per_championship is not None:
            if self._team_repo.count_by_championship(conn, championship_id) >= plan.max_teams_per_championship:
                raise PlanLimitError(
                    f"Plan {plan.name} allows up to {plan.max_teams_per_championship} teams per championship"
                )
        return self._team_repo.create(
            conn, championship_id, user_id, name,
            coach=coach or "", contact_phone=contact_phone or "", logo_url=logo_url,
        )

    def remove_team(self, conn: sqlite3.Connection, user_id: str, team_id: str) -> None:
        """Blocked while stored fixtures reference the team."""
        self.get_owned_team(conn, user_id, team_id)
        if self._match_repo.count_for_team(conn, team_id) > 0:
            raise ScheduleConflictError(
                "Team has scheduled matches; clear or regenerate the schedule first"
            )
        self._team_repo.delete(conn, team_id)

    # ---------- Sponsors ----------

    def list_sponsors(self, conn: sqlite3.Connection, team_id: str) -> list[TeamSponsor]:
        if self._team_repo.get(conn, team_id) is None:
            raise NotFoundError(f"Team not found: {team_id}")
        return self._sponsor_repo.list_by_team(conn, team_id)

    def add_sponsor(
        self, conn: sqlite3.Connection, user_id: str, team_id: str, name: str, logo_url: str | None = None
    ) -> TeamSponsor:
        self.get_owned_team(conn, user_id, team_id)
        name = (name or "").strip()
        if not name:
            raise ChampionshipError("Sponsor name is required")
        return self._sponsor_repo.create(conn, team_id, name, logo_url)

    def remove_sponsor(self, conn: sqlite3.Connection, user_id: str, sponsor_id: str) -> None:
        sponsor = self._sponsor_repo.get(conn, sponsor_id)
        if sponsor is None:
            raise NotFoundError(f"Sponsor not found: {sponsor_id}")
        self.get_owned_team(conn, user_id, sponsor.team_id)
        self._sponsor_repo.delete(conn, sponsor_id)

    # ---------- Athletes ----------

    def list_athletes(self, conn: sqlite3.Connection, team_id: str) -> list[Athlete]:
        if self._team_repo.get(conn, team_id) is None:
            raise NotFoundError(f"Team not found: {team_id}")
        return self._athlete_repo.list_by_team(conn, team_id)

    def add_athlete(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        team_id: str,
        name: str,
        shirt_number: int | None = None,
        position: str | None = None,
        document: str | None = None,
    ) -> Athlete:
        self.get_owned_team(conn, user_id, team_id)
        name = (name or "").strip()
        if not name:
            raise ChampionshipError("Athlete name is required")
        _validate_shirt_number(shirt_number)
        return self._athlete_repo.create(
            conn, team_id, name, shirt_number=shirt_number, position=position, document=document
        )

    def update_athlete(
        self, conn: sqlite3.Connection, user_id: str, athlete_id: str, fields: dict[str, Any]
    ) -> Athlete:
        athlete = self._get_athlete(conn, athlete_id)
        self.get_owned_team(conn, user_id, athlete.team_id)
        if "name" in fields:
            if not (fields["name"] or "").strip():
                raise ChampionshipError("Athlete name is required")
            fields = {**fields, "name": fields["name"].strip()}
        if "shirt_number" in fields:
            _validate_shirt_number(fields["shirt_number"])
        self._athlete_repo.update(conn, athlete_id, fields)
        return self._get_athlete(conn, athlete_id)

    def remove_athlete(self, conn: sqlite3.Connection, user_id: str, athlete_id: str) -> None:
        athlete = self._get_athlete(conn, athlete_id)
        self.get_owned_team(conn, user_id, athlete.team_id)
        self._athlete_repo.delete(conn, athlete_id)

    # ---------- Schedule lifecycle ----------

    def _build_proposal(self, conn: sqlite3.Connection, championship_id: str, legs: int) -> ScheduleProposal:
        if legs not in _VALID_LEGS:
            raise ChampionshipError(f"legs must be one of {_VALID_LEGS} (got {legs})")
        team_ids = [t.id for t in self._team_repo.list_by_championship(conn, championship_id)]
        # Raises InvalidParticipantCount for fewer than two teams.
        fixtures = generate_schedule(team_ids) if legs == 1 else generate_double_schedule(team_ids)
        resting = resting_participants(team_ids)
        if legs == 2 and resting:
            first_leg_rounds = len(team_ids)
            resting.update({r + first_leg_rounds: tid for r, tid in list(resting.items())})
        existing, completed = self._match_repo.count_by_championship(conn, championship_id)
        return ScheduleProposal(
            championship_id=championship_id,
            legs=legs,
            team_ids=team_ids,
            fixtures=fixtures,
            resting=resting,
            fingerprint=_fingerprint(team_ids, legs),
            existing_fixtures=existing,
            existing_results=completed,
            rows=fixtures_to_rows(fixtures),
        )

    def propose_schedule(
        self, conn: sqlite3.Connection, user_id: str, championship_id: str, legs: int = 1
    ) -> ScheduleProposal:
        """Compute the schedule a confirm would store. Writes nothing."""
        self.get_owned_championship(conn, user_id, championship_id)
        return self._build_proposal(conn, championship_id, legs)

    def confirm_schedule(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        championship_id: str,
        fingerprint: str,
        legs: int = 1,
    ) -> list[ChampionshipMatch]:
        """
        Replace every stored fixture (and recorded result) with a freshly generated
        schedule in one transaction. fingerprint must come from propose_schedule
        for the current team list.
        """
        self.get_owned_championship(conn, user_id, championship_id)
        proposal = self._build_proposal(conn, championship_id, legs)
        if proposal.fingerprint != fingerprint:
            logger.warning(
                "Stale schedule proposal for championship %s (teams changed since proposal)",
                championship_id,
            )
            raise StaleProposalError(
                "Team list changed since the schedule was proposed; request a new proposal"
            )
        inserted = self._match_repo.replace_for_championship(conn, championship_id, proposal.rows)
        logger.info(
            "Schedule replaced for championship %s: %d fixtures over %d rounds (%d previous fixtures, %d results discarded)",
            championship_id, inserted, proposal.rounds,
            proposal.existing_fixtures, proposal.existing_results,
        )
        return self._match_repo.list_by_championship(conn, championship_id)

    def clear_schedule(self, conn: sqlite3.Connection, user_id: str, championship_id: str) -> int:
        self.get_owned_championship(conn, user_id, championship_id)
        removed = self._match_repo.delete_for_championship(conn, championship_id)
        logger.info("Schedule cleared for championship %s (%d fixtures)", championship_id, removed)
        return removed

    def list_matches(self, conn: sqlite3.Connection, championship_id: str) -> list[ChampionshipMatch]:
        self.get_championship(conn, championship_id)
        return self._match_repo.list_by_championship(conn, championship_id)

    # ---------- Results ----------

    def _get_owned_match(self, conn: sqlite3.Connection, user_id: str, match_id: str) -> ChampionshipMatch:
        match = self._get_match(conn, match_id)
        self.get_owned_championship(conn, user_id, match.championship_id)
        return match

    def record_result(
        self, conn: sqlite3.Connection, user_id: str, match_id: str, home_score: int, away_score: int
    ) -> ChampionshipMatch:
        self._get_owned_match(conn, user_id, match_id)
        for score in (home_score, away_score):
            if isinstance(score, bool) or not isinstance(score, int) or score < 0:
                raise InvalidResultError("Scores must be non-negative integers")
        self._match_repo.update_result(conn, match_id, home_score, away_score)
        return self._get_match(conn, match_id)

    def clear_result(self, conn: sqlite3.Connection, user_id: str, match_id: str) -> ChampionshipMatch:
        self._get_owned_match(conn, user_id, match_id)
        self._match_repo.reset_to_scheduled(conn, match_id)
        return self._get_match(conn, match_id)

    # ---------- Standings & public view ----------

    def standings(self, conn: sqlite3.Connection, championship_id: str) -> list[StandingRow]:
        champ = self.get_championship(conn, championship_id)
        teams = self._team_repo.list_by_championship(conn, championship_id)
        matches = self._match_repo.list_by_championship(conn, championship_id)
        return compute_standings([(t.id, t.name) for t in teams], matches, champ.config)

    def public_view(self, conn: sqlite3.Connection, championship_id: str) -> dict[str, Any]:
        """
        Read-only page data: summary, teams with sponsors and rosters, fixtures by round,
        and standings when the organizer shows stats publicly.
        """
        champ = self.get_championship(conn, championship_id)
        cfg = champ.config
        teams = self._team_repo.list_by_championship(conn, championship_id)
        names = {t.id: t.name for t in teams}
        matches = self._match_repo.list_by_championship(conn, championship_id)

        rounds: dict[int, list[dict[str, Any]]] = {}
        for m in matches:
            d = m.to_dict()
            d["home_team_name"] = names.get(m.home_team_id)
            d["away_team_name"] = names.get(m.away_team_id)
            rounds.setdefault(m.round, []).append(d)

        out: dict[str, Any] = {
            "id": champ.id,
            "name": champ.name,
            "sport": champ.sport,
            "type": champ.type,
            "start_date": champ.start_date,
            "end_date": champ.end_date,
            "location": champ.location,
            "description": champ.description,
            "logo_url": champ.logo_url,
            "cover_url": champ.cover_url,
            "rules_text": cfg.rules_text,
            "prizes": dict(cfg.prizes),
            "contacts": {
                "phone": cfg.organizer_phone,
                "email": cfg.organizer_email,
                "site": cfg.organizer_site,
                "instagram": cfg.organizer_insta,
                "facebook": cfg.organizer_face,
            },
            "public_inscription": cfg.public_inscription,
            "allow_comments": cfg.allow_comments,
            "teams": [
                {
                    **t.to_dict(),
                    "sponsors": [s.to_dict() for s in self._sponsor_repo.list_by_team(conn, t.id)],
                    "athletes": [
                        a.to_dict(include_document=False)
                        for a in self._athlete_repo.list_by_team(conn, t.id)
                    ],
                }
                for t in teams
            ],
            "rounds": [
                {"round": r, "matches": rounds[r]} for r in sorted(rounds)
            ],
        }
        for team in out["teams"]:
            team.pop("contact_phone", None)
        if cfg.show_stats_publicly:
            out["standings"] = [
                row.to_dict()
                for row in compute_standings([(t.id, t.name) for t in teams], matches, cfg)
            ]
        return out


def _end_date_active(end_date: str | None, today: date | None = None) -> bool:
    if not end_date:
        return True
    today = today or date.today()
    try:
        return date.fromisoformat(end_date[:10]) >= today
    except ValueError:
        return True


def _validate_config(config: ChampionshipConfig) -> None:
    valid = {tb.value for tb in TieBreaker}
    unknown = [tb for tb in config.tie_breakers if tb not in valid]
    if unknown:
        raise ChampionshipError(
            f"Unknown tie-breaker(s): {', '.join(unknown)}. Must be one of: {', '.join(sorted(valid))}"
        )
    for name in ("points_win", "points_draw", "points_loss"):
        if getattr(config, name) < 0:
            raise ChampionshipError(f"{name} must be non-negative")


def _validate_shirt_number(shirt_number: int | None) -> None:
    if shirt_number is not None and not (0 <= shirt_number <= 999):
        raise ChampionshipError("Shirt number must be between 0 and 999")
