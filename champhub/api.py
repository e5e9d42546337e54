"""
REST API for the championship management backend.
Thin wrappers around domain logic and persistence.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Generator

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

# Ensure project root on path
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from champhub import config
from champhub.auth import (
    MIN_PASSWORD_LENGTH,
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)
from champhub.models import PLANS, ChampionshipConfig, Championship, DEFAULT_TIE_BREAKERS
from champhub.persistence import get_connection, init_db, UserRepository
from champhub.persistence.db import get_db_path
from champhub.services.championship_service import (
    ChampionshipError,
    ChampionshipService,
    ConfirmationRequiredError,
    DuplicateTeamError,
    NotFoundError,
    PermissionDeniedError,
    PlanLimitError,
    ScheduleConflictError,
    StaleProposalError,
)
from champhub.services.scheduling import InvalidParticipantCount

logger = logging.getLogger(__name__)


@contextmanager
def db_conn() -> Generator:
    """Yield a DB connection, ensure close on exit."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def domain_errors() -> Generator[None, None, None]:
    """Translate service exceptions to HTTP errors."""
    try:
        yield
    except InvalidParticipantCount as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except (DuplicateTeamError, StaleProposalError, ScheduleConflictError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (PlanLimitError, ConfirmationRequiredError, ChampionshipError) as e:
        raise HTTPException(status_code=400, detail=str(e))


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_db(db_path=get_db_path())
    logger.info("Database ready at %s", get_db_path())
    yield


# ---------- FastAPI app ----------
app = FastAPI(
    title="Championship Hub API",
    description="Backend for championship management and public standings",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

security = HTTPBearer(auto_error=False)
service = ChampionshipService()


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ---------- Request/Response models ----------


class SignupRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    name: str | None = Field(None, max_length=200)
    plan: str = Field("Starter", description="Starter, Pro or Elite")


class LoginRequest(BaseModel):
    email: str
    password: str


class Prizes(BaseModel):
    first: str = ""
    second: str = ""
    third: str = ""


class ChampionshipConfigBody(BaseModel):
    organizer_phone: str = ""
    organizer_email: str = ""
    organizer_site: str = ""
    organizer_insta: str = ""
    organizer_face: str = ""
    rules_text: str = ""
    points_win: int = Field(3, ge=0)
    points_draw: int = Field(1, ge=0)
    points_loss: int = Field(0, ge=0)
    suspension_yellow: int = Field(3, ge=0)
    suspension_red: int = Field(1, ge=0)
    suspension_blue: int = Field(0, ge=0)
    tie_breakers: list[str] = Field(default_factory=lambda: list(DEFAULT_TIE_BREAKERS))
    prizes: Prizes = Field(default_factory=Prizes)
    public_inscription: bool = False
    show_stats_publicly: bool = True
    allow_comments: bool = True

    def to_config(self) -> ChampionshipConfig:
        data = self.model_dump()
        return ChampionshipConfig.from_dict(data)


class ChampionshipRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    sport: str = "Futebol"
    type: str = "Fase de Grupos + Mata-mata"
    start_date: str | None = None
    end_date: str | None = None
    location: str = ""
    description: str = ""
    logo_url: str | None = None
    cover_url: str | None = None
    config: ChampionshipConfigBody | None = None


class ChampionshipUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    sport: str | None = None
    type: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    location: str | None = None
    description: str | None = None
    logo_url: str | None = None
    cover_url: str | None = None
    config: ChampionshipConfigBody | None = None


class TeamRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    coach: str = ""
    contact_phone: str = ""
    logo_url: str | None = None


class SponsorRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    logo_url: str | None = None


class AthleteRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    shirt_number: int | None = Field(None, ge=0, le=999)
    position: str | None = None
    document: str | None = None


class AthleteUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    shirt_number: int | None = Field(None, ge=0, le=999)
    position: str | None = None
    document: str | None = None


class ScheduleProposalRequest(BaseModel):
    legs: int = Field(1, ge=1, le=2, description="1 = single round-robin, 2 = home and away")


class ScheduleConfirmRequest(BaseModel):
    fingerprint: str = Field(..., min_length=1)
    legs: int = Field(1, ge=1, le=2)


class ResultRequest(BaseModel):
    home_score: int = Field(..., ge=0)
    away_score: int = Field(..., ge=0)


# ---------- Auth dependencies ----------


def _get_current_user_id(credentials: HTTPAuthorizationCredentials | None = Depends(security)) -> str | None:
    """Return user_id from JWT or None if no/invalid token."""
    if credentials is None:
        return None
    return decode_token(credentials.credentials)


def _require_user_id(user_id: str | None = Depends(_get_current_user_id)) -> str:
    if not user_id:
        raise HTTPException(status_code=401, detail="Login required")
    return user_id


def _championship_out(champ: Championship, team_count: int | None = None) -> dict[str, Any]:
    out = champ.to_dict()
    out["active"] = ChampionshipService.is_active(champ)
    if team_count is not None:
        out["team_count"] = team_count
    return out


# ---------- Site & auth ----------


@app.get("/site")
def site_info() -> dict[str, Any]:
    """Landing page or the coming-soon gate, plus the pricing plans."""
    return {
        "mode": "construction" if config.MAINTENANCE_MODE else "landing",
        "plans": [p.to_dict() for p in PLANS.values()],
    }


@app.get("/plans")
def list_plans() -> dict[str, Any]:
    return {"plans": [p.to_dict() for p in PLANS.values()]}


@app.post("/signup")
def signup(req: SignupRequest) -> dict[str, Any]:
    """Create an organizer account. Passwords hashed, never stored plain."""
    if "@" not in req.email:
        raise HTTPException(status_code=400, detail="A valid email is required")
    if req.plan not in PLANS:
        raise HTTPException(status_code=400, detail=f"plan must be one of: {', '.join(PLANS)}")
    with db_conn() as conn:
        user_repo = UserRepository()
        if user_repo.get_by_email(conn, req.email):
            raise HTTPException(status_code=400, detail="Email already registered")
        user = user_repo.create(
            conn, req.email, hash_password(req.password),
            name=req.name, plan=req.plan,
        )
        token = create_access_token(user.id)
        return {"user_id": user.id, "email": user.email, "plan": user.plan, "token": token}


@app.post("/login")
def login(req: LoginRequest) -> dict[str, Any]:
    """Returns JWT token."""
    with db_conn() as conn:
        user = UserRepository().get_by_email(conn, req.email)
        if user is None or not verify_password(req.password, user.password_hash):
            raise HTTPException(status_code=401, detail="Invalid email or password")
        token = create_access_token(user.id)
        return {"user_id": user.id, "email": user.email, "plan": user.plan, "token": token}


@app.get("/me")
def me(user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    with db_conn() as conn:
        user = UserRepository().get(conn, user_id)
        if user is None:
            raise HTTPException(status_code=401, detail="Account no longer exists")
        return user.to_dict()


# ---------- Championships ----------


@app.get("/championships")
def list_championships(user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    """The organizer's championships, newest first."""
    with db_conn() as conn:
        champs = service.list_championships(conn, user_id)
        return {"championships": [_championship_out(c) for c in champs]}


@app.post("/championships")
def create_championship(req: ChampionshipRequest, user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    fields = req.model_dump(exclude={"config"})
    cfg = req.config.to_config() if req.config is not None else None
    with db_conn() as conn, domain_errors():
        champ = service.create_championship(conn, user_id, fields, cfg)
        return _championship_out(champ, team_count=0)


@app.get("/championships/{championship_id}")
def get_championship(championship_id: str, user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    with db_conn() as conn, domain_errors():
        champ = service.get_owned_championship(conn, user_id, championship_id)
        teams = service.list_teams(conn, championship_id)
        return _championship_out(champ, team_count=len(teams))


@app.put("/championships/{championship_id}")
def update_championship(
    championship_id: str,
    req: ChampionshipUpdateRequest,
    user_id: str = Depends(_require_user_id),
) -> dict[str, Any]:
    fields = req.model_dump(exclude={"config"}, exclude_unset=True)
    cfg = req.config.to_config() if req.config is not None else None
    with db_conn() as conn, domain_errors():
        champ = service.update_championship(conn, user_id, championship_id, fields, cfg)
        return _championship_out(champ)


@app.delete("/championships/{championship_id}")
def delete_championship(
    championship_id: str,
    confirm_name: str | None = Query(None, description="Must equal the championship name"),
    user_id: str = Depends(_require_user_id),
) -> dict[str, Any]:
    """Deletes the championship with its teams, athletes, sponsors and matches."""
    with db_conn() as conn, domain_errors():
        service.delete_championship(conn, user_id, championship_id, confirm_name)
        return {"id": championship_id, "deleted": True}


# ---------- Teams ----------


@app.get("/championships/{championship_id}/teams")
def list_teams(championship_id: str, user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    with db_conn() as conn, domain_errors():
        service.get_owned_championship(conn, user_id, championship_id)
        teams = service.list_teams(conn, championship_id)
        return {"teams": [t.to_dict() for t in teams]}


@app.post("/championships/{championship_id}/teams")
def add_team(championship_id: str, req: TeamRequest, user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    with db_conn() as conn, domain_errors():
        team = service.add_team(
            conn, user_id, championship_id, req.name,
            coach=req.coach, contact_phone=req.contact_phone, logo_url=req.logo_url,
        )
        return team.to_dict()


@app.delete("/teams/{team_id}")
def remove_team(team_id: str, user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    with db_conn() as conn, domain_errors():
        service.remove_team(conn, user_id, team_id)
        return {"id": team_id, "deleted": True}


# ---------- Sponsors ----------


@app.get("/teams/{team_id}/sponsors")
def list_sponsors(team_id: str) -> dict[str, Any]:
    with db_conn() as conn, domain_errors():
        return {"sponsors": [s.to_dict() for s in service.list_sponsors(conn, team_id)]}


@app.post("/teams/{team_id}/sponsors")
def add_sponsor(team_id: str, req: SponsorRequest, user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    with db_conn() as conn, domain_errors():
        return service.add_sponsor(conn, user_id, team_id, req.name, req.logo_url).to_dict()


@app.delete("/sponsors/{sponsor_id}")
def remove_sponsor(sponsor_id: str, user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    with db_conn() as conn, domain_errors():
        service.remove_sponsor(conn, user_id, sponsor_id)
        return {"id": sponsor_id, "deleted": True}


# ---------- Athletes ----------


@app.get("/teams/{team_id}/athletes")
def list_athletes(team_id: str, user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    with db_conn() as conn, domain_errors():
        service.get_owned_team(conn, user_id, team_id)
        return {"athletes": [a.to_dict() for a in service.list_athletes(conn, team_id)]}


@app.post("/teams/{team_id}/athletes")
def add_athlete(team_id: str, req: AthleteRequest, user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    with db_conn() as conn, domain_errors():
        athlete = service.add_athlete(
            conn, user_id, team_id, req.name,
            shirt_number=req.shirt_number, position=req.position, document=req.document,
        )
        return athlete.to_dict()


@app.put("/athletes/{athlete_id}")
def update_athlete(
    athlete_id: str, req: AthleteUpdateRequest, user_id: str = Depends(_require_user_id)
) -> dict[str, Any]:
    with db_conn() as conn, domain_errors():
        athlete = service.update_athlete(conn, user_id, athlete_id, req.model_dump(exclude_unset=True))
        return athlete.to_dict()


@app.delete("/athletes/{athlete_id}")
def remove_athlete(athlete_id: str, user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    with db_conn() as conn, domain_errors():
        service.remove_athlete(conn, user_id, athlete_id)
        return {"id": athlete_id, "deleted": True}


# ---------- Schedule ----------


@app.post("/championships/{championship_id}/schedule/proposal")
def propose_schedule(
    championship_id: str,
    req: ScheduleProposalRequest | None = None,
    user_id: str = Depends(_require_user_id),
) -> dict[str, Any]:
    """
    Preview the round-robin schedule. Nothing is stored; confirming with the returned
    fingerprint replaces every stored fixture and result.
    """
    legs = req.legs if req else 1
    with db_conn() as conn, domain_errors():
        proposal = service.propose_schedule(conn, user_id, championship_id, legs=legs)
        names = {t.id: t.name for t in service.list_teams(conn, championship_id)}
        return {
            "championship_id": championship_id,
            "legs": proposal.legs,
            "rounds": proposal.rounds,
            "fingerprint": proposal.fingerprint,
            "destructive": proposal.destructive,
            "existing_fixtures": proposal.existing_fixtures,
            "existing_results": proposal.existing_results,
            "fixtures": [
                {
                    **row,
                    "home_team_name": names.get(row["home_team_id"]),
                    "away_team_name": names.get(row["away_team_id"]),
                }
                for row in proposal.rows
            ],
            "resting": [
                {"round": r, "team_id": tid, "team_name": names.get(tid)}
                for r, tid in sorted(proposal.resting.items())
            ],
        }


@app.put("/championships/{championship_id}/schedule")
def confirm_schedule(
    championship_id: str,
    req: ScheduleConfirmRequest,
    user_id: str = Depends(_require_user_id),
) -> dict[str, Any]:
    """Atomically replace the stored schedule with the confirmed proposal."""
    with db_conn() as conn, domain_errors():
        matches = service.confirm_schedule(conn, user_id, championship_id, req.fingerprint, legs=req.legs)
        return {
            "championship_id": championship_id,
            "replaced": True,
            "matches": [m.to_dict() for m in matches],
        }


@app.delete("/championships/{championship_id}/schedule")
def clear_schedule(championship_id: str, user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    with db_conn() as conn, domain_errors():
        removed = service.clear_schedule(conn, user_id, championship_id)
        return {"championship_id": championship_id, "removed": removed}


@app.get("/championships/{championship_id}/matches")
def list_matches(championship_id: str, user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    with db_conn() as conn, domain_errors():
        service.get_owned_championship(conn, user_id, championship_id)
        return {"matches": [m.to_dict() for m in service.list_matches(conn, championship_id)]}


@app.put("/matches/{match_id}/result")
def record_result(match_id: str, req: ResultRequest, user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    with db_conn() as conn, domain_errors():
        return service.record_result(conn, user_id, match_id, req.home_score, req.away_score).to_dict()


@app.delete("/matches/{match_id}/result")
def clear_result(match_id: str, user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    with db_conn() as conn, domain_errors():
        return service.clear_result(conn, user_id, match_id).to_dict()


@app.get("/championships/{championship_id}/standings")
def get_standings(championship_id: str, user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    """Organizer view: always available regardless of the public stats toggle."""
    with db_conn() as conn, domain_errors():
        service.get_owned_championship(conn, user_id, championship_id)
        rows = service.standings(conn, championship_id)
        return {"championship_id": championship_id, "standings": [r.to_dict() for r in rows]}


# ---------- Public ----------


@app.get("/public/championships/{championship_id}")
def public_championship(championship_id: str) -> dict[str, Any]:
    """Read-only page: standings, matches by round, teams with sponsors and rosters."""
    with db_conn() as conn, domain_errors():
        return service.public_view(conn, championship_id)


# ---------- Run with: uvicorn champhub.api:app --reload ----------
