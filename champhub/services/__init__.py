"""
Service layer: domain logic, scheduling, standings.
No persistence in scheduling or standings; championship_service orchestrates persistence.
"""
from .scheduling import (
    BYE,
    Fixture,
    InvalidParticipantCount,
    generate_double_schedule,
    generate_schedule,
)
from .championship_service import (
    ChampionshipError,
    ChampionshipService,
    ConfirmationRequiredError,
    DuplicateTeamError,
    InvalidResultError,
    NotFoundError,
    PermissionDeniedError,
    PlanLimitError,
    ScheduleConflictError,
    ScheduleProposal,
    StaleProposalError,
)

__all__ = [
    "BYE",
    "Fixture",
    "InvalidParticipantCount",
    "generate_schedule",
    "generate_double_schedule",
    "ChampionshipService",
    "ChampionshipError",
    "ConfirmationRequiredError",
    "DuplicateTeamError",
    "InvalidResultError",
    "NotFoundError",
    "PermissionDeniedError",
    "PlanLimitError",
    "ScheduleConflictError",
    "ScheduleProposal",
    "StaleProposalError",
]
