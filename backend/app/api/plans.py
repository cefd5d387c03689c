"""Plan endpoints: history, accepted previews, generation and feedback."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.api.auth import CurrentUser, get_current_user
from backend.app.api.deps import get_db_session, get_generation_service
from backend.app.api.notes import get_owned_note
from backend.app.db.models import Plan
from backend.app.generation.errors import ForbiddenError, NotFoundError
from backend.app.generation.prompt import PROMPT_VERSION
from backend.app.generation.service import PlanGenerationService
from backend.app.models import (
    AcceptPlanCommand,
    FeedbackCommand,
    FeedbackResponse,
    GeneratePlanResponse,
    PlanDTO,
    PlanListItem,
    PlansListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["plans"])

PLAN_CACHE_CONTROL = "private, max-age=300"


def _get_owned_plan(session: Session, plan_id: UUID, user: CurrentUser) -> Plan:
    plan = session.get(Plan, plan_id)
    if plan is None:
        raise NotFoundError("plan", plan_id)
    if plan.note.user_id != user.user_id:
        raise ForbiddenError("You do not have permission to access this plan")
    return plan


@router.get("/notes/{note_id}/plans", response_model=PlansListResponse)
def list_plans(
    note_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> PlansListResponse:
    """List the plans of a note, newest first."""
    get_owned_note(session, note_id, current_user)

    plans = session.scalars(
        select(Plan)
        .where(Plan.note_id == note_id)
        .order_by(Plan.created_at.desc(), Plan.id)
    ).all()
    items = [PlanListItem.model_validate(plan) for plan in plans]
    return PlansListResponse(plans=items, total=len(items))


@router.post(
    "/notes/{note_id}/plans",
    response_model=PlanListItem,
    status_code=status.HTTP_201_CREATED,
)
def accept_plan(
    note_id: UUID,
    command: AcceptPlanCommand,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> PlanListItem:
    """Save a previewed plan the user accepted.

    Accepted previews carry the current prompt version but no prompt text.
    """
    get_owned_note(session, note_id, current_user)

    plan = Plan(
        note_id=note_id,
        content=command.content,
        prompt_text=None,
        prompt_version=PROMPT_VERSION,
    )
    session.add(plan)
    session.commit()
    session.refresh(plan)

    response.headers["Location"] = f"/plans/{plan.id}"
    return PlanListItem.model_validate(plan)


@router.post(
    "/notes/{note_id}/generate-plan",
    response_model=GeneratePlanResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_plan(
    note_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    service: PlanGenerationService = Depends(get_generation_service),
) -> GeneratePlanResponse:
    """Generate an itinerary for a note with the AI provider.

    Counts against the caller's monthly generation quota.

    Returns:
        The stored plan with remaining quota and the quota reset time
    """
    result = await service.generate_plan(note_id, current_user.user_id)
    response.headers["Location"] = f"/plans/{result.id}"
    return result


@router.get("/plans/{plan_id}", response_model=PlanDTO)
def get_plan(
    plan_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> PlanDTO:
    """Get a plan with a summary of its note."""
    plan = _get_owned_plan(session, plan_id, current_user)
    response.headers["Cache-Control"] = PLAN_CACHE_CONTROL
    return PlanDTO.model_validate(plan)


@router.post("/plans/{plan_id}/feedback", response_model=FeedbackResponse)
def submit_feedback(
    plan_id: UUID,
    command: FeedbackCommand,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> FeedbackResponse:
    """Rate a plan with thumbs up (1) or down (-1)."""
    plan = _get_owned_plan(session, plan_id, current_user)
    plan.feedback = command.feedback
    session.commit()

    logger.info(
        f"Feedback {command.feedback} stored for plan {plan_id}",
        extra={"user_id": str(current_user.user_id)},
    )
    return FeedbackResponse(
        id=plan.id, feedback=command.feedback, message="Feedback saved successfully"
    )
