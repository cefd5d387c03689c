"""Profile endpoints for the current user."""

import logging
from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.auth import CurrentUser, get_current_user
from backend.app.api.deps import get_app_settings, get_db_session
from backend.app.config import Settings
from backend.app.db.models import Profile
from backend.app.generation.errors import NotFoundError
from backend.app.models import ProfileDTO, UpdateProfileCommand

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])


def _to_dto(profile: Profile) -> ProfileDTO:
    return ProfileDTO.model_validate(profile)


@router.get("", response_model=ProfileDTO)
def get_profile(
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> ProfileDTO:
    """Get the caller's profile."""
    profile = session.get(Profile, current_user.user_id)
    if profile is None:
        raise NotFoundError("profile", current_user.user_id)
    return _to_dto(profile)


@router.put("", response_model=ProfileDTO)
def upsert_profile(
    command: UpdateProfileCommand,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> ProfileDTO:
    """Create or replace the caller's travel preferences.

    Quota fields are never touched here; a new profile starts with an empty
    counter and a fresh window.
    """
    profile = session.get(Profile, current_user.user_id)
    if profile is None:
        profile = Profile(
            id=current_user.user_id,
            generation_count=0,
            generation_limit_reset_at=datetime.now(UTC)
            + timedelta(days=settings.generation_window_days),
        )
        session.add(profile)
        logger.info(f"Profile created for user {current_user.user_id}")

    for field, value in command.model_dump().items():
        setattr(profile, field, value)

    session.commit()
    session.refresh(profile)
    return _to_dto(profile)
