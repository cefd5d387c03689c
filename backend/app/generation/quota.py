"""Rolling generation quota kept on the profile row.

The window is lazy: it is only checked and rolled forward when a generation
is attempted, never by a background job.
"""

import logging
from datetime import datetime, timedelta
from uuid import UUID

from backend.app.db.models import Profile
from backend.app.db.store import Store
from backend.app.db.types import as_utc
from backend.app.generation.errors import GenerationLimitError

logger = logging.getLogger(__name__)

GENERATION_LIMIT = 5
GENERATION_WINDOW = timedelta(days=30)


def ensure_quota_available(
    store: Store,
    profile: Profile,
    now: datetime,
    *,
    limit: int = GENERATION_LIMIT,
    window: timedelta = GENERATION_WINDOW,
) -> None:
    """Check the profile's quota, resetting an expired window first.

    Args:
        store: Store used to persist a reset.
        profile: Profile as loaded for this attempt.
        now: Current time (aware UTC).
        limit: Generations allowed per window.
        window: Window length.

    Raises:
        GenerationLimitError: If the window is current and the limit is reached.
    """
    reset_at = as_utc(profile.generation_limit_reset_at)
    if now >= reset_at:
        next_reset = now + window
        store.update_profile(
            profile.id, generation_count=0, generation_limit_reset_at=next_reset
        )
        logger.info(
            f"Generation quota reset for profile {profile.id}",
            extra={"user_id": str(profile.id), "next_reset_at": next_reset.isoformat()},
        )
        return

    if profile.generation_count >= limit:
        raise GenerationLimitError(limit, reset_at)


def increment_generation_count(store: Store, user_id: UUID) -> Profile:
    """Add one generation to the profile's counter.

    Reads the current value and writes value + 1; two concurrent attempts can
    both read the same value and lose one increment.

    Returns:
        The profile as stored after the increment.
    """
    profile = store.get_profile(user_id)
    if profile is None:
        raise LookupError(f"Profile {user_id} disappeared during generation")
    store.update_profile(user_id, generation_count=profile.generation_count + 1)
    updated = store.get_profile(user_id)
    return updated if updated is not None else profile


def remaining_generations(profile: Profile, limit: int = GENERATION_LIMIT) -> int:
    return max(limit - profile.generation_count, 0)
