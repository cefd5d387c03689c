"""ORM models for database tables."""

from .generation_log import GenerationLog
from .note import Note
from .plan import Plan
from .profile import Profile

__all__ = [
    "GenerationLog",
    "Note",
    "Plan",
    "Profile",
]
