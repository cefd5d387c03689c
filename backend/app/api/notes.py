"""Trip note CRUD endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backend.app.api.auth import CurrentUser, get_current_user
from backend.app.api.deps import get_db_session
from backend.app.db.models import Note, Plan
from backend.app.generation.errors import (
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from backend.app.models import (
    NoteCommand,
    NoteDTO,
    NoteListItem,
    NotesListResponse,
    Pagination,
    SortParams,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notes", tags=["notes"])

_SORT_COLUMNS = {
    "created_at": Note.created_at,
    "start_date": Note.start_date,
    "destination": Note.destination,
}


def get_owned_note(session: Session, note_id: UUID, user: CurrentUser) -> Note:
    """Load a note and check that the caller owns it.

    Raises:
        NotFoundError: If the note does not exist.
        ForbiddenError: If it belongs to another user.
    """
    note = session.get(Note, note_id)
    if note is None:
        raise NotFoundError("note", note_id)
    if note.user_id != user.user_id:
        raise ForbiddenError("You do not have permission to access this note")
    return note


@router.post("", response_model=NoteDTO, status_code=status.HTTP_201_CREATED)
def create_note(
    command: NoteCommand,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> NoteDTO:
    """Create a trip note for the caller."""
    note = Note(user_id=current_user.user_id, **command.model_dump())
    session.add(note)
    session.commit()
    session.refresh(note)

    logger.info(f"Note {note.id} created", extra={"user_id": str(current_user.user_id)})
    return NoteDTO.model_validate(note)


@router.get("", response_model=NotesListResponse)
def list_notes(
    sort: str | None = Query(default=None, description="field:direction"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> NotesListResponse:
    """List the caller's notes with the number of plans for each.

    Args:
        sort: Sort expression such as ``start_date:asc`` (default
            ``created_at:desc``)
        limit: Page size (1-100)
        offset: Rows to skip

    Returns:
        Page of notes plus pagination metadata
    """
    try:
        sort_params = SortParams.parse(sort)
    except ValueError:
        raise ValidationError(
            "sort",
            "Expected field:direction with field in created_at, start_date, "
            "destination and direction in asc, desc",
        )

    column = _SORT_COLUMNS[sort_params.field]
    order = column.asc() if sort_params.direction == "asc" else column.desc()

    plan_counts = (
        select(Plan.note_id, func.count(Plan.id).label("plan_count"))
        .group_by(Plan.note_id)
        .subquery()
    )
    stmt = (
        select(Note, func.coalesce(plan_counts.c.plan_count, 0))
        .outerjoin(plan_counts, plan_counts.c.note_id == Note.id)
        .where(Note.user_id == current_user.user_id)
        .order_by(order, Note.id)
        .limit(limit)
        .offset(offset)
    )
    rows = session.execute(stmt).all()

    total = session.scalar(
        select(func.count()).select_from(Note).where(Note.user_id == current_user.user_id)
    )

    notes = [
        NoteListItem.model_validate(
            {**NoteDTO.model_validate(note).model_dump(), "plan_count": plan_count}
        )
        for note, plan_count in rows
    ]
    return NotesListResponse(
        notes=notes,
        pagination=Pagination(total=total or 0, limit=limit, offset=offset),
    )


@router.get("/{note_id}", response_model=NoteDTO)
def get_note(
    note_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> NoteDTO:
    """Get one of the caller's notes."""
    return NoteDTO.model_validate(get_owned_note(session, note_id, current_user))


@router.put("/{note_id}", response_model=NoteDTO)
def update_note(
    note_id: UUID,
    command: NoteCommand,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> NoteDTO:
    """Replace the fields of one of the caller's notes."""
    note = get_owned_note(session, note_id, current_user)
    for field, value in command.model_dump().items():
        setattr(note, field, value)
    session.commit()
    session.refresh(note)
    return NoteDTO.model_validate(note)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_note(
    note_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> Response:
    """Delete a note together with its plans."""
    note = get_owned_note(session, note_id, current_user)
    session.delete(note)
    session.commit()

    logger.info(f"Note {note_id} deleted", extra={"user_id": str(current_user.user_id)})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
