"""
Whiteboard API endpoints - brainstorm notes and promotion to deliverables
"""
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel

from aligned_execution.database import get_db
from aligned_execution.models.deliverable import DeliverableStatus
from aligned_execution.models.stream import Stream
from aligned_execution.models.whiteboard import WhiteboardNote
from aligned_execution.api.deps import ProjectContext, get_project_context, get_events
from aligned_execution.api.deliverables import (
    DeliverableResponse,
    build_deliverable_response,
    load_project_deliverables,
)
from aligned_execution.services.board import next_position
from aligned_execution.services.events import BoardEvents
from aligned_execution.services.planning import new_deliverable
from aligned_execution.utils.validators import validate_name

logger = logging.getLogger(__name__)

router = APIRouter()


class NoteResponse(BaseModel):
    id: int
    project_id: int
    stream_id: Optional[int]
    title: str
    description: Optional[str]
    tags: List[str]
    promoted: bool
    promoted_at: Optional[datetime]
    promoted_to_deliverable_id: Optional[int]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class NoteCreate(BaseModel):
    title: str
    description: Optional[str] = None
    stream_id: Optional[int] = None
    tags: List[str] = []


class NoteUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    stream_id: Optional[int] = None
    tags: Optional[List[str]] = None


class PromoteRequest(BaseModel):
    note_ids: List[int]


class PromoteResponse(BaseModel):
    promoted: List[DeliverableResponse]
    skipped: List[int]  # already promoted


async def _get_note_or_404(db: AsyncSession, ctx: ProjectContext, note_id: int) -> WhiteboardNote:
    result = await db.execute(
        select(WhiteboardNote).where(WhiteboardNote.id == note_id, WhiteboardNote.project_id == ctx.project_id)
    )
    note = result.scalar_one_or_none()
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


async def _check_stream(db: AsyncSession, ctx: ProjectContext, stream_id: Optional[int]) -> None:
    if stream_id is None:
        return
    result = await db.execute(
        select(Stream.id).where(Stream.id == stream_id, Stream.project_id == ctx.project_id)
    )
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=400, detail=f"Stream {stream_id} does not belong to this project")


def _clean_tags(tags: List[str]) -> List[str]:
    cleaned = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


@router.get("/", response_model=List[NoteResponse])
async def list_notes(
    include_promoted: bool = True,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    query = select(WhiteboardNote).where(WhiteboardNote.project_id == ctx.project_id).order_by(WhiteboardNote.id)
    if not include_promoted:
        query = query.where(WhiteboardNote.promoted.is_(False))
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/", response_model=NoteResponse)
async def create_note(
    data: NoteCreate,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    try:
        title = validate_name(data.title, "Title")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    await _check_stream(db, ctx, data.stream_id)

    note = WhiteboardNote(
        project_id=ctx.project_id,
        stream_id=data.stream_id,
        title=title,
        description=data.description,
        tags=_clean_tags(data.tags),
        promoted=False,
    )
    db.add(note)
    await db.commit()
    await db.refresh(note)
    return note


@router.put("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: int,
    data: NoteUpdate,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    note = await _get_note_or_404(db, ctx, note_id)

    updates = data.model_dump(exclude_none=True)
    if "title" in updates:
        try:
            updates["title"] = validate_name(updates["title"], "Title")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    if "stream_id" in updates:
        await _check_stream(db, ctx, updates["stream_id"])
    if "tags" in updates:
        updates["tags"] = _clean_tags(updates["tags"])

    for key, value in updates.items():
        setattr(note, key, value)

    await db.commit()
    await db.refresh(note)
    return note


@router.post("/promote", response_model=PromoteResponse)
async def promote_notes(
    data: PromoteRequest,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    """Turn notes into planning deliverables in the note's stream"""
    result = await db.execute(
        select(WhiteboardNote).where(
            WhiteboardNote.project_id == ctx.project_id,
            WhiteboardNote.id.in_(data.note_ids),
        )
    )
    notes = {n.id: n for n in result.scalars().all()}
    missing = [nid for nid in data.note_ids if nid not in notes]
    if missing:
        raise HTTPException(status_code=404, detail=f"Notes not found: {missing}")

    items = await load_project_deliverables(db, ctx.project_id)
    created = []
    skipped = []
    now = datetime.utcnow()

    for note_id in dict.fromkeys(data.note_ids):
        note = notes[note_id]
        if note.promoted:
            skipped.append(note.id)
            continue

        item = new_deliverable(
            note.title,
            project_id=ctx.project_id,
            stream_id=note.stream_id,
            description=note.description,
            status=DeliverableStatus.PLANNING.value,
            promoted_from_note_id=note.id,
            position=next_position(i for i in items + created if i.stream_id == note.stream_id),
        )
        db.add(item)
        await db.flush()

        note.promoted = True
        note.promoted_at = now
        note.promoted_to_deliverable_id = item.id
        created.append(item)

    await db.commit()

    if created:
        logger.info(f"Promoted {len(created)} whiteboard note(s) in project {ctx.project_id}")
        events.publish(
            "whiteboard.promoted", ctx.project_id, ctx.actor,
            deliverable_ids=[i.id for i in created],
        )

    items_by_id = {i.id: i for i in items + created}
    return PromoteResponse(
        promoted=[build_deliverable_response(i, items_by_id, now) for i in created],
        skipped=skipped,
    )


@router.delete("/{note_id}")
async def delete_note(
    note_id: int,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    note = await _get_note_or_404(db, ctx, note_id)
    await db.delete(note)
    await db.commit()
    return {"message": "Note deleted", "id": note_id}
