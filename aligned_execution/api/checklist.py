"""
Checklist and comment endpoints for a single deliverable
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel

from aligned_execution.database import get_db
from aligned_execution.models.deliverable import ChecklistItem, DeliverableComment
from aligned_execution.api.deps import ProjectContext, get_project_context, get_events
from aligned_execution.api.deliverables import (
    ChecklistItemResponse,
    CommentResponse,
    get_deliverable_or_404,
)
from aligned_execution.services.board import next_position
from aligned_execution.services.events import BoardEvents
from aligned_execution.utils.helpers import parse_checklist_lines

router = APIRouter()


# --- Pydantic Schemas ---

class ChecklistItemCreate(BaseModel):
    text: str


class ChecklistBulkCreate(BaseModel):
    text: str  # pasted list, one entry per line


class ChecklistItemUpdate(BaseModel):
    text: Optional[str] = None
    done: Optional[bool] = None
    position: Optional[int] = None


class CommentCreate(BaseModel):
    text: str


class CommentUpdate(BaseModel):
    text: str


# --- Helpers ---

def _find(collection, child_id: int, label: str):
    for child in collection:
        if child.id == child_id:
            return child
    raise HTTPException(status_code=404, detail=f"{label} not found")


def _clean_text(text: Optional[str]) -> str:
    text = (text or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail="Text cannot be empty")
    return text


def _set_done(entry: ChecklistItem, done: bool) -> None:
    if done and not entry.done:
        entry.done_at = datetime.utcnow()
    elif not done:
        entry.done_at = None
    entry.done = done


# --- Checklist ---

@router.get("/checklist", response_model=List[ChecklistItemResponse])
async def list_checklist(
    deliverable_id: int,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    item = await get_deliverable_or_404(db, ctx, deliverable_id)
    return item.checklist


@router.post("/checklist", response_model=ChecklistItemResponse)
async def add_checklist_item(
    deliverable_id: int,
    data: ChecklistItemCreate,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    item = await get_deliverable_or_404(db, ctx, deliverable_id)
    entry = ChecklistItem(text=_clean_text(data.text), done=False, position=next_position(item.checklist))
    item.checklist.append(entry)
    await db.commit()

    events.publish("checklist.added", ctx.project_id, ctx.actor, deliverable_id=item.id, checklist_item_id=entry.id)
    return entry


@router.post("/checklist/bulk", response_model=List[ChecklistItemResponse])
async def add_checklist_bulk(
    deliverable_id: int,
    data: ChecklistBulkCreate,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    """Import a pasted list; bullets and numbering are stripped"""
    item = await get_deliverable_or_404(db, ctx, deliverable_id)
    lines = parse_checklist_lines(data.text)
    if not lines:
        raise HTTPException(status_code=400, detail="No checklist entries found")

    start = next_position(item.checklist)
    added = [ChecklistItem(text=line, done=False, position=start + i) for i, line in enumerate(lines)]
    item.checklist.extend(added)
    await db.commit()

    events.publish("checklist.imported", ctx.project_id, ctx.actor, deliverable_id=item.id, count=len(added))
    return added


@router.put("/checklist/{checklist_item_id}", response_model=ChecklistItemResponse)
async def update_checklist_item(
    deliverable_id: int,
    checklist_item_id: int,
    data: ChecklistItemUpdate,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    item = await get_deliverable_or_404(db, ctx, deliverable_id)
    entry = _find(item.checklist, checklist_item_id, "Checklist item")

    if data.text is not None:
        entry.text = _clean_text(data.text)
    if data.done is not None:
        _set_done(entry, data.done)
    if data.position is not None:
        entry.position = data.position

    await db.commit()
    return entry


@router.post("/checklist/{checklist_item_id}/toggle", response_model=ChecklistItemResponse)
async def toggle_checklist_item(
    deliverable_id: int,
    checklist_item_id: int,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    item = await get_deliverable_or_404(db, ctx, deliverable_id)
    entry = _find(item.checklist, checklist_item_id, "Checklist item")
    _set_done(entry, not entry.done)
    await db.commit()

    events.publish(
        "checklist.toggled", ctx.project_id, ctx.actor,
        deliverable_id=item.id, checklist_item_id=entry.id, done=entry.done,
    )
    return entry


@router.delete("/checklist/{checklist_item_id}")
async def delete_checklist_item(
    deliverable_id: int,
    checklist_item_id: int,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    item = await get_deliverable_or_404(db, ctx, deliverable_id)
    entry = _find(item.checklist, checklist_item_id, "Checklist item")
    item.checklist.remove(entry)
    await db.commit()
    return {"message": "Checklist item deleted", "id": checklist_item_id}


# --- Comments ---

@router.get("/comments", response_model=List[CommentResponse])
async def list_comments(
    deliverable_id: int,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    item = await get_deliverable_or_404(db, ctx, deliverable_id)
    return item.comments


@router.post("/comments", response_model=CommentResponse)
async def add_comment(
    deliverable_id: int,
    data: CommentCreate,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    """Add a comment authored by the acting user"""
    item = await get_deliverable_or_404(db, ctx, deliverable_id)
    comment = DeliverableComment(text=_clean_text(data.text), author=ctx.actor)
    item.comments.append(comment)
    await db.commit()

    events.publish("comment.added", ctx.project_id, ctx.actor, deliverable_id=item.id, comment_id=comment.id)
    return comment


@router.put("/comments/{comment_id}", response_model=CommentResponse)
async def edit_comment(
    deliverable_id: int,
    comment_id: int,
    data: CommentUpdate,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    item = await get_deliverable_or_404(db, ctx, deliverable_id)
    comment = _find(item.comments, comment_id, "Comment")
    comment.text = _clean_text(data.text)
    comment.updated_at = datetime.utcnow()
    await db.commit()
    return comment


@router.delete("/comments/{comment_id}")
async def delete_comment(
    deliverable_id: int,
    comment_id: int,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    item = await get_deliverable_or_404(db, ctx, deliverable_id)
    comment = _find(item.comments, comment_id, "Comment")
    item.comments.remove(comment)
    await db.commit()
    return {"message": "Comment deleted", "id": comment_id}
