"""
Streams API endpoints - board columns, ordering and archiving
"""
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel

from aligned_execution.database import get_db
from aligned_execution.models.stream import Stream, StreamStatus, STREAM_COLORS
from aligned_execution.models.deliverable import Deliverable
from aligned_execution.api.deps import ProjectContext, get_project_context, get_events, check_version
from aligned_execution.api.deliverables import forget_deliverables
from aligned_execution.services.board import next_position, reorder_streams
from aligned_execution.services.events import BoardEvents
from aligned_execution.services.metrics import archive_snapshot
from aligned_execution.services.planning import is_complete
from aligned_execution.utils.validators import validate_hex_color, validate_name

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Pydantic Schemas ---

class StreamResponse(BaseModel):
    id: int
    project_id: int
    name: str
    color: str
    description: Optional[str]
    status: str
    position: int
    archived_at: Optional[datetime]
    archived_by: Optional[str]
    archive_metrics: Optional[dict]
    version: int
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class StreamCreate(BaseModel):
    name: str
    color: Optional[str] = None
    description: Optional[str] = None


class StreamUpdate(BaseModel):
    name: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None
    status: Optional[StreamStatus] = None
    version: Optional[int] = None


class ReorderRequest(BaseModel):
    stream_ids: List[int]


# --- Helpers ---

async def _get_stream_or_404(db: AsyncSession, ctx: ProjectContext, stream_id: int) -> Stream:
    result = await db.execute(
        select(Stream).where(Stream.id == stream_id, Stream.project_id == ctx.project_id)
    )
    stream = result.scalar_one_or_none()
    if not stream:
        raise HTTPException(status_code=404, detail="Stream not found")
    return stream


async def _project_streams(db: AsyncSession, project_id: int) -> List[Stream]:
    result = await db.execute(
        select(Stream).where(Stream.project_id == project_id).order_by(Stream.position, Stream.id)
    )
    return list(result.scalars().all())


async def _stream_deliverables(db: AsyncSession, stream_id: int) -> List[Deliverable]:
    result = await db.execute(select(Deliverable).where(Deliverable.stream_id == stream_id))
    return list(result.scalars().all())


def _clean_color(color: Optional[str]) -> Optional[str]:
    try:
        return validate_hex_color(color)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# --- Endpoints ---

@router.get("/colors")
async def list_colors():
    """Palette offered for new streams"""
    return STREAM_COLORS


@router.get("/", response_model=List[StreamResponse])
async def list_streams(
    include_archived: bool = False,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    """List streams in board order"""
    streams = await _project_streams(db, ctx.project_id)
    if not include_archived:
        streams = [s for s in streams if s.status != StreamStatus.ARCHIVED.value]
    return streams


@router.get("/{stream_id}", response_model=StreamResponse)
async def get_stream(
    stream_id: int,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    return await _get_stream_or_404(db, ctx, stream_id)


@router.post("/", response_model=StreamResponse)
async def create_stream(
    data: StreamCreate,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    """Add a stream at the end of the board"""
    try:
        name = validate_name(data.name, "Stream name")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    siblings = await _project_streams(db, ctx.project_id)
    # Cycle through the palette when no color is given
    color = _clean_color(data.color) or STREAM_COLORS[len(siblings) % len(STREAM_COLORS)]["value"]

    stream = Stream(
        project_id=ctx.project_id,
        name=name,
        color=color,
        description=data.description,
        position=next_position(siblings),
    )
    db.add(stream)
    await db.commit()
    await db.refresh(stream)

    events.publish("stream.created", ctx.project_id, ctx.actor, stream_id=stream.id, stream_name=stream.name)
    return stream


@router.put("/{stream_id}", response_model=StreamResponse)
async def update_stream(
    stream_id: int,
    data: StreamUpdate,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    """Rename, recolor or change the status of a stream"""
    stream = await _get_stream_or_404(db, ctx, stream_id)
    check_version(stream, data.version)

    updates = data.model_dump(exclude_none=True, exclude={"version"})
    if "name" in updates:
        try:
            updates["name"] = validate_name(updates["name"], "Stream name")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    if "color" in updates:
        updates["color"] = _clean_color(updates["color"])
    if "status" in updates:
        updates["status"] = updates["status"].value

    for key, value in updates.items():
        setattr(stream, key, value)

    await db.commit()
    await db.refresh(stream)
    events.publish("stream.updated", ctx.project_id, ctx.actor, stream_id=stream.id, fields=sorted(updates))
    return stream


@router.post("/reorder", response_model=List[StreamResponse])
async def reorder(
    data: ReorderRequest,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    """Set the board order of streams"""
    streams = await _project_streams(db, ctx.project_id)
    try:
        ordered = reorder_streams(streams, data.stream_ids)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await db.commit()
    for stream in ordered:
        await db.refresh(stream)
    events.publish("stream.reordered", ctx.project_id, ctx.actor, stream_ids=[s.id for s in ordered])
    return ordered


@router.post("/{stream_id}/archive", response_model=StreamResponse)
async def archive_stream(
    stream_id: int,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    """Archive a stream once all of its deliverables are complete"""
    stream = await _get_stream_or_404(db, ctx, stream_id)
    if stream.status == StreamStatus.ARCHIVED.value:
        raise HTTPException(status_code=409, detail="Stream is already archived")

    items = await _stream_deliverables(db, stream.id)
    incomplete = [i for i in items if not is_complete(i)]
    if incomplete:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot archive stream with {len(incomplete)} incomplete deliverable(s)",
        )

    stream.status = StreamStatus.ARCHIVED.value
    stream.archived_at = datetime.utcnow()
    stream.archived_by = ctx.actor
    stream.archive_metrics = archive_snapshot(items)

    await db.commit()
    await db.refresh(stream)
    logger.info(f"Stream {stream.id} archived by {ctx.actor}: {stream.archive_metrics}")
    events.publish("stream.archived", ctx.project_id, ctx.actor, stream_id=stream.id)
    return stream


@router.post("/{stream_id}/unarchive", response_model=StreamResponse)
async def unarchive_stream(
    stream_id: int,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    stream = await _get_stream_or_404(db, ctx, stream_id)
    if stream.status != StreamStatus.ARCHIVED.value:
        raise HTTPException(status_code=409, detail="Stream is not archived")

    stream.status = StreamStatus.ACTIVE.value
    stream.archived_at = None
    stream.archived_by = None
    stream.archive_metrics = None

    await db.commit()
    await db.refresh(stream)
    events.publish("stream.unarchived", ctx.project_id, ctx.actor, stream_id=stream.id)
    return stream


@router.delete("/{stream_id}")
async def delete_stream(
    stream_id: int,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    """Delete a stream together with its deliverables"""
    stream = await _get_stream_or_404(db, ctx, stream_id)
    items = await _stream_deliverables(db, stream.id)
    await forget_deliverables(db, ctx.project_id, [i.id for i in items])
    await db.delete(stream)
    await db.commit()
    events.publish("stream.deleted", ctx.project_id, ctx.actor, stream_id=stream_id)
    return {"message": "Stream deleted", "id": stream_id}
