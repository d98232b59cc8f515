"""
Execution tracks API endpoints - vendor work under a deliverable
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel

from aligned_execution.database import get_db
from aligned_execution.models.deliverable import Deliverable
from aligned_execution.models.track import ExecutionTrack, TrackHealth
from aligned_execution.api.deps import ProjectContext, get_project_context, get_events
from aligned_execution.services.events import BoardEvents
from aligned_execution.services.planning import complete_track, recommit_track
from aligned_execution.utils.validators import validate_name

router = APIRouter()


class TrackResponse(BaseModel):
    id: int
    project_id: int
    deliverable_id: Optional[int]
    title: str
    description: Optional[str]
    vendor: str
    target_date: Optional[date]
    health: str
    is_outside_track: bool
    recommit_count: int
    recommit_history: List[dict]
    completed_at: Optional[datetime]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class TrackCreate(BaseModel):
    title: str
    deliverable_id: Optional[int] = None
    description: Optional[str] = None
    vendor: Optional[str] = None
    target_date: Optional[date] = None


class TrackUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    vendor: Optional[str] = None
    health: Optional[TrackHealth] = None
    deliverable_id: Optional[int] = None


class TrackRecommit(BaseModel):
    new_date: Optional[date] = None


async def _get_track_or_404(db: AsyncSession, ctx: ProjectContext, track_id: int) -> ExecutionTrack:
    result = await db.execute(
        select(ExecutionTrack).where(ExecutionTrack.id == track_id, ExecutionTrack.project_id == ctx.project_id)
    )
    track = result.scalar_one_or_none()
    if not track:
        raise HTTPException(status_code=404, detail="Track not found")
    return track


async def _check_deliverable(db: AsyncSession, ctx: ProjectContext, deliverable_id: Optional[int]) -> None:
    if deliverable_id is None:
        return
    result = await db.execute(
        select(Deliverable.id).where(Deliverable.id == deliverable_id, Deliverable.project_id == ctx.project_id)
    )
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=400, detail=f"Deliverable {deliverable_id} does not belong to this project")


@router.get("/", response_model=List[TrackResponse])
async def list_tracks(
    deliverable_id: Optional[int] = None,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    query = select(ExecutionTrack).where(ExecutionTrack.project_id == ctx.project_id).order_by(ExecutionTrack.id)
    if deliverable_id is not None:
        query = query.where(ExecutionTrack.deliverable_id == deliverable_id)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/", response_model=TrackResponse)
async def create_track(
    data: TrackCreate,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    """Create a track; without a deliverable it is an outside track"""
    try:
        title = validate_name(data.title, "Title")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    await _check_deliverable(db, ctx, data.deliverable_id)

    track = ExecutionTrack(
        project_id=ctx.project_id,
        deliverable_id=data.deliverable_id,
        title=title,
        description=data.description,
        vendor=(data.vendor or "").strip() or "Unassigned",
        target_date=data.target_date,
        health=TrackHealth.ON_TRACK.value,
        is_outside_track=data.deliverable_id is None,
        recommit_count=0,
        recommit_history=[],
    )
    db.add(track)
    await db.commit()
    await db.refresh(track)

    events.publish("track.created", ctx.project_id, ctx.actor, track_id=track.id, deliverable_id=track.deliverable_id)
    return track


@router.put("/{track_id}", response_model=TrackResponse)
async def update_track(
    track_id: int,
    data: TrackUpdate,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    """Update track details; target dates change through /recommit"""
    track = await _get_track_or_404(db, ctx, track_id)

    updates = data.model_dump(exclude_none=True)
    if "title" in updates:
        try:
            updates["title"] = validate_name(updates["title"], "Title")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    if "deliverable_id" in updates:
        await _check_deliverable(db, ctx, updates["deliverable_id"])
        updates["is_outside_track"] = False
    if "health" in updates:
        if updates["health"] == TrackHealth.COMPLETE:
            complete_track(track)
        updates["health"] = updates["health"].value

    for key, value in updates.items():
        setattr(track, key, value)

    await db.commit()
    await db.refresh(track)
    return track


@router.post("/{track_id}/recommit", response_model=TrackResponse)
async def recommit(
    track_id: int,
    data: TrackRecommit,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    track = await _get_track_or_404(db, ctx, track_id)
    old_date = track.target_date
    recommit_track(track, data.new_date)
    await db.commit()
    await db.refresh(track)

    events.publish(
        "track.recommitted", ctx.project_id, ctx.actor,
        track_id=track.id,
        old_date=old_date.isoformat() if old_date else None,
        new_date=data.new_date.isoformat() if data.new_date else None,
    )
    return track


@router.post("/{track_id}/complete", response_model=TrackResponse)
async def complete(
    track_id: int,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    track = await _get_track_or_404(db, ctx, track_id)
    complete_track(track)
    await db.commit()
    await db.refresh(track)

    events.publish("track.completed", ctx.project_id, ctx.actor, track_id=track.id)
    return track


@router.delete("/{track_id}")
async def delete_track(
    track_id: int,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    track = await _get_track_or_404(db, ctx, track_id)
    await db.delete(track)
    await db.commit()
    return {"message": "Track deleted", "id": track_id}
