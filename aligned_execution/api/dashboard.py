"""
Dashboard API - executive summary, schedule view and text report
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import date, datetime
from typing import Optional

from aligned_execution.database import get_db
from aligned_execution.models.stream import Stream, StreamStatus
from aligned_execution.models.track import ExecutionTrack
from aligned_execution.api.deps import ProjectContext, get_project_context
from aligned_execution.api.deliverables import load_project_deliverables
from aligned_execution.services.metrics import aggregate_program
from aligned_execution.services.planning import to_datetime
from aligned_execution.services.reports import render_executive_summary
from aligned_execution.services.schedule import stream_date_range, timeline_periods

router = APIRouter()


async def _program_summary(db: AsyncSession, ctx: ProjectContext, as_of: Optional[date]) -> dict:
    streams = await db.execute(select(Stream).where(Stream.project_id == ctx.project_id))
    tracks = await db.execute(select(ExecutionTrack).where(ExecutionTrack.project_id == ctx.project_id))
    items = await load_project_deliverables(db, ctx.project_id)
    return aggregate_program(
        streams.scalars().all(),
        items,
        tracks.scalars().all(),
        as_of=to_datetime(as_of) if as_of else datetime.utcnow(),
    )


@router.get("/summary")
async def get_summary(
    as_of: Optional[date] = None,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    """Program metrics over active streams, with per-stream performance"""
    summary = await _program_summary(db, ctx, as_of)
    summary["project_id"] = ctx.project_id
    summary["project_name"] = ctx.project.name
    return summary


@router.get("/schedule")
async def get_schedule(
    scale: str = Query("monthly"),
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    """Stream date ranges laid over the project's timeline"""
    project = ctx.project
    milestones = {
        "kickoff": project.kickoff_date,
        "go_live": project.go_live_date,
        "helpdesk_handoff": project.helpdesk_handoff_date,
    }
    try:
        periods = timeline_periods(milestones.values(), scale=scale)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    result = await db.execute(
        select(Stream)
        .where(Stream.project_id == ctx.project_id, Stream.status != StreamStatus.ARCHIVED.value)
        .order_by(Stream.position, Stream.id)
    )
    items = await load_project_deliverables(db, ctx.project_id)

    streams = []
    for stream in result.scalars().all():
        stream_items = [i for i in items if i.stream_id == stream.id]
        start, end = stream_date_range(stream_items)
        streams.append({
            "stream_id": stream.id,
            "name": stream.name,
            "color": stream.color,
            "deliverable_count": len(stream_items),
            "start": start,
            "end": end,
        })

    return {
        "scale": scale,
        "milestones": milestones,
        "periods": periods,
        "streams": streams,
    }


@router.get("/report", response_class=PlainTextResponse)
async def get_report(
    as_of: Optional[date] = None,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    """Plain-text executive summary, ready to paste into an email"""
    summary = await _program_summary(db, ctx, as_of)
    return render_executive_summary(ctx.project.name, summary)
