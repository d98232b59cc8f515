"""
Deliverables API endpoints - cards on the program board and their date audit trail
"""
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from typing import Dict, Iterable, List, Optional
from datetime import date, datetime
from pydantic import BaseModel

from aligned_execution.database import get_db
from aligned_execution.models.deliverable import Deliverable, DeliverableStatus
from aligned_execution.models.stream import Stream
from aligned_execution.models.team import TeamMember
from aligned_execution.models.whiteboard import WhiteboardNote
from aligned_execution.api.deps import ProjectContext, get_project_context, get_events, check_version
from aligned_execution.services import planning
from aligned_execution.services.board import detach_dependency, move_deliverable, next_position
from aligned_execution.services.dependencies import DependencyError, unmet_dependencies, validate_dependencies
from aligned_execution.services.events import BoardEvents
from aligned_execution.services.metrics import classify_health, is_overdue, program_accuracy_contribution
from aligned_execution.utils.validators import validate_name, validate_reason

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Pydantic Schemas ---

class DateChangeResponse(BaseModel):
    id: int
    old_date: Optional[date]
    new_date: Optional[date]
    reason: str
    explanation: Optional[str]
    changed_by: str
    changed_at: datetime

    class Config:
        from_attributes = True


class ChecklistItemResponse(BaseModel):
    id: int
    text: str
    done: bool
    done_at: Optional[datetime]
    position: int

    class Config:
        from_attributes = True


class CommentResponse(BaseModel):
    id: int
    text: str
    author: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class DeliverableResponse(BaseModel):
    id: int
    project_id: int
    stream_id: Optional[int]
    title: str
    description: Optional[str]
    status: str
    position: int
    owner_name: Optional[str]
    owner_email: Optional[str]
    assigned_member_id: Optional[int]
    promoted_from_note_id: Optional[int]
    target_date: Optional[date]
    original_date: Optional[date]
    recommit_reasons: List[str]
    recommit_count: int
    planning_accuracy_score: Optional[int]
    completed_at: Optional[datetime]
    dependencies: List[int]
    version: int
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    date_history: List[DateChangeResponse] = []
    checklist: List[ChecklistItemResponse] = []
    comments: List[CommentResponse] = []

    # Computed per request
    slip_days: int = 0
    health: str = "on_track"
    unmet_dependencies: List[int] = []

    class Config:
        from_attributes = True


class DeliverableCreate(BaseModel):
    title: str
    stream_id: Optional[int] = None
    description: Optional[str] = None
    status: DeliverableStatus = DeliverableStatus.PLANNING
    target_date: Optional[date] = None
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None
    assigned_member_id: Optional[int] = None
    dependencies: List[int] = []


# Card fields a PUT may set back to null
CLEARABLE_FIELDS = {"description", "owner_name", "owner_email", "assigned_member_id", "target_date"}


class DeliverableUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[DeliverableStatus] = None
    target_date: Optional[date] = None
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None
    assigned_member_id: Optional[int] = None
    dependencies: Optional[List[int]] = None
    version: Optional[int] = None


class RecommitRequest(BaseModel):
    new_date: Optional[date] = None
    reason: str
    explanation: Optional[str] = None
    version: Optional[int] = None


class MoveRequest(BaseModel):
    stream_id: Optional[int] = None
    index: Optional[int] = None
    version: Optional[int] = None


class HistoryResponse(BaseModel):
    deliverable_id: int
    original_date: Optional[date]
    target_date: Optional[date]
    recommit_count: int
    changes: List[DateChangeResponse]


class MetricsResponse(BaseModel):
    deliverable_id: int
    as_of: date
    slip_days: int
    recommit_count: int
    planning_accuracy_score: Optional[int]
    program_accuracy: Optional[int]
    health: str
    is_overdue: bool
    unmet_dependencies: List[int]


# --- Helpers ---

async def load_project_deliverables(db: AsyncSession, project_id: int) -> List[Deliverable]:
    result = await db.execute(
        select(Deliverable)
        .where(Deliverable.project_id == project_id)
        .order_by(Deliverable.stream_id, Deliverable.position, Deliverable.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_deliverable_or_404(db: AsyncSession, ctx: ProjectContext, deliverable_id: int) -> Deliverable:
    # populate_existing so collections changed in this session are re-read after a commit
    result = await db.execute(
        select(Deliverable)
        .where(Deliverable.id == deliverable_id, Deliverable.project_id == ctx.project_id)
        .options(
            selectinload(Deliverable.date_history),
            selectinload(Deliverable.checklist),
            selectinload(Deliverable.comments),
        )
        .execution_options(populate_existing=True)
    )
    item = result.scalar_one_or_none()
    if not item:
        raise HTTPException(status_code=404, detail="Deliverable not found")
    return item


def build_deliverable_response(
    item: Deliverable,
    items_by_id: Dict[int, Deliverable],
    as_of: Optional[datetime] = None,
) -> DeliverableResponse:
    as_of = as_of or datetime.utcnow()
    response = DeliverableResponse.model_validate(item)
    return response.model_copy(update={
        "slip_days": planning.current_slip_days(item, as_of),
        "health": classify_health(item, as_of).value,
        "unmet_dependencies": unmet_dependencies(item, items_by_id),
    })


async def _respond(db: AsyncSession, ctx: ProjectContext, item_id: int) -> DeliverableResponse:
    item = await get_deliverable_or_404(db, ctx, item_id)
    items = await load_project_deliverables(db, ctx.project_id)
    return build_deliverable_response(item, {i.id: i for i in items})


async def _check_stream(db: AsyncSession, ctx: ProjectContext, stream_id: Optional[int]) -> None:
    if stream_id is None:
        return
    result = await db.execute(
        select(Stream.id).where(Stream.id == stream_id, Stream.project_id == ctx.project_id)
    )
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=400, detail=f"Stream {stream_id} does not belong to this project")


async def _check_member(db: AsyncSession, ctx: ProjectContext, member_id: Optional[int]) -> None:
    if member_id is None:
        return
    result = await db.execute(
        select(TeamMember.id).where(TeamMember.id == member_id, TeamMember.project_id == ctx.project_id)
    )
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=400, detail=f"Team member {member_id} does not belong to this project")


def _check_dependencies(item_id: Optional[int], dependency_ids: Iterable[int], items: List[Deliverable]) -> List[int]:
    graph = {i.id: list(i.dependencies or []) for i in items}
    try:
        return validate_dependencies(item_id, dependency_ids, graph)
    except DependencyError as e:
        raise HTTPException(status_code=400, detail=str(e))


async def forget_deliverables(db: AsyncSession, project_id: int, removed_ids: Iterable[int]) -> None:
    """Drop references to deliverables that are about to be deleted"""
    removed_ids = set(removed_ids)
    if not removed_ids:
        return

    for item in await load_project_deliverables(db, project_id):
        if item.id in removed_ids:
            continue
        for removed_id in removed_ids:
            detach_dependency([item], removed_id)

    result = await db.execute(
        select(WhiteboardNote).where(
            WhiteboardNote.project_id == project_id,
            WhiteboardNote.promoted_to_deliverable_id.in_(removed_ids),
        )
    )
    for note in result.scalars().all():
        note.promoted_to_deliverable_id = None


# --- Endpoints ---

@router.get("/", response_model=List[DeliverableResponse])
async def list_deliverables(
    stream_id: Optional[int] = None,
    status: Optional[DeliverableStatus] = None,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    """List deliverables, optionally filtered by stream or status"""
    items = await load_project_deliverables(db, ctx.project_id)
    items_by_id = {i.id: i for i in items}
    now = datetime.utcnow()

    if stream_id is not None:
        items = [i for i in items if i.stream_id == stream_id]
    if status:
        items = [i for i in items if i.status == status.value]

    return [build_deliverable_response(i, items_by_id, now) for i in items]


@router.get("/{deliverable_id}", response_model=DeliverableResponse)
async def get_deliverable(
    deliverable_id: int,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    return await _respond(db, ctx, deliverable_id)


@router.post("/", response_model=DeliverableResponse)
async def create_deliverable(
    data: DeliverableCreate,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    """Create a deliverable; its first target date becomes the baseline"""
    try:
        title = validate_name(data.title, "Title")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await _check_stream(db, ctx, data.stream_id)
    await _check_member(db, ctx, data.assigned_member_id)

    items = await load_project_deliverables(db, ctx.project_id)
    dependencies = _check_dependencies(None, data.dependencies, items)

    item = planning.new_deliverable(
        title,
        project_id=ctx.project_id,
        stream_id=data.stream_id,
        description=data.description,
        status=data.status.value,
        target_date=data.target_date,
        owner_name=data.owner_name,
        owner_email=data.owner_email,
        assigned_member_id=data.assigned_member_id,
        dependencies=dependencies,
        position=next_position(i for i in items if i.stream_id == data.stream_id),
    )
    db.add(item)
    await db.commit()

    events.publish("deliverable.created", ctx.project_id, ctx.actor, deliverable_id=item.id, title=item.title)
    return await _respond(db, ctx, item.id)


@router.put("/{deliverable_id}", response_model=DeliverableResponse)
async def update_deliverable(
    deliverable_id: int,
    data: DeliverableUpdate,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    """Update card details. A committed target date can only change via /recommit"""
    item = await get_deliverable_or_404(db, ctx, deliverable_id)
    check_version(item, data.version)

    updates = data.model_dump(exclude_unset=True, exclude={"version"})
    # An explicit null clears optional fields; it is ignored for the rest
    updates = {k: v for k, v in updates.items() if v is not None or k in CLEARABLE_FIELDS}
    fields = sorted(updates)

    if "title" in updates:
        try:
            updates["title"] = validate_name(updates["title"], "Title")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    if "assigned_member_id" in updates:
        await _check_member(db, ctx, updates["assigned_member_id"])
    if "dependencies" in updates:
        items = await load_project_deliverables(db, ctx.project_id)
        updates["dependencies"] = _check_dependencies(item.id, updates["dependencies"], items)

    if "target_date" in updates:
        try:
            planning.assign_target_date(item, updates.pop("target_date"))
        except planning.RecommitRequired as e:
            raise HTTPException(status_code=409, detail=str(e))

    status = updates.pop("status", None)
    for key, value in updates.items():
        setattr(item, key, value)
    if status is not None:
        planning.change_status(item, status.value)

    await db.commit()
    events.publish("deliverable.updated", ctx.project_id, ctx.actor, deliverable_id=item.id, fields=fields)
    return await _respond(db, ctx, item.id)


@router.post("/{deliverable_id}/recommit", response_model=DeliverableResponse)
async def recommit_deliverable(
    deliverable_id: int,
    data: RecommitRequest,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    """Move the target date, recording why in the audit trail"""
    item = await get_deliverable_or_404(db, ctx, deliverable_id)
    check_version(item, data.version)

    try:
        reason = validate_reason(data.reason)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    old_date = item.target_date
    planning.record_date_change(
        item,
        data.new_date,
        reason,
        explanation=data.explanation or "",
        changed_by=ctx.actor,
    )
    await db.commit()

    logger.info(
        f"Deliverable {item.id} recommitted {old_date} -> {data.new_date} by {ctx.actor} "
        f"(recommit #{item.recommit_count}, score {item.planning_accuracy_score})"
    )
    events.publish(
        "deliverable.recommitted", ctx.project_id, ctx.actor,
        deliverable_id=item.id,
        old_date=old_date.isoformat() if old_date else None,
        new_date=data.new_date.isoformat() if data.new_date else None,
        reason=reason,
    )
    return await _respond(db, ctx, item.id)


@router.post("/{deliverable_id}/complete", response_model=DeliverableResponse)
async def complete_deliverable(
    deliverable_id: int,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    item = await get_deliverable_or_404(db, ctx, deliverable_id)
    planning.mark_complete(item)
    await db.commit()

    events.publish("deliverable.completed", ctx.project_id, ctx.actor, deliverable_id=item.id)
    return await _respond(db, ctx, item.id)


@router.get("/{deliverable_id}/history", response_model=HistoryResponse)
async def get_history(
    deliverable_id: int,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    """Every recorded target date change, oldest first"""
    item = await get_deliverable_or_404(db, ctx, deliverable_id)
    return HistoryResponse(
        deliverable_id=item.id,
        original_date=item.original_date,
        target_date=item.target_date,
        recommit_count=item.recommit_count,
        changes=[DateChangeResponse.model_validate(c) for c in item.date_history],
    )


@router.get("/{deliverable_id}/metrics", response_model=MetricsResponse)
async def get_metrics(
    deliverable_id: int,
    as_of: Optional[date] = None,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    """Slip, accuracy and health for one deliverable"""
    item = await get_deliverable_or_404(db, ctx, deliverable_id)
    items = await load_project_deliverables(db, ctx.project_id)
    when = planning.to_datetime(as_of) if as_of else datetime.utcnow()

    return MetricsResponse(
        deliverable_id=item.id,
        as_of=when.date(),
        slip_days=planning.current_slip_days(item, when),
        recommit_count=item.recommit_count,
        planning_accuracy_score=item.planning_accuracy_score,
        program_accuracy=program_accuracy_contribution(item, when),
        health=classify_health(item, when).value,
        is_overdue=is_overdue(item, when),
        unmet_dependencies=unmet_dependencies(item, {i.id: i for i in items}),
    )


@router.post("/{deliverable_id}/move", response_model=DeliverableResponse)
async def move(
    deliverable_id: int,
    data: MoveRequest,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    """Drag a card to another stream and/or position"""
    item = await get_deliverable_or_404(db, ctx, deliverable_id)
    check_version(item, data.version)
    await _check_stream(db, ctx, data.stream_id)

    from_stream = item.stream_id
    items = await load_project_deliverables(db, ctx.project_id)
    move_deliverable(items, item, data.stream_id, data.index)
    await db.commit()

    events.publish(
        "deliverable.moved", ctx.project_id, ctx.actor,
        deliverable_id=item.id, from_stream=from_stream, to_stream=data.stream_id, position=item.position,
    )
    return await _respond(db, ctx, item.id)


@router.delete("/{deliverable_id}")
async def delete_deliverable(
    deliverable_id: int,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
    events: BoardEvents = Depends(get_events),
):
    """Delete a deliverable and remove it from other cards' dependencies"""
    item = await get_deliverable_or_404(db, ctx, deliverable_id)
    await forget_deliverables(db, ctx.project_id, [item.id])
    await db.delete(item)
    await db.commit()

    events.publish("deliverable.deleted", ctx.project_id, ctx.actor, deliverable_id=deliverable_id)
    return {"message": "Deliverable deleted", "id": deliverable_id}
