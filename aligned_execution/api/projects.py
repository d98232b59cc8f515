"""
Projects API endpoints - isolated board workspaces
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel

from aligned_execution.database import get_db
from aligned_execution.models.project import Project
from aligned_execution.models.stream import Stream
from aligned_execution.models.deliverable import Deliverable
from aligned_execution.api.deps import get_actor, get_events
from aligned_execution.services.events import BoardEvents
from aligned_execution.services.starter_content import seed_starter_content

router = APIRouter()


# --- Pydantic Schemas ---

class ProjectResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    kickoff_date: Optional[date]
    go_live_date: Optional[date]
    helpdesk_handoff_date: Optional[date]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    stream_count: int = 0
    deliverable_count: int = 0

    class Config:
        from_attributes = True


class ProjectCreate(BaseModel):
    name: str
    description: Optional[str] = None
    kickoff_date: Optional[date] = None
    go_live_date: Optional[date] = None
    helpdesk_handoff_date: Optional[date] = None
    with_starter_content: bool = False


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    kickoff_date: Optional[date] = None
    go_live_date: Optional[date] = None
    helpdesk_handoff_date: Optional[date] = None


# --- Helper ---

async def _build_project_response(db: AsyncSession, p: Project) -> ProjectResponse:
    stream_count = await db.execute(select(func.count(Stream.id)).where(Stream.project_id == p.id))
    deliverable_count = await db.execute(select(func.count(Deliverable.id)).where(Deliverable.project_id == p.id))
    return ProjectResponse(
        id=p.id,
        name=p.name,
        description=p.description,
        kickoff_date=p.kickoff_date,
        go_live_date=p.go_live_date,
        helpdesk_handoff_date=p.helpdesk_handoff_date,
        created_at=p.created_at,
        updated_at=p.updated_at,
        stream_count=stream_count.scalar() or 0,
        deliverable_count=deliverable_count.scalar() or 0,
    )


async def _get_project_or_404(db: AsyncSession, project_id: int) -> Project:
    result = await db.execute(select(Project).where(Project.id == project_id))
    project = result.scalar_one_or_none()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


# --- Endpoints ---

@router.get("/", response_model=List[ProjectResponse])
async def list_projects(db: AsyncSession = Depends(get_db)):
    """List all projects, newest first"""
    result = await db.execute(select(Project).order_by(Project.created_at.desc(), Project.id.desc()))
    return [await _build_project_response(db, p) for p in result.scalars().all()]


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: int, db: AsyncSession = Depends(get_db)):
    """Get a single project"""
    project = await _get_project_or_404(db, project_id)
    return await _build_project_response(db, project)


@router.post("/", response_model=ProjectResponse)
async def create_project(
    data: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
    events: BoardEvents = Depends(get_events),
):
    """Create a new project, optionally with the getting-started stream"""
    name = data.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Project name cannot be empty")

    project = Project(**data.model_dump(exclude_none=True, exclude={"with_starter_content", "name"}), name=name)
    db.add(project)
    await db.flush()

    if data.with_starter_content:
        await seed_starter_content(db, project)

    await db.commit()
    await db.refresh(project)
    events.publish("project.created", project.id, actor, project_name=project.name)
    return await _build_project_response(db, project)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(project_id: int, data: ProjectUpdate, db: AsyncSession = Depends(get_db)):
    """Update project details and milestone dates"""
    project = await _get_project_or_404(db, project_id)

    updates = data.model_dump(exclude_none=True)
    if "name" in updates and not updates["name"].strip():
        raise HTTPException(status_code=400, detail="Project name cannot be empty")
    for key, value in updates.items():
        setattr(project, key, value)

    project.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(project)
    return await _build_project_response(db, project)


@router.delete("/{project_id}")
async def delete_project(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
    events: BoardEvents = Depends(get_events),
):
    """Delete a project and everything in it"""
    project = await _get_project_or_404(db, project_id)
    await db.delete(project)
    await db.commit()
    events.publish("project.deleted", project_id, actor)
    return {"message": "Project deleted"}
