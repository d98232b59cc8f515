"""
Team members API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel

from aligned_execution.database import get_db
from aligned_execution.models.team import TeamMember
from aligned_execution.api.deps import ProjectContext, get_project_context
from aligned_execution.utils.validators import validate_name

router = APIRouter()


class MemberResponse(BaseModel):
    id: int
    project_id: int
    name: str
    email: Optional[str]
    role: str
    active: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class MemberCreate(BaseModel):
    name: str
    email: Optional[str] = None
    role: Optional[str] = None


class MemberUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    active: Optional[bool] = None


async def _get_member_or_404(db: AsyncSession, ctx: ProjectContext, member_id: int) -> TeamMember:
    result = await db.execute(
        select(TeamMember).where(TeamMember.id == member_id, TeamMember.project_id == ctx.project_id)
    )
    member = result.scalar_one_or_none()
    if not member:
        raise HTTPException(status_code=404, detail="Team member not found")
    return member


@router.get("/", response_model=List[MemberResponse])
async def list_members(
    active_only: bool = False,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    query = select(TeamMember).where(TeamMember.project_id == ctx.project_id).order_by(TeamMember.name)
    if active_only:
        query = query.where(TeamMember.active.is_(True))
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/", response_model=MemberResponse)
async def create_member(
    data: MemberCreate,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    try:
        name = validate_name(data.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    member = TeamMember(
        project_id=ctx.project_id,
        name=name,
        email=data.email,
        role=data.role or "Team Member",
        active=True,
    )
    db.add(member)
    await db.commit()
    await db.refresh(member)
    return member


@router.put("/{member_id}", response_model=MemberResponse)
async def update_member(
    member_id: int,
    data: MemberUpdate,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    member = await _get_member_or_404(db, ctx, member_id)

    updates = data.model_dump(exclude_none=True)
    if "name" in updates:
        try:
            updates["name"] = validate_name(updates["name"])
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    for key, value in updates.items():
        setattr(member, key, value)

    await db.commit()
    await db.refresh(member)
    return member


@router.delete("/{member_id}")
async def delete_member(
    member_id: int,
    ctx: ProjectContext = Depends(get_project_context),
    db: AsyncSession = Depends(get_db),
):
    """Remove a member; their deliverables become unassigned"""
    member = await _get_member_or_404(db, ctx, member_id)
    await db.delete(member)
    await db.commit()
    return {"message": "Team member deleted", "id": member_id}
