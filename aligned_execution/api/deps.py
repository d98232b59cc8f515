"""
Shared request dependencies - project context and the board event hub
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aligned_execution.config import get_settings
from aligned_execution.database import get_db
from aligned_execution.models.project import Project
from aligned_execution.services.events import BoardEvents
from aligned_execution.utils.helpers import actor_or_default


@dataclass
class ProjectContext:
    """The project a request works in, and who is acting"""
    project: Project
    actor: str

    @property
    def project_id(self) -> int:
        return self.project.id


def get_actor(x_actor: Optional[str] = Header(None)) -> str:
    return actor_or_default(x_actor, get_settings().DEFAULT_ACTOR)


async def get_project_context(
    project_id: int,
    actor: str = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> ProjectContext:
    result = await db.execute(select(Project).where(Project.id == project_id))
    project = result.scalar_one_or_none()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return ProjectContext(project=project, actor=actor)


def get_events(request: Request) -> BoardEvents:
    return request.app.state.events


def check_version(record, expected: Optional[int]) -> None:
    """Reject an update made against a stale copy of the record"""
    if expected is not None and expected != record.version:
        raise HTTPException(
            status_code=409,
            detail=f"Record was modified by someone else (version {record.version}, you sent {expected})",
        )
