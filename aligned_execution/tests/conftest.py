"""
Test fixtures - in-memory SQLite database + HTTP client acting as a named user
"""
from datetime import date

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from aligned_execution.database import Base, get_db, enable_sqlite_foreign_keys
from aligned_execution.main import app
import aligned_execution.models  # noqa: F401 - registers all tables on Base
from aligned_execution.models.project import Project
from aligned_execution.models.stream import Stream
from aligned_execution.models.team import TeamMember

TEST_ACTOR = "Dana Planner"


@pytest_asyncio.fixture()
async def db_session():
    """Create a fresh in-memory SQLite database for each test"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture()
async def seed_data(db_session):
    """Insert baseline test data: one project with two streams and a team member"""
    project = Project(
        name="Medicaid Modernization",
        kickoff_date=date(2025, 1, 6),
        go_live_date=date(2025, 9, 1),
    )
    db_session.add(project)
    await db_session.flush()

    build = Stream(project_id=project.id, name="Build", color="#3B82F6", position=0)
    test = Stream(project_id=project.id, name="Testing", color="#10B981", position=1)
    member = TeamMember(project_id=project.id, name="Sam Owner", email="sam@example.com")

    db_session.add_all([build, test, member])
    await db_session.commit()
    for obj in (project, build, test, member):
        await db_session.refresh(obj)

    return {"project": project, "build": build, "test": test, "member": member}


@pytest_asyncio.fixture()
async def client(db_session, seed_data):
    """httpx AsyncClient bound to the FastAPI app, sending an X-Actor header"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        ac.headers["X-Actor"] = TEST_ACTOR
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def anon_client(db_session, seed_data):
    """Client without an X-Actor header"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac

    app.dependency_overrides.clear()
