"""
Main FastAPI application
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.orm.exc import StaleDataError

from aligned_execution.config import get_settings
from aligned_execution.database import engine, AsyncSessionLocal, create_tables
from aligned_execution.models import Project
from aligned_execution.api import projects, streams, deliverables, checklist
from aligned_execution.api import tracks, whiteboard, team, dashboard
from aligned_execution.services.events import BoardEvents, log_event
from aligned_execution.services.starter_content import seed_starter_content
from aligned_execution.utils.logger import configure_logging

settings = get_settings()
configure_logging(settings.DEBUG)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    logger.info("Database tables created")

    # Seed a first project so the board is never empty
    if settings.SEED_DEFAULT_PROJECT:
        async with AsyncSessionLocal() as session:
            result = await session.execute(select(Project.id).limit(1))
            if result.scalar_one_or_none() is None:
                project = Project(name=settings.DEFAULT_PROJECT_NAME, description="Default RTG project")
                session.add(project)
                await session.flush()
                await seed_starter_content(session, project)
                await session.commit()
                logger.info(f"Created default project (id={project.id})")

    yield

    await engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# One event hub per application; handlers reach it through request.app.state
app.state.events = BoardEvents()
app.state.events.subscribe(log_event)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StaleDataError)
async def stale_data_handler(request: Request, exc: StaleDataError):
    logger.warning(f"Concurrent update rejected on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=409,
        content={"detail": "Record was modified by someone else; reload and try again"},
    )


# Include routers
project_prefix = "/api/projects/{project_id}"
app.include_router(projects.router, prefix="/api/projects", tags=["Projects"])
app.include_router(streams.router, prefix=f"{project_prefix}/streams", tags=["Streams"])
app.include_router(deliverables.router, prefix=f"{project_prefix}/deliverables", tags=["Deliverables"])
app.include_router(checklist.router, prefix=f"{project_prefix}/deliverables/{{deliverable_id}}", tags=["Checklist & Comments"])
app.include_router(tracks.router, prefix=f"{project_prefix}/tracks", tags=["Execution Tracks"])
app.include_router(whiteboard.router, prefix=f"{project_prefix}/whiteboard", tags=["Whiteboard"])
app.include_router(team.router, prefix=f"{project_prefix}/team", tags=["Team"])
app.include_router(dashboard.router, prefix=f"{project_prefix}/dashboard", tags=["Dashboard"])


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "aligned_execution.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
