"""
Database setup script - creates tables and a demo project with a realistic board
"""
import asyncio
from datetime import date, datetime

from aligned_execution.database import engine, create_tables, AsyncSessionLocal
from aligned_execution.models.project import Project
from aligned_execution.models.stream import Stream, STREAM_COLORS
from aligned_execution.models.team import TeamMember
from aligned_execution.models.track import ExecutionTrack
from aligned_execution.models.whiteboard import WhiteboardNote
from aligned_execution.services.planning import mark_complete, new_deliverable, record_date_change
from aligned_execution.services.starter_content import seed_starter_content


async def setup_database():
    """Create tables and seed a demo project"""
    print("Creating database tables...")
    await create_tables()
    print("Tables created")

    async with AsyncSessionLocal() as session:
        project = Project(
            name="Demo Program",
            description="Sample board with recommits, tracks and whiteboard ideas",
            kickoff_date=date(2025, 1, 6),
            go_live_date=date(2025, 10, 1),
            helpdesk_handoff_date=date(2025, 11, 15),
        )
        session.add(project)
        await session.flush()
        await seed_starter_content(session, project)

        lead = TeamMember(project_id=project.id, name="Jordan Lead", email="jordan@example.com", role="Lead")
        analyst = TeamMember(project_id=project.id, name="Riley Analyst", email="riley@example.com")
        session.add_all([lead, analyst])

        streams = []
        for i, name in enumerate(["Eligibility", "Claims", "Reporting"], start=1):
            stream = Stream(project_id=project.id, name=name, color=STREAM_COLORS[i]["value"], position=i)
            session.add(stream)
            streams.append(stream)
        await session.flush()

        eligibility, claims, reporting = streams

        intake = new_deliverable(
            "Member intake interface", project_id=project.id, stream_id=eligibility.id,
            status="executing", target_date=date(2025, 4, 1),
            owner_name=lead.name, assigned_member_id=lead.id, position=0,
        )
        record_date_change(intake, date(2025, 5, 1), "Vendor Delay", "Interface spec arrived late", lead.name)

        rules = new_deliverable(
            "Eligibility rules engine", project_id=project.id, stream_id=eligibility.id,
            target_date=date(2025, 3, 1), position=1,
        )
        mark_complete(rules, now=datetime(2025, 3, 4))

        adjudication = new_deliverable(
            "Claims adjudication", project_id=project.id, stream_id=claims.id,
            status="alignment", target_date=date(2025, 8, 15),
            owner_name=analyst.name, assigned_member_id=analyst.id, position=0,
        )
        dashboards = new_deliverable(
            "Executive dashboards", project_id=project.id, stream_id=reporting.id,
            target_date=date(2025, 9, 1), position=0,
        )
        session.add_all([intake, rules, adjudication, dashboards])
        await session.flush()

        dashboards.dependencies = [intake.id, adjudication.id]
        session.add(ExecutionTrack(
            project_id=project.id, deliverable_id=adjudication.id,
            title="Adjudication vendor build", vendor="Acme Health IT", target_date=date(2025, 7, 30),
        ))
        session.add(ExecutionTrack(
            project_id=project.id, title="Data center move", vendor="Infra Team",
            target_date=date(2025, 6, 1), is_outside_track=True,
        ))
        session.add(WhiteboardNote(
            project_id=project.id, stream_id=reporting.id,
            title="Self-service provider reports", tags=["idea", "reporting"],
        ))

        await session.commit()
        print(f"Demo project created (id={project.id})")

    await engine.dispose()
    print("\nDatabase setup complete!")


if __name__ == "__main__":
    asyncio.run(setup_database())
