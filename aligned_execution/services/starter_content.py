"""
Starter content for new projects - a "Getting Started" stream holding one
quick-start deliverable whose checklist walks through the board features
"""
from sqlalchemy.ext.asyncio import AsyncSession

from aligned_execution.models.deliverable import ChecklistItem, DeliverableComment, DeliverableStatus
from aligned_execution.models.project import Project
from aligned_execution.models.stream import Stream
from aligned_execution.services.planning import new_deliverable

QUICK_START_STEPS = [
    "Click the collapse button to minimize streams",
    "Drag cards between streams to reorganize",
    "Use the Add Deliverable button to create new cards",
    "Click on any card to edit details and add checklists",
    "Set readiness levels: Planning to Alignment to Ready to Executing to Review to Complete",
    "Add dependencies between deliverables",
    "Check off checklist items as you complete them",
    "Delete this card when you are ready to start your real project",
]


async def seed_starter_content(db: AsyncSession, project: Project) -> Stream:
    """Add the starter stream and card to ``project`` (flushes, does not commit)"""
    stream = Stream(
        project_id=project.id,
        name="Getting Started",
        color="#3B82F6",
        description="Training and setup guidance",
        position=0,
    )
    db.add(stream)
    await db.flush()

    card = new_deliverable(
        "RTG System Quick Start Guide",
        project_id=project.id,
        stream_id=stream.id,
        description=(
            "Welcome to your RTG Program Board! This interactive guide will help "
            "you learn the key features."
        ),
        status=DeliverableStatus.READY.value,
        owner_name="RTG System",
    )
    card.checklist = [
        ChecklistItem(text=text, position=i) for i, text in enumerate(QUICK_START_STEPS)
    ]
    card.comments = [
        DeliverableComment(
            text=(
                "Pro tip: Try each feature as you check it off! This card demonstrates "
                "all the key functionality you will use in your projects."
            ),
            author="RTG Guide",
        )
    ]
    db.add(card)
    await db.flush()
    return stream
