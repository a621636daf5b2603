"""Background computation of embeddings for newly created content."""

import asyncio
import logging
from uuid import UUID

from sqlalchemy import update

from studyforge.db.models import Note, PlacementQuestion
from studyforge.db.session import AsyncSessionLocal
from studyforge.services.embedding import create_embedding

logger = logging.getLogger(__name__)

# Strong references so pending tasks are not garbage collected
_background_tasks: set[asyncio.Task] = set()


async def store_embedding(model: type[Note] | type[PlacementQuestion], resource_id: UUID, text: str) -> None:
    """
    Compute the embedding for `text` and write it to the row.

    Uses a fresh database session; the request that created the row has
    already returned. Failures are logged, and the row keeps a NULL
    embedding (substring matching still finds it).
    """
    try:
        embedding = create_embedding(text)
        async with AsyncSessionLocal() as db:
            await db.execute(
                update(model).where(model.id == resource_id).values(embedding=embedding)
            )
            await db.commit()
        logger.debug("Stored embedding for %s %s (%d terms)", model.__tablename__, resource_id, len(embedding))
    except Exception:
        logger.exception("Embedding update failed for %s %s", model.__tablename__, resource_id)


def schedule_embedding(model: type[Note] | type[PlacementQuestion], resource_id: UUID, text: str) -> asyncio.Task:
    """Fire-and-forget `store_embedding` on the running event loop."""
    task = asyncio.create_task(store_embedding(model, resource_id, text))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task
