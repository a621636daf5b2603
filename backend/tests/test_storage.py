"""Tests for chat turn persistence."""

from uuid import uuid4

from sqlalchemy.dialects import postgresql

from conftest import USER_ID
from studyforge.db.models import ChatSession
from studyforge.schemas.search import Source
from studyforge.services.storage import DatabaseStore


class FakeAsyncSession:
    """Records the statements and objects a store sends to the database."""

    def __init__(self, max_position: int = -1):
        self.next_position = max_position + 1
        self.statements = []
        self.added = []
        self.committed = False

    async def execute(self, statement):
        self.statements.append(statement)

    async def scalar(self, statement):
        self.statements.append(statement)
        return self.next_position

    def add_all(self, objects):
        self.added.extend(objects)

    async def commit(self):
        self.committed = True

    async def refresh(self, obj):
        pass


def compiled(statement) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))


async def test_append_turn_locks_session_before_reading_positions():
    db = FakeAsyncSession(max_position=3)
    session = ChatSession(id=uuid4(), user_id=USER_ID, title="New Chat")
    sources = [Source(type="note", title="Heaps", content="heap", relevance=1.0)]

    reply = await DatabaseStore(db).append_turn(session, "what is a heap", "A tree.", sources)

    lock, position_query = db.statements
    assert "FOR UPDATE" in compiled(lock)
    assert "chat_sessions" in compiled(lock)
    assert "FOR UPDATE" not in compiled(position_query)

    user_message, assistant_message = db.added
    assert (user_message.position, user_message.role) == (4, "user")
    assert (assistant_message.position, assistant_message.role) == (5, "assistant")
    assert reply is assistant_message
    assert reply.sources == [source.model_dump() for source in sources]
    assert db.committed
