"""Tests for background embedding writes."""

import asyncio
import logging
from uuid import uuid4

import pytest

from studyforge.db.models import Note
from studyforge.services import indexing
from studyforge.services.embedding import create_embedding


class FakeSessionFactory:
    """Stands in for AsyncSessionLocal; every session shares one log."""

    def __init__(self, *, fail: bool = False):
        self.fail = fail
        self.statements = []
        self.commits = 0

    def __call__(self):
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def execute(self, statement):
        if self.fail:
            raise RuntimeError("database unavailable")
        self.statements.append(statement)

    async def commit(self):
        self.commits += 1


@pytest.fixture
def session_factory(monkeypatch):
    factory = FakeSessionFactory()
    monkeypatch.setattr(indexing, "AsyncSessionLocal", factory)
    return factory


async def test_store_embedding_writes_term_frequencies(session_factory):
    note_id = uuid4()
    text = "Binary search halves a sorted interval."

    await indexing.store_embedding(Note, note_id, text)

    [statement] = session_factory.statements
    params = statement.compile().params
    assert params["embedding"] == create_embedding(text)
    assert note_id in params.values()
    assert session_factory.commits == 1


async def test_store_embedding_failure_is_logged_not_raised(monkeypatch, caplog):
    factory = FakeSessionFactory(fail=True)
    monkeypatch.setattr(indexing, "AsyncSessionLocal", factory)

    with caplog.at_level(logging.ERROR, logger="studyforge.services.indexing"):
        await indexing.store_embedding(Note, uuid4(), "graph traversal")

    assert factory.commits == 0
    assert "Embedding update failed" in caplog.text


async def test_schedule_embedding_releases_finished_task(session_factory):
    task = indexing.schedule_embedding(Note, uuid4(), "dynamic programming")

    assert task in indexing._background_tasks
    await task
    await asyncio.sleep(0)

    assert task not in indexing._background_tasks
    assert len(session_factory.statements) == 1
