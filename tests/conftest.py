"""Shared test helpers."""

import asyncio
from datetime import datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from ai_pulse.catalog import seed_catalog
from ai_pulse.database import build_engine, build_sessionmaker, init_models
from ai_pulse.main import create_app
from ai_pulse.models.vote_model import Vote, VoteType


def country_handler(code="US", seen=None):
    """Mock ip-api.com: always answers with ``code``; records request URLs into ``seen``."""
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(str(request.url))
        return httpx.Response(200, json={"status": "success", "countryCode": code})
    return handler


def geo_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'votes.db'}"


@pytest.fixture
def broken_db_url(tmp_path):
    # Parent directory does not exist, so sqlite can't open the file
    return f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'votes.db'}"


def run_with_db(db_url, fn, seed=True):
    """Run ``await fn(session_factory)`` against a fresh schema at ``db_url``."""
    async def _go():
        engine = build_engine(db_url)
        session_factory = build_sessionmaker(engine)
        try:
            if seed:
                await init_models(engine)
                await seed_catalog(session_factory)
            return await fn(session_factory)
        finally:
            await engine.dispose()

    return asyncio.run(_go())


async def add_vote(session_factory, item_id, vote_type="upvote", country="US", created_at=None):
    """Write a vote row directly, bypassing the recorder (lets tests backdate votes)."""
    vote = Vote(item_id=item_id, vote_type=VoteType(vote_type), country=country)
    if created_at is not None:
        vote.created_at = created_at
    async with session_factory() as session:
        session.add(vote)
        await session.commit()
    return vote


def utcnow():
    return datetime.now(timezone.utc)


@pytest.fixture
def make_client(db_url):
    """Build a started TestClient; the geo service is a MockTransport."""
    clients = []

    def _make(handler=None, database_url=None):
        app = create_app(
            database_url=database_url or db_url,
            http_client=geo_client(handler or country_handler()),
        )
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)
