import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import Session

from redirector.database import Base, PoolManager, get_pool_manager
from redirector.main import app
from redirector.models import Redirect
from redirector.services import click_logger
from redirector.utils.geo import GeoData

TOKEN = "abc123"
DESTINATION = "https://example.com/page"


@pytest.fixture(autouse=True)
def no_geo_lookup(monkeypatch):
    """Keep tests off the network"""
    monkeypatch.setattr(click_logger, "get_geo_data", lambda ip: GeoData())


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "redirects.db"


@pytest.fixture
def async_url(db_path):
    return f"sqlite+aiosqlite:///{db_path}"


@pytest.fixture
def sync_engine(db_path):
    engine = create_engine(f"sqlite:///{db_path}")
    yield engine
    engine.dispose()


@pytest.fixture
def seeded_db(sync_engine):
    """All tables plus one token"""
    Base.metadata.create_all(sync_engine)
    with Session(sync_engine) as session:
        session.add(Redirect(token=TOKEN, destination_url=DESTINATION))
        session.commit()
    return sync_engine


@pytest.fixture
def run_with_pool(async_url):
    """Run an async callable against a throwaway engine on the test database"""
    def _run(func):
        async def runner():
            engine = create_async_engine(async_url)
            try:
                return await func(engine)
            finally:
                await engine.dispose()
        return asyncio.run(runner())
    return _run


@pytest.fixture
def make_client(async_url):
    """Build a TestClient whose requests use a fresh pool manager"""
    clients = []

    def _make(connection_string=None):
        manager = PoolManager(
            connection_string=async_url if connection_string is None else connection_string
        )
        app.dependency_overrides[get_pool_manager] = lambda: manager
        test_client = TestClient(app)
        test_client.__enter__()
        clients.append((test_client, manager))
        return test_client

    yield _make

    for test_client, manager in clients:
        test_client.portal.call(manager.close)
        test_client.__exit__(None, None, None)
    app.dependency_overrides.clear()


@pytest.fixture
def client(seeded_db, make_client):
    return make_client()
