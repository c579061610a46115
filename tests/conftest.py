from __future__ import annotations

from collections.abc import Generator

import fakeredis
import pytest
from fastapi.testclient import TestClient

from wager import registry
from wager.api.deps import get_redis
from wager.main import app


@pytest.fixture()
def r() -> fakeredis.FakeRedis:
    """Fresh in-memory Redis for each test (instances may share a fake server)."""

    client = fakeredis.FakeRedis(decode_responses=True)
    client.flushall()
    return client


@pytest.fixture()
def client_and_redis(r: fakeredis.FakeRedis) -> Generator[tuple[TestClient, fakeredis.FakeRedis], None, None]:
    """FastAPI TestClient wired to the same fakeredis the test inspects."""

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()


@pytest.fixture()
def minted(r: fakeredis.FakeRedis) -> dict[str, object]:
    """Creator "alice" owns asset A; opponent "bob" owns B, C and D (all minted by "studio")."""

    a = registry.mint(r=r, creator="alice", collection="Punks", name="A")
    b = registry.mint(r=r, creator="studio", collection="Apes", name="B", owner="bob")
    c = registry.mint(r=r, creator="studio", collection="Apes", name="C", owner="bob")
    d = registry.mint(r=r, creator="studio", collection="Apes", name="D", owner="bob")
    return {"A": a, "B": b, "C": c, "D": d}
