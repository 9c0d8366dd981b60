from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from bookshare.adapters.catalog.memory import InMemoryCatalogAdapter
from bookshare.api.dependencies import get_catalog
from bookshare.api.middleware.auth import create_session_token
from bookshare.database import build_engine, build_session_factory, get_session
from bookshare.domain.models import Base
from bookshare.main import app

BASE = "http://test"

BIBS = [
    {
        "id": "1001",
        "title": "Solaris",
        "author": "Lem, Stanisław (1921-2006)",
        "genre": "Fantastyka",
        "language": "polski",
        "publicationYear": 1961,
    },
    {
        "id": "1002",
        "title": "Cyberiada",
        "author": "Lem, Stanisław (1921-2006)",
        "genre": "Fantastyka",
        "language": "polski",
        "publicationYear": 1965,
    },
    {
        "id": "1003",
        "title": "Niezwyciężony",
        "author": "Lem, Stanisław (1921-2006)",
        "genre": "Fantastyka",
        "language": "polski",
        "publicationYear": 1964,
    },
    {
        "id": "2001",
        "title": "2001: A Space Odyssey",
        "author": "Clarke, Arthur C. (1917-2008)",
        "genre": "Science fiction",
        "language": "angielski",
        "publicationYear": 1968,
    },
    {
        "id": "2002",
        "title": "Rendezvous with Rama",
        "author": "Clarke, Arthur C. (1917-2008)",
        "genre": "Science fiction",
        "language": "angielski",
        "publicationYear": 1973,
    },
    {
        "id": "3001",
        "title": "Lalka",
        "author": "Prus, Bolesław (1847-1912)",
        "genre": "Powieść",
        "language": "polski",
        "publicationYear": 1890,
    },
    {
        "id": "4001",
        "title": "Les Misérables",
        "author": "Hugo, Victor (1802-1885)",
        "genre": "Powieść historyczna",
        "language": "francuski",
        "publicationYear": 1862,
    },
    {
        "id": "5001",
        "title": "Faust",
        "author": "Goethe, Johann Wolfgang von (1749-1832)",
        "genre": "Dramat",
        "language": "niemiecki",
        "publicationYear": 1808,
    },
]


def auth_headers(uid: str, email: str | None = None, name: str | None = None) -> dict[str, str]:
    """Bearer header for a signed session token with the given identity claims."""
    token = create_session_token(
        uid,
        email=email or f"{uid}@example.com",
        name=name or uid.title(),
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite database per test."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def catalog() -> InMemoryCatalogAdapter:
    return InMemoryCatalogAdapter([dict(bib) for bib in BIBS])


@pytest.fixture
async def client(session_factory, catalog) -> AsyncGenerator[AsyncClient, None]:
    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_catalog] = lambda: catalog
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=BASE) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def alice() -> dict[str, str]:
    return auth_headers("alice", name="Alice Nowak")


@pytest.fixture
def bob() -> dict[str, str]:
    return auth_headers("bob", name="Bob Kowalski")


@pytest.fixture
def carol() -> dict[str, str]:
    return auth_headers("carol", name="Carol Wiśniewska")


@pytest.fixture
def befriend(client: AsyncClient):
    """Invite ``email`` and accept as ``invitee``; returns the contact edge ID."""

    async def _befriend(inviter: dict[str, str], invitee: dict[str, str], email: str) -> str:
        await client.get("/api/users/me", headers=invitee)
        resp = await client.post("/api/contacts", json={"email": email}, headers=inviter)
        assert resp.status_code == 201
        edge_id = resp.json()["id"]
        resp = await client.post(f"/api/contacts/{edge_id}/accept", headers=invitee)
        assert resp.status_code == 200
        return edge_id

    return _befriend
