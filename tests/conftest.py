from collections.abc import Mapping

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cardlistcompare.models.card import CardPrinting
from cardlistcompare.models.db import Base


class FakeLookup:
    """In-memory printing lookup that records every call."""

    def __init__(self, printings: Mapping[str, CardPrinting] | None = None) -> None:
        self.printings = dict(printings or {})
        self.calls: list[list[str]] = []

    async def lookup(self, names: list[str]) -> dict[str, CardPrinting]:
        self.calls.append(list(names))
        return {
            name.lower(): self.printings[name.lower()]
            for name in names
            if name.lower() in self.printings
        }


@pytest.fixture
def sample_commander_deck() -> str:
    """Sample commander deck in the tracked text format."""
    return """Commander
1 Atraxa, Praetors' Voice (znr) 134

Mainboard
1 Sol Ring (lea) 103
1 Counterspell *F*
1 Lightning Greaves

Sideboard
1 Swords to Plowshares"""


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine):
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """Provide an async test client with overridden database session and enricher."""
    from cardlistcompare.api.snapshots import get_enricher
    from cardlistcompare.db.database import get_session
    from cardlistcompare.main import app
    from cardlistcompare.services.enricher import DeckEnricher

    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_enricher] = lambda: DeckEnricher(
        FakeLookup({"counterspell": CardPrinting("mh2", "267")})
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
