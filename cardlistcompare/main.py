"""
CardListCompare API.

Tracks deck lists over time: each import becomes an enriched snapshot, and
any two snapshots of a deck can be diffed into a changelog.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cardlistcompare.api import decks_router, health_router, snapshots_router
from cardlistcompare.config import settings
from cardlistcompare.db.database import init_db


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Create the snapshot tables before the first request is served."""
    await init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    description="Deck snapshot history and changelogs for trading card game deck lists.",
    version=pkg_version("cardlistcompare"),
    lifespan=lifespan,
)

app.include_router(decks_router)
app.include_router(snapshots_router)
app.include_router(health_router)

# The API holds no credentials, so any origin may read it
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
