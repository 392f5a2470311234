from cardlistcompare.api.decks import router as decks_router
from cardlistcompare.api.health import router as health_router
from cardlistcompare.api.snapshots import router as snapshots_router

__all__ = [
    "decks_router",
    "health_router",
    "snapshots_router",
]
