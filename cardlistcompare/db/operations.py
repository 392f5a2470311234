"""
Database CRUD operations.

Provides async functions for tracked decks and their snapshots. Business
rules (enrichment, retention, lock limits) live in the services layer; these
functions apply their decisions to the database.
"""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cardlistcompare.config import settings
from cardlistcompare.models.db import DeckSnapshotDB, TrackedDeckDB
from cardlistcompare.models.diff import DiffResult
from cardlistcompare.models.snapshot import Snapshot
from cardlistcompare.parsers.deck_text import parse_deck_text
from cardlistcompare.services.differ import compute_diff
from cardlistcompare.services.enricher import DeckEnricher
from cardlistcompare.services.retention import (
    ensure_deletable,
    ensure_lock_allowed,
    select_snapshots_to_prune,
)

logger = logging.getLogger(__name__)

# --- Tracked Deck Operations ---


async def create_tracked_deck(
    session: AsyncSession, name: str, source_url: str | None = None
) -> TrackedDeckDB:
    """Create a new tracked deck with no snapshots."""
    deck = TrackedDeckDB(name=name, source_url=source_url, commanders=[])
    session.add(deck)
    await session.flush()
    await session.refresh(deck)
    return deck


async def get_tracked_deck(session: AsyncSession, deck_id: int) -> TrackedDeckDB | None:
    """
    Get a tracked deck by id.

    Returns None if no such deck exists.
    """
    result = await session.execute(select(TrackedDeckDB).where(TrackedDeckDB.id == deck_id))
    return result.scalar_one_or_none()


async def list_tracked_decks(session: AsyncSession) -> list[TrackedDeckDB]:
    """All tracked decks, oldest first."""
    result = await session.execute(select(TrackedDeckDB).order_by(TrackedDeckDB.id))
    return list(result.scalars().all())


async def count_tracked_decks(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(TrackedDeckDB))
    return result.scalar_one()


async def delete_tracked_deck(session: AsyncSession, deck_id: int) -> bool:
    """
    Delete a tracked deck and all of its snapshots, locked ones included.

    Returns True if deleted, False if not found.
    """
    result = await session.execute(
        select(TrackedDeckDB)
        .where(TrackedDeckDB.id == deck_id)
        .options(selectinload(TrackedDeckDB.snapshots))
    )
    deck = result.scalar_one_or_none()
    if not deck:
        return False

    await session.delete(deck)
    await session.flush()
    return True


# --- Snapshot Operations ---


def snapshot_to_model(row: DeckSnapshotDB) -> Snapshot:
    """Convert a database snapshot to a domain model."""
    return Snapshot(
        id=row.id,
        deck_text=row.deck_text,
        nickname=row.nickname,
        locked=row.locked,
        created_at=row.created_at,
    )


async def list_snapshots(
    session: AsyncSession, deck_id: int, newest_first: bool = True
) -> list[DeckSnapshotDB]:
    """All snapshots of a deck, ordered by creation time then id."""
    order = (
        (DeckSnapshotDB.created_at.desc(), DeckSnapshotDB.id.desc())
        if newest_first
        else (DeckSnapshotDB.created_at.asc(), DeckSnapshotDB.id.asc())
    )
    result = await session.execute(
        select(DeckSnapshotDB).where(DeckSnapshotDB.tracked_deck_id == deck_id).order_by(*order)
    )
    return list(result.scalars().all())


async def get_snapshot(
    session: AsyncSession, deck_id: int, snapshot_id: int
) -> DeckSnapshotDB | None:
    """Get a snapshot by id, scoped to its deck. None if not found."""
    result = await session.execute(
        select(DeckSnapshotDB).where(
            DeckSnapshotDB.id == snapshot_id,
            DeckSnapshotDB.tracked_deck_id == deck_id,
        )
    )
    return result.scalar_one_or_none()


async def get_latest_snapshot(session: AsyncSession, deck_id: int) -> DeckSnapshotDB | None:
    """Most recent snapshot of a deck, or None if it has none."""
    result = await session.execute(
        select(DeckSnapshotDB)
        .where(DeckSnapshotDB.tracked_deck_id == deck_id)
        .order_by(DeckSnapshotDB.created_at.desc(), DeckSnapshotDB.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_snapshot(
    session: AsyncSession,
    deck: TrackedDeckDB,
    deck_text: str,
    nickname: str | None = None,
    enricher: DeckEnricher | None = None,
    max_total: int | None = None,
    max_locked: int | None = None,
) -> DeckSnapshotDB:
    """
    Store a new snapshot of a deck.

    The text is enriched against the deck's latest snapshot, inserted, and
    then the deck's snapshots are pruned. The deck's commanders are
    backfilled from the new snapshot if it had none.

    Raises:
        DeckTextError: If `deck_text` is not deck text at all
    """
    enricher = enricher or DeckEnricher()
    latest = await get_latest_snapshot(session, deck.id)
    enriched = await enricher.enrich(deck_text.strip(), latest.deck_text if latest else None)

    snapshot = DeckSnapshotDB(
        tracked_deck_id=deck.id,
        deck_text=enriched,
        nickname=nickname.strip() if nickname and nickname.strip() else None,
        locked=False,
    )
    session.add(snapshot)
    await session.flush()
    await session.refresh(snapshot)

    await prune_snapshots(session, deck.id, max_total=max_total, max_locked=max_locked)

    if not deck.commanders:
        commanders = parse_deck_text(enriched).commanders
        if commanders:
            deck.commanders = commanders
            await session.flush()

    return snapshot


async def refresh_tracked_deck(
    session: AsyncSession,
    deck: TrackedDeckDB,
    deck_text: str,
    enricher: DeckEnricher | None = None,
    max_total: int | None = None,
    max_locked: int | None = None,
) -> tuple[DeckSnapshotDB | None, DiffResult]:
    """
    Record a fresh observation of a deck, unless nothing changed.

    Returns:
        (snapshot, diff). snapshot is None when the observation has the same
        cards and quantities as the latest snapshot.
    """
    latest = await get_latest_snapshot(session, deck.id)
    before = parse_deck_text(latest.deck_text if latest else "")
    diff = compute_diff(before, parse_deck_text(deck_text))

    if latest is not None and diff.is_empty:
        logger.info("No changes for deck %d, skipping snapshot", deck.id)
        return None, diff

    snapshot = await create_snapshot(
        session,
        deck,
        deck_text,
        enricher=enricher,
        max_total=max_total,
        max_locked=max_locked,
    )
    return snapshot, diff


async def rename_snapshot(
    session: AsyncSession, snapshot: DeckSnapshotDB, nickname: str | None
) -> DeckSnapshotDB:
    """Set or clear a snapshot's nickname. Blank names clear it."""
    snapshot.nickname = nickname.strip() if nickname and nickname.strip() else None
    await session.flush()
    return snapshot


async def lock_snapshot(
    session: AsyncSession, snapshot: DeckSnapshotDB, max_locked: int | None = None
) -> DeckSnapshotDB:
    """
    Lock a snapshot against pruning and deletion. No-op if already locked.

    Raises:
        LockLimitError: If the deck already holds the maximum locked snapshots
    """
    if snapshot.locked:
        return snapshot

    limit = settings.max_locked_per_deck if max_locked is None else max_locked
    siblings = await list_snapshots(session, snapshot.tracked_deck_id)
    ensure_lock_allowed([snapshot_to_model(s) for s in siblings], limit)

    snapshot.locked = True
    await session.flush()
    return snapshot


async def unlock_snapshot(session: AsyncSession, snapshot: DeckSnapshotDB) -> DeckSnapshotDB:
    """Unlock a snapshot. It becomes subject to pruning again."""
    snapshot.locked = False
    await session.flush()
    return snapshot


async def delete_snapshot(session: AsyncSession, snapshot: DeckSnapshotDB) -> None:
    """
    Delete a snapshot at the user's request.

    Raises:
        SnapshotLockedError: If the snapshot is locked
    """
    ensure_deletable(snapshot_to_model(snapshot))
    await session.delete(snapshot)
    await session.flush()


async def prune_snapshots(
    session: AsyncSession,
    deck_id: int,
    max_total: int | None = None,
    max_locked: int | None = None,
) -> int:
    """
    Apply the retention policy to one deck.

    Limits default to the configured per-deck settings.

    Returns:
        Number of snapshots deleted
    """
    max_total = settings.max_snapshots_per_deck if max_total is None else max_total
    max_locked = settings.max_locked_per_deck if max_locked is None else max_locked

    rows = await list_snapshots(session, deck_id)
    to_delete = select_snapshots_to_prune(
        [snapshot_to_model(r) for r in rows], max_total, max_locked
    )
    if not to_delete:
        return 0

    await session.execute(
        delete(DeckSnapshotDB)
        .where(DeckSnapshotDB.id.in_(sorted(to_delete)))
        .execution_options(synchronize_session="fetch")
    )
    logger.info("Pruned %d snapshot(s) from deck %d", len(to_delete), deck_id)
    return len(to_delete)
