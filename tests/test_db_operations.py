"""Tests for database CRUD operations."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from cardlistcompare.db.operations import (
    create_snapshot,
    create_tracked_deck,
    delete_snapshot,
    delete_tracked_deck,
    get_latest_snapshot,
    get_snapshot,
    get_tracked_deck,
    list_snapshots,
    list_tracked_decks,
    lock_snapshot,
    prune_snapshots,
    refresh_tracked_deck,
    rename_snapshot,
    snapshot_to_model,
    unlock_snapshot,
)
from cardlistcompare.models.db import TrackedDeckDB
from cardlistcompare.parsers.deck_text import DeckTextError
from cardlistcompare.services.retention import LockLimitError, SnapshotLockedError


@pytest.fixture
async def deck(session: AsyncSession) -> TrackedDeckDB:
    deck = await create_tracked_deck(session, "Atraxa Superfriends", "https://example.com/d/1")
    await session.commit()
    return deck


class TestTrackedDeckOperations:
    async def test_create_tracked_deck(self, session: AsyncSession) -> None:
        """Can create a tracked deck."""
        deck = await create_tracked_deck(session, "Mono-Red")

        assert deck.id is not None
        assert deck.name == "Mono-Red"
        assert deck.commanders == []

    async def test_get_tracked_deck(self, session: AsyncSession, deck: TrackedDeckDB) -> None:
        found = await get_tracked_deck(session, deck.id)

        assert found is not None
        assert found.source_url == "https://example.com/d/1"

    async def test_get_missing_deck(self, session: AsyncSession) -> None:
        assert await get_tracked_deck(session, 999) is None

    async def test_list_tracked_decks(self, session: AsyncSession, deck: TrackedDeckDB) -> None:
        await create_tracked_deck(session, "Second")

        decks = await list_tracked_decks(session)

        assert [d.name for d in decks] == ["Atraxa Superfriends", "Second"]

    async def test_delete_removes_locked_snapshots(
        self, session: AsyncSession, deck: TrackedDeckDB
    ) -> None:
        """Deleting a deck takes all of its snapshots with it, locked or not."""
        snapshot = await create_snapshot(session, deck, "1 Sol Ring")
        await lock_snapshot(session, snapshot)
        await session.commit()

        assert await delete_tracked_deck(session, deck.id) is True
        await session.commit()

        assert await get_tracked_deck(session, deck.id) is None
        assert await list_snapshots(session, deck.id) == []

    async def test_delete_missing_deck(self, session: AsyncSession) -> None:
        assert await delete_tracked_deck(session, 999) is False


class TestCreateSnapshot:
    async def test_stores_formatted_text(self, session: AsyncSession, deck: TrackedDeckDB) -> None:
        snapshot = await create_snapshot(session, deck, "1 Sol Ring (lea) 103\n", nickname=" v1 ")

        assert snapshot.id is not None
        assert snapshot.deck_text == "Mainboard\n1 Sol Ring (lea) [103]"
        assert snapshot.nickname == "v1"
        assert snapshot.locked is False

    async def test_carries_printings_from_latest(
        self, session: AsyncSession, deck: TrackedDeckDB
    ) -> None:
        await create_snapshot(session, deck, "1 Sol Ring (lea) 103")

        snapshot = await create_snapshot(session, deck, "1 Sol Ring\n1 Island")

        assert snapshot.deck_text == "Mainboard\n1 Island\n1 Sol Ring (lea) [103]"

    async def test_backfills_commanders(
        self, session: AsyncSession, deck: TrackedDeckDB, sample_commander_deck: str
    ) -> None:
        await create_snapshot(session, deck, sample_commander_deck)

        assert deck.commanders == ["Atraxa, Praetors' Voice"]

    async def test_rejects_non_deck_text(self, session: AsyncSession, deck: TrackedDeckDB) -> None:
        with pytest.raises(DeckTextError):
            await create_snapshot(session, deck, "this is\nnot a deck")

    async def test_prunes_after_insert(self, session: AsyncSession, deck: TrackedDeckDB) -> None:
        for i in range(1, 5):
            await create_snapshot(session, deck, f"{i} Island", max_total=2, max_locked=0)

        rows = await list_snapshots(session, deck.id)

        assert [r.deck_text for r in rows] == ["Mainboard\n4 Island", "Mainboard\n3 Island"]

    async def test_locked_snapshots_survive_pruning(
        self, session: AsyncSession, deck: TrackedDeckDB
    ) -> None:
        first = await create_snapshot(session, deck, "1 Island", max_total=0)
        await lock_snapshot(session, first)
        for i in range(2, 6):
            await create_snapshot(session, deck, f"{i} Island", max_total=1, max_locked=5)

        rows = await list_snapshots(session, deck.id, newest_first=False)

        assert len(rows) == 2
        assert rows[0].id == first.id
        assert rows[-1].deck_text == "Mainboard\n5 Island"


class TestSnapshotQueries:
    async def test_latest_snapshot(self, session: AsyncSession, deck: TrackedDeckDB) -> None:
        assert await get_latest_snapshot(session, deck.id) is None

        await create_snapshot(session, deck, "1 Island")
        second = await create_snapshot(session, deck, "2 Island")

        latest = await get_latest_snapshot(session, deck.id)
        assert latest is not None
        assert latest.id == second.id

    async def test_get_snapshot_scoped_to_deck(
        self, session: AsyncSession, deck: TrackedDeckDB
    ) -> None:
        other = await create_tracked_deck(session, "Other")
        snapshot = await create_snapshot(session, deck, "1 Island")

        assert await get_snapshot(session, deck.id, snapshot.id) is not None
        assert await get_snapshot(session, other.id, snapshot.id) is None

    async def test_snapshot_to_model(self, session: AsyncSession, deck: TrackedDeckDB) -> None:
        row = await create_snapshot(session, deck, "1 Island", nickname="start")

        model = snapshot_to_model(row)

        assert model.id == row.id
        assert model.nickname == "start"
        assert model.deck_text == "Mainboard\n1 Island"


class TestRefresh:
    async def test_first_refresh_creates_snapshot(
        self, session: AsyncSession, deck: TrackedDeckDB
    ) -> None:
        snapshot, diff = await refresh_tracked_deck(session, deck, "4 Lightning Bolt")

        assert snapshot is not None
        assert [c.key for c in diff.mainboard.cards_in] == ["lightning bolt"]

    async def test_unchanged_refresh_is_skipped(
        self, session: AsyncSession, deck: TrackedDeckDB
    ) -> None:
        await create_snapshot(session, deck, "4 Lightning Bolt (lea) 161")

        snapshot, diff = await refresh_tracked_deck(session, deck, "4 lightning bolt")

        assert snapshot is None
        assert diff.is_empty
        assert len(await list_snapshots(session, deck.id)) == 1

    async def test_changed_refresh_creates_snapshot(
        self, session: AsyncSession, deck: TrackedDeckDB
    ) -> None:
        await create_snapshot(session, deck, "4 Lightning Bolt (lea) 161")

        snapshot, diff = await refresh_tracked_deck(session, deck, "3 Lightning Bolt")

        assert snapshot is not None
        assert snapshot.deck_text == "Mainboard\n3 Lightning Bolt (lea) [161]"
        assert diff.mainboard.quantity_changes[0].delta == -1


class TestLockingAndDeletion:
    async def test_rename(self, session: AsyncSession, deck: TrackedDeckDB) -> None:
        snapshot = await create_snapshot(session, deck, "1 Island")

        await rename_snapshot(session, snapshot, "  Pre-ban  ")
        assert snapshot.nickname == "Pre-ban"

        await rename_snapshot(session, snapshot, "   ")
        assert snapshot.nickname is None

    async def test_lock_limit(self, session: AsyncSession, deck: TrackedDeckDB) -> None:
        first = await create_snapshot(session, deck, "1 Island")
        second = await create_snapshot(session, deck, "2 Island")

        await lock_snapshot(session, first, max_locked=1)

        with pytest.raises(LockLimitError):
            await lock_snapshot(session, second, max_locked=1)
        assert second.locked is False

    async def test_relocking_is_noop(self, session: AsyncSession, deck: TrackedDeckDB) -> None:
        snapshot = await create_snapshot(session, deck, "1 Island")
        await lock_snapshot(session, snapshot, max_locked=1)

        await lock_snapshot(session, snapshot, max_locked=1)

        assert snapshot.locked is True

    async def test_locked_snapshot_cannot_be_deleted(
        self, session: AsyncSession, deck: TrackedDeckDB
    ) -> None:
        snapshot = await create_snapshot(session, deck, "1 Island")
        await lock_snapshot(session, snapshot)

        with pytest.raises(SnapshotLockedError):
            await delete_snapshot(session, snapshot)

        await unlock_snapshot(session, snapshot)
        await delete_snapshot(session, snapshot)

        assert await list_snapshots(session, deck.id) == []


class TestPruneSnapshots:
    async def test_zero_limit_keeps_everything(
        self, session: AsyncSession, deck: TrackedDeckDB
    ) -> None:
        for i in range(1, 4):
            await create_snapshot(session, deck, f"{i} Island", max_total=0)

        assert await prune_snapshots(session, deck.id, max_total=0, max_locked=0) == 0
        assert len(await list_snapshots(session, deck.id)) == 3

    async def test_returns_deleted_count(self, session: AsyncSession, deck: TrackedDeckDB) -> None:
        for i in range(1, 6):
            await create_snapshot(session, deck, f"{i} Island", max_total=0)

        deleted = await prune_snapshots(session, deck.id, max_total=2, max_locked=0)

        assert deleted == 3
        rows = await list_snapshots(session, deck.id)
        assert [r.deck_text for r in rows] == ["Mainboard\n5 Island", "Mainboard\n4 Island"]
