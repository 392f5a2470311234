from cardlistcompare.db.database import get_session, init_db
from cardlistcompare.db.operations import (
    count_tracked_decks,
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

__all__ = [
    "count_tracked_decks",
    "create_snapshot",
    "create_tracked_deck",
    "delete_snapshot",
    "delete_tracked_deck",
    "get_latest_snapshot",
    "get_session",
    "get_snapshot",
    "get_tracked_deck",
    "init_db",
    "list_snapshots",
    "list_tracked_decks",
    "lock_snapshot",
    "prune_snapshots",
    "refresh_tracked_deck",
    "rename_snapshot",
    "snapshot_to_model",
    "unlock_snapshot",
]
