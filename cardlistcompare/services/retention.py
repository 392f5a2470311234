"""
Snapshot retention policy.

Decides which snapshots of one tracked deck may be deleted. The decision is
a pure function over snapshot records; deleting the selected rows is the
store's job (see db.operations.prune_snapshots).

Rules:
- Locked snapshots are never selected.
- max_total == 0 disables pruning.
- Otherwise the oldest unlocked snapshots are selected until max_total
  unlocked ones remain.
- The most recent snapshot is never selected.

max_locked is not applied here. It guards lock requests instead, see
ensure_lock_allowed.
"""

from collections.abc import Sequence

from cardlistcompare.models.snapshot import Snapshot


class RetentionConfigError(ValueError):
    """Raised when retention limits are invalid."""

    def __init__(self, name: str, value: int) -> None:
        self.name = name
        self.value = value
        super().__init__(f"{name} must be a non-negative integer, got {value!r}")


class LockLimitError(Exception):
    """Raised when locking one more snapshot would exceed the per-deck limit."""

    def __init__(self, max_locked: int) -> None:
        self.max_locked = max_locked
        super().__init__(
            f"Lock limit reached ({max_locked} per deck). Unlock another snapshot first."
        )


class SnapshotLockedError(Exception):
    """Raised when deleting a locked snapshot."""

    def __init__(self, snapshot_id: int) -> None:
        self.snapshot_id = snapshot_id
        super().__init__(f"Cannot delete locked snapshot {snapshot_id}. Unlock it first.")


def validate_retention_limits(max_total: int, max_locked: int) -> None:
    """
    Reject negative or non-integer limits.

    Raises:
        RetentionConfigError: Naming the first invalid limit
    """
    for name, value in (("max_total", max_total), ("max_locked", max_locked)):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise RetentionConfigError(name, value)


def select_snapshots_to_prune(
    snapshots: Sequence[Snapshot], max_total: int, max_locked: int
) -> set[int]:
    """
    Select snapshot ids to delete.

    Args:
        snapshots: All snapshots of one tracked deck, any order
        max_total: Unlocked snapshots to keep; 0 means unlimited
        max_locked: Lock limit, validated but not enforced here

    Returns:
        Ids of the oldest excess unlocked snapshots (by created_at, then id)

    Raises:
        RetentionConfigError: If either limit is negative
    """
    validate_retention_limits(max_total, max_locked)

    if max_total == 0 or not snapshots:
        return set()

    newest = max(snapshots, key=lambda s: s.sort_key)
    unlocked = sorted((s for s in snapshots if not s.locked), key=lambda s: s.sort_key)

    excess = len(unlocked) - max_total
    if excess <= 0:
        return set()

    return {s.id for s in unlocked[:excess] if s.id != newest.id}


def ensure_lock_allowed(snapshots: Sequence[Snapshot], max_locked: int) -> None:
    """
    Guard a lock request for one more snapshot of a deck.

    Args:
        snapshots: All snapshots of the deck, before the lock
        max_locked: Lock limit; 0 means unlimited

    Raises:
        LockLimitError: If the deck already holds max_locked locked snapshots
    """
    validate_retention_limits(0, max_locked)
    if max_locked == 0:
        return
    if sum(1 for s in snapshots if s.locked) >= max_locked:
        raise LockLimitError(max_locked)


def ensure_deletable(snapshot: Snapshot) -> None:
    """
    Guard an explicit delete.

    Raises:
        SnapshotLockedError: If the snapshot is locked
    """
    if snapshot.locked:
        raise SnapshotLockedError(snapshot.id)
