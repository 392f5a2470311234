from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Snapshot:
    """
    One timestamped capture of a tracked deck's text.

    Only nickname and locked may change after creation; the store
    enforces that, this record is a read-only view of a row.
    """

    id: int
    deck_text: str
    created_at: datetime
    nickname: str | None = None
    locked: bool = False

    @property
    def sort_key(self) -> tuple[datetime, int]:
        """Chronological order, ties broken by ascending id."""
        return (self.created_at, self.id)
