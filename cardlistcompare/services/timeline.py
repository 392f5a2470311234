"""Per-snapshot summary of a tracked deck's history."""

from dataclasses import dataclass
from datetime import datetime

from cardlistcompare.models.snapshot import Snapshot
from cardlistcompare.parsers.deck_text import parse_deck_text
from cardlistcompare.services.differ import compute_diff


@dataclass(frozen=True)
class TimelineDelta:
    """Number of distinct cards in, out and changed against the previous snapshot."""

    added: int
    removed: int
    changed: int


@dataclass(frozen=True)
class TimelineEntry:
    snapshot_id: int
    created_at: datetime
    nickname: str | None
    locked: bool
    card_count: int
    delta: TimelineDelta | None = None


def summarize_timeline(snapshots: list[Snapshot]) -> list[TimelineEntry]:
    """
    Summarize snapshots oldest first.

    The first entry has no delta; every later entry is compared with the
    one before it. Both sections count toward the delta.
    """
    ordered = sorted(snapshots, key=lambda s: s.sort_key)
    entries: list[TimelineEntry] = []
    previous = None

    for snapshot in ordered:
        model = parse_deck_text(snapshot.deck_text)
        delta = None
        if previous is not None:
            diff = compute_diff(previous, model)
            sections = (diff.mainboard, diff.sideboard)
            delta = TimelineDelta(
                added=sum(len(s.cards_in) for s in sections),
                removed=sum(len(s.cards_out) for s in sections),
                changed=sum(len(s.quantity_changes) for s in sections),
            )
        entries.append(
            TimelineEntry(
                snapshot_id=snapshot.id,
                created_at=snapshot.created_at,
                nickname=snapshot.nickname,
                locked=snapshot.locked,
                card_count=model.card_count(),
                delta=delta,
            )
        )
        previous = model

    return entries
