"""
Snapshot API endpoints.

Snapshot CRUD, lock management, refresh, changelog and timeline for one
tracked deck.
"""

from datetime import datetime
from typing import Annotated, Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from cardlistcompare.db import (
    create_snapshot,
    delete_snapshot,
    get_snapshot,
    get_tracked_deck,
    list_snapshots,
    lock_snapshot,
    refresh_tracked_deck,
    rename_snapshot,
    snapshot_to_model,
    unlock_snapshot,
)
from cardlistcompare.db.database import get_session
from cardlistcompare.models.db import DeckSnapshotDB, TrackedDeckDB
from cardlistcompare.parsers.deck_text import DeckTextError, parse_deck_text
from cardlistcompare.services.changelog import (
    diff_to_dict,
    format_changelog,
    format_json,
    format_mpc_fill,
    format_reddit,
)
from cardlistcompare.services.differ import compute_diff
from cardlistcompare.services.enricher import DeckEnricher
from cardlistcompare.services.retention import LockLimitError, SnapshotLockedError
from cardlistcompare.services.scryfall_client import ScryfallClient
from cardlistcompare.services.timeline import summarize_timeline

router = APIRouter(prefix="/decks/{deck_id}", tags=["snapshots"])

ChangelogFormat = Literal["json", "text", "reddit", "mpcfill"]

RENDERERS = {
    "json": format_json,
    "text": format_changelog,
    "reddit": format_reddit,
    "mpcfill": format_mpc_fill,
}


def get_enricher() -> DeckEnricher:
    """Dependency that provides the enricher used for new snapshots."""
    return DeckEnricher(ScryfallClient())


# --- Request / Response Models ---


class SnapshotCreateRequest(BaseModel):
    """Request model for storing a snapshot from deck text."""

    deck_text: str = Field(
        ...,
        description="Deck list text",
        examples=["Commander\n1 Atraxa, Praetors' Voice\n\nMainboard\n1 Sol Ring"],
    )
    nickname: str | None = Field(default=None, max_length=100)

    @field_validator("deck_text")
    @classmethod
    def deck_text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("deck_text must be non-empty")
        return value


class RefreshRequest(BaseModel):
    """Request model for a fresh observation of the deck."""

    deck_text: str

    @field_validator("deck_text")
    @classmethod
    def deck_text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("deck_text must be non-empty")
        return value


class NicknameRequest(BaseModel):
    nickname: str | None = Field(default=None, max_length=100)


class SnapshotSummary(BaseModel):
    """A snapshot without its text."""

    id: int
    nickname: str | None = None
    locked: bool
    created_at: datetime


class SnapshotDetail(SnapshotSummary):
    """A snapshot with its deck text."""

    deck_text: str


class SnapshotListResponse(BaseModel):
    snapshots: list[SnapshotSummary]
    count: int


class SuccessResponse(BaseModel):
    success: bool = True


class RefreshResponse(BaseModel):
    """Response model for a refresh. snapshot is None when nothing changed."""

    changed: bool
    snapshot: SnapshotSummary | None = None
    diff: dict[str, Any]


class ChangelogResponse(BaseModel):
    """Diff between two snapshots, plus its rendering in the requested format."""

    before: SnapshotDetail
    after: SnapshotDetail
    diff: dict[str, Any]
    format: ChangelogFormat
    rendered: str


class TimelineDeltaResponse(BaseModel):
    added: int
    removed: int
    changed: int


class TimelineEntryResponse(BaseModel):
    snapshot_id: int
    created_at: datetime
    nickname: str | None = None
    locked: bool
    card_count: int
    delta: TimelineDeltaResponse | None = None


class TimelineResponse(BaseModel):
    entries: list[TimelineEntryResponse]


# --- Helpers ---


def _summary(row: DeckSnapshotDB) -> SnapshotSummary:
    return SnapshotSummary(
        id=row.id, nickname=row.nickname, locked=row.locked, created_at=row.created_at
    )


def _detail(row: DeckSnapshotDB) -> SnapshotDetail:
    return SnapshotDetail(
        id=row.id,
        nickname=row.nickname,
        locked=row.locked,
        created_at=row.created_at,
        deck_text=row.deck_text,
    )


async def _require_deck(session: AsyncSession, deck_id: int) -> TrackedDeckDB:
    deck = await get_tracked_deck(session, deck_id)
    if deck is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tracked deck {deck_id} not found",
        )
    return deck


async def _require_snapshot(
    session: AsyncSession, deck_id: int, snapshot_id: int
) -> DeckSnapshotDB:
    await _require_deck(session, deck_id)
    snapshot = await get_snapshot(session, deck_id, snapshot_id)
    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Snapshot {snapshot_id} not found",
        )
    return snapshot


def _bad_request(error: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


# --- Snapshot CRUD ---


@router.post(
    "/snapshots", response_model=SnapshotDetail, status_code=status.HTTP_201_CREATED
)
async def create_deck_snapshot(
    deck_id: int,
    request: SnapshotCreateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    enricher: Annotated[DeckEnricher, Depends(get_enricher)],
) -> SnapshotDetail:
    """
    Store a snapshot from deck text.

    The text is enriched with printing metadata before it is stored, and
    older unlocked snapshots beyond the retention limit are pruned.
    """
    deck = await _require_deck(session, deck_id)
    try:
        snapshot = await create_snapshot(
            session, deck, request.deck_text, nickname=request.nickname, enricher=enricher
        )
    except DeckTextError as e:
        raise _bad_request(e) from e
    return _detail(snapshot)


@router.get("/snapshots", response_model=SnapshotListResponse)
async def list_deck_snapshots(
    deck_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SnapshotListResponse:
    """List a deck's snapshots, newest first."""
    await _require_deck(session, deck_id)
    rows = await list_snapshots(session, deck_id)
    return SnapshotListResponse(snapshots=[_summary(r) for r in rows], count=len(rows))


@router.get("/snapshots/{snapshot_id}", response_model=SnapshotDetail)
async def get_deck_snapshot(
    deck_id: int,
    snapshot_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SnapshotDetail:
    """Get one snapshot with its deck text."""
    return _detail(await _require_snapshot(session, deck_id, snapshot_id))


@router.delete("/snapshots/{snapshot_id}", response_model=SuccessResponse)
async def delete_deck_snapshot(
    deck_id: int,
    snapshot_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SuccessResponse:
    """Delete a snapshot. Locked snapshots must be unlocked first (400)."""
    snapshot = await _require_snapshot(session, deck_id, snapshot_id)
    try:
        await delete_snapshot(session, snapshot)
    except SnapshotLockedError as e:
        raise _bad_request(e) from e
    return SuccessResponse()


@router.patch("/snapshots/{snapshot_id}", response_model=SnapshotSummary)
async def rename_deck_snapshot(
    deck_id: int,
    snapshot_id: int,
    request: NicknameRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SnapshotSummary:
    """Set or clear a snapshot's nickname."""
    snapshot = await _require_snapshot(session, deck_id, snapshot_id)
    return _summary(await rename_snapshot(session, snapshot, request.nickname))


@router.patch("/snapshots/{snapshot_id}/lock", response_model=SnapshotSummary)
async def lock_deck_snapshot(
    deck_id: int,
    snapshot_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SnapshotSummary:
    """Lock a snapshot. Returns 400 once the per-deck lock limit is reached."""
    snapshot = await _require_snapshot(session, deck_id, snapshot_id)
    try:
        await lock_snapshot(session, snapshot)
    except LockLimitError as e:
        raise _bad_request(e) from e
    return _summary(snapshot)


@router.patch("/snapshots/{snapshot_id}/unlock", response_model=SnapshotSummary)
async def unlock_deck_snapshot(
    deck_id: int,
    snapshot_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SnapshotSummary:
    """Unlock a snapshot."""
    snapshot = await _require_snapshot(session, deck_id, snapshot_id)
    return _summary(await unlock_snapshot(session, snapshot))


# --- Refresh, Changelog, Timeline ---


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_deck(
    deck_id: int,
    request: RefreshRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    enricher: Annotated[DeckEnricher, Depends(get_enricher)],
) -> RefreshResponse:
    """
    Record a fresh observation of the deck.

    No snapshot is created when the cards and quantities match the latest
    snapshot.
    """
    deck = await _require_deck(session, deck_id)
    try:
        snapshot, diff = await refresh_tracked_deck(
            session, deck, request.deck_text, enricher=enricher
        )
    except DeckTextError as e:
        raise _bad_request(e) from e

    return RefreshResponse(
        changed=snapshot is not None,
        snapshot=_summary(snapshot) if snapshot else None,
        diff=diff_to_dict(diff),
    )


@router.get("/changelog", response_model=ChangelogResponse)
async def get_changelog(
    deck_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
    a: Annotated[int | None, Query(description="Snapshot id of the 'before' side")] = None,
    b: Annotated[int | None, Query(description="Snapshot id of the 'after' side")] = None,
    output: Annotated[ChangelogFormat, Query(alias="format")] = "json",
) -> ChangelogResponse:
    """
    Diff two snapshots.

    Without `a` and `b`, compares the two most recent snapshots. Passing only
    one of them is a 400.
    """
    await _require_deck(session, deck_id)

    if (a is None) != (b is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Pass both a and b, or neither",
        )

    if a is not None and b is not None:
        before_row = await get_snapshot(session, deck_id, a)
        after_row = await get_snapshot(session, deck_id, b)
        if before_row is None or after_row is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="One or both snapshots not found",
            )
    else:
        recent = await list_snapshots(session, deck_id)
        if len(recent) < 2:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Need at least 2 snapshots to generate a changelog",
            )
        after_row, before_row = recent[0], recent[1]

    diff = compute_diff(parse_deck_text(before_row.deck_text), parse_deck_text(after_row.deck_text))
    rendered = RENDERERS[output](diff)

    return ChangelogResponse(
        before=_detail(before_row),
        after=_detail(after_row),
        diff=diff_to_dict(diff),
        format=output,
        rendered=rendered,
    )


@router.get("/timeline", response_model=TimelineResponse)
async def get_timeline(
    deck_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TimelineResponse:
    """Card counts per snapshot and changes between consecutive snapshots, oldest first."""
    await _require_deck(session, deck_id)
    rows = await list_snapshots(session, deck_id, newest_first=False)
    entries = summarize_timeline([snapshot_to_model(r) for r in rows])

    return TimelineResponse(
        entries=[
            TimelineEntryResponse(
                snapshot_id=e.snapshot_id,
                created_at=e.created_at,
                nickname=e.nickname,
                locked=e.locked,
                card_count=e.card_count,
                delta=(
                    TimelineDeltaResponse(
                        added=e.delta.added, removed=e.delta.removed, changed=e.delta.changed
                    )
                    if e.delta
                    else None
                ),
            )
            for e in entries
        ]
    )
