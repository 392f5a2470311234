"""
Tracked deck API endpoints.

Create, list and delete the decks whose snapshots are tracked.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from cardlistcompare.db import (
    create_tracked_deck,
    delete_tracked_deck,
    get_tracked_deck,
    list_tracked_decks,
)
from cardlistcompare.db.database import get_session
from cardlistcompare.models.db import TrackedDeckDB

router = APIRouter(prefix="/decks", tags=["decks"])


class TrackedDeckCreateRequest(BaseModel):
    """Request model for tracking a new deck."""

    name: str = Field(..., min_length=1, max_length=255)
    source_url: str | None = Field(
        default=None,
        description="Where the deck list is published, for display only",
        examples=["https://archidekt.com/decks/123456"],
    )


class TrackedDeckResponse(BaseModel):
    """Response model for a tracked deck."""

    id: int
    name: str
    source_url: str | None = None
    commanders: list[str] = Field(default_factory=list)
    created_at: datetime


class TrackedDeckListResponse(BaseModel):
    decks: list[TrackedDeckResponse]
    count: int


class DeleteResponse(BaseModel):
    """Response model for delete operations."""

    deleted: bool


def deck_to_response(deck: TrackedDeckDB) -> TrackedDeckResponse:
    return TrackedDeckResponse(
        id=deck.id,
        name=deck.name,
        source_url=deck.source_url,
        commanders=list(deck.commanders or []),
        created_at=deck.created_at,
    )


@router.post("", response_model=TrackedDeckResponse, status_code=status.HTTP_201_CREATED)
async def create_deck(
    request: TrackedDeckCreateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TrackedDeckResponse:
    """Start tracking a deck. Snapshots are added separately."""
    deck = await create_tracked_deck(session, request.name.strip(), request.source_url)
    return deck_to_response(deck)


@router.get("", response_model=TrackedDeckListResponse)
async def list_decks(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TrackedDeckListResponse:
    """List all tracked decks."""
    decks = [deck_to_response(d) for d in await list_tracked_decks(session)]
    return TrackedDeckListResponse(decks=decks, count=len(decks))


@router.get("/{deck_id}", response_model=TrackedDeckResponse)
async def get_deck(
    deck_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TrackedDeckResponse:
    """
    Get a tracked deck.

    Returns 404 if the deck does not exist.
    """
    deck = await get_tracked_deck(session, deck_id)
    if deck is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tracked deck {deck_id} not found",
        )
    return deck_to_response(deck)


@router.delete("/{deck_id}", response_model=DeleteResponse)
async def delete_deck(
    deck_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeleteResponse:
    """Stop tracking a deck and delete all of its snapshots."""
    deleted = await delete_tracked_deck(session, deck_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tracked deck {deck_id} not found",
        )
    return DeleteResponse(deleted=True)
