"""
SQLAlchemy ORM models for persistent storage.

Snapshot rows mirror the Snapshot dataclass; the deck text itself is stored
exactly as enriched.
"""

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    false,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class TrackedDeckDB(Base):
    """
    A deck list followed over time.

    Each refresh or import of the deck is stored as a DeckSnapshotDB.
    """

    __tablename__ = "tracked_decks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    source_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Commander names, backfilled from the first snapshot that declares any
    commanders: Mapped[list[str]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    snapshots: Mapped[list["DeckSnapshotDB"]] = relationship(
        back_populates="tracked_deck",
        cascade="all, delete-orphan",
        order_by="DeckSnapshotDB.id",
    )

    def __repr__(self) -> str:
        return f"<TrackedDeckDB(id={self.id}, name={self.name})>"


class DeckSnapshotDB(Base):
    """One captured version of a tracked deck's text."""

    __tablename__ = "deck_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tracked_deck_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tracked_decks.id", ondelete="CASCADE"), index=True
    )
    deck_text: Mapped[str] = mapped_column(Text)
    nickname: Mapped[str | None] = mapped_column(String(100), nullable=True)
    locked: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )

    tracked_deck: Mapped["TrackedDeckDB"] = relationship(back_populates="snapshots")

    def __repr__(self) -> str:
        return f"<DeckSnapshotDB(id={self.id}, deck={self.tracked_deck_id}, locked={self.locked})>"
