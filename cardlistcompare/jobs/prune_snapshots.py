"""
Scheduled job to apply snapshot retention to every tracked deck.

Snapshots are pruned whenever a new one is stored; this job catches decks
left over a lowered limit. Can be run as a standalone script or called from
a scheduler.
"""

import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError

from cardlistcompare.config import settings
from cardlistcompare.db.database import async_session_factory
from cardlistcompare.db.operations import list_tracked_decks, prune_snapshots
from cardlistcompare.services.retention import validate_retention_limits

logger = logging.getLogger(__name__)


async def prune_all_decks(
    session_factory=async_session_factory,
    max_total: int | None = None,
    max_locked: int | None = None,
) -> dict[int, int]:
    """
    Prune snapshots of every tracked deck.

    Args:
        session_factory: Async session factory (tests pass their own)
        max_total: Unlocked snapshots to keep per deck; defaults to settings
        max_locked: Lock limit; defaults to settings

    Returns:
        Dict mapping deck id to number of snapshots deleted

    Raises:
        RetentionConfigError: If a limit is negative, before touching any deck
    """
    max_total = settings.max_snapshots_per_deck if max_total is None else max_total
    max_locked = settings.max_locked_per_deck if max_locked is None else max_locked
    validate_retention_limits(max_total, max_locked)

    results: dict[int, int] = {}
    async with session_factory() as session:
        deck_ids = [deck.id for deck in await list_tracked_decks(session)]
        for deck_id in deck_ids:
            try:
                results[deck_id] = await prune_snapshots(
                    session, deck_id, max_total=max_total, max_locked=max_locked
                )
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Error pruning deck %d: %s", deck_id, e)
                results[deck_id] = 0

    logger.info("Prune complete. Total snapshots deleted: %d", sum(results.values()))
    return results


def main() -> None:
    """CLI entry point for running the prune job."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(prune_all_decks())


if __name__ == "__main__":
    main()
