"""
Deck text enrichment.

Fills in missing printing metadata (set code, collector number) on a freshly
observed deck text. Sources, in priority order:

1. The card line itself, if it already names a full printing
2. The previous snapshot of the same deck (carry-forward)
3. A batched external metadata lookup

The fresh observation always decides which cards are in the deck and how
many; only printing identity is ever copied in. Enrichment works on parsed
models and re-renders text, it never patches the raw string.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Protocol

from cardlistcompare.models.card import CardEntry, CardPrinting, card_key
from cardlistcompare.models.deck import DeckModel
from cardlistcompare.parsers.deck_text import DeckTextError, parse_deck_text
from cardlistcompare.services.deck_formatter import format_deck_text

logger = logging.getLogger(__name__)


class CardMetadataLookup(Protocol):
    """Contract for the external per-name printing lookup."""

    async def lookup(self, names: list[str]) -> Mapping[str, CardPrinting]:
        """
        Resolve printings for card names.

        Returns a mapping from card key to printing. Unknown names are simply
        absent; the mapping may be partial.
        """
        ...


def _fill_missing(entry: CardEntry, printing: CardPrinting | None) -> CardEntry | None:
    """
    Return `entry` with the gaps `printing` can fill, or None if it fills none.

    Fields the entry already names are never overwritten. An entry that names
    a set only accepts a printing from that set; an entry that names only a
    collector number takes the set and keeps its own number.
    """
    if printing is None or not printing.set_code:
        return None
    set_code = printing.set_code.lower()
    if entry.set_code is None:
        collector_number = entry.collector_number or printing.collector_number
        return entry.with_printing(CardPrinting(set_code, collector_number))
    if entry.set_code == set_code and entry.collector_number is None:
        if printing.collector_number:
            return entry.with_printing(printing)
    return None


def carry_forward(
    entries: dict[str, CardEntry], *sources: Mapping[str, CardEntry]
) -> dict[str, CardEntry]:
    """
    Copy printing identity from earlier entries onto incomplete ones.

    Sources are tried in order; the first whose entry for the same key has
    usable metadata wins. Quantity and foil always stay as in `entries`.

    Returns:
        A new dict with the same keys, in the same order.
    """
    merged: dict[str, CardEntry] = {}
    for key, entry in entries.items():
        if not entry.has_printing:
            for source in sources:
                prior = source.get(key)
                filled = _fill_missing(entry, prior.printing) if prior is not None else None
                if filled is not None:
                    entry = filled
                    break
        merged[key] = entry
    return merged


def apply_lookup(
    entries: dict[str, CardEntry], printings: Mapping[str, CardPrinting]
) -> dict[str, CardEntry]:
    """Apply looked-up printings to incomplete entries. Same key order as input."""
    merged: dict[str, CardEntry] = {}
    for key, entry in entries.items():
        if not entry.has_printing:
            entry = _fill_missing(entry, printings.get(key)) or entry
        merged[key] = entry
    return merged


def _names_needing_lookup(deck: DeckModel) -> list[str]:
    names: dict[str, str] = {}
    for entry in (*deck.mainboard.values(), *deck.sideboard.values()):
        if not entry.has_printing:
            names.setdefault(entry.key, entry.display_name)
    return sorted(names.values(), key=card_key)


def _normalize_keys(printings: Mapping[str, CardPrinting]) -> dict[str, CardPrinting]:
    return {card_key(name): printing for name, printing in printings.items()}


class DeckEnricher:
    """
    Merges a fresh deck observation with known printing metadata.

    Usage:
        enricher = DeckEnricher(ScryfallClient())
        text = await enricher.enrich(new_text, previous_text)
    """

    def __init__(self, lookup: CardMetadataLookup | None = None) -> None:
        self.lookup = lookup

    async def enrich(self, new_text: str, previous_text: str | None = None) -> str:
        """
        Enrich deck text with printing metadata.

        Args:
            new_text: Freshly observed deck text
            previous_text: Text of the latest stored snapshot, if any

        Returns:
            Deck text in the same grammar, with every printing that could be
            resolved filled in

        Raises:
            DeckTextError: If `new_text` has content but no line of it is
                deck text
        """
        deck = parse_deck_text(new_text)
        if deck.parsed_lines == 0 and deck.unparseable_lines:
            raise DeckTextError(
                f"none of {deck.skipped_count} line(s) matched the deck grammar",
                deck.unparseable_lines,
            )

        if previous_text:
            previous = parse_deck_text(previous_text)
            deck.mainboard = carry_forward(deck.mainboard, previous.mainboard, previous.sideboard)
            deck.sideboard = carry_forward(deck.sideboard, previous.sideboard, previous.mainboard)

        names = _names_needing_lookup(deck)
        if names and self.lookup is not None:
            printings = await self._lookup_printings(names)
            deck.mainboard = apply_lookup(deck.mainboard, printings)
            deck.sideboard = apply_lookup(deck.sideboard, printings)

        return format_deck_text(deck)

    async def _lookup_printings(self, names: Iterable[str]) -> dict[str, CardPrinting]:
        """Run the external lookup. Any failure means "no extra metadata"."""
        names = list(names)
        try:
            printings = await self.lookup.lookup(names)  # type: ignore[union-attr]
        except Exception as e:
            logger.warning("Card metadata lookup failed for %d card(s): %s", len(names), e)
            return {}

        resolved = _normalize_keys(printings or {})
        logger.debug("Resolved %d of %d card printing(s)", len(resolved), len(names))
        return resolved


async def enrich_deck_text(
    new_text: str,
    previous_text: str | None = None,
    lookup: CardMetadataLookup | None = None,
) -> str:
    """
    Enrich deck text.

    Convenience function that creates an enricher and runs it.
    """
    enricher = DeckEnricher(lookup)
    return await enricher.enrich(new_text, previous_text)
