"""
Deck text formatter.

Renders a DeckModel back into the grammar read by the deck text parser.
Entries are sorted by card key so the same model always renders the same
text, whatever order its maps were filled in.

Round trip: parse_deck_text(format_deck_text(model)) == model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cardlistcompare.models.card import card_key

if TYPE_CHECKING:
    from collections.abc import Iterable

    from cardlistcompare.models.card import CardEntry
    from cardlistcompare.models.deck import DeckModel


def format_deck_text(deck: DeckModel) -> str:
    """
    Format a deck model as deck text.

    Commanders are written under a Commander header and not repeated in the
    Mainboard block. The Sideboard header is written whenever the deck
    declared one, even if it is empty.

    Args:
        deck: Parsed or enriched deck model

    Returns:
        Deck text, no trailing newline. Empty string for an empty deck.
    """
    blocks: list[list[str]] = []

    commander_keys = [card_key(name) for name in deck.commanders]
    commander_lines = [
        format_card_line(deck.mainboard[key]) for key in commander_keys if key in deck.mainboard
    ]
    if commander_lines:
        blocks.append(["Commander", *commander_lines])

    listed = set(commander_keys)
    main_entries = [entry for key, entry in deck.mainboard.items() if key not in listed]
    if main_entries or commander_lines:
        blocks.append(["Mainboard", *_sorted_lines(main_entries)])

    if deck.has_sideboard:
        blocks.append(["Sideboard", *_sorted_lines(deck.sideboard.values())])

    return "\n\n".join("\n".join(block) for block in blocks)


def _sorted_lines(entries: Iterable[CardEntry]) -> list[str]:
    return [format_card_line(e) for e in sorted(entries, key=lambda e: e.key)]


def format_card_line(entry: CardEntry) -> str:
    """Format a single card line: '<qty> <name> (<set>) [<collector>] *F*'."""
    line = f"{entry.quantity} {entry.display_name}"
    if entry.set_code:
        line += f" ({entry.set_code})"
    if entry.collector_number:
        line += f" [{entry.collector_number}]"
    if entry.is_foil:
        line += " *F*"
    return line
