from cardlistcompare.parsers.deck_text import (
    DeckTextError,
    DeckTextParser,
    Section,
    parse_card_line,
    parse_deck_text,
)

__all__ = [
    "DeckTextError",
    "DeckTextParser",
    "Section",
    "parse_card_line",
    "parse_deck_text",
]
