import re
from dataclasses import dataclass, replace

_WHITESPACE = re.compile(r"\s+")
_APOSTROPHES = re.compile(r"['\u2018\u2019`\u2032]")


def normalize_name(name: str) -> str:
    """Collapse whitespace and fold typographic apostrophes to ASCII."""
    return _APOSTROPHES.sub("'", _WHITESPACE.sub(" ", name)).strip()


def card_key(name: str) -> str:
    """Identity key used to match the same card across sections and snapshots."""
    return normalize_name(name).lower()


@dataclass(frozen=True, slots=True)
class CardPrinting:
    """
    Printing identity of a card.

    Attributes:
        set_code: Lowercase set code (e.g., "lea")
        collector_number: Collector number within the set (e.g., "103", "136p")
    """

    set_code: str
    collector_number: str | None = None


@dataclass(frozen=True, slots=True)
class CardEntry:
    """
    One card line of a deck list.

    Attributes:
        display_name: Card name as written, whitespace-normalized
        quantity: Number of copies (always >= 1)
        set_code: Lowercase set code, if the line carried one
        collector_number: Collector number, if the line carried one
        is_foil: True when the line carried a *F* marker
    """

    display_name: str
    quantity: int
    set_code: str | None = None
    collector_number: str | None = None
    is_foil: bool = False

    @property
    def key(self) -> str:
        return card_key(self.display_name)

    @property
    def has_printing(self) -> bool:
        """True if both set code and collector number are known."""
        return bool(self.set_code and self.collector_number)

    @property
    def printing(self) -> CardPrinting | None:
        if not self.set_code:
            return None
        return CardPrinting(set_code=self.set_code, collector_number=self.collector_number)

    def with_printing(self, printing: CardPrinting) -> "CardEntry":
        """Copy of this entry with printing identity replaced; quantity and foil kept."""
        return replace(
            self,
            set_code=printing.set_code.lower(),
            collector_number=printing.collector_number or None,
        )
