from cardlistcompare.models.card import CardEntry, CardPrinting, card_key, normalize_name
from cardlistcompare.models.deck import DeckModel
from cardlistcompare.models.diff import CardChange, DiffResult, QuantityChange, SectionDiff
from cardlistcompare.models.snapshot import Snapshot

__all__ = [
    "CardChange",
    "CardEntry",
    "CardPrinting",
    "DeckModel",
    "DiffResult",
    "QuantityChange",
    "SectionDiff",
    "Snapshot",
    "card_key",
    "normalize_name",
]
