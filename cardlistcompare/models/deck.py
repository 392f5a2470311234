from dataclasses import dataclass, field

from cardlistcompare.models.card import CardEntry, card_key


@dataclass
class DeckModel:
    """
    A parsed deck list.

    Attributes:
        mainboard: Mainboard entries keyed by card key (commanders included)
        sideboard: Sideboard entries keyed by card key
        commanders: Commander display names, in the order they were declared
        has_sideboard: True if the source text declared a sideboard at all,
            even an empty one
        unparseable_lines: (line_number, line) pairs the parser skipped.
            Statistics only, not part of model equality.
        parsed_lines: Card lines that matched the grammar, including cards
            under discarded sections. Statistics only, like unparseable_lines.
    """

    mainboard: dict[str, CardEntry] = field(default_factory=dict)
    sideboard: dict[str, CardEntry] = field(default_factory=dict)
    commanders: list[str] = field(default_factory=list)
    has_sideboard: bool = False
    unparseable_lines: list[tuple[int, str]] = field(default_factory=list, compare=False)
    parsed_lines: int = field(default=0, compare=False)

    @property
    def skipped_count(self) -> int:
        return len(self.unparseable_lines)

    @property
    def is_empty(self) -> bool:
        return not self.mainboard and not self.sideboard

    def is_commander(self, key: str) -> bool:
        return any(card_key(name) == key for name in self.commanders)

    def card_count(self) -> int:
        """Total copies across mainboard and sideboard."""
        return sum(e.quantity for e in self.mainboard.values()) + sum(
            e.quantity for e in self.sideboard.values()
        )
