from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class CardChange:
    """A card that entered or left a section."""

    key: str
    name: str
    quantity: int


@dataclass(frozen=True, slots=True)
class QuantityChange:
    """A card present on both sides with a different quantity."""

    key: str
    name: str
    old_qty: int
    new_qty: int

    @property
    def delta(self) -> int:
        return self.new_qty - self.old_qty


@dataclass
class SectionDiff:
    """Changes within one deck section. The three lists never share a key."""

    cards_in: list[CardChange] = field(default_factory=list)
    cards_out: list[CardChange] = field(default_factory=list)
    quantity_changes: list[QuantityChange] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.cards_in or self.cards_out or self.quantity_changes)


@dataclass
class DiffResult:
    """
    Changes between two deck models.

    Attributes:
        mainboard: Mainboard changes
        sideboard: Sideboard changes
        has_sideboard: True if either deck declared a sideboard section
        commanders: Commanders of the "after" deck, used for changelog headers
    """

    mainboard: SectionDiff = field(default_factory=SectionDiff)
    sideboard: SectionDiff = field(default_factory=SectionDiff)
    has_sideboard: bool = False
    commanders: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.mainboard.is_empty and self.sideboard.is_empty
