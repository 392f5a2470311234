"""
Deck differ.

Compares two deck models section by section. Pure and total: any two
models produce a DiffResult, and the same inputs always produce the same,
key-sorted output.
"""

from cardlistcompare.models.card import CardEntry
from cardlistcompare.models.deck import DeckModel
from cardlistcompare.models.diff import CardChange, DiffResult, QuantityChange, SectionDiff


def diff_section(before: dict[str, CardEntry], after: dict[str, CardEntry]) -> SectionDiff:
    """
    Diff one section.

    Keys only in `after` are cards in, keys only in `before` are cards out,
    keys in both with a different quantity are quantity changes. Unchanged
    keys are omitted. Each list is sorted by card key.
    """
    result = SectionDiff()

    for key in sorted(before.keys() | after.keys()):
        old = before.get(key)
        new = after.get(key)

        if old is None and new is not None:
            result.cards_in.append(
                CardChange(key=key, name=new.display_name, quantity=new.quantity)
            )
        elif new is None and old is not None:
            result.cards_out.append(
                CardChange(key=key, name=old.display_name, quantity=old.quantity)
            )
        elif old is not None and new is not None and old.quantity != new.quantity:
            result.quantity_changes.append(
                QuantityChange(
                    key=key,
                    name=new.display_name,
                    old_qty=old.quantity,
                    new_qty=new.quantity,
                )
            )

    return result


def compute_diff(before: DeckModel, after: DeckModel) -> DiffResult:
    """
    Compute the changes from `before` to `after`.

    Args:
        before: Older deck model
        after: Newer deck model

    Returns:
        DiffResult for mainboard and sideboard. has_sideboard is True if
        either deck declared a sideboard, even an empty one.
    """
    return DiffResult(
        mainboard=diff_section(before.mainboard, after.mainboard),
        sideboard=diff_section(before.sideboard, after.sideboard),
        has_sideboard=before.has_sideboard or after.has_sideboard,
        commanders=list(after.commanders),
    )
