"""Tests for the deck differ."""

import pytest

from cardlistcompare.models.diff import CardChange, DiffResult, QuantityChange
from cardlistcompare.parsers.deck_text import parse_deck_text
from cardlistcompare.services.differ import compute_diff

DECK_TEXTS = [
    "",
    "1 Sol Ring",
    "Commander\n1 Atraxa, Praetors' Voice\nMainboard\n1 Atraxa, Praetors' Voice\n1 Sol Ring",
    "4 Lightning Bolt (lea) 161\n20 Mountain\nSideboard\n2 Abrade *F*",
    "1 Sol Ring\nSideboard\n",
]


def _assert_all_empty(diff: DiffResult) -> None:
    for section in (diff.mainboard, diff.sideboard):
        assert section.cards_in == []
        assert section.cards_out == []
        assert section.quantity_changes == []


class TestComputeDiff:
    def test_cards_in_out_and_quantity_changes(self) -> None:
        before = parse_deck_text("4 Lightning Bolt\n2 Shock\n20 Mountain")
        after = parse_deck_text("3 Lightning Bolt\n4 Play with Fire\n20 Mountain")

        diff = compute_diff(before, after)

        assert diff.mainboard.cards_in == [CardChange("play with fire", "Play with Fire", 4)]
        assert diff.mainboard.cards_out == [CardChange("shock", "Shock", 2)]
        assert diff.mainboard.quantity_changes == [
            QuantityChange("lightning bolt", "Lightning Bolt", old_qty=4, new_qty=3)
        ]
        assert diff.mainboard.quantity_changes[0].delta == -1

    def test_output_sorted_by_key(self) -> None:
        before = parse_deck_text("1 Zealous Conscripts")
        after = parse_deck_text("1 mountain\n1 Arcane Signet\n1 Birds of Paradise")

        diff = compute_diff(before, after)

        assert [c.key for c in diff.mainboard.cards_in] == [
            "arcane signet",
            "birds of paradise",
            "mountain",
        ]

    def test_matching_is_case_insensitive(self) -> None:
        diff = compute_diff(parse_deck_text("1 Sol Ring"), parse_deck_text("1 SOL RING"))

        assert diff.is_empty

    def test_printing_changes_are_not_diffs(self) -> None:
        before = parse_deck_text("1 Sol Ring (lea) 103")
        after = parse_deck_text("1 Sol Ring (c21) 263 *F*")

        assert compute_diff(before, after).is_empty

    def test_sideboard_is_diffed_separately(self) -> None:
        before = parse_deck_text("2 Negate\nSideboard\n1 Negate")
        after = parse_deck_text("2 Negate\nSideboard\n3 Negate")

        diff = compute_diff(before, after)

        assert diff.mainboard.is_empty
        assert diff.sideboard.quantity_changes[0].delta == 2

    def test_carries_after_commanders(self) -> None:
        before = parse_deck_text("Commander\n1 Tymna the Weaver")
        after = parse_deck_text("Commander\n1 Kraum, Ludevic's Opus")

        assert compute_diff(before, after).commanders == ["Kraum, Ludevic's Opus"]


class TestHasSideboard:
    def test_false_when_neither_declares(self) -> None:
        diff = compute_diff(parse_deck_text("1 Sol Ring"), parse_deck_text("1 Island"))

        assert diff.has_sideboard is False

    def test_true_for_declared_empty_sideboard(self) -> None:
        diff = compute_diff(parse_deck_text("1 Sol Ring\nSideboard"), parse_deck_text("1 Sol Ring"))

        assert diff.has_sideboard is True
        assert diff.is_empty

    def test_true_when_sideboard_introduced(self) -> None:
        diff = compute_diff(
            parse_deck_text("1 Sol Ring"), parse_deck_text("1 Sol Ring\nSideboard\n1 Negate")
        )

        assert diff.has_sideboard is True
        assert diff.sideboard.cards_in == [CardChange("negate", "Negate", 1)]


class TestDiffProperties:
    @pytest.mark.parametrize("text", DECK_TEXTS)
    def test_self_diff_is_empty(self, text: str) -> None:
        _assert_all_empty(compute_diff(parse_deck_text(text), parse_deck_text(text)))

    @pytest.mark.parametrize("before_text", DECK_TEXTS)
    @pytest.mark.parametrize("after_text", DECK_TEXTS)
    def test_swapping_inputs_mirrors_the_diff(self, before_text: str, after_text: str) -> None:
        before = parse_deck_text(before_text)
        after = parse_deck_text(after_text)

        forward = compute_diff(before, after)
        backward = compute_diff(after, before)

        pairs = ((forward.mainboard, backward.mainboard), (forward.sideboard, backward.sideboard))
        for fwd, bwd in pairs:
            assert [(c.key, c.quantity) for c in fwd.cards_in] == [
                (c.key, c.quantity) for c in bwd.cards_out
            ]
            assert [(c.key, c.quantity) for c in fwd.cards_out] == [
                (c.key, c.quantity) for c in bwd.cards_in
            ]
            assert [(c.key, c.delta) for c in fwd.quantity_changes] == [
                (c.key, -c.delta) for c in bwd.quantity_changes
            ]
        assert forward.has_sideboard == backward.has_sideboard
