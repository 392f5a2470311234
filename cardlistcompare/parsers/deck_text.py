"""
Deck text parser.

Turns a line-oriented deck list into a DeckModel:

    Commander
    1 Atraxa, Praetors' Voice (znr) 134

    Mainboard
    1 Sol Ring (lea) 103
    1 Counterspell *F*

CSV exports with a header row are accepted as well:

    quantity,name,section
    4,Lightning Bolt,main
    2,Negate,sideboard

=============================================================================
ERROR POLICY
=============================================================================

The parser never raises. A line that does not match the grammar is skipped,
recorded in DeckModel.unparseable_lines, and parsing continues. A line is
either recorded in full (name, quantity, set, collector number, foil) or not
at all.
"""

from __future__ import annotations

import csv
import re
from enum import Enum

from cardlistcompare.models.card import CardEntry, card_key, normalize_name
from cardlistcompare.models.deck import DeckModel

# =============================================================================
# GRAMMAR
# =============================================================================


class Section(Enum):
    """Deck sections a header line can switch to."""

    COMMANDER = "commander"
    MAINBOARD = "mainboard"
    SIDEBOARD = "sideboard"
    MAYBEBOARD = "maybeboard"
    COMPANION = "companion"


# Header spellings (lowercase, trailing punctuation stripped)
SECTION_HEADERS: dict[str, Section] = {
    "commander": Section.COMMANDER,
    "commanders": Section.COMMANDER,
    "command zone": Section.COMMANDER,
    "mainboard": Section.MAINBOARD,
    "main": Section.MAINBOARD,
    "deck": Section.MAINBOARD,
    "sideboard": Section.SIDEBOARD,
    "sb": Section.SIDEBOARD,
    "maybeboard": Section.MAYBEBOARD,
    "maybe": Section.MAYBEBOARD,
    "considering": Section.MAYBEBOARD,
    "companion": Section.COMPANION,
}

# Cards under these headers are recognised but not tracked
DISCARDED_SECTIONS = frozenset({Section.MAYBEBOARD, Section.COMPANION})

# "4 Lightning Bolt (m10) [227] *F*"
# A bare collector number ("(lea) 103") is only accepted after a set code,
# otherwise the last word of every plain card name would be taken for one.
# Collector numbers may be alphanumeric with hyphens: 136p, DDO-20, 2022-3.
CARD_LINE_PATTERN = re.compile(
    r"^(?P<quantity>\d+)\s*x?\s+(?P<name>.+?)"
    r"(?:"
    r"\s+\((?P<set_code>[a-z0-9]+)\)"
    r"(?:\s+\[(?P<bracketed>[\w-]+)\]|\s+(?P<bare>[\w-]+))?"
    r"|\s+\[(?P<unset_bracketed>[\w-]+)\]"
    r")?"
    r"(?P<foil>\s*\*F\*)?\s*$",
    re.IGNORECASE,
)

# Headerless CSV row: "4,Lightning Bolt" or '4,"Lightning Bolt"'
QUANTITY_COMMA_PATTERN = re.compile(r'^(?P<quantity>\d+)\s*,\s*"?(?P<name>[^"]+?)"?\s*$')

SET_CODE_PATTERN = re.compile(r"[a-z0-9]+", re.IGNORECASE)
COLLECTOR_NUMBER_PATTERN = re.compile(r"[\w-]+")

COMMENT_PATTERN = re.compile(r"^(//|#)")

# "SB: 2 Fatal Push" routes a single line to the sideboard
SIDEBOARD_PREFIX = re.compile(r"^SB:\s*", re.IGNORECASE)

# "1 Atraxa, Praetors' Voice (Commander)" marks an inline commander
INLINE_COMMANDER_TAG = re.compile(r"\s*\(Commander\)\s*$", re.IGNORECASE)

# CSV header labels (lowercase) recognised for each column role.
# Only the name column is required.
CSV_COLUMNS: dict[str, frozenset[str]] = {
    "name": frozenset({"name", "card", "card name", "cardname"}),
    "quantity": frozenset({"quantity", "count", "qty", "amount"}),
    "section": frozenset({"section", "board", "type", "location"}),
    "set_code": frozenset({"set", "set code", "edition"}),
    "collector_number": frozenset({"collector number", "collector_number", "number"}),
    "foil": frozenset({"foil", "finish"}),
}

FOIL_VALUES = frozenset({"foil", "etched", "yes", "true", "1"})

CSV_QUANTITY_PATTERN = re.compile(r"(?P<quantity>\d+)x?", re.IGNORECASE)


# =============================================================================
# ERRORS
# =============================================================================


class DeckTextError(Exception):
    """
    Raised by callers when a document is not deck text at all.

    The parser itself never raises this; it is for boundaries (such as
    enrichment) that must reject input where no line matched the grammar.
    """

    def __init__(self, reason: str, unparseable_lines: list[tuple[int, str]]) -> None:
        self.reason = reason
        self.unparseable_lines = unparseable_lines
        super().__init__(f"Not deck text: {reason}")


# =============================================================================
# PARSER
# =============================================================================


class DeckTextParser:
    """
    Parser for deck list text.

    Usage:
        parser = DeckTextParser()
        model = parser.parse(raw_text)
        model.skipped_count  # lines that did not match the grammar
    """

    def parse(self, text: str) -> DeckModel:
        """
        Parse deck text into a DeckModel.

        The first non-comment line decides the format: a comma separated
        header naming a card column switches to CSV parsing, anything else
        is read as a line-oriented list.

        Args:
            text: Raw deck text or CSV export, any line endings

        Returns:
            DeckModel. Empty if the text is empty or only comments.
        """
        model = DeckModel()
        if not text or not text.strip():
            return model

        lines = text.splitlines()
        for index, line in enumerate(lines):
            stripped = line.strip()
            if not stripped or COMMENT_PATTERN.match(stripped):
                continue
            fields = _csv_fields(stripped)
            if fields is not None:
                self._parse_csv(model, lines, index, fields)
                return model
            break

        section = Section.MAINBOARD

        for line_num, line in enumerate(lines, 1):
            stripped = line.strip()

            if not stripped or COMMENT_PATTERN.match(stripped):
                continue

            header = self._match_section_header(stripped)
            if header is not None:
                section = header
                if section is Section.SIDEBOARD:
                    model.has_sideboard = True
                continue

            self._parse_card_line(model, section, stripped, line_num)

        return model

    def _match_section_header(self, line: str) -> Section | None:
        """Return the section a header line switches to, or None."""
        normalized = " ".join(line.rstrip(":.").lower().split())
        return SECTION_HEADERS.get(normalized)

    def _parse_card_line(
        self, model: DeckModel, section: Section, line: str, line_num: int
    ) -> None:
        """Record one card line into the model, or count it as skipped."""
        to_sideboard = False
        prefix = SIDEBOARD_PREFIX.match(line)
        if prefix:
            line = line[prefix.end() :].strip()
            to_sideboard = True

        inline_commander = False
        if INLINE_COMMANDER_TAG.search(line):
            line = INLINE_COMMANDER_TAG.sub("", line).strip()
            inline_commander = True

        entry = parse_card_line(line)
        if entry is None:
            model.unparseable_lines.append((line_num, line))
            return

        _place_entry(
            model,
            Section.SIDEBOARD if to_sideboard else section,
            entry,
            inline_commander=inline_commander and not to_sideboard,
        )

    def _parse_csv(
        self, model: DeckModel, lines: list[str], start: int, fields: dict[str, str]
    ) -> None:
        """
        Read CSV rows below the header at lines[start].

        Rows without a name, or with a quantity that is not a positive
        integer, are recorded as unparseable. A missing quantity means 1.
        """
        reader = csv.DictReader(lines[start:])
        for row in reader:
            line_num = start + reader.line_num
            raw = lines[line_num - 1].strip() if line_num <= len(lines) else ""
            if not raw or COMMENT_PATTERN.match(raw):
                continue

            entry = _csv_entry(row, fields)
            if entry is None:
                model.unparseable_lines.append((line_num, raw))
                continue

            section = _csv_section(_cell(row, fields.get("section")))
            _place_entry(model, section, entry)


def _place_entry(
    model: DeckModel, section: Section, entry: CardEntry, inline_commander: bool = False
) -> None:
    """Put a parsed card into its section. Later lines for a key replace earlier ones."""
    model.parsed_lines += 1

    if section in DISCARDED_SECTIONS:
        return

    if section is Section.SIDEBOARD and not inline_commander:
        model.has_sideboard = True
        model.sideboard[entry.key] = entry
        return

    # Commander and mainboard lines share one map: a commander that is
    # also listed in the mainboard is counted once.
    model.mainboard[entry.key] = entry
    if section is Section.COMMANDER or inline_commander or model.is_commander(entry.key):
        _declare_commander(model, entry.display_name)


def _declare_commander(model: DeckModel, name: str) -> None:
    key = card_key(name)
    for i, existing in enumerate(model.commanders):
        if card_key(existing) == key:
            model.commanders[i] = name
            return
    model.commanders.append(name)


# =============================================================================
# CSV
# =============================================================================


def _csv_fields(header_line: str) -> dict[str, str] | None:
    """
    Map column roles to header cells, or None if the line is not a CSV header.

    A header must contain a comma and a recognised card name column.
    """
    if "," not in header_line:
        return None

    cells = next(csv.reader([header_line]))
    fields: dict[str, str] = {}
    for cell in cells:
        label = " ".join(cell.lower().split())
        for role, labels in CSV_COLUMNS.items():
            if label in labels:
                fields.setdefault(role, cell)
                break

    if "name" not in fields:
        return None
    return fields


def _cell(row: dict[str, str], field: str | None) -> str:
    if field is None:
        return ""
    return (row.get(field) or "").strip()


def _csv_entry(row: dict[str, str], fields: dict[str, str]) -> CardEntry | None:
    name = normalize_name(_cell(row, fields["name"]))
    if not name:
        return None

    quantity = 1
    raw_quantity = _cell(row, fields.get("quantity"))
    if raw_quantity:
        match = CSV_QUANTITY_PATTERN.fullmatch(raw_quantity)
        if not match or int(match.group("quantity")) < 1:
            return None
        quantity = int(match.group("quantity"))

    set_code = _cell(row, fields.get("set_code")).lower()
    collector_number = _cell(row, fields.get("collector_number"))

    return CardEntry(
        display_name=name,
        quantity=quantity,
        set_code=set_code if SET_CODE_PATTERN.fullmatch(set_code) else None,
        collector_number=(
            collector_number if COLLECTOR_NUMBER_PATTERN.fullmatch(collector_number) else None
        ),
        is_foil=_cell(row, fields.get("foil")).lower() in FOIL_VALUES,
    )


def _csv_section(value: str) -> Section:
    """Section for a CSV board column value. Unknown values mean mainboard."""
    value = value.lower()
    if "side" in value or value == "sb":
        return Section.SIDEBOARD
    if "maybe" in value or "consider" in value:
        return Section.MAYBEBOARD
    if "companion" in value:
        return Section.COMPANION
    if "commander" in value or value == "command zone":
        return Section.COMMANDER
    return Section.MAINBOARD


# =============================================================================
# CARD LINES
# =============================================================================


def parse_card_line(line: str) -> CardEntry | None:
    """
    Parse a single card line.

    Also accepts a headerless CSV row ("4,Lightning Bolt"). Returns None if
    the line matches neither form or its quantity is not a positive integer.
    """
    line = line.strip()
    match = CARD_LINE_PATTERN.match(line)
    if not match:
        comma_match = QUANTITY_COMMA_PATTERN.match(line)
        if not comma_match:
            return None
        quantity = int(comma_match.group("quantity"))
        name = normalize_name(comma_match.group("name"))
        if quantity < 1 or not name:
            return None
        return CardEntry(display_name=name, quantity=quantity)

    quantity = int(match.group("quantity"))
    name = normalize_name(match.group("name"))
    if quantity < 1 or not name:
        return None

    set_code = match.group("set_code")
    collector_number = (
        match.group("bracketed") or match.group("bare") or match.group("unset_bracketed")
    )

    return CardEntry(
        display_name=name,
        quantity=quantity,
        set_code=set_code.lower() if set_code else None,
        collector_number=collector_number,
        is_foil=match.group("foil") is not None,
    )


# =============================================================================
# PUBLIC API
# =============================================================================


def parse_deck_text(text: str) -> DeckModel:
    """
    Parse deck text.

    Convenience function that creates a parser and parses.

    Args:
        text: Raw deck text

    Returns:
        DeckModel; malformed lines are listed in unparseable_lines
    """
    parser = DeckTextParser()
    return parser.parse(text)
