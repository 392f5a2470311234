"""
Changelog rendering.

Turns a DiffResult into text for display or export: plain text, Reddit
markdown, MPCFill proxy lists and JSON. The sideboard block is rendered only
when the diff reports that either deck had a sideboard.
"""

import json
from dataclasses import asdict
from datetime import datetime

from cardlistcompare.models.diff import DiffResult, SectionDiff

ARROW = "→"


def _header(diff: DiffResult, generated_at: datetime) -> str:
    timestamp = generated_at.strftime("%Y-%m-%d %I:%M %p")
    if diff.commanders:
        return f"{' / '.join(diff.commanders)} - Changelog ({timestamp})"
    return f"Deck Changelog ({timestamp})"


def _signed(delta: int) -> str:
    return f"+{delta}" if delta > 0 else str(delta)


def _sections(diff: DiffResult) -> list[tuple[str, SectionDiff]]:
    sections = [("Mainboard", diff.mainboard)]
    if diff.has_sideboard:
        sections.append(("Sideboard", diff.sideboard))
    return sections


def _format_text_section(title: str, section: SectionDiff) -> str:
    if section.is_empty:
        return f"=== {title} ===\nNo changes.\n"

    lines = [f"=== {title} ===", ""]
    if section.cards_in:
        lines.append("--- Cards In ---")
        lines.extend(f"+ {c.quantity} {c.name}" for c in section.cards_in)
        lines.append("")
    if section.cards_out:
        lines.append("--- Cards Out ---")
        lines.extend(f"- {c.quantity} {c.name}" for c in section.cards_out)
        lines.append("")
    if section.quantity_changes:
        lines.append("--- Quantity Changes ---")
        lines.extend(
            f"~ {c.name} ({c.old_qty} {ARROW} {c.new_qty}, {_signed(c.delta)})"
            for c in section.quantity_changes
        )
        lines.append("")
    return "\n".join(lines) + "\n"


def format_changelog(diff: DiffResult, generated_at: datetime | None = None) -> str:
    """Render a diff as a plain-text changelog."""
    generated_at = generated_at or datetime.now()
    parts = [_format_text_section(title, s) for title, s in _sections(diff)]
    return (_header(diff, generated_at) + "\n\n" + "\n".join(parts)).strip()


def _format_reddit_section(title: str, section: SectionDiff) -> str:
    if section.is_empty:
        return ""

    lines = [f"### {title}", ""]
    if section.cards_in:
        lines.extend(["**Cards In:**", ""])
        lines.extend(f"- \\+ {c.quantity} [[{c.name}]]" for c in section.cards_in)
        lines.append("")
    if section.cards_out:
        lines.extend(["**Cards Out:**", ""])
        lines.extend(f"- \\- {c.quantity} [[{c.name}]]" for c in section.cards_out)
        lines.append("")
    if section.quantity_changes:
        lines.extend(["**Quantity Changes:**", ""])
        lines.extend(
            f"- ~ [[{c.name}]] ({c.old_qty} {ARROW} {c.new_qty}, {_signed(c.delta)})"
            for c in section.quantity_changes
        )
        lines.append("")
    return "\n".join(lines) + "\n"


def format_reddit(diff: DiffResult, generated_at: datetime | None = None) -> str:
    """Render a diff as Reddit-flavored markdown with [[card]] links."""
    generated_at = generated_at or datetime.now()
    output = f"## {_header(diff, generated_at)}\n\n"
    output += "".join(_format_reddit_section(title, s) for title, s in _sections(diff))
    return output.strip()


def format_mpc_fill(diff: DiffResult) -> str:
    """
    List the cards that need printing: new cards at full quantity plus the
    positive delta of quantity increases. One '<qty> <name>' per line.
    """
    lines: list[str] = []
    for _, section in _sections(diff):
        lines.extend(f"{c.quantity} {c.name}" for c in section.cards_in)
        lines.extend(f"{c.delta} {c.name}" for c in section.quantity_changes if c.delta > 0)
    return "\n".join(lines)


def _section_dict(section: SectionDiff) -> dict[str, list[dict[str, object]]]:
    return {
        "cards_in": [asdict(c) for c in section.cards_in],
        "cards_out": [asdict(c) for c in section.cards_out],
        "quantity_changes": [
            {**asdict(c), "delta": c.delta} for c in section.quantity_changes
        ],
    }


def diff_to_dict(diff: DiffResult) -> dict[str, object]:
    """Plain-data view of a diff, shared by the JSON export and the API."""
    data: dict[str, object] = {
        "commanders": list(diff.commanders),
        "has_sideboard": diff.has_sideboard,
        "mainboard": _section_dict(diff.mainboard),
    }
    if diff.has_sideboard:
        data["sideboard"] = _section_dict(diff.sideboard)
    return data


def format_json(diff: DiffResult, generated_at: datetime | None = None) -> str:
    """Render a diff as indented JSON with a generation timestamp."""
    generated_at = generated_at or datetime.now()
    data = {"timestamp": generated_at.isoformat(), **diff_to_dict(diff)}
    return json.dumps(data, indent=2)
