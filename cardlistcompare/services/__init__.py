"""
CardListCompare services.

Deck diffing, enrichment, changelog rendering and snapshot retention.
"""

from cardlistcompare.services.changelog import (
    diff_to_dict,
    format_changelog,
    format_json,
    format_mpc_fill,
    format_reddit,
)
from cardlistcompare.services.deck_formatter import format_card_line, format_deck_text
from cardlistcompare.services.differ import compute_diff, diff_section
from cardlistcompare.services.enricher import (
    CardMetadataLookup,
    DeckEnricher,
    enrich_deck_text,
)
from cardlistcompare.services.retention import (
    LockLimitError,
    RetentionConfigError,
    SnapshotLockedError,
    ensure_deletable,
    ensure_lock_allowed,
    select_snapshots_to_prune,
    validate_retention_limits,
)
from cardlistcompare.services.timeline import summarize_timeline

__all__ = [
    "CardMetadataLookup",
    "DeckEnricher",
    "LockLimitError",
    "RetentionConfigError",
    "SnapshotLockedError",
    "compute_diff",
    "diff_section",
    "diff_to_dict",
    "enrich_deck_text",
    "ensure_deletable",
    "ensure_lock_allowed",
    "format_card_line",
    "format_changelog",
    "format_deck_text",
    "format_json",
    "format_mpc_fill",
    "format_reddit",
    "select_snapshots_to_prune",
    "summarize_timeline",
    "validate_retention_limits",
]
