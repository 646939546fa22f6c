"""Default settings for the explorer session and its engines.

Callers pass a plain ``dict`` as ``config=``; it is merged over
``DEFAULT_CONFIG`` by :func:`resolve_config`.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

# ---------------------------------------------------------------------------
# Type inference
# ---------------------------------------------------------------------------
TYPE_SAMPLE_SIZE = 200
NUMERIC_THRESHOLD = 0.7

# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------
PAGE_SIZE = 50
PAGE_SIZE_CHOICES = (25, 50, 100, 250, 500)

# ---------------------------------------------------------------------------
# Fuzzy search (0.0 = exact only, 1.0 = anything matches)
# ---------------------------------------------------------------------------
FUZZY_THRESHOLD = 0.35
MIN_MATCH_CHAR_LENGTH = 2

# ---------------------------------------------------------------------------
# Shipment ledger columns used by the entity drill-down
# ---------------------------------------------------------------------------
ENTITY_COLUMNS = ("Consignatario", "Expedidor")
AMOUNT_COLUMN = "Valor (USD)"
WEIGHT_COLUMN = "Weight (KG)"

TOP_VALUES = 5

DEFAULT_CONFIG: Dict[str, Any] = {
    "type_sample_size": TYPE_SAMPLE_SIZE,
    "numeric_threshold": NUMERIC_THRESHOLD,
    "page_size": PAGE_SIZE,
    "page_size_choices": PAGE_SIZE_CHOICES,
    "fuzzy_threshold": FUZZY_THRESHOLD,
    "min_match_char_length": MIN_MATCH_CHAR_LENGTH,
    "sort_by_score": False,
    "top_values": TOP_VALUES,
    "entity_columns": ENTITY_COLUMNS,
    "amount_column": AMOUNT_COLUMN,
    "weight_column": WEIGHT_COLUMN,
}


def resolve_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return ``DEFAULT_CONFIG`` updated with ``config``.

    Raises ``ValueError`` for keys that are not part of the defaults and for
    out-of-range numeric settings.
    """
    cfg = dict(DEFAULT_CONFIG)
    if not config:
        return cfg

    unknown = sorted(set(config) - set(DEFAULT_CONFIG))
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
    cfg.update(config)

    if int(cfg["type_sample_size"]) < 1:
        raise ValueError("type_sample_size must be at least 1")
    if not 0.0 <= float(cfg["fuzzy_threshold"]) <= 1.0:
        raise ValueError("fuzzy_threshold must be between 0 and 1")
    cfg["page_size_choices"] = tuple(int(n) for n in cfg["page_size_choices"])
    if int(cfg["page_size"]) not in cfg["page_size_choices"]:
        raise ValueError(
            f"page_size must be one of {list(cfg['page_size_choices'])}"
        )
    cfg["entity_columns"] = tuple(cfg["entity_columns"])
    return cfg
