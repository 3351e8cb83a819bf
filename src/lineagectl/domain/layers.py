"""Layer inference from dbt naming conventions.

Rules are evaluated top to bottom and the first match wins, so exactly
one layer tag is produced for every name. Matching is case-insensitive.
"""

from __future__ import annotations

import re

LAYER_TAGS: tuple[str, ...] = (
    "raw",
    "staging",
    "base",
    "intermediate",
    "core",
    "mart",
    "mart-internal",
    "mart-public",
)

DEFAULT_LAYER = "mart"

_EIGHT_DIGITS = re.compile(r"\d{8}")

# (layer, prefixes) in priority order; base is handled separately because
# it also matches on a date-like digit run anywhere in the name.
_PREFIX_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("raw", ("raw_",)),
    ("staging", ("stg_", "staging_")),
    ("intermediate", ("int_", "int__", "intermediate_")),
    ("core", ("core__",)),
    ("mart-internal", ("internal__",)),
    ("mart-public", ("public__",)),
    ("mart", ("mart_", "mart__", "fct_", "dim_")),
)


def infer_layer(name: str) -> str:
    """Return the single inferred layer for a model *name*.

    Examples:
        >>> infer_layer("stg_orders")
        'staging'
        >>> infer_layer("base__payments")
        'base'
        >>> infer_layer("orders_20240101")
        'base'
        >>> infer_layer("customers")
        'mart'
    """
    lowered = name.lower()
    if _EIGHT_DIGITS.search(lowered) or lowered.startswith(("base__", "stage__")):
        return "base"
    for layer, prefixes in _PREFIX_RULES:
        if lowered.startswith(prefixes):
            return layer
    return DEFAULT_LAYER


def infer_layer_tags(name: str) -> list[str]:
    """Return the inferred layer as a one-element tag list."""
    return [infer_layer(name)]
