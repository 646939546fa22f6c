"""Cell-level helpers shared by every engine.

All numeric interpretation of a cell goes through :func:`try_parse_number`
so that filtering, sorting, aggregation and statistics agree on what counts
as a number:
  - ``int``/``float`` (and numpy scalars) are numbers when finite
  - strings are numbers when, once trimmed, they parse completely
  - booleans, blanks, ``None``/NaN and everything else are not
"""

from __future__ import annotations

import math
from typing import Any, Optional

import numpy as np
import pandas as pd

Cell = Any


def is_blank(value: Cell) -> bool:
    """True for ``None``, NaN/NA and the empty string."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def normalize_cell(value: Cell) -> Cell:
    """Convert a decoded spreadsheet value to a plain Python scalar.

    Missing values become ``""``; numpy scalars become ``int``/``float``/``bool``.
    """
    if is_blank(value):
        return ""
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    return value


def try_parse_number(value: Cell) -> Optional[float]:
    if value is None or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        num = float(value)
        return num if math.isfinite(num) else None
    if not isinstance(value, str):
        return None
    s = value.strip()
    # float() accepts digit separators ("1_000"); spreadsheets don't
    if not s or "_" in s:
        return None
    try:
        num = float(s)
    except ValueError:
        return None
    return num if math.isfinite(num) else None


def is_value_numeric(value: Cell) -> bool:
    return try_parse_number(value) is not None


def cell_text(value: Cell) -> str:
    """String form of a cell; blanks render as ``""``."""
    if is_blank(value):
        return ""
    return str(value)


__all__ = [
    "Cell",
    "is_blank",
    "normalize_cell",
    "try_parse_number",
    "is_value_numeric",
    "cell_text",
]
