from __future__ import annotations

import unicodedata
from enum import Enum
from typing import List, Mapping, Optional, Sequence, Tuple

from .cell_utils import cell_text, try_parse_number
from .type_inference import ColumnType

Row = Mapping[str, object]


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def toggled(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


def _sort_numeric(rows: Sequence[Row], column: str, descending: bool) -> List[Row]:
    valid: List[Tuple[float, Row]] = []
    missing: List[Row] = []
    for row in rows:
        num = try_parse_number(row.get(column))
        if num is None:
            missing.append(row)
        else:
            valid.append((num, row))
    # list.sort stays stable with reverse=True
    valid.sort(key=lambda pair: pair[0], reverse=descending)
    return [row for _, row in valid] + missing


def collation_key(text: str) -> Tuple[str, str, str]:
    """Accent- and case-insensitive ordering, then case, then raw text for ties.

    Independent of the process locale, so "apple" < "Éclair" < "Zebra".
    """
    folded = unicodedata.normalize("NFKD", text.casefold())
    base = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return base, text.casefold(), text


def _sort_text(rows: Sequence[Row], column: str, descending: bool) -> List[Row]:
    return sorted(
        rows,
        key=lambda r: collation_key(cell_text(r.get(column))),
        reverse=descending,
    )


def sort_rows(
    rows: Sequence[Row],
    column: Optional[str],
    direction: SortDirection,
    column_types: Mapping[str, ColumnType],
) -> Sequence[Row]:
    """Stable, type-aware sort of ``rows`` by ``column``.

    Numeric columns compare parsed values and put unparseable cells last in
    either direction. Other columns compare the cell text ignoring case and accents
    (see :func:`collation_key`). An empty or unknown column returns ``rows`` untouched.
    """
    if not column or column not in column_types:
        return rows
    descending = SortDirection(direction) is SortDirection.DESC
    if column_types[column] is ColumnType.NUMERIC:
        return _sort_numeric(rows, column, descending)
    return _sort_text(rows, column, descending)
