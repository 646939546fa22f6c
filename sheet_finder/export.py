from __future__ import annotations

import csv
from typing import Mapping, Sequence

import pandas as pd

from .cell_utils import normalize_cell

Row = Mapping[str, object]


def _export_cell(value: object) -> object:
    value = normalize_cell(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def rows_to_frame(rows: Sequence[Row], header: Sequence[str]) -> pd.DataFrame:
    # object dtype keeps ints as ints when the column also has blanks
    data = [[_export_cell(row.get(col)) for col in header] for row in rows]
    return pd.DataFrame(data, columns=list(header), dtype=object)


def rows_to_csv(rows: Sequence[Row], header: Sequence[str]) -> str:
    """Comma-separated text: header line, then one line per row.

    Fields holding a comma, quote or newline are quoted with inner quotes
    doubled; missing cells are written as empty fields and booleans as
    ``true``/``false``.
    """
    if not header:
        return ""
    return rows_to_frame(rows, header).to_csv(
        index=False,
        na_rep="",
        quoting=csv.QUOTE_MINIMAL,
        lineterminator="\n",
    )

