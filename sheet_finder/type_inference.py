from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .cell_utils import is_value_numeric
from .config import NUMERIC_THRESHOLD, TYPE_SAMPLE_SIZE

Row = Mapping[str, object]


class ColumnType(str, Enum):
    NUMERIC = "numeric"
    CATEGORICAL = "categorical"


def derive_columns(rows: Iterable[Row]) -> List[str]:
    """Union of keys across all rows, in first-seen order."""
    seen: Dict[str, None] = {}
    for row in rows:
        for key in row.keys():
            if key not in seen:
                seen[key] = None
    return list(seen)


class TypeInferencer:
    """Classify columns as numeric or categorical from a leading sample of rows."""

    def __init__(
        self,
        sample_size: int = TYPE_SAMPLE_SIZE,
        threshold: float = NUMERIC_THRESHOLD,
    ) -> None:
        self.sample_size = sample_size
        self.threshold = threshold

    def classify(self, rows: Sequence[Row], column: str) -> ColumnType:
        """Numeric when strictly more than ``threshold`` of the sample parses as a number.

        An empty sample is categorical.
        """
        sample = rows[: self.sample_size]
        if not sample:
            return ColumnType.CATEGORICAL
        numeric_count = sum(1 for r in sample if is_value_numeric(r.get(column)))
        if numeric_count / len(sample) > self.threshold:
            return ColumnType.NUMERIC
        return ColumnType.CATEGORICAL

    def infer_types(
        self, rows: Sequence[Row], columns: Optional[Sequence[str]] = None
    ) -> Dict[str, ColumnType]:
        """Tag every column; ``columns`` defaults to :func:`derive_columns`."""
        if columns is None:
            columns = derive_columns(rows)
        return {col: self.classify(rows, col) for col in columns}
