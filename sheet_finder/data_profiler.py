from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from .cell_utils import is_blank, try_parse_number
from .config import TOP_VALUES
from .type_inference import ColumnType

Row = Mapping[str, object]


@dataclass(frozen=True)
class NumericStats:
    column: str
    count: int
    sum: float
    avg: float
    min: float
    max: float
    median: float
    is_numeric: bool = field(default=True, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CategoricalStats:
    column: str
    count: int
    unique_count: int
    top_values: List[Tuple[str, int]]
    is_numeric: bool = field(default=False, init=False)

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["top_values"] = [{"value": v, "count": c} for v, c in self.top_values]
        return out


ColumnStats = Union[NumericStats, CategoricalStats]


class DataProfiler:
    """Per-column summaries over whatever rows the caller passes in."""

    def __init__(self, top_n: int = TOP_VALUES) -> None:
        self.top_n = top_n

    def compute_stats(
        self,
        column: str,
        rows: Sequence[Row],
        column_types: Mapping[str, ColumnType],
    ) -> Optional[ColumnStats]:
        """Summarize ``column`` over ``rows``.

        Returns ``None`` for an empty row set, a column with no non-blank
        cells, or a numeric column where nothing parses.
        """
        if not rows:
            return None

        values = [row.get(column) for row in rows]
        values = [v for v in values if not is_blank(v)]
        if not values:
            return None

        if column_types.get(column) is ColumnType.NUMERIC:
            return self._get_numeric_statistics(column, values)
        return self._get_categorical_statistics(column, values)

    def profile_rows(
        self, rows: Sequence[Row], column_types: Mapping[str, ColumnType]
    ) -> Dict[str, Optional[ColumnStats]]:
        """Stats for every typed column."""

        return {col: self.compute_stats(col, rows, column_types) for col in column_types}

    def _get_numeric_statistics(
        self, column: str, values: List[object]
    ) -> Optional[NumericStats]:
        """Sum, mean, extremes and median of the parseable cells."""

        numbers = [n for n in (try_parse_number(v) for v in values) if n is not None]
        if not numbers:
            return None

        series = pd.Series(numbers, dtype=float)
        return NumericStats(
            column=column,
            count=len(numbers),
            sum=float(series.sum()),
            avg=float(series.mean()),
            min=float(series.min()),
            max=float(series.max()),
            median=float(series.median()),
        )

    def _get_categorical_statistics(
        self, column: str, values: List[object]
    ) -> CategoricalStats:
        """Frequency table of trimmed values.

        Ties in count keep first-seen order.
        """

        counts = Counter(str(v).strip() for v in values)
        return CategoricalStats(
            column=column,
            count=len(values),
            unique_count=len(counts),
            top_values=counts.most_common(self.top_n),
        )
