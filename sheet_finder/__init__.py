"""Spreadsheet explorer: search, filter, sort, paginate and summarize tabular data in memory.

Public entry points:
    ExplorerSession(config: Optional[dict] = None)   stateful session (load, filter, search, sort, page)
    derive_view(raw_rows, ...)                        filter -> fuzzy search -> sort
    DataProfiler().compute_stats(column, rows, types) numeric or categorical column summary
    aggregate_entity(name, rows, ...)                 per-entity amount/weight totals
    rows_to_csv(rows, header)                         CSV export
"""

from .aggregation import AggregateScope, EntityAggregate, aggregate_entity  # noqa: F401
from .data_profiler import CategoricalStats, DataProfiler, NumericStats  # noqa: F401
from .export import rows_to_csv  # noqa: F401
from .filters import FilterConfig, FilterMode, apply_filters  # noqa: F401
from .pipeline import ExplorerSession, derive_view, load_workbook, paginate  # noqa: F401
from .search import FuzzyIndex, SearchAdapter  # noqa: F401
from .sorting import SortDirection, sort_rows  # noqa: F401
from .type_inference import ColumnType, TypeInferencer  # noqa: F401

__all__ = [
    "AggregateScope",
    "CategoricalStats",
    "ColumnType",
    "DataProfiler",
    "EntityAggregate",
    "ExplorerSession",
    "FilterConfig",
    "FilterMode",
    "FuzzyIndex",
    "NumericStats",
    "SearchAdapter",
    "SortDirection",
    "TypeInferencer",
    "aggregate_entity",
    "apply_filters",
    "derive_view",
    "load_workbook",
    "paginate",
    "rows_to_csv",
    "sort_rows",
]
