import logging
import math
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from .aggregation import AggregateScope, EntityAggregate, aggregate_entity
from .cell_utils import normalize_cell
from .config import resolve_config
from .data_profiler import ColumnStats, DataProfiler
from .export import rows_to_csv
from .filters import FilterConfig, FilterMode, apply_filters
from .search import SearchAdapter
from .sorting import SortDirection, sort_rows
from .type_inference import ColumnType, TypeInferencer, derive_columns

logger = logging.getLogger(__name__)

Row = Dict[str, object]

LOAD_ERROR_NOTICE = (
    "Could not read the file. Make sure it is a valid .xlsx, .xls or .csv file."
)

# ---------------------------------------------------------------------------
# File decoding
# ---------------------------------------------------------------------------


def _frame_to_rows(df: pd.DataFrame) -> Tuple[List[Row], List[str]]:
    df = df.copy()
    df.columns = [str(c) for c in df.columns]
    rows = [
        {col: normalize_cell(val) for col, val in rec.items()}
        for rec in df.to_dict(orient="records")
    ]
    return rows, list(df.columns)


def load_workbook(file_path: str) -> Dict[str, Tuple[List[Row], List[str]]]:
    """Decode every sheet of a workbook into ``{sheet: (rows, columns)}``.

    CSV files produce a single sheet named ``Sheet1``. Blank cells become ``""``.
    """
    ext = Path(file_path).suffix.lower()
    if ext in (".xlsx", ".xls"):
        sheets: Dict[str, Tuple[List[Row], List[str]]] = {}
        with pd.ExcelFile(file_path) as xls:
            for name in xls.sheet_names:
                df = pd.read_excel(
                    xls, sheet_name=name, dtype=object, keep_default_na=False
                )
                sheets[str(name)] = _frame_to_rows(df)
        return sheets
    elif ext == ".csv":
        df = pd.read_csv(file_path, dtype=object, keep_default_na=False)
        return {"Sheet1": _frame_to_rows(df)}
    else:
        raise ValueError(f"Unsupported file type: {ext}")


# ---------------------------------------------------------------------------
# Derived view + pagination
# ---------------------------------------------------------------------------


def derive_view(
    raw_rows: Sequence[Row],
    *,
    column_types: Mapping[str, ColumnType],
    filters: Mapping[str, FilterConfig],
    query: str,
    search: SearchAdapter,
    sort_key: Optional[str],
    sort_dir: SortDirection,
) -> Sequence[Row]:
    """Filter, then fuzzy-search, then sort. Always recomputed from scratch."""
    rows = apply_filters(raw_rows, filters, column_types)
    rows = search.search(rows, query)
    return sort_rows(rows, sort_key, sort_dir, column_types)


def page_count(total: int, page_size: int) -> int:
    return max(1, math.ceil(total / page_size))


def clamp_page(page: int, total: int, page_size: int) -> int:
    return min(max(1, page), page_count(total, page_size))


def paginate(rows: Sequence[Row], page: int, page_size: int) -> Sequence[Row]:
    page = clamp_page(page, len(rows), page_size)
    start = (page - 1) * page_size
    return rows[start : start + page_size]


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class ExplorerSession:
    """State of one interactive exploration: the active sheet plus user selections.

    Every action mutates the selections; :attr:`view` recomputes the derived
    rows from them on access.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        self.config = resolve_config(config)
        self._inferencer = TypeInferencer(
            sample_size=self.config["type_sample_size"],
            threshold=self.config["numeric_threshold"],
        )
        self._profiler = DataProfiler(top_n=self.config["top_values"])
        self._search = SearchAdapter(
            threshold=self.config["fuzzy_threshold"],
            min_match_char_length=self.config["min_match_char_length"],
            sort_by_score=self.config["sort_by_score"],
        )
        self._sheets: Dict[str, Tuple[List[Row], List[str]]] = {}
        self.sheet_names: List[str] = []
        self.active_sheet = ""
        self.notice: Optional[str] = None
        self.page_size = int(self.config["page_size"])
        self._set_dataset([], [])

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_file(self, file_path: str) -> bool:
        """Load a workbook and activate its first sheet.

        On any decode failure the session is emptied and :attr:`notice` is set.
        """
        try:
            sheets = load_workbook(file_path)
        except Exception:
            logger.exception("Failed to load %s", file_path)
            self.notice = LOAD_ERROR_NOTICE
            self._sheets = {}
            self.sheet_names = []
            self.active_sheet = ""
            self._set_dataset([], [])
            return False
        self.notice = None
        self.load_sheets(sheets)
        return True

    def load_sheets(self, sheets: Mapping[str, Any]) -> None:
        """Install pre-decoded sheets.

        Values are either ``(rows, columns)`` pairs or bare row lists, in
        which case columns are the union of the rows' keys.
        """
        self._sheets = {}
        for name, value in sheets.items():
            if isinstance(value, tuple):
                rows, columns = value
            else:
                rows, columns = value, None
            rows = [dict(r) for r in rows]
            self._sheets[str(name)] = (rows, list(columns) if columns is not None else derive_columns(rows))
        self.sheet_names = list(self._sheets)
        if self.sheet_names:
            self.select_sheet(self.sheet_names[0])
        else:
            self.active_sheet = ""
            self._set_dataset([], [])

    def load_rows(self, rows: Iterable[Mapping[str, object]], sheet_name: str = "Sheet1") -> None:
        self.load_sheets({sheet_name: list(rows)})

    def select_sheet(self, name: str) -> None:
        if name not in self._sheets:
            raise KeyError(f"Unknown sheet: {name}")
        rows, columns = self._sheets[name]
        self.active_sheet = name
        self._set_dataset(rows, columns)
        logger.info("Loaded sheet %r: %d rows, %d columns", name, len(rows), len(columns))

    def _set_dataset(self, rows: List[Row], columns: List[str]) -> None:
        self.raw_rows: List[Row] = rows
        self.columns: List[str] = list(columns)
        self.column_types: Dict[str, ColumnType] = self._inferencer.infer_types(
            rows, self.columns
        )
        self.search_columns: List[str] = list(self.columns)
        self._reset_selections()
        self._rebuild_index()

    def _reset_selections(self) -> None:
        self.filters: Dict[str, FilterConfig] = {}
        self.query = ""
        self.sort_key = ""
        self.sort_dir = SortDirection.ASC
        self.page = 1
        self.selected_stats: Optional[ColumnStats] = None
        self.selected_entity: Optional[EntityAggregate] = None

    def _rebuild_index(self) -> None:
        self._search.rebuild(self.raw_rows, self.search_columns)

    # ------------------------------------------------------------------
    # Derived view
    # ------------------------------------------------------------------

    @property
    def view(self) -> Sequence[Row]:
        return derive_view(
            self.raw_rows,
            column_types=self.column_types,
            filters=self.filters,
            query=self.query,
            search=self._search,
            sort_key=self.sort_key,
            sort_dir=self.sort_dir,
        )

    @property
    def raw_count(self) -> int:
        return len(self.raw_rows)

    @property
    def total_count(self) -> int:
        return len(self.view)

    @property
    def page_count(self) -> int:
        return page_count(self.total_count, self.page_size)

    @property
    def current_page(self) -> int:
        return clamp_page(self.page, self.total_count, self.page_size)

    def page_rows(self) -> Sequence[Row]:
        return paginate(self.view, self.page, self.page_size)

    @property
    def visible_count(self) -> int:
        return len(self.page_rows())

    # ------------------------------------------------------------------
    # Filters, search, sort
    # ------------------------------------------------------------------

    def set_text_filter(
        self, column: str, text: Optional[str] = None, mode: Optional[FilterMode] = None
    ) -> FilterConfig:
        """Edit a column's text filter; omitted arguments keep their value.

        Any numeric bounds on the column are dropped.
        """
        cfg = self.filters.get(column, FilterConfig())
        cfg = cfg.with_text(
            text if text is not None else cfg.text,
            FilterMode(mode) if mode is not None else None,
        )
        return self._store_filter(column, cfg)

    def set_range_filter(
        self, column: str, min: Optional[float] = None, max: Optional[float] = None
    ) -> FilterConfig:
        """Replace a column's bounds (``None`` leaves that side open) and drop its text."""
        cfg = self.filters.get(column, FilterConfig()).with_bounds(min=min, max=max)
        return self._store_filter(column, cfg)

    def _store_filter(self, column: str, cfg: FilterConfig) -> FilterConfig:
        self.filters = {**self.filters, column: cfg}
        self.page = 1
        return cfg

    def clear_filter(self, column: str) -> None:
        self.filters = {k: v for k, v in self.filters.items() if k != column}
        self.page = 1

    def set_query(self, text: str) -> None:
        self.query = text or ""
        self.page = 1

    def set_search_columns(self, columns: Sequence[str]) -> None:
        unknown = [c for c in columns if c not in self.columns]
        if unknown:
            raise KeyError(f"Unknown columns: {', '.join(unknown)}")
        self.search_columns = list(columns)
        self.page = 1
        self._rebuild_index()

    def toggle_search_column(self, column: str) -> None:
        if column in self.search_columns:
            self.set_search_columns([c for c in self.search_columns if c != column])
        else:
            self.set_search_columns(self.search_columns + [column])

    def set_sort(self, column: str, direction: SortDirection = SortDirection.ASC) -> None:
        self.sort_key = column
        self.sort_dir = SortDirection(direction)

    def click_header(self, column: str) -> Optional[ColumnStats]:
        """Sort by ``column`` (toggling direction on repeat) and open its stats.

        Stats are taken over the view as it was before this click's re-sort.
        """
        stats = self._profiler.compute_stats(column, self.view, self.column_types)
        if self.sort_key == column:
            self.sort_dir = self.sort_dir.toggled()
        else:
            self.sort_key = column
            self.sort_dir = SortDirection.ASC
        self.selected_stats = stats
        return stats

    def column_stats(self, column: str) -> Optional[ColumnStats]:
        return self._profiler.compute_stats(column, self.view, self.column_types)

    def close_stats(self) -> None:
        self.selected_stats = None

    # ------------------------------------------------------------------
    # Entity drill-down
    # ------------------------------------------------------------------

    @property
    def is_filtered(self) -> bool:
        return self._narrows(self.view)

    def _narrows(self, view: Sequence[Row]) -> bool:
        return len(view) != self.raw_count or bool(self.query.strip())

    def click_entity(self, name: str) -> Optional[EntityAggregate]:
        """Aggregate ``name`` over the view when narrowed, else over all raw rows."""
        if not name or not name.strip():
            return None
        view = self.view
        filtered = self._narrows(view)
        self.selected_entity = aggregate_entity(
            name,
            view if filtered else self.raw_rows,
            entity_columns=self.config["entity_columns"],
            amount_column=self.config["amount_column"],
            weight_column=self.config["weight_column"],
            scope=AggregateScope.FILTERED if filtered else AggregateScope.GLOBAL,
        )
        return self.selected_entity

    def close_entity(self) -> None:
        self.selected_entity = None

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    def set_page(self, page: int) -> int:
        self.page = clamp_page(int(page), self.total_count, self.page_size)
        return self.page

    def first_page(self) -> int:
        return self.set_page(1)

    def last_page(self) -> int:
        return self.set_page(self.page_count)

    def next_page(self) -> int:
        return self.set_page(self.current_page + 1)

    def previous_page(self) -> int:
        return self.set_page(self.current_page - 1)

    def set_page_size(self, size: int) -> None:
        if int(size) not in self.config["page_size_choices"]:
            raise ValueError(
                f"page size must be one of {list(self.config['page_size_choices'])}"
            )
        self.page_size = int(size)
        self.page = 1

    # ------------------------------------------------------------------
    # Reset + export
    # ------------------------------------------------------------------

    def clear_all(self) -> None:
        """Drop query, filters, sort and open panels; keep the data."""
        self._reset_selections()

    def export_csv(self, scope: str = "all") -> str:
        if scope == "all":
            rows = self.view
        elif scope == "page":
            rows = self.page_rows()
        else:
            raise ValueError("scope must be 'all' or 'page'")
        return rows_to_csv(rows, self.columns)
