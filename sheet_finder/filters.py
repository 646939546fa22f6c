from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Mapping, Optional, Sequence

from .cell_utils import cell_text, try_parse_number
from .type_inference import ColumnType

Row = Mapping[str, object]


class FilterMode(str, Enum):
    CONTAINS = "contains"
    EQUALS = "equals"


@dataclass(frozen=True)
class FilterConfig:
    mode: FilterMode = FilterMode.CONTAINS
    text: str = ""
    min: Optional[float] = None
    max: Optional[float] = None

    def __post_init__(self) -> None:
        # accept plain strings ("contains", "equals") for the mode
        object.__setattr__(self, "mode", FilterMode(self.mode))
        if self.min is not None:
            object.__setattr__(self, "min", float(self.min))
        if self.max is not None:
            object.__setattr__(self, "max", float(self.max))

    def with_bounds(self, min: Optional[float] = None, max: Optional[float] = None) -> "FilterConfig":
        return replace(self, text="", mode=FilterMode.CONTAINS, min=min, max=max)

    def with_text(self, text: str, mode: Optional[FilterMode] = None) -> "FilterConfig":
        return replace(self, text=text, mode=mode or self.mode, min=None, max=None)


def is_active(cfg: Optional[FilterConfig], column_type: ColumnType) -> bool:
    """Numeric filters need a bound; categorical filters need non-blank text."""
    if cfg is None:
        return False
    if column_type is ColumnType.NUMERIC:
        return cfg.min is not None or cfg.max is not None
    return bool(cfg.text.strip())


def _matches_numeric(cell: object, cfg: FilterConfig) -> bool:
    num = try_parse_number(cell)
    if num is None:
        return False
    if cfg.min is not None and num < cfg.min:
        return False
    if cfg.max is not None and num > cfg.max:
        return False
    return True


def _matches_text(cell: object, cfg: FilterConfig) -> bool:
    needle = cfg.text.strip().lower()
    hay = cell_text(cell).strip().lower()
    if cfg.mode is FilterMode.EQUALS:
        return hay == needle
    return needle in hay


def apply_filters(
    rows: Sequence[Row],
    filters: Mapping[str, FilterConfig],
    column_types: Mapping[str, ColumnType],
) -> Sequence[Row]:
    """Keep rows satisfying every active filter (logical AND).

    With no active filter the input sequence is returned as-is.
    """
    active = [
        (col, cfg, column_types.get(col, ColumnType.CATEGORICAL))
        for col, cfg in (filters or {}).items()
        if is_active(cfg, column_types.get(col, ColumnType.CATEGORICAL))
    ]
    if not active:
        return rows

    def _keep(row: Row) -> bool:
        for col, cfg, ctype in active:
            cell = row.get(col)
            if ctype is ColumnType.NUMERIC:
                if not _matches_numeric(cell, cfg):
                    return False
            elif not _matches_text(cell, cfg):
                return False
        return True

    return [r for r in rows if _keep(r)]

