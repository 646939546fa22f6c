from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Sequence

from .cell_utils import cell_text, try_parse_number
from .config import AMOUNT_COLUMN, ENTITY_COLUMNS, WEIGHT_COLUMN

Row = Mapping[str, object]


class AggregateScope(str, Enum):
    FILTERED = "filtered"
    GLOBAL = "global"


@dataclass(frozen=True)
class EntityAggregate:
    entity_name: str
    total_value: float = 0.0
    total_weight: float = 0.0
    scope: AggregateScope = AggregateScope.GLOBAL

    @property
    def price_per_unit_weight(self) -> float:
        if self.total_weight > 0:
            return self.total_value / self.total_weight
        return 0.0

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["scope"] = self.scope.value
        out["price_per_unit_weight"] = self.price_per_unit_weight
        return out


def aggregate_entity(
    entity_name: str,
    rows: Sequence[Row],
    *,
    entity_columns: Sequence[str] = ENTITY_COLUMNS,
    amount_column: str = AMOUNT_COLUMN,
    weight_column: str = WEIGHT_COLUMN,
    scope: AggregateScope = AggregateScope.GLOBAL,
) -> EntityAggregate:
    """Total the amount and weight of rows naming ``entity_name`` in any role column.

    A row counts once even when several role columns name the entity.
    Values that do not parse as numbers are left out of the totals.
    """
    name = entity_name.strip()
    total_value = 0.0
    total_weight = 0.0
    for row in rows:
        if not any(cell_text(row.get(col)).strip() == name for col in entity_columns):
            continue
        value = try_parse_number(row.get(amount_column))
        if value is not None:
            total_value += value
        weight = try_parse_number(row.get(weight_column))
        if weight is not None:
            total_weight += weight
    return EntityAggregate(
        entity_name=name,
        total_value=total_value,
        total_weight=total_weight,
        scope=scope,
    )
