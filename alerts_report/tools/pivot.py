"""
Pivot Tool
Cross-tabulates a report table by two independent sets of key columns
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence, Tuple

from ..utils.records import Cell, Table
from ..utils.tool_registry import Tool

LABEL_SEPARATOR = " / "


def _count(values: List[Any]) -> int:
    return len(values)


def _count_distinct(values: List[Any]) -> int:
    return len({value for value in values if value not in ("", None)})


AGGREGATORS: Dict[str, Callable[[List[Any]], Cell]] = {
    "count": _count,
    "countDistinct": _count_distinct,
}


@dataclass
class PivotSpec:
    """Definition of one pivot sheet"""

    sheet_name: str
    source: str
    row_keys: List[str]
    col_keys: List[str]
    value_key: str
    aggregator: str = "count"
    include_empty_keys: bool = False


def _column_indexes(header: Sequence[Any], names: Sequence[str]) -> List[int]:
    indexes = []
    for name in names:
        if name not in header:
            raise KeyError(f"Column not found in table header: {name}")
        indexes.append(list(header).index(name))
    return indexes


def pivot(
    table: Table,
    row_keys: Sequence[str],
    col_keys: Sequence[str],
    value_key: str,
    aggregator: str = "count",
    *,
    include_empty_keys: bool = False,
) -> Table:
    """
    Build a cross-tabulation of a table

    Rows are grouped by the composite value of row_keys and, independently,
    by the composite value of col_keys. Both axes keep first-seen order.
    Each (row group, column group) bucket holds the aggregation of the
    value_key cells of the rows that fall in both groups; empty buckets
    hold 0 so the grid stays rectangular.

    Rows with an empty value in any grouping column are left out of the
    grid unless include_empty_keys is set.

    Args:
        table: Header row followed by data rows
        row_keys: Columns forming the row axis
        col_keys: Columns forming the column axis
        value_key: Column whose values are aggregated
        aggregator: Name of the aggregation ("count" or "countDistinct")
        include_empty_keys: Treat "" as a regular group value

    Returns:
        A table whose header is the row-key label followed by the column
        labels, and whose rows start with the row label
    """
    if aggregator not in AGGREGATORS:
        raise ValueError(
            f"Unknown aggregator: {aggregator}. Supported aggregators: {', '.join(AGGREGATORS)}"
        )
    if not table:
        raise ValueError("Table must contain a header row")

    header = table[0]
    row_idx = _column_indexes(header, row_keys)
    col_idx = _column_indexes(header, col_keys)
    value_idx = _column_indexes(header, [value_key])[0]
    reduce = AGGREGATORS[aggregator]

    row_axis: Dict[Tuple[str, ...], None] = {}
    col_axis: Dict[Tuple[str, ...], None] = {}
    buckets: Dict[Tuple[Tuple[str, ...], Tuple[str, ...]], List[Any]] = {}

    for row in table[1:]:
        row_key = tuple(str(row[i]) if row[i] is not None else "" for i in row_idx)
        col_key = tuple(str(row[i]) if row[i] is not None else "" for i in col_idx)

        if not include_empty_keys and "" in row_key + col_key:
            continue

        row_axis.setdefault(row_key)
        col_axis.setdefault(col_key)
        buckets.setdefault((row_key, col_key), []).append(row[value_idx])

    result: Table = [[LABEL_SEPARATOR.join(row_keys)]]
    if not row_axis:
        return result

    result[0].extend(LABEL_SEPARATOR.join(key) for key in col_axis)
    for row_key in row_axis:
        pivot_row: List[Cell] = [LABEL_SEPARATOR.join(row_key)]
        for col_key in col_axis:
            values = buckets.get((row_key, col_key))
            pivot_row.append(reduce(values) if values else 0)
        result.append(pivot_row)

    return result


class PivotTool(Tool):
    """Tool for building pivot sheets from report tables"""

    def __init__(self):
        super().__init__(
            name="pivot_tool",
            description="Cross-tabulate report tables by row and column keys",
        )

    def execute(self, **kwargs) -> Any:
        """Execute the pivot tool"""
        return self.build(kwargs["table"], kwargs["spec"])

    def build(self, table: Table, spec: PivotSpec) -> Table:
        """Apply a pivot definition to a table"""
        return pivot(
            table,
            spec.row_keys,
            spec.col_keys,
            spec.value_key,
            spec.aggregator,
            include_empty_keys=spec.include_empty_keys,
        )
