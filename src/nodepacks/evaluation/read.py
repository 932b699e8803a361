"""
Range reader and row-to-item mapper for the Evaluation Trigger.

The first row of the fetched grid names the fields; every following
row becomes one output item, in sheet order.
"""

from __future__ import annotations

import logging
from typing import Any, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from node_sdk.basenode import NodeExecutionData, NodeOperationError

from ..google_sheets.sheet import GoogleSheet, a1_range


logger = logging.getLogger(__name__)

FULL_RANGE = "A:Z"


class RowLimitPolicy(BaseModel):
    """Whether, and to how many data rows, a read is capped."""
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    max_rows: int = Field(0, ge=0)

    @classmethod
    def from_parameters(cls, limit_rows: Any, max_rows: Any, default: int) -> "RowLimitPolicy":
        """Build from the node's limitRows / maxRows parameters (maxRows is string-encoded)."""
        if not limit_rows:
            return cls()
        if max_rows is None or (isinstance(max_rows, str) and not max_rows.strip()):
            return cls(enabled=True, max_rows=default)
        try:
            parsed = int(str(max_rows).strip())
        except ValueError:
            raise NodeOperationError(
                f"Max Rows to Process must be a whole number, got '{max_rows}'"
            ) from None
        if parsed < 0:
            raise NodeOperationError("Max Rows to Process cannot be negative")
        return cls(enabled=True, max_rows=parsed)


class ReadFilter(BaseModel):
    """Keep rows whose ``lookup_column`` equals ``lookup_value``."""
    model_config = ConfigDict(frozen=True)

    lookup_column: str = Field(..., min_length=1)
    lookup_value: str = ""


def build_read_range(title: str, policy: RowLimitPolicy) -> str:
    """
    A1 range for a read: the header row plus at most ``max_rows`` data
    rows when limited, otherwise columns A:Z in full.
    """
    if policy.enabled:
        return a1_range(title, f"1:{policy.max_rows + 1}")
    return a1_range(title, FULL_RANGE)


def rows_to_items(rows: Sequence[Sequence[Any]], max_rows: Optional[int] = None) -> List[NodeExecutionData]:
    """
    Map a grid to items.

    - Header cells are stringified; empty header cells produce no field.
    - A repeated header keeps its first column.
    - Missing trailing cells are left out of the item, not set to None.
    """
    if not rows:
        return []

    columns: List[tuple[int, str]] = []
    seen = set()
    for index, raw in enumerate(rows[0]):
        name = "" if raw is None else str(raw)
        if not name or name in seen:
            continue
        seen.add(name)
        columns.append((index, name))

    data_rows = rows[1:]
    if max_rows is not None:
        data_rows = data_rows[:max_rows]

    items: List[NodeExecutionData] = []
    for position, row in enumerate(data_rows):
        record = {name: row[index] for index, name in columns if index < len(row)}
        items.append({"json": record, "pairedItem": {"item": position}})
    return items


def _cell_matches(cell: Any, value: str) -> bool:
    """Compare a cell with a lookup value as text; booleans match TRUE / FALSE in any case."""
    if isinstance(cell, bool):
        return value.strip().upper() == ("TRUE" if cell else "FALSE")
    return ("" if cell is None else str(cell)) == value


def filter_rows(
    rows: Sequence[Sequence[Any]],
    filters: Sequence[ReadFilter],
    combine: Literal["AND", "OR"] = "AND",
) -> List[Sequence[Any]]:
    """Header row plus the data rows matching the filters."""
    if not rows or not filters:
        return list(rows)

    header = ["" if h is None else str(h) for h in rows[0]]
    lookups = []
    for f in filters:
        if f.lookup_column not in header:
            raise NodeOperationError(
                f"Column '{f.lookup_column}' not found in sheet",
                description=f"Available columns: {', '.join(h for h in header if h)}",
            )
        lookups.append((header.index(f.lookup_column), f.lookup_value))

    matched: List[Sequence[Any]] = [rows[0]]
    for row in rows[1:]:
        results = [
            _cell_matches(row[index] if index < len(row) else "", value)
            for index, value in lookups
        ]
        if (all(results) if combine == "AND" else any(results)):
            matched.append(row)
    return matched


def read_sheet(
    sheet: GoogleSheet,
    title: str,
    policy: RowLimitPolicy,
    filters: Optional[Sequence[ReadFilter]] = None,
    combine: Literal["AND", "OR"] = "AND",
    value_render_mode: str = "UNFORMATTED_VALUE",
) -> List[NodeExecutionData]:
    """Fetch rows from a sheet and map them to items."""
    max_rows = policy.max_rows if policy.enabled else None

    if filters:
        # the cap applies to matching rows, so the whole sheet is read
        rows = sheet.get_data(a1_range(title, FULL_RANGE), value_render_mode)
        rows = filter_rows(rows, filters, combine)
    else:
        rows = sheet.get_data(build_read_range(title, policy), value_render_mode)

    items = rows_to_items(rows, max_rows)
    logger.debug("Mapped %d rows from sheet '%s'", len(items), title)
    return items
