"""
Row mutation helpers used alongside the Evaluation Trigger.

``add`` appends the input items as new sheet rows; ``update`` writes
them back onto existing rows addressed by their ``row_number`` field.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Union

from pydantic import BaseModel

from node_sdk.basenode import NodeExecutionContext, NodeExecutionData, NodeOperationError

from ..google_sheets.errors import MissingMatchColumnError, UnexpectedColumnError
from ..google_sheets.sheet import ROW_NUMBER, GoogleSheet, a1_range, column_letter
from .description import LATEST_VERSION


logger = logging.getLogger(__name__)

HANDLING_EXTRA_DATA = ("error", "ignoreIt", "insertInNewColumn")


class ColumnMatch(BaseModel):
    """Column used to address rows on update; key_index is -1 when it has no sheet column."""

    match_column: str = ROW_NUMBER
    key_index: int = -1


def cell_format_default(node_version: Union[int, float]) -> str:
    """Value input option used when ``options.cellFormat`` is unset."""
    return "RAW" if node_version < 4.1 else "USER_ENTERED"


def _location(options: Dict[str, Any]) -> Dict[str, Any]:
    return ((options.get("locationDefine") or {}).get("values")) or {}


def _row_index(value: Any, default: int, label: str) -> int:
    if value in (None, ""):
        return default
    try:
        index = int(value)
    except (TypeError, ValueError):
        raise NodeOperationError(f"{label} must be a whole number, got '{value}'") from None
    if index < 1:
        raise NodeOperationError(f"{label} must be 1 or greater")
    return index


def _extra_data_policy(options: Dict[str, Any], default: str) -> str:
    policy = options.get("handlingExtraData") or default
    if policy not in HANDLING_EXTRA_DATA:
        raise NodeOperationError(
            f"Unknown value for 'Handling extra data': '{policy}'",
            description=f"Expected one of: {', '.join(HANDLING_EXTRA_DATA)}",
        )
    return policy


def add(
    context: NodeExecutionContext,
    sheet: GoogleSheet,
    range_a1: str,
    sheet_id: Union[int, str],
    node_version: Union[int, float] = 5,
) -> List[NodeExecutionData]:
    """
    Append every input item as a new row after the sheet's existing data.

    Returns the input items, each stamped with its positional pairedItem.
    """
    items = context.get_input_data()
    if not items:
        return []

    options = context.get_node_parameter("options", 0, {}) or {}
    key_row_index = _row_index(_location(options).get("headerRow"), 1, "Header Row")
    value_input_mode = options.get("cellFormat") or cell_format_default(node_version)
    handling_extra_data = _extra_data_policy(options, "insertInNewColumn")

    sheet_data = sheet.get_data(range_a1, "FORMATTED_VALUE")
    input_data = [dict(item.get("json") or {}) for item in items]

    sheet.append_empty_rows_or_columns(sheet_id, len(input_data), 0)

    # an empty sheet gets its header row written first, data goes below it
    last_row = len(sheet_data or [[]]) + 1

    sheet.append_sheet_data(
        input_data,
        range_a1,
        key_row_index,
        value_input_mode,
        last_row,
        handling_extra_data=handling_extra_data,
    )
    logger.info("Appended %d rows to '%s' from row %d", len(input_data), range_a1, last_row)

    result: List[NodeExecutionData] = []
    for index, item in enumerate(items):
        stamped = dict(item)
        stamped["pairedItem"] = {"item": index}
        result.append(stamped)
    return result


def update(
    context: NodeExecutionContext,
    sheet: GoogleSheet,
    sheet_name: str,
    node_version: Union[int, float] = LATEST_VERSION,
) -> List[NodeExecutionData]:
    """
    Write each input item onto the row named by its ``row_number`` field.

    All cell writes go out in a single values:batchUpdate call.
    """
    items = context.get_input_data()
    options = context.get_node_parameter("options", 0, {}) or {}
    value_input_mode = options.get("cellFormat") or cell_format_default(node_version)
    handling_extra_data = _extra_data_policy(options, "error")

    location = _location(options)
    header_row = _row_index(location.get("headerRow"), 1, "Header Row")
    first_data_row = _row_index(location.get("firstDataRow"), header_row + 1, "First Data Row")

    range_a1 = a1_range(sheet_name, "A:Z")
    sheet_data = sheet.get_data(a1_range(sheet_name), "FORMATTED_VALUE")
    if len(sheet_data) < header_row:
        raise NodeOperationError(f"Could not retrieve the column names from row {header_row}")

    column_names = ["" if c is None else str(c) for c in sheet_data[header_row - 1]]
    match = ColumnMatch(
        key_index=column_names.index(ROW_NUMBER) if ROW_NUMBER in column_names else -1
    )
    original_width = len(column_names)

    mapped_values: List[Dict[str, Any]] = []
    for i, item in enumerate(items):
        record = dict(item.get("json") or {})

        if record.get(match.match_column) is None:
            raise MissingMatchColumnError(
                "Column to match on (row_number) is not defined. Since the field is used "
                "to determine the row to update, it needs to have a value set.",
                item_index=i,
            )
        try:
            row_number = int(record[match.match_column])
        except (TypeError, ValueError):
            raise NodeOperationError(
                f"row_number must be a whole number, got '{record[match.match_column]}'",
                item_index=i,
            ) from None
        if row_number < first_data_row:
            raise NodeOperationError(
                f"Row {row_number} is above the first data row ({first_data_row})",
                item_index=i,
            )

        for key in list(record):
            if record[key] is None:
                record[key] = ""
            if key == match.match_column or key in column_names:
                continue
            if handling_extra_data == "error":
                raise UnexpectedColumnError(
                    "Unexpected fields in node input",
                    item_index=i,
                    description=(
                        f"The input field '{key}' doesn't match any column in the Sheet. "
                        "You can ignore this by changing the 'Handling extra data' field, "
                        "which you can find under 'Options'."
                    ),
                )
            if handling_extra_data == "ignoreIt":
                del record[key]
            else:
                column_names.append(key)

        mapped_values.append(record)

    update_data: List[Dict[str, Any]] = []
    for offset, name in enumerate(column_names[original_width:]):
        cell = f"{column_letter(original_width + offset + 1)}{header_row}"
        update_data.append({"range": a1_range(sheet_name, cell), "values": [[name]]})
    update_data.extend(
        sheet.prepare_data_for_updating_by_row_number(mapped_values, range_a1, column_names)
    )

    if not update_data:
        return []

    sheet.batch_update(update_data, value_input_mode)
    logger.info(
        "Updated %d rows in '%s' (%d cell writes)",
        len(mapped_values), sheet_name, len(update_data),
    )

    return [{"json": entry, "pairedItem": {"item": index}} for index, entry in enumerate(mapped_values)]


__all__ = ["ColumnMatch", "cell_format_default", "add", "update"]
