"""
GoogleSheet - one spreadsheet document seen through the Sheets API.

Wraps the REST calls the node pack needs: sheet metadata lookup,
range reads, row appends and batched cell updates.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from pydantic import BaseModel

from .api import GoogleSheetsApi
from .errors import SheetNotFoundError, UnexpectedColumnError
from .locator import SheetReference


logger = logging.getLogger(__name__)

ROW_NUMBER = "row_number"

VALUE_INPUT_OPTIONS = ("RAW", "USER_ENTERED")


class SheetInfo(BaseModel):
    """Resolved sheet metadata."""

    sheet_id: int
    title: str


def column_letter(index: int) -> str:
    """Convert a 1-based column index to A1 letters (1 -> A, 27 -> AA)."""
    letters = ""
    while index > 0:
        index, rem = divmod(index - 1, 26)
        letters = chr(65 + rem) + letters
    return letters


def quote_title(title: str) -> str:
    """Quote a sheet title for A1 notation when it isn't a plain word."""
    if re.fullmatch(r"[A-Za-z0-9_]+", title):
        return title
    return "'" + title.replace("'", "''") + "'"


def a1_range(title: str, cells: Optional[str] = None) -> str:
    if cells:
        return f"{quote_title(title)}!{cells}"
    return quote_title(title)


def sheet_title_of(range_a1: str) -> str:
    """Sheet part of an A1 range, with quoting removed."""
    title = range_a1.rsplit("!", 1)[0] if "!" in range_a1 else range_a1
    if len(title) >= 2 and title.startswith("'") and title.endswith("'"):
        title = title[1:-1].replace("''", "'")
    return title


def _as_sheet_id(value: Any) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


class GoogleSheet:
    """A single spreadsheet document."""

    def __init__(self, spreadsheet_id: str, api: GoogleSheetsApi) -> None:
        self.id = spreadsheet_id
        self.api = api

    # ==== Metadata ====

    def spreadsheet_get_sheet(self, ref: SheetReference) -> SheetInfo:
        """Find a sheet by title (name mode) or numeric sheet id."""
        data = self.api.request(
            "GET",
            f"/spreadsheets/{self.id}",
            params={"fields": "sheets.properties"},
        )
        wanted = ref.value.strip().lower()
        wanted_id = _as_sheet_id(ref.value) if not ref.by_name else None
        for sheet in data.get("sheets", []):
            properties = sheet.get("properties", {})
            if ref.by_name:
                found = str(properties.get("title", "")).strip().lower() == wanted
            else:
                found = wanted_id is not None and _as_sheet_id(properties.get("sheetId")) == wanted_id
            if found:
                return SheetInfo(
                    sheet_id=int(properties.get("sheetId", 0)),
                    title=properties.get("title", ""),
                )

        what = f"named '{ref.value}'" if ref.by_name else f"with ID {ref.value}"
        raise SheetNotFoundError(
            f"Sheet {what} not found in spreadsheet",
            description=f"Spreadsheet: {self.id}",
        )

    # ==== Reads ====

    def get_data(self, range_a1: str, value_render_mode: str = "FORMATTED_VALUE") -> List[List[Any]]:
        """Read a range; an empty range yields []."""
        response = self.api.request(
            "GET",
            f"/spreadsheets/{self.id}/values/{quote(range_a1, safe='')}",
            params={
                "valueRenderOption": value_render_mode,
                "dateTimeRenderOption": "FORMATTED_STRING",
            },
        )
        return response.get("values", [])

    # ==== Writes ====

    def append_empty_rows_or_columns(
        self,
        sheet_id: int | str,
        rows_to_add: int = 1,
        columns_to_add: int = 0,
    ) -> Dict[str, Any]:
        requests_body = []
        if rows_to_add > 0:
            requests_body.append({
                "appendDimension": {
                    "sheetId": int(sheet_id),
                    "dimension": "ROWS",
                    "length": rows_to_add,
                }
            })
        if columns_to_add > 0:
            requests_body.append({
                "appendDimension": {
                    "sheetId": int(sheet_id),
                    "dimension": "COLUMNS",
                    "length": columns_to_add,
                }
            })
        if not requests_body:
            return {}
        return self.api.request(
            "POST",
            f"/spreadsheets/{self.id}:batchUpdate",
            body={"requests": requests_body},
        )

    def update_rows(
        self,
        range_a1: str,
        values: List[List[Any]],
        value_input_mode: str = "RAW",
    ) -> Dict[str, Any]:
        return self.api.request(
            "PUT",
            f"/spreadsheets/{self.id}/values/{quote(range_a1, safe='')}",
            body={"range": range_a1, "values": values},
            params={"valueInputOption": value_input_mode},
        )

    def batch_update(
        self,
        update_data: List[Dict[str, Any]],
        value_input_mode: str = "RAW",
    ) -> Dict[str, Any]:
        """Write many ranges in one values:batchUpdate call."""
        return self.api.request(
            "POST",
            f"/spreadsheets/{self.id}/values:batchUpdate",
            body={"valueInputOption": value_input_mode, "data": update_data},
        )

    def append_sheet_data(
        self,
        input_data: List[Dict[str, Any]],
        range_a1: str,
        key_row_index: int,
        value_input_mode: str,
        last_row: int,
        handling_extra_data: str = "insertInNewColumn",
    ) -> Dict[str, Any]:
        """
        Write records as rows starting at ``last_row``.

        Columns come from the header row at ``key_row_index`` (1-based).
        An empty sheet gets a header row built from the record keys.
        Keys without a column are handled per ``handling_extra_data``:
        ``insertInNewColumn`` extends the header, ``ignoreIt`` drops the
        value, ``error`` raises UnexpectedColumnError.
        """
        title = sheet_title_of(range_a1)
        header_rows = self.get_data(a1_range(title, f"{key_row_index}:{key_row_index}"), "FORMATTED_VALUE")
        columns = [str(c) for c in header_rows[0]] if header_rows else []
        header_changed = not columns

        for index, record in enumerate(input_data):
            for key in record:
                if key == ROW_NUMBER or key in columns:
                    continue
                if not header_changed and handling_extra_data == "error":
                    raise UnexpectedColumnError(
                        "Unexpected fields in node input",
                        item_index=index,
                        description=f"The input field '{key}' doesn't match any column in the Sheet.",
                    )
                if header_changed or handling_extra_data == "insertInNewColumn":
                    columns.append(key)
                    header_changed = True

        if header_changed:
            logger.debug("Writing header row %d of '%s': %s", key_row_index, title, columns)
            self.update_rows(a1_range(title, f"A{key_row_index}"), [columns], value_input_mode)

        rows = [[record.get(col, "") for col in columns] for record in input_data]
        return self.update_rows(a1_range(title, f"A{last_row}"), rows, value_input_mode)

    def prepare_data_for_updating_by_row_number(
        self,
        input_data: List[Dict[str, Any]],
        range_a1: str,
        column_names: List[str],
    ) -> List[Dict[str, Any]]:
        """One single-cell update per (record, column) pair, addressed by row_number."""
        title = sheet_title_of(range_a1)
        update_data: List[Dict[str, Any]] = []
        for record in input_data:
            row_number = int(record[ROW_NUMBER])
            for key, value in record.items():
                if key == ROW_NUMBER or key not in column_names:
                    continue
                cell = f"{column_letter(column_names.index(key) + 1)}{row_number}"
                update_data.append({"range": a1_range(title, cell), "values": [[value]]})
        return update_data


__all__ = [
    "ROW_NUMBER",
    "SheetInfo",
    "GoogleSheet",
    "column_letter",
    "quote_title",
    "a1_range",
    "sheet_title_of",
]
