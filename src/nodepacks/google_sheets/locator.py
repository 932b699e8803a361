"""
Resource locator resolution for spreadsheet documents and sheets.

A resource locator parameter arrives from the host as
``{"mode": "list" | "url" | "id" | "name", "value": "..."}``.
These helpers turn it into the identifiers the Sheets API expects.
All functions here are pure.
"""

from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidReferenceError


GOOGLE_DRIVE_FILE_URL_REGEX = r"https://(?:drive|docs)\.google\.com(?:/.*|)/d/([0-9a-zA-Z\-_]+)(?:/.*|)"
GOOGLE_SHEETS_SHEET_URL_REGEX = r"https://docs\.google\.com/spreadsheets/d/[0-9a-zA-Z\-_]+.*#gid=([0-9]+)"
DOCUMENT_ID_REGEX = r"[a-zA-Z0-9\-_]{2,}"
SHEET_ID_REGEX = r"(?:gid=)?([0-9]+)"

DocumentMode = Literal["list", "url", "id"]
SheetMode = Literal["list", "url", "id", "name"]


class SpreadsheetReference(BaseModel):
    """Canonical spreadsheet reference."""
    model_config = ConfigDict(frozen=True)

    document_id: str = Field(..., min_length=1)
    mode: DocumentMode


class SheetReference(BaseModel):
    """
    Sheet reference inside a spreadsheet.

    ``value`` is a numeric sheet id for list/url/id modes and a sheet
    title for name mode.
    """
    model_config = ConfigDict(frozen=True)

    value: str = Field(..., min_length=1)
    mode: SheetMode

    @property
    def by_name(self) -> bool:
        return self.mode == "name"


def split_locator(param: Any, default_mode: str) -> tuple[str, str]:
    """
    Split a locator parameter into (mode, value).

    Plain strings are accepted for backwards compatibility; a string
    that looks like a URL is treated as url mode.
    """
    if isinstance(param, dict):
        mode = str(param.get("mode") or default_mode)
        value = param.get("value")
        return mode, "" if value is None else str(value).strip()
    if isinstance(param, (str, int)):
        value = str(param).strip()
        if value.startswith("https://"):
            return "url", value
        return default_mode, value
    raise InvalidReferenceError(f"Invalid resource locator: {param!r}")


def get_spreadsheet_id(mode: str, value: str) -> str:
    """Resolve a document locator to a spreadsheet ID."""
    return resolve_spreadsheet(mode, value).document_id


def resolve_spreadsheet(mode: str, value: str) -> SpreadsheetReference:
    if not value:
        raise InvalidReferenceError("No spreadsheet selected")

    if mode == "url":
        match = re.search(GOOGLE_DRIVE_FILE_URL_REGEX, value)
        if not match:
            raise InvalidReferenceError(
                f"Not a valid Google Drive File URL: {value}",
                description="Use a URL like https://docs.google.com/spreadsheets/d/<ID>/edit",
            )
        return SpreadsheetReference(document_id=match.group(1), mode="url")

    if mode == "id":
        if not re.fullmatch(DOCUMENT_ID_REGEX, value):
            raise InvalidReferenceError(f"Not a valid Google Drive File ID: {value}")
        return SpreadsheetReference(document_id=value, mode="id")

    if mode == "list":
        return SpreadsheetReference(document_id=value, mode="list")

    raise InvalidReferenceError(f"Unsupported document locator mode '{mode}'")


def get_sheet_reference(mode: str, value: str) -> SheetReference:
    """Resolve a sheet locator to a SheetReference."""
    if not value:
        raise InvalidReferenceError("No sheet selected")

    if mode == "url":
        match = re.search(GOOGLE_SHEETS_SHEET_URL_REGEX, value)
        if not match:
            raise InvalidReferenceError(f"Not a valid Sheet URL: {value}")
        return SheetReference(value=match.group(1), mode="url")

    if mode == "id":
        match = re.fullmatch(SHEET_ID_REGEX, value)
        if not match:
            raise InvalidReferenceError(f"Not a valid Sheet ID: {value}")
        return SheetReference(value=match.group(1), mode="id")

    if mode in ("list", "name"):
        return SheetReference(value=value, mode=mode)

    raise InvalidReferenceError(f"Unsupported sheet locator mode '{mode}'")


__all__ = [
    "GOOGLE_DRIVE_FILE_URL_REGEX",
    "GOOGLE_SHEETS_SHEET_URL_REGEX",
    "SpreadsheetReference",
    "SheetReference",
    "split_locator",
    "get_spreadsheet_id",
    "resolve_spreadsheet",
    "get_sheet_reference",
]
