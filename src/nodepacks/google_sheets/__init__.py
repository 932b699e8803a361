"""
Google Sheets helpers shared by the nodes in this distribution.

- locator: resource locator (list / url / id / name) resolution
- api: authenticated REST transport with retry/backoff
- sheet: GoogleSheet document wrapper (metadata, reads, writes)
- errors: error kinds raised by the helpers
"""

from .api import GoogleSheetsApi, build_token_provider
from .errors import (
    InvalidReferenceError,
    MissingMatchColumnError,
    SheetNotFoundError,
    UnexpectedColumnError,
)
from .locator import (
    SheetReference,
    SpreadsheetReference,
    get_sheet_reference,
    get_spreadsheet_id,
    split_locator,
)
from .sheet import ROW_NUMBER, GoogleSheet, SheetInfo

__all__ = [
    "GoogleSheetsApi",
    "build_token_provider",
    "GoogleSheet",
    "SheetInfo",
    "ROW_NUMBER",
    "SheetReference",
    "SpreadsheetReference",
    "get_sheet_reference",
    "get_spreadsheet_id",
    "split_locator",
    "InvalidReferenceError",
    "MissingMatchColumnError",
    "SheetNotFoundError",
    "UnexpectedColumnError",
]
