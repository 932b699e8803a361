"""
Error kinds raised by the Google Sheets helpers.

All of them are NodeOperationError subclasses so the host reports
them with the node's context.
"""

from __future__ import annotations

from node_sdk.basenode import NodeOperationError


class InvalidReferenceError(NodeOperationError):
    """A document or sheet URL/ID could not be resolved."""


class SheetNotFoundError(NodeOperationError):
    """The referenced sheet does not exist in the spreadsheet."""


class MissingMatchColumnError(NodeOperationError):
    """The row_number match value is absent for a row update."""


class UnexpectedColumnError(NodeOperationError):
    """An input field has no matching sheet column."""


__all__ = [
    "InvalidReferenceError",
    "SheetNotFoundError",
    "MissingMatchColumnError",
    "UnexpectedColumnError",
]
