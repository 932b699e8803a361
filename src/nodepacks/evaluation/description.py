"""
Versioned configuration schema for the Evaluation Trigger.

Every parameter is declared once; VERSION_FIELDS selects which of them
a given node version exposes.
"""

from __future__ import annotations

from typing import Any, Dict, List, Union

from node_sdk.basenode import NodeCredential, NodeParameter

from ..google_sheets.api import OAUTH2_CREDENTIAL, SERVICE_ACCOUNT_CREDENTIAL
from ..google_sheets.locator import (
    DOCUMENT_ID_REGEX,
    GOOGLE_DRIVE_FILE_URL_REGEX,
    GOOGLE_SHEETS_SHEET_URL_REGEX,
)


LATEST_VERSION = 4.6

CREDENTIALS: List[NodeCredential] = [
    NodeCredential(
        name=SERVICE_ACCOUNT_CREDENTIAL,
        required=True,
        display_options={"show": {"authentication": ["serviceAccount"]}},
    ),
    NodeCredential(
        name=OAUTH2_CREDENTIAL,
        required=True,
        display_options={"show": {"authentication": ["oAuth2"]}},
    ),
]

PARAMETERS: Dict[str, NodeParameter] = {
    "notice": NodeParameter(
        name="notice",
        display_name=(
            "Pulls a test dataset from a Google Sheet. "
            "The workflow will run once for each row, in sequence."
        ),
        type="notice",
        default="",
    ),
    "authentication": NodeParameter(
        name="authentication",
        display_name="Authentication",
        type="options",
        options=[
            {"name": "Service Account", "value": "serviceAccount"},
            {"name": "OAuth2 (recommended)", "value": "oAuth2"},
        ],
        default="oAuth2",
    ),
    "documentId": NodeParameter(
        name="documentId",
        display_name="Document",
        type="resourceLocator",
        default={"mode": "list", "value": ""},
        required=True,
        modes=[
            {"displayName": "From List", "name": "list", "type": "list",
             "typeOptions": {"searchListMethod": "spreadSheetsSearch", "searchable": True}},
            {"displayName": "By URL", "name": "url", "type": "string",
             "extractValue": {"type": "regex", "regex": GOOGLE_DRIVE_FILE_URL_REGEX}},
            {"displayName": "By ID", "name": "id", "type": "string",
             "validation": [{"type": "regex", "properties": {
                 "regex": DOCUMENT_ID_REGEX,
                 "errorMessage": "Not a valid Google Drive File ID",
             }}]},
        ],
    ),
    "sheetName": NodeParameter(
        name="sheetName",
        display_name="Sheet",
        type="resourceLocator",
        default={"mode": "list", "value": ""},
        required=True,
        type_options={"loadOptionsDependsOn": ["documentId.value"]},
        modes=[
            {"displayName": "From List", "name": "list", "type": "list",
             "typeOptions": {"searchListMethod": "sheetsSearch", "searchable": False}},
            {"displayName": "By URL", "name": "url", "type": "string",
             "extractValue": {"type": "regex", "regex": GOOGLE_SHEETS_SHEET_URL_REGEX}},
            {"displayName": "By ID", "name": "id", "type": "string"},
            {"displayName": "By Name", "name": "name", "type": "string", "placeholder": "Sheet1"},
        ],
    ),
    "limitRows": NodeParameter(
        name="limitRows",
        display_name="Limit Rows",
        type="boolean",
        default=False,
        description="Whether to limit number of rows to process",
    ),
    "maxRows": NodeParameter(
        name="maxRows",
        display_name="Max Rows to Process",
        type="string",
        default="10",
        description="Maximum number of rows to process",
        display_options={"show": {"limitRows": [True]}},
    ),
    "filtersUI": NodeParameter(
        name="filtersUI",
        display_name="Filters",
        type="fixedCollection",
        default={},
        placeholder="Add Filter",
        type_options={"multipleValues": True},
        options=[{
            "displayName": "Filter",
            "name": "values",
            "values": [
                {"displayName": "Column", "name": "lookupColumn", "type": "string", "default": ""},
                {"displayName": "Value", "name": "lookupValue", "type": "string", "default": ""},
            ],
        }],
    ),
    "options": NodeParameter(
        name="options",
        display_name="Options",
        type="collection",
        default={},
        placeholder="Add option",
        options=[{
            "displayName": "When Filter Has Multiple Matches",
            "name": "combineFilters",
            "type": "options",
            "options": [
                {"name": "AND", "value": "AND"},
                {"name": "OR", "value": "OR"},
            ],
            "default": "AND",
        }],
    ),
}

_BASE_FIELDS = ("notice", "authentication", "documentId", "sheetName", "limitRows", "maxRows")

VERSION_FIELDS: Dict[float, tuple] = {
    1: _BASE_FIELDS,
    4.6: _BASE_FIELDS + ("filtersUI", "options"),
}


def supports(version: Union[int, float], field: str) -> bool:
    return field in VERSION_FIELDS.get(float(version), ())


def build_properties(version: Union[int, float] = LATEST_VERSION) -> Dict[str, Any]:
    """Properties dict (parameters + credentials) for one node version."""
    try:
        fields = VERSION_FIELDS[float(version)]
    except KeyError:
        raise ValueError(f"Unsupported Evaluation Trigger version: {version}") from None
    return {
        "parameters": [PARAMETERS[name].to_dict() for name in fields],
        "credentials": [c.to_dict() for c in CREDENTIALS],
    }
