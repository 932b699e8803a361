"""Pytest configuration and fixtures."""
import os
import re
from urllib.parse import unquote

import pytest

# Set test environment variables
os.environ["EVALFLOW_ENV"] = "test"
os.environ["EVALFLOW_API_BASE_DELAY_S"] = "0.01"

from node_sdk.basenode import NodeExecutionContext  # noqa: E402
from node_sdk.config import reset_settings  # noqa: E402
from nodepacks.google_sheets.sheet import GoogleSheet, sheet_title_of  # noqa: E402


SPREADSHEET_ID = "1AbCdEfGhIjKlMnOpQrStUvWxYz0123456789"


class FakeSheetsApi:
    """
    In-memory stand-in for GoogleSheetsApi.

    Serves sheet metadata and range reads from ``sheets`` and records
    every call in ``calls`` as (method, endpoint, body, params).
    """

    def __init__(self, sheets=None, sheet_ids=None):
        self.sheets = sheets or {}
        self.sheet_ids = sheet_ids or {
            title: index for index, title in enumerate(self.sheets)
        }
        self.calls = []

    def request(self, method, endpoint, body=None, params=None):
        self.calls.append((method, endpoint, body, params))

        if method == "GET" and "/values/" in endpoint:
            range_a1 = unquote(endpoint.split("/values/", 1)[1])
            return self._read(range_a1)

        if method == "GET":
            return {
                "sheets": [
                    {"properties": {"sheetId": sheet_id, "title": title}}
                    for title, sheet_id in self.sheet_ids.items()
                ]
            }
        return {}

    def _read(self, range_a1):
        grid = self.sheets.get(sheet_title_of(range_a1), [])
        cells = range_a1.rsplit("!", 1)[1] if "!" in range_a1 else ""
        match = re.fullmatch(r"(\d+):(\d+)", cells)
        if match:
            grid = grid[int(match.group(1)) - 1:int(match.group(2))]
        if not grid:
            # the API leaves out "values" for an empty range
            return {"range": range_a1}
        return {"range": range_a1, "values": [list(row) for row in grid]}

    def requests_for(self, method, suffix=""):
        return [c for c in self.calls if c[0] == method and c[1].endswith(suffix)]


@pytest.fixture(autouse=True)
def fresh_settings():
    """Each test reads settings from its own environment."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def sample_rows():
    """Header row plus three data rows."""
    return [
        ["question", "expected"],
        ["2+2", 4],
        ["capital of France", "Paris"],
        ["largest planet", "Jupiter"],
    ]


@pytest.fixture
def fake_api(sample_rows):
    return FakeSheetsApi(sheets={"Sheet1": sample_rows}, sheet_ids={"Sheet1": 0})


@pytest.fixture
def fake_sheet(fake_api):
    return GoogleSheet(SPREADSHEET_ID, fake_api)


@pytest.fixture
def make_context():
    """Factory for NodeExecutionContext with trigger-style defaults."""

    def _make(parameters=None, input_data=None, continue_on_fail=False, credentials=None):
        params = {
            "authentication": "oAuth2",
            "documentId": {"mode": "id", "value": SPREADSHEET_ID},
            "sheetName": {"mode": "name", "value": "Sheet1"},
            "limitRows": False,
        }
        params.update(parameters or {})
        return NodeExecutionContext(
            parameters=params,
            credentials=credentials,
            input_data=input_data,
            workflow_id="wf-test-1",
            node_name="Evaluation Trigger",
            continue_on_fail=continue_on_fail,
        )

    return _make


@pytest.fixture
def make_sheet():
    """Factory for a GoogleSheet over a FakeSheetsApi; returns (sheet, api)."""

    def _make(sheets, sheet_ids=None):
        api = FakeSheetsApi(sheets=sheets, sheet_ids=sheet_ids)
        return GoogleSheet(SPREADSHEET_ID, api), api

    return _make
