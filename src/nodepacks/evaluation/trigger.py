"""
Evaluation Trigger - seed a workflow run with one item per sheet row.

The host runs the rest of the workflow once for each emitted item.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Union

from node_sdk.basenode import BaseNode, NodeExecutionData, NodeOperationError
from node_sdk.config import get_settings
from node_sdk.observability import node_log_extra

from ..google_sheets.api import GoogleSheetsApi, build_token_provider
from ..google_sheets.locator import get_sheet_reference, get_spreadsheet_id, split_locator
from ..google_sheets.sheet import GoogleSheet
from .description import LATEST_VERSION, VERSION_FIELDS, build_properties, supports
from .read import ReadFilter, RowLimitPolicy, read_sheet


logger = logging.getLogger(__name__)

SheetFactory = Callable[[str], GoogleSheet]


class EvaluationTriggerNode(BaseNode):
    """
    Evaluation Trigger - pull a test dataset from a Google Sheet.

    Versions:
    - 1: limitRows / maxRows
    - 4.6: adds filtersUI and options.combineFilters

    On failure with continue-on-fail set, a single item carrying the
    error and the first input item's json is returned instead; rows read
    before the failure are not included.
    """

    type = "n8n-nodes-base.evaluationTrigger"
    version = LATEST_VERSION

    description = {
        "displayName": "Evaluation Trigger",
        "name": "evaluationTrigger",
        "icon": "fa:check-double",
        "group": ["trigger"],
        "version": sorted(VERSION_FIELDS),
        "description": "Runs an evaluation",
        "eventTriggerDescription": "",
        "maxNodes": 1,
        "defaults": {"name": "Evaluation Trigger"},
        "inputs": [],
        "outputs": ["main"],
    }

    properties = build_properties(LATEST_VERSION)

    def __init__(
        self,
        type_version: Optional[Union[int, float]] = None,
        sheet_factory: Optional[SheetFactory] = None,
    ) -> None:
        super().__init__(type_version)
        self.properties = build_properties(self.type_version)
        self._sheet_factory = sheet_factory or self._create_sheet

    def _create_sheet(self, spreadsheet_id: str) -> GoogleSheet:
        authentication = self.get_node_parameter("authentication", 0, "oAuth2")
        token_provider = build_token_provider(self.context, authentication)
        return GoogleSheet(spreadsheet_id, GoogleSheetsApi(token_provider))

    def execute(self) -> List[List[NodeExecutionData]]:
        """Read the configured sheet and emit one item per data row."""
        extra = node_log_extra(self._context, node_type=self.type)
        operation_result: List[NodeExecutionData] = []

        try:
            mode, value = split_locator(self.get_node_parameter("documentId", 0), "id")
            spreadsheet_id = get_spreadsheet_id(mode, value)

            sheet_mode, sheet_value = split_locator(self.get_node_parameter("sheetName", 0), "name")
            sheet_ref = get_sheet_reference(sheet_mode, sheet_value)

            sheet = self._sheet_factory(spreadsheet_id)
            sheet_info = sheet.spreadsheet_get_sheet(sheet_ref)

            policy = self._row_limit_policy()
            filters = self._read_filters()
            combine = self.get_node_parameter("options.combineFilters", 0, "AND")

            operation_result = read_sheet(sheet, sheet_info.title, policy, filters, combine)
            logger.info(
                "Evaluation dataset loaded: %d rows from '%s'",
                len(operation_result), sheet_info.title, extra=extra,
            )
        except Exception as e:
            if self.continue_on_fail:
                logger.warning("Evaluation Trigger failed, continuing: %s", e, extra=extra)
                return [[{"json": self._first_input_json(), "error": e}]]
            if isinstance(e, NodeOperationError):
                if e.node is None:
                    e.node = self
                raise
            raise NodeOperationError(str(e), node=self) from e

        return [operation_result]

    def _row_limit_policy(self) -> RowLimitPolicy:
        return RowLimitPolicy.from_parameters(
            self.get_node_parameter("limitRows", 0, False),
            self.get_node_parameter("maxRows", 0, None),
            default=get_settings().default_max_rows,
        )

    def _read_filters(self) -> List[ReadFilter]:
        if not supports(self.type_version, "filtersUI"):
            return []
        values = self.get_node_parameter("filtersUI.values", 0, []) or []
        if isinstance(values, dict):
            values = [values]
        return [
            ReadFilter(
                lookup_column=str(v.get("lookupColumn", "")).strip(),
                lookup_value="" if v.get("lookupValue") is None else str(v.get("lookupValue")),
            )
            for v in values
            if str(v.get("lookupColumn", "")).strip()
        ]

    def _first_input_json(self) -> Dict[str, Any]:
        items = self.get_input_data()
        if not items:
            return {}
        return dict(items[0].get("json") or {})
