"""
BaseNode - Abstract base class for Python node implementations.

Nodes receive everything they need through an explicit
NodeExecutionContext: parameters, credentials, input items and the
host's continue-on-fail policy. Nothing is injected into the node
implicitly.

SYNC-CELERY SAFE: execute() is synchronous.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Literal, Optional, TypedDict, Union

from pydantic import BaseModel, ConfigDict, Field


logger = logging.getLogger(__name__)


# ==============================================================================
# NodeParameterType
# ==============================================================================

NodeParameterType = Literal[
    "string", "number", "boolean", "options", "multiOptions",
    "color", "json", "collection", "fixedCollection", "dateTime",
    "resourceLocator", "notice", "hidden",
]


# ==============================================================================
# NodeParameter - Pydantic model for defining parameters
# ==============================================================================

class NodeParameter(BaseModel):
    """
    A single parameter in the node's properties.

    Dumped with ``by_alias=True`` it produces the camelCase dict the
    host UI expects.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = Field(..., description="Parameter key (internal name)")
    display_name: str = Field(..., alias="displayName", description="Human-readable label")
    type: NodeParameterType = Field(..., description="Parameter type")
    default: Any = Field(None, description="Default value")
    required: bool = Field(False, description="Is parameter required?")
    description: Optional[str] = Field(None, description="Help text")
    placeholder: Optional[str] = Field(None, description="Input placeholder")
    options: Optional[List[Dict[str, Any]]] = Field(
        None,
        description="Options for options/multiOptions/collection types"
    )
    modes: Optional[List[Dict[str, Any]]] = Field(
        None,
        description="Selection modes for resourceLocator type"
    )
    type_options: Optional[Dict[str, Any]] = Field(None, alias="typeOptions")
    display_options: Optional[Dict[str, Any]] = Field(
        None,
        alias="displayOptions",
        description="Conditional visibility"
    )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class NodeCredential(BaseModel):
    """Credential requirement definition."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = Field(..., description="Credential type name")
    required: bool = Field(True, description="Is credential required?")
    display_name: Optional[str] = Field(None, alias="displayName")
    display_options: Optional[Dict[str, Any]] = Field(None, alias="displayOptions")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# ==============================================================================
# NodeExecutionData - Output data format
# ==============================================================================

class NodeExecutionData(TypedDict, total=False):
    """
    Single item of execution output data.

    Format: {"json": {...}, "pairedItem": {"item": 0}, "error": exc}
    """
    json: Dict[str, Any]
    binary: Optional[Dict[str, Any]]
    pairedItem: Optional[Dict[str, int]]
    error: Optional[Exception]


# ==============================================================================
# NodeExecutionContext - Runtime context for node execution
# ==============================================================================

class NodeExecutionContext:
    """
    Runtime context provided to nodes during execution.

    Provides access to:
    - Parameters (dotted paths such as ``options.cellFormat`` are supported)
    - Credentials, including write-back of refreshed tokens
    - Input data
    - The continue-on-fail policy of the node
    """

    def __init__(
        self,
        parameters: Dict[str, Any],
        credentials: Optional[Dict[str, Dict[str, Any]]] = None,
        input_data: Optional[List[Dict[str, Any]]] = None,
        workflow_id: Optional[str] = None,
        node_name: Optional[str] = None,
        continue_on_fail: bool = False,
    ) -> None:
        self._parameters = parameters
        self._credentials = credentials or {}
        self._input_data = input_data or []
        self.workflow_id = workflow_id
        self.node_name = node_name
        self.continue_on_fail = continue_on_fail

    def get_node_parameter(
        self,
        name: str,
        item_index: int = 0,
        default: Any = None,
    ) -> Any:
        """Get parameter value, walking dotted paths into nested dicts."""
        value: Any = self._parameters
        for part in name.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    def get_credentials(self, name: str) -> Dict[str, Any]:
        """Get credentials by type name."""
        if name not in self._credentials:
            raise NodeOperationError(f"Credentials '{name}' not found")
        return self._credentials[name]

    def update_credentials(self, name: str, data: Dict[str, Any]) -> None:
        """Store refreshed credential data (e.g. a new OAuth2 access token)."""
        self._credentials[name] = data

    def get_input_data(self) -> List[Dict[str, Any]]:
        """Get input items."""
        return self._input_data


# ==============================================================================
# BaseNode - Abstract base class
# ==============================================================================

class BaseNode(ABC):
    """
    Abstract base class for all Python node implementations.

    Nodes define:
    - type: Unique identifier (e.g., "n8n-nodes-base.evaluationTrigger")
    - version: Latest node version; older versions are selected with
      ``type_version``
    - description: Node metadata dict
    - properties: Parameters and credentials

    And implement execute() which returns one list of items per output.

    SYNC-CELERY SAFE: All execution is synchronous.
    """

    # Required class attributes (override in subclasses)
    type: str = "base"
    version: Union[int, float] = 1

    description: Dict[str, Any] = {
        "displayName": "Base Node",
        "name": "base",
        "description": "",
        "group": [],
        "version": 1,
        "inputs": ["main"],
        "outputs": ["main"],
    }

    properties: Dict[str, Any] = {
        "parameters": [],
        "credentials": [],
    }

    def __init__(self, type_version: Optional[Union[int, float]] = None) -> None:
        self.type_version = type_version if type_version is not None else self.version
        self.logger = logging.getLogger(f"node.{self.type}")
        self._context: Optional[NodeExecutionContext] = None

    @abstractmethod
    def execute(self) -> List[List[NodeExecutionData]]:
        """
        Execute node operation.

        Returns:
            List[List[NodeExecutionData]]: Outer list is the output
            branches (usually 1), inner list the items in that branch.

        Raises:
            NodeOperationError: On operation failure
            NodeApiError: On API call failure
        """
        raise NotImplementedError

    # ==== Context Management ====

    def set_context(self, context: NodeExecutionContext) -> None:
        """Set the execution context."""
        self._context = context

    @property
    def context(self) -> NodeExecutionContext:
        if self._context is None:
            raise NodeOperationError("No context set", node=self)
        return self._context

    @property
    def continue_on_fail(self) -> bool:
        return self._context is not None and self._context.continue_on_fail

    # ==== Helper methods for subclasses ====

    def get_node_parameter(
        self,
        name: str,
        item_index: int = 0,
        default: Any = None,
    ) -> Any:
        if self._context is None:
            return default
        return self._context.get_node_parameter(name, item_index, default)

    def get_credentials(self, name: str) -> Dict[str, Any]:
        return self.context.get_credentials(name)

    def update_credentials(self, name: str, data: Dict[str, Any]) -> None:
        self.context.update_credentials(name, data)

    def get_input_data(self) -> List[Dict[str, Any]]:
        if self._context is None:
            return []
        return self._context.get_input_data()

    @classmethod
    def get_definition(cls) -> Dict[str, Any]:
        """Get full node definition for registration."""
        return {
            "type": cls.type,
            "version": cls.version,
            "description": cls.description,
            "properties": cls.properties,
        }


# ==============================================================================
# Errors
# ==============================================================================

class NodeOperationError(Exception):
    """Error during node operation."""

    def __init__(
        self,
        message: str,
        node: Optional[BaseNode] = None,
        item_index: Optional[int] = None,
        description: Optional[str] = None,
    ) -> None:
        self.message = message
        self.node = node
        self.item_index = item_index
        self.description = description
        super().__init__(message)


class NodeApiError(NodeOperationError):
    """Error from external API call."""

    def __init__(
        self,
        message: str,
        node: Optional[BaseNode] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        super().__init__(message, node)
        self.status_code = status_code
        self.response_body = response_body


__all__ = [
    "BaseNode",
    "NodeExecutionContext",
    "NodeExecutionData",
    "NodeParameter",
    "NodeCredential",
    "NodeParameterType",
    "NodeOperationError",
    "NodeApiError",
]
