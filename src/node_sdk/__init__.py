"""
Node SDK - Minimal Python node execution semantics.

This package provides the runtime pieces a node needs:
- NodeExecutionContext: explicit parameters, credentials, input and
  failure policy for one execution
- BaseNode: Abstract base class for node implementations
- Settings / logging helpers shared by node packs

All nodes execute synchronously (sync-Celery safe).
"""

from .basenode import (
    BaseNode,
    NodeExecutionContext,
    NodeExecutionData,
    NodeParameter,
    NodeCredential,
    NodeParameterType,
    NodeOperationError,
    NodeApiError,
)
from .config import Settings, get_settings, reset_settings
from .manifest import NODE_PACK_ENTRY_POINT, NodePackManifest
from .observability import node_log_extra, setup_logging

__all__ = [
    "NodeExecutionData",
    # Context
    "NodeExecutionContext",
    # Base class
    "BaseNode",
    "NodeParameter",
    "NodeCredential",
    "NodeParameterType",
    # Errors
    "NodeOperationError",
    "NodeApiError",
    # Packs
    "NodePackManifest",
    "NODE_PACK_ENTRY_POINT",
    # Settings / logging
    "Settings",
    "get_settings",
    "reset_settings",
    "setup_logging",
    "node_log_extra",
]
