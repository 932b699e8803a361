"""
Evaluation Node Pack - Google Sheets backed evaluation datasets.

This pack provides:
- EvaluationTrigger: Emit one item per sheet row
- trigger_util.add / trigger_util.update: Write results back to the sheet

All nodes are SYNC-CELERY SAFE.
"""

from . import trigger_util
from .manifest import MANIFEST, NODE_CLASSES, register_nodes
from .trigger import EvaluationTriggerNode

__all__ = [
    "EvaluationTriggerNode",
    "trigger_util",
    "MANIFEST",
    "NODE_CLASSES",
    "register_nodes",
]
