"""
Evaluation Node Pack Manifest - Registration function for entry-points.
"""

from node_sdk.manifest import NodePackManifest

from ..google_sheets.api import OAUTH2_CREDENTIAL, SERVICE_ACCOUNT_CREDENTIAL
from .trigger import EvaluationTriggerNode


MANIFEST = NodePackManifest(
    name="evaluation",
    version="1.0.0",
    description="Evaluation nodes backed by Google Sheets datasets",
    nodes=[EvaluationTriggerNode.type],
    credentials=[SERVICE_ACCOUNT_CREDENTIAL, OAUTH2_CREDENTIAL],
    entry_point="nodepacks.evaluation",
)


# Node classes by type
NODE_CLASSES = {
    EvaluationTriggerNode.type: EvaluationTriggerNode,
}


def register_nodes():
    """
    Entry point function for node pack discovery.

    Returns tuple of (manifest, node_classes).
    """
    return MANIFEST, NODE_CLASSES


__all__ = [
    "MANIFEST",
    "NODE_CLASSES",
    "register_nodes",
]
