"""
Node pack manifest - metadata a pack hands to the host on discovery.
"""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


# Entry point group hosts scan for node packs
NODE_PACK_ENTRY_POINT = "evalflow.nodepacks"


class NodePackManifest(BaseModel):
    """
    Manifest for a node pack (collection of nodes).

    A pack exposes ``register_nodes()`` under the ``evalflow.nodepacks``
    entry point group; it returns ``(manifest, node_classes)``.
    """
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Pack name (e.g., 'evaluation')")
    version: str = Field("1.0.0", description="Pack version")
    description: str = Field("", description="Pack description")

    nodes: List[str] = Field(
        default_factory=list,
        description="Node types in this pack"
    )
    credentials: List[str] = Field(
        default_factory=list,
        description="Credential types the pack's nodes consume"
    )

    entry_point: str = Field(
        "",
        description="Module holding register_nodes (e.g., 'nodepacks.evaluation')"
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NodePackManifest":
        return cls.model_validate(data)


__all__ = [
    "NODE_PACK_ENTRY_POINT",
    "NodePackManifest",
]
