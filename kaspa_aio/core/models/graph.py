"""
Dependency graph — derived view of a profile selection for visualization.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

EdgeType = Literal["dependency", "prerequisite", "conflict"]


class GraphNode(BaseModel):
    id: str
    name: str = ""
    category: str = ""
    services: list[str] = Field(default_factory=list)
    ports: list[int] = Field(default_factory=list)
    selected: bool = False   # explicitly requested by the user
    required: bool = False   # pulled in as a dependency of a selected profile


class GraphEdge(BaseModel):
    """Directed edge; for ``conflict`` edges direction is only the declaring side."""

    model_config = ConfigDict(populate_by_name=True)

    source: str = Field(alias="from")
    target: str = Field(alias="to")
    type: EdgeType


class DependencyGraph(BaseModel):
    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)
    metadata: dict[str, int] = Field(default_factory=dict)

    def edges_of(self, edge_type: str) -> list[GraphEdge]:
        return [e for e in self.edges if e.type == edge_type]

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
