"""
Domain models — Pydantic types for the profile engine.

All models are re-exported here for convenient access:

    from kaspa_aio.core.models import Profile, ConfigTemplate, InstallationState
"""

from kaspa_aio.core.models.change import ConfigChange, ConfigUpdate
from kaspa_aio.core.models.dependency import ExternalDependency
from kaspa_aio.core.models.graph import DependencyGraph, GraphEdge, GraphNode
from kaspa_aio.core.models.profile import DataVolume, Profile, ResourceSpec, ServiceRef
from kaspa_aio.core.models.resolution import Resolution
from kaspa_aio.core.models.resources import (
    ResourceRequirement,
    SufficiencyReport,
    SystemResources,
)
from kaspa_aio.core.models.state import HistoryEntry, InstallationState
from kaspa_aio.core.models.template import ConfigTemplate, DeveloperMode
from kaspa_aio.core.models.validation import (
    AdditionResult,
    Issue,
    Recommendation,
    RemovalResult,
    SelectionResult,
)

__all__ = [
    # validation.py
    "AdditionResult",
    # change.py
    "ConfigChange",
    # template.py
    "ConfigTemplate",
    "ConfigUpdate",
    # profile.py
    "DataVolume",
    # graph.py
    "DependencyGraph",
    "DeveloperMode",
    # dependency.py
    "ExternalDependency",
    "GraphEdge",
    "GraphNode",
    # state.py
    "HistoryEntry",
    "InstallationState",
    "Issue",
    "Profile",
    "Recommendation",
    "RemovalResult",
    # resolution.py
    "Resolution",
    # resources.py
    "ResourceRequirement",
    "ResourceSpec",
    "SelectionResult",
    "ServiceRef",
    "SufficiencyReport",
    "SystemResources",
]
