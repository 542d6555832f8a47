"""
Validation result models.

Domain rule violations never raise: they are collected as :class:`Issue`
records and returned inside one of the result models below.  Results
serialize with camelCase keys (``canAdd``, ``dependentProfiles``...)
because that is the shape the wizard UI renders.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from kaspa_aio.core.models.resources import ResourceRequirement

Severity = Literal["critical", "high", "medium", "low"]
Priority = Literal["critical", "high", "medium", "low"]

# Sort key for recommendations and warnings.
PRIORITY_ORDER: dict[str, int] = {"critical": 0, "high": 1, "medium": 2, "low": 3}

# ── Issue types ─────────────────────────────────────────────────

CIRCULAR_DEPENDENCY = "CircularDependencyError"
CONFLICT = "ConflictError"
MISSING_PREREQUISITE = "MissingPrerequisiteError"
PORT_COLLISION = "PortCollisionError"
DEPENDENT_PROFILE = "DependentProfileError"
PREREQUISITE_BREAK = "PrerequisiteBreakError"
LAST_NODE_REMOVAL = "LastNodeRemovalError"
ALREADY_INSTALLED = "AlreadyInstalledError"
NOT_INSTALLED = "NotInstalledError"

RESOURCE_SHORTFALL = "ResourceShortfallWarning"
SHARED_SERVICE = "SharedServiceWarning"
HIGH_IMPACT_CHANGE = "HighImpactChangeWarning"
DATA_LOSS = "DataLossWarning"
EXTERNAL_UNREACHABLE = "ExternalDependencyUnreachable"


class ResultModel(BaseModel):
    """Base for every model returned to the CLI/web layer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Issue(BaseModel):
    """A single error or warning.

    ``type`` is one of the issue type constants above.  Extra keyword
    arguments are kept as context (``profiles``, ``port``, ``cycle``...)
    and serialized next to the core fields.
    """

    model_config = ConfigDict(extra="allow")

    type: str
    message: str
    severity: Severity = "high"

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class Recommendation(ResultModel):
    """An actionable next step shown as a suggestion card."""

    priority: Priority
    category: str
    title: str
    message: str
    actions: list[str] = Field(default_factory=list)


class _ValidationBase(ResultModel):
    valid: bool = True
    errors: list[Issue] = Field(default_factory=list)
    warnings: list[Issue] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)

    def error_types(self) -> list[str]:
        return [e.type for e in self.errors]

    def warning_types(self) -> list[str]:
        return [w.type for w in self.warnings]


class SelectionResult(_ValidationBase):
    """Outcome of validating a fresh (not yet installed) selection."""

    resolved_profiles: list[str] = Field(default_factory=list)
    profile_order: list[str] = Field(default_factory=list)
    startup_order: list[str] = Field(default_factory=list)
    requirements: ResourceRequirement = Field(default_factory=ResourceRequirement)
    dependency_issues: list[dict[str, Any]] = Field(default_factory=list)
    has_dependency_issues: bool = False


class AdditionResult(_ValidationBase):
    """Outcome of adding one profile to an installation."""

    profile_id: str
    can_add: bool = True
    profile: dict[str, Any] = Field(default_factory=dict)
    integration: dict[str, Any] = Field(default_factory=dict)
    startup_order: list[str] = Field(default_factory=list)


class RemovalResult(_ValidationBase):
    """Outcome of removing one profile from an installation."""

    profile_id: str
    can_remove: bool = True
    remaining_profiles: list[str] = Field(default_factory=list)
    dependent_profiles: list[str] = Field(default_factory=list)
    prerequisite_issues: list[dict[str, Any]] = Field(default_factory=list)
    service_impacts: list[dict[str, Any]] = Field(default_factory=list)
    shared_services: list[str] = Field(default_factory=list)
    services_to_stop: list[str] = Field(default_factory=list)
    data_impact: list[dict[str, Any]] = Field(default_factory=list)
