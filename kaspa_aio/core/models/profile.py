"""
Profile model — the unit of deployability.

A profile is a named bundle of Compose services plus its declared
relations to other profiles.  Profiles are loaded from the catalog
(catalog.yml) and are immutable for the lifetime of the process.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ProfileCategory = Literal[
    "core",
    "applications",
    "indexers",
    "archive",
    "mining",
    "development",
]


def _stringify(value: object) -> str:
    """Coerce a YAML scalar into an environment-variable string."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def coerce_env_mapping(value: object) -> object:
    """Turn a mapping of YAML scalars into ``dict[str, str]``.

    Non-mappings pass through untouched so Pydantic reports the type error.
    """
    if isinstance(value, dict):
        return {str(k): _stringify(v) for k, v in value.items()}
    return value


class ServiceRef(BaseModel):
    """A Compose service contributed by a profile."""

    model_config = ConfigDict(frozen=True)

    name: str
    ports: frozenset[int] = Field(default_factory=frozenset)
    required: bool = True
    description: str = ""


class ResourceSpec(BaseModel):
    """Minimum and recommended host resources (cores, GB, GB)."""

    model_config = ConfigDict(frozen=True)

    min_cpu: int = 0
    min_memory: int = 0
    min_disk: int = 0
    recommended_cpu: int = 0
    recommended_memory: int = 0
    recommended_disk: int = 0


class DataVolume(BaseModel):
    """Persistent data owned by a profile."""

    model_config = ConfigDict(frozen=True)

    type: str
    name: str
    description: str = ""
    estimated_size: str = "Unknown"
    critical: bool = False


class Profile(BaseModel):
    """A user-selectable deployment profile.

    Relation semantics:
        dependencies   every listed profile must be active too (auto-included)
        prerequisites  at least one listed profile must be present
        conflicts      none of the listed profiles may coexist
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    description: str = ""
    category: ProfileCategory = "core"

    services: list[ServiceRef] = Field(default_factory=list)

    dependencies: list[str] = Field(default_factory=list)
    prerequisites: list[str] = Field(default_factory=list)
    conflicts: list[str] = Field(default_factory=list)

    resources: ResourceSpec = Field(default_factory=ResourceSpec)

    provides_node: bool = False
    config_keys: list[str] = Field(default_factory=list)
    defaults: dict[str, str] = Field(default_factory=dict)
    data: list[DataVolume] = Field(default_factory=list)

    @field_validator("defaults", mode="before")
    @classmethod
    def _coerce_defaults(cls, value: object) -> object:
        return coerce_env_mapping(value)

    @model_validator(mode="after")
    def _check_relations(self) -> Profile:
        for field in ("dependencies", "prerequisites", "conflicts"):
            ids = getattr(self, field)
            if self.id in ids:
                raise ValueError(f"profile '{self.id}' lists itself in {field}")
            if len(set(ids)) != len(ids):
                raise ValueError(f"profile '{self.id}' has duplicate {field}")

        overlap = set(self.dependencies) & set(self.conflicts)
        if overlap:
            raise ValueError(
                f"profile '{self.id}' both depends on and conflicts with: "
                + ", ".join(sorted(overlap))
            )
        return self

    # ── Convenience ─────────────────────────────────────────────

    @property
    def service_names(self) -> list[str]:
        """Service names in declaration order."""
        return [s.name for s in self.services]

    @property
    def ports(self) -> list[int]:
        """All ports claimed by this profile's services, sorted."""
        return sorted({p for s in self.services for p in s.ports})

    def conflicts_with(self, other: Profile) -> bool:
        """True if either profile declares a conflict with the other."""
        return other.id in self.conflicts or self.id in other.conflicts

    def summary(self) -> dict:
        """Short JSON-friendly description used in validation payloads."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "services": self.service_names,
        }
