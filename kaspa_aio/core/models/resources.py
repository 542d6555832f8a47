"""
Resource requirement and host snapshot models.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ResourceRequirement(BaseModel):
    """Summed resource needs of a set of profiles (cores, GB, GB)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    profiles: list[str] = Field(default_factory=list)
    min_cpu: int = 0
    min_memory: int = 0
    min_disk: int = 0
    recommended_cpu: int = 0
    recommended_memory: int = 0
    recommended_disk: int = 0

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class SystemResources(BaseModel):
    """Host capacity snapshot as reported by resource detection."""

    cpu: float = 0
    memory: float = 0   # GB
    disk: float = 0     # GB free


class SufficiencyReport(BaseModel):
    """Host capacity compared against a :class:`ResourceRequirement`."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    sufficient: bool = True
    shortfalls: list[dict] = Field(default_factory=list)
    warnings: list[dict] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
