"""
Configuration templates — predefined profile bundles with fixed settings.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kaspa_aio.core.models.profile import ResourceSpec, coerce_env_mapping


class ConfigTemplate(BaseModel):
    """A named starting point: which profiles to install and with what config.

    Attributes:
        profiles:       Profile ids the template installs.
        config:         Fixed environment key-values (always strings).
        developer_mode: Apply the catalog's developer-mode overlay on top.
        use_case:       Matched against the user's stated use case when
                        recommending templates.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    description: str = ""
    profiles: list[str] = Field(default_factory=list)
    category: str = "custom"
    use_case: str = "custom"
    estimated_setup_time: str = "Variable"
    config: dict[str, str] = Field(default_factory=dict)
    resources: ResourceSpec = Field(default_factory=ResourceSpec)
    developer_mode: bool = False
    tags: list[str] = Field(default_factory=list)

    @field_validator("config", mode="before")
    @classmethod
    def _coerce_config(cls, value: object) -> object:
        return coerce_env_mapping(value)


class DeveloperMode(BaseModel):
    """Overlay applied when a template enables developer mode."""

    model_config = ConfigDict(frozen=True)

    profile: str | None = None
    config: dict[str, str] = Field(default_factory=dict)

    @field_validator("config", mode="before")
    @classmethod
    def _coerce_config(cls, value: object) -> object:
        return coerce_env_mapping(value)

    def apply(self, config: dict[str, str]) -> dict[str, str]:
        """Return a copy of ``config`` with the overlay applied."""
        merged = dict(config)
        merged.update(self.config)
        return merged
