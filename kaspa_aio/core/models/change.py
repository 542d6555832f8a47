"""
Configuration change models produced by the configuration synchronizer.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from kaspa_aio.core.models.validation import Issue, ResultModel

ChangeType = Literal["added", "modified", "removed"]


class ConfigChange(ResultModel):
    """One key-level difference between two configurations."""

    key: str
    type: ChangeType
    old_value: str | None = None
    new_value: str | None = None


class ConfigUpdate(ResultModel):
    """Merged configuration plus the diff and impact warnings that led to it."""

    template_id: str | None = None
    profiles: list[str] = Field(default_factory=list)
    configuration: dict[str, str] = Field(default_factory=dict)
    changes: list[ConfigChange] = Field(default_factory=list)
    warnings: list[Issue] = Field(default_factory=list)
    requires_confirmation: bool = False
    affected_services: list[str] = Field(default_factory=list)

    def changes_of(self, change_type: str) -> list[ConfigChange]:
        return [c for c in self.changes if c.type == change_type]
