"""
InstallationState — what is currently deployed.

Serialized to .kaspa-aio/installation-state.json.  The engine only
reads it; the installer mutates it after a successful install, profile
addition, removal or reconfiguration.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from kaspa_aio.core.models.profile import coerce_env_mapping

HistoryAction = Literal["install", "add-profile", "remove-profile", "configure"]


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class HistoryEntry(BaseModel):
    """One lifecycle event."""

    timestamp: str = Field(default_factory=_now_iso)
    action: HistoryAction
    profile_id: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class InstallationState(BaseModel):
    """Root state model — serialized to installation-state.json."""

    # ── Schema ───────────────────────────────────────────────────
    version: str = "1"

    # ── Deployment ───────────────────────────────────────────────
    installed_profiles: list[str] = Field(default_factory=list)
    configuration: dict[str, str] = Field(default_factory=dict)

    # ── Timestamps ───────────────────────────────────────────────
    installed_at: str | None = None
    last_modified: str = Field(default_factory=_now_iso)

    # ── History ──────────────────────────────────────────────────
    history: list[HistoryEntry] = Field(default_factory=list)

    @field_validator("configuration", mode="before")
    @classmethod
    def _coerce_configuration(cls, value: object) -> object:
        return coerce_env_mapping(value)

    @property
    def is_installed(self) -> bool:
        return self.installed_at is not None

    def touch(self) -> None:
        """Update the last_modified timestamp."""
        self.last_modified = _now_iso()

    def record(
        self,
        action: HistoryAction,
        profile_id: str | None = None,
        **details: Any,
    ) -> HistoryEntry:
        """Append a history entry and apply its effect on the profile list."""
        entry = HistoryEntry(action=action, profile_id=profile_id, details=details)
        self.history.append(entry)

        if action == "install" and self.installed_at is None:
            self.installed_at = entry.timestamp
        if action == "add-profile" and profile_id and profile_id not in self.installed_profiles:
            self.installed_profiles.append(profile_id)
        elif action == "remove-profile" and profile_id in self.installed_profiles:
            self.installed_profiles.remove(profile_id)

        self.touch()
        return entry
