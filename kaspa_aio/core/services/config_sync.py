"""
Configuration synchronizer — merge templates and edits into a .env config.

Merge order for templates (later wins):

    current config  →  template config  →  developer-mode overlay  →  overrides

An override of ``None`` deletes the key.  Every resulting difference is
reported key by key, and a fixed rule table flags changes that need the
user's attention:

    KASPA_NETWORK changed                 high, requires confirmation
    node RPC / P2P / wRPC port changed    medium, services restart
    wallet enabled → disabled             medium, back up the wallet
"""

from __future__ import annotations

import logging
import secrets
import string
from collections.abc import Iterable, Mapping

from kaspa_aio.core.models.change import ConfigChange, ConfigUpdate
from kaspa_aio.core.models.validation import HIGH_IMPACT_CHANGE, Issue
from kaspa_aio.core.services.catalog import ProfileCatalog
from kaspa_aio.core.services.resolver import DependencyResolver

logger = logging.getLogger(__name__)

NETWORK_KEY = "KASPA_NETWORK"
NODE_PORT_KEYS = ("KASPA_NODE_RPC_PORT", "KASPA_NODE_P2P_PORT", "KASPA_NODE_WRPC_PORT")
WALLET_KEYS = ("WALLET_ENABLED", "KASPA_WALLET_ENABLED")

# Keys whose default is generated rather than fixed
_GENERATED_KEYS = ("POSTGRES_PASSWORD",)

_TRUTHY = {"true", "1", "yes", "on"}


def _is_truthy(value: str | None) -> bool:
    return value is not None and value.strip().lower() in _TRUTHY


def generate_password(length: int = 16) -> str:
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def diff(old: Mapping[str, str], new: Mapping[str, str]) -> list[ConfigChange]:
    """Key-level differences between two configurations, sorted by key."""
    changes: list[ConfigChange] = []
    for key in sorted(set(old) | set(new)):
        if key not in old:
            changes.append(ConfigChange(key=key, type="added", new_value=new[key]))
        elif key not in new:
            changes.append(ConfigChange(key=key, type="removed", old_value=old[key]))
        elif old[key] != new[key]:
            changes.append(ConfigChange(
                key=key, type="modified", old_value=old[key], new_value=new[key],
            ))
    return changes


class ConfigurationSynchronizer:
    """Produce merged configurations with their diff and impact warnings."""

    def __init__(self, catalog: ProfileCatalog):
        self.catalog = catalog

    # ── Templates ───────────────────────────────────────────────

    def apply_template(
        self,
        template_id: str,
        current_config: Mapping[str, str] | None = None,
        overrides: Mapping[str, str | None] | None = None,
    ) -> ConfigUpdate:
        """Merge a template onto the current configuration.

        Raises:
            UnknownTemplateError: If the template is not in the catalog.
        """
        template = self.catalog.template(template_id)
        current = dict(current_config or {})

        merged = {**current, **template.config}
        profiles = list(template.profiles)
        if template.developer_mode:
            merged = self.catalog.developer_mode.apply(merged)
            dev_profile = self.catalog.developer_mode.profile
            if dev_profile and dev_profile not in profiles:
                profiles.append(dev_profile)

        for key, value in (overrides or {}).items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = str(value)

        update = self._build_update(current, merged)
        update.template_id = template_id
        update.profiles = profiles
        logger.info(
            "Applied template %s: %d change(s), confirmation=%s",
            template_id, len(update.changes), update.requires_confirmation,
        )
        return update

    def validate_template(self, template_id: str) -> dict:
        """Check a template's profile set for conflicts and missing prerequisites."""
        template = self.catalog.template(template_id)
        resolver = DependencyResolver(self.catalog)
        resolution = resolver.resolve(template.profiles)

        errors = [e.message for e in resolution.errors]
        present = set(resolution.resolved)
        for pid in resolution.resolved:
            profile = self.catalog.get(pid)
            if profile.prerequisites and not present & set(profile.prerequisites):
                errors.append(
                    f"{profile.name} requires one of: {', '.join(profile.prerequisites)}"
                )

        warnings = []
        if not any(self.catalog.get(pid).provides_node for pid in resolution.resolved):
            warnings.append("Template runs no local node; services will use public endpoints")

        return {
            "template": template_id,
            "valid": not errors,
            "errors": errors,
            "warnings": warnings,
            "profiles": resolution.profile_order,
        }

    # ── Free-form edits ─────────────────────────────────────────

    def compute_changes(
        self,
        current_config: Mapping[str, str],
        proposed_config: Mapping[str, str],
    ) -> ConfigUpdate:
        """Diff and classify a user edit of the configuration."""
        return self._build_update(dict(current_config), dict(proposed_config))

    def default_config(
        self,
        profile_ids: Iterable[str],
        current_config: Mapping[str, str] | None = None,
    ) -> dict[str, str]:
        """Fill in profile defaults for keys the configuration lacks.

        Existing values are never replaced.  Passwords are generated.
        """
        config = dict(current_config or {})
        for profile in self.catalog.require(self.catalog.ordered(profile_ids)):
            for key, value in profile.defaults.items():
                config.setdefault(key, value)
            for key in _GENERATED_KEYS:
                if key in profile.config_keys and not config.get(key):
                    config[key] = generate_password()
        return config

    # ── Impact rules ────────────────────────────────────────────

    def high_impact_warnings(self, changes: Iterable[ConfigChange]) -> list[Issue]:
        """Evaluate every rule against every change; rules fire independently."""
        warnings: list[Issue] = []
        for change in changes:
            if change.type == "added":
                continue

            if change.key == NETWORK_KEY:
                warnings.append(Issue(
                    type=HIGH_IMPACT_CHANGE,
                    severity="high",
                    message=(
                        f"Changing the network from {change.old_value} to "
                        f"{change.new_value or 'the default'} starts a fresh chain; "
                        "existing blockchain data cannot be migrated"
                    ),
                    key=change.key,
                    oldValue=change.old_value,
                    newValue=change.new_value,
                    requiresConfirmation=True,
                    affectedServices=self.catalog.services_for_config_key(change.key),
                ))

            if change.key in NODE_PORT_KEYS:
                services = self.catalog.services_for_config_key(change.key)
                warnings.append(Issue(
                    type=HIGH_IMPACT_CHANGE,
                    severity="medium",
                    message=(
                        f"{change.key} changed; restart required for: "
                        + (", ".join(services) or "node services")
                    ),
                    key=change.key,
                    oldValue=change.old_value,
                    newValue=change.new_value,
                    requiresConfirmation=False,
                    affectedServices=services,
                ))

            if (
                change.key in WALLET_KEYS
                and _is_truthy(change.old_value)
                and not _is_truthy(change.new_value)
            ):
                warnings.append(Issue(
                    type=HIGH_IMPACT_CHANGE,
                    severity="medium",
                    message="Disabling the wallet. Back up wallet files and keys before applying",
                    key=change.key,
                    oldValue=change.old_value,
                    newValue=change.new_value,
                    requiresConfirmation=False,
                    affectedServices=["wallet"],
                ))
        return warnings

    def _build_update(self, current: dict[str, str], merged: dict[str, str]) -> ConfigUpdate:
        changes = diff(current, merged)
        warnings = self.high_impact_warnings(changes)

        affected: list[str] = []
        for change in changes:
            for name in self.catalog.services_for_config_key(change.key):
                if name not in affected:
                    affected.append(name)

        return ConfigUpdate(
            configuration=merged,
            changes=changes,
            warnings=warnings,
            requires_confirmation=any(
                (w.model_extra or {}).get("requiresConfirmation") for w in warnings
            ),
            affected_services=affected,
        )
