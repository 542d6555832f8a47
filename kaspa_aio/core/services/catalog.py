"""
Profile catalog — the immutable registry every engine component reads.

A catalog is built once (normally by ``load_catalog``) and handed to the
resolver, aggregator, validator and synchronizer constructors.  There is
no module-level instance: tests build small catalogs of their own.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from kaspa_aio.core.config.loader import ConfigError
from kaspa_aio.core.models.dependency import ExternalDependency
from kaspa_aio.core.models.profile import Profile
from kaspa_aio.core.models.template import ConfigTemplate, DeveloperMode

logger = logging.getLogger(__name__)


class UnknownProfileError(KeyError):
    """A profile id that is not in the catalog was passed in."""

    def __init__(self, profile_id: str):
        super().__init__(profile_id)
        self.profile_id = profile_id

    def __str__(self) -> str:
        return f"Unknown profile: {self.profile_id}"


class UnknownTemplateError(KeyError):
    """A template id that is not in the catalog was passed in."""

    def __init__(self, template_id: str):
        super().__init__(template_id)
        self.template_id = template_id

    def __str__(self) -> str:
        return f"Unknown template: {self.template_id}"


class ProfileCatalog:
    """Read-only view over profiles, templates and external dependencies.

    Declaration order of profiles is preserved and used as the tie-break
    order wherever the engine needs a deterministic sequence.
    """

    def __init__(
        self,
        profiles: Iterable[Profile],
        templates: Iterable[ConfigTemplate] = (),
        external_dependencies: Mapping[str, Iterable[ExternalDependency]] | None = None,
        developer_mode: DeveloperMode | None = None,
        startup_checks: Mapping[str, Iterable[str]] | None = None,
        version: int = 1,
    ):
        self.version = version
        self._profiles: dict[str, Profile] = {}
        for profile in profiles:
            if profile.id in self._profiles:
                raise ConfigError(f"Duplicate profile id in catalog: {profile.id}")
            self._profiles[profile.id] = profile
        self._order = {pid: i for i, pid in enumerate(self._profiles)}

        self._templates: dict[str, ConfigTemplate] = {}
        for template in templates:
            if template.id in self._templates:
                raise ConfigError(f"Duplicate template id in catalog: {template.id}")
            self._templates[template.id] = template

        self._external = {
            service: tuple(deps) for service, deps in (external_dependencies or {}).items()
        }
        self._startup_checks = {
            pid: tuple(services) for pid, services in (startup_checks or {}).items()
        }
        self.developer_mode = developer_mode or DeveloperMode()

        self._check_references()
        logger.debug(
            "Catalog ready: %d profiles, %d templates", len(self._profiles), len(self._templates)
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProfileCatalog:
        """Build a catalog from the parsed catalog.yml structure.

        Raises:
            ConfigError: If any entry fails model validation.
        """
        try:
            profiles = [Profile.model_validate(p) for p in data.get("profiles") or []]
            templates = [ConfigTemplate.model_validate(t) for t in data.get("templates") or []]
            external = {
                service: [ExternalDependency.model_validate(d) for d in deps or []]
                for service, deps in (data.get("external_dependencies") or {}).items()
            }
            developer_mode = DeveloperMode.model_validate(data.get("developer_mode") or {})
        except ConfigError:
            raise
        except Exception as e:
            raise ConfigError(f"Invalid catalog: {e}") from e

        return cls(
            profiles,
            templates=templates,
            external_dependencies=external,
            developer_mode=developer_mode,
            startup_checks=data.get("startup_checks") or {},
            version=data.get("version", 1),
        )

    def _check_references(self) -> None:
        for profile in self._profiles.values():
            for field in ("dependencies", "prerequisites", "conflicts"):
                for ref in getattr(profile, field):
                    if ref not in self._profiles:
                        raise ConfigError(
                            f"Profile '{profile.id}' {field} references unknown profile '{ref}'"
                        )
        for template in self._templates.values():
            for ref in template.profiles:
                if ref not in self._profiles:
                    raise ConfigError(
                        f"Template '{template.id}' references unknown profile '{ref}'"
                    )
        dev_profile = self.developer_mode.profile
        if dev_profile and dev_profile not in self._profiles:
            raise ConfigError(f"Developer mode references unknown profile '{dev_profile}'")
        for ref in self._startup_checks:
            if ref not in self._profiles:
                raise ConfigError(f"Startup checks reference unknown profile '{ref}'")

    # ── Profiles ────────────────────────────────────────────────

    def __contains__(self, profile_id: object) -> bool:
        return profile_id in self._profiles

    def __iter__(self) -> Iterator[Profile]:
        return iter(self._profiles.values())

    def __len__(self) -> int:
        return len(self._profiles)

    @property
    def profile_ids(self) -> list[str]:
        return list(self._profiles)

    def get(self, profile_id: str) -> Profile:
        """Look up a profile.

        Raises:
            UnknownProfileError: If the id is not in the catalog.
        """
        try:
            return self._profiles[profile_id]
        except KeyError:
            raise UnknownProfileError(profile_id) from None

    def require(self, profile_ids: Iterable[str]) -> list[Profile]:
        """Look up several profiles, failing on the first unknown id."""
        return [self.get(pid) for pid in profile_ids]

    def position(self, profile_id: str) -> int:
        """Declaration index, used as the deterministic tie-break."""
        self.get(profile_id)
        return self._order[profile_id]

    def ordered(self, profile_ids: Iterable[str]) -> list[str]:
        """Deduplicate and sort ids into catalog declaration order."""
        unique = set(profile_ids)
        for pid in unique:
            self.get(pid)
        return sorted(unique, key=self._order.__getitem__)

    def node_providers(self) -> list[str]:
        return [p.id for p in self if p.provides_node]

    def profiles_for_config_key(self, key: str) -> list[str]:
        return [p.id for p in self if key in p.config_keys]

    def services_for_config_key(self, key: str) -> list[str]:
        """Services of every profile that owns ``key``, in catalog order."""
        services: list[str] = []
        for pid in self.profiles_for_config_key(key):
            for name in self.get(pid).service_names:
                if name not in services:
                    services.append(name)
        return services

    # ── Templates ───────────────────────────────────────────────

    @property
    def templates(self) -> list[ConfigTemplate]:
        return list(self._templates.values())

    def template(self, template_id: str) -> ConfigTemplate:
        """Look up a template.

        Raises:
            UnknownTemplateError: If the id is not in the catalog.
        """
        try:
            return self._templates[template_id]
        except KeyError:
            raise UnknownTemplateError(template_id) from None

    def templates_by_use_case(self, use_case: str) -> list[ConfigTemplate]:
        return [t for t in self._templates.values() if t.use_case == use_case]

    def templates_by_tags(self, tags: Iterable[str]) -> list[ConfigTemplate]:
        wanted = set(tags)
        return [t for t in self._templates.values() if wanted & set(t.tags)]

    # ── External dependencies ───────────────────────────────────

    def external_dependencies(self, service: str) -> list[ExternalDependency]:
        """Declared external dependencies of a service (empty if none)."""
        return list(self._external.get(service, ()))

    @property
    def services_with_dependencies(self) -> list[str]:
        return list(self._external)

    def startup_check_services(self, profile_ids: Iterable[str]) -> list[str]:
        """Services whose external dependencies gate startup of these profiles."""
        services: list[str] = []
        for pid in self.ordered(profile_ids):
            for service in self._startup_checks.get(pid, ()):
                if service not in services:
                    services.append(service)
        return services
