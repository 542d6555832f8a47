"""
Status use case — what is installed and is it still consistent?
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from kaspa_aio.core.engine import Engine
from kaspa_aio.core.models.resources import SufficiencyReport, SystemResources
from kaspa_aio.core.models.state import InstallationState
from kaspa_aio.core.models.validation import SelectionResult
from kaspa_aio.core.services.resources import check_sufficiency, detect_system_resources

logger = logging.getLogger(__name__)


@dataclass
class StatusResult:
    """Installation state checked against the current catalog."""

    state: InstallationState
    state_path: str = ""
    validation: SelectionResult | None = None
    system: SystemResources | None = None
    sufficiency: SufficiencyReport | None = None
    unknown_profiles: list[str] = field(default_factory=list)

    @property
    def installed(self) -> bool:
        return self.state.is_installed or bool(self.state.installed_profiles)

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        result: dict = {
            "installed": self.installed,
            "statePath": self.state_path,
            "installedProfiles": self.state.installed_profiles,
            "installedAt": self.state.installed_at,
            "lastModified": self.state.last_modified,
            "configurationKeys": len(self.state.configuration),
        }
        if self.unknown_profiles:
            result["unknownProfiles"] = self.unknown_profiles
        if self.validation is not None:
            result["validation"] = self.validation.to_dict()
        if self.system is not None:
            result["system"] = self.system.model_dump()
        if self.sufficiency is not None:
            result["sufficiency"] = self.sufficiency.to_dict()
        return result


def get_status(engine: Engine, detect_resources: bool = True) -> StatusResult:
    """Load the installation state and re-validate the installed profile set."""
    state = engine.load_state()
    result = StatusResult(state=state, state_path=str(engine.state_path))

    known = [pid for pid in state.installed_profiles if pid in engine.catalog]
    result.unknown_profiles = [pid for pid in state.installed_profiles if pid not in known]

    if result.unknown_profiles:
        logger.warning(
            "State lists profiles missing from the catalog: %s",
            ", ".join(result.unknown_profiles),
        )
    result.validation = engine.validator.validate_selection(known)

    if detect_resources:
        result.system = detect_system_resources(str(engine.project_root))
        result.sufficiency = check_sufficiency(result.validation.requirements, result.system)
    return result
