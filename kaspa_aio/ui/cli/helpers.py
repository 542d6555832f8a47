"""
Shared CLI helpers — engine loading, failure exit, issue printing.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterable
from typing import Any, NoReturn

import click

from kaspa_aio.core.engine import Engine
from kaspa_aio.core.models.resources import SystemResources
from kaspa_aio.core.models.state import InstallationState
from kaspa_aio.core.models.validation import Issue, Recommendation

_SEVERITY_COLORS = {
    "critical": "red",
    "high": "red",
    "medium": "yellow",
    "low": "white",
}

_PRIORITY_ICONS = {
    "critical": "🔴",
    "high": "🟠",
    "medium": "🟡",
    "low": "🔵",
}


def fail(message: str) -> NoReturn:
    click.secho(f"❌ {message}", fg="red")
    sys.exit(1)


def get_engine(ctx: click.Context) -> Engine:
    """Build the engine once per invocation and keep it on ``ctx.obj``."""
    from kaspa_aio.core.config.loader import ConfigError

    engine = ctx.obj.get("engine")
    if engine is None:
        try:
            engine = Engine.load(
                settings_path=ctx.obj.get("config_path"),
                catalog_path=ctx.obj.get("catalog_path"),
            )
        except ConfigError as e:
            fail(str(e))
        ctx.obj["engine"] = engine
    return engine


def installed_state(engine: Engine) -> InstallationState:
    """The installation state; an unreadable state file ends the command."""
    from kaspa_aio.core.config.loader import ConfigError

    try:
        return engine.load_state()
    except ConfigError as e:
        fail(str(e))


def current_profiles(engine: Engine, given: tuple[str, ...]) -> list[str]:
    """Profiles passed with ``--current``, else the installed set."""
    if given:
        return list(given)
    return installed_state(engine).installed_profiles


def host_resources(
    engine: Engine,
    cpu: float | None = None,
    memory: float | None = None,
    disk: float | None = None,
) -> SystemResources:
    """Detected host resources with any explicit overrides applied."""
    from kaspa_aio.core.services.resources import detect_system_resources

    detected = detect_system_resources(str(engine.project_root))
    return SystemResources(
        cpu=detected.cpu if cpu is None else cpu,
        memory=detected.memory if memory is None else memory,
        disk=detected.disk if disk is None else disk,
    )


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


def print_issues(errors: Iterable[Issue], warnings: Iterable[Issue]) -> None:
    for issue in errors:
        click.secho(f"   ❌ [{issue.type}] {issue.message}", fg="red")
    for issue in warnings:
        color = _SEVERITY_COLORS.get(issue.severity, "yellow")
        click.secho(f"   ⚠️  [{issue.type}] {issue.message}", fg=color)


def print_recommendations(recommendations: Iterable[Recommendation], verbose: bool = False) -> None:
    recs = list(recommendations)
    if not recs:
        return
    click.echo()
    click.secho("   Recommendations:", fg="white", bold=True)
    for rec in recs:
        icon = _PRIORITY_ICONS.get(rec.priority, "•")
        click.echo(f"     {icon} {rec.title}: {rec.message}")
        if verbose:
            for action in rec.actions:
                click.echo(f"        → {action}")
