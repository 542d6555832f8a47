"""
CLI commands for external dependency checks.

Thin wrappers over ``kaspa_aio.core.services.external_deps`` and
``kaspa_aio.core.services.startup_check``.
"""

from __future__ import annotations

import sys

import click

from kaspa_aio.core.services.catalog import UnknownProfileError
from kaspa_aio.ui.cli.helpers import current_profiles, echo_json, fail, get_engine


@click.group()
def deps() -> None:
    """External dependencies — reachability of public APIs and endpoints."""


def _print_service(result: dict) -> None:
    icon = "✅" if result["valid"] else "❌"
    color = "green" if result["valid"] else "red"
    click.secho(f"\n   {icon} {result['service']}: {result['message']}", fg=color, bold=True)
    for dep in result.get("dependencies", []):
        if dep["available"]:
            latency = f" ({dep['latency_ms']}ms)" if dep.get("latency_ms") is not None else ""
            click.echo(f"      ✓ {dep['name']}{latency}")
            continue
        label = "critical" if dep["critical"] else "optional"
        click.secho(f"      ✗ {dep['name']} [{label}]: {dep.get('error') or 'unreachable'}", fg="yellow")
        guidance = dep.get("guidance") or {}
        for suggestion in guidance.get("suggestions", [])[:2]:
            click.echo(f"         → {suggestion}")
        for fallback in guidance.get("fallback", []):
            click.echo(f"         ↪ {fallback}")


@deps.command()
@click.argument("services", nargs=-1)
@click.option("--timeout", type=float, default=None, help="Seconds per probe.")
@click.option("--no-connectivity", is_flag=True, help="Skip the general internet check.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(
    ctx: click.Context,
    services: tuple[str, ...],
    timeout: float | None,
    no_connectivity: bool,
    as_json: bool,
) -> None:
    """Probe the external dependencies of SERVICES (default: all declared)."""
    engine = get_engine(ctx)
    names = list(services) or engine.catalog.services_with_dependencies

    result = engine.checker.validate_multiple_services(
        names, timeout=timeout, check_connectivity=not no_connectivity,
    )

    if as_json:
        echo_json(result)
    else:
        click.secho("\n🌐 External dependencies", fg="cyan", bold=True)
        connectivity = result.get("connectivity")
        if connectivity is not None:
            if connectivity["connected"]:
                click.secho("   Internet: connected", fg="green")
            else:
                click.secho("   Internet: unreachable", fg="red")
        for name in names:
            _print_service(result["services"][name])
        for rec in result["recommendations"]:
            click.echo()
            click.secho(f"   💡 {rec['title']}", bold=True)
            click.echo(f"      {rec['message']}")
        click.echo()

    if not result["valid"]:
        sys.exit(1)


@deps.command()
@click.argument("selected", nargs=-1)
@click.option("--force", is_flag=True, help="Ignore cached results.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def startup(ctx: click.Context, selected: tuple[str, ...], force: bool, as_json: bool) -> None:
    """Check the dependencies gating startup of SELECTED (default: installed)."""
    engine = get_engine(ctx)
    ids = current_profiles(engine, selected)
    try:
        report = engine.startup.check_profiles(ids, force=force)
    except UnknownProfileError as e:
        fail(str(e))

    if as_json:
        echo_json(report)
    else:
        click.secho("\n🚦 Startup dependency check", fg="cyan", bold=True)
        click.echo(f"   Profiles: {', '.join(report['profiles']) or '(none)'}")
        if not report["services"]:
            click.echo("   No services with external dependencies")
        for name in report["services"]:
            _print_service(report["results"][name])
        for rec in report["recommendations"]:
            click.echo()
            click.secho(f"   💡 {rec['title']}", bold=True)
            click.echo(f"      {rec['message']}")
        click.echo()
        if report["ready"]:
            click.secho("   ✅ Ready to start", fg="green")
        else:
            click.secho("   ❌ Critical dependencies unavailable", fg="red")

    if not report["ready"]:
        sys.exit(1)
