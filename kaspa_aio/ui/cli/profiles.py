"""
CLI commands for profile selection, validation and reconfiguration checks.

Thin wrappers over ``kaspa_aio.core.services.resolver`` and
``kaspa_aio.core.services.dependency_validator``.
"""

from __future__ import annotations

import sys

import click

from kaspa_aio.core.services.catalog import UnknownProfileError
from kaspa_aio.ui.cli.helpers import (
    current_profiles,
    echo_json,
    fail,
    get_engine,
    installed_state,
    print_issues,
    print_recommendations,
)


@click.group()
def profiles() -> None:
    """Profiles — list, resolve, validate, graph, add/remove checks."""


# ── Catalog ─────────────────────────────────────────────────────


@profiles.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_profiles(ctx: click.Context, as_json: bool) -> None:
    """List the profiles in the catalog."""
    engine = get_engine(ctx)
    installed = set(installed_state(engine).installed_profiles)

    if as_json:
        echo_json([
            {**p.summary(), "installed": p.id in installed, "ports": p.ports}
            for p in engine.catalog
        ])
        return

    click.secho(f"\n📦 Profiles ({len(engine.catalog)})", fg="cyan", bold=True)
    for profile in engine.catalog:
        marker = " ✓" if profile.id in installed else ""
        click.secho(f"\n   {profile.id}{marker}", fg="white", bold=True)
        click.echo(f"      {profile.name} [{profile.category}]")
        if ctx.obj.get("verbose") and profile.description:
            click.echo(f"      {profile.description}")
        click.echo(f"      Services: {', '.join(profile.service_names) or '-'}")
        if profile.dependencies:
            click.echo(f"      Requires: {', '.join(profile.dependencies)}")
        if profile.prerequisites:
            click.echo(f"      One of:   {', '.join(profile.prerequisites)}")
        if profile.conflicts:
            click.echo(f"      Conflicts: {', '.join(profile.conflicts)}")
    click.echo()


# ── Selection ───────────────────────────────────────────────────


@profiles.command()
@click.argument("selected", nargs=-1, required=True)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def resolve(ctx: click.Context, selected: tuple[str, ...], as_json: bool) -> None:
    """Expand SELECTED with dependencies and compute the startup order."""
    engine = get_engine(ctx)
    try:
        resolution = engine.resolver.resolve(selected)
    except UnknownProfileError as e:
        fail(str(e))

    if as_json:
        echo_json(resolution.to_dict())
    else:
        click.secho("\n🔗 Resolution", fg="cyan", bold=True)
        click.echo(f"   Requested: {', '.join(resolution.requested)}")
        click.echo(f"   Resolved:  {', '.join(resolution.resolved) or '-'}")
        if resolution.profile_order:
            click.echo(f"   Profile order: {' → '.join(resolution.profile_order)}")
        if resolution.startup_order:
            click.echo(f"   Startup order: {' → '.join(resolution.startup_order)}")
        print_issues(resolution.errors, [])
        click.echo()

    if not resolution.ok:
        sys.exit(1)


@profiles.command()
@click.argument("selected", nargs=-1)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--report", is_flag=True, help="Full report: validation, graph and summary.")
@click.pass_context
def validate(ctx: click.Context, selected: tuple[str, ...], as_json: bool, report: bool) -> None:
    """Validate a fresh selection of profiles."""
    engine = get_engine(ctx)
    try:
        if report:
            echo_json(engine.validator.get_validation_report(selected))
            return
        result = engine.validator.validate_selection(selected)
    except UnknownProfileError as e:
        fail(str(e))

    if as_json:
        echo_json(result.to_dict())
    else:
        click.echo()
        if result.valid:
            click.secho("✅ Selection is valid", fg="green", bold=True)
        else:
            click.secho("❌ Selection is invalid", fg="red", bold=True)
        click.echo(f"   Profiles: {', '.join(result.profile_order) or '(none)'}")
        req = result.requirements
        click.echo(
            f"   Minimum:  {req.min_cpu} CPU, {req.min_memory} GB RAM, {req.min_disk} GB disk"
        )
        print_issues(result.errors, result.warnings)
        print_recommendations(result.recommendations, verbose=ctx.obj.get("verbose", False))
        click.echo()

    if not result.valid:
        sys.exit(1)


@profiles.command()
@click.argument("selected", nargs=-1, required=True)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def graph(ctx: click.Context, selected: tuple[str, ...], as_json: bool) -> None:
    """Show the dependency graph of SELECTED."""
    engine = get_engine(ctx)
    try:
        result = engine.validator.build_dependency_graph(selected)
    except UnknownProfileError as e:
        fail(str(e))

    if as_json:
        echo_json(result.to_dict())
        return

    click.secho("\n🕸️  Dependency graph", fg="cyan", bold=True)
    for node in result.nodes:
        tag = "selected" if node.selected else "required"
        click.echo(f"   • {node.id} ({tag})  services: {', '.join(node.services) or '-'}")
    if result.edges:
        click.echo()
    arrows = {"dependency": "──requires──▶", "prerequisite": "──one of──▶", "conflict": "✖ conflicts ✖"}
    for edge in result.edges:
        line = f"   {edge.source} {arrows[edge.type]} {edge.target}"
        if edge.type == "conflict":
            click.secho(line, fg="red")
        else:
            click.echo(line)
    click.echo()


@profiles.command("startup-order")
@click.argument("selected", nargs=-1, required=True)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def startup_order(ctx: click.Context, selected: tuple[str, ...], as_json: bool) -> None:
    """Print the service startup order for SELECTED."""
    engine = get_engine(ctx)
    try:
        resolution = engine.resolver.resolve(selected)
    except UnknownProfileError as e:
        fail(str(e))

    if as_json:
        echo_json({
            "profiles": resolution.profile_order,
            "startupOrder": resolution.startup_order,
            "errors": [e.to_dict() for e in resolution.errors],
        })
    elif resolution.ok:
        for i, name in enumerate(resolution.startup_order, 1):
            click.echo(f"   {i:>2}. {name}")
    else:
        print_issues(resolution.errors, [])

    if not resolution.ok:
        sys.exit(1)


# ── Reconfiguration ─────────────────────────────────────────────


@profiles.command("add-check")
@click.argument("profile_id")
@click.option(
    "--current", "current", multiple=True,
    help="Installed profile (repeatable). Default: the installation state.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def add_check(
    ctx: click.Context,
    profile_id: str,
    current: tuple[str, ...],
    as_json: bool,
) -> None:
    """Check whether PROFILE_ID can be added to the installation."""
    engine = get_engine(ctx)
    installed = current_profiles(engine, current)
    try:
        result = engine.validator.validate_addition(profile_id, installed)
    except UnknownProfileError as e:
        fail(str(e))

    if as_json:
        echo_json(result.to_dict())
    else:
        click.echo()
        if result.can_add:
            click.secho(f"✅ {profile_id} can be added", fg="green", bold=True)
        else:
            click.secho(f"❌ {profile_id} cannot be added", fg="red", bold=True)
        click.echo(f"   Installed: {', '.join(installed) or '(none)'}")

        integration = result.integration
        if integration.get("autoIncluded"):
            click.echo(f"   Also adds: {', '.join(integration['autoIncluded'])}")
        impact = integration.get("resourceImpact", {}).get("additional")
        if impact:
            click.echo(
                f"   Additional: +{impact['minCpu']} CPU, "
                f"+{impact['minMemory']} GB RAM, +{impact['minDisk']} GB disk"
            )
        for suggestion in integration.get("suggestions", []):
            click.echo(f"   🔌 {suggestion['title']}: {suggestion['description']}")
        print_issues(result.errors, result.warnings)
        print_recommendations(result.recommendations, verbose=ctx.obj.get("verbose", False))
        click.echo()

    if not result.can_add:
        sys.exit(1)


@profiles.command("remove-check")
@click.argument("profile_id")
@click.option(
    "--current", "current", multiple=True,
    help="Installed profile (repeatable). Default: the installation state.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def remove_check(
    ctx: click.Context,
    profile_id: str,
    current: tuple[str, ...],
    as_json: bool,
) -> None:
    """Check whether PROFILE_ID can be removed from the installation."""
    engine = get_engine(ctx)
    installed = current_profiles(engine, current)
    try:
        result = engine.validator.validate_removal(profile_id, installed)
    except UnknownProfileError as e:
        fail(str(e))

    if as_json:
        echo_json(result.to_dict())
    else:
        click.echo()
        if result.can_remove:
            click.secho(f"✅ {profile_id} can be removed", fg="green", bold=True)
        else:
            click.secho(f"❌ {profile_id} cannot be removed", fg="red", bold=True)
        if result.services_to_stop:
            click.echo(f"   Stops:      {', '.join(result.services_to_stop)}")
        if result.shared_services:
            click.echo(f"   Keeps:      {', '.join(result.shared_services)}")
        for volume in result.data_impact:
            flag = " ⚠️" if volume["critical"] else ""
            click.echo(
                f"   💾 {volume['name']} ({volume['estimatedSize'] or '?'}){flag}"
            )
        print_issues(result.errors, result.warnings)
        print_recommendations(result.recommendations, verbose=ctx.obj.get("verbose", False))
        click.echo()

    if not result.can_remove:
        sys.exit(1)
