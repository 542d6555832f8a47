"""
Kaspa All-in-One profile engine — CLI entrypoint.

Usage:
    python -m kaspa_aio.main --help
    kaspa-aio profiles validate core indexer-services
    kaspa-aio profiles add-check mining --current core
    kaspa-aio templates apply home-node --env-file .env
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from kaspa_aio import __version__
from kaspa_aio.core.observability.logging_config import setup_logging_from_env


@click.group()
@click.version_option(version=__version__, prog_name="kaspa-aio")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to kaspa-aio.yml (default: auto-detect).",
)
@click.option(
    "--catalog",
    "catalog_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to an alternative catalog.yml.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    catalog_path: str | None,
) -> None:
    """Kaspa All-in-One — profile dependencies, validation and reconfiguration."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["catalog_path"] = Path(catalog_path) if catalog_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = None

    setup_logging_from_env(level=level, debug=debug)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--no-resources", is_flag=True, help="Skip host resource detection.")
@click.pass_context
def status(ctx: click.Context, as_json: bool, no_resources: bool) -> None:
    """Show installed profiles and re-validate them against the catalog."""
    from kaspa_aio.core.config.loader import ConfigError
    from kaspa_aio.core.use_cases.status import get_status
    from kaspa_aio.ui.cli.helpers import fail, get_engine, print_issues

    engine = get_engine(ctx)
    try:
        result = get_status(engine, detect_resources=not no_resources)
    except ConfigError as e:
        fail(str(e))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    click.secho("\n📋 Kaspa All-in-One", fg="cyan", bold=True)
    click.echo(f"   State: {result.state_path}")

    if not result.installed:
        click.secho("   Nothing installed yet", fg="yellow")
        click.echo()
        return

    click.secho(f"   Profiles: {len(result.state.installed_profiles)}", fg="white", bold=True)
    for pid in result.state.installed_profiles:
        if pid in result.unknown_profiles:
            click.secho(f"     • {pid}  (not in catalog)", fg="yellow")
        else:
            click.echo(f"     • {pid}  → {engine.catalog.get(pid).name}")
    if result.state.installed_at:
        click.echo(f"   Installed:     {result.state.installed_at}")
    click.echo(f"   Last modified: {result.state.last_modified}")

    validation = result.validation
    if validation is not None:
        click.echo()
        if validation.valid:
            click.secho("   ✅ Installed profile set is consistent", fg="green")
        else:
            click.secho("   ❌ Installed profile set has problems", fg="red")
        print_issues(validation.errors, validation.warnings)

    if result.sufficiency is not None and result.system is not None:
        system = result.system
        click.echo()
        click.echo(
            f"   Host: {system.cpu:g} CPU, {system.memory:g} GB RAM, {system.disk:g} GB free"
        )
        if result.sufficiency.sufficient:
            click.secho("   ✅ Resources meet the minimum", fg="green")
        else:
            click.secho("   ⚠️  Resources below the minimum", fg="yellow")
        for entry in result.sufficiency.shortfalls + result.sufficiency.warnings:
            click.echo(f"      {entry['message']}")

    click.echo()


@cli.command()
@click.argument("profiles", nargs=-1)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--cpu", type=float, default=None, help="Override detected CPU cores.")
@click.option("--memory", type=float, default=None, help="Override detected RAM (GB).")
@click.option("--disk", type=float, default=None, help="Override detected free disk (GB).")
@click.pass_context
def resources(
    ctx: click.Context,
    profiles: tuple[str, ...],
    as_json: bool,
    cpu: float | None,
    memory: float | None,
    disk: float | None,
) -> None:
    """Sum resource requirements for PROFILES and compare with this host.

    Without PROFILES the installed set is used.
    """
    from kaspa_aio.core.services.catalog import UnknownProfileError
    from kaspa_aio.ui.cli.helpers import fail, get_engine, host_resources, installed_state

    engine = get_engine(ctx)
    selected = list(profiles) or installed_state(engine).installed_profiles

    try:
        requirement = engine.aggregator.aggregate(engine.resolver.expand(selected))
    except UnknownProfileError as e:
        fail(str(e))

    system = host_resources(engine, cpu=cpu, memory=memory, disk=disk)
    report = engine.aggregator.check_sufficiency(requirement, system)

    if as_json:
        click.echo(json.dumps({
            "requirements": requirement.to_dict(),
            "system": system.model_dump(),
            "sufficiency": report.to_dict(),
        }, indent=2))
        return

    click.secho("\n📊 Resources", fg="cyan", bold=True)
    click.echo(f"   Profiles: {', '.join(requirement.profiles) or '(none)'}")
    click.echo()
    click.echo(f"   {'':10} {'minimum':>10} {'recommended':>12} {'host':>8}")
    rows = (
        ("CPU", requirement.min_cpu, requirement.recommended_cpu, system.cpu),
        ("RAM (GB)", requirement.min_memory, requirement.recommended_memory, system.memory),
        ("Disk (GB)", requirement.min_disk, requirement.recommended_disk, system.disk),
    )
    for label, minimum, recommended, have in rows:
        click.echo(f"   {label:10} {minimum:>10} {recommended:>12} {have:>8g}")
    click.echo()

    for entry in report.shortfalls:
        click.secho(f"   ❌ {entry['message']}", fg="red")
    for entry in report.warnings:
        click.secho(f"   ⚠️  {entry['message']}", fg="yellow")
    if report.sufficient and not report.warnings:
        click.secho("   ✅ Host meets the recommended resources", fg="green")
    click.echo()

    if not report.sufficient:
        sys.exit(1)


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address.")
@click.option("--port", "-p", default=8000, type=int, help="Port number.")
@click.pass_context
def web(ctx: click.Context, host: str, port: int) -> None:
    "Start the validation API server."
    from kaspa_aio.ui.cli.helpers import get_engine
    from kaspa_aio.ui.web.server import create_app, run_server

    engine = get_engine(ctx)
    app = create_app(engine=engine)

    debug = ctx.obj.get("debug", False)

    click.echo()
    click.secho("⚡ Kaspa All-in-One — Validation API", bold=True)
    click.echo(f"   API:      http://{host}:{port}/api")
    click.echo(f"   Project:  {engine.project_root}")
    click.echo(f"   Profiles: {len(engine.catalog)}")
    if debug:
        click.secho("   Logging: DEBUG (all output)", fg="yellow")
    click.echo()

    run_server(app, host=host, port=port, debug=debug)


# ── Register sub-command groups from kaspa_aio/ui/cli/ ────────────

from kaspa_aio.ui.cli.deps import deps
from kaspa_aio.ui.cli.profiles import profiles
from kaspa_aio.ui.cli.templates import templates

cli.add_command(profiles)
cli.add_command(templates)
cli.add_command(deps)


if __name__ == "__main__":
    cli()
