"""
CLI commands for configuration templates.

Thin wrappers over ``kaspa_aio.core.services.config_sync`` and
``kaspa_aio.core.services.resources.recommend_templates``.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from kaspa_aio.core.services.catalog import UnknownTemplateError
from kaspa_aio.ui.cli.helpers import (
    echo_json,
    fail,
    get_engine,
    host_resources,
    installed_state,
)


@click.group()
def templates() -> None:
    """Templates — list, validate, apply, recommend."""


@templates.command("list")
@click.option("--use-case", default=None, help="Only templates for this use case.")
@click.option("--tag", "tags", multiple=True, help="Only templates with this tag (repeatable).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_templates(
    ctx: click.Context,
    use_case: str | None,
    tags: tuple[str, ...],
    as_json: bool,
) -> None:
    """List configuration templates."""
    catalog = get_engine(ctx).catalog
    if use_case:
        found = catalog.templates_by_use_case(use_case)
    elif tags:
        found = catalog.templates_by_tags(tags)
    else:
        found = catalog.templates

    if as_json:
        echo_json([t.model_dump(mode="json") for t in found])
        return

    if not found:
        click.secho("   No matching templates", fg="yellow")
        return

    click.secho(f"\n🧩 Templates ({len(found)})", fg="cyan", bold=True)
    for template in found:
        click.secho(f"\n   {template.id}", fg="white", bold=True)
        click.echo(f"      {template.name} [{template.category}, {template.use_case}]")
        if template.description:
            click.echo(f"      {template.description}")
        click.echo(f"      Profiles: {', '.join(template.profiles)}")
        res = template.resources
        click.echo(
            f"      Needs:    {res.min_cpu} CPU, {res.min_memory} GB RAM, {res.min_disk} GB disk"
            f"  (~{template.estimated_setup_time})"
        )
    click.echo()


@templates.command()
@click.argument("template_id")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def validate(ctx: click.Context, template_id: str, as_json: bool) -> None:
    """Check a template's profile set for conflicts and missing prerequisites."""
    engine = get_engine(ctx)
    try:
        result = engine.synchronizer.validate_template(template_id)
    except UnknownTemplateError as e:
        fail(str(e))

    if as_json:
        echo_json(result)
    else:
        if result["valid"]:
            click.secho(f"✅ {template_id} is valid", fg="green")
        else:
            click.secho(f"❌ {template_id} is invalid", fg="red")
        for error in result["errors"]:
            click.secho(f"   {error}", fg="red")
        for warning in result["warnings"]:
            click.secho(f"   {warning}", fg="yellow")

    if not result["valid"]:
        sys.exit(1)


def _parse_assignments(values: tuple[str, ...]) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--set")
        parsed[key.strip()] = value
    return parsed


@templates.command()
@click.argument("template_id")
@click.option("--set", "assignments", multiple=True, help="Override KEY=VALUE (repeatable).")
@click.option("--unset", "unset_keys", multiple=True, help="Remove KEY from the result (repeatable).")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Current .env (default: configuration from the installation state).",
)
@click.option("--write", is_flag=True, help="Write the merged configuration to --env-file.")
@click.option("--yes", "-y", is_flag=True, help="Accept changes that need confirmation.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def apply(
    ctx: click.Context,
    template_id: str,
    assignments: tuple[str, ...],
    unset_keys: tuple[str, ...],
    env_file: Path | None,
    write: bool,
    yes: bool,
    as_json: bool,
) -> None:
    """Preview (or write) the configuration TEMPLATE_ID produces."""
    from kaspa_aio.core.persistence.env_file import load_env_file, save_env_file

    engine = get_engine(ctx)

    if write and env_file is None:
        fail("--write needs --env-file")

    if env_file is not None:
        current = load_env_file(env_file)
    else:
        current = installed_state(engine).configuration

    overrides: dict[str, str | None] = dict(_parse_assignments(assignments))
    for key in unset_keys:
        overrides[key] = None

    try:
        update = engine.synchronizer.apply_template(template_id, current, overrides)
    except UnknownTemplateError as e:
        fail(str(e))

    if as_json:
        echo_json(update.to_dict())
    else:
        click.secho(f"\n🧩 {template_id}", fg="cyan", bold=True)
        click.echo(f"   Profiles: {', '.join(update.profiles)}")
        if not update.changes:
            click.secho("   No configuration changes", fg="green")
        symbols = {"added": ("+", "green"), "removed": ("-", "red"), "modified": ("~", "yellow")}
        for change in update.changes:
            symbol, color = symbols[change.type]
            if change.type == "modified":
                text = f"{change.key}: {change.old_value} → {change.new_value}"
            elif change.type == "added":
                text = f"{change.key}={change.new_value}"
            else:
                text = change.key
            click.secho(f"   {symbol} {text}", fg=color)
        for warning in update.warnings:
            color = "red" if warning.severity == "high" else "yellow"
            click.secho(f"   ⚠️  {warning.message}", fg=color)
        if update.affected_services:
            click.echo(f"   Restarts: {', '.join(update.affected_services)}")
        click.echo()

    if not write or env_file is None:
        return

    if update.requires_confirmation and not yes:
        fail("Changes need confirmation; re-run with --yes to write them")
    save_env_file(
        update.configuration,
        env_file,
        header=f"Generated by kaspa-aio from template {template_id}",
    )
    if not as_json:
        click.secho(f"✅ Wrote {len(update.configuration)} keys to {env_file}", fg="green")


@templates.command()
@click.option("--use-case", default=None, help="personal, community, development, mining...")
@click.option("--cpu", type=float, default=None, help="Override detected CPU cores.")
@click.option("--memory", type=float, default=None, help="Override detected RAM (GB).")
@click.option("--disk", type=float, default=None, help="Override detected free disk (GB).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def recommend(
    ctx: click.Context,
    use_case: str | None,
    cpu: float | None,
    memory: float | None,
    disk: float | None,
    as_json: bool,
) -> None:
    """Rank templates by fit with this host and USE_CASE."""
    from kaspa_aio.core.services.resources import recommend_templates

    engine = get_engine(ctx)
    system = host_resources(engine, cpu=cpu, memory=memory, disk=disk)
    ranked = recommend_templates(engine.catalog.templates, system, use_case)

    if as_json:
        echo_json({"system": system.model_dump(), "recommendations": ranked})
        return

    click.secho("\n🎯 Template recommendations", fg="cyan", bold=True)
    click.echo(f"   Host: {system.cpu:g} CPU, {system.memory:g} GB RAM, {system.disk:g} GB free")
    click.echo()
    for entry in ranked:
        if entry["suitability"] == "insufficient":
            color = "red"
        elif entry["recommended"]:
            color = "green"
        else:
            color = "white"
        star = "⭐ " if entry["recommended"] else "   "
        click.secho(f"   {star}{entry['template']:<18} score {entry['score']:>2}", fg=color)
        if ctx.obj.get("verbose"):
            for reason in entry["reasons"]:
                click.echo(f"        {reason}")
    click.echo()
