"""Command line interface for filedelta."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from filedelta.baseline import BaselineError, BaselineRepository
from filedelta.config import ConfigError, ConfigManager, FiledeltaConfig, parse_assignments
from filedelta.detection import ChangeDetectionService, FileMetadata

console = Console()

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _configure_logging(level_name: str) -> None:
    """Attach a stderr handler to the root logger at the configured level.

    Args:
        level_name: Logging level name such as ``WARNING`` or ``debug``.
    """
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format=_LOG_FORMAT)


def _load_config(
    no_env: bool = False, overrides: dict[str, Any] | None = None
) -> FiledeltaConfig:
    """Load configuration, converting failures into CLI errors.

    Args:
        no_env: If True, ignore `FILEDELTA__` environment variables.
        overrides: Dotted-path values from `--set`, applied last.

    Raises:
        click.ClickException: If configuration cannot be parsed or validated.
    """
    try:
        return ConfigManager().load(cli_overrides=overrides, include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _service(ctx: click.Context) -> ChangeDetectionService:
    config: FiledeltaConfig = ctx.obj["config"]
    return ChangeDetectionService.from_config(config)


def _format_summary_line(command: str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands."""
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary: {parts}.[/green]"


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="filedelta")
@click.option(
    "--set",
    "assignments",
    multiple=True,
    metavar="KEY=VALUE",
    help="Override a configuration value, e.g. detection.max_workers=8. Repeatable.",
)
@click.pass_context
def cli(ctx: click.Context, assignments: tuple[str, ...]) -> None:
    """filedelta detects which files changed since a recorded baseline.

    Raises:
        click.BadParameter: If a `--set` value is not a KEY=VALUE pair.

    Returns:
        None: This function is invoked for its side effects.
    """
    if ctx.resilient_parsing:
        return
    ctx.ensure_object(dict)
    try:
        ctx.obj["overrides"] = parse_assignments(assignments)
    except ConfigError as exc:
        raise click.BadParameter(str(exc), param_hint="--set") from exc
    if ctx.invoked_subcommand == "config":
        return
    config = _load_config(overrides=ctx.obj["overrides"])
    _configure_logging(config.logging.level)
    ctx.obj["config"] = config


@cli.command("hash")
@click.argument("path", type=click.Path(path_type=str))
@click.pass_context
def hash_command(ctx: click.Context, path: str) -> None:
    """Print the content digest of PATH.

    Raises:
        click.ClickException: If the file cannot be read.
    """
    service = _service(ctx)
    try:
        digest = service.compute_hash(path)
    except OSError as exc:
        raise click.ClickException(f"Unable to hash {path}: {exc}") from exc
    click.echo(digest)


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(path_type=str))
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the baseline to this file instead of stdout.",
)
@click.pass_context
def snapshot(ctx: click.Context, paths: tuple[str, ...], output: Path | None) -> None:
    """Record size, modification time, and digest for PATHS as a JSON baseline.

    Raises:
        click.ClickException: If any file cannot be read.
    """
    service = _service(ctx)
    repository = BaselineRepository()

    records = []
    for path in dict.fromkeys(paths):
        try:
            records.append(service.snapshot(path))
        except OSError as exc:
            raise click.ClickException(f"Unable to snapshot {path}: {exc}") from exc

    baseline = repository.build(records)
    if output is None:
        click.echo(repository.dumps(baseline))
        return

    repository.save(output, baseline)
    console.print(
        _format_summary_line("Snapshot", {"files": len(records), "baseline": escape(str(output))})
    )


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(path_type=str))
@click.option(
    "--baseline",
    "baseline_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON baseline produced by `filedelta snapshot`.",
)
@click.option("--json", "json_output", is_flag=True, help="Emit JSON results.")
@click.option("--quiet", is_flag=True, help="Only print the summary line.")
@click.option("--fail-on-change", is_flag=True, help="Exit with status 1 when any file changed.")
@click.pass_context
def check(
    ctx: click.Context,
    paths: tuple[str, ...],
    baseline_path: Path | None,
    json_output: bool,
    quiet: bool,
    fail_on_change: bool,
) -> None:
    """Report which PATHS changed relative to a baseline.

    Files without a baseline entry are always reported as changed.

    Raises:
        click.ClickException: If the baseline cannot be loaded.
    """
    known: dict[str, FileMetadata] = {}
    if baseline_path is not None:
        try:
            known = BaselineRepository().load(baseline_path).files
        except BaselineError as exc:
            raise click.ClickException(str(exc)) from exc

    service = _service(ctx)
    results = service.batch_check(paths, known)
    changed = sum(1 for value in results.values() if value)
    counts = {"checked": len(results), "changed": changed, "unchanged": len(results) - changed}

    if json_output:
        console.print_json(data={"results": results, "counts": counts})
    else:
        if not quiet:
            table = Table(title="Change detection")
            table.add_column("Path", overflow="fold")
            table.add_column("Status")
            for path, has_changed in results.items():
                status = "[yellow]changed[/yellow]" if has_changed else "[green]unchanged[/green]"
                table.add_row(escape(path), status)
            console.print(table)
        console.print(_format_summary_line("Check", counts))

    if fail_on_change and changed:
        ctx.exit(1)


@cli.group()
def config() -> None:
    """Inspect filedelta configuration.

    Returns:
        None: This function is invoked for its side effects.
    """


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.pass_context
def config_view(ctx: click.Context, no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        ctx: Click context carrying `--set` overrides.
        no_env: If True, ignore environment-derived overrides.
    """
    config_data = _load_config(no_env=no_env, overrides=ctx.obj.get("overrides"))
    yaml_text = yaml.safe_dump(config_data.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


def main() -> None:
    """Console script entry point."""
    cli()


__all__ = ["cli", "main"]
