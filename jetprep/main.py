"""
jetprep — CLI entrypoint.

Usage:
    python -m jetprep.main --help
    jetprep converge --dry-run
    jetprep status
    jetprep patch ~/llama.cpp/ggml/src/ggml-cuda/common.cuh
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from jetprep import __version__
from jetprep.core.observability.logging_config import (
    FILE_ENV,
    FILE_LEVEL_ENV,
    resolve_level,
    setup_logging,
)

if TYPE_CHECKING:
    from jetprep.core.models.config import RunConfig

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

_STATUS_STYLE = {
    "satisfied": ("✓", "green"),
    "changed": ("✚", "cyan"),
    "skipped": ("⊘", "yellow"),
    "failed": ("✗", "red"),
}


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__, prog_name="jetprep")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to jetprep.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """jetprep — prepare a Jetson host for the CUDA toolchain."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(FILE_ENV),
        log_file_level=os.environ.get(FILE_LEVEL_ENV),
    )


def load_run_config(ctx: click.Context, **overrides: Any) -> RunConfig:
    """Load jetprep.yml (if any) with CLI overrides, exiting 1 on errors."""
    from jetprep.core.config.loader import ConfigError, load_config

    try:
        return load_config(ctx.obj.get("config_path"), overrides)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


@cli.command()
@click.option("--swap-size", type=click.IntRange(min=1), default=None,
              metavar="GB", help="Swap size in GB (default: 8).")
@click.option("--no-swap", is_flag=True, help="Skip swap creation steps.")
@click.option("--no-update", is_flag=True, help="Skip apt update/upgrade/clean.")
@click.option("--install-vscode/--no-install-vscode", default=None,
              help="Install Visual Studio Code (default: on).")
@click.option("--vscode-version", default=None, metavar="VER",
              help="VS Code version to install, or 'latest' (default: 1.85.2).")
@click.option("--no-jetson-stats", is_flag=True, help="Skip jetson-stats (jtop).")
@click.option("--dry-run", is_flag=True, help="Print commands instead of executing.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def converge(
    ctx: click.Context,
    swap_size: int | None,
    no_swap: bool,
    no_update: bool,
    install_vscode: bool | None,
    vscode_version: str | None,
    no_jetson_stats: bool,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Bring swap, packages, tools and CUDA environment up to date.

    Every step checks first and only applies what is missing.

    Examples:

        jetprep converge --dry-run

        jetprep converge --swap-size 4 --no-update --no-install-vscode
    """
    from jetprep.core.use_cases.converge import run_converge

    config = load_run_config(
        ctx,
        swap_size_gb=swap_size,
        manage_swap=False if no_swap else None,
        update_system=False if no_update else None,
        install_vscode=install_vscode,
        vscode_version=vscode_version,
        install_jetson_stats=False if no_jetson_stats else None,
        dry_run=True if dry_run else None,
    )

    quiet = ctx.obj.get("quiet", False)

    def announce(line: str) -> None:
        if as_json:
            click.echo(line, err=True)
        elif line.startswith("[INFO]") and quiet:
            return
        elif line.startswith("[WARN]"):
            click.secho(line, fg="yellow")
        else:
            click.echo(line)

    result = run_converge(config, announce=announce)
    report = result.report

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    mode_label = "[dry-run] " if report.dry_run else ""
    click.echo()
    click.secho(f"⚡ {mode_label}converge — {report.operation_id}", fg="cyan", bold=True)
    for outcome in report.outcomes:
        icon, color = _STATUS_STYLE[outcome.status]
        label = "would change" if outcome.status == "changed" and outcome.dry_run else outcome.status
        click.secho(f"   {icon} {outcome.resource:<15}", fg=color, nl=False)
        click.echo(f" {label}" + (f" — {outcome.reason}" if outcome.reason else ""))
        if outcome.status == "failed" and ctx.obj.get("verbose"):
            for receipt in outcome.receipts:
                if receipt.failed and receipt.error:
                    for line in receipt.error.split("\n")[:5]:
                        click.echo(f"     │ {line}")

    click.echo()
    status_color = {"ok": "green", "partial": "yellow", "failed": "red"}.get(report.status, "white")
    click.secho(
        f"   Result: {report.satisfied} satisfied, {report.changed} changed, "
        f"{report.skipped} skipped, {report.failed} failed",
        fg=status_color,
        bold=True,
    )
    click.echo()
    sys.exit(result.exit_code)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Probe every resource without changing anything."""
    from jetprep.core.engine.orchestrator import probe_all

    config = load_run_config(ctx)
    results = probe_all(config)

    if as_json:
        click.echo(json.dumps([r.model_dump(mode="json") for r in results], indent=2))
        return

    click.secho("\n🔍 Host state", fg="cyan", bold=True)
    for probe in results:
        if probe.satisfied:
            click.secho(f"   ✓ {probe.resource:<15}", fg="green", nl=False)
        else:
            click.secho(f"   ✗ {probe.resource:<15}", fg="red", nl=False)
        click.echo(f" {probe.detail}")
    click.echo()


@cli.command()
@click.option("-n", "count", default=10, type=click.IntRange(min=1), help="Entries to show.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def history(ctx: click.Context, count: int, as_json: bool) -> None:
    """Show recent runs from the audit ledger."""
    from jetprep.core.persistence.audit import AuditLedger

    config = load_run_config(ctx)
    if config.audit_log is None:
        click.secho("⚠️  Audit ledger disabled (audit_log: null)", fg="yellow")
        return

    entries = AuditLedger(config.audit_log).tail(count)

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.echo(f"No runs recorded in {config.audit_log}")
        return

    for entry in entries:
        color = {"ok": "green", "partial": "yellow", "failed": "red"}.get(entry.status, "white")
        click.echo(f"   {entry.timestamp}  {entry.operation_type:<9} ", nl=False)
        click.secho(f"{entry.status:<8}", fg=color, nl=False)
        click.echo(f" {entry.summary}  {entry.operation_id}")
        for err in entry.errors:
            click.echo(f"     │ {err}")


# ── Register sub-commands from jetprep/ui/cli/ ─────────────────

from jetprep.ui.cli.patch import patch  # noqa: E402

cli.add_command(patch)


if __name__ == "__main__":
    cli()
