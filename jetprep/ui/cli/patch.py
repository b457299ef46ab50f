"""
CLI command for the CUDA 10.x compatibility patch.

Thin wrapper over ``jetprep.core.use_cases.patch``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click


@click.command()
@click.argument("target", required=False, type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--search-root",
    "search_roots",
    multiple=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory to search for common.cuh (repeatable; default: cwd, ~/llama.cpp).",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def patch(
    ctx: click.Context,
    target: Path | None,
    search_roots: tuple[Path, ...],
    as_json: bool,
) -> None:
    """Insert the CUDA 10.x compatibility block into ggml's common.cuh.

    Safe to run repeatedly: an already patched file is left untouched.
    A timestamped backup is written beside the file before any change.
    """
    from jetprep.core.errors import CorruptionRisk, NotFoundError, PatchError, PatchWriteError
    from jetprep.core.use_cases.patch import run_patch
    from jetprep.main import load_run_config

    config = load_run_config(ctx)

    try:
        result = run_patch(
            target,
            search_roots=list(search_roots) or None,
            audit_log=config.audit_log,
        )
    except (NotFoundError, PatchError) as e:
        if as_json:
            error: dict = {"error": str(e), "kind": type(e).__name__}
            if isinstance(e, (PatchWriteError, CorruptionRisk)):
                error["backup_path"] = str(e.backup_path)
            click.echo(json.dumps(error, indent=2))
        else:
            click.secho(f"❌ {e}", fg="red")
            if isinstance(e, (PatchWriteError, CorruptionRisk)):
                click.echo(f"   Backup: {e.backup_path}")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if result.status == "already-present":
        click.secho(f"✓ Already patched: {result.path}", fg="green")
        return

    click.secho(f"✅ Patched {result.path}", fg="green", bold=True)
    click.echo(f"   Inserted after line {result.after_line} ({result.anchor_kind})")
    click.echo(f"   Backup: {result.backup_path}")
