"""CLI for the MyClinic backup job (Typer + Rich)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from myclinic_backup.config import ENV_REFERENCE, BackupOptions, load_environment
from myclinic_backup.crypto import generate_key_file
from myclinic_backup.errors import BackupError, ConfigurationError, DumpError, EncryptionError, UploadError
from myclinic_backup.pipeline import run_backup

app = typer.Typer(
    name="myclinic-backup",
    help="Dump the MyClinic database, encrypt the dump and upload it to S3.",
    add_completion=False,
)
console = Console(highlight=False, emoji=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, emoji=False, soft_wrap=True)

logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("myclinic_backup")

_ERROR_PREFIXES: list[tuple[type[BackupError], str]] = [
    (ConfigurationError, "configuration error"),
    (DumpError, "mysql backup failed"),
    (EncryptionError, "encryption failed"),
    (UploadError, "failed to upload to S3"),
]


def _echo(line: str) -> None:
    console.print(line, markup=False)


def _describe(error: BackupError) -> str:
    for error_type, prefix in _ERROR_PREFIXES:
        if isinstance(error, error_type):
            return f"{prefix}: {error}"
    return str(error)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Does not actually run commands")] = False,
    env: Annotated[bool, typer.Option("--env", help="Prints relevant env vars")] = False,
    remove_plain: Annotated[
        bool, typer.Option("--remove-plain", help="Wipe and delete the plain SQL dump after encryption")
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log each step, including debug detail")] = False,
) -> None:
    """Run a backup: dump, encrypt, upload."""
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    if ctx.invoked_subcommand is not None:
        return

    if env:
        console.print(ENV_REFERENCE, markup=False, end="")
        return

    load_environment()
    options = BackupOptions(dry_run=dry_run, remove_plain=remove_plain)
    try:
        run_backup(options, echo=_echo)
    except BackupError as e:
        logger.debug("Backup failed", exc_info=True)
        err_console.print(f"[red]Error:[/] {escape(_describe(e))}")
        raise typer.Exit(e.exit_code)


@app.command()
def keygen(
    path: Annotated[Path, typer.Argument(help="Where to write the new key file")],
    force: Annotated[bool, typer.Option("--force", "-f", help="Overwrite an existing key file")] = False,
) -> None:
    """Generate a new encryption key file (mode 0600)."""
    try:
        written = generate_key_file(path, force=force)
    except FileExistsError:
        err_console.print(f"[red]Error:[/] {escape(str(path))} already exists. Use --force to overwrite.")
        raise typer.Exit(1)
    except OSError as e:
        err_console.print(f"[red]Error:[/] cannot write key file: {escape(str(e))}")
        raise typer.Exit(1)

    console.print(f"[green]Key written to[/] {escape(str(written))}")
    console.print(f"Set MYCLINIC_BACKUP_ENCRYPTION_KEY={escape(str(written))} and keep a copy somewhere safe.")
