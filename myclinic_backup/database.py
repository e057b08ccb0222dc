"""MySQL dump via the mysqldump command-line tool."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from myclinic_backup.errors import DumpFailed, DumpLaunchError

logger = logging.getLogger(__name__)

DUMP_TOOL = "mysqldump"
DATABASE_NAME = "myclinic"
CHARSET = "utf8"


def build_dump_command(
    backup_file: str,
    user: str,
    password: str,
    database: str = DATABASE_NAME,
    charset: str = CHARSET,
) -> list[str]:
    """Return the mysqldump argument list writing to ``backup_file``."""
    return [
        DUMP_TOOL,
        "-u",
        user,
        f"-p{password}",
        f"--default-character-set={charset}",
        database,
        f"--result-file={backup_file}",
    ]


def mask_command(cmd: list[str]) -> str:
    """Return the command as a string with the password argument masked."""
    return " ".join("-p****" if arg.startswith("-p") and len(arg) > 2 else arg for arg in cmd)


def dump_database(
    backup_file: str,
    user: str,
    password: str,
    database: str = DATABASE_NAME,
    charset: str = CHARSET,
) -> None:
    """Dump ``database`` into ``backup_file``.

    Parent directories are created as needed. mysqldump writes the file itself
    (``--result-file``) and shares this process's stdout/stderr.

    Raises:
        DumpLaunchError: mysqldump could not be started.
        DumpFailed: mysqldump exited non-zero or produced no file.
    """
    path = Path(backup_file)
    try:
        path.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
    except OSError as e:
        raise DumpLaunchError(f"cannot create backup directory {path.parent}: {e}") from e

    cmd = build_dump_command(backup_file, user, password, database, charset)
    logger.info(f"[{database}] Running {mask_command(cmd)}")

    try:
        result = subprocess.run(cmd, check=False)
    except FileNotFoundError as e:
        raise DumpLaunchError(f"{DUMP_TOOL} not found - install mysql-client") from e
    except OSError as e:
        raise DumpLaunchError(f"cannot run {DUMP_TOOL}: {e}") from e

    if result.returncode != 0:
        logger.error(f"[{database}] {DUMP_TOOL} exited with {result.returncode}")
        raise DumpFailed(result.returncode)

    if not path.exists():
        raise DumpFailed(0, f"{DUMP_TOOL} exited 0 but {backup_file} was not created")

    logger.info(f"[{database}] Dump complete: {path.stat().st_size:,} bytes")
