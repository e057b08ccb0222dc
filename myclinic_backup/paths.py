"""Backup file paths and object-storage keys.

All three artifacts of one run derive from a single timestamp:

    /backup/2024-01/dump-202401150930.sql           plain dump
    /ebackup/2024-01/dump-202401150930-sql.cf       encrypted dump
    2024-01/dump-202401150930-sql.cf                storage key

Months and minutes are zero-padded so lexical order matches chronological order.
"""

from __future__ import annotations

import os
import posixpath
import re
from datetime import datetime

DIR_FORMAT = "%Y-%m"
FILE_FORMAT = "dump-%Y%m%d%H%M.sql"
ENCRYPTED_SUFFIX = "cf"

# Only the last extension at the very end of the path is rewritten.
_EXTENSION_RE = re.compile(r"(.+)(\.(\w+))\Z", re.ASCII)


def dir_part(timestamp: datetime) -> str:
    return timestamp.strftime(DIR_FORMAT)


def file_part(timestamp: datetime) -> str:
    return timestamp.strftime(FILE_FORMAT)


def backup_path(base_dir: str | os.PathLike[str], timestamp: datetime) -> str:
    """Return ``<base_dir>/<YYYY-MM>/dump-<YYYYMMDDHHMM>.sql``, normalized."""
    path = f"{os.fspath(base_dir)}/{dir_part(timestamp)}/{file_part(timestamp)}"
    path = posixpath.normpath(path.replace(os.sep, "/"))
    # normpath keeps a leading "//"
    if path.startswith("//"):
        path = "/" + path.lstrip("/")
    return path


def encrypted_path(path: str) -> str:
    """Fold the trailing extension into the name and append ``.cf``.

    ``dump-202401011200.sql`` becomes ``dump-202401011200-sql.cf``. A path
    without a trailing extension is returned unchanged.
    """
    return _EXTENSION_RE.sub(rf"\1-\3.{ENCRYPTED_SUFFIX}", path, count=1)


def storage_key(path: str) -> str:
    """Return ``<parent directory name>/<file name>`` for ``path``."""
    head, base = posixpath.split(path)
    head = posixpath.normpath(head or ".")
    parent = posixpath.basename(head)
    return f"{parent}/{base}"
