"""Backup encryption: key files, compress-and-encrypt, encrypted file output.

Key files hold a urlsafe-base64 Fernet key. Generate one with:

    myclinic-backup keygen /path/to/backup.key

The ciphertext format is owned by ``cryptography.fernet``; this module only
gzips the dump before handing it over.
"""

from __future__ import annotations

import gzip
import logging
import os
from pathlib import Path

from cryptography.fernet import Fernet

from myclinic_backup.errors import (
    DestinationWriteError,
    EncryptionError,
    KeyLoadError,
    PlainRemovalError,
    SourceReadError,
)

logger = logging.getLogger(__name__)

COMPRESSION_LEVEL = 9
_WIPE_CHUNK = 1024 * 1024


def read_key_file(key_path: str | os.PathLike[str]) -> bytes:
    """Load and validate the key stored at ``key_path``.

    Raises:
        KeyLoadError: the file is missing, unreadable or not a valid key.
    """
    try:
        key = Path(key_path).read_bytes().strip()
    except OSError as e:
        raise KeyLoadError(f"cannot read encryption key file {key_path}: {e}") from e

    try:
        Fernet(key)
    except (ValueError, TypeError) as e:
        raise KeyLoadError(f"invalid encryption key in {key_path}: {e}") from e
    return key


def generate_key_file(key_path: str | os.PathLike[str], force: bool = False) -> Path:
    """Write a fresh key to ``key_path`` with owner-only permissions.

    Raises:
        FileExistsError: the file exists and ``force`` is not set.
    """
    path = Path(key_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    flags = os.O_WRONLY | os.O_CREAT | (os.O_TRUNC if force else os.O_EXCL)
    fd = os.open(path, flags, 0o600)
    with os.fdopen(fd, "wb") as f:
        os.fchmod(f.fileno(), 0o600)
        f.write(Fernet.generate_key() + b"\n")
    return path


def compress_and_encrypt(key: bytes, plaintext: bytes) -> bytes:
    """Gzip ``plaintext`` and encrypt the result with ``key``.

    Raises:
        EncryptionError: the key is unusable or encryption failed.
    """
    try:
        compressed = gzip.compress(plaintext, compresslevel=COMPRESSION_LEVEL)
        return Fernet(key).encrypt(compressed)
    except (ValueError, TypeError) as e:
        raise EncryptionError(f"encryption failed: {e}") from e


def _write_private(path: Path, data: bytes) -> None:
    # O_CREAT mode does not apply to an existing file.
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        os.fchmod(f.fileno(), 0o600)
        f.write(data)


def encrypt_backup_file(dst_path: str, key: bytes, src_path: str) -> None:
    """Encrypt the dump at ``src_path`` into ``dst_path`` (mode 0600).

    The plaintext dump is left in place.
    """
    logger.info(f"Encrypting {src_path} -> {dst_path}")

    try:
        plaintext = Path(src_path).read_bytes()
    except OSError as e:
        raise SourceReadError(f"cannot read backup file {src_path}: {e}") from e

    ciphertext = compress_and_encrypt(key, plaintext)

    dst = Path(dst_path)
    try:
        dst.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
        _write_private(dst, ciphertext)
    except OSError as e:
        raise DestinationWriteError(f"cannot write encrypted file {dst_path}: {e}") from e

    logger.info(f"Encrypted {len(plaintext):,} bytes -> {len(ciphertext):,} bytes")


def remove_plain_dump(path: str) -> None:
    """Overwrite the plaintext dump with zeros, then delete it."""
    p = Path(path)
    try:
        remaining = p.stat().st_size
        with p.open("r+b") as f:
            while remaining > 0:
                n = min(remaining, _WIPE_CHUNK)
                f.write(b"\0" * n)
                remaining -= n
            f.flush()
            os.fsync(f.fileno())
        p.unlink()
    except OSError as e:
        raise PlainRemovalError(f"cannot remove plain backup file {path}: {e}") from e
    logger.info(f"Removed plain backup file {path}")
