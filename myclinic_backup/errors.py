"""Error taxonomy for the backup pipeline.

Every error is terminal: the CLI prints the message and exits with
``exit_code``. Nothing is retried and nothing already written is cleaned up.
"""

from __future__ import annotations


class BackupError(Exception):
    """Base class for all backup failures."""

    exit_code: int = 1


# Configuration


class ConfigurationError(BackupError):
    """Required configuration is missing or unusable."""


class MissingConfig(ConfigurationError):
    """A required environment variable is unset or empty."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"cannot get env var {name}")


# Dump


class DumpError(BackupError):
    """The database dump tool could not produce a dump."""


class DumpFailed(DumpError):
    """The dump tool ran but exited with a non-zero status."""

    def __init__(self, exit_code: int, message: str | None = None) -> None:
        self.tool_exit_code = exit_code
        super().__init__(message or f"mysqldump failed with exit code: {exit_code}")


class DumpLaunchError(DumpError):
    """The dump tool could not be started (missing binary, permission)."""


# Encryption


class EncryptionError(BackupError):
    """Key loading, reading, encrypting or writing the encrypted dump failed."""


class KeyLoadError(EncryptionError):
    """The encryption key file is missing, unreadable or malformed."""


class SourceReadError(EncryptionError):
    """The plaintext dump could not be read."""


class DestinationWriteError(EncryptionError):
    """The encrypted file could not be written."""


class PlainRemovalError(EncryptionError):
    """The plaintext dump could not be removed after encryption."""


# Upload


class UploadError(BackupError):
    """The encrypted file could not be uploaded."""


class LocalFileMissing(UploadError):
    """The file to upload does not exist."""


class UploadAuthError(UploadError):
    """Object storage rejected the credentials or denied access."""


class UploadTransportError(UploadError):
    """Network or service failure while uploading."""
