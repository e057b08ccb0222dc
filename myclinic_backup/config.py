"""Backup configuration (os.getenv based).

Environment variables are looked up lazily, at the pipeline step that needs
them, so a dry run only requires the directory, region and bucket variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from myclinic_backup.errors import MissingConfig

logger = logging.getLogger(__name__)

DB_USER_ENV = "MYCLINIC_DB_USER"
DB_PASS_ENV = "MYCLINIC_DB_PASS"
BACKUP_DIR_ENV = "MYCLINIC_BACKUP_DIR"
ENCRYPTED_DIR_ENV = "MYCLINIC_BACKUP_ENCRYPTED_DIR"
ENCRYPTION_KEY_ENV = "MYCLINIC_BACKUP_ENCRYPTION_KEY"
S3_REGION_ENV = "MYCLINIC_BACKUP_S3_REGION"
S3_BUCKET_ENV = "MYCLINIC_BACKUP_S3_BUCKET"

# Optional
S3_ENDPOINT_URL_ENV = "MYCLINIC_BACKUP_S3_ENDPOINT_URL"

REQUIRED_ENV_VARS = (
    DB_USER_ENV,
    DB_PASS_ENV,
    BACKUP_DIR_ENV,
    ENCRYPTED_DIR_ENV,
    ENCRYPTION_KEY_ENV,
    S3_REGION_ENV,
    S3_BUCKET_ENV,
)

ENV_REFERENCE = f"""
{DB_USER_ENV} -- database user
{DB_PASS_ENV} -- database password
{BACKUP_DIR_ENV} -- directory to store plain SQL backup file
{ENCRYPTED_DIR_ENV} -- directory to store encrypted SQL backup file
{ENCRYPTION_KEY_ENV} -- path to encryption key file
{S3_REGION_ENV} -- S3 region
{S3_BUCKET_ENV} -- S3 bucket

Optional:
{S3_ENDPOINT_URL_ENV} -- S3-compatible endpoint URL (default: AWS endpoint for the region)
"""


def load_environment() -> None:
    """Load a local .env file into the environment, if one exists."""
    from dotenv import load_dotenv

    if load_dotenv():
        logger.debug("Loaded environment from .env")


def require_env(name: str) -> str:
    """Return the value of a required environment variable.

    Raises:
        MissingConfig: if the variable is unset or empty.
    """
    value = os.getenv(name, "")
    if not value:
        raise MissingConfig(name)
    return value


def optional_env(name: str) -> str | None:
    """Return the value of an optional environment variable, or None."""
    return os.getenv(name) or None


@dataclass(frozen=True)
class BackupOptions:
    """Run options, built once from the parsed command line."""

    dry_run: bool = False
    remove_plain: bool = False  # securely delete the plaintext dump after encryption
