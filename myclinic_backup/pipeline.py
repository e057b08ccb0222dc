"""Backup pipeline: dump, encrypt, upload.

One run moves linearly through ``Stage`` values and stops at the first
failure. Environment variables are read at the step that needs them, in this
order: backup dir, (dump), encrypted dir, (encrypt), region, bucket, (upload).
A dry run derives and prints the same paths without touching the database,
the key file or object storage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable

from myclinic_backup import config as cfg
from myclinic_backup.config import BackupOptions, optional_env, require_env
from myclinic_backup.crypto import encrypt_backup_file, read_key_file, remove_plain_dump
from myclinic_backup.database import dump_database
from myclinic_backup.paths import backup_path, encrypted_path, storage_key
from myclinic_backup.storage import S3Uploader

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    INIT = "init"
    CONFIGURED = "configured"
    DUMPED = "dumped"
    ENCRYPTED = "encrypted"
    UPLOADED = "uploaded"
    DONE = "done"


@dataclass
class BackupResult:
    """Everything one run derived, and how far it got."""

    timestamp: datetime
    backup_file: str = ""
    encrypted_file: str = ""
    region: str = ""
    bucket: str = ""
    key: str = ""
    dry_run: bool = False
    stage: Stage = Stage.INIT


class BackupPipeline:
    """Sequences the dump, encrypt and upload steps.

    The collaborators default to the real implementations and can be replaced
    for tests.
    """

    def __init__(
        self,
        options: BackupOptions,
        echo: Callable[[str], None] = print,
        dumper: Callable[..., None] = dump_database,
        key_loader: Callable[[str], bytes] = read_key_file,
        encryptor: Callable[[str, bytes, str], None] = encrypt_backup_file,
        uploader_factory: Callable[..., S3Uploader] = S3Uploader,
        plain_remover: Callable[[str], None] = remove_plain_dump,
    ) -> None:
        self.options = options
        self.echo = echo
        self.dumper = dumper
        self.key_loader = key_loader
        self.encryptor = encryptor
        self.uploader_factory = uploader_factory
        self.plain_remover = plain_remover

    @property
    def live(self) -> bool:
        return not self.options.dry_run

    def run(self, now: datetime | None = None) -> BackupResult:
        """Run every step for the timestamp ``now`` (default: current time)."""
        result = BackupResult(timestamp=now or datetime.now(), dry_run=self.options.dry_run)
        logger.info(f"Backup run {result.timestamp:%Y-%m-%d %H:%M} (dry_run={self.options.dry_run})")

        self._dump(result)
        self._encrypt(result)
        self._upload(result)

        if self.options.dry_run:
            self.echo("dry run: skipped dump, encryption and upload")
        self._advance(result, Stage.DONE)
        return result

    def _advance(self, result: BackupResult, stage: Stage) -> None:
        logger.debug(f"{result.stage.value} -> {stage.value}")
        result.stage = stage

    def _dump(self, result: BackupResult) -> None:
        result.backup_file = backup_path(require_env(cfg.BACKUP_DIR_ENV), result.timestamp)
        self._advance(result, Stage.CONFIGURED)
        if self.live:
            user = require_env(cfg.DB_USER_ENV)
            password = require_env(cfg.DB_PASS_ENV)
            self.dumper(result.backup_file, user, password)
        self.echo(f"database backed up to {result.backup_file}")
        self._advance(result, Stage.DUMPED)

    def _encrypt(self, result: BackupResult) -> None:
        src = backup_path(require_env(cfg.ENCRYPTED_DIR_ENV), result.timestamp)
        result.encrypted_file = encrypted_path(src)
        if self.live:
            key = self.key_loader(require_env(cfg.ENCRYPTION_KEY_ENV))
            self.encryptor(result.encrypted_file, key, result.backup_file)
        self.echo(f"encrypted file: {result.encrypted_file}")
        if self.options.remove_plain and self.live:
            self.plain_remover(result.backup_file)
            self.echo(f"removed plain file: {result.backup_file}")
        self._advance(result, Stage.ENCRYPTED)

    def _upload(self, result: BackupResult) -> None:
        result.region = require_env(cfg.S3_REGION_ENV)
        self.echo(f"region: {result.region}")
        result.bucket = require_env(cfg.S3_BUCKET_ENV)
        result.key = storage_key(result.encrypted_file)
        self.echo(f"S3 key: {result.key}")
        if self.live:
            uploader = self.uploader_factory(result.region, endpoint_url=optional_env(cfg.S3_ENDPOINT_URL_ENV))
            uploader.upload(result.bucket, result.key, result.encrypted_file)
            self.echo(f"uploaded to s3://{result.bucket}/{result.key}")
        self._advance(result, Stage.UPLOADED)


def run_backup(options: BackupOptions, echo: Callable[[str], None] = print, now: datetime | None = None) -> BackupResult:
    """Run the backup pipeline with the real collaborators."""
    return BackupPipeline(options, echo=echo).run(now)
