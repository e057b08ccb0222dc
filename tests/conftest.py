"""Pytest configuration and fixtures for myclinic-backup tests."""

from __future__ import annotations

from datetime import datetime

import pytest
from cryptography.fernet import Fernet

from myclinic_backup import config as cfg


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test without any MYCLINIC_* variables or a stray .env file."""
    for name in (*cfg.REQUIRED_ENV_VARS, cfg.S3_ENDPOINT_URL_ENV):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("myclinic_backup.cli.load_environment", lambda: None)


@pytest.fixture
def timestamp():
    return datetime(2024, 1, 15, 9, 30)


@pytest.fixture
def key_file(tmp_path):
    """A valid key file on disk."""
    path = tmp_path / "backup.key"
    path.write_bytes(Fernet.generate_key() + b"\n")
    return path


@pytest.fixture
def backup_env(monkeypatch, tmp_path, key_file):
    """Set all seven required variables, pointing at tmp_path."""
    values = {
        cfg.DB_USER_ENV: "clinic",
        cfg.DB_PASS_ENV: "s3cret",
        cfg.BACKUP_DIR_ENV: str(tmp_path / "backup"),
        cfg.ENCRYPTED_DIR_ENV: str(tmp_path / "ebackup"),
        cfg.ENCRYPTION_KEY_ENV: str(key_file),
        cfg.S3_REGION_ENV: "ap-northeast-1",
        cfg.S3_BUCKET_ENV: "clinic-backups",
    }
    for name, value in values.items():
        monkeypatch.setenv(name, value)
    return values
