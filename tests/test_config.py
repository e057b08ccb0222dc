"""Tests for environment configuration."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from myclinic_backup import config as cfg
from myclinic_backup.config import BackupOptions, optional_env, require_env
from myclinic_backup.errors import ConfigurationError, MissingConfig


class TestRequireEnv:
    @patch.dict("os.environ", {cfg.BACKUP_DIR_ENV: "/backup"})
    def test_present(self):
        assert require_env(cfg.BACKUP_DIR_ENV) == "/backup"

    def test_absent(self):
        with pytest.raises(MissingConfig) as exc_info:
            require_env(cfg.BACKUP_DIR_ENV)
        assert exc_info.value.name == cfg.BACKUP_DIR_ENV
        assert cfg.BACKUP_DIR_ENV in str(exc_info.value)
        assert isinstance(exc_info.value, ConfigurationError)

    @patch.dict("os.environ", {cfg.S3_BUCKET_ENV: ""})
    def test_empty(self):
        with pytest.raises(MissingConfig):
            require_env(cfg.S3_BUCKET_ENV)


def test_optional_env_empty_is_none():
    with patch.dict("os.environ", {cfg.S3_ENDPOINT_URL_ENV: ""}):
        assert optional_env(cfg.S3_ENDPOINT_URL_ENV) is None


def test_reference_lists_seven_required_variables():
    assert len(cfg.REQUIRED_ENV_VARS) == 7
    for name in cfg.REQUIRED_ENV_VARS:
        assert f"{name} -- " in cfg.ENV_REFERENCE


def test_options_default_to_live_run_keeping_plain_dump():
    options = BackupOptions()
    assert options.dry_run is False
    assert options.remove_plain is False
