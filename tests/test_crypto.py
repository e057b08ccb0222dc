"""Tests for key files and backup encryption."""

from __future__ import annotations

import gzip
import os
import stat
from unittest.mock import patch

import pytest
from cryptography.fernet import Fernet

from myclinic_backup.crypto import (
    compress_and_encrypt,
    encrypt_backup_file,
    generate_key_file,
    read_key_file,
    remove_plain_dump,
)
from myclinic_backup.errors import (
    DestinationWriteError,
    EncryptionError,
    KeyLoadError,
    PlainRemovalError,
    SourceReadError,
)


def _decrypt(key: bytes, data: bytes) -> bytes:
    return gzip.decompress(Fernet(key).decrypt(data))


class TestKeyFile:
    def test_reads_and_strips(self, key_file):
        key = read_key_file(key_file)
        assert not key.endswith(b"\n")
        Fernet(key)

    def test_missing(self, tmp_path):
        with pytest.raises(KeyLoadError):
            read_key_file(tmp_path / "nope.key")

    def test_malformed(self, tmp_path):
        path = tmp_path / "bad.key"
        path.write_text("not a key")
        with pytest.raises(KeyLoadError):
            read_key_file(path)

    def test_generate(self, tmp_path):
        path = generate_key_file(tmp_path / "keys" / "new.key")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        read_key_file(path)

    def test_generate_refuses_overwrite(self, key_file):
        before = key_file.read_bytes()
        with pytest.raises(FileExistsError):
            generate_key_file(key_file)
        assert key_file.read_bytes() == before

    def test_generate_force(self, key_file):
        before = key_file.read_bytes()
        key_file.chmod(0o644)
        generate_key_file(key_file, force=True)
        assert key_file.read_bytes() != before
        assert stat.S_IMODE(key_file.stat().st_mode) == 0o600


class TestCompressAndEncrypt:
    def test_decrypts_back(self, key_file):
        key = read_key_file(key_file)
        data = b"INSERT INTO patient VALUES (1);\n" * 100
        assert _decrypt(key, compress_and_encrypt(key, data)) == data

    def test_empty_input(self, key_file):
        key = read_key_file(key_file)
        assert _decrypt(key, compress_and_encrypt(key, b"")) == b""

    def test_bad_key(self):
        with pytest.raises(EncryptionError):
            compress_and_encrypt(b"short", b"data")


class TestEncryptBackupFile:
    def test_writes_private_file(self, tmp_path, key_file):
        key = read_key_file(key_file)
        src = tmp_path / "dump.sql"
        src.write_bytes(b"-- dump\n")
        dst = tmp_path / "enc" / "2024-01" / "dump-sql.cf"

        encrypt_backup_file(str(dst), key, str(src))

        assert stat.S_IMODE(dst.stat().st_mode) == 0o600
        assert _decrypt(key, dst.read_bytes()) == b"-- dump\n"
        assert src.exists()

    def test_existing_file_restricted_before_write(self, tmp_path, key_file):
        key = read_key_file(key_file)
        src = tmp_path / "dump.sql"
        src.write_bytes(b"-- dump\n")
        dst = tmp_path / "dump-sql.cf"
        dst.write_bytes(b"old ciphertext")
        dst.chmod(0o644)
        sizes = []
        real_fchmod = os.fchmod

        def fchmod(fd, mode):
            sizes.append(os.fstat(fd).st_size)
            real_fchmod(fd, mode)

        with patch("myclinic_backup.crypto.os.fchmod", side_effect=fchmod):
            encrypt_backup_file(str(dst), key, str(src))

        assert sizes == [0]
        assert stat.S_IMODE(dst.stat().st_mode) == 0o600
        assert _decrypt(key, dst.read_bytes()) == b"-- dump\n"

    def test_zero_byte_dump(self, tmp_path, key_file):
        key = read_key_file(key_file)
        src = tmp_path / "dump.sql"
        src.write_bytes(b"")
        dst = tmp_path / "dump-sql.cf"

        encrypt_backup_file(str(dst), key, str(src))

        assert _decrypt(key, dst.read_bytes()) == b""

    def test_missing_source(self, tmp_path, key_file):
        key = read_key_file(key_file)
        with pytest.raises(SourceReadError):
            encrypt_backup_file(str(tmp_path / "out.cf"), key, str(tmp_path / "missing.sql"))

    def test_unwritable_destination(self, tmp_path, key_file):
        key = read_key_file(key_file)
        src = tmp_path / "dump.sql"
        src.write_bytes(b"x")
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")

        with pytest.raises(DestinationWriteError):
            encrypt_backup_file(str(blocker / "out.cf"), key, str(src))


class TestRemovePlainDump:
    def test_removes(self, tmp_path):
        src = tmp_path / "dump.sql"
        src.write_bytes(b"secret rows" * 1000)
        remove_plain_dump(str(src))
        assert not src.exists()

    def test_missing(self, tmp_path):
        with pytest.raises(PlainRemovalError):
            remove_plain_dump(str(tmp_path / "missing.sql"))
