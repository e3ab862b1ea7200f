"""Tests for the file-backed ledger."""

import os
import stat

import pytest

from server_maintenance.errors import PersistenceFailure
from server_maintenance.ledger import FileLedger


@pytest.fixture
def file_ledger(tmp_path):
    return FileLedger(tmp_path / "state" / "disabled-php-fpm-services.txt")


def mode_of(path):
    return stat.S_IMODE(os.stat(path).st_mode)


def test_initialize_creates_restricted_storage(file_ledger):
    file_ledger.initialize()
    file_ledger.initialize()
    assert file_ledger.path.is_file()
    assert mode_of(file_ledger.path.parent) == 0o700
    assert mode_of(file_ledger.path) == 0o600


def test_list_without_file_is_empty(file_ledger):
    assert file_ledger.list() == []
    assert not file_ledger.path.exists()


def test_record_is_idempotent(file_ledger):
    file_ledger.record("php8.1-fpm")
    file_ledger.record("php8.1-fpm")
    assert file_ledger.list() == ["php8.1-fpm"]
    assert file_ledger.path.read_text() == "php8.1-fpm\n"


def test_remove_absent_leaves_ledger_unchanged(file_ledger):
    file_ledger.record("php7.4-fpm")
    file_ledger.remove("php8.2-fpm")
    assert file_ledger.list() == ["php7.4-fpm"]


def test_record_then_remove_round_trip(file_ledger):
    file_ledger.record("php7.4-fpm")
    file_ledger.record("php8.1-fpm")
    file_ledger.remove("php7.4-fpm")
    assert file_ledger.list() == ["php8.1-fpm"]
    assert mode_of(file_ledger.path) == 0o600


def test_remove_drops_every_occurrence(file_ledger):
    file_ledger.initialize()
    file_ledger.path.write_text("php8.1-fpm\nphp7.4-fpm\nphp8.1-fpm\n")
    file_ledger.remove("php8.1-fpm")
    assert file_ledger.path.read_text() == "php7.4-fpm\n"
    leftovers = [p for p in file_ledger.path.parent.iterdir() if p != file_ledger.path]
    assert leftovers == []


def test_list_dedupes_sorts_and_ignores_noise(file_ledger):
    file_ledger.initialize()
    file_ledger.path.write_text(
        "php8.2-fpm\n\nphp10.0-fpm\nphp7.4-fpm\n  php8.2-fpm  \nnot-a-unit\n"
    )
    assert file_ledger.list() == ["php7.4-fpm", "php8.2-fpm", "php10.0-fpm"]


def test_record_repairs_missing_trailing_newline(file_ledger):
    file_ledger.initialize()
    file_ledger.path.write_text("php7.4-fpm")
    file_ledger.record("php8.1-fpm")
    assert file_ledger.path.read_text() == "php7.4-fpm\nphp8.1-fpm\n"


@pytest.mark.skipif(os.geteuid() == 0, reason="root ignores file permissions")
def test_unwritable_storage_raises_persistence_failure(tmp_path):
    locked = tmp_path / "locked"
    locked.mkdir()
    locked.chmod(0o500)
    try:
        ledger = FileLedger(locked / "state" / "ledger.txt")
        with pytest.raises(PersistenceFailure):
            ledger.record("php8.1-fpm")
    finally:
        locked.chmod(0o700)


def test_undecodable_ledger_raises_persistence_failure(file_ledger):
    file_ledger.initialize()
    file_ledger.path.write_bytes(b"php7.4-fpm\n\xff\xfe\n")
    with pytest.raises(PersistenceFailure):
        file_ledger.list()
    with pytest.raises(PersistenceFailure):
        file_ledger.record("php8.1-fpm")
    with pytest.raises(PersistenceFailure):
        file_ledger.remove("php7.4-fpm")


def test_existing_state_dir_keeps_its_mode(tmp_path):
    shared = tmp_path / "shared"
    shared.mkdir()
    shared.chmod(0o755)
    ledger = FileLedger(shared / "disabled-php-fpm-services.txt")

    ledger.record("php8.1-fpm")
    ledger.remove("php8.1-fpm")

    assert mode_of(shared) == 0o755
    assert mode_of(ledger.path) == 0o600
