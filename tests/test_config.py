"""Tests for environment/flag configuration."""

from pathlib import Path

import pytest

from server_maintenance.config import DEFAULT_STATE_DIR, Config, env_flag


def test_defaults():
    config = Config.from_environ({})
    assert not config.non_interactive
    assert not config.assume_yes
    assert config.apply_security
    assert config.manage_php
    assert config.ledger_file == Path(DEFAULT_STATE_DIR) / "disabled-php-fpm-services.txt"


def test_reads_environment_flags():
    config = Config.from_environ(
        {
            "NONINTERACTIVE": "1",
            "ASSUME_YES": "yes",
            "APPLY_SECURITY": "0",
            "MANAGE_PHP": "false",
            "MAINTENANCE_STATE_DIR": "/tmp/state",
        }
    )
    assert config.non_interactive
    assert config.assume_yes
    assert not config.apply_security
    assert not config.manage_php
    assert config.ledger_file == Path("/tmp/state/disabled-php-fpm-services.txt")


@pytest.mark.parametrize(
    "raw, expected",
    [("1", True), ("TRUE", True), (" on ", True), ("0", False), ("", False), ("maybe", True)],
)
def test_env_flag_parsing(raw, expected):
    assert env_flag({"X": raw}, "X", True) is expected


def test_overrides_only_switch_on():
    base = Config.from_environ({"NONINTERACTIVE": "1"})
    config = base.with_overrides(skip_php=True, log_file="/tmp/m.log")
    assert config.non_interactive
    assert not config.manage_php
    assert config.apply_security
    assert config.log_file == Path("/tmp/m.log")
    assert base.manage_php


def test_config_is_frozen():
    with pytest.raises(Exception):
        Config().assume_yes = True
