"""Tests for host collaborators: preflight, apt, hardening, reboot."""

import pytest
from conftest import FakeRunner, ScriptedPrompter

from server_maintenance import host
from server_maintenance.config import Config
from server_maintenance.errors import (
    PackageManagerError,
    PrivilegeError,
    UnsupportedHostError,
)

OS_RELEASE = 'PRETTY_NAME="Ubuntu 24.04 LTS"\nID=ubuntu\nVERSION_ID="24.04"\nID_LIKE=debian\n'


def test_require_root():
    host.require_root(lambda: 0)
    with pytest.raises(PrivilegeError):
        host.require_root(lambda: 1000)


def test_read_os_release(tmp_path):
    path = tmp_path / "os-release"
    path.write_text(OS_RELEASE + "# comment\n")
    info = host.read_os_release(path)
    assert info["PRETTY_NAME"] == "Ubuntu 24.04 LTS"
    assert info["VERSION_ID"] == "24.04"
    assert host.read_os_release(tmp_path / "missing") == {}


def test_validate_host_accepts_apt_family(tmp_path):
    os_release = tmp_path / "os-release"
    os_release.write_text(OS_RELEASE)
    debian_version = tmp_path / "debian_version"
    debian_version.write_text("trixie/sid\n")

    info = host.validate_host(os_release, debian_version, which=lambda cmd: "/usr/bin/apt-get")

    assert info["ID"] == "ubuntu"


def test_validate_host_rejects_non_apt(tmp_path):
    with pytest.raises(UnsupportedHostError):
        host.validate_host(tmp_path / "none", tmp_path / "none", which=lambda cmd: None)


def test_apt_sequence_runs_in_order_noninteractively():
    runner = FakeRunner()
    host.apt_update_upgrade(runner)
    assert [cmd[1] for cmd in runner.commands] == [
        "update",
        "upgrade",
        "dist-upgrade",
        "autoremove",
        "autoclean",
    ]


def test_apt_failure_is_fatal():
    runner = FakeRunner({("apt-get", "upgrade"): (100, "")})
    with pytest.raises(PackageManagerError):
        host.apt_update_upgrade(runner)
    assert runner.commands[-1][1] == "upgrade"


def test_unattended_upgrades_writes_periodic_config(tmp_path):
    runner = FakeRunner({("systemctl",): (1, "")})
    target = tmp_path / "20auto-upgrades"
    host.setup_unattended_upgrades(runner, target)
    assert 'APT::Periodic::Unattended-Upgrade "1";' in target.read_text()
    assert ["apt-get", "install", "-y", "unattended-upgrades"] in runner.commands


def test_ufw_already_active_is_left_alone():
    runner = FakeRunner({("ufw", "status"): (0, "Status: active\n")})
    prompter = ScriptedPrompter(Config(), confirms=[True])
    assert host.setup_ufw(prompter, runner)
    assert ["ufw", "--force", "enable"] not in runner.commands
    assert prompter.asked == []


def test_ufw_falls_back_to_ssh_rule_and_respects_decline():
    runner = FakeRunner({
        ("ufw", "allow", "OpenSSH"): (1, ""),
        ("ufw", "status"): (0, "Status: inactive\n"),
    })
    prompter = ScriptedPrompter(Config(), confirms=[False])
    assert not host.setup_ufw(prompter, runner)
    assert ["ufw", "allow", "ssh"] in runner.commands
    assert ["ufw", "--force", "enable"] not in runner.commands


def test_ufw_enabled_after_confirmation():
    runner = FakeRunner({("ufw", "status"): (0, "Status: inactive\n")})
    prompter = ScriptedPrompter(Config(), confirms=[True])
    assert host.setup_ufw(prompter, runner)
    assert ["ufw", "--force", "enable"] in runner.commands


def test_reboot_declined_by_default():
    runner = FakeRunner()
    assert not host.maybe_reboot(ScriptedPrompter(Config(non_interactive=True)), runner)
    assert runner.commands == []


def test_reboot_when_confirmed():
    runner = FakeRunner()
    assert host.maybe_reboot(ScriptedPrompter(Config(), confirms=[True]), runner)
    assert runner.commands == [["reboot"]]
