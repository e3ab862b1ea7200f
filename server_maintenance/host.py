"""
Host-level collaborators: privilege and OS checks, apt maintenance, security
hardening (unattended-upgrades, UFW, fail2ban) and the reboot prompt.

These are straight-line shell-outs. Install and upgrade failures raise
``PackageManagerError``; enabling services is best-effort.
"""

import os
import shutil
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from rich.progress import Progress, SpinnerColumn, TextColumn

from .commands import Runner, run_command
from .errors import (
    PackageManagerError,
    PrivilegeError,
    ServiceManagerCallFailure,
    UnsupportedHostError,
)
from .log import get_logger
from .ui import NordColors, Prompter, console, print_warning

OS_RELEASE = Path("/etc/os-release")
DEBIAN_VERSION = Path("/etc/debian_version")
AUTO_UPGRADES_FILE = Path("/etc/apt/apt.conf.d/20auto-upgrades")

APT_ENV: Dict[str, str] = {"DEBIAN_FRONTEND": "noninteractive"}

APT_STEPS = [
    ("Updating package lists", ["apt-get", "update", "-y"]),
    ("Upgrading installed packages", ["apt-get", "upgrade", "-y"]),
    ("Performing distribution upgrade", ["apt-get", "dist-upgrade", "-y"]),
    ("Removing unused packages", ["apt-get", "autoremove", "-y"]),
    ("Cleaning up package cache", ["apt-get", "autoclean", "-y"]),
]

AUTO_UPGRADES_CONTENT = (
    'APT::Periodic::Update-Package-Lists "1";\n'
    'APT::Periodic::Unattended-Upgrade "1";\n'
)


# ----------------------------------------------------------------
# Pre-flight checks
# ----------------------------------------------------------------
def require_root(geteuid: Callable[[], int] = os.geteuid) -> None:
    if geteuid() != 0:
        raise PrivilegeError(
            "This tool must be run as root. Use: sudo server-maintenance"
        )


def read_os_release(path: Union[str, Path] = OS_RELEASE) -> Dict[str, str]:
    """Parse ``/etc/os-release`` into a dict; missing file gives an empty dict."""
    values: Dict[str, str] = {}
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError:
        return values
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        values[key.strip()] = value.strip().strip('"').strip("'")
    return values


def is_apt_based(
    debian_version: Union[str, Path] = DEBIAN_VERSION,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> bool:
    return which("apt-get") is not None and Path(debian_version).is_file()


def validate_host(
    os_release: Union[str, Path] = OS_RELEASE,
    debian_version: Union[str, Path] = DEBIAN_VERSION,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> Dict[str, str]:
    """
    Log the detected distribution and refuse anything outside the apt family.

    Specific releases are not enforced; being apt-based is the supported
    boundary.

    Raises:
        UnsupportedHostError: If apt-get or /etc/debian_version is missing
    """
    info = read_os_release(os_release)
    pretty = info.get("PRETTY_NAME", "unknown")
    get_logger().info(
        f"Detected OS: {pretty} (ID={info.get('ID', 'unknown')}, "
        f"VERSION_ID={info.get('VERSION_ID', 'unknown')}, "
        f"ID_LIKE={info.get('ID_LIKE', 'unknown')})"
    )
    if not is_apt_based(debian_version, which):
        raise UnsupportedHostError(
            "Unsupported system: non-apt distribution detected. "
            "Only apt-based distributions (Debian/Ubuntu family) are supported."
        )
    return info


# ----------------------------------------------------------------
# APT maintenance
# ----------------------------------------------------------------
def _apt(runner: Runner, cmd: List[str]) -> None:
    try:
        runner(cmd, check=True, env=APT_ENV)
    except ServiceManagerCallFailure as e:
        raise PackageManagerError(str(e)) from e


def apt_update_upgrade(runner: Optional[Runner] = None) -> None:
    """Run the update/upgrade/cleanup sequence, stopping at the first failure."""
    runner = runner or run_command
    logger = get_logger()
    with Progress(
        SpinnerColumn(style=f"bold {NordColors.FROST_1}"),
        TextColumn(f"[bold {NordColors.FROST_2}]{{task.description}}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("APT maintenance", total=None)
        for description, cmd in APT_STEPS:
            logger.info(f"{description}...")
            progress.update(task, description=description)
            _apt(runner, cmd)


def install_packages(packages: List[str], runner: Optional[Runner] = None) -> None:
    runner = runner or run_command
    get_logger().info(f"Installing packages: {' '.join(packages)}")
    _apt(runner, ["apt-get", "install", "-y"] + list(packages))


def _best_effort(runner: Runner, cmd: List[str]) -> bool:
    try:
        runner(cmd, check=True)
        return True
    except ServiceManagerCallFailure as e:
        get_logger().warning(str(e))
        return False


# ----------------------------------------------------------------
# Security hardening
# ----------------------------------------------------------------
def setup_unattended_upgrades(
    runner: Optional[Runner] = None, auto_upgrades_file: Path = AUTO_UPGRADES_FILE
) -> None:
    runner = runner or run_command
    logger = get_logger()
    logger.info("Configuring unattended-upgrades...")
    install_packages(["unattended-upgrades"], runner)
    try:
        Path(auto_upgrades_file).write_text(AUTO_UPGRADES_CONTENT, encoding="utf-8")
    except OSError as e:
        raise PackageManagerError(f"Cannot write {auto_upgrades_file}: {e}") from e
    _best_effort(runner, ["systemctl", "enable", "--now", "unattended-upgrades"])
    logger.info("Unattended-upgrades enabled.")


def setup_ufw(prompter: Prompter, runner: Optional[Runner] = None) -> bool:
    """
    Install UFW, allow SSH, and enable the firewall only after confirmation.

    Returns:
        True if UFW is active when this returns
    """
    runner = runner or run_command
    logger = get_logger()
    logger.info("Configuring UFW...")
    install_packages(["ufw"], runner)

    if not _best_effort(runner, ["ufw", "allow", "OpenSSH"]):
        _best_effort(runner, ["ufw", "allow", "ssh"])

    status = runner(["ufw", "status"], check=False)
    if "status: active" in status.stdout.lower():
        logger.info("UFW already active. Skipping enable.")
        return True

    logger.warning(
        "Enabling UFW on remote servers can lock you out if SSH rules are incorrect."
    )
    if not prompter.confirm("Enable UFW firewall now?", default=False):
        logger.info("UFW enable skipped.")
        return False
    if _best_effort(runner, ["ufw", "--force", "enable"]):
        logger.info("UFW enabled.")
        return True
    print_warning("UFW could not be enabled; check the log for details.")
    return False


def setup_fail2ban(runner: Optional[Runner] = None) -> None:
    runner = runner or run_command
    logger = get_logger()
    logger.info("Installing and enabling fail2ban...")
    install_packages(["fail2ban"], runner)
    _best_effort(runner, ["systemctl", "enable", "--now", "fail2ban"])
    logger.info("fail2ban enabled.")


def improve_security(prompter: Prompter, runner: Optional[Runner] = None) -> None:
    logger = get_logger()
    logger.info("Starting security hardening steps...")
    setup_unattended_upgrades(runner)
    setup_ufw(prompter, runner)
    setup_fail2ban(runner)
    logger.info("Security hardening steps completed.")


# ----------------------------------------------------------------
# Reboot
# ----------------------------------------------------------------
def maybe_reboot(prompter: Prompter, runner: Optional[Runner] = None) -> bool:
    """Offer a reboot; declining is a normal outcome."""
    runner = runner or run_command
    logger = get_logger()
    if not prompter.confirm("Maintenance completed. Reboot the server now?", default=False):
        logger.info("Exiting without reboot.")
        return False
    logger.info("Rebooting...")
    return _best_effort(runner, ["reboot"])
