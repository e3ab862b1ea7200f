"""
PHP-FPM service inventory.

``SystemctlServiceManager`` is the only place that talks to systemd. Every
action returns a ``ServiceCallResult`` instead of raising, so callers log a
failure and carry on.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .commands import Runner, run_command
from .errors import ServiceManagerCallFailure
from .log import get_logger

PHP_FPM_UNIT_PATTERN = re.compile(r"^php[0-9]+\.[0-9]+-fpm$")
SERVICE_SUFFIX: str = ".service"
INACTIVE_STATES = {"disabled", "masked", "masked-runtime"}


def is_php_fpm_unit(name: str) -> bool:
    return bool(PHP_FPM_UNIT_PATTERN.match(name))


def version_key(name: str) -> Tuple:
    """Sort key equivalent to ``sort -V`` for unit names like ``php8.1-fpm``."""
    parts = re.split(r"(\d+)", name)
    return tuple((0, int(p)) if p.isdigit() else (1, p) for p in parts if p)


def version_sorted(names: Sequence[str]) -> List[str]:
    return sorted(set(names), key=version_key)


@dataclass
class ServiceCallResult:
    """Outcome of a single stop/disable/enable/start call."""

    unit: str
    action: str
    ok: bool
    detail: str = ""


class SystemctlServiceManager:
    """systemd backend; unit names are passed without the ``.service`` suffix."""

    def __init__(self, runner: Optional[Runner] = None):
        self.runner = runner or run_command
        self.logger = get_logger()

    def unit_files(self) -> Dict[str, str]:
        """Map every unit file known to systemd (with suffix) to its state."""
        try:
            result = self.runner(
                ["systemctl", "list-unit-files", "--no-legend", "--no-pager"],
                check=True,
            )
        except ServiceManagerCallFailure as e:
            self.logger.warning(f"Could not query systemd unit files: {e}")
            return {}
        states = {}
        for line in result.stdout.splitlines():
            fields = line.split()
            if fields:
                states[fields[0]] = fields[1] if len(fields) > 1 else ""
        return states

    def _call(self, action: str, unit: str) -> ServiceCallResult:
        try:
            self.runner(["systemctl", action, f"{unit}{SERVICE_SUFFIX}"], check=True)
        except ServiceManagerCallFailure as e:
            return ServiceCallResult(unit=unit, action=action, ok=False, detail=str(e))
        return ServiceCallResult(unit=unit, action=action, ok=True)

    def stop(self, unit: str) -> ServiceCallResult:
        return self._call("stop", unit)

    def disable(self, unit: str) -> ServiceCallResult:
        return self._call("disable", unit)

    def enable(self, unit: str) -> ServiceCallResult:
        return self._call("enable", unit)

    def start(self, unit: str) -> ServiceCallResult:
        return self._call("start", unit)


class ServiceInventory:
    """Read-only view of the PHP-FPM units the service manager knows about."""

    def __init__(self, manager):
        self.manager = manager

    def _php_units(self) -> Dict[str, str]:
        units = {}
        for name, state in self.manager.unit_files().items():
            if not name.endswith(SERVICE_SUFFIX):
                continue
            base = name[: -len(SERVICE_SUFFIX)]
            if is_php_fpm_unit(base):
                units[base] = state
        return units

    def list_installed(self) -> List[str]:
        """
        List installed PHP-FPM units.

        Returns:
            Base unit names (no ``.service`` suffix) in version order; an empty
            list when none are installed
        """
        return version_sorted(list(self._php_units()))

    def list_enabled(self) -> List[str]:
        """
        List installed PHP-FPM units that are not disabled or masked.

        These are the units the not-all-disabled guardrail counts.
        """
        units = self._php_units()
        return version_sorted([n for n, s in units.items() if s not in INACTIVE_STATES])

    def exists(self, name: str) -> bool:
        """True if systemd knows ``name``, enabled or not."""
        return f"{name}{SERVICE_SUFFIX}" in self.manager.unit_files()
