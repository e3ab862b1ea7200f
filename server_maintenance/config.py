"""
Runtime configuration.

Behaviour flags are read once from the environment, optionally overridden by
command line flags, and then passed around as a frozen ``Config``.
"""

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_LOG_FILE: str = "/var/log/server-maintenance.log"
DEFAULT_STATE_DIR: str = "/var/lib/server-maintenance"
LEDGER_FILE_NAME: str = "disabled-php-fpm-services.txt"

TRUTHY = {"1", "true", "yes", "on", "y"}
FALSY = {"0", "false", "no", "off", "n", ""}


def env_flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    """
    Interpret an environment variable as a boolean switch.

    Args:
        environ: Mapping to read from (usually ``os.environ``)
        name: Variable name
        default: Value used when the variable is unset or unrecognised

    Returns:
        The parsed flag value
    """
    raw = environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in TRUTHY:
        return True
    if value in FALSY:
        return False
    return default


@dataclass(frozen=True)
class Config:
    """Immutable settings for a single maintenance run."""

    non_interactive: bool = False
    assume_yes: bool = False
    apply_security: bool = True
    manage_php: bool = True
    debug: bool = False
    log_file: Path = field(default_factory=lambda: Path(DEFAULT_LOG_FILE))
    state_dir: Path = field(default_factory=lambda: Path(DEFAULT_STATE_DIR))

    @property
    def ledger_file(self) -> Path:
        return self.state_dir / LEDGER_FILE_NAME

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Build a configuration from ``NONINTERACTIVE``-style variables."""
        if environ is None:
            environ = os.environ
        return cls(
            non_interactive=env_flag(environ, "NONINTERACTIVE", False),
            assume_yes=env_flag(environ, "ASSUME_YES", False),
            apply_security=env_flag(environ, "APPLY_SECURITY", True),
            manage_php=env_flag(environ, "MANAGE_PHP", True),
            log_file=Path(environ.get("MAINTENANCE_LOG_FILE") or DEFAULT_LOG_FILE),
            state_dir=Path(environ.get("MAINTENANCE_STATE_DIR") or DEFAULT_STATE_DIR),
        )

    def with_overrides(
        self,
        non_interactive: bool = False,
        assume_yes: bool = False,
        skip_security: bool = False,
        skip_php: bool = False,
        debug: bool = False,
        log_file: Optional[str] = None,
        state_dir: Optional[str] = None,
    ) -> "Config":
        """
        Apply command line flags on top of this configuration.

        Flags can only switch behaviour on (or skip a phase); leaving a flag
        unset keeps whatever the environment asked for.
        """
        changes = {}
        if non_interactive:
            changes["non_interactive"] = True
        if assume_yes:
            changes["assume_yes"] = True
        if skip_security:
            changes["apply_security"] = False
        if skip_php:
            changes["manage_php"] = False
        if debug:
            changes["debug"] = True
        if log_file:
            changes["log_file"] = Path(log_file)
        if state_dir:
            changes["state_dir"] = Path(state_dir)
        return dataclasses.replace(self, **changes)
