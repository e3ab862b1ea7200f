"""Shared fakes and fixtures for the PHP-FPM management tests."""

from typing import Dict, List, Optional

import pytest

from server_maintenance.commands import CommandResult
from server_maintenance.config import Config
from server_maintenance.errors import PersistenceFailure, ServiceManagerCallFailure
from server_maintenance.executor import LifecycleExecutor
from server_maintenance.flow import PhpFpmManager
from server_maintenance.inventory import ServiceCallResult, ServiceInventory, version_sorted
from server_maintenance.ledger import Ledger
from server_maintenance.ui import Prompter


class FakeServiceManager:
    """In-memory systemd stand-in that records every action."""

    def __init__(self, units: Optional[List[str]] = None, failing: Optional[set] = None):
        self.states: Dict[str, str] = {unit: "enabled" for unit in units or []}
        self.failing = set(failing or ())
        self.calls: List[tuple] = []

    def unit_files(self) -> Dict[str, str]:
        return {f"{unit}.service": state for unit, state in self.states.items()}

    def _call(self, action: str, unit: str) -> ServiceCallResult:
        self.calls.append((action, unit))
        ok = action not in self.failing
        if ok and action in ("enable", "disable"):
            self.states[unit] = f"{action}d"
        return ServiceCallResult(unit=unit, action=action, ok=ok, detail="" if ok else "boom")

    def stop(self, unit):
        return self._call("stop", unit)

    def disable(self, unit):
        return self._call("disable", unit)

    def enable(self, unit):
        return self._call("enable", unit)

    def start(self, unit):
        return self._call("start", unit)


class MemoryLedger(Ledger):
    def __init__(self, names=()):
        self.names: List[str] = list(names)
        self.writes = 0
        self.fail_on: set = set()

    def initialize(self) -> None:
        pass

    def list(self) -> List[str]:
        return version_sorted(self.names)

    def record(self, name: str) -> None:
        if name in self.fail_on:
            raise PersistenceFailure(f"cannot write {name}")
        self.writes += 1
        if name not in self.names:
            self.names.append(name)

    def remove(self, name: str) -> None:
        if name in self.fail_on:
            raise PersistenceFailure(f"cannot write {name}")
        self.writes += 1
        self.names = [n for n in self.names if n != name]


class ScriptedPrompter(Prompter):
    """Prompter that answers from queues instead of reading the terminal."""

    def __init__(self, config: Config, texts=(), confirms=()):
        super().__init__(config)
        self.texts = list(texts)
        self.confirms = list(confirms)
        self.asked: List[str] = []

    def _ask_confirm(self, message: str, default: bool) -> bool:
        self.asked.append(message)
        return self.confirms.pop(0) if self.confirms else default

    def _ask_text(self, message: str, default: str) -> str:
        self.asked.append(message)
        return self.texts.pop(0) if self.texts else default


class FakeRunner:
    """Records commands and returns canned results keyed by command prefix."""

    def __init__(self, responses: Optional[Dict[tuple, tuple]] = None):
        self.responses = responses or {}
        self.commands: List[List[str]] = []

    def __call__(self, cmd, check=True, env=None):
        self.commands.append(list(cmd))
        returncode, stdout = 0, ""
        for prefix, response in self.responses.items():
            if tuple(cmd[: len(prefix)]) == prefix:
                returncode, stdout = response
                break
        result = CommandResult(cmd=list(cmd), returncode=returncode, stdout=stdout)
        if check and returncode != 0:
            raise ServiceManagerCallFailure(cmd, returncode, "failed")
        return result


PHP_UNITS = ["php7.4-fpm", "php8.1-fpm", "php8.2-fpm"]


@pytest.fixture
def manager():
    return FakeServiceManager(PHP_UNITS)


@pytest.fixture
def ledger():
    return MemoryLedger()


@pytest.fixture
def executor(manager, ledger):
    return LifecycleExecutor(manager, ServiceInventory(manager), ledger)


def build_php_manager(config, service_manager, ledger, texts=(), confirms=()):
    prompter = ScriptedPrompter(config, texts=texts, confirms=confirms)
    inventory = ServiceInventory(service_manager)
    executor = LifecycleExecutor(service_manager, inventory, ledger)
    return PhpFpmManager(config, prompter, inventory, ledger, executor)


@pytest.fixture
def make_php_manager():
    return build_php_manager
