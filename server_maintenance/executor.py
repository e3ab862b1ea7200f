"""
Applies disable/enable actions to PHP-FPM units and keeps the ledger in step.

Service manager calls are best-effort: a failed stop or disable is logged and
the ledger is still updated, because the ledger records what this tool set
out to do. The ledger write is always the last step for a unit, so an
interrupted batch leaves at most one unit in doubt.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .errors import PersistenceFailure
from .inventory import ServiceCallResult, ServiceInventory
from .ledger import Ledger
from .log import get_logger

DISABLED = "disabled"
ENABLED = "enabled"
SKIPPED = "skipped"
STALE = "stale"
FAILED = "failed"


@dataclass
class UnitOutcome:
    """What happened to a single unit during a batch."""

    unit: str
    action: str
    status: str
    calls: List[ServiceCallResult] = field(default_factory=list)
    ledger_updated: bool = False
    error: Optional[str] = None


class LifecycleExecutor:
    def __init__(self, manager, inventory: ServiceInventory, ledger: Ledger):
        self.manager = manager
        self.inventory = inventory
        self.ledger = ledger
        self.logger = get_logger()

    def _attempt(self, outcome: UnitOutcome, call) -> None:
        result = call(outcome.unit)
        outcome.calls.append(result)
        if not result.ok:
            self.logger.warning(
                f"systemctl {result.action} {outcome.unit}.service failed: {result.detail}"
            )

    def disable(self, unit: str) -> UnitOutcome:
        """Stop and disable ``unit``, then record it in the ledger."""
        outcome = UnitOutcome(unit=unit, action="disable", status=DISABLED)

        if not self.inventory.exists(unit):
            self.logger.info(f"PHP-FPM service {unit}.service not found (skipping).")
            outcome.status = SKIPPED
            return outcome

        self.logger.info(f"About to stop/disable {unit}.service")
        self._attempt(outcome, self.manager.stop)
        self._attempt(outcome, self.manager.disable)

        try:
            self.ledger.record(unit)
        except PersistenceFailure as e:
            self.logger.error(f"{unit}.service: {e}")
            outcome.status = FAILED
            outcome.error = str(e)
            return outcome

        outcome.ledger_updated = True
        self.logger.info(f"{unit}.service disabled and recorded.")
        return outcome

    def enable(self, unit: str) -> UnitOutcome:
        """Enable and start ``unit``, then drop its ledger entry."""
        outcome = UnitOutcome(unit=unit, action="enable", status=ENABLED)

        if not self.inventory.exists(unit):
            self.logger.info(
                f"PHP-FPM service {unit}.service not found; removing stale record."
            )
            outcome.status = STALE
        else:
            self.logger.info(f"Re-enabling {unit}.service")
            self._attempt(outcome, self.manager.enable)
            self._attempt(outcome, self.manager.start)

        try:
            self.ledger.remove(unit)
        except PersistenceFailure as e:
            self.logger.error(f"{unit}.service: {e}")
            outcome.status = FAILED
            outcome.error = str(e)
            return outcome

        outcome.ledger_updated = True
        if outcome.status == ENABLED:
            self.logger.info(f"{unit}.service enabled and started.")
        return outcome

    def disable_units(self, units: Sequence[str]) -> List[UnitOutcome]:
        return [self.disable(unit) for unit in units]

    def enable_units(self, units: Sequence[str]) -> List[UnitOutcome]:
        return [self.enable(unit) for unit in units]
