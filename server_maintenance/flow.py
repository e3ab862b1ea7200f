"""
Interactive PHP-FPM management: the menu plus the disable and re-enable flows.

Both flows walk the same states::

    IDLE -> LISTING -> AWAITING_SELECTION -> PENDING_GUARDRAIL_CHECK
         -> AWAITING_FINAL_CONFIRMATION -> EXECUTING -> DONE

``REFUSED`` is reachable from the guardrail check (disable path only) and
``CANCELLED`` from either confirmation. Every transition is logged.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from rich.panel import Panel

from .config import Config
from .errors import PersistenceFailure
from .executor import LifecycleExecutor, UnitOutcome
from .guardrail import Refused, validate_disable_request
from .inventory import ServiceInventory, SystemctlServiceManager
from .ledger import FileLedger, Ledger
from .log import get_logger
from .selection import parse_selection
from .ui import (
    NordColors,
    Prompter,
    console,
    display_panel,
    display_units_table,
    print_error,
    print_section,
    print_success,
    print_warning,
)


class FlowState(Enum):
    IDLE = "idle"
    LISTING = "listing"
    AWAITING_SELECTION = "awaiting selection"
    PENDING_GUARDRAIL_CHECK = "pending guardrail check"
    AWAITING_FINAL_CONFIRMATION = "awaiting final confirmation"
    EXECUTING = "executing"
    DONE = "done"
    REFUSED = "refused"
    CANCELLED = "cancelled"


@dataclass
class FlowResult:
    """Terminal state of a flow and what it did."""

    state: FlowState
    units: List[str] = field(default_factory=list)
    outcomes: List[UnitOutcome] = field(default_factory=list)
    reason: str = ""


DISABLE_WARNING = (
    "Disabling PHP-FPM services can break web applications, CloudPanel sites,\n"
    "and management components that rely on PHP.\n"
    "Disabling all PHP-FPM services may effectively take your server's web stack offline."
)

REFUSAL_MESSAGE = (
    "You selected all detected PHP-FPM services.\n"
    "Disabling all PHP-FPM services can take your server offline (CloudPanel + websites).\n"
    "Please leave at least one PHP-FPM service enabled."
)

MENU_OPTIONS = [
    ("1", "Disable selected PHP-FPM services (SAFE: cannot disable all)"),
    ("2", "Re-enable PHP-FPM services disabled by this tool"),
    ("3", "Show detected PHP-FPM services"),
    ("4", "Back / Skip"),
]


class PhpFpmManager:
    """Drives PHP-FPM disable/re-enable requests from listing to execution."""

    def __init__(
        self,
        config: Config,
        prompter: Prompter,
        inventory: ServiceInventory,
        ledger: Ledger,
        executor: LifecycleExecutor,
    ):
        self.config = config
        self.prompter = prompter
        self.inventory = inventory
        self.ledger = ledger
        self.executor = executor
        self.logger = get_logger()
        self.state = FlowState.IDLE

    @classmethod
    def from_config(cls, config: Config, prompter: Optional[Prompter] = None, runner=None):
        """Wire the systemd backend and the file ledger for a real run."""
        manager = SystemctlServiceManager(runner)
        inventory = ServiceInventory(manager)
        ledger = FileLedger(config.ledger_file)
        executor = LifecycleExecutor(manager, inventory, ledger)
        return cls(config, prompter or Prompter(config), inventory, ledger, executor)

    # ----------------------------------------------------------------
    # State bookkeeping
    # ----------------------------------------------------------------
    def _transition(self, flow: str, state: FlowState) -> None:
        self.logger.debug(f"PHP-FPM {flow}: {self.state.value} -> {state.value}")
        self.state = state

    def _finish(self, flow: str, state: FlowState, **kwargs) -> FlowResult:
        self._transition(flow, state)
        result = FlowResult(state=state, **kwargs)
        self.state = FlowState.IDLE
        return result

    def _log_invalid(self, selection) -> None:
        for error in selection.invalid:
            self.logger.warning(f"{error} (skipping).")

    # ----------------------------------------------------------------
    # Menu
    # ----------------------------------------------------------------
    def run_menu(self) -> Optional[FlowResult]:
        """Show the PHP-FPM menu once and run the chosen action."""
        if self.config.non_interactive:
            self.logger.info("Non-interactive mode; skipping PHP management menu.")
            return None

        try:
            self.ledger.initialize()
        except PersistenceFailure as e:
            self.logger.error(str(e))

        print_section("PHP-FPM Management")
        for key, label in MENU_OPTIONS:
            console.print(f"[bold]{key})[/] {label}")
        console.print()

        choice = self.prompter.text("Choose an option:", "4").strip()
        if choice == "1":
            return self.disable_selected()
        if choice == "2":
            return self.reenable()
        if choice == "3":
            self.show_detected()
            return None
        self.logger.info("Skipping PHP management.")
        return None

    def show_detected(self) -> List[str]:
        units = self.inventory.list_installed()
        if units:
            display_units_table("Detected PHP-FPM services", units)
        else:
            print_warning("No php*-fpm systemd services detected.")
        return units

    # ----------------------------------------------------------------
    # Disable path
    # ----------------------------------------------------------------
    def disable_selected(self) -> FlowResult:
        """
        Let the operator disable some, but never all, PHP-FPM units.

        Only enabled units are listed, and only once: the numbers the operator
        types resolve against that snapshot and the guardrail counts it too.
        """
        flow = "disable"
        self._transition(flow, FlowState.LISTING)
        snapshot = self.inventory.list_enabled()
        if not snapshot:
            self.logger.info("No enabled php*-fpm systemd services detected.")
            return self._finish(flow, FlowState.DONE)

        display_units_table("Enabled PHP-FPM services on this server", snapshot)
        display_panel("IMPORTANT WARNING", DISABLE_WARNING, NordColors.YELLOW)

        self._transition(flow, FlowState.AWAITING_SELECTION)
        if not self.prompter.confirm(
            "Proceed to disable ONE OR MORE PHP-FPM services?", default=False
        ):
            self.logger.info("User declined PHP-FPM disable operation.")
            return self._finish(flow, FlowState.CANCELLED)

        if self.config.non_interactive:
            self.logger.info(
                "Non-interactive mode; refusing to disable PHP-FPM services automatically."
            )
            return self._finish(flow, FlowState.DONE)

        raw = self.prompter.text("Enter numbers to disable (comma-separated), e.g., 1,3:")
        if not raw.strip():
            self.logger.info("No selection provided. Skipping.")
            return self._finish(flow, FlowState.DONE)

        selection = parse_selection(raw, snapshot)
        self._log_invalid(selection)
        if not selection.units:
            self.logger.info("No valid PHP-FPM selections.")
            return self._finish(flow, FlowState.DONE)

        self._transition(flow, FlowState.PENDING_GUARDRAIL_CHECK)
        decision = validate_disable_request(snapshot, selection.units)
        for name in decision.dropped:
            self.logger.warning(f"{name} is not an installed PHP-FPM service (skipping).")
        if isinstance(decision, Refused):
            self.logger.warning(f"REFUSED: {decision.reason}")
            console.print(
                Panel(
                    f"[bold {NordColors.RED}]REFUSED:[/] {REFUSAL_MESSAGE}",
                    border_style=NordColors.RED,
                )
            )
            return self._finish(flow, FlowState.REFUSED, reason=decision.reason)

        self._transition(flow, FlowState.AWAITING_FINAL_CONFIRMATION)
        print_section("Final confirmation")
        for unit in decision.units:
            console.print(f"  - Will disable: [bold]{unit}[/]")
        if not self.prompter.confirm(
            "Confirm disable of the above PHP-FPM services?", default=False
        ):
            self.logger.info("User canceled at final confirmation.")
            return self._finish(flow, FlowState.CANCELLED, units=decision.units)

        self._transition(flow, FlowState.EXECUTING)
        outcomes = self.executor.disable_units(decision.units)
        self._report(outcomes)
        return self._finish(flow, FlowState.DONE, units=decision.units, outcomes=outcomes)

    # ----------------------------------------------------------------
    # Re-enable path
    # ----------------------------------------------------------------
    def reenable(self) -> FlowResult:
        """Re-enable units this tool disabled earlier; no guardrail applies."""
        flow = "re-enable"
        self._transition(flow, FlowState.LISTING)
        try:
            snapshot = self.ledger.list()
        except PersistenceFailure as e:
            self.logger.error(str(e))
            return self._finish(flow, FlowState.DONE, reason=str(e))

        if not snapshot:
            ledger_path = getattr(self.ledger, "path", "the ledger")
            self.logger.info(
                f"No previously disabled PHP-FPM services recorded at {ledger_path}."
            )
            display_panel(
                "Nothing to re-enable",
                "No disabled PHP-FPM services recorded by this tool.\n"
                "If you disabled PHP-FPM elsewhere, use: "
                "systemctl list-unit-files | grep php.*-fpm",
            )
            return self._finish(flow, FlowState.DONE)

        display_units_table(
            "PHP-FPM services previously disabled by this tool",
            snapshot,
            extra_rows=[("A", "Re-enable ALL listed above")],
        )

        self._transition(flow, FlowState.AWAITING_SELECTION)
        if self.config.non_interactive:
            self.logger.info("Non-interactive mode; skipping re-enable menu.")
            return self._finish(flow, FlowState.DONE)

        raw = self.prompter.text(
            "Choose number(s) to re-enable (comma-separated) or 'A' for all:"
        )
        if not raw.strip():
            self.logger.info("No selection provided. Skipping.")
            return self._finish(flow, FlowState.DONE)

        selection = parse_selection(raw, snapshot, allow_all=True)
        self._log_invalid(selection)
        units = list(dict.fromkeys(selection.units))
        if not units:
            self.logger.info("No valid selections for re-enable.")
            return self._finish(flow, FlowState.DONE)

        self._transition(flow, FlowState.PENDING_GUARDRAIL_CHECK)
        self._transition(flow, FlowState.AWAITING_FINAL_CONFIRMATION)
        if selection.select_all:
            question = "Confirm re-enable ALL recorded PHP-FPM services?"
        else:
            print_section("Will re-enable")
            for unit in units:
                console.print(f"  - [bold]{unit}[/]")
            question = "Confirm re-enable selected services?"
        if not self.prompter.confirm(question, default=False):
            self.logger.info("User canceled re-enable.")
            return self._finish(flow, FlowState.CANCELLED, units=units)

        self._transition(flow, FlowState.EXECUTING)
        outcomes = self.executor.enable_units(units)
        self._report(outcomes)
        return self._finish(flow, FlowState.DONE, units=units, outcomes=outcomes)

    def _report(self, outcomes: List[UnitOutcome]) -> None:
        for outcome in outcomes:
            failed_calls = [c.action for c in outcome.calls if not c.ok]
            if outcome.error:
                print_error(f"{outcome.unit}: {outcome.error}")
            elif failed_calls:
                print_warning(
                    f"{outcome.unit}: {outcome.status} (systemctl {', '.join(failed_calls)} failed)"
                )
            else:
                print_success(f"{outcome.unit}: {outcome.status}")
