"""Phase runner for a complete maintenance pass."""

import time
from typing import Optional

from . import host
from .commands import Runner, run_command
from .config import Config
from .flow import PhpFpmManager
from .log import get_logger
from .ui import Prompter, console, print_section


class ServerMaintenance:
    """Runs preflight, apt maintenance, hardening, PHP-FPM management and reboot."""

    def __init__(
        self,
        config: Config,
        prompter: Optional[Prompter] = None,
        runner: Optional[Runner] = None,
        php_manager: Optional[PhpFpmManager] = None,
    ):
        self.config = config
        self.prompter = prompter or Prompter(config)
        self.runner = runner or run_command
        self.php_manager = php_manager or PhpFpmManager.from_config(
            config, self.prompter, self.runner
        )
        self.logger = get_logger()
        self.start_time = time.time()

    def phase_preflight(self) -> None:
        print_section("Pre-flight Checks")
        host.require_root()
        host.validate_host()

    def phase_system_update(self) -> None:
        print_section("System Update & Upgrade")
        host.apt_update_upgrade(self.runner)

    def phase_security(self) -> None:
        if not self.config.apply_security:
            self.logger.info("Security steps skipped (APPLY_SECURITY=0).")
            return
        print_section("Security Hardening")
        host.improve_security(self.prompter, self.runner)

    def phase_php(self) -> None:
        if not self.config.manage_php:
            self.logger.info("PHP management skipped (MANAGE_PHP=0).")
            return
        if self.prompter.confirm(
            "Do you want to manage PHP-FPM services (disable/re-enable)?", default=False
        ):
            self.php_manager.run_menu()
        else:
            self.logger.info("Skipping PHP management.")

    def run(self) -> int:
        """
        Execute every phase in order.

        Fatal errors propagate to the caller; everything else is contained
        inside the phase that raised it.

        Returns:
            Process exit code (0 on normal completion, including a declined reboot)
        """
        self.logger.info("Starting server maintenance...")
        self.phase_preflight()
        self.phase_system_update()
        self.phase_security()
        self.phase_php()

        elapsed = time.time() - self.start_time
        self.logger.info(f"Server maintenance completed in {elapsed:.1f}s.")
        console.print()
        host.maybe_reboot(self.prompter, self.runner)
        return 0
