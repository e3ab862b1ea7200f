"""
Command line entry point.

Usage:
  Run with root privileges:
      sudo server-maintenance
      sudo NONINTERACTIVE=1 server-maintenance --skip-php
"""

import signal
import sys

import click
from rich.panel import Panel

from . import APP_NAME, VERSION
from .config import Config
from .errors import FatalError
from .log import get_logger, setup_logger
from .maintenance import ServerMaintenance
from .ui import NordColors, console, create_header


def signal_handler(signum, frame) -> None:
    """Log the interrupting signal and exit with the conventional code."""
    sig_name = signal.Signals(signum).name
    get_logger().error(f"Maintenance interrupted by {sig_name}.")
    sys.exit(128 + signum)


@click.command()
@click.option("--non-interactive", is_flag=True, help="Suppress prompts and use safe defaults (also NONINTERACTIVE=1).")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Answer yes to every prompt. Dangerous (also ASSUME_YES=1).")
@click.option("--skip-security", is_flag=True, help="Skip unattended-upgrades, UFW and fail2ban (also APPLY_SECURITY=0).")
@click.option("--skip-php", is_flag=True, help="Skip PHP-FPM management (also MANAGE_PHP=0).")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Log file path.")
@click.option("--state-dir", type=click.Path(file_okay=False), default=None, help="Directory holding the disabled-services ledger.")
@click.option("--debug", is_flag=True, help="Show debug messages on the console.")
@click.version_option(VERSION, prog_name=APP_NAME)
def main(
    non_interactive: bool,
    assume_yes: bool,
    skip_security: bool,
    skip_php: bool,
    log_file,
    state_dir,
    debug: bool,
) -> None:
    """Safe apt maintenance and guarded PHP-FPM service management."""
    config = Config.from_environ().with_overrides(
        non_interactive=non_interactive,
        assume_yes=assume_yes,
        skip_security=skip_security,
        skip_php=skip_php,
        debug=debug,
        log_file=log_file,
        state_dir=state_dir,
    )

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    console.print(create_header(APP_NAME))
    logger = setup_logger(config.log_file, config.debug)
    if config.assume_yes:
        logger.warning("ASSUME_YES is set: every confirmation will be answered yes.")

    try:
        code = ServerMaintenance(config).run()
    except FatalError as e:
        logger.error(f"ERROR: {e}")
        console.print(
            Panel(f"[bold {NordColors.RED}]{e}[/]", border_style=NordColors.RED)
        )
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Maintenance failed: {e}")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
