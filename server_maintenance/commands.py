"""Thin subprocess wrapper shared by the service manager and host collaborators."""

import os
import subprocess
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional

from .errors import ServiceManagerCallFailure
from .log import get_logger


@dataclass
class CommandResult:
    """Outcome of an external command."""

    cmd: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


Runner = Callable[..., CommandResult]


def run_command(
    cmd: List[str],
    check: bool = True,
    env: Optional[Mapping[str, str]] = None,
) -> CommandResult:
    """
    Execute a command, capturing its output.

    Args:
        cmd: Command as a list of strings
        check: Raise ServiceManagerCallFailure on a non-zero exit code
        env: Extra environment variables for the child process

    Returns:
        CommandResult with the captured output

    Raises:
        ServiceManagerCallFailure: If the command cannot be started, or exits
            non-zero while ``check`` is set
    """
    logger = get_logger()
    logger.debug(f"Executing: {' '.join(cmd)}")

    child_env = None
    if env:
        child_env = os.environ.copy()
        child_env.update(env)

    try:
        proc = subprocess.run(
            cmd, capture_output=True, text=True, check=False, env=child_env
        )
    except OSError as e:
        raise ServiceManagerCallFailure(cmd, detail=str(e)) from e

    result = CommandResult(
        cmd=list(cmd),
        returncode=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )
    if result.stdout.strip():
        logger.debug(result.stdout.rstrip())
    if check and not result.ok:
        raise ServiceManagerCallFailure(cmd, result.returncode, result.stderr.strip())
    return result
