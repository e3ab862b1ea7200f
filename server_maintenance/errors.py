"""Exception hierarchy used across the maintenance run."""


class MaintenanceError(Exception):
    """Base class for every error raised by this package."""


class FatalError(MaintenanceError):
    """An error that aborts the whole run with a non-zero exit code."""


class PrivilegeError(FatalError):
    """The tool was started without root privileges."""


class UnsupportedHostError(FatalError):
    """The host is not an apt-based (Debian/Ubuntu family) system."""


class PackageManagerError(FatalError):
    """An apt step failed during maintenance or hardening."""


class PersistenceFailure(MaintenanceError):
    """The disabled-services ledger could not be read or written."""


class InvalidSelection(MaintenanceError):
    """A selection token does not map to a listed entry."""

    def __init__(self, token: str, reason: str = "not a listed number"):
        self.token = token
        self.reason = reason
        super().__init__(f"Invalid selection '{token}' ({reason})")


class ServiceManagerCallFailure(MaintenanceError):
    """A service manager or other external command exited unsuccessfully."""

    def __init__(self, cmd, returncode=None, detail: str = ""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.detail = detail
        message = f"Command failed: {' '.join(self.cmd)}"
        if returncode is not None:
            message += f" (exit code {returncode})"
        if detail:
            message += f": {detail}"
        super().__init__(message)
