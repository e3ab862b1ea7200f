"""
Guardrail for disable requests.

At least one PHP-FPM unit must stay enabled. The check is a pure function of
the live inventory and the requested names: it performs no I/O and has no
override.
"""

from dataclasses import dataclass, field
from typing import List, Sequence, Union


@dataclass(frozen=True)
class Approved:
    units: List[str]
    dropped: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Refused:
    reason: str
    dropped: List[str] = field(default_factory=list)


Decision = Union[Approved, Refused]

REASON_EMPTY = "Nothing selected to disable."
REASON_NO_VALID = "No valid PHP-FPM selections."
REASON_ALL = "Selection would disable ALL PHP-FPM services."


def _unique(names: Sequence[str]) -> List[str]:
    seen = set()
    unique = []
    for name in names:
        if name not in seen:
            seen.add(name)
            unique.append(name)
    return unique


def validate_disable_request(
    inventory: Sequence[str], requested: Sequence[str]
) -> Decision:
    """
    Approve or refuse a request to disable PHP-FPM units.

    Args:
        inventory: Units currently known to the service manager
        requested: Units the operator asked to disable, in selection order

    Returns:
        ``Approved`` with the valid, de-duplicated names in request order, or
        ``Refused`` with a human-readable reason. Both carry the names that
        were dropped because they are not in the inventory.
    """
    if not requested:
        return Refused(REASON_EMPTY)

    known = set(inventory)
    dropped = [name for name in _unique(requested) if name not in known]
    valid = [name for name in _unique(requested) if name in known]

    if not valid:
        return Refused(REASON_NO_VALID, dropped)
    if len(valid) >= len(known):
        return Refused(REASON_ALL, dropped)
    return Approved(valid, dropped)
