"""Parse comma-separated menu numbers against the list that was displayed."""

import re
from dataclasses import dataclass, field
from typing import List, Sequence

from .errors import InvalidSelection

ALL_TOKENS = {"a", "all"}
INDEX_PATTERN = re.compile(r"[0-9]+")


@dataclass
class Selection:
    """Units picked from a snapshot, plus the tokens that were rejected."""

    units: List[str] = field(default_factory=list)
    invalid: List[InvalidSelection] = field(default_factory=list)
    select_all: bool = False


def resolve_token(token: str, snapshot: Sequence[str]) -> str:
    """
    Map a single 1-based index to its unit name.

    Raises:
        InvalidSelection: If the token is not a number within the snapshot
    """
    if not INDEX_PATTERN.fullmatch(token):
        raise InvalidSelection(token)
    index = int(token)
    if not 1 <= index <= len(snapshot):
        raise InvalidSelection(token, f"out of range 1-{len(snapshot)}")
    return snapshot[index - 1]


def parse_selection(
    text: str, snapshot: Sequence[str], allow_all: bool = False
) -> Selection:
    """
    Turn free-text input such as ``"1, 3"`` into unit names.

    Whitespace is ignored. Each bad token is collected and skipped without
    affecting the others. Indices always refer to ``snapshot``, the list that
    was on screen, never to a fresh query.

    Args:
        text: Raw user input
        snapshot: Units in the order they were displayed
        allow_all: Accept ``A``/``all`` as a shortcut for every entry

    Returns:
        Selection with units in the order they were typed
    """
    compact = "".join(text.split())
    if allow_all and compact.lower() in ALL_TOKENS:
        return Selection(units=list(snapshot), select_all=True)

    selection = Selection()
    for token in compact.split(","):
        if not token:
            continue
        try:
            selection.units.append(resolve_token(token, snapshot))
        except InvalidSelection as e:
            selection.invalid.append(e)
    return selection
