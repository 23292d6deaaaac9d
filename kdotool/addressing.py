"""Window and stack addressing.

A window reference is one of:

- an explicit KWin window id: decimal (Plasma 5), `0x` hex, or a UUID,
  with or without braces (Plasma 6)
- `%@`: every window of the current stack
- `%N`: the Nth window of the current stack (1-based)

Explicit ids are tried first. Tokens that match none of these are not
window references and the caller has to give them another meaning.
"""

import re

from .models import ArgumentError, ReferenceKind, WindowReference
from .templates import Fragment

__all__ = [
    "DEFAULT_REFERENCE",
    "is_strong_reference",
    "resolve_reference",
    "wrapper_fragment",
]

_WINDOW_ID_RE = re.compile(
    r"^(?:\d+|0x[0-9a-fA-F]+|\{?[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}\}?)$"
)
_STACK_INDEX_RE = re.compile(r"^%(-?\d+)$")

DEFAULT_REFERENCE = WindowReference.stack_item(1)

_WRAPPERS = {
    ReferenceKind.EXPLICIT_ID: Fragment.ACTION_ON_WINDOW_ID,
    ReferenceKind.STACK_INDEX: Fragment.ACTION_ON_STACK_ITEM,
    ReferenceKind.ALL_STACK: Fragment.ACTION_ON_STACK_ALL,
}


def resolve_reference(token: str) -> WindowReference | None:
    """Classify `token`, returning None if it isn't a window reference.

    Raises:
        ArgumentError: `%N` with N < 1
    """
    if _WINDOW_ID_RE.match(token):
        return WindowReference.explicit(token)
    if token == "%@":
        return WindowReference.all_stack()
    match = _STACK_INDEX_RE.match(token)
    if match:
        index = int(match.group(1))
        if index < 1:
            msg = f"invalid window stack index '{token}', must be 1 or more"
            raise ArgumentError(msg)
        return WindowReference.stack_item(index)
    return None


def is_strong_reference(token: str) -> bool:
    """True for references that can't be mistaken for a number (`%N`, `%@`, UUIDs, hex)."""
    return resolve_reference(token) is not None and not token.isdigit()


def wrapper_fragment(reference: WindowReference) -> Fragment:
    """Fragment applying an action to the window(s) `reference` designates."""
    return _WRAPPERS[reference.kind]
