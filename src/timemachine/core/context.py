"""Host-supplied context for commits: who is acting and why.

Both values are context-local. The host sets them around the code that
writes tracked files, e.g.::

    with acting_as(Identity(name="alice")), operation("setup wizard"):
        save_config()
"""

import contextlib
from contextvars import ContextVar
from typing import Iterator, Optional

from timemachine.models.identity import Identity

_current_identity: ContextVar[Optional[Identity]] = ContextVar(
    "timemachine_identity", default=None
)
_current_operation: ContextVar[Optional[str]] = ContextVar(
    "timemachine_operation", default=None
)


def current_identity() -> Optional[Identity]:
    """Get the identity acting in the current context, if any."""
    return _current_identity.get()


def current_operation() -> Optional[str]:
    """Get the label of the operation running in the current context, if any."""
    return _current_operation.get()


@contextlib.contextmanager
def acting_as(identity: Identity) -> Iterator[Identity]:
    """Attribute commits made inside the block to identity."""
    token = _current_identity.set(identity)
    try:
        yield identity
    finally:
        _current_identity.reset(token)


@contextlib.contextmanager
def operation(label: str) -> Iterator[str]:
    """Tag changes made inside the block with a cause label."""
    token = _current_operation.set(label)
    try:
        yield label
    finally:
        _current_operation.reset(token)
