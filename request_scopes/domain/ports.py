"""Ports (abstract interfaces) for the scope engine.

These define WHAT the engine needs from the outside world: a target that
can run a named operation and a handling context that knows the current
action.  Concrete adapters live in infra/ and api/.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ScopeTarget(Protocol):
    """Something a scope can be applied to.

    ``apply_scope`` runs the named operation and returns the next target,
    which may be a different object of the same capability.
    """

    def apply_scope(self, name: str, *args: Any) -> Any:
        ...


class HandlingContext(Protocol):
    """The request-handling object scopes are evaluated against.

    ``if_`` / ``unless`` predicates given as method names are looked up on
    this object; callable predicates and default producers receive it.
    """

    action_name: str | None


# (target, operation name, positional args) -> new target
Dispatch = Callable[[Any, str, Sequence[Any]], Any]


def dispatch_scope(target: Any, name: str, args: Sequence[Any]) -> Any:
    """Default dispatch: use ``ScopeTarget`` when implemented, else call the
    attribute named *name* on the target."""
    if isinstance(target, ScopeTarget):
        return target.apply_scope(name, *args)
    return getattr(target, name)(*args)
