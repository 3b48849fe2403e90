"""Error taxonomy for the scope engine.

Declaration-time problems raise eagerly.  Request-time input never raises:
a parameter of the wrong shape simply does not fire its scope.
"""

from __future__ import annotations


class ScopeError(Exception):
    """Base exception for request-scopes."""


class ConfigurationError(ScopeError, ValueError):
    """Raised when a scope declaration is invalid."""


class UnknownTypeTagError(ConfigurationError, LookupError):
    """A type tag was referenced that the registry does not know."""

    def __init__(self, tag: str, available: list[str]) -> None:
        self.tag = tag
        self.available = sorted(available)
        registered = ", ".join(self.available) or "none"
        super().__init__(f"unknown type tag: {tag!r} (registered: {registered})")


class UnknownOperationError(ScopeError, LookupError):
    """A target was asked to run an operation it has no handler for."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = sorted(available)
        super().__init__(
            f"no operation named {name!r} (available: {', '.join(self.available) or 'none'})"
        )
