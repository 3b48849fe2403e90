"""Type registry for parameter coercion.

Each scope declares a type tag.  The tag's rule decides whether a raw
parameter has an acceptable shape and, optionally, how to transform it::

    registry = TypeRegistry.with_builtins()
    registry.register("upper", (str,), str.upper)

A value that fails ``accepts`` resolves to ``ABSENT``: the scope behaves
as if the parameter was never sent.  Unknown tags raise
``UnknownTypeTagError``.

``ALLOWED_TYPES`` is the process-wide default registry.  Handler classes
and engines may be given their own instance instead.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date
from enum import Enum
from numbers import Real
from typing import Any

from .errors import UnknownTypeTagError

logger = logging.getLogger(__name__)


class _Absent(Enum):
    ABSENT = "absent"

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent.ABSENT
"""Marker for "no value": the scope does not fire."""

TRUE_VALUES: tuple[Any, ...] = ("true", True, "1", 1)

BOOLEAN = "boolean"
ARRAY = "array"
HASH = "hash"
DEFAULT = "default"


def is_truthy(value: Any) -> bool:
    # bool is an int subclass, so compare on type as well as value.
    return any(type(value) is type(t) and value == t for t in TRUE_VALUES)


def _accepts_default(value: Any) -> bool:
    return isinstance(value, str) or (
        isinstance(value, Real) and not isinstance(value, bool)
    )


def _accepts_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _accepts_hash(value: Any) -> bool:
    return isinstance(value, Mapping)


def _accepts_anything(value: Any) -> bool:
    return True


# ── Rules ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TypeRule:
    """Acceptable-shape check plus optional transform for one type tag."""

    tag: str
    accepts: Callable[[Any], bool]
    coerce: Callable[[Any], Any] | None = None

    def apply(self, raw: Any) -> Any:
        """Return the coerced value, or ``ABSENT`` if *raw* is rejected."""
        if not self.accepts(raw):
            return ABSENT
        if self.coerce is None:
            return raw
        return self.coerce(raw)


def _as_predicate(accepts: Callable[[Any], bool] | type | tuple[type, ...]):
    if isinstance(accepts, type) or isinstance(accepts, tuple):
        classes = accepts
        return lambda value: isinstance(value, classes)
    return accepts


# ── Registry ────────────────────────────────────────────────────────────


class TypeRegistry:
    """Mutable mapping from type tag to ``TypeRule``.

    Registration is expected at application setup.  ``accepts`` may be a
    predicate or a class / tuple of classes checked with ``isinstance``.
    """

    def __init__(self) -> None:
        self._rules: dict[str, TypeRule] = {}

    @classmethod
    def with_builtins(cls) -> TypeRegistry:
        """Registry holding the four built-in tags."""
        registry = cls()
        registry.register(ARRAY, _accepts_array)
        registry.register(HASH, _accepts_hash)
        registry.register(BOOLEAN, _accepts_anything, is_truthy)
        registry.register(DEFAULT, _accepts_default)
        return registry

    def register(
        self,
        tag: str,
        accepts: Callable[[Any], bool] | type | tuple[type, ...],
        coerce: Callable[[Any], Any] | None = None,
    ) -> TypeRegistry:
        """Register (or replace) the rule for *tag*."""
        if tag in self._rules:
            logger.debug("Replacing type rule %r", tag)
        self._rules[tag] = TypeRule(tag=tag, accepts=_as_predicate(accepts), coerce=coerce)
        return self

    def resolve(self, tag: str) -> TypeRule:
        rule = self._rules.get(tag)
        if rule is None:
            raise UnknownTypeTagError(tag, list(self._rules))
        return rule

    def copy(self) -> TypeRegistry:
        clone = TypeRegistry()
        clone._rules = dict(self._rules)
        return clone

    def tags(self) -> list[str]:
        """Return all registered tags (sorted)."""
        return sorted(self._rules)

    def __contains__(self, tag: object) -> bool:
        return tag in self._rules

    def __len__(self) -> int:
        return len(self._rules)


def register_date_type(registry: TypeRegistry, tag: str = "date") -> TypeRegistry:
    """Add a tag that parses ISO-8601 strings into ``datetime.date``.

    Unparseable strings resolve to ``ABSENT`` so the scope does not fire.
    """

    def _parse(value: str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            logger.debug("Could not parse %r as a date", value)
            return ABSENT

    return registry.register(tag, (str,), _parse)


# Global default registry
ALLOWED_TYPES = TypeRegistry.with_builtins()
