"""Resolve the value a scope should be applied with.

Resolution order for one scope:

  1. Read ``params[param_key]`` if present, else the default (literal or
     producer), else skip.
  2. Coerce through the scope's type rule.  A rejected shape is a silent
     skip, never an error.
  3. Strip blank entries recursively from sequences and mappings.
  4. Destructure mappings into positional args when ``using_keys`` is set.
  5. Skip blank values unless ``allow_blank``.
  6. Check the value matchers against the first value.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .applicability import call_with_context
from .config import ScopeConfig
from .ports import HandlingContext
from .types import ABSENT, TypeRegistry

DEFAULT_MAX_DEPTH = 32


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one scope against a parameter mapping."""

    fires: bool
    value: Any = None
    args: tuple[Any, ...] | None = None
    reason: str = ""


def _skip(reason: str) -> Resolution:
    return Resolution(fires=False, reason=reason)


# ── Blank handling ──────────────────────────────────────────────────────


def is_blank_entry(value: Any) -> bool:
    """Blank as a member of a collection: None, "" or an empty collection."""
    if value is None or value is ABSENT:
        return True
    if isinstance(value, (str, bytes, list, tuple, set, frozenset, Mapping)):
        return len(value) == 0
    return False


def is_blank(value: Any) -> bool:
    """Blank as a whole scope value.  ``False`` counts as blank so that a
    falsy boolean only fires with ``allow_blank``."""
    return value is False or is_blank_entry(value)


def normalize_blanks(value: Any) -> Any:
    """Recursively drop blank entries from lists, tuples and mappings.

    A mapping whose values are all blank normalizes to ``{}`` and is itself
    dropped from its parent.  Scalars pass through unchanged.
    """
    if isinstance(value, Mapping):
        normalized = {}
        for key, item in value.items():
            item = normalize_blanks(item)
            if not is_blank_entry(item):
                normalized[key] = item
        return normalized
    if isinstance(value, (list, tuple)):
        items = [normalize_blanks(item) for item in value]
        kept = [item for item in items if not is_blank_entry(item)]
        return type(value)(kept) if isinstance(value, tuple) else kept
    return value


def exceeds_depth(value: Any, limit: int) -> bool:
    """True if *value* nests containers more than *limit* levels deep."""
    if not isinstance(value, (Mapping, list, tuple)):
        return False
    if limit <= 0:
        return True
    children = value.values() if isinstance(value, Mapping) else value
    return any(exceeds_depth(child, limit - 1) for child in children)


# ── Value matching ──────────────────────────────────────────────────────


def first_value(value: Any, args: tuple[Any, ...] | None) -> Any:
    if args is not None:
        return args[0] if args else None
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def matches_value(config: ScopeConfig, value: Any, args: tuple[Any, ...] | None) -> bool:
    first = first_value(value, args)
    if config.must_equal and first not in config.must_equal:
        return False
    if config.must_not_equal and first in config.must_not_equal:
        return False
    if config.if_value is not None and not config.if_value(first):
        return False
    return True


# ── Resolution ──────────────────────────────────────────────────────────


def _raw_value(config: ScopeConfig, params: Mapping[str, Any], context: HandlingContext) -> Any:
    if config.param_key in params:
        return params[config.param_key]
    if config.has_default:
        default = config.default
        if callable(default):
            default = call_with_context(default, context)
            if config.nested_in is not None and not isinstance(default, Mapping):
                default = {config.name: default}
        return default
    return ABSENT


def resolve(
    config: ScopeConfig,
    params: Mapping[str, Any],
    context: HandlingContext,
    registry: TypeRegistry,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Resolution:
    raw = _raw_value(config, params, context)
    if raw is ABSENT:
        return _skip("not supplied")

    if exceeds_depth(raw, max_depth):
        return _skip(f"nested deeper than {max_depth} levels")

    value = registry.resolve(config.type_tag).apply(raw)
    if value is ABSENT:
        return _skip(f"rejected by type {config.type_tag!r}")

    value = normalize_blanks(value)

    args = None
    if config.using_keys is not None and isinstance(value, Mapping):
        # Missing sub-keys become positional None placeholders.
        args = tuple(value.get(key) for key in config.using_keys)
        blank = any(is_blank(arg) for arg in args)
    else:
        blank = is_blank(value)

    if blank and not config.allow_blank:
        return _skip("blank")

    if not matches_value(config, value, args):
        return _skip("value did not match")

    return Resolution(fires=True, value=value, args=args)
