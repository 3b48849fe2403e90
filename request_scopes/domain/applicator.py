"""Invoke a resolved scope against the target and record it."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any

from .config import ScopeConfig
from .ports import Dispatch, HandlingContext, dispatch_scope
from .resolver import Resolution
from .types import BOOLEAN


def passes_no_value(config: ScopeConfig) -> bool:
    return config.no_value_passing or (config.type_tag == BOOLEAN and not config.allow_blank)


def record(config: ScopeConfig, audit: MutableMapping[str, Any], resolution: Resolution) -> None:
    """Write the fired scope's value into the audit map."""
    if config.nested_in is not None:
        # Merge into a copy of any existing entry.
        existing = audit.get(config.nested_in)
        nested = dict(existing) if isinstance(existing, Mapping) else {}
        nested[config.name] = resolution.args[0] if resolution.args else None
        audit[config.nested_in] = nested
    else:
        audit[config.param_key] = resolution.value


def apply(
    config: ScopeConfig,
    context: HandlingContext,
    target: Any,
    resolution: Resolution,
    audit: MutableMapping[str, Any],
    dispatch: Dispatch = dispatch_scope,
) -> Any:
    record(config, audit, resolution)

    if passes_no_value(config):
        args: tuple[Any, ...] = ()
    elif resolution.args is not None:
        args = resolution.args
    else:
        args = (resolution.value,)

    if config.override is not None:
        if not args:
            return config.override(context, target)
        payload = args if resolution.args is not None else resolution.value
        if config.nested_in is not None:
            payload = args[0]
        return config.override(context, target, payload)

    return dispatch(target, config.name, args)
