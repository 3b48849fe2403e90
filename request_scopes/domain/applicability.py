"""Decide whether a scope is eligible for the current action."""

from __future__ import annotations

import inspect
from typing import Any

from .config import Predicate, ScopeConfig
from .ports import HandlingContext


def call_with_context(func: Any, context: Any) -> Any:
    """Call *func* with the handling context if it takes an argument,
    otherwise with none."""
    try:
        params = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        # Builtins without an introspectable signature.
        return func(context)
    positional = [
        p for p in params
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD, p.VAR_POSITIONAL)
    ]
    if not positional:
        return func()
    return func(context)


def evaluate_predicate(
    predicate: Predicate | None, context: HandlingContext, expected: bool
) -> bool:
    """True when *predicate* is absent or evaluates to *expected*.

    Method names are looked up on the context; a missing method raises
    ``AttributeError``.
    """
    if predicate is None:
        return True
    if isinstance(predicate, str):
        result = getattr(context, predicate)()
    else:
        result = call_with_context(predicate, context)
    return bool(result) is expected


def is_eligible(config: ScopeConfig, context: HandlingContext) -> bool:
    if not (
        evaluate_predicate(config.if_predicate, context, True)
        and evaluate_predicate(config.unless_predicate, context, False)
    ):
        return False

    action = getattr(context, "action_name", None)
    if config.only_actions:
        return action in config.only_actions
    if config.except_actions:
        return action not in config.except_actions
    return True
