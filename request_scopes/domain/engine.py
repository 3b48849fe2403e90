"""ScopeEngine: fold the configured scopes over a target.

For each scope, in declaration order:
  1. Skip unless eligible for the current action and predicates.
  2. Resolve the value from the parameters (or default).
  3. If it fires, invoke the operation and continue with the new target.

The engine depends only on domain types; the handler mixin and the
FastAPI adapter supply the context and parameters.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from typing import Any

from .applicability import is_eligible
from .applicator import apply
from .config import ScopeConfigStore
from .ports import Dispatch, HandlingContext, dispatch_scope
from .resolver import DEFAULT_MAX_DEPTH, resolve
from .types import TypeRegistry

logger = logging.getLogger(__name__)


class ScopeEngine:
    """Apply a configuration store to targets.

    The registry defaults to the store's own; pass one explicitly to
    isolate custom types per engine.
    """

    def __init__(
        self,
        store: ScopeConfigStore,
        *,
        registry: TypeRegistry | None = None,
        dispatch: Dispatch = dispatch_scope,
        max_param_depth: int = DEFAULT_MAX_DEPTH,
        skip_log_level: int = logging.DEBUG,
    ) -> None:
        self.store = store
        self.registry = registry if registry is not None else store.registry
        self.dispatch = dispatch
        self.max_param_depth = max_param_depth
        self.skip_log_level = skip_log_level

    def apply_scopes(
        self,
        target: Any,
        params: Mapping[str, Any] | None,
        context: HandlingContext,
        audit: MutableMapping[str, Any],
    ) -> Any:
        params = params if params is not None else {}

        for config in self.store:
            if not is_eligible(config, context):
                logger.log(self.skip_log_level, "Scope %r: not eligible", config.name)
                continue

            resolution = resolve(
                config,
                params,
                context,
                self.registry,
                max_depth=self.max_param_depth,
            )
            if not resolution.fires:
                logger.log(
                    self.skip_log_level,
                    "Scope %r: skipped (%s)",
                    config.name,
                    resolution.reason,
                )
                continue

            logger.debug("Scope %r: applying with %r", config.name, resolution.value)
            target = apply(config, context, target, resolution, audit, self.dispatch)

        return target
