"""HasScope: declarative scopes for request handler classes.

Declare scopes once per class, then call ``apply_scopes`` from a handler
method::

    class GraduationsHandler(HasScope):
        def featured_only(self):
            return True

    GraduationsHandler.has_scope("featured", type="boolean", only="index")
    GraduationsHandler.has_scope("by_degree", only="index", if_="featured_only")

    handler = GraduationsHandler(action_name="index", params=request_params)
    graduations = handler.apply_scopes(query)

Subclasses start from a copy of the parent's scopes; re-declaring a scope
in a subclass merges onto the inherited record without touching the
parent.  ``apply_scopes`` also accepts an explicit parameter mapping, so
the mixin works outside any request.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, ClassVar

from request_scopes.config.settings import settings
from request_scopes.domain.config import ScopeConfig, ScopeConfigStore
from request_scopes.domain.engine import ScopeEngine
from request_scopes.domain.ports import dispatch_scope
from request_scopes.domain.types import TypeRegistry
from request_scopes.logging import skip_log_level


class HasScope:
    """Mixin that gives a class a scope configuration and ``apply_scopes``."""

    scopes_configuration: ClassVar[ScopeConfigStore] = ScopeConfigStore()

    # Set in a subclass body to use a registry other than ALLOWED_TYPES.
    type_registry: ClassVar[TypeRegistry | None] = None

    # (target, name, args) -> target; wrap overrides in staticmethod().
    scope_dispatch = staticmethod(dispatch_scope)

    action_name: str | None = None

    def __init__(
        self,
        *,
        action_name: str | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> None:
        if action_name is not None:
            self.action_name = action_name
        self.params = params if params is not None else {}
        self._current_scopes: dict[str, Any] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        registry = cls.__dict__.get("type_registry")
        cls.scopes_configuration = cls.scopes_configuration.derive(registry)

    # -- Declaration -------------------------------------------------------

    @classmethod
    def has_scope(
        cls,
        *names: str,
        override: Callable[..., Any] | None = None,
        **options: Any,
    ) -> list[ScopeConfig]:
        """Declare one or more scopes on this class.

        Options:
            type: type tag ("default", "boolean", "array", "hash" or custom).
            only / except_: actions the scope is limited to / excluded from.
            if_ / unless: callable or method name gating the scope.
            default: value, or producer taking no args or the handler.
            as_: parameter key to read (defaults to the scope name).
            allow_blank: fire even for blank values.
            using: sub-keys to destructure a hash into positional args.
            in_: read the scope's value from a nested hash under this key.
            scope_by_value: fire when this parameter equals the scope name.
            must_equal / must_not_equal / if_value: value constraints.

        Raises:
            ConfigurationError: invalid option combination or unknown key
        """
        return cls.scopes_configuration.declare(names, options, override)

    @classmethod
    def scope(cls, *names: str, **options: Any) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of ``has_scope`` for custom scope bodies.

        The function receives ``(handler, target)`` for boolean and
        value-selected scopes and ``(handler, target, value)`` otherwise::

            @TreesHandler.scope("by_category")
            def by_category(handler, target, value):
                return target.by_given_category(value + "_id")
        """

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            cls.has_scope(*(names or (func.__name__,)), override=func, **options)
            return func

        return decorator

    # -- Application -------------------------------------------------------

    def scope_engine(self) -> ScopeEngine:
        cls = type(self)
        return ScopeEngine(
            cls.scopes_configuration,
            dispatch=cls.scope_dispatch,
            max_param_depth=settings.max_param_depth,
            skip_log_level=skip_log_level(),
        )

    def apply_scopes(self, target: Any, params: Mapping[str, Any] | None = None) -> Any:
        """Apply every eligible scope to *target* and return the result.

        *params* defaults to the handler's own parameters.
        """
        if params is None:
            params = getattr(self, "params", None) or {}
        return self.scope_engine().apply_scopes(target, params, self, self._audit())

    @property
    def current_scopes(self) -> Mapping[str, Any]:
        """Scopes applied so far by this handler, keyed by parameter."""
        return MappingProxyType(self._audit())

    def _audit(self) -> dict[str, Any]:
        # Subclasses that skip __init__ still get their own map.
        try:
            return self._current_scopes
        except AttributeError:
            self._current_scopes = {}
            return self._current_scopes
