"""Scope configuration records and the per-handler configuration store.

A ``ScopeConfig`` describes one scope: which parameter it reads, how the
value is typed, when the scope is eligible and how it is invoked.  The
``ScopeConfigStore`` keeps them in declaration order, which is also the
order scopes are applied in.

Stores are inherited by deriving a copy (``derive()``) and then applying
the child's own declarations, so a subclass never mutates its parent.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from .errors import ConfigurationError
from .types import ABSENT, ALLOWED_TYPES, DEFAULT, HASH, TypeRegistry

logger = logging.getLogger(__name__)

# A predicate is a callable (zero args, or the handling context) or the
# name of a method on the handling context.
Predicate = Callable[..., Any] | str

VALID_OPTIONS = frozenset({
    "type",
    "only",
    "except",
    "if",
    "unless",
    "default",
    "as",
    "allow_blank",
    "using",
    "in",
    "scope_by_value",
    "must_equal",
    "must_not_equal",
    "if_value",
})


# ---------------------------------------------------------------------------
# ScopeConfig
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScopeConfig:
    """Configuration of a single scope."""

    name: str
    param_key: str
    type_tag: str = DEFAULT
    only_actions: frozenset[str] = field(default_factory=frozenset)
    except_actions: frozenset[str] = field(default_factory=frozenset)
    if_predicate: Predicate | None = None
    unless_predicate: Predicate | None = None
    default: Any = ABSENT
    allow_blank: bool = False
    using_keys: tuple[str, ...] | None = None
    nested_in: str | None = None
    must_equal: tuple[Any, ...] = ()
    must_not_equal: tuple[Any, ...] = ()
    if_value: Callable[[Any], bool] | None = None
    no_value_passing: bool = False
    override: Callable[..., Any] | None = None

    @property
    def has_default(self) -> bool:
        return self.default is not ABSENT


# ---------------------------------------------------------------------------
# Option normalization
# ---------------------------------------------------------------------------


def _option_key(key: str) -> str:
    # ``if_`` / ``except_`` / ``as_`` / ``in_`` spell Python keywords.
    return key[:-1] if key.endswith("_") else key


def _as_actions(value: Any) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset({value})
    return frozenset(str(v) for v in value)


def _as_values(value: Any) -> tuple[Any, ...]:
    if value is None:
        return ()
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        return (value,)
    return tuple(value)


def _check_predicate(option: str, predicate: Any) -> Predicate | None:
    if predicate is None or callable(predicate):
        return predicate
    if isinstance(predicate, str):
        if not predicate.isidentifier():
            raise ConfigurationError(
                f"{option!r} must be a callable or a method name, "
                f"expressions are not supported: {predicate!r}"
            )
        return predicate
    raise ConfigurationError(
        f"{option!r} must be a callable or a method name, got {type(predicate).__name__}"
    )


def normalize_options(options: Mapping[str, Any]) -> dict[str, Any]:
    """Validate raw ``has_scope`` options and return them keyed without
    trailing underscores.

    Raises:
        ConfigurationError: unknown key or mutually exclusive options.
    """
    opts = {_option_key(k): v for k, v in options.items()}

    unknown = set(opts) - VALID_OPTIONS
    if unknown:
        raise ConfigurationError(
            f"unknown scope option(s): {', '.join(sorted(unknown))}"
        )

    if "in" in opts and ("as" in opts or "using" in opts):
        raise ConfigurationError("'in' cannot be combined with 'as' or 'using'")
    if "scope_by_value" in opts and (
        "as" in opts or "if_value" in opts or "must_equal" in opts
    ):
        raise ConfigurationError(
            "'scope_by_value' cannot be combined with 'as', 'if_value' or 'must_equal'"
        )
    if "using" in opts:
        if opts.get("type", HASH) != HASH:
            raise ConfigurationError("'using' requires type 'hash'")
        opts["type"] = HASH
    if "in" in opts:
        if opts.get("type", HASH) != HASH:
            raise ConfigurationError("'in' requires type 'hash'")
        opts["type"] = HASH

    for key in ("if", "unless"):
        if key in opts:
            opts[key] = _check_predicate(key, opts[key])
    if "if_value" in opts and opts["if_value"] is not None and not callable(opts["if_value"]):
        raise ConfigurationError("'if_value' must be callable")

    return opts


def _fields_for(name: str, opts: dict[str, Any]) -> dict[str, Any]:
    """Translate normalized options into ``ScopeConfig`` fields for *name*."""
    fields: dict[str, Any] = {}

    if "type" in opts:
        fields["type_tag"] = opts["type"]
    if "only" in opts:
        fields["only_actions"] = _as_actions(opts["only"])
    if "except" in opts:
        fields["except_actions"] = _as_actions(opts["except"])
    if "if" in opts:
        fields["if_predicate"] = opts["if"]
    if "unless" in opts:
        fields["unless_predicate"] = opts["unless"]
    if "default" in opts:
        fields["default"] = opts["default"]
    if "as" in opts:
        fields["param_key"] = str(opts["as"])
    if "allow_blank" in opts:
        fields["allow_blank"] = bool(opts["allow_blank"])
    if "using" in opts:
        fields["using_keys"] = tuple(str(k) for k in _as_values(opts["using"]))
    if "must_equal" in opts:
        fields["must_equal"] = _as_values(opts["must_equal"])
    if "must_not_equal" in opts:
        fields["must_not_equal"] = _as_values(opts["must_not_equal"])
    if "if_value" in opts:
        fields["if_value"] = opts["if_value"]

    # Shorthands
    if "in" in opts:
        parent = str(opts["in"])
        fields["param_key"] = parent
        fields["nested_in"] = parent
        fields["using_keys"] = (name,)
        default = opts.get("default")
        if "default" in opts and not (callable(default) or isinstance(default, Mapping)):
            fields["default"] = {name: default}
    if "scope_by_value" in opts:
        fields["param_key"] = str(opts["scope_by_value"])
        fields["must_equal"] = (name,)
        fields["no_value_passing"] = True

    return fields


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class ScopeConfigStore:
    """Ordered mapping of scope name to ``ScopeConfig`` for one handler class."""

    def __init__(self, registry: TypeRegistry | None = None) -> None:
        self._registry = registry if registry is not None else ALLOWED_TYPES
        self._configs: dict[str, ScopeConfig] = {}

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    def declare(
        self,
        names: Iterable[str],
        options: Mapping[str, Any] | None = None,
        override: Callable[..., Any] | None = None,
    ) -> list[ScopeConfig]:
        """Declare or re-declare scopes.

        New names are seeded with ``param_key=name`` and the default type,
        then the options are merged on top.  Re-declaring a name merges onto
        the existing record and keeps its position.

        Raises:
            ConfigurationError: invalid options
            UnknownTypeTagError: ``type`` not registered
        """
        names = [str(n) for n in names]
        if not names:
            raise ConfigurationError("has_scope needs at least one scope name")

        opts = normalize_options(options or {})
        if "type" in opts:
            self._registry.resolve(opts["type"])

        declared = []
        for name in names:
            fields = _fields_for(name, opts)
            if override is not None:
                fields["override"] = override
            current = self._configs.get(name) or ScopeConfig(name=name, param_key=name)
            config = replace(current, **fields)
            if config.using_keys is not None and config.type_tag != HASH:
                raise ConfigurationError(
                    f"scope {name!r}: 'using' requires type 'hash', got {config.type_tag!r}"
                )
            self._configs[name] = config
            declared.append(config)
            logger.debug("Declared scope %r -> %r", name, config)
        return declared

    def derive(self, registry: TypeRegistry | None = None) -> ScopeConfigStore:
        """Independent copy used as the starting point for a child store.

        Passing *registry* switches the child to another type registry;
        inherited records are checked against it.
        """
        child = ScopeConfigStore(registry if registry is not None else self._registry)
        for config in self._configs.values():
            child._registry.resolve(config.type_tag)
        child._configs = dict(self._configs)
        return child

    def get(self, name: str) -> ScopeConfig | None:
        return self._configs.get(name)

    def names(self) -> list[str]:
        return list(self._configs)

    def __getitem__(self, name: str) -> ScopeConfig:
        return self._configs[name]

    def __contains__(self, name: object) -> bool:
        return name in self._configs

    def __iter__(self) -> Iterator[ScopeConfig]:
        return iter(list(self._configs.values()))

    def __len__(self) -> int:
        return len(self._configs)
