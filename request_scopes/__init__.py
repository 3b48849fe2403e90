"""request_scopes: bind request parameters to query scopes declaratively.

All public types are exported from this module for flat imports:

    from request_scopes import HasScope, ScopedHandler, QueryScopeTarget
"""

__version__ = "0.1.0"

from request_scopes.api.params import parse_nested_params
from request_scopes.api.scoped import ScopedHandler, request_params
from request_scopes.domain.config import ScopeConfig, ScopeConfigStore
from request_scopes.domain.engine import ScopeEngine
from request_scopes.domain.errors import (
    ConfigurationError,
    ScopeError,
    UnknownOperationError,
    UnknownTypeTagError,
)
from request_scopes.domain.ports import ScopeTarget, dispatch_scope
from request_scopes.domain.resolver import Resolution, resolve
from request_scopes.domain.types import (
    ABSENT,
    ALLOWED_TYPES,
    TRUE_VALUES,
    TypeRegistry,
    TypeRule,
    register_date_type,
)
from request_scopes.handler import HasScope
from request_scopes.infra.query.sqlalchemy_target import QueryScopeTarget

__all__ = [
    # Handlers
    "HasScope",
    "ScopedHandler",
    "request_params",
    "parse_nested_params",
    # Engine
    "ScopeEngine",
    "ScopeConfig",
    "ScopeConfigStore",
    "Resolution",
    "resolve",
    # Types
    "ABSENT",
    "ALLOWED_TYPES",
    "TRUE_VALUES",
    "TypeRegistry",
    "TypeRule",
    "register_date_type",
    # Targets
    "ScopeTarget",
    "dispatch_scope",
    "QueryScopeTarget",
    # Errors
    "ScopeError",
    "ConfigurationError",
    "UnknownTypeTagError",
    "UnknownOperationError",
]
