"""SQLAlchemy adapter: run named scopes against a ``Select``.

Scopes never reflect into SQLAlchemy objects.  Instead the target carries
an explicit table of operations, each ``(statement, *args) -> statement``::

    TREE_SCOPES = {
        "color": equals(Tree.color),
        "only_tall": flag(Tree.tall),
        "categories": in_values(Tree.category),
        "order": order_by({"name": Tree.name, "height": Tree.height}),
        "paginate": paginate(),
    }

    target = handler.apply_scopes(QueryScopeTarget(select(Tree), TREE_SCOPES))
    rows = session.scalars(target.statement).all()

Malformed values (e.g. ``"abc"`` for a numeric column) leave the statement
unchanged rather than raising.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from sqlalchemy import asc, desc
from sqlalchemy.sql import ColumnElement

from request_scopes.domain.errors import UnknownOperationError

logger = logging.getLogger(__name__)

# (statement, *args) -> statement
Operation = Callable[..., Any]

DEFAULT_PER_PAGE = 50
MAX_PER_PAGE = 100


class QueryScopeTarget:
    """Immutable wrapper around a statement plus its named operations."""

    def __init__(self, statement: Any, operations: Mapping[str, Operation]) -> None:
        self.statement = statement
        self.operations = operations

    def apply_scope(self, name: str, *args: Any) -> QueryScopeTarget:
        operation = self.operations.get(name)
        if operation is None:
            raise UnknownOperationError(name, list(self.operations))
        return QueryScopeTarget(operation(self.statement, *args), self.operations)

    def __repr__(self) -> str:
        return f"QueryScopeTarget({self.statement!s})"


# ── Value coercion ──────────────────────────────────────────────────────


class _Uncoercible(Exception):
    pass


def _coerce(column: ColumnElement, value: Any) -> Any:
    """Convert a raw parameter to the column's Python type when known."""
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value
    if value is None or isinstance(value, python_type):
        return value
    if python_type is bool:
        return str(value).lower() in ("true", "1")
    try:
        return python_type(value)
    except (TypeError, ValueError) as e:
        raise _Uncoercible(str(e)) from e


def _guarded(column: ColumnElement, build: Callable[[Any, Any], Any]) -> Operation:
    def operation(statement: Any, value: Any) -> Any:
        try:
            return build(statement, value)
        except _Uncoercible:
            logger.debug("Ignoring %r for column %s", value, column)
            return statement

    return operation


# ── Operation builders ──────────────────────────────────────────────────


def equals(column: ColumnElement) -> Operation:
    """``column == value``, or ``IN`` for a list of values."""

    def build(statement: Any, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return statement.where(column.in_([_coerce(column, v) for v in value]))
        return statement.where(column == _coerce(column, value))

    return _guarded(column, build)


def in_values(column: ColumnElement, *, exclude: bool = False) -> Operation:
    """Include (or exclude) rows whose column is one of the values."""

    def build(statement: Any, values: Any) -> Any:
        if not isinstance(values, (list, tuple)):
            values = [values]
        coerced = [_coerce(column, v) for v in values]
        if exclude:
            return statement.where(~column.in_(coerced))
        return statement.where(column.in_(coerced))

    return _guarded(column, build)


def contains(column: ColumnElement) -> Operation:
    """Case-insensitive substring search.  ``%`` and ``_`` match literally."""

    def operation(statement: Any, pattern: Any) -> Any:
        escaped = (
            str(pattern).replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        )
        return statement.where(column.ilike(f"%{escaped}%", escape="\\"))

    return operation


def flag(column: ColumnElement) -> Operation:
    """Boolean filter.  Without an argument the column must be true."""

    def operation(statement: Any, *args: Any) -> Any:
        value = _coerce(column, args[0]) if args else True
        return statement.where(column.is_(bool(value)))

    return operation


def between(column: ColumnElement) -> Operation:
    """Range filter for scopes declared with ``using=("min", "max")``.

    Either bound may be None.
    """

    def build(statement: Any, min_value: Any = None, max_value: Any = None) -> Any:
        if min_value is not None:
            statement = statement.where(column >= _coerce(column, min_value))
        if max_value is not None:
            statement = statement.where(column <= _coerce(column, max_value))
        return statement

    def operation(statement: Any, *args: Any) -> Any:
        try:
            return build(statement, *args)
        except _Uncoercible:
            logger.debug("Ignoring range %r for column %s", args, column)
            return statement

    return operation


def order_by(columns: Mapping[str, ColumnElement], default: str | None = None) -> Operation:
    """Sort by a whitelisted field; ``-field`` sorts descending.

    Unknown fields fall back to *default* (or leave the order unchanged).
    """

    def operation(statement: Any, field: Any) -> Any:
        field = str(field)
        descending = field.startswith("-")
        column = columns.get(field.lstrip("-"))
        if column is None:
            if default is None:
                return statement
            logger.debug("Unknown sort field %r, falling back to %r", field, default)
            descending = default.startswith("-")
            column = columns[default.lstrip("-")]
        return statement.order_by(desc(column) if descending else asc(column))

    return operation


def paginate(per_page: int = DEFAULT_PER_PAGE, max_per_page: int = MAX_PER_PAGE) -> Operation:
    """LIMIT/OFFSET for scopes declared with ``using=("page", "per_page")``.

    Out-of-range values are clamped; unparseable ones use the defaults.
    """

    def _int(value: Any, fallback: int) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return fallback

    def operation(statement: Any, page: Any = None, size: Any = None) -> Any:
        page_number = max(_int(page, 1), 1)
        limit = min(max(_int(size, per_page), 1), max_per_page)
        return statement.offset((page_number - 1) * limit).limit(limit)

    return operation
