"""Bracket-notation parsing of flat query items into nested parameters.

    ?paginate[page]=1&paginate[per_page]=10&categories[]=book&q[title]=x

becomes::

    {"paginate": {"page": "1", "per_page": "10"},
     "categories": ["book"],
     "q": {"title": "x"}}

Repeated plain keys keep the last value.  Conflicting shapes (``a=1`` and
``a[b]=2``) never raise; the later item wins.  Keys nested deeper than
the depth limit are dropped.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import Any

from request_scopes.config.settings import settings

logger = logging.getLogger(__name__)

_SEGMENT = re.compile(r"\[([^\[\]]*)\]")


def split_key(key: str) -> list[str]:
    """Split ``a[b][]`` into ``["a", "b", ""]``.

    Keys that are not well-formed bracket notation are returned whole.
    """
    head, bracket, _ = key.partition("[")
    if not bracket or not head:
        return [key]
    rest = key[len(head):]
    segments = [head]
    pos = 0
    for match in _SEGMENT.finditer(rest):
        if match.start() != pos:
            return [key]
        segments.append(match.group(1))
        pos = match.end()
    if pos != len(rest):
        return [key]
    return segments


def _has_path(container: Any, segments: list[str]) -> bool:
    for segment in segments:
        if segment == "" or not isinstance(container, dict) or segment not in container:
            return False
        container = container[segment]
    return True


def _assign(container: dict, segments: list[str], value: Any) -> None:
    key, rest = segments[0], segments[1:]
    if not rest:
        container[key] = value
        return

    if rest[0] == "":
        items = container.get(key)
        if not isinstance(items, list):
            items = []
            container[key] = items
        if len(rest) == 1:
            items.append(value)
            return
        # a[][b]=1&a[][c]=2 builds one dict until a key repeats.
        if items and isinstance(items[-1], dict) and not _has_path(items[-1], rest[1:]):
            child = items[-1]
        else:
            child = {}
            items.append(child)
        _assign(child, rest[1:], value)
        return

    child = container.get(key)
    if not isinstance(child, dict):
        child = {}
        container[key] = child
    _assign(child, rest, value)


def parse_nested_params(
    items: Iterable[tuple[str, Any]],
    *,
    max_depth: int | None = None,
) -> dict[str, Any]:
    """Build a nested parameter mapping from ``(key, value)`` pairs."""
    limit = settings.max_param_depth if max_depth is None else max_depth
    params: dict[str, Any] = {}
    for key, value in items:
        segments = split_key(key)
        if len(segments) - 1 > limit:
            logger.debug("Dropping parameter %r: nested deeper than %d", key, limit)
            continue
        _assign(params, segments, value)
    return params
