"""FastAPI integration: handlers built from the incoming request.

    class TreesHandler(ScopedHandler):
        def show_all_colors(self):
            return False

    TreesHandler.has_scope("color", unless="show_all_colors")

    @router.get("/trees")
    def index(handler: TreesHandler = Depends(TreesHandler.for_action("index"))):
        query = handler.apply_scopes(QueryScopeTarget(select(Tree), TREE_SCOPES))
        ...

Parameters are the bracket-parsed query string, overlaid with a JSON
object body (if any) and then the path parameters.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from fastapi import Request

from request_scopes.api.params import parse_nested_params
from request_scopes.handler import HasScope

logger = logging.getLogger(__name__)

H = TypeVar("H", bound="ScopedHandler")


async def request_params(request: Request) -> dict[str, Any]:
    """Collect query, JSON body and path parameters into one mapping."""
    params = parse_nested_params(request.query_params.multi_items())

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        body = await request.body()
        if body:
            try:
                payload = json.loads(body)
            except (ValueError, RecursionError):
                logger.debug("Ignoring malformed JSON body for %s", request.url.path)
                payload = None
            if isinstance(payload, dict):
                params.update(payload)

    params.update(request.path_params)
    return params


class ScopedHandler(HasScope):
    """``HasScope`` bound to a FastAPI ``Request``."""

    def __init__(
        self,
        request: Request | None = None,
        *,
        action_name: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(action_name=action_name, params=params)
        self.request = request

    @classmethod
    async def from_request(cls: type[H], request: Request, action_name: str | None = None) -> H:
        if action_name is None:
            endpoint = request.scope.get("endpoint")
            action_name = getattr(endpoint, "__name__", None)
        params = await request_params(request)
        return cls(request, action_name=action_name, params=params)

    @classmethod
    def for_action(cls: type[H], action_name: str | None = None) -> Callable[[Request], Awaitable[H]]:
        """FastAPI dependency producing a handler for *action_name*.

        Without an explicit name the endpoint function's name is used.
        """

        async def dependency(request: Request) -> H:
            return await cls.from_request(request, action_name)

        dependency.__name__ = f"{cls.__name__}_{action_name or 'handler'}"
        return dependency
