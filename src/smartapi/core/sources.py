"""Route sources: one interface over the two upstream route shapes.

A framework route object carries its own URI, methods and action bag. A
dispatcher result is a sequence ``(status, action, params)`` that knows only
the action bag, so URI and methods are taken from the current request.

Both shapes are normalized into a :class:`RouteSource` exposing ``uri``,
``methods`` and ``action``. The action bag is always copied so callers can pull
keys out of it without touching the upstream route.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from smartseeds.typeutils import safe_is_instance

__all__ = [
    "RouteSource",
    "FrameworkRouteSource",
    "DispatchRouteSource",
    "resolve_route_source",
]


class RouteSource:
    """URI, methods and action bag read from an upstream route."""

    __slots__ = ("uri", "methods", "action")

    kind: str = ""

    def __init__(self, uri: str, methods: List[str], action: Dict[str, Any]):
        self.uri = uri
        self.methods = methods
        self.action = action

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {'|'.join(self.methods)} {self.uri!r}>"


class FrameworkRouteSource(RouteSource):
    """Source backed by a framework route object (``uri``/``methods``/``action``)."""

    __slots__ = ()

    kind = "framework"

    def __init__(self, route: Any):
        super().__init__(
            uri=route.uri,
            methods=list(route.methods),
            action=dict(route.action or {}),
        )


class DispatchRouteSource(RouteSource):
    """Source backed by a dispatcher result plus the current request."""

    __slots__ = ()

    kind = "dispatch"

    def __init__(self, route: Sequence[Any], request: Any):
        if len(route) < 2:
            raise ValueError("Dispatcher routes must provide the action bag at index 1")
        method = request.method.upper()
        methods = [method]
        if method == "GET":
            methods.append("HEAD")
        super().__init__(
            uri=request.path.lstrip("/"),
            methods=methods,
            action=dict(route[1] or {}),
        )


def _looks_like_framework_route(route: Any) -> bool:
    return all(hasattr(route, attr) for attr in ("uri", "methods", "action"))


def resolve_route_source(route: Any, request: Any) -> RouteSource:
    """Return the :class:`RouteSource` matching the shape of ``route``."""
    if isinstance(route, RouteSource):
        return route
    if safe_is_instance(route, "smartapi.core.table.Route"):
        return FrameworkRouteSource(route)
    if isinstance(route, (list, tuple)):
        return DispatchRouteSource(route, request)
    if _looks_like_framework_route(route):
        return FrameworkRouteSource(route)
    raise TypeError(
        f"Unsupported route {route!r}: expected a framework route or a dispatcher sequence"
    )
