"""Framework-side route table (source of truth).

The table produces both upstream route shapes understood by
:class:`~smartapi.core.route.ApiRoute`: framework :class:`Route` objects and
dispatcher tuples ``(status, action, params)``.

Route
-----
``Route(methods, uri, action)``

- ``methods``: string (``"GET|POST"``) or iterable; upper-cased, unique;
  ``GET`` implies ``HEAD``.
- ``uri``: stored without leading/trailing ``/``. ``{name}`` segments capture
  one path segment each.
- ``action``: a dict is copied; a string or callable becomes
  ``{"uses": action}``.
- ``match(path)`` returns the captured params dict or ``None``.

RouteTable
----------
Constructor::

    RouteTable(*, match_default=None, match_dispatch=None, match_kwargs=None)

Defaults are merged into ``match`` options via ``SmartOptions``.

- ``add(methods, uri, action)`` applies the active group attributes and
  returns the new :class:`Route`. ``get``/``post``/``put``/``patch``/
  ``delete`` are shortcuts.
- ``group(**attributes)`` is a context manager; nested groups stack.
  ``prefix`` values are joined with ``/``; ``scopes`` and ``providers`` are
  merged (outer first, unique); any other key is overridden by the inner
  group or by the route action itself.
- ``match(request, **options)``: first route whose URI and method match.
  With ``dispatch`` the result is ``(FOUND, action_copy, params)``. When
  nothing matches, ``default`` is returned if given, otherwise
  ``LookupError`` is raised (the message distinguishes a wrong method from an
  unknown path).
- ``api_route(container, request, **options)`` wraps the match in an
  ``ApiRoute``.
- ``describe(container)`` returns ``ApiRoute.describe()`` for every route,
  built against a synthetic request on the route's first method.
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Pattern, Tuple, Union

from smartseeds import SmartOptions

from .attributes import split_values
from .request import Request
from .route import ApiRoute

__all__ = ["FOUND", "NOT_FOUND", "METHOD_NOT_ALLOWED", "Route", "RouteTable"]

logger = logging.getLogger("smartapi")

NOT_FOUND = 0
FOUND = 1
METHOD_NOT_ALLOWED = 2

_PARAM_RE = re.compile(r"^\{([A-Za-z_][A-Za-z0-9_]*)\}$")
_MERGED_KEYS = ("scopes", "providers")


def _compile_uri(uri: str) -> Pattern[str]:
    parts: List[str] = []
    seen = set()
    for segment in uri.split("/"):
        if not segment:
            continue
        param = _PARAM_RE.match(segment)
        if param:
            name = param.group(1)
            if name in seen:
                raise ValueError(f"Duplicate route parameter '{name}' in '{uri}'")
            seen.add(name)
            parts.append(f"(?P<{name}>[^/]+)")
        else:
            parts.append(re.escape(segment))
    return re.compile("^" + "/".join(parts) + "$")


class Route:
    """Framework route: URI, HTTP methods and action bag."""

    __slots__ = ("uri", "methods", "action", "_pattern")

    def __init__(self, methods: Union[str, Iterable[str]], uri: str, action: Any):
        normalized = [method.upper() for method in split_values(methods)]
        if not normalized:
            raise ValueError("Route requires at least one HTTP method")
        if "GET" in normalized and "HEAD" not in normalized:
            normalized.append("HEAD")
        self.methods: List[str] = normalized
        self.uri = uri.strip().strip("/")
        if isinstance(action, dict):
            self.action: Dict[str, Any] = dict(action)
        elif isinstance(action, str) or callable(action):
            self.action = {"uses": action}
        else:
            raise TypeError(f"Unsupported route action: {action!r}")
        self._pattern = _compile_uri(self.uri)

    def match(self, path: str) -> Optional[Dict[str, str]]:
        found = self._pattern.match(path.strip("/"))
        if found is None:
            return None
        return found.groupdict()

    def __repr__(self) -> str:
        return f"<Route {'|'.join(self.methods)} {self.uri!r}>"


class RouteTable:
    """Ordered collection of framework routes with group attributes."""

    __slots__ = ("_routes", "_groups", "_match_defaults")

    def __init__(
        self,
        *,
        match_default: Any = None,
        match_dispatch: Optional[bool] = None,
        match_kwargs: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._routes: List[Route] = []
        self._groups: List[Dict[str, Any]] = []
        defaults: Dict[str, Any] = dict(match_kwargs or {})
        if match_default is not None:
            defaults.setdefault("default", match_default)
        if match_dispatch is not None:
            defaults.setdefault("dispatch", match_dispatch)
        self._match_defaults = defaults

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def add(self, methods: Union[str, Iterable[str]], uri: str, action: Any) -> Route:
        route = Route(methods, uri, action)
        if self._groups:
            self._apply_groups(route)
        self._routes.append(route)
        logger.debug("Registered %r", route)
        return route

    def get(self, uri: str, action: Any) -> Route:
        return self.add("GET", uri, action)

    def post(self, uri: str, action: Any) -> Route:
        return self.add("POST", uri, action)

    def put(self, uri: str, action: Any) -> Route:
        return self.add("PUT", uri, action)

    def patch(self, uri: str, action: Any) -> Route:
        return self.add("PATCH", uri, action)

    def delete(self, uri: str, action: Any) -> Route:
        return self.add("DELETE", uri, action)

    @contextmanager
    def group(self, **attributes: Any) -> Iterator["RouteTable"]:
        """Apply ``attributes`` to every route added inside the block."""
        self._groups.append(dict(attributes))
        try:
            yield self
        finally:
            self._groups.pop()

    def _apply_groups(self, route: Route) -> None:
        merged: Dict[str, Any] = {}
        prefixes: List[str] = []
        for attributes in [*self._groups, route.action]:
            for key, value in attributes.items():
                if key == "prefix" and attributes is not route.action:
                    prefixes.append(str(value).strip("/"))
                elif key in _MERGED_KEYS and key in merged:
                    inherited = split_values(merged[key])
                    merged[key] = inherited + [
                        item for item in split_values(value) if item not in inherited
                    ]
                else:
                    merged[key] = value
        route.action = merged
        prefix = "/".join(part for part in prefixes if part)
        if prefix:
            route.uri = f"{prefix}/{route.uri}".strip("/")
            route._pattern = _compile_uri(route.uri)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def routes(self) -> Tuple[Route, ...]:
        return tuple(self._routes)

    def match(self, request: Any, **options: Any) -> Any:
        """Return the route matching ``request`` (or a dispatcher tuple)."""
        opts = SmartOptions(options, defaults=self._match_defaults)
        default = getattr(opts, "default", None)
        dispatch = getattr(opts, "dispatch", False)

        method = request.method.upper()
        allowed: List[str] = []
        for route in self._routes:
            params = route.match(request.path)
            if params is None:
                continue
            if method not in route.methods:
                allowed.extend(m for m in route.methods if m not in allowed)
                continue
            if dispatch:
                return (FOUND, dict(route.action), params)
            return route

        if default is not None:
            return default
        if allowed:
            raise LookupError(
                f"Method {method} not allowed for '{request.path}' (allowed: {', '.join(allowed)})"
            )
        raise LookupError(f"No route matches {method} '{request.path}'")

    def api_route(self, container: Any, request: Any, **options: Any) -> ApiRoute:
        return ApiRoute(container, self.match(request, **options), request)

    def describe(self, container: Any) -> List[Dict[str, Any]]:
        """Describe the API metadata of every registered route."""
        described: List[Dict[str, Any]] = []
        for route in self._routes:
            request = Request(route.methods[0], "/" + route.uri)
            described.append(ApiRoute(container, route, request).describe())
        return described
