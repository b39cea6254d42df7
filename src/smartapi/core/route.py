"""API route adapter (source of truth).

If this module disappeared, rebuild it from this description. ``ApiRoute``
reads the API metadata of one matched route and exposes it through accessors
consumed by version negotiation, authentication, scope checks and rate
limiting.

Construction
------------
``ApiRoute(container, route, request)``:

1. ``resolve_route_source(route, request)`` normalizes the upstream shape;
   ``uri``, ``methods`` and a copy of the action bag are stored.
2. ``pull_attributes`` removes the API keys from the bag (``version``,
   ``protected``, ``providers``, ``limit``, ``expires``, ``scopes``,
   ``conditional_request``) and validates them.
3. ``_make_controller``: when ``action["uses"]`` is a string containing ``@``,
   the part before it is made through ``container.make`` and the part after
   it is the controller method. Other ``uses`` values leave the route without
   a controller.
4. ``_setup_controller_properties``: when ``uses_controller()`` holds, every
   declaration from ``controller.get_method_properties()`` whose options pass
   ``applies_to_method`` is merged:

   * ``scopes`` / ``providers`` are appended after the route values;
   * ``rate_limit`` overrides limit and expiration (last one wins).

   Then markers from ``iter_endpoint_properties`` on the resolved method are
   applied the same way, plus ``protected`` which overrides the route flag.

Scopes and providers stay unique and keep their first position.

Accessors
---------
``is_protected`` and ``request_is_conditional`` compare against ``True`` by
identity. List accessors return copies so callers cannot alter the route.
``scopes`` is an alias of ``get_scopes``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .attributes import pull_attributes
from .controller import applies_to_method, is_api_controller, iter_endpoint_properties
from .sources import resolve_route_source

__all__ = ["ApiRoute"]

logger = logging.getLogger("smartapi")


def _extend_unique(target: List[str], values: Iterable[str]) -> None:
    for value in values:
        if value not in target:
            target.append(value)


class ApiRoute:
    """API view over a framework route and its controller."""

    __slots__ = (
        "_container",
        "_source_kind",
        "uri",
        "methods",
        "action",
        "_versions",
        "_scopes",
        "_protected",
        "_auth_providers",
        "_rate_limit",
        "_rate_expiration",
        "_conditional_request",
        "_controller",
        "_method",
    )

    def __init__(self, container: Any, route: Any, request: Any) -> None:
        self._container = container
        self._controller: Any = None
        self._method: Optional[str] = None
        self._setup_route(route, request)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------
    def _setup_route(self, route: Any, request: Any) -> None:
        source = resolve_route_source(route, request)
        self._source_kind = source.kind
        self.uri: str = source.uri
        self.methods: List[str] = list(source.methods)
        self.action: Dict[str, Any] = dict(source.action)

        attributes = pull_attributes(self.action, context=self.uri)
        self._versions = list(attributes.versions)
        self._scopes = list(attributes.scopes)
        self._protected = attributes.protected
        self._auth_providers = list(attributes.providers)
        self._rate_limit = attributes.limit
        self._rate_expiration = attributes.expires
        self._conditional_request = attributes.conditional_request

        self._make_controller()
        self._setup_controller_properties()
        logger.debug(
            "API route %s [%s] from %s source: scopes=%s providers=%s limit=%s/%s",
            self.uri,
            "|".join(self.methods),
            self._source_kind,
            self._scopes,
            self._auth_providers,
            self._rate_limit,
            self._rate_expiration,
        )

    def _make_controller(self) -> None:
        uses = self.action.get("uses")
        if not isinstance(uses, str) or "@" not in uses:
            return
        controller, method = self._split_uses(uses)
        self._controller = self._container.make(controller)
        self._method = method
        logger.debug("Route %s resolved controller %s@%s", self.uri, controller, method)

    @staticmethod
    def _split_uses(uses: str) -> Tuple[str, str]:
        parts = uses.split("@")
        return parts[0].strip(), parts[1].strip()

    def _setup_controller_properties(self) -> None:
        if self.uses_controller():
            properties = self._controller.get_method_properties() or {}
            for value in properties.get("scopes", []):
                if applies_to_method(self._method, value.get("options")):
                    _extend_unique(self._scopes, value.get("scopes", []))
            for value in properties.get("providers", []):
                if applies_to_method(self._method, value.get("options")):
                    _extend_unique(self._auth_providers, value.get("providers", []))
            for value in properties.get("rate_limit", []):
                if applies_to_method(self._method, value.get("options")):
                    self._rate_limit = value["limit"]
                    self._rate_expiration = value["expires"]

        for marker in iter_endpoint_properties(self._controller, self._method):
            _extend_unique(self._scopes, marker.get("scopes", []))
            _extend_unique(self._auth_providers, marker.get("providers", []))
            if "limit" in marker:
                self._rate_limit = marker["limit"]
            if "expires" in marker:
                self._rate_expiration = marker["expires"]
            if "protected" in marker:
                self._protected = marker["protected"]

    # ------------------------------------------------------------------
    # Controller
    # ------------------------------------------------------------------
    def uses_controller(self) -> bool:
        """Return True when the route resolved a controller exposing method properties."""
        if self._controller is None:
            return False
        return is_api_controller(self._controller) or callable(
            getattr(self._controller, "get_method_properties", None)
        )

    @property
    def controller(self) -> Any:
        return self._controller

    @property
    def controller_method(self) -> Optional[str]:
        return self._method

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    def is_protected(self) -> bool:
        return self._protected is True

    def get_scopes(self) -> List[str]:
        return list(self._scopes)

    scopes = get_scopes

    def get_auth_providers(self) -> List[str]:
        return list(self._auth_providers)

    def get_rate_limit(self) -> int:
        return self._rate_limit

    def get_limit_expiration(self) -> int:
        return self._rate_expiration

    def get_versions(self) -> List[str]:
        return list(self._versions)

    def request_is_conditional(self) -> bool:
        return self._conditional_request is True

    def describe(self) -> Dict[str, Any]:
        """Return the extracted API metadata as a plain dict."""
        controller = None
        if self._controller is not None:
            controller = f"{type(self._controller).__name__}@{self._method}"
        return {
            "uri": self.uri,
            "methods": list(self.methods),
            "source": self._source_kind,
            "controller": controller,
            "versions": self.get_versions(),
            "protected": self.is_protected(),
            "scopes": self.get_scopes(),
            "providers": self.get_auth_providers(),
            "limit": self.get_rate_limit(),
            "expires": self.get_limit_expiration(),
            "conditional_request": self.request_is_conditional(),
        }

    def __repr__(self) -> str:
        return f"<ApiRoute {'|'.join(self.methods)} {self.uri!r}>"
