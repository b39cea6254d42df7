"""Core runtime aggregator.

Purpose: expose the runtime building blocks from a single module. No extra
logic beyond imports/exports.

- ``route``      → ``ApiRoute`` (API metadata adapter)
- ``sources``    → ``RouteSource`` and its two implementations
- ``container``  → ``Container`` / ``BindingResolutionError``
- ``controller`` → ``ApiController`` mixin and ``applies_to_method`` filter
- ``decorators`` → ``endpoint`` marker
- ``table``      → framework ``Route`` and ``RouteTable``
- ``request``    → ``Request`` value
"""

from .attributes import RouteAttributes
from .container import BindingResolutionError, Container
from .controller import ApiController, applies_to_method, is_api_controller
from .decorators import endpoint
from .request import Request
from .route import ApiRoute
from .sources import DispatchRouteSource, FrameworkRouteSource, RouteSource, resolve_route_source
from .table import FOUND, METHOD_NOT_ALLOWED, NOT_FOUND, Route, RouteTable

__all__ = [
    "ApiController",
    "ApiRoute",
    "BindingResolutionError",
    "Container",
    "DispatchRouteSource",
    "FOUND",
    "FrameworkRouteSource",
    "METHOD_NOT_ALLOWED",
    "NOT_FOUND",
    "Request",
    "Route",
    "RouteAttributes",
    "RouteSource",
    "RouteTable",
    "applies_to_method",
    "endpoint",
    "is_api_controller",
    "resolve_route_source",
]
