"""SmartAPI public API surface.

- Public exports: ``ApiRoute``, ``ApiController``, ``Container``,
  ``RouteTable``, ``Route``, ``Request`` and the ``endpoint`` decorator.
- Import must stay lightweight: nothing is instantiated at import time.
- Version string lives here as ``__version__`` for packaging tools.
"""

__version__ = "0.1.0"

from .core import (
    ApiController,
    ApiRoute,
    BindingResolutionError,
    Container,
    Request,
    Route,
    RouteTable,
    endpoint,
)

__all__ = [
    "ApiController",
    "ApiRoute",
    "BindingResolutionError",
    "Container",
    "Request",
    "Route",
    "RouteTable",
    "endpoint",
]
