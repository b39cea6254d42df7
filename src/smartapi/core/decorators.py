"""Decorator helpers for marking controller methods (source of truth).

``endpoint(*, scopes=None, providers=None, limit=None, expires=None,
protected=None)``

- Returns a decorator storing a payload dict on the function under
  ``TARGET_ATTR_NAME`` (a list, so stacked decorators accumulate).
- Only the arguments that were given end up in the payload; ``scopes`` and
  ``providers`` are normalized with ``split_values``.
- No controller or route is touched at decoration time: markers are read when
  an :class:`~smartapi.core.route.ApiRoute` resolves the controller method.
- The original function is returned unchanged aside from the marker.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Optional, Union

from .attributes import split_values

__all__ = ["endpoint", "TARGET_ATTR_NAME"]

TARGET_ATTR_NAME = "__smartapi_endpoint__"


def endpoint(
    *,
    scopes: Optional[Union[str, Iterable[str]]] = None,
    providers: Optional[Union[str, Iterable[str]]] = None,
    limit: Optional[int] = None,
    expires: Optional[int] = None,
    protected: Optional[bool] = None,
) -> Callable:
    """Attach API properties to a single controller method.

    Args:
        scopes: Scopes required by the method, appended to route scopes.
        providers: Authentication providers, appended to route providers.
        limit: Request limit overriding the route limit.
        expires: Limit window overriding the route expiration.
        protected: Protection flag overriding the route flag.
    """
    payload: Dict[str, Any] = {}
    if scopes is not None:
        payload["scopes"] = split_values(scopes)
    if providers is not None:
        payload["providers"] = split_values(providers)
    if limit is not None:
        payload["limit"] = int(limit)
    if expires is not None:
        payload["expires"] = int(expires)
    if protected is not None:
        payload["protected"] = protected

    def decorator(func: Callable) -> Callable:
        markers = list(getattr(func, TARGET_ATTR_NAME, []))
        markers.append(dict(payload))
        setattr(func, TARGET_ATTR_NAME, markers)
        return func

    return decorator
