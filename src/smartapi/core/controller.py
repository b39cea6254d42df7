"""ApiController mixin and controller-method filters (source of truth).

Reconstruct from the following contract.

ApiController
-------------
- ``__slots__``: ``PROPERTIES_ATTR_NAME`` only; the declaration store is
  created lazily on first use so subclasses are free to skip
  ``super().__init__()``.
- Declaration helpers, meant to be called from ``__init__``:

  * ``scopes(scopes, methods=None, *, only=None, except_=None)``
  * ``authenticate_with(providers, methods=None, *, only=None, except_=None)``
  * ``rate_limit(limit, expires, methods=None, *, only=None, except_=None)``

  Every helper appends ``{<payload>, "options": {...}}`` to its bucket and
  returns ``self``. ``methods`` is the unkeyed method list; ``only`` and
  ``except_`` land under the ``"only"`` and ``"except"`` keys. String method
  lists are split on ``|``.
- ``get_method_properties()`` returns a fresh dict with the ``"scopes"``,
  ``"providers"`` and ``"rate_limit"`` buckets (lists, possibly empty).

Filters
-------
``applies_to_method(method, options)`` decides whether a declaration applies:

1. ``True`` when ``options["only"]`` lists the method;
2. else ``False`` when ``options["except"]`` lists the method;
3. else ``True`` when the unkeyed list contains the method (``options`` given
   as a plain sequence, or its ``"methods"`` key);
4. else ``True``.

Markers
-------
``iter_endpoint_properties(controller, method)`` yields the payloads stored by
:func:`~smartapi.core.decorators.endpoint` on the method the controller would
actually run (attribute lookup on the class, so subclass overrides win). Works
for any controller object, mixin or not.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from smartseeds.typeutils import safe_is_instance

from .attributes import split_values
from .decorators import TARGET_ATTR_NAME

__all__ = [
    "ApiController",
    "applies_to_method",
    "is_api_controller",
    "iter_endpoint_properties",
]

PROPERTIES_ATTR_NAME = "__smartapi_properties__"
PROPERTY_BUCKETS = ("scopes", "providers", "rate_limit")

MethodList = Optional[Union[str, Iterable[str]]]


def _build_options(methods: MethodList, only: MethodList, except_: MethodList) -> Dict[str, Any]:
    options: Dict[str, Any] = {}
    if methods is not None:
        options["methods"] = split_values(methods)
    if only is not None:
        options["only"] = split_values(only)
    if except_ is not None:
        options["except"] = split_values(except_)
    return options


class ApiController:
    """Mixin collecting controller-level API declarations."""

    __slots__ = (PROPERTIES_ATTR_NAME,)

    def _properties_store(self) -> Dict[str, List[Dict[str, Any]]]:
        store = getattr(self, PROPERTIES_ATTR_NAME, None)
        if store is None:
            store = {bucket: [] for bucket in PROPERTY_BUCKETS}
            setattr(self, PROPERTIES_ATTR_NAME, store)
        return store

    def scopes(
        self,
        scopes: Union[str, Iterable[str]],
        methods: MethodList = None,
        *,
        only: MethodList = None,
        except_: MethodList = None,
    ) -> "ApiController":
        """Require ``scopes`` on the matching controller methods."""
        self._properties_store()["scopes"].append(
            {"scopes": split_values(scopes), "options": _build_options(methods, only, except_)}
        )
        return self

    def authenticate_with(
        self,
        providers: Union[str, Iterable[str]],
        methods: MethodList = None,
        *,
        only: MethodList = None,
        except_: MethodList = None,
    ) -> "ApiController":
        """Add authentication providers for the matching controller methods."""
        self._properties_store()["providers"].append(
            {
                "providers": split_values(providers),
                "options": _build_options(methods, only, except_),
            }
        )
        return self

    def rate_limit(
        self,
        limit: int,
        expires: int,
        methods: MethodList = None,
        *,
        only: MethodList = None,
        except_: MethodList = None,
    ) -> "ApiController":
        """Set the request limit and window for the matching controller methods."""
        limit, expires = int(limit), int(expires)
        if limit < 0 or expires < 0:
            raise ValueError("rate_limit() requires non-negative limit and expires")
        self._properties_store()["rate_limit"].append(
            {
                "limit": limit,
                "expires": expires,
                "options": _build_options(methods, only, except_),
            }
        )
        return self

    def get_method_properties(self) -> Dict[str, List[Dict[str, Any]]]:
        store = self._properties_store()
        return {bucket: list(store[bucket]) for bucket in PROPERTY_BUCKETS}


def applies_to_method(method: Optional[str], options: Union[Mapping[str, Any], Iterable[str], None]) -> bool:
    """Return True when a declaration with ``options`` applies to ``method``."""
    if not options or not isinstance(options, Mapping):
        return True
    if "only" in options and method in split_values(options["only"]):
        return True
    if "except" in options and method in split_values(options["except"]):
        return False
    # listed in the unkeyed methods or not listed anywhere: both apply
    return True


def iter_endpoint_properties(controller: Any, method: Optional[str]) -> Iterator[Dict[str, Any]]:
    """Yield endpoint markers declared on ``controller``'s ``method``."""
    if controller is None or not method:
        return
    func = getattr(type(controller), method, None)
    markers = getattr(func, TARGET_ATTR_NAME, None) if func is not None else None
    for marker in markers or ():
        yield dict(marker)


def is_api_controller(obj: Any) -> bool:
    """Return True when ``obj`` is an ApiController instance."""
    return safe_is_instance(obj, "smartapi.core.controller.ApiController")
