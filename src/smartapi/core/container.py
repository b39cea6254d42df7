"""Dependency-injection container (source of truth).

The container builds controller instances out of the ``Controller`` part of a
``"Controller@method"`` action. Rebuild it from this description.

Bindings
--------
- ``bind(abstract, concrete=None, *, shared=False)`` registers how to build
  ``abstract``. ``concrete`` may be a class, a dotted path, or a factory
  callable receiving the container. ``None`` means "build ``abstract``
  itself".
- ``singleton(abstract, concrete=None)`` is ``bind(..., shared=True)``: the
  first built object is cached and returned afterwards.
- ``instance(abstract, obj)`` stores a ready object.
- ``bound(abstract)`` tells whether a binding or instance exists.

Keys: strings are used verbatim; classes are keyed by
``"<module>.<qualname>"`` so ``make(SomeClass)`` and
``make("pkg.mod.SomeClass")`` hit the same binding.

Resolution
----------
``make(abstract, **options)`` merges ``options`` with the container defaults
through ``SmartOptions`` (``make_parameters`` seeds ``parameters``). Order:

1. cached instance;
2. binding (factory called with the container, class/path built);
3. ``abstract`` itself when it is a class or an importable dotted path
   (``pkg.mod.Class`` or ``pkg.mod:Class``).

Building a class inspects its ``__init__``: explicit ``parameters`` win, then
parameters annotated with a non-builtin class are made through the container,
then parameter defaults apply. A default also wins when building the
annotated class fails. Parameters the constructor does not name are only
passed when it accepts ``**kwargs``. A required parameter that cannot be
satisfied, an import failure, or a missing attribute raises
:class:`BindingResolutionError` (chained to the underlying error).
"""

from __future__ import annotations

import inspect
import logging
import types
from importlib import import_module
from typing import Any, Dict, Optional, Tuple, Union, get_args, get_origin, get_type_hints

from smartseeds import SmartOptions

__all__ = ["BindingResolutionError", "Container"]

logger = logging.getLogger("smartapi")


class BindingResolutionError(LookupError):
    """Raised when the container cannot build the requested target."""


def _unwrap_optional(hint: Any) -> Any:
    # Optional[X] and X | None resolve as X
    if get_origin(hint) in (Union, types.UnionType):
        args = [arg for arg in get_args(hint) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


class Container:
    """Resolve controllers and their dependencies by class or dotted path."""

    __slots__ = ("_bindings", "_instances", "_make_defaults")

    def __init__(
        self,
        *,
        make_parameters: Optional[Dict[str, Any]] = None,
        make_kwargs: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._bindings: Dict[str, Tuple[Any, bool]] = {}
        self._instances: Dict[str, Any] = {}
        defaults: Dict[str, Any] = dict(make_kwargs or {})
        if make_parameters is not None:
            defaults.setdefault("parameters", dict(make_parameters))
        self._make_defaults = defaults

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def bind(self, abstract: Any, concrete: Any = None, *, shared: bool = False) -> "Container":
        key = self._key(abstract)
        self._instances.pop(key, None)
        self._bindings[key] = (concrete if concrete is not None else abstract, shared)
        return self

    def singleton(self, abstract: Any, concrete: Any = None) -> "Container":
        return self.bind(abstract, concrete, shared=True)

    def instance(self, abstract: Any, obj: Any) -> Any:
        self._instances[self._key(abstract)] = obj
        return obj

    def bound(self, abstract: Any) -> bool:
        key = self._key(abstract)
        return key in self._bindings or key in self._instances

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------
    def make(self, abstract: Any, **options: Any) -> Any:
        """Build (or return the cached) object for ``abstract``."""
        opts = SmartOptions(options, defaults=self._make_defaults)
        parameters = dict(getattr(opts, "parameters", None) or {})
        return self._make(abstract, parameters)

    __getitem__ = make

    def _make(self, abstract: Any, parameters: Dict[str, Any]) -> Any:
        key = self._key(abstract)
        if key in self._instances:
            return self._instances[key]

        concrete, shared = self._bindings.get(key, (abstract, False))
        if callable(concrete) and not inspect.isclass(concrete):
            obj = concrete(self)
        else:
            obj = self._build(concrete, parameters)

        if shared:
            self._instances[key] = obj
        logger.debug("Container built %s for %s", type(obj).__name__, key)
        return obj

    def _build(self, concrete: Any, parameters: Dict[str, Any]) -> Any:
        cls = self._resolve_class(concrete) if isinstance(concrete, str) else concrete
        if not inspect.isclass(cls):
            raise BindingResolutionError(f"Target {concrete!r} is not instantiable")
        kwargs = self._resolve_dependencies(cls, parameters)
        return cls(**kwargs)

    def _resolve_dependencies(self, cls: type, parameters: Dict[str, Any]) -> Dict[str, Any]:
        init = cls.__init__
        if init is object.__init__:
            return {}
        try:
            signature = inspect.signature(init)
        except (TypeError, ValueError):
            return dict(parameters)
        try:
            hints = get_type_hints(init)
        except Exception:
            # Unresolvable annotations: rely on explicit parameters and defaults
            hints = {}
        kwargs: Dict[str, Any] = {}
        for name, param in list(signature.parameters.items())[1:]:
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            if name in parameters:
                kwargs[name] = parameters[name]
                continue
            hint = _unwrap_optional(hints.get(name))
            if inspect.isclass(hint) and hint.__module__ != "builtins":
                try:
                    kwargs[name] = self._make(hint, {})
                except (BindingResolutionError, TypeError) as exc:
                    if param.default is inspect.Parameter.empty:
                        raise BindingResolutionError(
                            f"Unresolvable dependency '{name}' while building {cls.__qualname__}"
                        ) from exc
                    logger.debug("Using default for '%s' of %s: %s", name, cls.__qualname__, exc)
                continue
            if param.default is inspect.Parameter.empty:
                raise BindingResolutionError(
                    f"Unresolvable dependency '{name}' while building {cls.__qualname__}"
                )
        if any(p.kind == p.VAR_KEYWORD for p in signature.parameters.values()):
            for name in set(parameters) - set(kwargs):
                kwargs[name] = parameters[name]
        return kwargs

    def _resolve_class(self, path: str) -> Any:
        path = path.strip()
        if ":" in path:
            module_name, _, attr_path = path.partition(":")
        else:
            module_name, _, attr_path = path.rpartition(".")
        if not module_name or not attr_path:
            raise BindingResolutionError(f"Target [{path}] is not a dotted import path")
        try:
            target: Any = import_module(module_name)
        except ImportError as exc:
            raise BindingResolutionError(f"Cannot import module '{module_name}' for [{path}]") from exc
        try:
            for part in attr_path.split("."):
                target = getattr(target, part)
        except AttributeError as exc:
            raise BindingResolutionError(f"Target [{path}] does not exist") from exc
        return target

    @staticmethod
    def _key(abstract: Any) -> str:
        if isinstance(abstract, str):
            return abstract.strip().replace(":", ".")
        if inspect.isclass(abstract):
            return f"{abstract.__module__}.{abstract.__qualname__}"
        raise TypeError(f"Container keys must be strings or classes, got {abstract!r}")
