"""API attributes carried by a route action bag (source of truth).

If this module vanished, rebuild it from the contract below.

Keys
----
The action bag of a route may carry these API keys next to framework keys
such as ``uses`` or ``middleware``:

- ``version``   – version(s) the route responds to (string or iterable)
- ``protected`` – protection flag; only the exact value ``True`` protects
- ``providers`` – authentication provider names; ``"basic|oauth"`` is split
  on ``|``
- ``limit``     – request limit (non-negative int, not a bool, default ``0``)
- ``expires``   – limit window in minutes (non-negative int, not a bool, default ``0``)
- ``scopes``    – OAuth scopes required by the route
- ``conditional_request`` – whether the request may be answered conditionally
  (default ``True``)

``pull_attributes(action, context=...)`` pops every key above out of
``action`` (in place) and returns a validated :class:`RouteAttributes`.
Keys that are absent fall back to the defaults. Validation failures are
re-raised as ``ValidationError`` titled ``"Invalid API attributes for route
'<context>'"``.

Normalization
-------------
``split_values`` turns ``None`` into ``[]``, splits strings on ``|``, trims
and drops empty tokens, dedupes while keeping the first occurrence.
Iterables are handled item by item; anything else raises ``ValueError``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from pydantic import BaseModel, Field, ValidationError, field_validator

__all__ = ["ACTION_KEYS", "RouteAttributes", "pull_attributes", "split_values"]

# action key -> RouteAttributes field
ACTION_KEYS: Dict[str, str] = {
    "version": "versions",
    "protected": "protected",
    "providers": "providers",
    "limit": "limit",
    "expires": "expires",
    "scopes": "scopes",
    "conditional_request": "conditional_request",
}


def split_values(raw: Any) -> List[str]:
    """Normalize a string or iterable of strings into a unique, ordered list."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        tokens = [token.strip() for token in raw.split("|")]
    elif isinstance(raw, Iterable):
        tokens = []
        for item in raw:
            if item is None:
                continue
            if not isinstance(item, str):
                raise ValueError(f"expected string values, got {type(item).__name__}")
            tokens.extend(token.strip() for token in item.split("|"))
    else:
        raise ValueError("must be a string or an iterable of strings")
    cleaned: List[str] = []
    for token in tokens:
        if not token or token in cleaned:
            continue
        cleaned.append(token)
    return cleaned


class RouteAttributes(BaseModel):
    """Validated API attributes pulled from an action bag."""

    versions: List[str] = Field(default_factory=list)
    protected: Any = False
    providers: List[str] = Field(default_factory=list)
    limit: int = Field(default=0, ge=0)
    expires: int = Field(default=0, ge=0)
    scopes: List[str] = Field(default_factory=list)
    conditional_request: Any = True

    @field_validator("versions", "providers", "scopes", mode="before")
    @classmethod
    def _split(cls, value: Any) -> List[str]:
        return split_values(value)

    @field_validator("limit", "expires", mode="before")
    @classmethod
    def _reject_bool(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("must be an integer, not a boolean")
        return value


def pull_attributes(action: Dict[str, Any], *, context: str = "") -> RouteAttributes:
    """Pop the API keys out of ``action`` and validate them."""
    raw: Dict[str, Any] = {}
    for key, field_name in ACTION_KEYS.items():
        if key in action:
            value = action.pop(key)
            if value is not None:
                raw[field_name] = value
    try:
        return RouteAttributes(**raw)
    except ValidationError as exc:
        raise ValidationError.from_exception_data(
            title=f"Invalid API attributes for route '{context}'",
            line_errors=exc.errors(include_url=False),
        ) from exc
