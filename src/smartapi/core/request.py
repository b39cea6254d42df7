"""Minimal request value used by route matching and dispatcher sources."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

__all__ = ["Request"]


@dataclass
class Request:
    """HTTP method plus request URI (query string allowed)."""

    method: str
    uri: str = "/"
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.method = self.method.upper()

    @property
    def path(self) -> str:
        path = self.uri.split("?", 1)[0]
        return path or "/"
