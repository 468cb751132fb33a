from __future__ import annotations

from .base import PageFetcher

# Global in-process registry: kind -> fetcher class
_REGISTRY: dict[str, type[PageFetcher]] = {}


def register(cls: type[PageFetcher]) -> type[PageFetcher]:
    """
    Class decorator to register a fetcher class under its `kind`.
    Re-registering the same class is a no-op; a different class for a taken kind is rejected.
    """
    kind = getattr(cls, "kind", "") or ""
    if not isinstance(kind, str) or not kind.strip():
        raise ValueError(f"Cannot register fetcher {cls!r}: missing/empty 'kind'.")
    key = kind.strip().lower()
    if key in _REGISTRY and _REGISTRY[key] is not cls:
        raise ValueError(f"Fetcher kind {key!r} already registered to {_REGISTRY[key]!r}.")
    _REGISTRY[key] = cls
    return cls


def get(kind: str) -> type[PageFetcher]:
    """
    Look up a fetcher class by kind (case-insensitive).
    Raises KeyError if not found.
    """
    key = (kind or "").strip().lower()
    if key not in _REGISTRY:
        raise KeyError(f"No page fetcher registered for kind {kind!r}.")
    return _REGISTRY[key]


def all_kinds() -> dict[str, type[PageFetcher]]:
    return dict(_REGISTRY)
