"""Ordered key-value record attached to an iteration."""

from __future__ import annotations

from typing import Any, Dict, Iterator, Optional, Tuple


class KV:
    """Auxiliary per-iteration values reported by a solver or the executor.

    Keys keep insertion order; pushing an existing key replaces its value in
    place.

    Example
    -------
    >>> kv = KV().push("grad_norm", 0.5).push("alpha", 1.0)
    >>> list(kv.keys())
    ['grad_norm', 'alpha']
    """

    def __init__(self, items: Optional[Dict[str, Any]] = None, **kwargs: Any) -> None:
        self._items: Dict[str, Any] = {}
        if items:
            self._items.update(items)
        self._items.update(kwargs)

    def push(self, key: str, value: Any) -> "KV":
        self._items[str(key)] = value
        return self

    def merge(self, other: Optional["KV"]) -> "KV":
        """Add the entries of ``other`` (which win on conflict); returns self."""
        if other is not None:
            self._items.update(other._items)
        return self

    def get(self, key: str, default: Any = None) -> Any:
        return self._items.get(key, default)

    def keys(self):
        return self._items.keys()

    def items(self):
        return self._items.items()

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._items)

    def __getitem__(self, key: str) -> Any:
        return self._items[key]

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __iter__(self) -> Iterator[Tuple[str, Any]]:
        return iter(self._items.items())

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KV):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        body = ", ".join(f"{k}={v!r}" for k, v in self._items.items())
        return f"KV({body})"


__all__ = ["KV"]
