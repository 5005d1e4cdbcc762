"""
Mapping keyed by address with case-insensitive key equality
"""
from collections.abc import MutableMapping
from typing import Any, Iterator


class AddressMap(MutableMapping):
    """
    Dict-like container whose keys compare case-insensitively.

    Setting a key that differs from an existing one only by letter case
    replaces both the value and the stored spelling, so iteration yields the
    spelling written last.
    """

    def __init__(self, *args, **kwargs):
        self._items: dict[str, tuple[str, Any]] = {}
        self.update(*args, **kwargs)

    @staticmethod
    def _norm(key: str) -> str:
        return key.lower()

    def __getitem__(self, key: str) -> Any:
        return self._items[self._norm(key)][1]

    def __setitem__(self, key: str, value: Any) -> None:
        # Position of the first write is kept, spelling of the last one
        self._items[self._norm(key)] = (key, value)

    def __delitem__(self, key: str) -> None:
        del self._items[self._norm(key)]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._norm(key) in self._items

    def __eq__(self, other: object) -> bool:
        if isinstance(other, AddressMap):
            return {k: v for k, (_, v) in self._items.items()} == {
                k: v for k, (_, v) in other._items.items()
            }
        if isinstance(other, dict):
            return dict(self.items()) == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"AddressMap({dict(self.items())!r})"
