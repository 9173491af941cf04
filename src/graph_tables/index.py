"""In-memory hash index mapping hashes to lists of values."""

from __future__ import annotations

from typing import Any, Hashable, Iterator


class InMemoryIndex:
    """Multimap from a hash to the values stored under it."""

    def __init__(self, entries: dict[Hashable, list[Any]] | None = None, complete: bool = False) -> None:
        self.entries: dict[Hashable, list[Any]] = entries if entries is not None else {}
        self.complete = complete

    def to_raw_object(self) -> dict[Hashable, list[Any]]:
        return self.entries

    def iter_entries(self) -> Iterator[tuple[Hashable, list[Any]]]:
        yield from self.entries.items()

    def iter_hashes(self) -> Iterator[Hashable]:
        yield from self.entries

    def iter_values(self, hash_: Hashable) -> Iterator[Any]:
        yield from self.entries.get(hash_, [])

    def get_values(self, hash_: Hashable) -> list[Any]:
        return self.entries.get(hash_, [])

    def add_value(self, hash_: Hashable, value: Any) -> None:
        values = self.entries.setdefault(hash_, [])
        if value not in values:
            values.append(value)

    def __contains__(self, hash_: object) -> bool:
        return hash_ in self.entries

    def __len__(self) -> int:
        return len(self.entries)
