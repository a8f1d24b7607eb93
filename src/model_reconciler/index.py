"""
Candidate-Key Index

Multimap from lookup keys to source records, built once per source per pass.
Keys are registered in the order each record's key function yields them, and
lookups walk the query's keys in preference order, so the first key that hits
decides the match.
"""

from typing import Callable, Dict, Generic, Iterable, Iterator, List, Optional, Tuple, TypeVar

R = TypeVar("R")


class ModelIndex(Generic[R]):
    """Fast lookup structure for cross-source model resolution."""

    def __init__(self, key_func: Callable[[str], List[str]]):
        self._key_func = key_func
        self._by_key: Dict[str, List[R]] = {}
        self._records: List[R] = []
        self._own_counts: Dict[str, int] = {}

    @classmethod
    def build(
        cls,
        records: Iterable[R],
        name_of: Callable[[R], str],
        key_func: Callable[[str], List[str]],
    ) -> "ModelIndex[R]":
        index = cls(key_func)
        for record in records:
            index.add(name_of(record), record)
        return index

    def clear(self):
        """Reset the index."""
        self._by_key.clear()
        self._records.clear()
        self._own_counts.clear()

    def add(self, name: str, record: R):
        """
        Index a record under every key generated from its name.

        A record registered under its own name (as given or lowercased) ranks
        ahead of records that only reach that key through a derived form.
        """
        self._records.append(record)
        own_names = (name, name.lower())
        for key in self._key_func(name):
            bucket = self._by_key.setdefault(key, [])
            if any(existing is record for existing in bucket):
                continue
            if key in own_names:
                position = self._own_counts.get(key, 0)
                bucket.insert(position, record)
                self._own_counts[key] = position + 1
            else:
                bucket.append(record)

    def get(self, key: str) -> Optional[R]:
        """First record registered under ``key``."""
        bucket = self._by_key.get(key)
        return bucket[0] if bucket else None

    def get_all(self, key: str) -> List[R]:
        return list(self._by_key.get(key, []))

    def first_match(self, keys: Iterable[str]) -> Optional[Tuple[str, R]]:
        """Walk ``keys`` in order and return the first (key, record) hit."""
        for key in keys:
            record = self.get(key)
            if record is not None:
                return key, record
        return None

    def keys(self) -> Iterator[str]:
        return iter(self._by_key)

    def items(self) -> Iterator[Tuple[str, R]]:
        """(key, first record) pairs in registration order."""
        for key, bucket in self._by_key.items():
            yield key, bucket[0]

    def records(self) -> List[R]:
        return list(self._records)

    def entry_count(self) -> int:
        """Return total number of key -> record entries."""
        return sum(len(v) for v in self._by_key.values())

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)
