"""Bounded LRU caches in front of solve lookups and solve listings."""

import json
import threading
from collections import OrderedDict
from typing import Any, Dict, Generic, Hashable, List, Optional, TypeVar, Union

from hopchain.models import Solve, SolveQuery

V = TypeVar("V")

POINT_CACHE_SIZE = 1000
QUERY_CACHE_SIZE = 100

# query field -> comparison used against the store. anything else is not a filter.
QUERY_OPERATORS = {
    "ownerId": "eq",
    "puzzleId": "eq",
    "associationsKey": "contains",
}


class LRUCache(Generic[V]):
    """
    Least-recently-used cache backed by an ``OrderedDict``. A hit moves the entry to the end; an
    insert past ``max_size`` evicts from the front. Concurrent readers and writers are serialized
    by a lock, and the last write for a key wins.
    """

    def __init__(self, max_size: int):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._entries: "OrderedDict[Hashable, V]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[V]:
        with self._lock:
            if key not in self._entries:
                return None
            self._entries.move_to_end(key)
            return self._entries[key]

    def put(self, key: Hashable, value: V) -> None:
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            self._entries[key] = value
            if len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ResultCache:
    """Two independent caches: single solves by key, and solve lists by normalized query."""

    def __init__(self, point_size: int = POINT_CACHE_SIZE, query_size: int = QUERY_CACHE_SIZE):
        self.solves: LRUCache[Solve] = LRUCache(point_size)
        self.queries: LRUCache[List[Solve]] = LRUCache(query_size)


def normalize_query(query: Union[SolveQuery, Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """
    Turn a query into store filters. Owner and puzzle ids are equality filters, the associations
    key is a substring filter, unset values and unknown fields are dropped.
    """
    if not isinstance(query, SolveQuery):
        query = SolveQuery.model_validate(query)

    filters: Dict[str, Dict[str, Any]] = {}
    for field, value in query.model_dump(by_alias=True).items():
        if value is None or field not in QUERY_OPERATORS:
            continue
        filters[field] = {QUERY_OPERATORS[field]: value}
    return filters


def query_cache_key(filters: Dict[str, Dict[str, Any]]) -> str:
    return json.dumps(filters, sort_keys=True)
