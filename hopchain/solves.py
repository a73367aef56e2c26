import json
import logging
import sqlite3
import threading
from typing import Any, Dict, List, Optional, Union

from hopchain.cache import ResultCache, normalize_query, query_cache_key
from hopchain.errors import SolveConflict
from hopchain.models import Solve, SolveQuery

logger = logging.getLogger(__name__)

SOLVE_COLUMNS = (
    "id", "owner_id", "puzzle_id", "hop_ids", "length",
    "associations_key", "composite_key", "created_at", "updated_at",
)

# query field -> column it filters on
FILTER_COLUMNS = {
    "ownerId": "owner_id",
    "puzzleId": "puzzle_id",
    "associationsKey": "associations_key",
}


class SolveStore:
    """
    Solve table in sqlite. Records are keyed by id with a unique index on the composite key.
    Writes never overwrite: a second record with the same id or the same composite key is refused
    with SolveConflict. Pass ":memory:" for a throwaway store.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._init_table()

    def _init_table(self) -> None:
        with self._lock, self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS solves (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    puzzle_id TEXT NOT NULL,
                    hop_ids TEXT NOT NULL,
                    length INTEGER NOT NULL,
                    associations_key TEXT NOT NULL,
                    composite_key TEXT NOT NULL UNIQUE,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            self._conn.execute("CREATE INDEX IF NOT EXISTS solves_owner_id ON solves (owner_id)")

    @staticmethod
    def _from_row(row: sqlite3.Row) -> Solve:
        record = dict(row)
        record["hop_ids"] = json.loads(record["hop_ids"])
        return Solve.model_validate(record)

    def _fetch_one(self, sql: str, params: tuple) -> Optional[Solve]:
        with self._lock:
            row = self._conn.execute(sql, params).fetchone()
        return self._from_row(row) if row is not None else None

    def get(self, solve_id: str) -> Optional[Solve]:
        return self._fetch_one("SELECT * FROM solves WHERE id = ?", (solve_id,))

    def get_by_composite_key(self, composite_key: str) -> Optional[Solve]:
        return self._fetch_one("SELECT * FROM solves WHERE composite_key = ?", (composite_key,))

    def create(self, solve: Solve) -> Solve:
        record = solve.model_dump(mode="json")
        record["hop_ids"] = json.dumps(record["hop_ids"])
        placeholders = ", ".join("?" for _ in SOLVE_COLUMNS)
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    f"INSERT INTO solves ({', '.join(SOLVE_COLUMNS)}) VALUES ({placeholders})",
                    tuple(record[column] for column in SOLVE_COLUMNS),
                )
        except sqlite3.IntegrityError as e:
            raise SolveConflict(
                f"Solve '{solve.id}' ({solve.composite_key}) already exists: {e}"
            ) from e
        return solve

    def query(self, filters: Dict[str, Dict[str, Any]]) -> List[Solve]:
        """
        List solves matching every filter, oldest first. Supports "eq" and "contains" (a
        case-sensitive substring match).
        """
        clauses = []
        params = []
        for field, condition in filters.items():
            column = FILTER_COLUMNS.get(field)
            if column is None:
                raise ValueError(f"Unsupported solve filter: {field}")
            for op, expected in condition.items():
                if op == "eq":
                    clauses.append(f"{column} = ?")
                elif op == "contains":
                    clauses.append(f"instr({column}, ?) > 0")
                else:
                    raise ValueError(f"Unsupported filter operator: {op}")
                params.append(expected)

        sql = "SELECT * FROM solves"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY rowid"

        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        return [self._from_row(row) for row in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()


class SolveController:
    """
    Read and write access to committed solves, with the result cache in front of the store.
    Lookups that find nothing are never cached so a solve created later is always seen.
    """

    def __init__(self, store: SolveStore, cache: ResultCache):
        self.store = store
        self.cache = cache

    def get_by_id(self, solve_id: str) -> Optional[Solve]:
        cached = self.cache.solves.get(solve_id)
        if cached is not None:
            return cached

        solve = self.store.get(solve_id)
        if solve is not None:
            self.cache.solves.put(solve_id, solve)
        return solve

    def get_by_composite_key(self, composite_key: str) -> Optional[Solve]:
        cached = self.cache.solves.get(composite_key)
        if cached is not None:
            return cached

        solve = self.store.get_by_composite_key(composite_key)
        if solve is not None:
            self.cache.solves.put(composite_key, solve)
        return solve

    def query(self, query: Union[SolveQuery, Dict[str, Any]]) -> List[Solve]:
        filters = normalize_query(query)
        key = query_cache_key(filters)

        cached = self.cache.queries.get(key)
        if cached is not None:
            return list(cached)

        results = self.store.query(filters)
        self.cache.queries.put(key, list(results))
        return results

    def create(self, solve: Solve) -> Solve:
        created = self.store.create(solve)
        self.cache.solves.put(created.id, created)
        self.cache.solves.put(created.composite_key, created)
        # cached listings predate this solve
        self.cache.queries.clear()
        logger.info("Recorded solve %s (%d hops)", created.id, len(created.hop_ids))
        return created
