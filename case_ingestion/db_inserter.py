"""
Case Store - persistence boundary of the ingestion pipeline.

The pipeline only ever writes: every entity is upserted by id and never read
back during an ingestion call. Two adapters are provided:

- InMemoryCaseStore: dict-backed, for tests and dry runs
- DatabaseCaseStore: SQLAlchemy engine, JSON payload per entity, plain SQL
"""

import asyncio
import json
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import nullcontext
from typing import Any, Dict, List, Sequence, Tuple

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

from .models import CaseActor, CaseDeadline, CaseFile, CaseIssue, CaseMemoryEvent, to_record

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """
    One or more upserts failed. Every other upsert of the same ingestion
    call was still attempted.
    """

    def __init__(self, failures: Sequence[Tuple[str, BaseException]], result: Any = None):
        self.failures = list(failures)
        self.result = result
        summary = ", ".join(f"{entity_id}: {error}" for entity_id, error in self.failures)
        super().__init__(f"{len(self.failures)} upsert(s) failed: {summary}")


class CaseStore(ABC):
    """Idempotent upsert contract consumed by the case assembler."""

    @abstractmethod
    async def upsert_case_file(self, case_file: CaseFile) -> None: ...

    @abstractmethod
    async def upsert_actor(self, actor: CaseActor) -> None: ...

    @abstractmethod
    async def upsert_issue(self, issue: CaseIssue) -> None: ...

    @abstractmethod
    async def upsert_deadline(self, deadline: CaseDeadline) -> None: ...

    @abstractmethod
    async def upsert_memory_event(self, event: CaseMemoryEvent) -> None: ...


class InMemoryCaseStore(CaseStore):
    """Keeps serialized copies of everything written, keyed by (case id, id)."""

    def __init__(self):
        self.case_files: Dict[str, Dict[str, Any]] = {}
        self.actors: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.issues: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.deadlines: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.memory_events: Dict[Tuple[str, str], Dict[str, Any]] = {}

    async def upsert_case_file(self, case_file: CaseFile) -> None:
        self.case_files[case_file.id] = to_record(case_file)

    async def upsert_actor(self, actor: CaseActor) -> None:
        self.actors[(actor.case_id, actor.id)] = to_record(actor)

    async def upsert_issue(self, issue: CaseIssue) -> None:
        self.issues[(issue.case_id, issue.id)] = to_record(issue)

    async def upsert_deadline(self, deadline: CaseDeadline) -> None:
        self.deadlines[(deadline.case_id, deadline.id)] = to_record(deadline)

    async def upsert_memory_event(self, event: CaseMemoryEvent) -> None:
        self.memory_events[(event.case_id, event.id)] = to_record(event)


# Table name -> (columns, conflict columns)
TABLES: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    "case_files": (("id", "workspace_id", "title", "payload", "updated_at"), ("id",)),
    "case_actors": (("case_id", "id", "role", "payload", "updated_at"), ("case_id", "id")),
    "case_issues": (("case_id", "id", "category", "payload", "updated_at"), ("case_id", "id")),
    "case_deadlines": (("case_id", "id", "due_at", "payload", "updated_at"), ("case_id", "id")),
    "case_memory_events": (("case_id", "id", "payload", "updated_at"), ("case_id", "id")),
}

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS case_files (
        id VARCHAR(255) PRIMARY KEY,
        workspace_id VARCHAR(255) NOT NULL,
        title TEXT,
        payload TEXT NOT NULL,
        updated_at VARCHAR(32) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS case_actors (
        case_id VARCHAR(255) NOT NULL,
        id VARCHAR(512) NOT NULL,
        role VARCHAR(32) NOT NULL,
        payload TEXT NOT NULL,
        updated_at VARCHAR(32) NOT NULL,
        PRIMARY KEY (case_id, id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS case_issues (
        case_id VARCHAR(255) NOT NULL,
        id VARCHAR(512) NOT NULL,
        category VARCHAR(32) NOT NULL,
        payload TEXT NOT NULL,
        updated_at VARCHAR(32) NOT NULL,
        PRIMARY KEY (case_id, id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS case_deadlines (
        case_id VARCHAR(255) NOT NULL,
        id VARCHAR(512) NOT NULL,
        due_at VARCHAR(32) NOT NULL,
        payload TEXT NOT NULL,
        updated_at VARCHAR(32) NOT NULL,
        PRIMARY KEY (case_id, id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS case_memory_events (
        case_id VARCHAR(255) NOT NULL,
        id VARCHAR(512) NOT NULL,
        payload TEXT NOT NULL,
        updated_at VARCHAR(32) NOT NULL,
        PRIMARY KEY (case_id, id)
    )
    """,
]


def _payload(entity) -> str:
    return json.dumps(to_record(entity), ensure_ascii=False, sort_keys=True)


def is_memory_sqlite_url(database_url: str) -> bool:
    """True for ``sqlite://`` and ``sqlite:///:memory:``."""
    url = make_url(database_url)
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


class DatabaseCaseStore(CaseStore):
    """
    Upsert case entities through SQLAlchemy.
    Uses direct SQL with ``INSERT ... ON CONFLICT DO UPDATE`` (PostgreSQL, SQLite).

    Blocking database calls run in worker threads so concurrent upserts
    do not stall the event loop.
    """

    def __init__(self, db_engine: Engine):
        """
        Initialize with database engine.

        Args:
            db_engine: SQLAlchemy engine instance
        """
        self.db = db_engine
        # A StaticPool hands every thread the same connection; transactions must not interleave.
        self._serial = threading.Lock() if isinstance(db_engine.pool, StaticPool) else nullcontext()

    @classmethod
    def from_url(cls, database_url: str, create_schema: bool = True) -> 'DatabaseCaseStore':
        """
        Create a store from a database URL.

        In-memory SQLite URLs get a single shared connection, otherwise each
        worker thread would open its own empty database.

        Args:
            database_url: SQLAlchemy connection string
            create_schema: Create the case tables if they are missing
        """
        if is_memory_sqlite_url(database_url):
            engine = create_engine(
                database_url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            engine = create_engine(database_url)
        store = cls(engine)
        if create_schema:
            store.create_schema()
        return store

    def create_schema(self) -> None:
        with self._serial, self.db.begin() as conn:
            for statement in SCHEMA_STATEMENTS:
                conn.execute(text(statement))
        logger.info("Case tables ready")

    def _upsert(self, table: str, params: Dict[str, Any]) -> None:
        columns, conflict_columns = TABLES[table]
        updates = ", ".join(f"{col} = excluded.{col}" for col in columns if col not in conflict_columns)
        query = text(f"""
            INSERT INTO {table} ({', '.join(columns)})
            VALUES ({', '.join(':' + col for col in columns)})
            ON CONFLICT ({', '.join(conflict_columns)}) DO UPDATE SET {updates}
        """)
        with self._serial, self.db.begin() as conn:
            conn.execute(query, params)

    # === SYNC API ===

    def save_case_file(self, case_file: CaseFile) -> None:
        self._upsert("case_files", {
            'id': case_file.id,
            'workspace_id': case_file.workspace_id,
            'title': case_file.title,
            'payload': _payload(case_file),
            'updated_at': case_file.updated_at,
        })

    def save_actor(self, actor: CaseActor) -> None:
        self._upsert("case_actors", {
            'case_id': actor.case_id,
            'id': actor.id,
            'role': actor.role.value,
            'payload': _payload(actor),
            'updated_at': actor.updated_at,
        })

    def save_issue(self, issue: CaseIssue) -> None:
        self._upsert("case_issues", {
            'case_id': issue.case_id,
            'id': issue.id,
            'category': issue.category.value,
            'payload': _payload(issue),
            'updated_at': issue.updated_at,
        })

    def save_deadline(self, deadline: CaseDeadline) -> None:
        self._upsert("case_deadlines", {
            'case_id': deadline.case_id,
            'id': deadline.id,
            'due_at': deadline.due_at,
            'payload': _payload(deadline),
            'updated_at': deadline.updated_at,
        })

    def save_memory_event(self, event: CaseMemoryEvent) -> None:
        self._upsert("case_memory_events", {
            'case_id': event.case_id,
            'id': event.id,
            'payload': _payload(event),
            'updated_at': event.created_at,
        })

    # === ASYNC CONTRACT ===

    async def upsert_case_file(self, case_file: CaseFile) -> None:
        await asyncio.to_thread(self.save_case_file, case_file)

    async def upsert_actor(self, actor: CaseActor) -> None:
        await asyncio.to_thread(self.save_actor, actor)

    async def upsert_issue(self, issue: CaseIssue) -> None:
        await asyncio.to_thread(self.save_issue, issue)

    async def upsert_deadline(self, deadline: CaseDeadline) -> None:
        await asyncio.to_thread(self.save_deadline, deadline)

    async def upsert_memory_event(self, event: CaseMemoryEvent) -> None:
        await asyncio.to_thread(self.save_memory_event, event)

    # === READ-BACK (verification only) ===

    def load_actors(self, case_id: str) -> List[Dict[str, Any]]:
        with self._serial, self.db.connect() as conn:
            rows = conn.execute(
                text("SELECT payload FROM case_actors WHERE case_id = :case_id ORDER BY id"),
                {'case_id': case_id},
            ).fetchall()
        return [json.loads(row.payload) for row in rows]

    def get_case_stats(self, case_id: str) -> Dict[str, Any]:
        """Row counts per entity table for one case."""
        with self._serial, self.db.connect() as conn:
            row = conn.execute(text("""
                SELECT
                    (SELECT COUNT(*) FROM case_files WHERE id = :case_id) as case_files,
                    (SELECT COUNT(*) FROM case_actors WHERE case_id = :case_id) as actors,
                    (SELECT COUNT(*) FROM case_issues WHERE case_id = :case_id) as issues,
                    (SELECT COUNT(*) FROM case_deadlines WHERE case_id = :case_id) as deadlines,
                    (SELECT COUNT(*) FROM case_memory_events WHERE case_id = :case_id) as memory_events
            """), {'case_id': case_id}).fetchone()
        return {
            'case_id': case_id,
            'case_files': row.case_files,
            'actors': row.actors,
            'issues': row.issues,
            'deadlines': row.deadlines,
            'memory_events': row.memory_events,
        }
