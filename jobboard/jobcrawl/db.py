from __future__ import annotations
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple
from .models import JobRecord, RECORD_FIELDS
from .settings import PACKAGE_DIR

DB_FILE = PACKAGE_DIR / 'data' / 'jobs.sqlite'

COLUMNS: List[str] = ['link', 'job_type'] + RECORD_FIELDS

SCHEMA_SQL = (
    "CREATE TABLE IF NOT EXISTS jobs (\n    link TEXT PRIMARY KEY,\n"
    + ",\n".join(f"    {c} TEXT NOT NULL DEFAULT ''" for c in COLUMNS[1:])
    + "\n);"
)

INDEX_SQL = "CREATE INDEX IF NOT EXISTS idx_jobs_job_type ON jobs(job_type)"

UPSERT_SQL = (
    f"INSERT INTO jobs ({', '.join(COLUMNS)}) VALUES ({', '.join('?' for _ in COLUMNS)})\n"
    "ON CONFLICT(link) DO UPDATE SET\n"
    + ",\n".join(f"    {c}=excluded.{c}" for c in COLUMNS[1:])
)


def _icontains(haystack, needle) -> int:
    if needle is None:
        return 1
    return int(str(needle).casefold() in str(haystack or '').casefold())


@dataclass(frozen=True)
class JobFilter:
    """Predicate shared by find() and count(). Empty filter matches everything."""
    keyword: Optional[str] = None
    location: Optional[str] = None
    job_type: Optional[str] = None

    def to_sql(self) -> Tuple[str, list]:
        clauses: List[str] = []
        params: list = []
        if self.keyword:
            clauses.append("(icontains(title, ?) OR icontains(company, ?))")
            params.extend([self.keyword, self.keyword])
        if self.location:
            clauses.append("icontains(location, ?)")
            params.append(self.location)
        if self.job_type:
            clauses.append("job_type = ?")
            params.append(self.job_type)
        if not clauses:
            return "", params
        return "WHERE " + " AND ".join(clauses), params


class JobDB:
    def __init__(self, db_path: Path = DB_FILE):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute(SCHEMA_SQL)
            # Lightweight migration: add columns introduced after the table was created
            cols = [r[1] for r in conn.execute("PRAGMA table_info(jobs)").fetchall()]
            for c in COLUMNS:
                if c not in cols:
                    conn.execute(f"ALTER TABLE jobs ADD COLUMN {c} TEXT NOT NULL DEFAULT ''")
            conn.execute(INDEX_SQL)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.create_function("icontains", 2, _icontains, deterministic=True)
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def upsert(self, record: JobRecord):
        """Create the row for record.link or overwrite every column of it."""
        self.upsert_jobs([record])

    def upsert_jobs(self, records: Iterable[JobRecord]):
        rows = [self._job_to_row(r) for r in records]
        if not rows:
            return
        with self._connect() as conn:
            conn.executemany(UPSERT_SQL, rows)

    def find(self, flt: Optional[JobFilter] = None, skip: int = 0, take: Optional[int] = None) -> List[JobRecord]:
        """Matching records in insertion (rowid) order."""
        where, params = (flt or JobFilter()).to_sql()
        sql = f"SELECT {', '.join(COLUMNS)} FROM jobs {where} ORDER BY rowid LIMIT ? OFFSET ?"
        params = params + [take if take is not None else -1, skip]
        with self._connect() as conn:
            cur = conn.execute(sql, params)
            return [self._row_to_job(r) for r in cur.fetchall()]

    def count(self, flt: Optional[JobFilter] = None) -> int:
        where, params = (flt or JobFilter()).to_sql()
        with self._connect() as conn:
            return conn.execute(f"SELECT COUNT(*) FROM jobs {where}", params).fetchone()[0]

    def fetch_all(self) -> List[JobRecord]:
        return self.find()

    def fetch_by_link(self, link: str) -> JobRecord | None:
        with self._connect() as conn:
            row = conn.execute(f"SELECT {', '.join(COLUMNS)} FROM jobs WHERE link=?", (link,)).fetchone()
            return self._row_to_job(row) if row else None

    def _job_to_row(self, job: JobRecord) -> tuple:
        data = job.model_dump()
        return tuple(data[c] for c in COLUMNS)

    def _row_to_job(self, row) -> JobRecord:
        return JobRecord(**dict(zip(COLUMNS, row)))
