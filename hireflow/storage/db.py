from __future__ import annotations

import json
import os
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Any

from hireflow.core.config import settings

_conn: sqlite3.Connection | None = None
_conn_lock = threading.RLock()
_db_path_override: str | None = None

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        full_name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        role TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS jobs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        employer_id INTEGER NOT NULL REFERENCES users (id),
        title TEXT NOT NULL,
        description TEXT NOT NULL,
        skills_json TEXT NOT NULL,
        min_experience INTEGER NOT NULL DEFAULT 0,
        threshold INTEGER NOT NULL,
        status TEXT NOT NULL DEFAULT 'active',
        created_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS resumes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        candidate_id INTEGER NOT NULL REFERENCES users (id),
        file_path TEXT NOT NULL,
        file_name TEXT NOT NULL,
        content_type TEXT,
        status TEXT NOT NULL DEFAULT 'pending',
        parsed_json TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS matches (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        job_id INTEGER NOT NULL REFERENCES jobs (id),
        resume_id INTEGER NOT NULL REFERENCES resumes (id),
        score INTEGER NOT NULL,
        breakdown_json TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE (job_id, resume_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS shortlists (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        job_id INTEGER NOT NULL REFERENCES jobs (id),
        resume_id INTEGER NOT NULL REFERENCES resumes (id),
        status TEXT NOT NULL,
        created_at TEXT NOT NULL,
        UNIQUE (job_id, resume_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS audit_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        action TEXT NOT NULL,
        metadata_json TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_jobs_employer ON jobs (employer_id);",
    "CREATE INDEX IF NOT EXISTS idx_jobs_status ON jobs (status);",
    "CREATE INDEX IF NOT EXISTS idx_resumes_candidate ON resumes (candidate_id);",
    "CREATE INDEX IF NOT EXISTS idx_matches_resume ON matches (resume_id);",
)


class StorageError(RuntimeError):
    pass


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _db_path() -> str:
    return _db_path_override or settings.database_path


def _get_connection() -> sqlite3.Connection:
    global _conn
    with _conn_lock:
        if _conn is not None:
            return _conn

        db_path = _db_path()
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        _conn = sqlite3.connect(
            db_path,
            check_same_thread=False,
            timeout=5,
            isolation_level=None,
        )
        _conn.row_factory = sqlite3.Row
        _conn.execute("PRAGMA journal_mode=WAL;")
        _conn.execute("PRAGMA synchronous=NORMAL;")
        _conn.execute("PRAGMA busy_timeout=5000;")
        _conn.execute("PRAGMA foreign_keys=ON;")
        for statement in _SCHEMA:
            _conn.execute(statement)
        return _conn


def init_db() -> None:
    _get_connection()


def configure_database(db_path: str | None) -> None:
    """Point storage at another SQLite file, closing the current connection."""
    global _conn, _db_path_override
    with _conn_lock:
        if _conn is not None:
            _conn.close()
            _conn = None
        _db_path_override = db_path


def _execute(sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
    conn = _get_connection()
    with _conn_lock:
        try:
            return conn.execute(sql, params)
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc


def _fetchone(sql: str, params: tuple[Any, ...] = ()) -> dict[str, Any] | None:
    with _conn_lock:
        row = _execute(sql, params).fetchone()
    return dict(row) if row else None


def _fetchall(sql: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
    with _conn_lock:
        rows = _execute(sql, params).fetchall()
    return [dict(row) for row in rows]


def _loads(raw: str | None, default: Any) -> Any:
    if not raw:
        return default
    return json.loads(raw)


# Users


def create_user(*, full_name: str, email: str, role: str) -> dict[str, Any]:
    created_at = _utc_now()
    cur = _execute(
        "INSERT INTO users (full_name, email, role, created_at) VALUES (?, ?, ?, ?)",
        (full_name, email.strip().lower(), role, created_at),
    )
    return get_user(int(cur.lastrowid))  # type: ignore[return-value]


def get_user(user_id: int) -> dict[str, Any] | None:
    return _fetchone(
        "SELECT id, full_name, email, role, created_at FROM users WHERE id = ?",
        (user_id,),
    )


def get_user_by_email(email: str) -> dict[str, Any] | None:
    return _fetchone(
        "SELECT id, full_name, email, role, created_at FROM users WHERE email = ?",
        (email.strip().lower(),),
    )


# Jobs


def _job_from_row(row: dict[str, Any]) -> dict[str, Any]:
    job = dict(row)
    job["skills"] = _loads(job.pop("skills_json", None), [])
    return job


_JOB_COLUMNS = """
    j.id, j.employer_id, j.title, j.description, j.skills_json, j.min_experience,
    j.threshold, j.status, j.created_at,
    (SELECT COUNT(*) FROM matches m WHERE m.job_id = j.id) AS match_count,
    (SELECT COUNT(*) FROM shortlists s WHERE s.job_id = j.id) AS shortlist_count
"""


def create_job(
    *,
    employer_id: int,
    title: str,
    description: str,
    skills: list[dict[str, Any]],
    min_experience: int,
    threshold: int,
) -> dict[str, Any]:
    cur = _execute(
        """
        INSERT INTO jobs (
            employer_id, title, description, skills_json, min_experience, threshold, status, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, 'active', ?)
        """,
        (
            employer_id,
            title,
            description,
            json.dumps(skills, ensure_ascii=False),
            min_experience,
            threshold,
            _utc_now(),
        ),
    )
    return get_job(int(cur.lastrowid))  # type: ignore[return-value]


def get_job(job_id: int) -> dict[str, Any] | None:
    row = _fetchone(f"SELECT {_JOB_COLUMNS} FROM jobs j WHERE j.id = ?", (job_id,))
    return _job_from_row(row) if row else None


def list_jobs_for_employer(employer_id: int) -> list[dict[str, Any]]:
    rows = _fetchall(
        f"SELECT {_JOB_COLUMNS} FROM jobs j WHERE j.employer_id = ? ORDER BY j.created_at DESC, j.id DESC",
        (employer_id,),
    )
    return [_job_from_row(row) for row in rows]


def list_active_jobs() -> list[dict[str, Any]]:
    rows = _fetchall(
        f"SELECT {_JOB_COLUMNS} FROM jobs j WHERE j.status = 'active' ORDER BY j.id",
    )
    return [_job_from_row(row) for row in rows]


def update_job_status(job_id: int, status: str) -> dict[str, Any] | None:
    _execute("UPDATE jobs SET status = ? WHERE id = ?", (status, job_id))
    return get_job(job_id)


# Resumes


def _resume_from_row(row: dict[str, Any]) -> dict[str, Any]:
    resume = dict(row)
    resume["parsed"] = _loads(resume.pop("parsed_json", None), None)
    return resume


_RESUME_COLUMNS = (
    "id, candidate_id, file_path, file_name, content_type, status, parsed_json, created_at, updated_at"
)


def create_resume(*, candidate_id: int, file_path: str, file_name: str, content_type: str | None) -> dict[str, Any]:
    cur = _execute(
        """
        INSERT INTO resumes (candidate_id, file_path, file_name, content_type, status, created_at)
        VALUES (?, ?, ?, ?, 'pending', ?)
        """,
        (candidate_id, file_path, file_name, content_type, _utc_now()),
    )
    return get_resume(int(cur.lastrowid))  # type: ignore[return-value]


def get_resume(resume_id: int) -> dict[str, Any] | None:
    row = _fetchone(f"SELECT {_RESUME_COLUMNS} FROM resumes WHERE id = ?", (resume_id,))
    return _resume_from_row(row) if row else None


def list_resumes_for_candidate(candidate_id: int) -> list[dict[str, Any]]:
    rows = _fetchall(
        f"SELECT {_RESUME_COLUMNS} FROM resumes WHERE candidate_id = ? ORDER BY created_at DESC, id DESC",
        (candidate_id,),
    )
    return [_resume_from_row(row) for row in rows]


def list_processed_resumes() -> list[dict[str, Any]]:
    rows = _fetchall(f"SELECT {_RESUME_COLUMNS} FROM resumes WHERE status = 'processed' ORDER BY id")
    return [_resume_from_row(row) for row in rows]


def update_resume_parsed(resume_id: int, parsed: dict[str, Any]) -> None:
    _execute(
        "UPDATE resumes SET parsed_json = ?, status = 'processed', updated_at = ? WHERE id = ?",
        (json.dumps(parsed, ensure_ascii=False), _utc_now(), resume_id),
    )


def update_resume_status(resume_id: int, status: str) -> None:
    _execute(
        "UPDATE resumes SET status = ?, updated_at = ? WHERE id = ?",
        (status, _utc_now(), resume_id),
    )


# Matches and shortlists


def upsert_match(*, job_id: int, resume_id: int, score: int, breakdown: dict[str, Any]) -> None:
    now = _utc_now()
    _execute(
        """
        INSERT INTO matches (job_id, resume_id, score, breakdown_json, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT (job_id, resume_id) DO UPDATE SET
            score = excluded.score,
            breakdown_json = excluded.breakdown_json,
            updated_at = excluded.updated_at
        """,
        (job_id, resume_id, score, json.dumps(breakdown, ensure_ascii=False), now, now),
    )


def upsert_shortlist(*, job_id: int, resume_id: int, status: str = "shortlisted") -> None:
    _execute(
        """
        INSERT INTO shortlists (job_id, resume_id, status, created_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT (job_id, resume_id) DO UPDATE SET status = excluded.status
        """,
        (job_id, resume_id, status, _utc_now()),
    )


_MATCH_SELECT = """
    SELECT m.job_id, m.resume_id, m.score, m.breakdown_json, m.updated_at,
           j.title AS job_title, u.full_name AS candidate_name, u.email AS candidate_email,
           CASE WHEN s.id IS NULL THEN 0 ELSE 1 END AS shortlisted
    FROM matches m
    JOIN jobs j ON j.id = m.job_id
    JOIN resumes r ON r.id = m.resume_id
    LEFT JOIN users u ON u.id = r.candidate_id
    LEFT JOIN shortlists s ON s.job_id = m.job_id AND s.resume_id = m.resume_id
"""


def _match_from_row(row: dict[str, Any]) -> dict[str, Any]:
    match = dict(row)
    match["breakdown"] = _loads(match.pop("breakdown_json", None), {})
    match["shortlisted"] = bool(match.get("shortlisted"))
    return match


def list_matches_for_job(job_id: int) -> list[dict[str, Any]]:
    rows = _fetchall(f"{_MATCH_SELECT} WHERE m.job_id = ? ORDER BY m.score DESC, m.id", (job_id,))
    return [_match_from_row(row) for row in rows]


def list_matches_for_candidate(candidate_id: int) -> list[dict[str, Any]]:
    """Matches of the candidate's most recent processed resume only."""
    rows = _fetchall(
        f"""
        {_MATCH_SELECT}
        WHERE r.candidate_id = ?
          AND r.id = (
              SELECT MAX(r2.id) FROM resumes r2
              WHERE r2.candidate_id = r.candidate_id AND r2.status = 'processed'
          )
        ORDER BY m.score DESC, m.id
        """,
        (candidate_id,),
    )
    return [_match_from_row(row) for row in rows]


def list_matches_for_resume(resume_id: int, employer_id: int | None = None) -> list[dict[str, Any]]:
    if employer_id is None:
        rows = _fetchall(f"{_MATCH_SELECT} WHERE m.resume_id = ? ORDER BY m.score DESC, m.id", (resume_id,))
    else:
        rows = _fetchall(
            f"{_MATCH_SELECT} WHERE m.resume_id = ? AND j.employer_id = ? ORDER BY m.score DESC, m.id",
            (resume_id, employer_id),
        )
    return [_match_from_row(row) for row in rows]


def list_shortlist_for_job(job_id: int) -> list[dict[str, Any]]:
    return _fetchall(
        "SELECT job_id, resume_id, status, created_at FROM shortlists WHERE job_id = ? ORDER BY id",
        (job_id,),
    )


# Audit log


def insert_audit_log(*, user_id: int, action: str, metadata: dict[str, Any]) -> None:
    _execute(
        "INSERT INTO audit_logs (user_id, action, metadata_json, created_at) VALUES (?, ?, ?, ?)",
        (user_id, action, json.dumps(metadata, ensure_ascii=False, default=str), _utc_now()),
    )


def list_audit_logs(limit: int = 50, user_id: int | None = None) -> list[dict[str, Any]]:
    if user_id is None:
        rows = _fetchall(
            "SELECT id, user_id, action, metadata_json, created_at FROM audit_logs ORDER BY id DESC LIMIT ?",
            (limit,),
        )
    else:
        rows = _fetchall(
            """
            SELECT id, user_id, action, metadata_json, created_at FROM audit_logs
            WHERE user_id = ? ORDER BY id DESC LIMIT ?
            """,
            (user_id, limit),
        )
    result = []
    for row in rows:
        entry = dict(row)
        entry["metadata"] = _loads(entry.pop("metadata_json", None), {})
        result.append(entry)
    return result
