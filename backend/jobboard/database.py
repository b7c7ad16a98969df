import sqlite3
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from jobboard.config import settings


class Base(DeclarativeBase):
    pass


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(db_path: Path | None = None):
    path = db_path or settings.db_path
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


engine = get_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


SCHEMA_SQL = """\
-- ============================================================
-- USERS
-- ============================================================
CREATE TABLE IF NOT EXISTS users (
    id         TEXT PRIMARY KEY,
    name       TEXT NOT NULL,
    email      TEXT,
    role       TEXT NOT NULL DEFAULT 'worker' CHECK(role IN ('admin','worker')),
    active     INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_users_name ON users(name COLLATE NOCASE);

-- ============================================================
-- JOBS
-- ============================================================
CREATE TABLE IF NOT EXISTS jobs (
    id                  TEXT PRIMARY KEY,
    title               TEXT NOT NULL,
    description         TEXT,
    customer_name       TEXT,
    customer_email      TEXT,
    customer_phone      TEXT,
    customer_address    TEXT,
    scheduled_date      TEXT,
    is_recurring        INTEGER NOT NULL DEFAULT 0,
    job_type            TEXT,
    status              TEXT NOT NULL DEFAULT 'pending'
                        CHECK(status IN ('pending','confirmed','in_progress','completed',
                                         'cancelled','service_due')),
    price               REAL,
    estimated_duration  INTEGER,
    notes               TEXT,
    first_time          INTEGER NOT NULL DEFAULT 0,
    quoted_by           TEXT REFERENCES users(id) ON DELETE SET NULL,
    appointment_id      TEXT,
    ghl_contact_id      TEXT,
    webhook_sent_at     TEXT,
    reminder_claimed_at TEXT,
    created_at          TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
    updated_at          TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_jobs_status ON jobs(status);
CREATE INDEX IF NOT EXISTS idx_jobs_scheduled ON jobs(scheduled_date);
CREATE INDEX IF NOT EXISTS idx_jobs_reminder_due ON jobs(scheduled_date) WHERE webhook_sent_at IS NULL;
CREATE INDEX IF NOT EXISTS idx_jobs_appointment ON jobs(appointment_id);

CREATE TABLE IF NOT EXISTS job_assignments (
    job_id  TEXT NOT NULL REFERENCES jobs(id) ON DELETE CASCADE,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    PRIMARY KEY (job_id, user_id)
);

CREATE TABLE IF NOT EXISTS job_services (
    id                  TEXT PRIMARY KEY,
    job_id              TEXT NOT NULL REFERENCES jobs(id) ON DELETE CASCADE,
    service_name        TEXT NOT NULL,
    service_description TEXT,
    price               REAL,
    duration            INTEGER,
    created_at          TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_job_services_job ON job_services(job_id);

-- ============================================================
-- APPOINTMENTS
-- ============================================================
CREATE TABLE IF NOT EXISTS appointments (
    id                 TEXT PRIMARY KEY,
    external_id        TEXT NOT NULL UNIQUE,
    location_id        TEXT,
    address            TEXT,
    title              TEXT NOT NULL,
    calendar_id        TEXT,
    contact_id         TEXT,
    group_id           TEXT,
    appointment_status TEXT DEFAULT 'confirmed',
    assigned_user_id   TEXT REFERENCES users(id) ON DELETE SET NULL,
    assigned_users     TEXT NOT NULL DEFAULT '[]',
    notes              TEXT,
    source             TEXT,
    start_time         TEXT NOT NULL,
    end_time           TEXT NOT NULL,
    created_at         TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
    updated_at         TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

-- ============================================================
-- ACCEPTED QUOTES
-- ============================================================
CREATE TABLE IF NOT EXISTS accepted_quotes (
    id               TEXT PRIMARY KEY,
    customer_name    TEXT NOT NULL,
    customer_phone   TEXT,
    customer_email   TEXT,
    customer_address TEXT,
    quoted_by        TEXT REFERENCES users(id) ON DELETE SET NULL,
    jobs_selected    TEXT NOT NULL,
    first_time       INTEGER NOT NULL DEFAULT 0,
    scheduled_date   TEXT,
    ghl_contact_id   TEXT,
    appointment_id   TEXT,
    status           TEXT NOT NULL DEFAULT 'pending'
                     CHECK(status IN ('pending','converted','rejected')),
    created_at       TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
    updated_at       TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_quotes_appointment ON accepted_quotes(appointment_id);
"""


MIGRATIONS: list[str] = [
    # ALTER TABLE statements for columns added after SCHEMA_SQL shipped.
]


def init_db(db_path: Path | None = None):
    path = db_path or settings.db_path
    conn = sqlite3.connect(str(path))
    conn.executescript(SCHEMA_SQL)
    # Run migrations idempotently (ALTER TABLE fails if the column exists)
    for migration in MIGRATIONS:
        try:
            conn.execute(migration)
            conn.commit()
        except sqlite3.OperationalError:
            pass  # column already exists
    conn.close()
