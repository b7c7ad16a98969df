import sqlite3

from jobboard.database import MIGRATIONS, init_db


class TestInitDb:
    def _columns(self, db_path, table):
        conn = sqlite3.connect(str(db_path))
        try:
            return {row[1] for row in conn.execute(f"PRAGMA table_info({table})")}
        finally:
            conn.close()

    def test_fresh_schema_has_reminder_columns(self, tmp_path):
        db_path = tmp_path / "jobboard.sqlite"
        init_db(db_path)
        columns = self._columns(db_path, "jobs")
        assert {"webhook_sent_at", "reminder_claimed_at", "ghl_contact_id"} <= columns

    def test_no_migration_repeats_a_schema_column(self, tmp_path):
        db_path = tmp_path / "jobboard.sqlite"
        init_db(db_path)
        conn = sqlite3.connect(str(db_path))
        try:
            for migration in MIGRATIONS:
                conn.execute(migration)
        finally:
            conn.close()

    def test_init_is_repeatable(self, tmp_path):
        db_path = tmp_path / "jobboard.sqlite"
        init_db(db_path)
        init_db(db_path)
        assert "reminder_claimed_at" in self._columns(db_path, "jobs")
        assert "external_id" in self._columns(db_path, "appointments")
