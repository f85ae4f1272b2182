"""Tests for database schema creation and migration."""

from foodshare.matching.db.schema import _SCHEMA_VERSION, ensure_schema


def test_ensure_schema_creates_tables(tmp_path):
    """Schema creates users, listings and claims tables."""
    conn = ensure_schema(tmp_path / "test.db")

    tables = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    ).fetchall()
    table_names = {row["name"] for row in tables}

    assert {"users", "food_listings", "claims", "schema_version"} <= table_names

    conn.close()


def test_ensure_schema_creates_parent_dirs(tmp_path):
    db_path = tmp_path / "sub" / "dir" / "test.db"
    conn = ensure_schema(db_path)
    assert db_path.exists()
    conn.close()


def test_ensure_schema_idempotent(tmp_path):
    """Calling ensure_schema twice keeps a single version row."""
    db_path = tmp_path / "test.db"
    ensure_schema(db_path).close()

    conn = ensure_schema(db_path)
    rows = conn.execute("SELECT version FROM schema_version").fetchall()
    assert [r["version"] for r in rows] == [_SCHEMA_VERSION]
    conn.close()


def test_ensure_schema_wal_mode(tmp_path):
    conn = ensure_schema(tmp_path / "test.db")
    mode = conn.execute("PRAGMA journal_mode").fetchone()
    assert mode[0] == "wal"
    conn.close()


def test_claims_columns(tmp_path):
    """claims carries one timestamp column per status."""
    conn = ensure_schema(tmp_path / "test.db")

    info = conn.execute("PRAGMA table_info(claims)").fetchall()
    col_names = {row["name"] for row in info}

    expected = {
        "id", "food_item_id", "recipient_id", "donor_id", "quantity", "status",
        "requested_at", "approved_at", "rejected_at", "fulfilled_at",
        "cancelled_at",
    }
    assert expected.issubset(col_names)

    conn.close()
