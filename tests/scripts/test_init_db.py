from __future__ import annotations

import re

from scripts import init_db


def test_checked_tables_match_schema_file():
    schema = (init_db.REPO_ROOT / "database" / "schema.sql").read_text(encoding="utf-8")

    created = set(re.findall(r"CREATE TABLE IF NOT EXISTS (\w+)", schema))

    assert created == set(init_db.MEMO_TRACKING_TABLES)


def test_main_reports_missing_tables(monkeypatch, capsys):
    monkeypatch.setenv("APP_ENV", "testing")
    applied = []
    monkeypatch.setattr(init_db, "apply_schema", lambda db_config, schema_path: applied.append(schema_path.name))
    monkeypatch.setattr(init_db, "list_tables", lambda db_config: ["roles", "memos"])

    assert init_db.main() == 1
    assert applied == ["schema.sql"]
    out = capsys.readouterr().out
    assert out.startswith("FAILED: memo tracking schema")
    assert "memo_approvals" in out


def test_main_succeeds_when_schema_is_complete(monkeypatch, capsys):
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.setattr(init_db, "apply_schema", lambda db_config, schema_path: None)
    monkeypatch.setattr(init_db, "list_tables", lambda db_config: list(init_db.MEMO_TRACKING_TABLES))

    assert init_db.main() == 0
    assert capsys.readouterr().out.startswith("OK: memo tracking schema ready on ")
