"""Tests for the maintenance scripts."""

from datetime import datetime

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError

from hospital import repository as repo
from hospital.db import db_session, make_engine, make_session_factory
from hospital.models import DeletePolicy
from hospital.tools import report_dangling, show_db_path


def test_show_db_path(tmp_path, monkeypatch, capsys) -> None:
    db_file = tmp_path / "tools.sqlite"
    monkeypatch.setenv("HOSPITAL_DATABASE_URL", f"sqlite:///{db_file}")

    show_db_path.main()

    assert f"DB FILE   : {db_file}" in capsys.readouterr().out


def test_report_dangling(tmp_path, monkeypatch, capsys) -> None:
    url = f"sqlite:///{tmp_path / 'tools.sqlite'}"
    monkeypatch.setenv("HOSPITAL_DATABASE_URL", url)
    engine = make_engine(url)
    repo.init_db(engine)
    with db_session(make_session_factory(engine)) as s:
        repo.add_patient(s, "Alice", 30, "123 St")
        did = repo.add_doctor(s, "Smith", "Cardiology")
        repo.add_appointment(s, datetime(2026, 3, 2, 9, 30), "Alice", "Smith")
        assert report_dangling.main() == 0
        repo.delete_doctor(s, did, policy=DeletePolicy.DETACH)
    engine.dispose()
    capsys.readouterr()

    assert report_dangling.main() == 1

    out = capsys.readouterr().out
    assert "missing patient refs: 0" in out
    assert "missing doctor refs : 1" in out
    assert "appointment 1 | patient_id=1 | doctor_id=1" in out


def test_report_dangling_does_not_create_tables(tmp_path, monkeypatch) -> None:
    db_file = tmp_path / "empty.sqlite"
    monkeypatch.setenv("HOSPITAL_DATABASE_URL", f"sqlite:///{db_file}")

    with pytest.raises(OperationalError):
        report_dangling.main()

    engine = make_engine(f"sqlite:///{db_file}")
    assert inspect(engine).get_table_names() == []
    engine.dispose()
