"""Tests for the command line dispatcher against a SQLite file."""

import pytest

from hospital.cli import main


@pytest.fixture(autouse=True)
def db_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'cli.sqlite'}"
    monkeypatch.setenv("HOSPITAL_DATABASE_URL", url)
    monkeypatch.setenv("HOSPITAL_LOG_LEVEL", "WARNING")
    return url


def test_init_with_seed_is_idempotent(capsys) -> None:
    assert main(["init", "--seed"]) == 0
    assert "5 seed row(s) added" in capsys.readouterr().out

    assert main(["init", "--seed"]) == 0
    assert "0 seed row(s) added" in capsys.readouterr().out


def test_add_and_list(capsys) -> None:
    assert main(["add-patient", "--name", "Alice", "--age", "30", "--address", "123 St"]) == 0
    assert main(["add-doctor", "--name", "Smith", "--specialization", "Cardiology"]) == 0
    capsys.readouterr()

    main(["list", "patients"])
    assert "1 | Alice | 30 | 123 St" in capsys.readouterr().out

    main(["doctors", "--specialization", "Cardiology"])
    assert "1 | Smith | Cardiology" in capsys.readouterr().out


def test_book_by_names_and_show(capsys) -> None:
    main(["add-patient", "--name", "Alice", "--age", "30", "--address", "123 St"])
    main(["add-doctor", "--name", "Smith", "--specialization", "Cardiology"])

    assert main(["add-appointment", "--date", "2026-03-02T09:30", "--patient", "Alice", "--doctor", "Smith"]) == 0
    assert "Appointment created: 1" in capsys.readouterr().out

    main(["appointments", "--patient", "Alice"])
    assert "1 | 2026-03-02 09:30 | Smith | Alice" in capsys.readouterr().out


def test_errors_are_printed_with_exit_code_1(capsys) -> None:
    main(["add-doctor", "--name", "Lee", "--specialization", "Neurology"])
    main(["add-doctor", "--name", "Lee", "--specialization", "Neurology"])
    main(["add-patient", "--name", "Alice", "--age", "30", "--address", "123 St"])
    capsys.readouterr()

    assert main(["add-appointment", "--date", "2026-03-02T09:30", "--patient", "Alice", "--doctor", "Lee"]) == 1
    assert "Error: More than one Doctor with name 'Lee'" in capsys.readouterr().out

    assert main(["add-appointment", "--date", "2026-03-02T09:30", "--patient", "Bob", "--doctor", "Lee"]) == 1
    assert "Error: Patient with name 'Bob' not found" in capsys.readouterr().out


def test_delete_with_policy_and_dangling_report(capsys) -> None:
    main(["add-patient", "--name", "Alice", "--age", "30", "--address", "123 St"])
    main(["add-doctor", "--name", "Smith", "--specialization", "Cardiology"])
    main(["add-appointment", "--date", "2026-03-02T09:30", "--patient-id", "1", "--doctor-id", "1"])
    capsys.readouterr()

    assert main(["delete", "doctor", "1"]) == 1
    assert "referenced by 1 appointment(s)" in capsys.readouterr().out

    assert main(["delete", "doctor", "1", "--policy", "detach"]) == 0
    assert "Deleted." in capsys.readouterr().out

    main(["dangling"])
    assert "<missing doctor 1>" in capsys.readouterr().out

    assert main(["delete", "patient", "99"]) == 0
    assert "Not found, nothing to delete." in capsys.readouterr().out


def test_bad_date_is_a_usage_error(capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["add-appointment", "--date", "next tuesday", "--patient", "Alice", "--doctor", "Smith"])

    assert exc_info.value.code == 2
    captured = capsys.readouterr()
    assert "invalid fromisoformat value: 'next tuesday'" in captured.err
    assert "Traceback" not in captured.err
