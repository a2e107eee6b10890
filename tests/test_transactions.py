"""Tests for the scoped transaction helper and store failure handling."""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from hospital import repository as repo
from hospital.db import db_session, make_engine, make_session_factory, transaction
from hospital.errors import StoreUnavailable, TransactionStateError
from hospital.models import Appointment, Patient


def test_commit_on_success(s, session_factory) -> None:
    with transaction(s):
        s.add(Patient(name="Alice", age=30, address="123 St"))

    assert not s.in_transaction()
    with db_session(session_factory) as other:
        assert other.scalars(select(Patient.name)).all() == ["Alice"]


def test_rollback_on_exception_leaves_no_rows(s) -> None:
    with pytest.raises(RuntimeError):
        with transaction(s):
            s.add(Patient(name="Alice", age=30, address="123 St"))
            s.flush()
            raise RuntimeError("boom")

    assert not s.in_transaction()
    assert repo.list_patients(s) == []


def test_failure_after_partial_insert_rolls_back_everything(s, when, appointment_count) -> None:
    """A flush that already wrote the first row must not survive a later failure."""
    pid = repo.add_patient(s, "Alice", 30, "123 St")

    with pytest.raises(IntegrityError):
        with transaction(s):
            s.add(Appointment(date=when, patient_id=pid, doctor_id=1))
            s.flush()
            s.add(Appointment(date=None, patient_id=pid, doctor_id=1))
            s.flush()

    assert appointment_count() == 0
    assert not s.in_transaction()


def test_nested_begin_is_rejected_without_touching_outer(s) -> None:
    with transaction(s):
        s.add(Patient(name="Alice", age=30, address="123 St"))
        with pytest.raises(TransactionStateError):
            with transaction(s):
                pass

    assert [p.name for p in repo.list_patients(s)] == ["Alice"]


def test_operations_refuse_a_session_left_in_a_transaction(s) -> None:
    s.execute(select(Patient))  # autobegin

    with pytest.raises(TransactionStateError):
        repo.add_patient(s, "Alice", 30, "123 St")

    s.rollback()
    assert repo.list_patients(s) == []


def test_entities_are_detached_after_each_operation(s) -> None:
    pid = repo.add_patient(s, "Alice", 30, "123 St")
    patient = repo.get_patient(s, pid)

    assert patient not in s
    assert patient.name == "Alice"


def test_unreachable_store_raises_store_unavailable(tmp_path) -> None:
    engine = make_engine(f"sqlite:///{tmp_path / 'missing-dir' / 'hospital.sqlite'}")
    factory = make_session_factory(engine)

    with db_session(factory) as s:
        with pytest.raises(StoreUnavailable):
            repo.list_patients(s)
        with pytest.raises(StoreUnavailable):
            repo.add_patient(s, "Alice", 30, "123 St")
        assert not s.in_transaction()

    engine.dispose()


def test_init_db_on_unreachable_store(tmp_path) -> None:
    engine = make_engine(f"sqlite:///{tmp_path / 'missing-dir' / 'hospital.sqlite'}")

    with pytest.raises(StoreUnavailable) as exc_info:
        repo.init_db(engine)

    assert exc_info.value.error_code == "STORE_UNAVAILABLE"
