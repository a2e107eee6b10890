from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TypeVar

from sqlalchemy import delete, func, or_, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from .db import Base, transaction
from .errors import Ambiguous, NotFound, ReferencedByOthers, StoreUnavailable
from .models import Appointment, DeletePolicy, Doctor, Patient

logger = logging.getLogger(__name__)

_Named = TypeVar("_Named", Patient, Doctor)


# =========================
# Bootstrap DB
# =========================
def init_db(engine: Engine) -> None:
    """Crea le tabelle se non esistono."""
    try:
        Base.metadata.create_all(bind=engine)
    except OperationalError as exc:
        raise StoreUnavailable(str(exc.orig)) from exc


# =========================
# Helper / DTO
# =========================
@dataclass(frozen=True)
class AppointmentView:
    """Appuntamento con paziente e medico già risolti (None se il riferimento è orfano)."""

    appointment: Appointment
    doctor: Doctor | None
    patient: Patient | None


def _view_query():
    # join esplicite: niente lazy-load dopo la chiusura della sessione
    return (
        select(Appointment, Doctor, Patient)
        .outerjoin(Doctor, Doctor.id == Appointment.doctor_id)
        .outerjoin(Patient, Patient.id == Appointment.patient_id)
    )


def _one_by_name(s: Session, model: type[_Named], name: str) -> _Named:
    """Esattamente una riga con quel nome, mai "la prima che capita"."""
    rows = s.scalars(select(model).where(model.name == name).order_by(model.id).limit(2)).all()
    if not rows:
        raise NotFound(model.__name__, name, field="name")
    if len(rows) > 1:
        raise Ambiguous(model.__name__, name)
    return rows[0]


def _require(s: Session, model: type, key: int):
    obj = s.get(model, key)
    if obj is None:
        raise NotFound(model.__name__, key)
    return obj


def _count_references(s: Session, column, key: int) -> int:
    return s.scalar(select(func.count()).select_from(Appointment).where(column == key)) or 0


# =========================
# Query
# =========================
def list_patients(s: Session) -> list[Patient]:
    with transaction(s):
        return list(s.scalars(select(Patient).order_by(Patient.id)))


def list_doctors(s: Session) -> list[Doctor]:
    with transaction(s):
        return list(s.scalars(select(Doctor).order_by(Doctor.id)))


def list_doctors_by_specialization(s: Session, specialization: str) -> list[Doctor]:
    """Confronto esatto: "" trova solo i medici senza specializzazione."""
    with transaction(s):
        q = select(Doctor).where(Doctor.specialization == specialization).order_by(Doctor.id)
        return list(s.scalars(q))


def list_appointments_by_patient_name(s: Session, name: str) -> list[AppointmentView]:
    with transaction(s):
        q = _view_query().where(Patient.name == name).order_by(Appointment.id)
        return [AppointmentView(a, d, p) for a, d, p in s.execute(q).all()]


def get_patient(s: Session, patient_id: int) -> Patient:
    with transaction(s):
        return _require(s, Patient, patient_id)


def get_doctor(s: Session, doctor_id: int) -> Doctor:
    with transaction(s):
        return _require(s, Doctor, doctor_id)


def get_appointment(s: Session, appointment_id: int) -> AppointmentView:
    with transaction(s):
        row = s.execute(_view_query().where(Appointment.id == appointment_id)).first()
        if row is None:
            raise NotFound("Appointment", appointment_id)
        return AppointmentView(*row)


def find_patient_by_name(s: Session, name: str) -> Patient:
    with transaction(s):
        return _one_by_name(s, Patient, name)


def find_doctor_by_name(s: Session, name: str) -> Doctor:
    with transaction(s):
        return _one_by_name(s, Doctor, name)


def find_dangling_appointments(s: Session) -> list[AppointmentView]:
    """Appuntamenti il cui paziente o medico è stato cancellato (policy DETACH)."""
    with transaction(s):
        q = _view_query().where(or_(Patient.id.is_(None), Doctor.id.is_(None))).order_by(Appointment.id)
        return [AppointmentView(a, d, p) for a, d, p in s.execute(q).all()]


# =========================
# Inserimenti
# =========================
def add_patient(s: Session, name: str, age: int, address: str) -> int:
    with transaction(s):
        p = Patient(name=name, age=age, address=address)
        s.add(p)
        s.flush()
        logger.info("Patient %s created", p.id)
        return p.id


def add_doctor(s: Session, name: str, specialization: str) -> int:
    with transaction(s):
        d = Doctor(name=name, specialization=specialization)
        s.add(d)
        s.flush()
        logger.info("Doctor %s created", d.id)
        return d.id


def _insert_appointment(s: Session, date: datetime, patient_id: int, doctor_id: int) -> int:
    a = Appointment(date=date, patient_id=patient_id, doctor_id=doctor_id)
    s.add(a)
    s.flush()
    logger.info("Appointment %s created (patient=%s, doctor=%s)", a.id, patient_id, doctor_id)
    return a.id


def add_appointment(s: Session, date: datetime, patient_name: str, doctor_name: str) -> int:
    """
    Prenotazione per nome:
    - un solo paziente con quel nome
    - un solo medico con quel nome
    - insert dell'appuntamento
    Se un passo fallisce non resta nulla di scritto.
    """
    with transaction(s):
        patient = _one_by_name(s, Patient, patient_name)
        doctor = _one_by_name(s, Doctor, doctor_name)
        return _insert_appointment(s, date, patient.id, doctor.id)


def add_appointment_by_ids(s: Session, date: datetime, patient_id: int, doctor_id: int) -> int:
    with transaction(s):
        _require(s, Patient, patient_id)
        _require(s, Doctor, doctor_id)
        return _insert_appointment(s, date, patient_id, doctor_id)


# =========================
# Sostituzione record completo
# =========================
def replace_patient(s: Session, patient_id: int, name: str, age: int, address: str) -> None:
    with transaction(s):
        p = _require(s, Patient, patient_id)
        p.name, p.age, p.address = name, age, address


def replace_doctor(s: Session, doctor_id: int, name: str, specialization: str) -> None:
    with transaction(s):
        d = _require(s, Doctor, doctor_id)
        d.name, d.specialization = name, specialization


def replace_appointment(s: Session, appointment_id: int, date: datetime, patient_id: int, doctor_id: int) -> None:
    with transaction(s):
        a = _require(s, Appointment, appointment_id)
        _require(s, Patient, patient_id)
        _require(s, Doctor, doctor_id)
        a.date, a.patient_id, a.doctor_id = date, patient_id, doctor_id


# =========================
# Cancellazioni
# =========================
def _delete_referenced(s: Session, model: type, key: int, column, policy: DeletePolicy) -> bool:
    obj = s.get(model, key)
    if obj is None:
        return False

    refs = _count_references(s, column, key)
    if refs:
        if policy is DeletePolicy.RESTRICT:
            raise ReferencedByOthers(model.__name__, key, refs)
        if policy is DeletePolicy.CASCADE:
            s.execute(delete(Appointment).where(column == key))
            logger.info("%s %s: %s appointment(s) deleted in cascade", model.__name__, key, refs)
        else:
            logger.warning("%s %s deleted, %s appointment(s) left without it", model.__name__, key, refs)

    s.delete(obj)
    logger.info("%s %s deleted", model.__name__, key)
    return True


def delete_patient(s: Session, patient_id: int, policy: DeletePolicy = DeletePolicy.RESTRICT) -> bool:
    """True se cancellato, False se l'id non esiste (nessun errore)."""
    with transaction(s):
        return _delete_referenced(s, Patient, patient_id, Appointment.patient_id, policy)


def delete_doctor(s: Session, doctor_id: int, policy: DeletePolicy = DeletePolicy.RESTRICT) -> bool:
    with transaction(s):
        return _delete_referenced(s, Doctor, doctor_id, Appointment.doctor_id, policy)


def delete_appointment(s: Session, appointment_id: int) -> bool:
    with transaction(s):
        a = s.get(Appointment, appointment_id)
        if a is None:
            return False
        s.delete(a)
        logger.info("Appointment %s deleted", appointment_id)
        return True
