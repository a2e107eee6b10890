from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from .db import transaction
from .models import Doctor, Patient

DOCTORS = [
    ("Smith", "Cardiology"),
    ("Lee", "Neurology"),
    ("Rossi", "General Medicine"),
]

PATIENTS = [
    ("Alice", 30, "123 St"),
    ("Bob", 52, "8 Harbour Road"),
]


def seed_base(s: Session) -> int:
    """
    Popola dati minimi (idempotente, controllo per nome):
    - medici
    - pazienti
    Ritorna il numero di righe inserite.
    """
    added = 0
    with transaction(s):
        for name, spec in DOCTORS:
            if s.execute(select(Doctor.id).where(Doctor.name == name)).first() is None:
                s.add(Doctor(name=name, specialization=spec))
                added += 1

        for name, age, address in PATIENTS:
            if s.execute(select(Patient.id).where(Patient.name == name)).first() is None:
                s.add(Patient(name=name, age=age, address=address))
                added += 1

    return added
