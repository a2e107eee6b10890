from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


class DeletePolicy(enum.Enum):
    """Cosa fare quando si cancella un paziente/medico ancora referenziato."""

    RESTRICT = "restrict"  # rifiuta con ReferencedByOthers
    CASCADE = "cascade"    # cancella anche gli appuntamenti collegati
    DETACH = "detach"      # cancella solo la riga, gli appuntamenti restano orfani


class Patient(Base):
    __tablename__ = "patient"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"Patient({self.id}, {self.name}, {self.age})"


class Doctor(Base):
    __tablename__ = "doctor"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    specialization: Mapped[str] = mapped_column(String(120), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"Doctor({self.id}, {self.name}, {self.specialization})"


class Appointment(Base):
    __tablename__ = "appointment"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Niente FOREIGN KEY a livello DB: l'esistenza dei riferimenti è verificata
    # in fase di inserimento, la cancellazione segue DeletePolicy.
    patient_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    doctor_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    # caricate insieme all'appuntamento (le entità escono staccate dalla sessione),
    # None se la riga referenziata non esiste più
    patient: Mapped[Patient | None] = relationship(
        primaryjoin="foreign(Appointment.patient_id) == Patient.id",
        viewonly=True,
        lazy="joined",
    )
    doctor: Mapped[Doctor | None] = relationship(
        primaryjoin="foreign(Appointment.doctor_id) == Doctor.id",
        viewonly=True,
        lazy="joined",
    )

    def __repr__(self) -> str:
        return f"Appointment({self.id}, {self.date.isoformat()}, patient={self.patient_id}, doctor={self.doctor_id})"
