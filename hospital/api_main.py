from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Iterator

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from hospital.config import configure_logging, load_settings
from hospital.db import db_session, make_engine, make_session_factory
from hospital.errors import (
    Ambiguous,
    HospitalError,
    NotFound,
    ReferencedByOthers,
    StoreUnavailable,
    TransactionStateError,
)
from hospital.models import DeletePolicy
from hospital import repository as repo


# Schemi

class PatientIn(BaseModel):
    name: str
    age: int
    address: str


class PatientOut(PatientIn):
    model_config = ConfigDict(from_attributes=True)

    id: int


class DoctorIn(BaseModel):
    name: str
    specialization: str


class DoctorOut(DoctorIn):
    model_config = ConfigDict(from_attributes=True)

    id: int


class AppointmentByNamesIn(BaseModel):
    # prenotazione "comoda" per nome, fallisce se il nome non è univoco
    date: datetime
    patient_name: str
    doctor_name: str


class AppointmentIn(BaseModel):
    date: datetime
    patient_id: int
    doctor_id: int


class AppointmentOut(BaseModel):
    id: int
    date: datetime
    patient_id: int
    doctor_id: int
    doctor: DoctorOut | None = None
    patient: PatientOut | None = None


class CreatedOut(BaseModel):
    id: int


class DeletedOut(BaseModel):
    deleted: bool


def _appointment_out(v: repo.AppointmentView) -> AppointmentOut:
    a = v.appointment
    return AppointmentOut(
        id=a.id,
        date=a.date,
        patient_id=a.patient_id,
        doctor_id=a.doctor_id,
        doctor=DoctorOut.model_validate(v.doctor) if v.doctor else None,
        patient=PatientOut.model_validate(v.patient) if v.patient else None,
    )



# Errori -> HTTP

_STATUS_BY_ERROR: dict[type[HospitalError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    Ambiguous: status.HTTP_409_CONFLICT,
    ReferencedByOthers: status.HTTP_409_CONFLICT,
    TransactionStateError: status.HTTP_409_CONFLICT,
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def hospital_error_handler(request: Request, exc: HospitalError) -> JSONResponse:
    code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return JSONResponse(
        status_code=code,
        content={"detail": exc.message, "error_code": exc.error_code, "details": exc.details},
    )



# Dipendenze

def get_session(request: Request) -> Iterator[Session]:
    # una sessione per richiesta, chiusa sempre
    with db_session(request.app.state.session_factory) as s:
        yield s


def create_app(engine: Engine | None = None) -> FastAPI:
    """
    Senza engine esplicito configurazione, logging ed engine vengono creati
    all'avvio (lifespan), non all'import del modulo.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        db_engine = engine
        if db_engine is None:
            settings = load_settings()
            configure_logging(settings.log_level)
            db_engine = owned = make_engine(settings.database_url, echo=settings.echo_sql)

        repo.init_db(db_engine)
        app.state.session_factory = make_session_factory(db_engine)
        try:
            yield
        finally:
            if owned is not None:
                owned.dispose()

    app = FastAPI(title="Hospital Scheduling API", version="1.0.0", lifespan=lifespan)
    app.add_exception_handler(HospitalError, hospital_error_handler)

    # Pazienti

    @app.get("/api/patients", response_model=list[PatientOut])
    def api_patients(s: Session = Depends(get_session)) -> Any:
        return repo.list_patients(s)

    @app.post("/api/patients", response_model=CreatedOut, status_code=status.HTTP_201_CREATED)
    def api_add_patient(payload: PatientIn, s: Session = Depends(get_session)) -> CreatedOut:
        return CreatedOut(id=repo.add_patient(s, payload.name, payload.age, payload.address))

    @app.get("/api/patients/{patient_id}", response_model=PatientOut)
    def api_patient(patient_id: int, s: Session = Depends(get_session)) -> Any:
        return repo.get_patient(s, patient_id)

    @app.put("/api/patients/{patient_id}", response_model=PatientOut)
    def api_replace_patient(patient_id: int, payload: PatientIn, s: Session = Depends(get_session)) -> Any:
        repo.replace_patient(s, patient_id, payload.name, payload.age, payload.address)
        return repo.get_patient(s, patient_id)

    @app.delete("/api/patients/{patient_id}", response_model=DeletedOut)
    def api_delete_patient(
        patient_id: int,
        policy: DeletePolicy = Query(DeletePolicy.RESTRICT),
        s: Session = Depends(get_session),
    ) -> DeletedOut:
        return DeletedOut(deleted=repo.delete_patient(s, patient_id, policy=policy))

    # Medici

    @app.get("/api/doctors", response_model=list[DoctorOut])
    def api_doctors(specialization: str | None = None, s: Session = Depends(get_session)) -> Any:
        if specialization is None:
            return repo.list_doctors(s)
        return repo.list_doctors_by_specialization(s, specialization)

    @app.post("/api/doctors", response_model=CreatedOut, status_code=status.HTTP_201_CREATED)
    def api_add_doctor(payload: DoctorIn, s: Session = Depends(get_session)) -> CreatedOut:
        return CreatedOut(id=repo.add_doctor(s, payload.name, payload.specialization))

    @app.get("/api/doctors/{doctor_id}", response_model=DoctorOut)
    def api_doctor(doctor_id: int, s: Session = Depends(get_session)) -> Any:
        return repo.get_doctor(s, doctor_id)

    @app.put("/api/doctors/{doctor_id}", response_model=DoctorOut)
    def api_replace_doctor(doctor_id: int, payload: DoctorIn, s: Session = Depends(get_session)) -> Any:
        repo.replace_doctor(s, doctor_id, payload.name, payload.specialization)
        return repo.get_doctor(s, doctor_id)

    @app.delete("/api/doctors/{doctor_id}", response_model=DeletedOut)
    def api_delete_doctor(
        doctor_id: int,
        policy: DeletePolicy = Query(DeletePolicy.RESTRICT),
        s: Session = Depends(get_session),
    ) -> DeletedOut:
        return DeletedOut(deleted=repo.delete_doctor(s, doctor_id, policy=policy))

    # Appuntamenti

    @app.get("/api/appointments", response_model=list[AppointmentOut])
    def api_appointments(patient_name: str = Query(...), s: Session = Depends(get_session)) -> list[AppointmentOut]:
        return [_appointment_out(v) for v in repo.list_appointments_by_patient_name(s, patient_name)]

    @app.post("/api/appointments", response_model=CreatedOut, status_code=status.HTTP_201_CREATED)
    def api_add_appointment(payload: AppointmentByNamesIn, s: Session = Depends(get_session)) -> CreatedOut:
        return CreatedOut(id=repo.add_appointment(s, payload.date, payload.patient_name, payload.doctor_name))

    @app.post("/api/appointments/by-id", response_model=CreatedOut, status_code=status.HTTP_201_CREATED)
    def api_add_appointment_by_ids(payload: AppointmentIn, s: Session = Depends(get_session)) -> CreatedOut:
        return CreatedOut(id=repo.add_appointment_by_ids(s, payload.date, payload.patient_id, payload.doctor_id))

    @app.get("/api/appointments/dangling", response_model=list[AppointmentOut])
    def api_dangling(s: Session = Depends(get_session)) -> list[AppointmentOut]:
        return [_appointment_out(v) for v in repo.find_dangling_appointments(s)]

    @app.get("/api/appointments/{appointment_id}", response_model=AppointmentOut)
    def api_appointment(appointment_id: int, s: Session = Depends(get_session)) -> AppointmentOut:
        return _appointment_out(repo.get_appointment(s, appointment_id))

    @app.put("/api/appointments/{appointment_id}", response_model=AppointmentOut)
    def api_replace_appointment(
        appointment_id: int, payload: AppointmentIn, s: Session = Depends(get_session)
    ) -> AppointmentOut:
        repo.replace_appointment(s, appointment_id, payload.date, payload.patient_id, payload.doctor_id)
        return _appointment_out(repo.get_appointment(s, appointment_id))

    @app.delete("/api/appointments/{appointment_id}", response_model=DeletedOut)
    def api_delete_appointment(appointment_id: int, s: Session = Depends(get_session)) -> DeletedOut:
        return DeletedOut(deleted=repo.delete_appointment(s, appointment_id))

    return app


app = create_app()
