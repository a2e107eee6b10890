from __future__ import annotations

import argparse
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from hospital.config import configure_logging, load_settings
from hospital.db import db_session, make_engine, make_session_factory
from hospital.errors import HospitalError
from hospital.models import DeletePolicy
from hospital.repository import (
    AppointmentView,
    add_appointment,
    add_appointment_by_ids,
    add_doctor,
    add_patient,
    delete_appointment,
    delete_doctor,
    delete_patient,
    find_dangling_appointments,
    init_db,
    list_appointments_by_patient_name,
    list_doctors,
    list_doctors_by_specialization,
    list_patients,
)
from hospital.seed import seed_base

logger = logging.getLogger(__name__)


def _print_view(v: AppointmentView) -> None:
    a = v.appointment
    doctor = v.doctor.name if v.doctor else f"<missing doctor {a.doctor_id}>"
    patient = v.patient.name if v.patient else f"<missing patient {a.patient_id}>"
    print(f"{a.id} | {a.date.isoformat(sep=' ', timespec='minutes')} | {doctor} | {patient}")


def cmd_init(args: argparse.Namespace, s: Session) -> None:
    if args.seed:
        added = seed_base(s)
        print(f"DB initialized, {added} seed row(s) added.")
    else:
        print("DB initialized.")


def cmd_list(args: argparse.Namespace, s: Session) -> None:
    if args.entity == "patients":
        for p in list_patients(s):
            print(f"{p.id} | {p.name} | {p.age} | {p.address}")
    elif args.entity == "doctors":
        for d in list_doctors(s):
            print(f"{d.id} | {d.name} | {d.specialization}")


def cmd_doctors(args: argparse.Namespace, s: Session) -> None:
    doctors = list_doctors_by_specialization(s, args.specialization)
    if not doctors:
        print("No doctors found.")
    for d in doctors:
        print(f"{d.id} | {d.name} | {d.specialization}")


def cmd_appointments(args: argparse.Namespace, s: Session) -> None:
    views = list_appointments_by_patient_name(s, args.patient)
    if not views:
        print("No appointments found.")
    for v in views:
        _print_view(v)


def cmd_add_patient(args: argparse.Namespace, s: Session) -> None:
    pid = add_patient(s, args.name, args.age, args.address)
    print(f"Patient created: {pid}")


def cmd_add_doctor(args: argparse.Namespace, s: Session) -> None:
    did = add_doctor(s, args.name, args.specialization)
    print(f"Doctor created: {did}")


def cmd_add_appointment(args: argparse.Namespace, s: Session) -> None:
    if args.patient_id is not None and args.doctor_id is not None:
        aid = add_appointment_by_ids(s, args.date, args.patient_id, args.doctor_id)
    elif args.patient and args.doctor:
        aid = add_appointment(s, args.date, args.patient, args.doctor)
    else:
        raise SystemExit("Use either --patient/--doctor or --patient-id/--doctor-id.")
    print(f"Appointment created: {aid}")


def cmd_delete(args: argparse.Namespace, s: Session) -> None:
    policy = DeletePolicy(args.policy)
    if args.entity == "patient":
        ok = delete_patient(s, args.id, policy=policy)
    elif args.entity == "doctor":
        ok = delete_doctor(s, args.id, policy=policy)
    else:
        ok = delete_appointment(s, args.id)
    print("Deleted." if ok else "Not found, nothing to delete.")


def cmd_dangling(args: argparse.Namespace, s: Session) -> None:
    views = find_dangling_appointments(s)
    if not views:
        print("No dangling appointments.")
    for v in views:
        _print_view(v)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="hospital", description="Hospital scheduling data (patients, doctors, appointments)")
    sub = p.add_subparsers(required=True)

    p_init = sub.add_parser("init", help="Create tables")
    p_init.add_argument("--seed", action="store_true", help="Also load demo doctors and patients")
    p_init.set_defaults(func=cmd_init)

    p_list = sub.add_parser("list", help="List entities")
    p_list.add_argument("entity", choices=["patients", "doctors"])
    p_list.set_defaults(func=cmd_list)

    p_doc = sub.add_parser("doctors", help="Doctors by specialization (exact match)")
    p_doc.add_argument("--specialization", required=True)
    p_doc.set_defaults(func=cmd_doctors)

    p_app = sub.add_parser("appointments", help="Appointments by patient name (exact match)")
    p_app.add_argument("--patient", required=True)
    p_app.set_defaults(func=cmd_appointments)

    p_addp = sub.add_parser("add-patient", help="Create patient")
    p_addp.add_argument("--name", required=True)
    p_addp.add_argument("--age", type=int, required=True)
    p_addp.add_argument("--address", required=True)
    p_addp.set_defaults(func=cmd_add_patient)

    p_addd = sub.add_parser("add-doctor", help="Create doctor")
    p_addd.add_argument("--name", required=True)
    p_addd.add_argument("--specialization", required=True)
    p_addd.set_defaults(func=cmd_add_doctor)

    p_adda = sub.add_parser("add-appointment", help="Create appointment")
    p_adda.add_argument("--date", type=datetime.fromisoformat, required=True, help="ISO datetime es: 2026-01-14T10:30")
    p_adda.add_argument("--patient", default=None, help="Patient name (must match exactly one)")
    p_adda.add_argument("--doctor", default=None, help="Doctor name (must match exactly one)")
    p_adda.add_argument("--patient-id", type=int, default=None)
    p_adda.add_argument("--doctor-id", type=int, default=None)
    p_adda.set_defaults(func=cmd_add_appointment)

    p_del = sub.add_parser("delete", help="Delete by id")
    p_del.add_argument("entity", choices=["patient", "doctor", "appointment"])
    p_del.add_argument("id", type=int)
    p_del.add_argument(
        "--policy",
        choices=[policy.value for policy in DeletePolicy],
        default=DeletePolicy.RESTRICT.value,
        help="What to do with appointments that reference the row",
    )
    p_del.set_defaults(func=cmd_delete)

    p_dang = sub.add_parser("dangling", help="Appointments whose patient or doctor was deleted")
    p_dang.set_defaults(func=cmd_dangling)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging(settings.log_level)

    engine = make_engine(settings.database_url, echo=settings.echo_sql)
    try:
        init_db(engine)  # garantisce tabelle
        with db_session(make_session_factory(engine)) as s:
            args.func(args, s)
    except HospitalError as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {exc.message}")
        return 1
    finally:
        engine.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
