from __future__ import annotations

import sys

from sqlalchemy import text

from hospital.config import load_settings
from hospital.db import db_session, make_engine, make_session_factory
from hospital.repository import find_dangling_appointments


def main() -> int:
    """
    Controllo di consistenza dopo cancellazioni con policy DETACH (sola lettura):
    - conta i riferimenti orfani direttamente in SQL
    - elenca gli appuntamenti coinvolti
    Exit code 1 se ce ne sono.
    """
    engine = make_engine(load_settings().database_url)
    try:
        with engine.connect() as c:
            orphan_patients = c.execute(
                text(
                    "SELECT COUNT(*) FROM appointment a "
                    "LEFT JOIN patient p ON p.id = a.patient_id WHERE p.id IS NULL"
                )
            ).scalar()
            orphan_doctors = c.execute(
                text(
                    "SELECT COUNT(*) FROM appointment a "
                    "LEFT JOIN doctor d ON d.id = a.doctor_id WHERE d.id IS NULL"
                )
            ).scalar()

        print("missing patient refs:", orphan_patients)
        print("missing doctor refs :", orphan_doctors)

        with db_session(make_session_factory(engine)) as s:
            views = find_dangling_appointments(s)
        for v in views:
            a = v.appointment
            print(f"  appointment {a.id} | patient_id={a.patient_id} | doctor_id={a.doctor_id}")
    finally:
        engine.dispose()

    return 1 if views else 0


if __name__ == "__main__":
    sys.exit(main())
