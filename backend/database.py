import logging
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from backend.core import config


engine = create_engine(config.DATABASE_URL, echo=config.SQL_ECHO)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

logger = logging.getLogger(__name__)

_schema_lock = Lock()
_appointment_schema_checked = False


def ensure_appointment_schema() -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    with _schema_lock:
        if _appointment_schema_checked:
            return

        inspector = inspect(engine)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('appointment_day', 'ALTER TABLE appointments ADD COLUMN appointment_day DATE'),
            ('version', 'ALTER TABLE appointments ADD COLUMN version INTEGER NOT NULL DEFAULT 1'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('UPDATE appointments SET appointment_day = DATE(date) WHERE appointment_day IS NULL')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_day_doctor ON appointments(appointment_day, doctor_id)')
            )

            duplicates = connection.execute(
                text(
                    'SELECT patient_id, appointment_day, COUNT(*) AS bookings FROM appointments '
                    'WHERE appointment_day IS NOT NULL '
                    'GROUP BY patient_id, appointment_day HAVING COUNT(*) > 1'
                )
            ).all()
            if duplicates:
                logger.warning(
                    'Skipping uq_appointments_patient_day: %d patient/day pairs are double-booked (%s)',
                    len(duplicates),
                    ', '.join(f'patient {row.patient_id} on {row.appointment_day}' for row in duplicates),
                )
            else:
                connection.execute(
                    text(
                        'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_patient_day '
                        'ON appointments(patient_id, appointment_day)'
                    )
                )

            missing_days = connection.execute(
                text('SELECT COUNT(*) FROM appointments WHERE appointment_day IS NULL')
            ).scalar()
            if missing_days:
                logger.warning('%d appointments have no date and cannot be assigned a day', missing_days)

        # Re-checked on the next request until the data is clean.
        _appointment_schema_checked = not duplicates and not missing_days
