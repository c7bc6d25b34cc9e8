import logging
from dataclasses import dataclass, field, replace
from datetime import date

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from backend.models.appointment import Appointment
from backend.models.doctor import Doctor
from backend.models.patient import Patient
from backend.services.appointment_validator import (
    AppointmentDraft,
    AppointmentInputError,
    AppointmentValidator,
    ViolationReason,
    check_draft,
)

logger = logging.getLogger(__name__)


@dataclass
class AppointmentRejected:
    violations: list[ViolationReason] = field(default_factory=list)


@dataclass
class ConcurrencyConflict:
    """The appointment changed underneath this request; re-fetch and retry."""

    appointment_id: int | None
    message: str


ScheduleOutcome = Appointment | AppointmentRejected | ConcurrencyConflict

PATIENT_DAY_CONSTRAINT = 'uq_appointments_patient_day'


def is_patient_day_violation(exc: IntegrityError) -> bool:
    # Postgres names the constraint; SQLite only lists the columns.
    detail = str(exc.orig)
    return PATIENT_DAY_CONSTRAINT in detail or 'appointments.patient_id, appointments.appointment_day' in detail


class AppointmentService:
    def __init__(self, db: Session, validator: AppointmentValidator | None = None) -> None:
        self.db = db
        self.validator = validator or AppointmentValidator()

    def _with_parties(self, query):
        return query.options(selectinload(Appointment.doctor), selectinload(Appointment.patient))

    def get(self, appointment_id: int) -> Appointment | None:
        return self._with_parties(self.db.query(Appointment)).filter(Appointment.id == appointment_id).first()

    def list_all(self) -> list[Appointment]:
        return self._with_parties(self.db.query(Appointment)).order_by(Appointment.date.asc()).all()

    def same_day_appointments(self, day: date) -> list[Appointment]:
        return self.db.query(Appointment).filter(Appointment.appointment_day == day).all()

    def for_day(self, day: date) -> list[Appointment]:
        return self._with_parties(self.db.query(Appointment)).filter(
            Appointment.appointment_day == day,
        ).order_by(Appointment.date.asc()).all()

    def for_doctor_on_day(self, doctor_id: int, day: date) -> list[Appointment]:
        return self._with_parties(self.db.query(Appointment)).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_day == day,
        ).order_by(Appointment.date.asc()).all()

    def _require_parties(self, draft: AppointmentDraft) -> None:
        if self.db.get(Doctor, draft.doctor_id) is None:
            raise AppointmentInputError(f'Doctor {draft.doctor_id} not found.')
        if self.db.get(Patient, draft.patient_id) is None:
            raise AppointmentInputError(f'Patient {draft.patient_id} not found.')

    def _evaluate(self, draft: AppointmentDraft) -> list[ViolationReason]:
        check_draft(draft)
        self._require_parties(draft)
        same_day = self.same_day_appointments(draft.date.date())
        return self.validator.validate(draft, same_day)

    def _commit(self, appointment: Appointment, appointment_id: int | None) -> Appointment | ConcurrencyConflict:
        try:
            self.db.commit()
        except IntegrityError as exc:
            patient_id = appointment.patient_id
            self.db.rollback()
            logger.warning('Appointment write for patient %s rejected by datastore constraint: %s', patient_id, exc.orig)
            if is_patient_day_violation(exc):
                message = 'Patient was booked on this date by another request. Reload and try again.'
            else:
                message = 'Doctor or patient was changed or removed by another request. Reload and try again.'
            return ConcurrencyConflict(appointment_id=appointment_id, message=message)
        except StaleDataError:
            self.db.rollback()
            logger.warning('Appointment %s changed during update', appointment_id)
            return ConcurrencyConflict(
                appointment_id=appointment_id,
                message='Appointment was modified or removed by another request. Reload and try again.',
            )
        except SQLAlchemyError:
            self.db.rollback()
            raise

        self.db.refresh(appointment)
        return appointment

    def schedule(self, draft: AppointmentDraft) -> ScheduleOutcome:
        violations = self._evaluate(replace(draft, id=None))
        if violations:
            logger.info(
                'Rejected appointment for doctor %s and patient %s: %s',
                draft.doctor_id,
                draft.patient_id,
                ', '.join(violation.code.value for violation in violations),
            )
            return AppointmentRejected(violations)

        appointment = Appointment(date=draft.date, doctor_id=draft.doctor_id, patient_id=draft.patient_id)
        self.db.add(appointment)
        return self._commit(appointment, None)

    def reschedule(
        self,
        appointment_id: int,
        draft: AppointmentDraft,
        expected_version: int | None = None,
    ) -> ScheduleOutcome | None:
        appointment = self.db.get(Appointment, appointment_id)
        if appointment is None:
            return None

        if expected_version is not None and expected_version != appointment.version:
            return ConcurrencyConflict(
                appointment_id=appointment_id,
                message=f'Appointment is at version {appointment.version}, not {expected_version}. Reload and try again.',
            )

        violations = self._evaluate(replace(draft, id=appointment_id))
        if violations:
            logger.info(
                'Rejected reschedule of appointment %s: %s',
                appointment_id,
                ', '.join(violation.code.value for violation in violations),
            )
            return AppointmentRejected(violations)

        appointment.date = draft.date
        appointment.doctor_id = draft.doctor_id
        appointment.patient_id = draft.patient_id
        return self._commit(appointment, appointment_id)

    def cancel(self, appointment_id: int) -> bool | ConcurrencyConflict:
        appointment = self.db.get(Appointment, appointment_id)
        if appointment is None:
            return False

        self.db.delete(appointment)
        try:
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            logger.warning('Appointment %s changed during cancellation', appointment_id)
            return ConcurrencyConflict(
                appointment_id=appointment_id,
                message='Appointment was modified or removed by another request. Reload and try again.',
            )
        except SQLAlchemyError:
            self.db.rollback()
            raise

        return True
