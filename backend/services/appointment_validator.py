"""Scheduling rules applied to an appointment before it is written.

The validator is a pure function of the candidate appointment and the
appointments already booked on the candidate's calendar day. It never touches
the database; callers fetch the same-day comparison set and pass it in.
"""

from dataclasses import dataclass
from datetime import datetime, time
from enum import Enum
from typing import Iterable, Protocol

from backend.core import config


class AppointmentInputError(ValueError):
    """Raised when a candidate appointment cannot be evaluated at all."""


class ViolationCode(str, Enum):
    PATIENT_DOUBLE_BOOKING = 'patient_double_booking'
    DOCTOR_DAILY_CAPACITY = 'doctor_daily_capacity'
    OUTSIDE_OPERATING_HOURS = 'outside_operating_hours'


@dataclass(frozen=True)
class ViolationReason:
    code: ViolationCode
    message: str


@dataclass(frozen=True)
class AppointmentDraft:
    """A proposed appointment. ``id`` is set when rescheduling an existing one."""

    date: datetime
    doctor_id: int
    patient_id: int
    id: int | None = None


class ScheduledAppointment(Protocol):
    id: int
    date: datetime
    doctor_id: int
    patient_id: int


def format_clock_time(value: time) -> str:
    hour = value.hour % 12 or 12
    suffix = 'am' if value.hour < 12 else 'pm'
    if value.minute:
        return f'{hour}:{value.minute:02d}{suffix}'
    return f'{hour}{suffix}'


def _require_id(value, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise AppointmentInputError(f'{field_name} must be a positive integer.')
    return value


def check_draft(candidate: AppointmentDraft) -> None:
    """Reject drafts that are missing the fields every rule depends on."""
    if not isinstance(candidate.date, datetime):
        raise AppointmentInputError('date is required.')
    _require_id(candidate.doctor_id, 'doctor_id')
    _require_id(candidate.patient_id, 'patient_id')


class AppointmentValidator:
    def __init__(
        self,
        opening_time: time = config.CLINIC_OPENING_TIME,
        closing_time: time = config.CLINIC_CLOSING_TIME,
        max_daily_doctor_appointments: int = config.MAX_DAILY_DOCTOR_APPOINTMENTS,
    ) -> None:
        self.opening_time = opening_time
        self.closing_time = closing_time
        self.max_daily_doctor_appointments = max_daily_doctor_appointments

    def validate(
        self,
        candidate: AppointmentDraft,
        same_day: Iterable[ScheduledAppointment],
    ) -> list[ViolationReason]:
        """Return every rule the candidate breaks, in rule order.

        An empty list means the appointment may be committed. All rules are
        evaluated so the caller can report every reason at once.
        """
        check_draft(candidate)
        doctor_id = candidate.doctor_id
        patient_id = candidate.patient_id

        candidate_day = candidate.date.date()
        others = [
            appointment
            for appointment in same_day
            if appointment.date.date() == candidate_day
            and (candidate.id is None or appointment.id != candidate.id)
        ]

        violations: list[ViolationReason] = []

        if any(appointment.patient_id == patient_id for appointment in others):
            violations.append(
                ViolationReason(
                    ViolationCode.PATIENT_DOUBLE_BOOKING,
                    'Patient already has an appointment on this date.',
                )
            )

        doctor_bookings = sum(1 for appointment in others if appointment.doctor_id == doctor_id)
        if doctor_bookings >= self.max_daily_doctor_appointments:
            violations.append(
                ViolationReason(
                    ViolationCode.DOCTOR_DAILY_CAPACITY,
                    f'Doctor already has {self.max_daily_doctor_appointments} appointments on this date.',
                )
            )

        time_of_day = candidate.date.time()
        if time_of_day < self.opening_time or time_of_day > self.closing_time:
            violations.append(
                ViolationReason(
                    ViolationCode.OUTSIDE_OPERATING_HOURS,
                    'Appointments can only be scheduled between '
                    f'{format_clock_time(self.opening_time)} and {format_clock_time(self.closing_time)}.',
                )
            )

        return violations
