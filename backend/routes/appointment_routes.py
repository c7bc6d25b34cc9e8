from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.routes.dependencies import database_unavailable, ensure_database_ready, get_db
from backend.routes.schemas import AppointmentResponse
from backend.services.appointment_service import (
    AppointmentRejected,
    AppointmentService,
    ConcurrencyConflict,
)
from backend.services.appointment_validator import AppointmentDraft, AppointmentInputError

router = APIRouter(tags=['appointments'])


class AppointmentRequest(BaseModel):
    id: int | None = None
    date: datetime
    doctor_id: int = Field(gt=0)
    patient_id: int = Field(gt=0)
    version: int | None = Field(default=None, ge=1)

    @field_validator('date')
    @classmethod
    def validate_local_date(cls, value: datetime) -> datetime:
        # Operating hours are clinic wall-clock times.
        if value.tzinfo is not None and value.utcoffset() is not None:
            raise ValueError('Appointment date must be a local clinic time without a timezone offset.')
        return value

    def to_draft(self) -> AppointmentDraft:
        return AppointmentDraft(date=self.date, doctor_id=self.doctor_id, patient_id=self.patient_id, id=self.id)


def raise_for_outcome(outcome) -> None:
    if isinstance(outcome, AppointmentRejected):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                'message': 'Appointment could not be scheduled.',
                'violations': [
                    {'code': violation.code.value, 'message': violation.message}
                    for violation in outcome.violations
                ],
            },
        )

    if isinstance(outcome, ConcurrencyConflict):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=outcome.message,
        )


def appointment_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail='Appointment not found.',
    )


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return AppointmentService(db).list_all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/date/{day}', response_model=list[AppointmentResponse])
def list_appointments_for_date(day: date, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        appointments = AppointmentService(db).for_day(day)
        if not appointments:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='No appointments found on the given date.',
            )

        return appointments
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        appointment = AppointmentService(db).get(appointment_id)
        if not appointment:
            raise appointment_not_found()

        return appointment
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(data: AppointmentRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        outcome = AppointmentService(db).schedule(data.to_draft())
    except AppointmentInputError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    raise_for_outcome(outcome)
    return outcome


@router.put('/{appointment_id}', response_model=AppointmentResponse)
def update_appointment(appointment_id: int, data: AppointmentRequest, db: Session = Depends(get_db)):
    if data.id is not None and data.id != appointment_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Appointment id does not match the route.',
        )

    ensure_database_ready()

    try:
        outcome = AppointmentService(db).reschedule(appointment_id, data.to_draft(), expected_version=data.version)
    except AppointmentInputError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    if outcome is None:
        raise appointment_not_found()

    raise_for_outcome(outcome)
    return outcome


@router.delete('/{appointment_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        outcome = AppointmentService(db).cancel(appointment_id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    if outcome is False:
        raise appointment_not_found()

    raise_for_outcome(outcome)
