from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from backend.models.doctor import Doctor
from backend.routes.dependencies import database_unavailable, ensure_database_ready, get_db
from backend.routes.schemas import AppointmentResponse, DoctorResponse
from backend.services.appointment_service import AppointmentService

router = APIRouter(tags=['doctors'])


class DoctorRequest(BaseModel):
    id: int | None = None
    name: str
    specialization: str

    @field_validator('name', 'specialization')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Value is required.')
        return normalized


def get_doctor_or_404(doctor_id: int, db: Session) -> Doctor:
    doctor = db.query(Doctor).options(selectinload(Doctor.appointments)).filter(Doctor.id == doctor_id).first()
    if not doctor:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Doctor not found.',
        )
    return doctor


@router.get('', response_model=list[DoctorResponse])
def list_doctors(db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return db.query(Doctor).options(selectinload(Doctor.appointments)).order_by(Doctor.id.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{doctor_id}', response_model=DoctorResponse)
def get_doctor(doctor_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return get_doctor_or_404(doctor_id, db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('', response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
def create_doctor(data: DoctorRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        doctor = Doctor(name=data.name, specialization=data.specialization)
        db.add(doctor)
        db.commit()
        db.refresh(doctor)

        return doctor
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.put('/{doctor_id}', status_code=status.HTTP_204_NO_CONTENT)
def update_doctor(doctor_id: int, data: DoctorRequest, db: Session = Depends(get_db)):
    if data.id is not None and data.id != doctor_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Doctor id does not match the route.',
        )

    ensure_database_ready()

    try:
        doctor = get_doctor_or_404(doctor_id, db)
        doctor.name = data.name
        doctor.specialization = data.specialization
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{doctor_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_doctor(doctor_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        doctor = get_doctor_or_404(doctor_id, db)
        db.delete(doctor)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/{doctor_id}/appointments', response_model=list[AppointmentResponse])
def list_doctor_appointments_for_day(
    doctor_id: int,
    day: date = Query(..., alias='date'),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointments = AppointmentService(db).for_doctor_on_day(doctor_id, day)
        if not appointments:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='No appointments found for this doctor on the given date.',
            )

        return appointments
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
