from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from backend.models.patient import Patient
from backend.routes.dependencies import database_unavailable, ensure_database_ready, get_db
from backend.routes.schemas import PatientResponse

router = APIRouter(tags=['patients'])


class PatientRequest(BaseModel):
    id: int | None = None
    name: str = ''

    @field_validator('name')
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return value.strip()


def get_patient_or_404(patient_id: int, db: Session) -> Patient:
    patient = db.query(Patient).options(selectinload(Patient.appointments)).filter(Patient.id == patient_id).first()
    if not patient:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Patient not found.',
        )
    return patient


@router.get('', response_model=list[PatientResponse])
def list_patients(db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return db.query(Patient).options(selectinload(Patient.appointments)).order_by(Patient.id.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{patient_id}', response_model=PatientResponse)
def get_patient(patient_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return get_patient_or_404(patient_id, db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('', response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
def create_patient(data: PatientRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        patient = Patient(name=data.name)
        db.add(patient)
        db.commit()
        db.refresh(patient)

        return patient
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.put('/{patient_id}', status_code=status.HTTP_204_NO_CONTENT)
def update_patient(patient_id: int, data: PatientRequest, db: Session = Depends(get_db)):
    if data.id is not None and data.id != patient_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Patient id does not match the route.',
        )

    ensure_database_ready()

    try:
        patient = get_patient_or_404(patient_id, db)
        patient.name = data.name
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{patient_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_patient(patient_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        patient = get_patient_or_404(patient_id, db)
        db.delete(patient)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
