import os
from datetime import date, datetime

import pytest
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from backend.database import Base  # noqa: E402
from backend.models.appointment import Appointment  # noqa: E402
from backend.models.doctor import Doctor  # noqa: E402
from backend.models.patient import Patient  # noqa: E402
from backend.routes.doctor_routes import (  # noqa: E402
    DoctorRequest,
    create_doctor,
    delete_doctor,
    get_doctor,
    list_doctor_appointments_for_day,
    list_doctors,
    update_doctor,
)
from backend.routes.patient_routes import (  # noqa: E402
    PatientRequest,
    create_patient,
    delete_patient,
    get_patient,
    list_patients,
    update_patient,
)
from backend.routes.schemas import DoctorResponse  # noqa: E402


@pytest.fixture
def clinic_db(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr('backend.routes.doctor_routes.ensure_database_ready', lambda: None)
    monkeypatch.setattr('backend.routes.patient_routes.ensure_database_ready', lambda: None)

    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


def test_doctor_request_normalizes_text_fields() -> None:
    request = DoctorRequest(name='  Dr. Grey ', specialization=' Surgery ')

    assert request.name == 'Dr. Grey'
    assert request.specialization == 'Surgery'


def test_doctor_request_rejects_blank_specialization() -> None:
    with pytest.raises(ValidationError):
        DoctorRequest(name='Dr. Grey', specialization='   ')


def test_create_and_list_doctors(clinic_db) -> None:
    created = create_doctor(DoctorRequest(name='Dr. Grey', specialization='Surgery'), db=clinic_db)

    doctors = list_doctors(db=clinic_db)

    assert [doctor.id for doctor in doctors] == [created.id]
    response = DoctorResponse.model_validate(get_doctor(doctor_id=created.id, db=clinic_db))
    assert response.appointments == []


def test_get_doctor_returns_not_found_when_missing(clinic_db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_doctor(doctor_id=7, db=clinic_db)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Doctor not found.'


def test_update_doctor_rejects_mismatched_id(clinic_db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        update_doctor(doctor_id=1, data=DoctorRequest(id=2, name='Dr. Grey', specialization='Surgery'), db=clinic_db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Doctor id does not match the route.'


def test_update_doctor_changes_fields(clinic_db) -> None:
    created = create_doctor(DoctorRequest(name='Dr. Grey', specialization='Surgery'), db=clinic_db)

    update_doctor(
        doctor_id=created.id,
        data=DoctorRequest(id=created.id, name='Dr. Grey', specialization='Cardiology'),
        db=clinic_db,
    )

    assert clinic_db.get(Doctor, created.id).specialization == 'Cardiology'


def test_delete_doctor_cascades_to_appointments(clinic_db) -> None:
    doctor = create_doctor(DoctorRequest(name='Dr. Grey', specialization='Surgery'), db=clinic_db)
    patient = create_patient(PatientRequest(name='Ada'), db=clinic_db)
    clinic_db.add(Appointment(date=datetime(2024, 6, 3, 11, 0), doctor_id=doctor.id, patient_id=patient.id))
    clinic_db.commit()

    delete_doctor(doctor_id=doctor.id, db=clinic_db)

    assert clinic_db.query(Doctor).count() == 0
    assert clinic_db.query(Appointment).count() == 0
    assert clinic_db.query(Patient).count() == 1


def test_doctor_appointments_for_day(clinic_db) -> None:
    doctor = create_doctor(DoctorRequest(name='Dr. Grey', specialization='Surgery'), db=clinic_db)
    patients = [create_patient(PatientRequest(name=name), db=clinic_db) for name in ('Ada', 'Grace')]
    clinic_db.add_all([
        Appointment(date=datetime(2024, 6, 3, 14, 0), doctor_id=doctor.id, patient_id=patients[0].id),
        Appointment(date=datetime(2024, 6, 4, 11, 0), doctor_id=doctor.id, patient_id=patients[1].id),
    ])
    clinic_db.commit()

    appointments = list_doctor_appointments_for_day(doctor_id=doctor.id, day=date(2024, 6, 3), db=clinic_db)

    assert [appointment.patient.name for appointment in appointments] == ['Ada']

    with pytest.raises(HTTPException) as exception_info:
        list_doctor_appointments_for_day(doctor_id=doctor.id, day=date(2024, 6, 5), db=clinic_db)
    assert exception_info.value.status_code == 404


def test_patient_crud_round_trip(clinic_db) -> None:
    created = create_patient(PatientRequest(name=' Ada '), db=clinic_db)
    assert created.name == 'Ada'

    update_patient(patient_id=created.id, data=PatientRequest(name='Ada Lovelace'), db=clinic_db)
    assert get_patient(patient_id=created.id, db=clinic_db).name == 'Ada Lovelace'
    assert len(list_patients(db=clinic_db)) == 1

    delete_patient(patient_id=created.id, db=clinic_db)
    with pytest.raises(HTTPException) as exception_info:
        get_patient(patient_id=created.id, db=clinic_db)
    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Patient not found.'


def test_update_patient_rejects_mismatched_id(clinic_db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        update_patient(patient_id=3, data=PatientRequest(id=4, name='Ada'), db=clinic_db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Patient id does not match the route.'
