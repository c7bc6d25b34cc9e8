"""Response models shared by the entity routers."""

from datetime import datetime

from pydantic import BaseModel


class DoctorSummaryResponse(BaseModel):
    id: int
    name: str
    specialization: str

    class Config:
        from_attributes = True


class PatientSummaryResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class AppointmentSummaryResponse(BaseModel):
    id: int
    date: datetime
    doctor_id: int
    patient_id: int
    version: int

    class Config:
        from_attributes = True


class AppointmentResponse(AppointmentSummaryResponse):
    doctor: DoctorSummaryResponse | None = None
    patient: PatientSummaryResponse | None = None


class DoctorResponse(DoctorSummaryResponse):
    appointments: list[AppointmentSummaryResponse] = []


class PatientResponse(PatientSummaryResponse):
    appointments: list[AppointmentSummaryResponse] = []
