"""Appointment model definitions."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, UniqueConstraint
from sqlalchemy.orm import relationship, validates

from backend.database import Base


class Appointment(Base):
    """Represents a scheduled appointment between a doctor and a patient."""
    __tablename__ = "appointments"
    __table_args__ = (
        # One appointment per patient per calendar day, enforced by the datastore.
        UniqueConstraint("patient_id", "appointment_day", name="uq_appointments_patient_day"),
        Index("idx_appointments_day_doctor", "appointment_day", "doctor_id"),
    )

    id = Column(Integer, primary_key=True)
    date = Column(DateTime, nullable=False)
    appointment_day = Column(Date, nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False)
    version = Column(Integer, nullable=False)

    doctor = relationship("Doctor", back_populates="appointments")
    patient = relationship("Patient", back_populates="appointments")

    __mapper_args__ = {"version_id_col": version}

    @validates("date")
    def _sync_appointment_day(self, key, value):
        self.appointment_day = value.date() if value is not None else None
        return value
