"""Patient model definitions."""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from backend.database import Base


class Patient(Base):
    """Represents a patient of the clinic."""
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, default="")

    appointments = relationship(
        "Appointment",
        back_populates="patient",
        cascade="all, delete",
        order_by="Appointment.date",
    )
