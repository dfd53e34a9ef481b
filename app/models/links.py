import enum
import uuid
from datetime import datetime
from sqlalchemy import String, Enum, ForeignKey, Boolean, DateTime, UniqueConstraint, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.core.db import Base

class StaffRole(str, enum.Enum):
    admin = "admin"
    doctor = "doctor"
    receptionist = "receptionist"
    nurse = "nurse"
    patient = "patient"

class ClinicUser(Base):
    """Membresía de un User en una clínica (rol de staff dentro de esa clínica)."""
    __tablename__ = "clinic_users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    clinic_id: Mapped[str] = mapped_column(String(36), ForeignKey("clinics.id", ondelete="CASCADE"))
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"))
    role: Mapped[StaffRole] = mapped_column(Enum(StaffRole))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="memberships")
    clinic = relationship("Clinic")

    __table_args__ = (
        Index("ix_clinic_user_user", "user_id"),
        Index("ix_clinic_user_clinic", "clinic_id"),
    )

class ClinicDoctor(Base):
    __tablename__ = "clinic_doctors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    clinic_id: Mapped[str] = mapped_column(String(36), ForeignKey("clinics.id", ondelete="CASCADE"))
    doctor_id: Mapped[str] = mapped_column(String(36), ForeignKey("doctors.id", ondelete="CASCADE"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    joined_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("clinic_id", "doctor_id", name="uq_clinic_doctor"),
        Index("ix_clinic_doctor_clinic", "clinic_id"),
        Index("ix_clinic_doctor_doctor", "doctor_id"),
    )

class ClinicPatient(Base):
    __tablename__ = "clinic_patients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    clinic_id: Mapped[str] = mapped_column(String(36), ForeignKey("clinics.id", ondelete="CASCADE"))
    patient_id: Mapped[str] = mapped_column(String(36), ForeignKey("patients.id", ondelete="CASCADE"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    enrolled_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("clinic_id", "patient_id", name="uq_clinic_patient"),
        Index("ix_clinic_patient_clinic", "clinic_id"),
        Index("ix_clinic_patient_patient", "patient_id"),
    )

class PatientDoctor(Base):
    """Paciente que se registró con la invitación de un médico."""
    __tablename__ = "patient_doctors"
    patient_id: Mapped[str] = mapped_column(String(36), ForeignKey("patients.id", ondelete="CASCADE"), primary_key=True)
    doctor_id: Mapped[str] = mapped_column(String(36), ForeignKey("doctors.id", ondelete="CASCADE"), primary_key=True)
