import uuid
import enum
from datetime import date, datetime
from sqlalchemy import String, Enum, ForeignKey, Date, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.core.db import Base

class SexEnum(str, enum.Enum):
    male = "male"
    female = "female"
    other = "other"

class Patient(Base):
    __tablename__ = "patients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"), unique=True, nullable=True)

    # copia de los datos del formulario, independiente de User
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tax_id: Mapped[str | None] = mapped_column(String(14), unique=True, nullable=True)   # CPF, solo dígitos
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    sex: Mapped[SexEnum | None] = mapped_column(Enum(SexEnum), nullable=True)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    clinics = relationship("Clinic", secondary="clinic_patients", back_populates="patients", viewonly=True)
