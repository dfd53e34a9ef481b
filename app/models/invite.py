import enum
import uuid
from datetime import datetime
from sqlalchemy import String, Enum, ForeignKey, Boolean, Integer, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.core.db import Base

class InviteRole(str, enum.Enum):
    admin = "admin"
    doctor = "doctor"
    patient = "patient"

class Invite(Base):
    __tablename__ = "invites"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    role: Mapped[InviteRole] = mapped_column(Enum(InviteRole))
    # None = invitación global (médico independiente)
    clinic_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("clinics.id", ondelete="CASCADE"), nullable=True)
    # invitación de paciente emitida por un médico
    doctor_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("doctors.id", ondelete="CASCADE"), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    used_count: Mapped[int] = mapped_column(Integer, default=0)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    clinic = relationship("Clinic")

    def is_usable(self, now: datetime) -> bool:
        if not self.is_active:
            return False
        return self.expires_at is None or self.expires_at > now
