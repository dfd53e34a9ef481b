import enum
import uuid
from dataclasses import dataclass
from datetime import datetime
from sqlalchemy import String, Enum, Float, Boolean, DateTime, Index, func
from sqlalchemy.orm import Mapped, mapped_column
from app.core.db import Base

class EntityType(str, enum.Enum):
    clinic = "clinic"
    doctor = "doctor"
    patient = "patient"

@dataclass(frozen=True)
class AddressOwner:
    """Dueño de una dirección: (tipo, id). La tabla es polimórfica, sin FK."""
    entity_type: EntityType
    entity_id: str

class Address(Base):
    __tablename__ = "addresses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    entity_type: Mapped[EntityType] = mapped_column(Enum(EntityType))
    entity_id: Mapped[str] = mapped_column(String(36))
    label: Mapped[str | None] = mapped_column(String(50), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(9), nullable=True)
    street: Mapped[str | None] = mapped_column(String(255), nullable=True)
    number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    complement: Mapped[str | None] = mapped_column(String(100), nullable=True)
    neighborhood: Mapped[str | None] = mapped_column(String(100), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(2), nullable=True)
    country: Mapped[str | None] = mapped_column(String(2), default="BR")
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("ix_address_entity", "entity_type", "entity_id"),
    )

    @property
    def owner(self) -> AddressOwner:
        return AddressOwner(self.entity_type, self.entity_id)
