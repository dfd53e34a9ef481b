from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from app.core.config import settings
from app.schemas.common import reject_null, strip_or_none

class DoctorUpdate(BaseModel):
    license: Optional[str] = Field(None, max_length=20)
    license_region: Optional[str] = Field(None, max_length=2)
    phone: Optional[str] = Field(None, max_length=20)
    bio: Optional[str] = None

    @field_validator("license", "license_region", "phone", mode="before")
    @classmethod
    def blank_as_none(cls, v):
        return strip_or_none(v)

    @field_validator("license_region")
    @classmethod
    def upper_region(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v

class ClinicDoctorUpdate(DoctorUpdate):
    """Edición desde la clínica: además de la matrícula, nombre y email de la cuenta."""
    name: Optional[str] = Field(None, min_length=2)
    email: Optional[EmailStr] = None

    @field_validator("name", "email", mode="before")
    @classmethod
    def account_fields(cls, v):
        return reject_null(strip_or_none(v))

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v

class DoctorCreate(BaseModel):
    """Alta de un médico por el admin de la clínica, con cuenta propia."""
    name: str = Field(..., min_length=2)
    email: EmailStr
    password: str
    license: Optional[str] = Field(None, max_length=20)
    license_region: Optional[str] = Field(None, max_length=2)
    phone: Optional[str] = Field(None, max_length=20)

    @field_validator("name", "email", "license", "license_region", "phone", mode="before")
    @classmethod
    def blank_as_none(cls, v):
        return strip_or_none(v)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("license_region")
    @classmethod
    def upper_region(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        if len(v) < settings.PASSWORD_MIN_LENGTH:
            raise ValueError(f"La contraseña debe tener al menos {settings.PASSWORD_MIN_LENGTH} caracteres")
        return v

class DoctorOut(BaseModel):
    id: str
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    license: Optional[str] = None
    license_region: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[datetime] = None
    clinics: List[str] = []

    class Config:
        from_attributes = True

    @staticmethod
    def from_model(d) -> "DoctorOut":
        """Construye seguro sin usar __dict__."""
        user = getattr(d, "user", None)
        return DoctorOut(
            id=d.id,
            user_id=d.user_id,
            name=user.full_name if user else None,
            email=user.email if user else None,
            license=d.license,
            license_region=d.license_region,
            phone=d.phone,
            bio=d.bio,
            created_at=d.created_at,
            clinics=[c.id for c in getattr(d, "clinics", [])],
        )
