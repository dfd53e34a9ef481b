from datetime import date
from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator, model_validator
from app.core.config import settings
from app.models.user import RoleEnum
from app.models.patient import SexEnum
from app.schemas.common import ADDRESS_FIELDS, digits_only, strip_or_none


class RegisterIn(BaseModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    password: str
    invite: str | None = None

    # médico
    license: str | None = Field(None, max_length=20)
    license_region: str | None = Field(None, max_length=2)

    # paciente
    tax_id: str | None = Field(None, max_length=14)
    birth_date: date | None = None
    sex: SexEnum | None = None
    phone: str | None = Field(None, max_length=20)

    # dirección
    zip_code: str | None = Field(None, max_length=9)
    street: str | None = Field(None, max_length=255)
    number: str | None = Field(None, max_length=20)
    complement: str | None = Field(None, max_length=100)
    neighborhood: str | None = Field(None, max_length=100)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=2)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)

    # recorta antes de min_length; la contraseña se toma tal cual
    @field_validator("*", mode="before")
    @classmethod
    def blank_as_none(cls, v, info: ValidationInfo):
        if info.field_name == "password":
            return v
        return strip_or_none(v)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("license_region", "state")
    @classmethod
    def upper(cls, v: str | None) -> str | None:
        return v.upper() if v else v

    @field_validator("tax_id", "phone", "zip_code")
    @classmethod
    def only_digits(cls, v: str | None) -> str | None:
        return digits_only(v)

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        if len(v) < settings.PASSWORD_MIN_LENGTH:
            raise ValueError(f"La contraseña debe tener al menos {settings.PASSWORD_MIN_LENGTH} caracteres")
        return v

    @model_validator(mode="after")
    def both_coordinates(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude y longitude van juntas")
        return self

    def address_data(self) -> dict | None:
        """Campos de dirección presentes, o None si no se cargó ninguno."""
        data = {k: getattr(self, k) for k in ADDRESS_FIELDS}
        if not any(data.values()):
            return None
        data["latitude"] = self.latitude
        data["longitude"] = self.longitude
        return data


class RegistrationOut(BaseModel):
    user_id: str
    role: RoleEnum
    clinic_id: str | None = None
    profile_id: str | None = None


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class SessionClaims(BaseModel):
    sub: str
    name: str
    email: EmailStr
    role: RoleEnum
    clinic_id: str | None = None


class LoginOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    claims: SessionClaims


class UserOut(BaseModel):
    id: str
    full_name: str
    email: EmailStr
    role: RoleEnum
    is_active: bool

    class Config:
        from_attributes = True
