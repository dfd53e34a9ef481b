from datetime import date, datetime
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional, List
from app.models.patient import SexEnum
from app.schemas.common import ADDRESS_FIELDS, digits_only, strip_or_none

class PatientCreate(BaseModel):
    """Ficha cargada por recepción; el paciente no tiene cuenta."""
    name: str = Field(..., min_length=2)
    tax_id: str = Field(..., min_length=11, max_length=14)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    birth_date: Optional[date] = None
    sex: Optional[SexEnum] = None

    zip_code: Optional[str] = Field(None, max_length=9)
    street: Optional[str] = Field(None, max_length=255)
    number: Optional[str] = Field(None, max_length=20)
    complement: Optional[str] = Field(None, max_length=100)
    neighborhood: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=2)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @field_validator("*", mode="before")
    @classmethod
    def blank_as_none(cls, v):
        return strip_or_none(v)

    @field_validator("tax_id", "phone", "zip_code", mode="before")
    @classmethod
    def only_digits(cls, v):
        return digits_only(v) if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v

    @field_validator("state")
    @classmethod
    def upper_state(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v

    @model_validator(mode="after")
    def both_coordinates(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude y longitude van juntas")
        return self

    def profile_data(self) -> dict:
        return self.model_dump(include={"name", "tax_id", "email", "phone", "birth_date", "sex"})

    def address_data(self) -> dict | None:
        # sin CEP, calle ni ciudad no se guarda dirección
        if not (self.zip_code or self.street or self.city):
            return None
        data = {k: getattr(self, k) for k in ADDRESS_FIELDS}
        data["latitude"] = self.latitude
        data["longitude"] = self.longitude
        return data

class PatientOut(BaseModel):
    id: str
    user_id: Optional[str] = None
    name: str
    email: Optional[str] = None
    tax_id: Optional[str] = None
    phone: Optional[str] = None
    sex: Optional[SexEnum] = None
    birth_date: Optional[date] = None
    created_at: Optional[datetime] = None
    clinics: List[str] = []

    class Config:
        from_attributes = True

    @staticmethod
    def from_model(p) -> "PatientOut":
        """Construye seguro sin usar __dict__."""
        return PatientOut(
            id=p.id,
            user_id=p.user_id,
            name=p.name,
            email=p.email,
            tax_id=p.tax_id,
            phone=p.phone,
            sex=p.sex,
            birth_date=p.birth_date,
            created_at=p.created_at,
            clinics=[c.id for c in getattr(p, "clinics", [])],
        )
