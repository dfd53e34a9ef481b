import re
import unicodedata
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from app.core.errors import FieldErrors
from app.schemas.common import reject_null

SLUG_MIN_LENGTH = 3


def slugify(name: str) -> str:
    # "Clínica São João" -> "clinica-sao-joao"
    ascii_name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9\s-]", "", ascii_name.lower())
    slug = re.sub(r"[\s-]+", "-", slug)
    return slug.strip("-")

class ClinicCreate(BaseModel):
    name: str = Field(..., min_length=3)
    slug: Optional[str] = Field(None, min_length=SLUG_MIN_LENGTH, max_length=100)
    tax_id: Optional[str] = Field(None, max_length=18)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None

    @field_validator("slug", mode="before")
    @classmethod
    def blank_slug(cls, v):
        return v or None

    def resolved_slug(self) -> str:
        if self.slug:
            return self.slug
        slug = slugify(self.name)[:100].rstrip("-")
        if len(slug) < SLUG_MIN_LENGTH:
            raise FieldErrors({"slug": [
                f"No se pudo generar un slug de al menos {SLUG_MIN_LENGTH} caracteres a partir del nombre; indicá uno."
            ]})
        return slug

class ClinicUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3)
    tax_id: Optional[str] = Field(None, max_length=18)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    is_active: Optional[bool] = None

    # omitirlos está bien; mandarlos en null no
    @field_validator("name", "is_active", mode="before")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)

class ClinicOut(BaseModel):
    id: str
    name: str
    slug: Optional[str] = None
    tax_id: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ClinicStats(BaseModel):
    clinic_id: str
    doctors: int
    patients: int
    staff: int
    active_invites: int
