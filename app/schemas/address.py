import re
from typing import Optional
from pydantic import BaseModel, Field, field_validator
from app.models.address import EntityType

class AddressIn(BaseModel):
    label: Optional[str] = Field(None, max_length=50)
    zip_code: Optional[str] = Field(None, max_length=9)
    street: Optional[str] = Field(None, max_length=255)
    number: Optional[str] = Field(None, max_length=20)
    complement: Optional[str] = Field(None, max_length=100)
    neighborhood: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=2)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    is_primary: bool = True

    @field_validator("zip_code")
    @classmethod
    def zip_digits(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return re.sub(r"\D", "", v) or None

    @field_validator("state")
    @classmethod
    def upper_state(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else None

class AddressOut(AddressIn):
    id: str
    entity_type: EntityType
    entity_id: str

    class Config:
        from_attributes = True

class GeocodeIn(BaseModel):
    address: str = Field(..., min_length=1)

    @field_validator("address")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Dirección obligatoria")
        return v.strip()

class GeoCandidate(BaseModel):
    title: str
    lat: float
    lng: float
