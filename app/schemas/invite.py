from datetime import datetime
from pydantic import BaseModel, Field
from app.models.invite import InviteRole

class InviteCreate(BaseModel):
    role: InviteRole
    clinic_id: str | None = Field(None, max_length=36)
    doctor_id: str | None = Field(None, max_length=36)
    expires_at: datetime | None = None

class InviteOut(BaseModel):
    id: str
    code: str
    role: InviteRole
    clinic_id: str | None = None
    doctor_id: str | None = None
    is_active: bool
    used_count: int
    expires_at: datetime | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True

class InviteResolution(BaseModel):
    """Lo que ve la pantalla de registro antes de enviar el formulario."""
    code: str
    role: InviteRole
    clinic_id: str | None = None
    clinic_name: str | None = None
    doctor_id: str | None = None
    is_valid: bool
