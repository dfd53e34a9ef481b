from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.errors import InviteNotFound, Unauthorized
from app.api.deps import get_current_user
from app.models.user import User
from app.schemas.invite import InviteCreate, InviteOut, InviteResolution
from app.services import invites as invite_service
from app.services.memberships import is_clinic_staff

router = APIRouter(prefix="/invites", tags=["invites"])

# ---------- create ----------
@router.post("/", response_model=InviteOut, status_code=201)
async def create_invite(
    payload: InviteCreate,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await invite_service.issue_invite(
        db,
        issuer=current,
        role=payload.role,
        clinic_id=payload.clinic_id,
        doctor_id=payload.doctor_id,
        expires_at=payload.expires_at,
    )

# ---------- list por clínica ----------
@router.get("/clinic/{clinic_id}", response_model=list[InviteOut])
async def list_clinic_invites(
    clinic_id: str,
    active_only: bool = Query(False),
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not await is_clinic_staff(db, current, clinic_id):
        raise Unauthorized()
    return await invite_service.list_invites(db, clinic_id, active_only=active_only)

# ---------- resolve (público, lo usa la pantalla de registro) ----------
@router.get("/{code}", response_model=InviteResolution)
async def resolve_invite(code: str, db: AsyncSession = Depends(get_db)):
    resolution = await invite_service.resolve_invite(db, code)
    if resolution is None:
        raise InviteNotFound("Código de invitación inválido o expirado.")
    return resolution

# ---------- baja ----------
@router.post("/{id}/deactivate", response_model=InviteOut)
async def deactivate_invite(
    id: str,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await invite_service.deactivate_invite(db, current, id)
