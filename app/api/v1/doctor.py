from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.db import get_db
from app.core.errors import EntityNotFound
from app.api.deps import get_current_user, require_roles
from app.models.user import RoleEnum, User
from app.models.doctor import Doctor
from app.schemas.doctor import ClinicDoctorUpdate, DoctorCreate, DoctorUpdate, DoctorOut
from app.schemas.invite import InviteOut
from app.services import clinic_records
from app.services.invites import get_or_create_doctor_invite
from app.services.memberships import ensure_clinic_access

router = APIRouter(prefix="/doctors", tags=["doctors"])

async def _get_my_doctor(current: User, db: AsyncSession) -> Doctor:
    q = (
        select(Doctor)
        .options(selectinload(Doctor.clinics), selectinload(Doctor.user))
        .where(Doctor.user_id == current.id)
    )
    d = (await db.execute(q)).scalar_one_or_none()
    if not d:
        raise EntityNotFound("No hay perfil de médico vinculado.")
    return d

@router.get("/me", response_model=DoctorOut)
async def my_doctor_profile(
    current: User = Depends(require_roles(RoleEnum.doctor)),
    db: AsyncSession = Depends(get_db),
):
    return DoctorOut.from_model(await _get_my_doctor(current, db))

@router.patch("/me", response_model=DoctorOut)
async def update_my_doctor_profile(
    patch: DoctorUpdate,
    current: User = Depends(require_roles(RoleEnum.doctor)),
    db: AsyncSession = Depends(get_db),
):
    d = await _get_my_doctor(current, db)
    for k, v in patch.model_dump(exclude_unset=True).items():
        setattr(d, k, v)
    await db.commit()
    return DoctorOut.from_model(await _get_my_doctor(current, db))

# --- código de invitación propio (QR para pacientes) ---
@router.get("/me/invite", response_model=InviteOut)
async def my_patient_invite(
    clinic_id: str = Query(...),
    current: User = Depends(require_roles(RoleEnum.doctor)),
    db: AsyncSession = Depends(get_db),
):
    return await get_or_create_doctor_invite(db, current, clinic_id)

# ---------- gestión desde la clínica ----------
@router.get("/clinic/{clinic_id}", response_model=list[DoctorOut])
async def list_doctors_by_clinic(
    clinic_id: str,
    active_only: bool = Query(True),
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_clinic_access(db, current, clinic_id)
    doctors = await clinic_records.list_clinic_doctors(db, clinic_id, active_only)
    return [DoctorOut.from_model(d) for d in doctors]

@router.post("/clinic/{clinic_id}", response_model=DoctorOut, status_code=201)
async def create_doctor_in_clinic(
    clinic_id: str,
    payload: DoctorCreate,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_clinic_access(db, current, clinic_id, admin=True)
    return DoctorOut.from_model(await clinic_records.create_clinic_doctor(db, clinic_id, payload))

@router.patch("/clinic/{clinic_id}/{doctor_id}", response_model=DoctorOut)
async def update_doctor_in_clinic(
    clinic_id: str,
    doctor_id: str,
    patch: ClinicDoctorUpdate,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_clinic_access(db, current, clinic_id, admin=True)
    d = await clinic_records.update_clinic_doctor(db, clinic_id, doctor_id, patch)
    return DoctorOut.from_model(d)

@router.post("/clinic/{clinic_id}/{doctor_id}/deactivate", status_code=204)
async def deactivate_doctor_in_clinic(
    clinic_id: str,
    doctor_id: str,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_clinic_access(db, current, clinic_id, admin=True)
    await clinic_records.deactivate_clinic_doctor(db, clinic_id, doctor_id)
