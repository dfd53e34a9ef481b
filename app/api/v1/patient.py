from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.db import get_db
from app.core.errors import EntityNotFound
from app.api.deps import get_current_user, require_roles
from app.models.user import RoleEnum, User
from app.models.patient import Patient
from app.schemas.patient import PatientCreate, PatientOut
from app.services import clinic_records
from app.services.memberships import ensure_clinic_access

router = APIRouter(prefix="/patients", tags=["patients"])

@router.get("/me", response_model=PatientOut)
async def get_my_patient(
    current: User = Depends(require_roles(RoleEnum.patient)),
    db: AsyncSession = Depends(get_db),
):
    q = select(Patient).options(selectinload(Patient.clinics)).where(Patient.user_id == current.id)
    pt = (await db.execute(q)).scalar_one_or_none()
    if not pt:
        raise EntityNotFound("Paciente no encontrado.")
    return PatientOut.from_model(pt)

# ---------- gestión desde la clínica ----------
@router.get("/clinic/{clinic_id}", response_model=list[PatientOut])
async def list_patients_by_clinic(
    clinic_id: str,
    active_only: bool = Query(True),
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_clinic_access(db, current, clinic_id)
    patients = await clinic_records.list_clinic_patients(db, clinic_id, active_only)
    return [PatientOut.from_model(p) for p in patients]

@router.post("/clinic/{clinic_id}", response_model=PatientOut, status_code=201)
async def create_patient_in_clinic(
    clinic_id: str,
    payload: PatientCreate,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_clinic_access(db, current, clinic_id)
    return PatientOut.from_model(await clinic_records.create_clinic_patient(db, clinic_id, payload))

@router.post("/clinic/{clinic_id}/{patient_id}/deactivate", status_code=204)
async def deactivate_patient_in_clinic(
    clinic_id: str,
    patient_id: str,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_clinic_access(db, current, clinic_id, admin=True)
    await clinic_records.deactivate_clinic_patient(db, clinic_id, patient_id)
