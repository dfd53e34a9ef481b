import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, require_super_admin
from app.core.db import get_db
from app.core.errors import ClinicNotFound, Unauthorized, UniqueConstraintViolation
from app.models.clinic import Clinic
from app.models.invite import Invite
from app.models.links import ClinicUser, ClinicDoctor, ClinicPatient, StaffRole
from app.models.user import User
from app.schemas.clinic import ClinicCreate, ClinicOut, ClinicUpdate, ClinicStats
from app.services.memberships import is_clinic_admin, is_clinic_staff

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clinics", tags=["clinics"])


# ---------- helpers ----------
async def _get_clinic_or_404(id: str, db: AsyncSession) -> Clinic:
    c = await db.get(Clinic, id)
    if not c:
        raise ClinicNotFound()
    return c

async def _count(db: AsyncSession, q) -> int:
    return (await db.execute(q)).scalar_one()

# ---------- create ----------
@router.post("/", response_model=ClinicOut, status_code=201)
async def create_clinic(
    payload: ClinicCreate,
    current: User = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
):
    data = payload.model_dump(exclude={"slug"})
    clinic = Clinic(**data, slug=payload.resolved_slug())
    db.add(clinic)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise UniqueConstraintViolation("slug") from exc
    await db.refresh(clinic)
    logger.info("Clinic %s created by %s", clinic.id, current.id)
    return clinic

# ---------- list ----------
@router.get("/", response_model=list[ClinicOut])
async def list_clinics(
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    q = select(Clinic)
    if not current.is_super_admin:
        # solo las clínicas donde es staff
        q = (
            q.join(ClinicUser, ClinicUser.clinic_id == Clinic.id)
            .where(ClinicUser.user_id == current.id, ClinicUser.is_active.is_(True))
            .distinct()
        )
    rows = (await db.execute(q.order_by(Clinic.name).offset(offset).limit(limit))).scalars().all()
    return rows

@router.get("/{id}", response_model=ClinicOut)
async def get_clinic(
    id: str,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    clinic = await _get_clinic_or_404(id, db)
    if not await is_clinic_staff(db, current, id):
        raise Unauthorized()
    return clinic

@router.get("/{id}/stats", response_model=ClinicStats)
async def clinic_stats(
    id: str,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await _get_clinic_or_404(id, db)
    if not await is_clinic_staff(db, current, id):
        raise Unauthorized()

    doctors = await _count(db, select(func.count()).select_from(ClinicDoctor).where(
        ClinicDoctor.clinic_id == id, ClinicDoctor.is_active.is_(True)))
    patients = await _count(db, select(func.count()).select_from(ClinicPatient).where(
        ClinicPatient.clinic_id == id, ClinicPatient.is_active.is_(True)))
    staff = await _count(db, select(func.count()).select_from(ClinicUser).where(
        ClinicUser.clinic_id == id, ClinicUser.is_active.is_(True), ClinicUser.role != StaffRole.patient))
    invites = await _count(db, select(func.count()).select_from(Invite).where(
        Invite.clinic_id == id, Invite.is_active.is_(True)))
    return ClinicStats(clinic_id=id, doctors=doctors, patients=patients, staff=staff, active_invites=invites)

# ---------- update ----------
@router.patch("/{id}", response_model=ClinicOut)
async def update_clinic(
    id: str,
    payload: ClinicUpdate,                 # actualización parcial
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    clinic = await _get_clinic_or_404(id, db)
    if not await is_clinic_admin(db, current, id):
        raise Unauthorized()

    updates = payload.model_dump(exclude_unset=True)
    for k, v in updates.items():
        setattr(clinic, k, v)

    await db.commit()
    await db.refresh(clinic)
    return clinic
