from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.db import get_db
from app.core.errors import ClinicNotFound, EntityNotFound, Unauthorized
from app.models.address import AddressOwner, EntityType
from app.models.clinic import Clinic
from app.models.doctor import Doctor
from app.models.links import ClinicDoctor, ClinicPatient
from app.models.patient import Patient
from app.models.user import User
from app.schemas.address import AddressIn, AddressOut, GeocodeIn, GeoCandidate
from app.services import geocoding
from app.services.addresses import get_address, upsert_address
from app.services.memberships import is_clinic_admin, is_clinic_staff

router = APIRouter(tags=["addresses"])


async def _profile_clinic_ids(db: AsyncSession, owner: AddressOwner) -> list[str]:
    if owner.entity_type == EntityType.doctor:
        q = select(ClinicDoctor.clinic_id).where(ClinicDoctor.doctor_id == owner.entity_id)
    else:
        q = select(ClinicPatient.clinic_id).where(ClinicPatient.patient_id == owner.entity_id)
    return list((await db.execute(q)).scalars().all())


async def _authorize_owner(db: AsyncSession, current: User, owner: AddressOwner) -> None:
    """Clínica: admin de esa clínica. Perfil: su propio usuario o staff de alguna de sus clínicas."""
    if owner.entity_type == EntityType.clinic:
        if await db.get(Clinic, owner.entity_id) is None:
            raise ClinicNotFound()
        if not await is_clinic_admin(db, current, owner.entity_id):
            raise Unauthorized()
        return

    model = Doctor if owner.entity_type == EntityType.doctor else Patient
    profile = await db.get(model, owner.entity_id)
    if profile is None:
        raise EntityNotFound()
    if current.is_super_admin or profile.user_id == current.id:
        return
    for clinic_id in await _profile_clinic_ids(db, owner):
        if await is_clinic_staff(db, current, clinic_id):
            return
    raise Unauthorized()


@router.get("/addresses/{entity_type}/{entity_id}", response_model=AddressOut)
async def read_address(
    entity_type: EntityType,
    entity_id: str,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    owner = AddressOwner(entity_type, entity_id)
    await _authorize_owner(db, current, owner)
    address = await get_address(db, owner)
    if not address:
        raise EntityNotFound("Dirección no encontrada.")
    return address


@router.put("/addresses/{entity_type}/{entity_id}", response_model=AddressOut)
async def save_address(
    entity_type: EntityType,
    entity_id: str,
    payload: AddressIn,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    owner = AddressOwner(entity_type, entity_id)
    await _authorize_owner(db, current, owner)
    address = await upsert_address(db, owner, payload.model_dump())
    await db.commit()
    await db.refresh(address)
    return address


@router.post("/geocode", response_model=list[GeoCandidate])
async def geocode_address(payload: GeocodeIn, current: User = Depends(get_current_user)):
    return await geocoding.geocode(payload.address)
