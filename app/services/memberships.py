from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ClinicNotFound, Unauthorized
from app.models.clinic import Clinic
from app.models.doctor import Doctor
from app.models.patient import Patient
from app.models.links import ClinicUser, ClinicDoctor, ClinicPatient, StaffRole
from app.models.user import User


async def get_doctor_for_user(db: AsyncSession, user_id: str) -> Doctor | None:
    res = await db.execute(select(Doctor).where(Doctor.user_id == user_id))
    return res.scalar_one_or_none()

async def get_patient_for_user(db: AsyncSession, user_id: str) -> Patient | None:
    res = await db.execute(select(Patient).where(Patient.user_id == user_id))
    return res.scalar_one_or_none()

async def has_membership(db: AsyncSession, user_id: str, clinic_id: str, *roles: StaffRole) -> bool:
    q = select(ClinicUser.id).where(
        ClinicUser.user_id == user_id,
        ClinicUser.clinic_id == clinic_id,
        ClinicUser.is_active.is_(True),
    )
    if roles:
        q = q.where(ClinicUser.role.in_(roles))
    return (await db.execute(q.limit(1))).scalar_one_or_none() is not None

async def doctor_in_clinic(db: AsyncSession, doctor_id: str, clinic_id: str) -> bool:
    q = select(ClinicDoctor.id).where(
        ClinicDoctor.doctor_id == doctor_id,
        ClinicDoctor.clinic_id == clinic_id,
        ClinicDoctor.is_active.is_(True),
    )
    return (await db.execute(q.limit(1))).scalar_one_or_none() is not None

async def patient_in_clinic(db: AsyncSession, patient_id: str, clinic_id: str) -> bool:
    q = select(ClinicPatient.id).where(
        ClinicPatient.patient_id == patient_id,
        ClinicPatient.clinic_id == clinic_id,
        ClinicPatient.is_active.is_(True),
    )
    return (await db.execute(q.limit(1))).scalar_one_or_none() is not None

async def is_clinic_admin(db: AsyncSession, user: User, clinic_id: str) -> bool:
    if user.is_super_admin:
        return True
    return await has_membership(db, user.id, clinic_id, StaffRole.admin)

async def is_clinic_staff(db: AsyncSession, user: User, clinic_id: str) -> bool:
    """Cualquier membresía activa que no sea de paciente."""
    if user.is_super_admin:
        return True
    staff = [r for r in StaffRole if r != StaffRole.patient]
    return await has_membership(db, user.id, clinic_id, *staff)

async def ensure_clinic_access(db: AsyncSession, user: User, clinic_id: str, admin: bool = False) -> None:
    """404 si la clínica no existe; 403 si no es staff (o admin, con `admin=True`)."""
    if await db.get(Clinic, clinic_id) is None:
        raise ClinicNotFound()
    check = is_clinic_admin if admin else is_clinic_staff
    if not await check(db, user, clinic_id):
        raise Unauthorized()
