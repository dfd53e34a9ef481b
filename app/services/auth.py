import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.core.security import verify_password
from app.models.links import ClinicUser, ClinicPatient
from app.models.user import User, RoleEnum
from app.schemas.auth import SessionClaims
from app.services.memberships import get_patient_for_user

logger = logging.getLogger(__name__)


async def resolve_clinic_scope(db: AsyncSession, user: User) -> str | None:
    """
    Clínica de la sesión. Paciente: primer vínculo activo en clinic_patients;
    resto: primera membresía activa en clinic_users. Orden explícito para que
    sea determinista si hay más de una.
    """
    if user.role == RoleEnum.patient:
        patient = await get_patient_for_user(db, user.id)
        if not patient:
            return None
        q = (
            select(ClinicPatient.clinic_id)
            .where(ClinicPatient.patient_id == patient.id, ClinicPatient.is_active.is_(True))
            .order_by(ClinicPatient.enrolled_at, ClinicPatient.id)
        )
    else:
        q = (
            select(ClinicUser.clinic_id)
            .where(ClinicUser.user_id == user.id, ClinicUser.is_active.is_(True))
            .order_by(ClinicUser.created_at, ClinicUser.id)
        )
    return (await db.execute(q.limit(1))).scalar_one_or_none()


async def build_claims(db: AsyncSession, user: User) -> SessionClaims:
    return SessionClaims(
        sub=user.id,
        name=user.full_name,
        email=user.email,
        role=user.role,
        clinic_id=await resolve_clinic_scope(db, user),
    )


async def authenticate(db: AsyncSession, email: str, password: str) -> SessionClaims | None:
    """None ante cualquier falla, sin distinguir email inexistente de password incorrecto."""
    res = await db.execute(select(User).where(User.email == email.strip().lower()))
    user = res.scalar_one_or_none()
    if not user or not user.is_active or not user.hashed_password:
        logger.info("Login rejected")
        return None

    if not await run_in_threadpool(verify_password, password, user.hashed_password):
        logger.info("Login rejected")
        return None

    return await build_claims(db, user)
