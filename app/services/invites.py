"""
Ciclo de vida de las invitaciones: emisión, resolución, consumo y baja.

Una invitación nunca se borra; se desactiva (`is_active=False`).
"""
import base64
import logging
import secrets
from datetime import datetime, timezone

from sqlalchemy import select, update, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.errors import (
    ClinicNotFound, FieldErrors, InvalidInvite, InviteFailed, InviteNotFound,
    Unauthorized, UnsupportedScope, violated_field,
)
from app.models.clinic import Clinic
from app.models.invite import Invite, InviteRole
from app.models.links import ClinicDoctor
from app.models.user import User, RoleEnum
from app.schemas.invite import InviteResolution
from app.services.memberships import doctor_in_clinic, get_doctor_for_user, is_clinic_admin

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    # las columnas DateTime son naive, en UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_code(nbytes: int | None = None) -> str:
    raw = secrets.token_bytes(nbytes or settings.INVITE_CODE_BYTES)
    return base64.b32encode(raw).decode("ascii").rstrip("=")


async def _code_exists(db: AsyncSession, code: str) -> bool:
    res = await db.execute(select(Invite.id).where(Invite.code == code))
    return res.scalar_one_or_none() is not None


async def _unused_code(db: AsyncSession) -> str:
    for _ in range(settings.INVITE_CODE_MAX_ATTEMPTS):
        code = generate_code()
        if not await _code_exists(db, code):
            return code
        logger.warning("Invite code collision, regenerating")
    raise InviteFailed()


# ---------- autorización ----------
async def _resolve_issuer_scope(
    db: AsyncSession,
    issuer: User,
    role: InviteRole,
    clinic_id: str,
    doctor_id: str | None,
) -> str | None:
    """Valida que `issuer` pueda invitar en `clinic_id`. Devuelve el doctor_id final."""
    if issuer.role == RoleEnum.doctor:
        if role != InviteRole.patient:
            raise Unauthorized("Un médico solo puede invitar pacientes.")
        doc = await get_doctor_for_user(db, issuer.id)
        if not doc or not await doctor_in_clinic(db, doc.id, clinic_id):
            raise Unauthorized()
        if doctor_id and doctor_id != doc.id:
            raise Unauthorized()
        return doc.id

    if issuer.role not in (RoleEnum.super_admin, RoleEnum.admin):
        raise Unauthorized()
    if not await is_clinic_admin(db, issuer, clinic_id):
        raise Unauthorized()

    if doctor_id:
        if role != InviteRole.patient:
            raise UnsupportedScope("Solo las invitaciones de paciente pueden asociarse a un médico.")
        if not await doctor_in_clinic(db, doctor_id, clinic_id):
            raise FieldErrors({"doctor_id": ["El médico no pertenece a la clínica."]})
    return doctor_id


# ---------- emisión ----------
async def issue_invite(
    db: AsyncSession,
    issuer: User,
    role: InviteRole,
    clinic_id: str | None = None,
    doctor_id: str | None = None,
    expires_at: datetime | None = None,
) -> Invite:
    if role == InviteRole.admin and not issuer.is_super_admin:
        raise Unauthorized("Solo un super administrador puede generar invitaciones de administrador.")
    if clinic_id is None and not issuer.is_super_admin:
        raise Unauthorized("Solo un super administrador puede generar invitaciones globales.")
    if clinic_id is None and role != InviteRole.doctor:
        raise UnsupportedScope()

    if clinic_id is not None:
        if await db.get(Clinic, clinic_id) is None:
            raise ClinicNotFound()
        doctor_id = await _resolve_issuer_scope(db, issuer, role, clinic_id, doctor_id)
    elif doctor_id:
        raise UnsupportedScope("Solo las invitaciones de paciente pueden asociarse a un médico.")

    if expires_at is not None and expires_at.tzinfo is not None:
        expires_at = expires_at.astimezone(timezone.utc).replace(tzinfo=None)

    # el rollback expira las instancias; guardamos el id antes
    issuer_id = issuer.id
    for _ in range(settings.INVITE_CODE_MAX_ATTEMPTS):
        invite = Invite(
            code=await _unused_code(db),
            role=role,
            clinic_id=clinic_id,
            doctor_id=doctor_id,
            created_by=issuer_id,
            expires_at=expires_at,
            used_count=0,
            is_active=True,
        )
        db.add(invite)
        try:
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            if violated_field(exc, ("code",)) is None:
                raise
            logger.warning("Invite code taken at commit time, retrying")
            continue
        await db.refresh(invite)
        logger.info(
            "Invite %s... issued by %s (role=%s clinic=%s doctor=%s)",
            invite.code[:4], issuer_id, role.value, clinic_id, doctor_id,
        )
        return invite

    raise InviteFailed()


# ---------- lectura ----------
async def get_invite_by_code(db: AsyncSession, code: str) -> Invite | None:
    q = select(Invite).options(selectinload(Invite.clinic)).where(Invite.code == code)
    return (await db.execute(q)).scalar_one_or_none()


async def resolve_invite(db: AsyncSession, code: str | None) -> InviteResolution | None:
    code = (code or "").strip()
    if not code:
        return None
    invite = await get_invite_by_code(db, code)
    if not invite:
        return None
    return InviteResolution(
        code=invite.code,
        role=invite.role,
        clinic_id=invite.clinic_id,
        clinic_name=invite.clinic.name if invite.clinic else None,
        doctor_id=invite.doctor_id,
        is_valid=invite.is_usable(utcnow()),
    )


async def list_invites(db: AsyncSession, clinic_id: str, active_only: bool = False) -> list[Invite]:
    q = select(Invite).where(Invite.clinic_id == clinic_id)
    if active_only:
        q = q.where(Invite.is_active.is_(True))
    res = await db.execute(q.order_by(Invite.created_at.desc()))
    return list(res.scalars().all())


# ---------- consumo ----------
async def consume_invite(db: AsyncSession, invite_id: str) -> None:
    """
    Suma un uso con un UPDATE condicional. Si no afectó filas la invitación
    se desactivó o venció entre la lectura y ahora.

    No hace commit: corre dentro de la transacción del registro.
    """
    stmt = (
        update(Invite)
        .where(
            Invite.id == invite_id,
            Invite.is_active.is_(True),
            or_(Invite.expires_at.is_(None), Invite.expires_at > utcnow()),
        )
        .values(used_count=Invite.used_count + 1)
        .execution_options(synchronize_session=False)
    )
    res = await db.execute(stmt)
    if res.rowcount == 0:
        logger.info("Invite %s could not be consumed", invite_id)
        raise InvalidInvite()


# ---------- baja ----------
async def deactivate_invite(db: AsyncSession, issuer: User, invite_id: str) -> Invite:
    invite = await db.get(Invite, invite_id)
    if not invite:
        raise InviteNotFound()

    allowed = issuer.is_super_admin
    if not allowed and invite.clinic_id and issuer.role == RoleEnum.admin:
        allowed = await is_clinic_admin(db, issuer, invite.clinic_id)
    if not allowed and invite.doctor_id and issuer.role == RoleEnum.doctor:
        doc = await get_doctor_for_user(db, issuer.id)
        allowed = doc is not None and doc.id == invite.doctor_id
    if not allowed:
        raise Unauthorized()

    if invite.is_active:
        invite.is_active = False
        await db.commit()
        await db.refresh(invite)
        logger.info("Invite %s deactivated by %s", invite.id, issuer.id)
    return invite


# ---------- backfill ----------
async def backfill_doctor_patient_invites(db: AsyncSession) -> list[Invite]:
    """Crea una invitación de paciente por cada médico/clínica que no la tenga."""
    pairs = (await db.execute(
        select(ClinicDoctor.clinic_id, ClinicDoctor.doctor_id).where(ClinicDoctor.is_active.is_(True))
    )).all()
    existing = {
        (row.clinic_id, row.doctor_id)
        for row in (await db.execute(
            select(Invite.clinic_id, Invite.doctor_id).where(
                Invite.role == InviteRole.patient,
                Invite.is_active.is_(True),
                Invite.doctor_id.is_not(None),
            )
        )).all()
    }

    created: list[Invite] = []
    for clinic_id, doctor_id in pairs:
        if (clinic_id, doctor_id) in existing:
            continue
        invite = Invite(
            code=await _unused_code(db),
            role=InviteRole.patient,
            clinic_id=clinic_id,
            doctor_id=doctor_id,
            used_count=0,
            is_active=True,
        )
        db.add(invite)
        created.append(invite)

    await db.commit()
    logger.info("Backfill created %d doctor invite(s)", len(created))
    return created


async def get_or_create_doctor_invite(db: AsyncSession, user: User, clinic_id: str) -> Invite:
    """Invitación de paciente propia del médico en esa clínica (la del QR)."""
    doc = await get_doctor_for_user(db, user.id)
    if not doc or not await doctor_in_clinic(db, doc.id, clinic_id):
        raise Unauthorized()

    q = (
        select(Invite)
        .where(
            Invite.role == InviteRole.patient,
            Invite.clinic_id == clinic_id,
            Invite.doctor_id == doc.id,
            Invite.is_active.is_(True),
        )
        .order_by(Invite.created_at.desc())
        .limit(1)
    )
    existing = (await db.execute(q)).scalar_one_or_none()
    if existing and existing.is_usable(utcnow()):
        return existing
    return await issue_invite(db, user, InviteRole.patient, clinic_id=clinic_id)
