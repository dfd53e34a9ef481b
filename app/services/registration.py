"""
Registro de cuentas con invitación.

Todo el alta (usuario, perfil, vínculos, dirección y consumo de la invitación)
va en una única transacción: si cualquier paso falla se hace rollback y no
queda un usuario sin perfil.
"""
import logging
from typing import Awaitable, Callable

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.core.errors import (
    DomainError, EmailTaken, FieldErrors, InvalidInvite,
    RegistrationFailed, UniqueConstraintViolation, violated_field,
)
from app.core.security import hash_password
from app.models.address import AddressOwner, EntityType
from app.models.doctor import Doctor
from app.models.invite import Invite, InviteRole
from app.models.links import ClinicUser, ClinicDoctor, ClinicPatient, PatientDoctor, StaffRole
from app.models.patient import Patient
from app.models.user import User, RoleEnum
from app.schemas.auth import RegisterIn, RegistrationOut
from app.services.addresses import upsert_address
from app.services.invites import consume_invite, utcnow

logger = logging.getLogger(__name__)

ProfileBuilder = Callable[[AsyncSession, User, Invite, RegisterIn], Awaitable[AddressOwner | None]]


def parse_register_form(data: dict) -> RegisterIn:
    try:
        return RegisterIn.model_validate(data)
    except ValidationError as exc:
        fields: dict[str, list[str]] = {}
        for err in exc.errors():
            key = ".".join(str(p) for p in err["loc"]) or "__root__"
            fields.setdefault(key, []).append(err["msg"])
        raise FieldErrors(fields) from exc


# ---------- perfiles por rol ----------
async def _build_doctor(db: AsyncSession, user: User, invite: Invite, payload: RegisterIn) -> AddressOwner:
    if invite.clinic_id:
        db.add(ClinicUser(user_id=user.id, clinic_id=invite.clinic_id, role=StaffRole.doctor))

    doctor = Doctor(
        user_id=user.id,
        license=payload.license,
        license_region=payload.license_region,
        phone=payload.phone,
    )
    db.add(doctor)
    await db.flush()

    # sin clínica = médico independiente
    if invite.clinic_id:
        db.add(ClinicDoctor(doctor_id=doctor.id, clinic_id=invite.clinic_id))
    return AddressOwner(EntityType.doctor, doctor.id)


async def _build_patient(db: AsyncSession, user: User, invite: Invite, payload: RegisterIn) -> AddressOwner:
    patient = Patient(
        user_id=user.id,
        name=payload.name,
        email=payload.email,
        tax_id=payload.tax_id,
        birth_date=payload.birth_date,
        sex=payload.sex,
        phone=payload.phone,
    )
    db.add(patient)
    await db.flush()

    if invite.clinic_id:
        db.add(ClinicPatient(patient_id=patient.id, clinic_id=invite.clinic_id))
    if invite.doctor_id:
        db.add(PatientDoctor(patient_id=patient.id, doctor_id=invite.doctor_id))
    return AddressOwner(EntityType.patient, patient.id)


async def _build_admin(db: AsyncSession, user: User, invite: Invite, payload: RegisterIn) -> None:
    db.add(ClinicUser(user_id=user.id, clinic_id=invite.clinic_id, role=StaffRole.admin))
    return None


PROFILE_BUILDERS: dict[InviteRole, ProfileBuilder] = {
    InviteRole.doctor: _build_doctor,
    InviteRole.patient: _build_patient,
    InviteRole.admin: _build_admin,
}


# ---------- orquestación ----------
async def _find_usable_invite(db: AsyncSession, code: str) -> Invite:
    invite = (await db.execute(select(Invite).where(Invite.code == code))).scalar_one_or_none()
    if not invite or not invite.is_usable(utcnow()):
        raise InvalidInvite()
    return invite


async def _register(db: AsyncSession, payload: RegisterIn) -> RegistrationOut:
    exists = await db.execute(select(User.id).where(User.email == payload.email))
    if exists.scalar_one_or_none():
        raise EmailTaken()

    invite: Invite | None = None
    role = RoleEnum.user
    if payload.invite:
        invite = await _find_usable_invite(db, payload.invite)
        role = RoleEnum(invite.role.value)

    hashed = await run_in_threadpool(hash_password, payload.password)

    user = User(
        full_name=payload.name,
        email=payload.email,
        hashed_password=hashed,
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.flush()

    owner: AddressOwner | None = None
    if invite is not None:
        build = PROFILE_BUILDERS[invite.role]
        owner = await build(db, user, invite, payload)

    address = payload.address_data()
    if owner is not None and address is not None:
        await upsert_address(db, owner, {**address, "is_primary": True}, geocode=False)

    if invite is not None:
        await consume_invite(db, invite.id)

    await db.commit()
    return RegistrationOut(
        user_id=user.id,
        role=role,
        clinic_id=invite.clinic_id if invite else None,
        profile_id=owner.entity_id if owner else None,
    )


async def register_account(db: AsyncSession, payload: RegisterIn | dict) -> RegistrationOut:
    if isinstance(payload, dict):
        payload = parse_register_form(payload)

    try:
        out = await _register(db, payload)
    except DomainError:
        await db.rollback()
        raise
    except IntegrityError as exc:
        await db.rollback()
        field = violated_field(exc, ("tax_id", "email"))
        logger.warning("Registration for %s hit unique constraint (%s)", payload.email, field)
        if field == "email":
            raise EmailTaken() from exc
        if field == "tax_id":
            raise UniqueConstraintViolation("tax_id") from exc
        raise RegistrationFailed() from exc
    except Exception as exc:
        await db.rollback()
        logger.exception("Registration failed for %s", payload.email)
        raise RegistrationFailed() from exc

    logger.info("Registered user %s (role=%s clinic=%s)", out.user_id, out.role.value, out.clinic_id)
    return out
