"""
Médicos y pacientes gestionados por el staff de una clínica.

El admin da de alta médicos con cuenta propia; recepción carga fichas de
pacientes sin cuenta. Dar de baja desactiva el vínculo con la clínica: el
perfil sigue existiendo para las demás clínicas donde esté.
"""
import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from starlette.concurrency import run_in_threadpool

from app.core.errors import (
    DomainError, EmailTaken, EntityNotFound, RegistrationFailed,
    UniqueConstraintViolation, violated_field,
)
from app.core.security import hash_password
from app.models.address import AddressOwner, EntityType
from app.models.doctor import Doctor
from app.models.links import ClinicUser, ClinicDoctor, ClinicPatient, StaffRole
from app.models.patient import Patient
from app.models.user import User, RoleEnum
from app.schemas.doctor import ClinicDoctorUpdate, DoctorCreate
from app.schemas.patient import PatientCreate
from app.services.addresses import upsert_address
from app.services.memberships import patient_in_clinic

logger = logging.getLogger(__name__)


def _translate_integrity(exc: IntegrityError) -> DomainError:
    field = violated_field(exc, ("tax_id", "email"))
    if field == "email":
        return EmailTaken()
    if field == "tax_id":
        return UniqueConstraintViolation("tax_id")
    return RegistrationFailed()


async def _commit(db: AsyncSession) -> None:
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.warning("Clinic record write hit a constraint: %s", exc.orig)
        raise _translate_integrity(exc) from exc


async def _ensure_email_free(db: AsyncSession, email: str) -> None:
    res = await db.execute(select(User.id).where(User.email == email))
    if res.scalar_one_or_none():
        raise EmailTaken()


# ---------- médicos ----------
async def list_clinic_doctors(db: AsyncSession, clinic_id: str, active_only: bool = True) -> list[Doctor]:
    q = (
        select(Doctor)
        .join(ClinicDoctor, ClinicDoctor.doctor_id == Doctor.id)
        .options(selectinload(Doctor.clinics), selectinload(Doctor.user))
        .where(ClinicDoctor.clinic_id == clinic_id)
    )
    if active_only:
        q = q.where(ClinicDoctor.is_active.is_(True))
    res = await db.execute(q.order_by(ClinicDoctor.joined_at, Doctor.id))
    return list(res.scalars().unique().all())


async def get_clinic_doctor(db: AsyncSession, clinic_id: str, doctor_id: str) -> Doctor:
    q = (
        select(Doctor)
        .join(ClinicDoctor, ClinicDoctor.doctor_id == Doctor.id)
        .options(selectinload(Doctor.clinics), selectinload(Doctor.user))
        .where(
            Doctor.id == doctor_id,
            ClinicDoctor.clinic_id == clinic_id,
            ClinicDoctor.is_active.is_(True),
        )
        .execution_options(populate_existing=True)
    )
    d = (await db.execute(q)).scalar_one_or_none()
    if not d:
        raise EntityNotFound("Médico no encontrado en la clínica.")
    return d


async def create_clinic_doctor(db: AsyncSession, clinic_id: str, payload: DoctorCreate) -> Doctor:
    await _ensure_email_free(db, payload.email)
    hashed = await run_in_threadpool(hash_password, payload.password)

    try:
        user = User(
            full_name=payload.name,
            email=payload.email,
            hashed_password=hashed,
            role=RoleEnum.doctor,
            is_active=True,
        )
        db.add(user)
        await db.flush()

        db.add(ClinicUser(user_id=user.id, clinic_id=clinic_id, role=StaffRole.doctor))
        doctor = Doctor(
            user_id=user.id,
            license=payload.license,
            license_region=payload.license_region,
            phone=payload.phone,
        )
        db.add(doctor)
        await db.flush()
        db.add(ClinicDoctor(doctor_id=doctor.id, clinic_id=clinic_id))
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.warning("Doctor creation for %s hit a constraint", payload.email)
        raise _translate_integrity(exc) from exc

    logger.info("Doctor %s created in clinic %s", doctor.id, clinic_id)
    return await get_clinic_doctor(db, clinic_id, doctor.id)


async def update_clinic_doctor(
    db: AsyncSession, clinic_id: str, doctor_id: str, patch: ClinicDoctorUpdate
) -> Doctor:
    doctor = await get_clinic_doctor(db, clinic_id, doctor_id)
    data = patch.model_dump(exclude_unset=True)

    email = data.pop("email", None)
    if email and email != doctor.user.email:
        await _ensure_email_free(db, email)
        doctor.user.email = email
    name = data.pop("name", None)
    if name:
        doctor.user.full_name = name
    for k, v in data.items():
        setattr(doctor, k, v)

    await _commit(db)
    return await get_clinic_doctor(db, clinic_id, doctor_id)


async def deactivate_clinic_doctor(db: AsyncSession, clinic_id: str, doctor_id: str) -> None:
    doctor = await get_clinic_doctor(db, clinic_id, doctor_id)
    await db.execute(
        update(ClinicDoctor)
        .where(ClinicDoctor.clinic_id == clinic_id, ClinicDoctor.doctor_id == doctor_id)
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    # sin la membresía de staff deja de ver la clínica al iniciar sesión
    await db.execute(
        update(ClinicUser)
        .where(
            ClinicUser.clinic_id == clinic_id,
            ClinicUser.user_id == doctor.user_id,
            ClinicUser.role == StaffRole.doctor,
        )
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    logger.info("Doctor %s deactivated in clinic %s", doctor_id, clinic_id)


# ---------- pacientes ----------
async def list_clinic_patients(db: AsyncSession, clinic_id: str, active_only: bool = True) -> list[Patient]:
    q = (
        select(Patient)
        .join(ClinicPatient, ClinicPatient.patient_id == Patient.id)
        .options(selectinload(Patient.clinics))
        .where(ClinicPatient.clinic_id == clinic_id)
    )
    if active_only:
        q = q.where(ClinicPatient.is_active.is_(True))
    res = await db.execute(q.order_by(Patient.name, Patient.id))
    return list(res.scalars().unique().all())


async def _get_patient(db: AsyncSession, patient_id: str) -> Patient:
    q = (
        select(Patient)
        .options(selectinload(Patient.clinics))
        .where(Patient.id == patient_id)
        .execution_options(populate_existing=True)
    )
    return (await db.execute(q)).scalar_one()


async def create_clinic_patient(db: AsyncSession, clinic_id: str, payload: PatientCreate) -> Patient:
    try:
        patient = Patient(user_id=None, **payload.profile_data())
        db.add(patient)
        await db.flush()
        db.add(ClinicPatient(patient_id=patient.id, clinic_id=clinic_id))

        address = payload.address_data()
        if address is not None:
            owner = AddressOwner(EntityType.patient, patient.id)
            await upsert_address(db, owner, {**address, "is_primary": True})
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.warning("Patient creation in clinic %s hit a constraint", clinic_id)
        raise _translate_integrity(exc) from exc

    logger.info("Patient %s created in clinic %s", patient.id, clinic_id)
    return await _get_patient(db, patient.id)


async def deactivate_clinic_patient(db: AsyncSession, clinic_id: str, patient_id: str) -> None:
    if not await patient_in_clinic(db, patient_id, clinic_id):
        raise EntityNotFound("Paciente no encontrado en la clínica.")
    await db.execute(
        update(ClinicPatient)
        .where(ClinicPatient.clinic_id == clinic_id, ClinicPatient.patient_id == patient_id)
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    logger.info("Patient %s deactivated in clinic %s", patient_id, clinic_id)
