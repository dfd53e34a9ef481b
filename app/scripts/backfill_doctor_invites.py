"""
Genera un código de invitación de paciente para cada médico que todavía no
tenga uno, en cada clínica a la que pertenece.

    python -m app.scripts.backfill_doctor_invites
"""
import asyncio
import logging

from app.core.config import settings
from app.core.db import session_scope
from app.core.logging import setup_logging
from app.services.invites import backfill_doctor_patient_invites

logger = logging.getLogger(__name__)


async def main() -> int:
    async with session_scope() as db:
        created = await backfill_doctor_patient_invites(db)
    for invite in created:
        logger.info("doctor=%s clinic=%s code=%s", invite.doctor_id, invite.clinic_id, invite.code)
    if not created:
        logger.info("Todos los médicos ya tienen código de invitación.")
    return len(created)


if __name__ == "__main__":
    setup_logging(settings.LOG_LEVEL)
    asyncio.run(main())
