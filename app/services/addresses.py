import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.address import Address, AddressOwner
from app.services import geocoding

logger = logging.getLogger(__name__)

ADDRESS_COLUMNS = ("label", "zip_code", "street", "number", "complement",
                   "neighborhood", "city", "state", "latitude", "longitude", "is_primary")


async def get_address(db: AsyncSession, owner: AddressOwner) -> Address | None:
    q = (
        select(Address)
        .where(Address.entity_type == owner.entity_type, Address.entity_id == owner.entity_id)
        .order_by(Address.is_primary.desc(), Address.created_at)
        .limit(1)
    )
    return (await db.execute(q)).scalar_one_or_none()


async def upsert_address(
    db: AsyncSession,
    owner: AddressOwner,
    data: dict,
    geocode: bool = True,
) -> Address:
    """
    Crea o actualiza la dirección de `owner`. Una sola fila por dueño:
    la segunda llamada pisa los campos de la primera.

    No hace commit; el llamador decide (el registro la usa dentro de su transacción).
    """
    values = {k: data.get(k) for k in ADDRESS_COLUMNS if k != "is_primary"}
    values["is_primary"] = data.get("is_primary", True)

    if geocode and (values["latitude"] is None or values["longitude"] is None):
        pos = await geocoding.first_position(values)
        if pos:
            values["latitude"], values["longitude"] = pos

    address = await get_address(db, owner)
    if address:
        for k, v in values.items():
            setattr(address, k, v)
    else:
        address = Address(entity_type=owner.entity_type, entity_id=owner.entity_id, **values)
        db.add(address)

    await db.flush()
    logger.debug("Address saved for %s:%s", owner.entity_type.value, owner.entity_id)
    return address
