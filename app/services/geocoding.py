"""
Geocoding best-effort contra HERE (discover.search.hereapi.com).

Nunca levanta: ante cualquier falla devuelve [] y deja el warning en el log.
"""
import logging

import httpx

from app.core.config import settings
from app.schemas.address import GeoCandidate

logger = logging.getLogger(__name__)


def build_address_query(data: dict) -> str:
    """Arma "calle, número, barrio - ciudad, UF, CEP" con lo que haya."""
    query = ""
    if data.get("street"):
        query += data["street"]
    if data.get("number"):
        query += f", {data['number']}"
    if data.get("neighborhood"):
        query += f", {data['neighborhood']}"
    if data.get("city"):
        query += f" - {data['city']}"
    if data.get("state"):
        query += f", {data['state']}"
    if data.get("zip_code"):
        query += f", {data['zip_code']}"
    return query.strip(" ,-")


def _parse_items(payload) -> list[GeoCandidate]:
    items = payload.get("items") if isinstance(payload, dict) else None
    out: list[GeoCandidate] = []
    for item in items or []:
        position = item.get("position") or {}
        if "lat" not in position or "lng" not in position:
            continue
        out.append(GeoCandidate(title=item.get("title", ""), lat=position["lat"], lng=position["lng"]))
    return out


async def geocode(query: str, client: httpx.AsyncClient | None = None) -> list[GeoCandidate]:
    if not query or not settings.geocoding_enabled:
        return []

    params = {
        "q": query,
        "in": f"countryCode:{settings.GEOCODE_COUNTRY}",
        "limit": settings.GEOCODE_LIMIT,
        "apiKey": settings.GEOCODE_API_KEY,
    }
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.GEOCODE_TIMEOUT) as cx:
                r = await cx.get(settings.GEOCODE_API_URL, params=params)
        else:
            r = await client.get(settings.GEOCODE_API_URL, params=params)
        r.raise_for_status()
        return _parse_items(r.json())
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Geocoding failed for %r: %s", query, exc)
        return []


async def first_position(data: dict) -> tuple[float, float] | None:
    candidates = await geocode(build_address_query(data))
    if not candidates:
        return None
    return candidates[0].lat, candidates[0].lng
