import re

ADDRESS_FIELDS = ("zip_code", "street", "number", "complement", "neighborhood", "city", "state")


def digits_only(v: str | None) -> str | None:
    if v is None:
        return None
    only = re.sub(r"\D", "", v)
    return only or None


def strip_or_none(v):
    """Recorta strings; vacío o solo espacios pasa a None."""
    if isinstance(v, str):
        return v.strip() or None
    return v


def reject_null(v):
    if v is None:
        raise ValueError("No puede ser nulo")
    return v
