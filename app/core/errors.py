"""
Errores de dominio y sus handlers HTTP.

Los servicios levantan estas excepciones; FastAPI las convierte en
`{"error": code, "detail": mensaje, "fields": {...}}` sin exponer trazas.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class DomainError(Exception):
    code = "domain_error"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "No se pudo completar la operación."

    def __init__(self, message: str | None = None):
        self.detail = message or self.message
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.detail}


class FieldErrors(DomainError):
    code = "validation_error"
    status_code = 422
    message = "Datos inválidos."

    def __init__(self, fields: dict[str, list[str]], message: str | None = None):
        self.fields = fields
        super().__init__(message)

    def to_dict(self) -> dict:
        return {**super().to_dict(), "fields": self.fields}


class Unauthorized(DomainError):
    code = "unauthorized"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Permiso denegado."


class UnsupportedScope(DomainError):
    code = "unsupported_scope"
    message = "Las invitaciones sin clínica solo pueden ser para médicos independientes."


class ClinicNotFound(DomainError):
    code = "clinic_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Clínica no encontrada."


class InviteNotFound(DomainError):
    code = "invite_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Invitación no encontrada."


class EntityNotFound(DomainError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Registro no encontrado."


class InvalidInvite(DomainError):
    code = "invalid_invite"
    message = "Código de invitación inválido o expirado."


class EmailTaken(DomainError):
    code = "email_taken"
    status_code = status.HTTP_409_CONFLICT
    message = "El email ya está registrado."


class UniqueConstraintViolation(DomainError):
    code = "unique_violation"
    status_code = status.HTTP_409_CONFLICT

    MESSAGES = {
        "tax_id": "Este documento ya está registrado.",
        "slug": "Ya existe una clínica con ese slug.",
        "code": "El código ya existe.",
    }

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or self.MESSAGES.get(field, "Registro duplicado."))

    def to_dict(self) -> dict:
        return {**super().to_dict(), "fields": {self.field: [self.detail]}}


class RegistrationFailed(DomainError):
    code = "registration_failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Error al procesar el registro. Verificá los datos e intentá nuevamente."


class InviteFailed(DomainError):
    code = "invite_failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "No se pudo generar la invitación. Intentá nuevamente."


def violated_field(exc: Exception, candidates: tuple[str, ...]) -> str | None:
    """Busca qué columna violó la restricción UNIQUE a partir del mensaje del driver.

    MySQL: "Duplicate entry 'x' for key 'patients.tax_id'"
    SQLite: "UNIQUE constraint failed: patients.tax_id"
    """
    text = str(getattr(exc, "orig", exc)).lower()
    for name in candidates:
        if name in text:
            return name
    return None


# ---------- handlers ----------
async def domain_error_handler(request: Request, exc: DomainError):
    if exc.status_code >= 500:
        logger.error("%s %s -> %s", request.method, request.url.path, exc.code)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    fields: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        fields.setdefault(".".join(loc) or "__root__", []).append(err.get("msg", "inválido"))
    return JSONResponse(
        status_code=422,
        content=FieldErrors(fields).to_dict(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
