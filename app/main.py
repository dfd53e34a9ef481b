from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.logging import setup_logging
from app.api.v1.auth import router as auth_router
from app.api.v1.clinic import router as clinic_router
from app.api.v1.invites import router as invites_router
from app.api.v1.addresses import router as addresses_router
from app.api.v1.doctor import router as doctor_router
from app.api.v1.patient import router as patient_router

setup_logging(settings.LOG_LEVEL)

app = FastAPI(title=settings.APP_NAME, version="0.1.0")

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(clinic_router)
app.include_router(invites_router)
app.include_router(addresses_router)
app.include_router(doctor_router)
app.include_router(patient_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
