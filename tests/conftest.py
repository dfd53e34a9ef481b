"""
Test configuration: a fresh sqlite file database per test.

Seeding and assertions go through a sync engine; the app talks to the same
file through aiosqlite with NullPool so each request opens its own connection
on whatever event loop TestClient is running.
"""
import os

# antes de importar la app
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./unused-test.db")
os.environ["GEOCODE_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select, func
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from app.core.db import Base, get_db
from app.core.security import hash_password, create_access_token
from app.main import app
from app.models.clinic import Clinic
from app.models.doctor import Doctor
from app.models.invite import Invite, InviteRole
from app.models.links import ClinicUser, ClinicDoctor, StaffRole
from app.models.user import User, RoleEnum

PASSWORD = "secret123"


class Seed:
    """Crea filas con sesiones cortas (no deja locks abiertos sobre el archivo sqlite)."""

    def __init__(self, engine):
        self.engine = engine

    def add(self, *objs):
        with Session(self.engine, expire_on_commit=False) as s:
            s.add_all(objs)
            s.commit()
        return objs[0] if len(objs) == 1 else objs

    def count(self, model, *where) -> int:
        with Session(self.engine) as s:
            return s.execute(select(func.count()).select_from(model).where(*where)).scalar_one()

    def one(self, model, *where):
        with Session(self.engine, expire_on_commit=False) as s:
            return s.execute(select(model).where(*where)).scalar_one()

    def first(self, model, *where):
        with Session(self.engine, expire_on_commit=False) as s:
            return s.execute(select(model).where(*where)).scalars().first()

    # ---------- factories ----------
    def clinic(self, name="Clínica Central", slug=None) -> Clinic:
        return self.add(Clinic(name=name, slug=slug or name.lower().replace(" ", "-"), is_active=True))

    def user(self, email, role=RoleEnum.user, name="Test User", password=PASSWORD) -> User:
        return self.add(User(
            email=email, full_name=name, role=role,
            hashed_password=hash_password(password) if password else None, is_active=True,
        ))

    def super_admin(self, email="root@example.com") -> User:
        return self.user(email, RoleEnum.super_admin, name="Root")

    def clinic_admin(self, clinic: Clinic, email="admin@example.com") -> User:
        u = self.user(email, RoleEnum.admin, name="Admin")
        self.add(ClinicUser(user_id=u.id, clinic_id=clinic.id, role=StaffRole.admin, is_active=True))
        return u

    def doctor(self, clinic: Clinic | None, email="doc@example.com") -> tuple[User, Doctor]:
        u = self.user(email, RoleEnum.doctor, name="Dra. Test")
        d = self.add(Doctor(user_id=u.id, license="12345", license_region="SP"))
        if clinic is not None:
            self.add(
                ClinicUser(user_id=u.id, clinic_id=clinic.id, role=StaffRole.doctor, is_active=True),
                ClinicDoctor(doctor_id=d.id, clinic_id=clinic.id, is_active=True),
            )
        return u, d

    def invite(self, role=InviteRole.patient, clinic: Clinic | None = None, code="INVITE1",
               doctor: Doctor | None = None, **kw) -> Invite:
        params = {"is_active": True, "used_count": 0, **kw}
        return self.add(Invite(
            code=code, role=role,
            clinic_id=clinic.id if clinic else None,
            doctor_id=doctor.id if doctor else None,
            **params,
        ))


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(subject=user.id)}"}


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test.db"


@pytest.fixture
def sync_engine(db_path):
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def seed(sync_engine) -> Seed:
    return Seed(sync_engine)


@pytest.fixture
def session_factory(sync_engine, db_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides = {}


@pytest.fixture
def auth():
    return auth_headers
