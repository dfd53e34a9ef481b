from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.security import create_access_token
from app.models.user import User
from app.schemas.auth import RegisterIn, RegistrationOut, LoginIn, LoginOut, UserOut
from app.services.auth import authenticate
from app.services.registration import register_account
from app.api.deps import get_current_user

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", response_model=RegistrationOut, status_code=201)
async def register(payload: RegisterIn, db: AsyncSession = Depends(get_db)):
    return await register_account(db, payload)

@router.post("/login", response_model=LoginOut)
async def login(payload: LoginIn, db: AsyncSession = Depends(get_db)):
    claims = await authenticate(db, payload.email, payload.password)
    if claims is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenciales inválidas")

    token = create_access_token(
        subject=claims.sub,
        extra={"role": claims.role.value, "clinic_id": claims.clinic_id, "name": claims.name, "email": claims.email},
    )
    return LoginOut(access_token=token, claims=claims)

@router.get("/me", response_model=UserOut)
async def me(current_user: User = Depends(get_current_user)):
    return current_user
