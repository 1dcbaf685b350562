"""앱 인증 라우터 — 보호자 회원가입, 로그인.

App Auth Router — Parent registration and login endpoints.
Refresh, logout and profile are shared in app.api.auth.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from app.services.auth_service import auth_service

router: APIRouter = APIRouter()


@router.post("/register", response_model=TokenResponse, status_code=201)
async def app_register(
    data: RegisterRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """보호자 회원가입 — 스튜디오 코드로 가입.

    Parent registration. The studio is identified by the code the studio
    hands out; a guardian record is created with the login.
    """
    result: TokenResponse = await auth_service.app_register(db, data)
    await db.commit()
    return result


@router.post("/login", response_model=TokenResponse)
async def app_login(
    data: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """앱 로그인 — 보호자 전용.

    Parent app login endpoint. Staff-side accounts get 403.
    """
    result: TokenResponse = await auth_service.app_login(db, data)
    await db.commit()
    return result
