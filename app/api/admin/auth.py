"""관리자 인증 라우터 — 스튜디오 측 로그인, 최초 설정.

Admin Auth Router — Staff-side login and first-run setup endpoints.
Parent accounts are rejected from admin login.
Common endpoints (refresh, logout, me) are in app.api.auth.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.auth import LoginRequest, SetupRequest, TokenResponse
from app.services.auth_service import auth_service

router: APIRouter = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def admin_login(
    data: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """관리자 로그인 — 보호자 계정 접근 불가.

    Staff-side login endpoint (admin, staff, teacher). Optionally accepts
    studio_code in body to scope login to a specific studio.
    """
    result: TokenResponse = await auth_service.admin_login(db, data)
    await db.commit()
    return result


@router.post("/setup", status_code=201)
async def admin_setup(
    data: SetupRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """최초 스튜디오와 관리자 계정을 생성합니다.

    Create the initial studio and admin account.
    Only works when no studio exists yet.
    """
    result: dict = await auth_service.setup_studio(db, data)
    await db.commit()
    return result
