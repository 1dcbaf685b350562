"""관리자 사용자 라우터 — 직원/강사 계정 관리 API.

Admin User Router — Admins manage staff and teacher logins.
Parents register themselves through the app API.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin
from app.database import get_db
from app.models.user import User
from app.schemas.user import UserCreate, UserResponse, UserUpdate
from app.services.user_service import user_service

router: APIRouter = APIRouter()


@router.get("", response_model=list[UserResponse])
async def list_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    role: Annotated[str | None, Query()] = None,
) -> list[UserResponse]:
    """스튜디오 사용자 목록을 조회합니다.

    List the studio's user accounts, optionally filtered by role.
    """
    return await user_service.list_users(db, organization_id=current_user.organization_id, role=role)


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    data: UserCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> UserResponse:
    """직원/강사 계정을 생성합니다.

    Create a staff, teacher or admin login. Duplicate email → 409.
    """
    result = await user_service.create_user(db, organization_id=current_user.organization_id, data=data)
    await db.commit()
    return result


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> UserResponse:
    """사용자 정보를 수정합니다.

    Update a user's name, role, active flag or password.
    """
    result = await user_service.update_user(
        db, user_id=user_id, organization_id=current_user.organization_id, data=data, current_user=current_user
    )
    await db.commit()
    return result
