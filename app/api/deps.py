"""FastAPI 의존성 주입 모듈 — 인증 및 역할 검사.

FastAPI dependency injection module — Authentication and authorization.
Provides reusable dependencies for extracting the current user from JWT
and enforcing role-based access control on API endpoints.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. HTTPBearer가 토큰을 추출, 헤더가 없으면 401
       (HTTPBearer extracts the token; a missing header is a 401)
    3. decode_token()이 JWT를 검증하고 페이로드를 반환
       (decode_token verifies JWT and returns payload)
    4. 페이로드의 "sub" 필드로 DB에서 사용자를 조회
       (User is fetched from DB using payload "sub" field)
    5. 사용자 활성 상태를 확인 (User active status is verified)

Authorization Flow (require_roles):
    1. get_current_user로 사용자 인증 (User authenticated via get_current_user)
    2. 사용자 역할이 허용 목록에 없으면 403 Forbidden
       (Returns 403 when the user's role is not in the allowed set)
"""

from typing import Annotated, Callable, Awaitable
from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.people import Guardian, Teacher
from app.models.user import User
from app.repositories.class_repository import class_repository
from app.repositories.organization_repository import organization_repository
from app.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError, UnauthorizedError
from app.utils.jwt import decode_token

# HTTP Bearer 토큰 추출기 — auto_error=False: 헤더 누락 시 직접 401 발생
# (Extracts the Bearer token; missing headers are turned into a 401 below)
security: HTTPBearer = HTTPBearer(auto_error=False)


async def _user_from_token(db: AsyncSession, token: str) -> User:
    try:
        payload: dict = decode_token(token)
    except (jwt.ExpiredSignatureError, jwt.InvalidTokenError, KeyError, ValueError):
        raise UnauthorizedError("Invalid or expired token")

    # 토큰 타입 검증 — Reject refresh tokens used as access tokens
    if payload.get("type") != "access":
        raise UnauthorizedError("Invalid token type")
    user_id: str | None = payload.get("sub")
    if user_id is None:
        raise UnauthorizedError("Invalid token")
    try:
        user_uuid = UUID(user_id)
    except ValueError:
        raise UnauthorizedError("Invalid token")

    result = await db.execute(select(User).where(User.id == user_uuid))
    user: User | None = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise UnauthorizedError("User not found or inactive")
    return user


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """JWT 토큰에서 현재 인증된 사용자를 추출합니다.

    Decode JWT from the Authorization header and return the authenticated user.

    Raises:
        UnauthorizedError(401): 토큰 없음, 유효하지 않음, 만료, 사용자 비활성
                                (Missing, invalid or expired token; inactive user)
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Authentication required")
    return await _user_from_token(db, credentials.credentials)


async def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User | None:
    """공개 엔드포인트용 — 토큰이 있으면 검증, 없으면 None.

    Optional authentication for public endpoints (show listing, seat
    reservations, ticket checkout). A present but invalid token is still 401.
    """
    if credentials is None or not credentials.credentials:
        return None
    return await _user_from_token(db, credentials.credentials)


def require_roles(*roles: str) -> Callable[..., Awaitable[User]]:
    """역할 기반 권한 검사 의존성 팩토리.

    Dependency factory returning a FastAPI dependency that only lets the
    listed roles through.

    Args:
        roles: 허용 역할 목록 (admin, staff, teacher, parent)

    Returns:
        FastAPI 의존성 함수 — 인증된 사용자 반환 또는 403 발생
        (FastAPI dependency function that returns User or raises 403)
    """
    allowed = frozenset(roles)

    async def _check(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in allowed:
            raise ForbiddenError("Insufficient permissions")
        return current_user
    return _check


# 편의 의존성 — Pre-configured role dependencies
require_admin = require_roles("admin")
require_admin_or_staff = require_roles("admin", "staff")
require_instructor = require_roles("admin", "staff", "teacher")  # 강사 포함 스튜디오 측 역할
require_parent = require_roles("parent")


async def get_teacher_for_user(db: AsyncSession, user: User) -> Teacher | None:
    """로그인 사용자와 연결된 강사 레코드 — Teacher row linked to the login."""
    result = await db.execute(
        select(Teacher).where(Teacher.user_id == user.id, Teacher.organization_id == user.organization_id)
    )
    return result.scalar_one_or_none()


async def get_guardian_for_user(db: AsyncSession, user: User) -> Guardian:
    """보호자 로그인의 보호자 레코드. 없으면 403.

    Return the guardian row of a parent login.

    Raises:
        ForbiddenError(403): 보호자 프로필 없음 (No guardian profile for this login)
    """
    result = await db.execute(
        select(Guardian).where(Guardian.user_id == user.id, Guardian.organization_id == user.organization_id)
    )
    guardian: Guardian | None = result.scalar_one_or_none()
    if guardian is None:
        raise ForbiddenError("보호자 프로필이 없습니다 (No guardian profile for this account)")
    return guardian


async def get_teacher_class_scope(db: AsyncSession, user: User) -> set[UUID] | None:
    """강사 로그인의 담당 수업 범위.

    Classes a teacher login may act on. ``None`` means unrestricted
    (admin/staff). A teacher login without a teacher record gets 403.
    """
    if user.role != "teacher":
        return None
    teacher = await get_teacher_for_user(db, user)
    if teacher is None:
        raise ForbiddenError("강사 프로필이 없습니다 (No teacher profile for this account)")
    return await class_repository.get_taught_class_ids(db, teacher.id)


def ensure_class_in_scope(scope: set[UUID] | None, class_id: UUID) -> None:
    """담당 수업이 아니면 403 — Raise 403 when the class is outside the scope."""
    if scope is not None and class_id not in scope:
        raise ForbiddenError("담당 수업만 처리할 수 있습니다 (You can only act on classes you teach)")


async def resolve_studio_id(db: AsyncSession, user: User | None, studio_code: str | None) -> UUID:
    """공개 엔드포인트의 스튜디오 결정.

    The caller's studio when logged in, otherwise the studio named by the
    ``studio_code`` query parameter.

    Raises:
        BadRequestError(400): 비로그인 + 코드 없음 (studio_code required)
        NotFoundError(404): 알 수 없는 코드 (Unknown studio code)
    """
    if user is not None:
        return user.organization_id
    if not studio_code:
        raise BadRequestError("studio_code 가 필요합니다 (studio_code is required)")
    org = await organization_repository.get_by_code(db, studio_code)
    if org is None:
        raise NotFoundError("Studio not found")
    return org.id
