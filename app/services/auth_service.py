"""인증 서비스 — 로그인, 회원가입, 토큰 갱신 비즈니스 로직.

Auth Service — Business logic for login, registration, and token refresh.
Handles the admin/app login split (staff side vs parents), JWT token
lifecycle, first-run studio setup and user profile retrieval.
"""

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.organization import Organization
from app.models.people import Guardian, Teacher
from app.models.user import STAFF_SIDE_ROLES, User
from app.repositories.auth_repository import auth_repository
from app.repositories.organization_repository import organization_repository
from app.schemas.auth import (
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    SetupRequest,
    TokenResponse,
    UserMeResponse,
)
from app.utils.exceptions import (
    BadRequestError,
    DuplicateError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from app.utils.jwt import create_access_token, create_refresh_token, decode_token
from app.utils.password import hash_password, verify_password
from app.utils.timeutil import ensure_utc

logger = logging.getLogger(__name__)


class AuthService:
    """인증 관련 비즈니스 로직을 처리하는 서비스.

    Service handling authentication business logic.
    Manages admin/app login flows, registration, token refresh, and logout.
    """

    async def resolve_studio_code(
        self,
        db: AsyncSession,
        studio_code: str | None,
    ) -> UUID | None:
        """스튜디오 코드를 스튜디오 UUID로 변환합니다.

        Resolve a studio code to an organization UUID.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            studio_code: 스튜디오 코드 (Studio code, may be None)

        Returns:
            UUID | None: 스튜디오 UUID 또는 None (Studio UUID or None)

        Raises:
            NotFoundError: 유효하지 않은 스튜디오 코드일 때 (Invalid studio code)
        """
        if studio_code is None:
            return None
        org: Organization | None = await organization_repository.get_by_code(db, studio_code)
        if org is None or not org.is_active:
            raise NotFoundError("Invalid studio code")
        return org.id

    def _build_jwt_payload(self, user: User) -> dict[str, str]:
        """JWT 토큰 페이로드를 생성합니다.

        Build the JWT token payload from user data.
        """
        return {
            "sub": str(user.id),
            "org": str(user.organization_id),
            "role": user.role,
        }

    async def _generate_tokens(
        self,
        db: AsyncSession,
        user: User,
    ) -> TokenResponse:
        """액세스 토큰과 리프레시 토큰을 생성합니다.

        Generate access and refresh token pair for a user.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user: 사용자 모델 (User model instance)

        Returns:
            TokenResponse: 토큰 응답 (Token response with access and refresh tokens)
        """
        payload: dict[str, str] = self._build_jwt_payload(user)
        access_token: str = create_access_token(payload)
        refresh_token: str = create_refresh_token(payload)

        # 기존 리프레시 토큰 정리 — Clean up old refresh tokens to prevent accumulation
        await auth_repository.delete_user_refresh_tokens(db, user.id)

        # 리프레시 토큰을 DB에 저장 — Persist refresh token to database
        expires_at: datetime = datetime.now(timezone.utc) + timedelta(
            days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS
        )
        await auth_repository.create_refresh_token(
            db, user_id=user.id, token=refresh_token, expires_at=expires_at
        )

        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
        )

    async def _authenticate(
        self,
        db: AsyncSession,
        data: LoginRequest,
    ) -> User:
        """이메일/비밀번호 확인 — Verify credentials, scoped by studio code when given."""
        organization_id: UUID | None = await self.resolve_studio_code(db, data.studio_code)
        candidates: list[User] = await auth_repository.get_users_by_email(db, data.email, organization_id)

        # 여러 스튜디오에 같은 이메일 — the password picks the account
        user: User | None = next(
            (u for u in candidates if verify_password(data.password, u.password_hash)),
            None,
        )
        if user is None:
            raise UnauthorizedError("Invalid email or password")

        if not user.is_active:
            raise UnauthorizedError("Account is deactivated")
        return user

    async def admin_login(
        self,
        db: AsyncSession,
        data: LoginRequest,
    ) -> TokenResponse:
        """관리자 로그인을 처리합니다.

        Process staff-side login (admin, staff, teacher).

        Raises:
            UnauthorizedError: 잘못된 인증 정보일 때 (Invalid credentials)
            ForbiddenError: 보호자 계정이 관리자 로그인을 시도할 때
                            (Parent account attempting admin login)
        """
        user: User = await self._authenticate(db, data)
        if user.role not in STAFF_SIDE_ROLES:
            raise ForbiddenError("보호자 계정은 관리자 화면에 로그인할 수 없습니다 (Parent accounts use the app login)")
        logger.info("Admin login user=%s role=%s", user.id, user.role)
        return await self._generate_tokens(db, user)

    async def app_login(
        self,
        db: AsyncSession,
        data: LoginRequest,
    ) -> TokenResponse:
        """앱(보호자) 로그인을 처리합니다.

        Process parent app login. Staff-side accounts are rejected.
        """
        user: User = await self._authenticate(db, data)
        if user.role != "parent":
            raise ForbiddenError("앱 로그인은 보호자 전용입니다 (App login is for parent accounts)")
        return await self._generate_tokens(db, user)

    async def app_register(
        self,
        db: AsyncSession,
        data: RegisterRequest,
    ) -> TokenResponse:
        """보호자 회원가입을 처리합니다.

        Process parent registration. Creates the parent login and its
        guardian record in one transaction.

        Raises:
            NotFoundError: 스튜디오 코드가 유효하지 않을 때 (Invalid studio code)
            DuplicateError: 같은 이메일이 이미 존재할 때 (Email already registered)
        """
        organization_id: UUID | None = await self.resolve_studio_code(db, data.studio_code)
        assert organization_id is not None

        existing: list[User] = await auth_repository.get_users_by_email(db, data.email, organization_id)
        if existing:
            raise DuplicateError("Email already registered at this studio")

        email: str = data.email.strip().lower()
        user: User = User(
            organization_id=organization_id,
            email=email,
            full_name=f"{data.first_name} {data.last_name}",
            password_hash=hash_password(data.password),
            role="parent",
        )
        db.add(user)
        await db.flush()

        db.add(Guardian(
            organization_id=organization_id,
            user_id=user.id,
            first_name=data.first_name,
            last_name=data.last_name,
            email=email,
            phone=data.phone,
        ))
        await db.flush()
        await db.refresh(user)
        logger.info("Parent registered user=%s studio=%s", user.id, organization_id)

        return await self._generate_tokens(db, user)

    async def setup_studio(
        self,
        db: AsyncSession,
        data: SetupRequest,
    ) -> dict:
        """최초 스튜디오와 관리자 계정을 생성합니다.

        Create the first studio and its admin account. Only works while
        no studio exists yet.

        Raises:
            BadRequestError: 이미 설정이 완료된 경우 (Setup already completed)
        """
        count: int = (await db.execute(select(func.count()).select_from(Organization))).scalar() or 0
        if count > 0:
            raise BadRequestError("Setup already completed")

        org = Organization(name=data.studio_name, timezone=data.timezone)
        db.add(org)
        await db.flush()

        user = User(
            organization_id=org.id,
            email=data.email.strip().lower(),
            full_name=data.full_name,
            password_hash=hash_password(data.password),
            role="admin",
        )
        db.add(user)
        await db.flush()
        logger.info("Studio setup completed org=%s", org.id)

        tokens: TokenResponse = await self._generate_tokens(db, user)
        return {
            "organization_id": str(org.id),
            "studio_code": org.code,
            "tokens": tokens.model_dump(),
        }

    async def refresh_tokens(
        self,
        db: AsyncSession,
        data: RefreshRequest,
    ) -> TokenResponse:
        """리프레시 토큰으로 새 토큰 쌍을 발급합니다.

        Issue a new token pair using a refresh token.

        Raises:
            UnauthorizedError: 유효하지 않거나 만료된 리프레시 토큰일 때
                               (Invalid or expired refresh token)
        """
        # DB에서 리프레시 토큰 확인 — Verify refresh token in database
        db_token = await auth_repository.get_refresh_token(db, data.refresh_token)
        if db_token is None:
            raise UnauthorizedError("Invalid refresh token")

        # 만료 확인 — Check expiration
        if ensure_utc(db_token.expires_at) < datetime.now(timezone.utc):
            await auth_repository.delete_refresh_token(db, data.refresh_token)
            raise UnauthorizedError("Refresh token has expired")

        # JWT 디코딩으로 사용자 정보 추출 — Extract user info from JWT
        try:
            payload: dict = decode_token(data.refresh_token)
        except jwt.InvalidTokenError:
            await auth_repository.delete_refresh_token(db, data.refresh_token)
            raise UnauthorizedError("Invalid refresh token")

        user_id: str | None = payload.get("sub")
        if user_id is None or payload.get("type") != "refresh":
            raise UnauthorizedError("Invalid refresh token payload")

        user: User | None = await db.get(User, UUID(user_id))
        if user is None or not user.is_active:
            raise UnauthorizedError("User not found or inactive")

        # 기존 리프레시 토큰 삭제 후 새 토큰 발급 — Delete old token and issue new pair
        await auth_repository.delete_refresh_token(db, data.refresh_token)
        return await self._generate_tokens(db, user)

    async def logout(
        self,
        db: AsyncSession,
        refresh_token: str,
    ) -> None:
        """로그아웃 처리 — 리프레시 토큰을 삭제합니다."""
        await auth_repository.delete_refresh_token(db, refresh_token)

    async def get_me(
        self,
        db: AsyncSession,
        user: User,
    ) -> UserMeResponse:
        """현재 로그인한 사용자 프로필을 반환합니다.

        Return the profile of the currently authenticated user, including
        the linked teacher or guardian record id.
        """
        org: Organization = await organization_repository.get_or_404(db, user.organization_id)

        teacher_id: UUID | None = None
        guardian_id: UUID | None = None
        if user.role == "teacher":
            teacher_id = (await db.execute(select(Teacher.id).where(Teacher.user_id == user.id))).scalar()
        elif user.role == "parent":
            guardian_id = (await db.execute(select(Guardian.id).where(Guardian.user_id == user.id))).scalar()

        return UserMeResponse(
            id=str(user.id),
            email=user.email,
            full_name=user.full_name,
            role=user.role,
            organization_id=str(user.organization_id),
            organization_name=org.name,
            studio_code=org.code,
            is_active=user.is_active,
            teacher_id=str(teacher_id) if teacher_id else None,
            guardian_id=str(guardian_id) if guardian_id else None,
        )


# 싱글턴 인스턴스 — Singleton instance
auth_service: AuthService = AuthService()
