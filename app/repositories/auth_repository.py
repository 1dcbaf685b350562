"""인증 레포지토리 — 리프레시 토큰 CRUD 및 사용자 조회.

Auth Repository — Handles refresh token CRUD and user lookup by email.
Provides database operations for authentication workflows including
token lifecycle management and credential-based user retrieval.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.token import RefreshToken
from app.models.user import User


class AuthRepository:
    """인증 관련 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling authentication-related database queries.
    """

    async def get_users_by_email(
        self,
        db: AsyncSession,
        email: str,
        organization_id: UUID | None = None,
    ) -> list[User]:
        """이메일로 사용자를 조회합니다 (대소문자 무시).

        Retrieve users by email (case-insensitive). Without a studio scope
        the same email may match accounts at several studios.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            email: 로그인 이메일 (Login email)
            organization_id: 스튜디오 범위 필터, None이면 전체 검색
                             (Studio scope filter; None searches all)

        Returns:
            list[User]: 일치하는 사용자 목록 (Matching users)
        """
        query: Select = select(User).where(func.lower(User.email) == email.strip().lower())
        if organization_id is not None:
            query = query.where(User.organization_id == organization_id)

        result = await db.execute(query)
        return list(result.scalars().all())

    async def create_refresh_token(
        self,
        db: AsyncSession,
        user_id: UUID,
        token: str,
        expires_at: datetime,
    ) -> RefreshToken:
        """새 리프레시 토큰을 저장합니다 — Persist a refresh token."""
        db_token: RefreshToken = RefreshToken(
            user_id=user_id,
            token=token,
            expires_at=expires_at,
        )
        db.add(db_token)
        await db.flush()
        return db_token

    async def get_refresh_token(
        self,
        db: AsyncSession,
        token: str,
    ) -> RefreshToken | None:
        """리프레시 토큰 문자열로 토큰 레코드를 조회합니다."""
        result = await db.execute(select(RefreshToken).where(RefreshToken.token == token))
        return result.scalar_one_or_none()

    async def delete_refresh_token(
        self,
        db: AsyncSession,
        token: str,
    ) -> bool:
        """리프레시 토큰을 삭제합니다 — Whether a token was revoked."""
        db_token: RefreshToken | None = await self.get_refresh_token(db, token)
        if db_token is None:
            return False

        await db.delete(db_token)
        await db.flush()
        return True

    async def delete_user_refresh_tokens(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> None:
        """특정 사용자의 모든 리프레시 토큰을 삭제합니다.

        Delete all refresh tokens for a user (logout from all devices).
        """
        await db.execute(delete(RefreshToken).where(RefreshToken.user_id == user_id))
        await db.flush()


# 싱글턴 인스턴스 — Singleton instance
auth_repository: AuthRepository = AuthRepository()
