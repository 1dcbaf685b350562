"""스튜디오 레포지토리 — 스튜디오 프로필, 강의실, 사용자 조회.

Studio Repository — Studio profile, rooms and staff user lookups.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.organization import Organization, StudioRoom
from app.models.user import User
from app.repositories.base import BaseRepository


class OrganizationRepository(BaseRepository[Organization]):
    """스튜디오 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Organization, "Studio")

    async def get_by_code(self, db: AsyncSession, code: str) -> Organization | None:
        """가입 코드로 활성 스튜디오 조회 — Active studio by registration code."""
        result = await db.execute(
            select(Organization).where(
                Organization.code == code.strip().upper(),
                Organization.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()


class RoomRepository(BaseRepository[StudioRoom]):
    """강의실 레포지토리."""

    def __init__(self) -> None:
        super().__init__(StudioRoom, "Room")

    async def get_by_org(self, db: AsyncSession, organization_id: UUID) -> Sequence[StudioRoom]:
        return await self.get_all(db, organization_id, order_by=StudioRoom.name)


class UserRepository(BaseRepository[User]):
    """사용자 레포지토리 — 관리자 계정 관리용."""

    def __init__(self) -> None:
        super().__init__(User, "User")

    async def get_by_org(
        self,
        db: AsyncSession,
        organization_id: UUID,
        role: str | None = None,
    ) -> Sequence[User]:
        return await self.get_all(db, organization_id, filters={"role": role}, order_by=User.full_name)

    async def get_names(self, db: AsyncSession, user_ids: set[UUID]) -> dict[UUID, str]:
        """ID → 이름 맵 — Display names for a set of user ids."""
        ids = {u for u in user_ids if u is not None}
        if not ids:
            return {}
        result = await db.execute(select(User.id, User.full_name).where(User.id.in_(ids)))
        return {row.id: row.full_name for row in result.all()}


# 싱글턴 인스턴스 — Singleton instances
organization_repository: OrganizationRepository = OrganizationRepository()
room_repository: RoomRepository = RoomRepository()
user_repository: UserRepository = UserRepository()
