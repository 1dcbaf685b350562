"""기본 CRUD 레포지토리 — 모든 레포지토리의 부모 클래스.

Base CRUD Repository — Parent class for all domain repositories.
Provides generic Create, Read, Update, Delete operations with studio
(organization) scoping.

Usage:
    class StudentRepository(BaseRepository[Student]):
        def __init__(self) -> None:
            super().__init__(Student)
"""

from typing import Any, Generic, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import Base
from app.utils.exceptions import NotFoundError
from app.utils.pagination import paginate

# 제네릭 타입 변수 — SQLAlchemy 모델을 나타냄
# Generic type variable representing a SQLAlchemy model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """제네릭 CRUD 레포지토리.

    Generic CRUD repository providing common database operations.
    Queries are scoped by organization_id when the model has the column
    and a studio id is given.

    Attributes:
        model: SQLAlchemy 모델 클래스 (The SQLAlchemy model class)
        label: 404 메시지에 쓰는 이름 (Name used in not-found messages)
    """

    def __init__(self, model: type[ModelType], label: str | None = None) -> None:
        self.model: type[ModelType] = model
        self.label: str = label or model.__name__

    def _scoped(self, query: Select, organization_id: UUID | None) -> Select:
        if organization_id is not None and hasattr(self.model, "organization_id"):
            query = query.where(self.model.organization_id == organization_id)
        return query

    async def get_by_id(
        self,
        db: AsyncSession,
        record_id: UUID,
        organization_id: UUID | None = None,
        for_update: bool = False,
    ) -> ModelType | None:
        """ID로 단일 레코드를 조회합니다.

        Retrieve a single record by its UUID.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            record_id: 조회할 레코드의 UUID (UUID of the record to retrieve)
            organization_id: 스튜디오 범위 필터, None이면 미적용
                             (Studio scope filter; None skips scoping)
            for_update: 행 잠금 여부 (SELECT ... FOR UPDATE)

        Returns:
            ModelType | None: 조회된 레코드 또는 None (Found record or None)
        """
        query: Select = self._scoped(select(self.model).where(self.model.id == record_id), organization_id)
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_or_404(
        self,
        db: AsyncSession,
        record_id: UUID,
        organization_id: UUID | None = None,
        for_update: bool = False,
    ) -> ModelType:
        """조회 실패 시 NotFoundError — Fetch a record or raise 404."""
        obj = await self.get_by_id(db, record_id, organization_id, for_update=for_update)
        if obj is None:
            raise NotFoundError(f"{self.label} not found")
        return obj

    async def get_all(
        self,
        db: AsyncSession,
        organization_id: UUID | None = None,
        filters: dict[str, Any] | None = None,
        order_by: Any | None = None,
    ) -> Sequence[ModelType]:
        """조건에 맞는 모든 레코드를 조회합니다.

        Retrieve all records matching the given filters. ``None`` filter
        values are ignored.
        """
        query: Select = self._scoped(select(self.model), organization_id)

        # 동적 필터 적용 — Dynamic filter application
        if filters:
            for column_name, value in filters.items():
                if hasattr(self.model, column_name) and value is not None:
                    query = query.where(getattr(self.model, column_name) == value)

        if order_by is not None:
            query = query.order_by(order_by)

        result = await db.execute(query)
        return result.scalars().all()

    async def get_paginated(
        self,
        db: AsyncSession,
        query: Select,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[ModelType], int]:
        """페이지네이션이 적용된 레코드 목록 — (items, total)."""
        return await paginate(db, query, page, per_page)

    async def create(
        self,
        db: AsyncSession,
        obj_data: dict[str, Any],
    ) -> ModelType:
        """새 레코드를 생성합니다.

        Create a new record and flush it so generated defaults are loaded.
        """
        db_obj: ModelType = self.model(**obj_data)
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        db_obj: ModelType,
        update_data: dict[str, Any],
    ) -> ModelType:
        """로드된 레코드에 필드를 반영합니다.

        Apply ``update_data`` (typically ``model_dump(exclude_unset=True)``)
        to an already loaded record. None values are written as given.
        """
        for field, value in update_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def delete(
        self,
        db: AsyncSession,
        record_id: UUID,
        organization_id: UUID | None = None,
    ) -> bool:
        """레코드를 삭제합니다 — Whether a row was deleted."""
        db_obj: ModelType | None = await self.get_by_id(db, record_id, organization_id)
        if db_obj is None:
            return False

        await db.delete(db_obj)
        await db.flush()
        return True

    async def exists(
        self,
        db: AsyncSession,
        filters: dict[str, Any],
    ) -> bool:
        """주어진 조건에 일치하는 레코드가 존재하는지 확인합니다."""
        query: Select = select(func.count()).select_from(self.model)
        for column_name, value in filters.items():
            if hasattr(self.model, column_name):
                query = query.where(getattr(self.model, column_name) == value)

        count: int = (await db.execute(query)).scalar() or 0
        return count > 0
