"""사용자 서비스 — 스태프/강사 계정 관리 비즈니스 로직.

User Service — Business logic for the admin-managed staff side accounts
(admin, staff, teacher). Parent accounts are created by self-registration
in the app and are not managed here.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.people import Teacher
from app.models.user import User
from app.repositories.auth_repository import auth_repository
from app.repositories.organization_repository import user_repository
from app.repositories.people_repository import teacher_repository
from app.schemas.user import UserCreate, UserResponse, UserUpdate
from app.utils.exceptions import BadRequestError, DuplicateError, ForbiddenError
from app.utils.password import hash_password


class UserService:
    """사용자 관련 비즈니스 로직을 처리하는 서비스.

    Service handling user account management for admins.
    """

    def _to_response(self, user: User) -> UserResponse:
        return UserResponse(
            id=str(user.id),
            email=user.email,
            full_name=user.full_name,
            role=user.role,
            is_active=user.is_active,
            created_at=user.created_at,
        )

    async def list_users(
        self,
        db: AsyncSession,
        organization_id: UUID,
        role: str | None = None,
    ) -> list[UserResponse]:
        """스튜디오 사용자 목록 — List studio users, optionally by role."""
        users = await user_repository.get_by_org(db, organization_id, role=role)
        return [self._to_response(u) for u in users]

    async def _link_teacher(
        self,
        db: AsyncSession,
        organization_id: UUID,
        teacher_id: UUID,
        user_id: UUID,
    ) -> None:
        teacher: Teacher = await teacher_repository.get_or_404(db, teacher_id, organization_id)
        if teacher.user_id is not None and teacher.user_id != user_id:
            raise BadRequestError("이미 다른 계정과 연결된 강사입니다 (Teacher is already linked to another account)")
        await teacher_repository.update(db, teacher, {"user_id": user_id})

    async def create_user(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: UserCreate,
    ) -> UserResponse:
        """새 스태프 측 사용자를 생성합니다.

        Create an admin, staff or teacher login. A teacher login may be
        linked to an existing teacher record through ``teacher_id``.

        Raises:
            DuplicateError: 스튜디오 내 이메일 중복 (Email already used in this studio)
            BadRequestError: teacher_id 가 teacher 역할이 아닌데 지정됨
        """
        email = data.email.lower()
        if await auth_repository.get_users_by_email(db, email, organization_id):
            raise DuplicateError("이미 사용 중인 이메일입니다 (Email already registered in this studio)")
        if data.teacher_id is not None and data.role != "teacher":
            raise BadRequestError("teacher_id 는 teacher 역할에만 지정할 수 있습니다 (teacher_id requires the teacher role)")

        user: User = await user_repository.create(
            db,
            {
                "organization_id": organization_id,
                "email": email,
                "full_name": data.full_name,
                "password_hash": hash_password(data.password),
                "role": data.role,
                "is_active": True,
            },
        )
        if data.teacher_id is not None:
            await self._link_teacher(db, organization_id, data.teacher_id, user.id)
        return self._to_response(user)

    async def update_user(
        self,
        db: AsyncSession,
        user_id: UUID,
        organization_id: UUID,
        data: UserUpdate,
        current_user: User,
    ) -> UserResponse:
        """사용자 정보를 수정합니다.

        Update a staff side user. Admins cannot demote or deactivate
        themselves, and parent accounts are not editable here.

        Raises:
            NotFoundError: 사용자 없음
            ForbiddenError: 보호자 계정 수정 시도
            BadRequestError: 자기 자신 비활성화 / 역할 변경
        """
        user: User = await user_repository.get_or_404(db, user_id, organization_id)
        if user.role == "parent":
            raise ForbiddenError("보호자 계정은 수정할 수 없습니다 (Parent accounts are managed by the parent)")

        update_data: dict = data.model_dump(exclude_unset=True)
        if user.id == current_user.id:
            if update_data.get("is_active") is False:
                raise BadRequestError("자기 자신을 비활성화할 수 없습니다 (You cannot deactivate yourself)")
            if "role" in update_data and update_data["role"] != user.role:
                raise BadRequestError("자기 자신의 역할은 변경할 수 없습니다 (You cannot change your own role)")

        password = update_data.pop("password", None)
        if password:
            update_data["password_hash"] = hash_password(password)

        user = await user_repository.update(db, user, update_data)
        if update_data.get("is_active") is False or password:
            # 비활성화/비밀번호 변경 시 기존 세션 폐기 — Revoke refresh tokens
            await auth_repository.delete_user_refresh_tokens(db, user.id)
        return self._to_response(user)


# 싱글턴 인스턴스 — Singleton instance
user_service: UserService = UserService()
