"""사용자 관련 SQLAlchemy ORM 모델 정의.

User SQLAlchemy ORM model definitions.
Every login belongs to one studio and carries exactly one role:
admin, staff, teacher or parent.

Tables:
    - users: 사용자 계정 (User accounts with studio/role scoping)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

# 역할 목록 — Allowed role values
USER_ROLES: tuple[str, ...] = ("admin", "staff", "teacher", "parent")
# 관리 화면 접근 역할 — Roles allowed on the staff-facing admin API
STAFF_SIDE_ROLES: tuple[str, ...] = ("admin", "staff", "teacher")


class User(Base):
    """사용자 모델 — 시스템 사용자 계정 정보.

    User model — System user account information.
    Email is unique within a studio (not globally).

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        organization_id: 소속 스튜디오 FK (Parent studio foreign key)
        email: 로그인 이메일 (Login email, unique per studio)
        full_name: 실명 (Full display name)
        password_hash: bcrypt 해시된 비밀번호 (bcrypt-hashed password)
        role: 역할 (admin | staff | teacher | parent)
        is_active: 활성 상태 (Active status, soft-delete pattern)

    Relationships:
        organization: 소속 스튜디오 (Parent studio)
        refresh_tokens: 리프레시 토큰 목록 (Active refresh tokens, cascade delete)
        teacher_profile: 강사 프로필 (Linked teacher record, teachers only)
        guardian_profile: 보호자 프로필 (Linked guardian record, parents only)
    """

    __tablename__ = "users"

    # 사용자 고유 식별자 — User unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 소속 스튜디오 FK — Parent studio (CASCADE)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    # 로그인 이메일 — Login email (스튜디오 내 고유, unique within studio)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    # 실명 — User's full display name
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 비밀번호 해시 — bcrypt hashed password (평문 저장 금지, never store plaintext)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    # 역할 — admin / staff / teacher / parent
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="parent")
    # 활성 상태 — Whether the user account is active
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("organization_id", "email", name="uq_user_org_email"),
    )

    # 관계 — Relationships
    organization = relationship("Organization", back_populates="users")
    refresh_tokens = relationship("RefreshToken", back_populates="user", cascade="all, delete-orphan")
    teacher_profile = relationship("Teacher", back_populates="user", uselist=False)
    guardian_profile = relationship("Guardian", back_populates="user", uselist=False)
