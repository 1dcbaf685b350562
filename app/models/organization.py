"""스튜디오(테넌트) 관련 SQLAlchemy ORM 모델 정의.

Studio (tenant) SQLAlchemy ORM model definitions.
An Organization is one dance studio; every other record is scoped to it.

Tables:
    - organizations: 스튜디오 프로필 (Studio profile, top-level tenant)
    - studio_rooms: 스튜디오 강의실 (Rooms classes are held in)
"""

import random
import string
import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, Integer, Text, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


def generate_studio_code() -> str:
    """6자리 랜덤 스튜디오 코드 생성 (대문자 + 숫자).

    Generate a random 6-character studio code (uppercase letters + digits).
    Parents enter this code when registering.
    """
    chars = string.ascii_uppercase + string.digits
    return "".join(random.choices(chars, k=6))


class Organization(Base):
    """스튜디오 모델 — 시스템의 최상위 엔티티.

    Studio model — Top-level tenant. Holds the public studio profile
    (contact details, logo, timezone) shown on receipts and reports.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        name: 스튜디오 이름 (Studio name)
        code: 가입용 스튜디오 코드 (Registration code)
        timezone: IANA 타임존 (Studio local timezone, used for check-in windows)
        logo_url: 로고 URL (Finalized logo file URL)
        is_active: 활성 상태 (Active status flag)

    Relationships:
        users: 스튜디오 사용자 목록 (Users of this studio, cascade delete)
        rooms: 강의실 목록 (Rooms, cascade delete)
    """

    __tablename__ = "organizations"

    # 스튜디오 고유 식별자 — Studio unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 스튜디오 이름 — Studio display name
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 스튜디오 코드 — Short unique code parents use to register (6 chars)
    code: Mapped[str] = mapped_column(String(6), unique=True, nullable=False, default=generate_studio_code)
    # 연락처 — Contact details printed on receipts
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    website: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    # 타임존 — IANA timezone name for the studio's wall clock
    timezone: Mapped[str] = mapped_column(String(64), default="America/New_York")
    # 로고 — Finalized logo URL (S3 or local uploads)
    logo_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    # 활성 상태 — Whether the studio is active
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships (cascade: 스튜디오 삭제 시 하위 데이터 일괄 삭제)
    users = relationship("User", back_populates="organization", cascade="all, delete-orphan")
    rooms = relationship("StudioRoom", back_populates="organization", cascade="all, delete-orphan")


class StudioRoom(Base):
    """강의실 모델 — 수업이 열리는 공간.

    Studio room model — A physical room classes are scheduled into.
    Two slots in the same room may not overlap.

    Attributes:
        id: 고유 식별자 UUID
        organization_id: 소속 스튜디오 FK
        name: 강의실 이름 (e.g. "Studio A")
        capacity: 수용 인원 (Optional headcount)
        is_active: 활성 상태
    """

    __tablename__ = "studio_rooms"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    organization = relationship("Organization", back_populates="rooms")
