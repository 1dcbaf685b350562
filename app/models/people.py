"""인물 관련 SQLAlchemy ORM 모델 정의 — 강사, 학생, 보호자.

People SQLAlchemy ORM model definitions.

Tables:
    - teachers: 강사 (Dance teachers, optionally linked to a teacher login)
    - teacher_availability: 강사 가용 시간 (Weekly availability windows)
    - students: 학생 (Enrolled dancers)
    - guardians: 보호자 (Parents/guardians, linked to a parent login)
    - student_guardians: 학생-보호자 연결 (Student/guardian association)
"""

import secrets
import uuid
from datetime import date, datetime, time, timezone
from sqlalchemy import String, Boolean, Date, DateTime, Integer, Text, Time, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, JSONType


def generate_check_in_code() -> str:
    """학생 체크인 코드 (QR) — 12자리 16진수."""
    return secrets.token_hex(6).upper()


class Teacher(Base):
    """강사 모델.

    Teacher model — A dance teacher. ``user_id`` links the record to a
    login with role ``teacher``; teachers may only mark attendance and
    write evaluations for classes they teach.

    Attributes:
        id: 고유 식별자 UUID
        organization_id: 소속 스튜디오 FK
        user_id: 연결된 로그인 계정 FK (Optional teacher login)
        first_name / last_name: 이름
        email / phone: 연락처
        bio: 소개
        specialties: 전문 장르 목록 (JSON list of style names)
        is_active: 활성 상태
    """

    __tablename__ = "teachers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    # 로그인 계정 — Teacher login (SET NULL: 계정 삭제 시 강사 기록 유지)
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    specialties: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    user = relationship("User", back_populates="teacher_profile")
    availability = relationship("TeacherAvailability", back_populates="teacher", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class TeacherAvailability(Base):
    """강사 가용 시간 — 요일별 시간 창 (day 0=Sunday)."""

    __tablename__ = "teacher_availability"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    teacher_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[time] = mapped_column(Time(), nullable=False)
    end_time: Mapped[time] = mapped_column(Time(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    teacher = relationship("Teacher", back_populates="availability")


class Student(Base):
    """학생 모델.

    Student model — A dancer. ``check_in_code`` is printed as a QR code
    and scanned at the front desk for check-in.

    Attributes:
        id: 고유 식별자 UUID
        organization_id: 소속 스튜디오 FK
        first_name / last_name: 이름
        date_of_birth: 생년월일 (Used for class age bounds)
        gender: 성별 (optional)
        medical_notes: 건강 관련 메모 (Allergies, injuries)
        check_in_code: 체크인 QR 코드 (Unique per studio)
        status: active | inactive
    """

    __tablename__ = "students"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    medical_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    check_in_code: Mapped[str] = mapped_column(String(32), nullable=False, default=generate_check_in_code)
    status: Mapped[str] = mapped_column(String(20), default="active")  # active, inactive
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("organization_id", "check_in_code", name="uq_student_org_check_in_code"),
    )

    guardian_links = relationship("StudentGuardian", back_populates="student", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Guardian(Base):
    """보호자 모델 — 부모/보호자, 보통 parent 로그인과 연결."""

    __tablename__ = "guardians"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    user = relationship("User", back_populates="guardian_profile")
    student_links = relationship("StudentGuardian", back_populates="guardian", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class StudentGuardian(Base):
    """학생-보호자 연결 — relationship (mother, father, guardian ...)."""

    __tablename__ = "student_guardians"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    guardian_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("guardians.id", ondelete="CASCADE"), nullable=False)
    relationship_type: Mapped[str] = mapped_column(String(50), default="parent")
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)

    __table_args__ = (
        UniqueConstraint("student_id", "guardian_id", name="uq_student_guardian"),
    )

    student = relationship("Student", back_populates="guardian_links")
    guardian = relationship("Guardian", back_populates="student_links")
