"""studio_people_classes

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-09-01 09:00:00.000000

스튜디오, 사용자, 강사/학생/보호자, 수업, 시간표, 수강 테이블 생성.
Create studio, user, people, class, schedule and enrollment tables.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = 'a1b2c3d4e5f6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column('id', UUID(as_uuid=True), primary_key=True)


def _fk(name: str, target: str, ondelete: str = 'CASCADE', nullable: bool = False) -> sa.Column:
    return sa.Column(name, UUID(as_uuid=True), sa.ForeignKey(f'{target}.id', ondelete=ondelete), nullable=nullable)


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())


def _updated_at() -> sa.Column:
    return sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now())


def upgrade() -> None:
    # organizations — 스튜디오 (tenant); code 는 보호자 가입용
    op.create_table(
        'organizations',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(6), nullable=False, unique=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('website', sa.String(255), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('timezone', sa.String(64), server_default='America/New_York', nullable=False),
        sa.Column('logo_url', sa.String(1024), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        'studio_rooms',
        _id(),
        _fk('organization_id', 'organizations'),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        _created_at(),
    )

    # users — 로그인 계정 (admin, staff, teacher, parent)
    op.create_table(
        'users',
        _id(),
        _fk('organization_id', 'organizations'),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), server_default='parent', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint('organization_id', 'email', name='uq_user_org_email'),
    )

    op.create_table(
        'refresh_tokens',
        _id(),
        _fk('user_id', 'users'),
        sa.Column('token', sa.String(512), nullable=False, unique=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        _created_at(),
    )
    op.create_index('ix_refresh_tokens_user_id', 'refresh_tokens', ['user_id'])

    # teachers / availability
    op.create_table(
        'teachers',
        _id(),
        _fk('organization_id', 'organizations'),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, unique=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('specialties', JSONB(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        'teacher_availability',
        _id(),
        _fk('teacher_id', 'teachers'),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        _created_at(),
    )
    op.create_index('ix_teacher_availability_teacher_id', 'teacher_availability', ['teacher_id'])

    # students / guardians / links
    op.create_table(
        'students',
        _id(),
        _fk('organization_id', 'organizations'),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('gender', sa.String(20), nullable=True),
        sa.Column('medical_notes', sa.Text(), nullable=True),
        sa.Column('check_in_code', sa.String(32), nullable=False),
        sa.Column('status', sa.String(20), server_default='active', nullable=False),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint('organization_id', 'check_in_code', name='uq_student_org_check_in_code'),
    )

    op.create_table(
        'guardians',
        _id(),
        _fk('organization_id', 'organizations'),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, unique=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        _created_at(),
    )

    op.create_table(
        'student_guardians',
        _id(),
        _fk('student_id', 'students'),
        _fk('guardian_id', 'guardians'),
        sa.Column('relationship_type', sa.String(50), server_default='parent', nullable=False),
        sa.Column('is_primary', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.UniqueConstraint('student_id', 'guardian_id', name='uq_student_guardian'),
    )

    # dance_styles / class_instances
    op.create_table(
        'dance_styles',
        _id(),
        _fk('organization_id', 'organizations'),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('color', sa.String(20), nullable=True),
        _created_at(),
    )

    op.create_table(
        'class_instances',
        _id(),
        _fk('organization_id', 'organizations'),
        sa.Column('name', sa.String(255), nullable=False),
        _fk('dance_style_id', 'dance_styles', 'SET NULL', nullable=True),
        sa.Column('level', sa.String(50), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('min_age', sa.Integer(), nullable=True),
        sa.Column('max_age', sa.Integer(), nullable=True),
        sa.Column('max_students', sa.Integer(), nullable=True),
        _fk('teacher_id', 'teachers', 'SET NULL', nullable=True),
        sa.Column('tuition_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('status', sa.String(20), server_default='active', nullable=False),
        _created_at(),
        _updated_at(),
    )

    # schedules — 학기 시간표와 주간 슬롯
    op.create_table(
        'schedules',
        _id(),
        _fk('organization_id', 'organizations'),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('publication_status', sa.String(20), server_default='draft', nullable=False),
        sa.Column('published_version', sa.Integer(), server_default='0', nullable=False),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        _fk('published_by', 'users', 'SET NULL', nullable=True),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        'schedule_classes',
        _id(),
        _fk('schedule_id', 'schedules'),
        _fk('class_instance_id', 'class_instances'),
        _fk('room_id', 'studio_rooms', 'SET NULL', nullable=True),
        _fk('teacher_id', 'teachers', 'SET NULL', nullable=True),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        _created_at(),
    )
    op.create_index('ix_schedule_classes_schedule_id', 'schedule_classes', ['schedule_id'])
    op.create_index('ix_schedule_classes_class_instance_id', 'schedule_classes', ['class_instance_id'])

    op.create_table(
        'schedule_publish_history',
        _id(),
        _fk('schedule_id', 'schedules'),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('slot_count', sa.Integer(), server_default='0', nullable=False),
        _fk('published_by', 'users', 'SET NULL', nullable=True),
        sa.Column('published_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_schedule_publish_history_schedule_id', 'schedule_publish_history', ['schedule_id'])

    # enrollments / enrollment_requests
    op.create_table(
        'enrollments',
        _id(),
        _fk('organization_id', 'organizations'),
        _fk('student_id', 'students'),
        _fk('class_instance_id', 'class_instances'),
        sa.Column('status', sa.String(20), server_default='active', nullable=False),
        sa.Column('enrolled_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('dropped_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _created_at(),
        _updated_at(),
    )
    op.create_index('ix_enrollments_student_id', 'enrollments', ['student_id'])
    op.create_index('ix_enrollments_class_instance_id', 'enrollments', ['class_instance_id'])

    op.create_table(
        'enrollment_requests',
        _id(),
        _fk('organization_id', 'organizations'),
        _fk('student_id', 'students'),
        _fk('class_instance_id', 'class_instances'),
        _fk('guardian_id', 'guardians', 'SET NULL', nullable=True),
        sa.Column('status', sa.String(20), server_default='pending', nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('denial_reason', sa.Text(), nullable=True),
        sa.Column('conflicts', JSONB(), nullable=True),
        sa.Column('warnings', JSONB(), nullable=True),
        _fk('processed_by', 'users', 'SET NULL', nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index('ix_enrollment_requests_student_id', 'enrollment_requests', ['student_id'])


def downgrade() -> None:
    for table in (
        'enrollment_requests', 'enrollments',
        'schedule_publish_history', 'schedule_classes', 'schedules',
        'class_instances', 'dance_styles',
        'student_guardians', 'guardians', 'students',
        'teacher_availability', 'teachers',
        'refresh_tokens', 'users', 'studio_rooms', 'organizations',
    ):
        op.drop_table(table)
