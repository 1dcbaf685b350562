"""attendance_evaluations_payroll

Revision ID: b2c3d4e5f6a7
Revises: a1b2c3d4e5f6
Create Date: 2026-09-08 09:00:00.000000

출석/결석/보강, 학생 평가, 강사 급여, 수강료 결제 테이블 생성.
Create attendance, absence, makeup, evaluation, payroll and payment tables.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = 'b2c3d4e5f6a7'
down_revision: Union[str, None] = 'a1b2c3d4e5f6'
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
    # attendance_records — (학생, 수업, 날짜) 당 1건
    op.create_table(
        'attendance_records',
        _id(),
        _fk('organization_id', 'organizations'),
        _fk('student_id', 'students'),
        _fk('class_instance_id', 'class_instances'),
        _fk('schedule_class_id', 'schedule_classes', 'SET NULL', nullable=True),
        sa.Column('attendance_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('check_in_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('check_out_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_makeup', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        _fk('marked_by', 'users', 'SET NULL', nullable=True),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint('student_id', 'class_instance_id', 'attendance_date', name='uq_attendance_student_class_date'),
    )
    op.create_index('ix_attendance_records_student_id', 'attendance_records', ['student_id'])
    op.create_index('ix_attendance_records_class_instance_id', 'attendance_records', ['class_instance_id'])

    op.create_table(
        'absences',
        _id(),
        _fk('organization_id', 'organizations'),
        _fk('student_id', 'students'),
        _fk('class_instance_id', 'class_instances'),
        sa.Column('absence_date', sa.Date(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('is_excused', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        _fk('reported_by', 'users', 'SET NULL', nullable=True),
        _fk('attendance_record_id', 'attendance_records', 'SET NULL', nullable=True),
        _created_at(),
    )
    op.create_index('ix_absences_student_id', 'absences', ['student_id'])

    op.create_table(
        'makeup_bookings',
        _id(),
        _fk('organization_id', 'organizations'),
        _fk('student_id', 'students'),
        _fk('original_class_id', 'class_instances'),
        _fk('makeup_class_id', 'class_instances'),
        sa.Column('makeup_date', sa.Date(), nullable=False),
        _fk('absence_id', 'absences', 'SET NULL', nullable=True),
        sa.Column('status', sa.String(20), server_default='scheduled', nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        _fk('created_by', 'users', 'SET NULL', nullable=True),
        _created_at(),
    )
    op.create_index('ix_makeup_bookings_student_id', 'makeup_bookings', ['student_id'])

    # class_evaluations — (학생, 수업, 학기) 당 1건
    op.create_table(
        'class_evaluations',
        _id(),
        _fk('organization_id', 'organizations'),
        _fk('student_id', 'students'),
        _fk('class_instance_id', 'class_instances'),
        _fk('schedule_id', 'schedules', 'SET NULL', nullable=True),
        _fk('teacher_id', 'teachers', 'SET NULL', nullable=True),
        _fk('evaluator_id', 'users', 'SET NULL', nullable=True),
        sa.Column('overall_rating', sa.Integer(), nullable=True),
        sa.Column('effort_rating', sa.Integer(), nullable=True),
        sa.Column('attitude_rating', sa.Integer(), nullable=True),
        sa.Column('strengths', sa.Text(), nullable=True),
        sa.Column('areas_for_improvement', sa.Text(), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('skills', JSONB(), nullable=True),
        sa.Column('status', sa.String(20), server_default='draft', nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint('student_id', 'class_instance_id', 'schedule_id', name='uq_evaluation_student_class_schedule'),
    )
    op.create_index('ix_class_evaluations_student_id', 'class_evaluations', ['student_id'])

    # payroll — 급여율, 기간, 근무 기록, 조정, 명세서, 내보내기 로그
    op.create_table(
        'teacher_pay_rates',
        _id(),
        _fk('organization_id', 'organizations'),
        _fk('teacher_id', 'teachers'),
        sa.Column('rate_type', sa.String(20), server_default='hourly', nullable=False),
        sa.Column('rate_amount_in_cents', sa.Integer(), nullable=False),
        sa.Column('overtime_multiplier', sa.Numeric(4, 2), server_default='1.5', nullable=False),
        sa.Column('currency', sa.String(3), server_default='USD', nullable=False),
        sa.Column('effective_from', sa.Date(), nullable=False),
        sa.Column('effective_to', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        _created_at(),
    )
    op.create_index('ix_teacher_pay_rates_teacher_id', 'teacher_pay_rates', ['teacher_id'])

    op.create_table(
        'payroll_periods',
        _id(),
        _fk('organization_id', 'organizations'),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('period_start', sa.Date(), nullable=False),
        sa.Column('period_end', sa.Date(), nullable=False),
        sa.Column('pay_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(20), server_default='draft', nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        _fk('approved_by', 'users', 'SET NULL', nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        'payroll_time_entries',
        _id(),
        _fk('payroll_period_id', 'payroll_periods'),
        _fk('teacher_id', 'teachers'),
        _fk('schedule_class_id', 'schedule_classes', 'SET NULL', nullable=True),
        _fk('class_instance_id', 'class_instances', 'SET NULL', nullable=True),
        sa.Column('entry_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=True),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.Column('minutes', sa.Integer(), server_default='0', nullable=False),
        sa.Column('entry_type', sa.String(20), server_default='scheduled', nullable=False),
        sa.Column('is_overtime', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('status', sa.String(20), server_default='pending', nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index('ix_payroll_time_entries_payroll_period_id', 'payroll_time_entries', ['payroll_period_id'])
    op.create_index('ix_payroll_time_entries_teacher_id', 'payroll_time_entries', ['teacher_id'])

    op.create_table(
        'payroll_adjustments',
        _id(),
        _fk('payroll_period_id', 'payroll_periods'),
        _fk('teacher_id', 'teachers'),
        sa.Column('adjustment_type', sa.String(20), nullable=False),
        sa.Column('amount_in_cents', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        _fk('created_by', 'users', 'SET NULL', nullable=True),
        _created_at(),
    )
    op.create_index('ix_payroll_adjustments_payroll_period_id', 'payroll_adjustments', ['payroll_period_id'])

    op.create_table(
        'pay_stubs',
        _id(),
        _fk('payroll_period_id', 'payroll_periods'),
        _fk('teacher_id', 'teachers'),
        sa.Column('stub_number', sa.String(50), nullable=False),
        sa.Column('regular_minutes', sa.Integer(), server_default='0', nullable=False),
        sa.Column('overtime_minutes', sa.Integer(), server_default='0', nullable=False),
        sa.Column('class_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('regular_pay_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('overtime_pay_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('bonuses_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('deductions_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('reimbursements_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('gross_pay_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('net_pay_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('status', sa.String(20), server_default='draft', nullable=False),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint('payroll_period_id', 'teacher_id', name='uq_pay_stub_period_teacher'),
    )
    op.create_index('ix_pay_stubs_payroll_period_id', 'pay_stubs', ['payroll_period_id'])

    op.create_table(
        'payroll_export_logs',
        _id(),
        _fk('payroll_period_id', 'payroll_periods'),
        sa.Column('export_format', sa.String(20), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('record_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_gross_in_cents', sa.Integer(), server_default='0', nullable=False),
        _fk('exported_by', 'users', 'SET NULL', nullable=True),
        sa.Column('exported_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # payments — 수강료/등록비 청구 (금액은 센트 단위 정수)
    op.create_table(
        'payments',
        _id(),
        _fk('organization_id', 'organizations'),
        _fk('guardian_id', 'guardians'),
        _fk('student_id', 'students', 'SET NULL', nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('payment_type', sa.String(20), server_default='tuition', nullable=False),
        sa.Column('amount_in_cents', sa.Integer(), nullable=False),
        sa.Column('refund_amount_in_cents', sa.Integer(), server_default='0', nullable=False),
        sa.Column('payment_status', sa.String(20), server_default='pending', nullable=False),
        sa.Column('payment_method', sa.String(30), nullable=True),
        sa.Column('receipt_number', sa.String(40), nullable=False, unique=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('payment_date', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
    )
    op.create_index('ix_payments_guardian_id', 'payments', ['guardian_id'])


def downgrade() -> None:
    for table in (
        'payments',
        'payroll_export_logs', 'pay_stubs', 'payroll_adjustments', 'payroll_time_entries',
        'payroll_periods', 'teacher_pay_rates',
        'class_evaluations',
        'makeup_bookings', 'absences', 'attendance_records',
    ):
        op.drop_table(table)
