"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations and
relationship resolution.

Modules:
    organization: 스튜디오, 강의실 (Organization, StudioRoom)
    user: 사용자 (User)
    token: 리프레시 토큰 (Refresh tokens)
    people: 강사, 가용시간, 학생, 보호자 (Teacher, TeacherAvailability, Student, Guardian, StudentGuardian)
    dance_class: 장르, 수업 (DanceStyle, ClassInstance)
    schedule: 시간표, 슬롯, 게시 이력 (Schedule, ScheduleClass, SchedulePublishHistory)
    enrollment: 수강, 수강 신청 (Enrollment, EnrollmentRequest)
    attendance: 출석, 결석, 보강 (AttendanceRecord, Absence, MakeupBooking)
    evaluation: 학생 평가 (ClassEvaluation)
    payroll: 강사 급여 (Pay rates, periods, time entries, adjustments, stubs, export logs)
    ticketing: 발표회 티켓 (Venues, shows, seats, reservations, orders, tickets)
    merchandise: 상품 판매 (Products, variants, inventory, orders)
    communication: 메시지함 (Threads, messages, attachments)
    payment: 수강료 결제 (Payment)
"""

from app.models.organization import Organization, StudioRoom
from app.models.user import User
from app.models.token import RefreshToken
from app.models.people import Teacher, TeacherAvailability, Student, Guardian, StudentGuardian
from app.models.dance_class import DanceStyle, ClassInstance
from app.models.schedule import Schedule, ScheduleClass, SchedulePublishHistory
from app.models.enrollment import Enrollment, EnrollmentRequest
from app.models.attendance import AttendanceRecord, Absence, MakeupBooking
from app.models.evaluation import ClassEvaluation
from app.models.payroll import TeacherPayRate, PayrollPeriod, PayrollTimeEntry, PayrollAdjustment, PayStub, PayrollExportLog
from app.models.ticketing import Venue, VenueSeat, RecitalShow, ShowSeat, SeatReservation, ReservationSeat, TicketOrder, Ticket
from app.models.merchandise import Product, ProductVariant, Inventory, MerchandiseOrder, MerchandiseOrderItem
from app.models.communication import MessageThread, Message, MessageAttachment
from app.models.payment import Payment

__all__ = [
    "Organization", "StudioRoom",
    "User",
    "RefreshToken",
    "Teacher", "TeacherAvailability", "Student", "Guardian", "StudentGuardian",
    "DanceStyle", "ClassInstance",
    "Schedule", "ScheduleClass", "SchedulePublishHistory",
    "Enrollment", "EnrollmentRequest",
    "AttendanceRecord", "Absence", "MakeupBooking",
    "ClassEvaluation",
    "TeacherPayRate", "PayrollPeriod", "PayrollTimeEntry", "PayrollAdjustment", "PayStub", "PayrollExportLog",
    "Venue", "VenueSeat", "RecitalShow", "ShowSeat", "SeatReservation", "ReservationSeat", "TicketOrder", "Ticket",
    "Product", "ProductVariant", "Inventory", "MerchandiseOrder", "MerchandiseOrderItem",
    "MessageThread", "Message", "MessageAttachment",
    "Payment",
]
