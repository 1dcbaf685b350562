"""앱 API 라우터 패키지 — 보호자 및 공개 엔드포인트 통합.

App API Router package — Aggregates all parent-facing and public
endpoints into a single router for inclusion in the FastAPI application.

Included routers (Phase 1 — Foundation):
    - auth: 보호자 회원가입/로그인 (Parent registration and login)

Included routers (Phase 2 — Family):
    - my/students: 내 자녀 (My children and their timetables)
    - my/enrollments, my/enrollment-requests: 수강 등록 (Enrollment)
    - my/attendance, my/absences, my/evaluations: 출결/평가 (Progress)
    - my/payments, my/messages: 결제/문의 (Account)

Included routers (Phase 3 — Public):
    - schedule: 공개 시간표 (Published timetable)
    - shows, seat-reservations, ticket-orders: 발표회 티켓 (Recital tickets)
    - merchandise: 상품 (Merchandise shop)
"""

from fastapi import APIRouter

# Phase 1 — Foundation 라우터 임포트
from app.api.app.auth import router as auth_router

# Phase 2 — Family 라우터 임포트
from app.api.app.students import router as students_router
from app.api.app.enrollments import requests_router as enrollment_requests_router
from app.api.app.enrollments import router as enrollments_router
from app.api.app.progress import router as progress_router
from app.api.app.account import router as account_router

# Phase 3 — Public 라우터 임포트
from app.api.app.schedule import router as schedule_router
from app.api.app.tickets import orders_router, reservations_router, shows_router
from app.api.app.merchandise import my_orders_router, router as merchandise_router

app_router: APIRouter = APIRouter()

# ---------------------------------------------------------------------------
# Phase 1 라우터 등록 — Register Phase 1 (Foundation) routers
# ---------------------------------------------------------------------------
app_router.include_router(auth_router, prefix="/auth", tags=["App Auth"])

# ---------------------------------------------------------------------------
# Phase 2 라우터 등록 — Register Phase 2 (Family) routers
# ---------------------------------------------------------------------------
app_router.include_router(students_router, prefix="/my/students", tags=["My Students"])
app_router.include_router(enrollments_router, prefix="/my/enrollments", tags=["My Enrollments"])
app_router.include_router(
    enrollment_requests_router, prefix="/my/enrollment-requests", tags=["My Enrollment Requests"]
)
# 출결/평가: /my/attendance, /my/absences, /my/evaluations
app_router.include_router(progress_router, prefix="/my", tags=["My Progress"])
# 결제/문의: /my/payments, /my/messages
app_router.include_router(account_router, prefix="/my", tags=["My Account"])
app_router.include_router(my_orders_router, prefix="/my/merchandise-orders", tags=["My Merchandise Orders"])

# ---------------------------------------------------------------------------
# Phase 3 라우터 등록 — Register Phase 3 (Public) routers
# ---------------------------------------------------------------------------
app_router.include_router(schedule_router, prefix="/schedule", tags=["Schedule"])
app_router.include_router(shows_router, prefix="/shows", tags=["Shows"])
app_router.include_router(reservations_router, prefix="/seat-reservations", tags=["Seat Reservations"])
app_router.include_router(orders_router, prefix="/ticket-orders", tags=["Ticket Orders"])
app_router.include_router(merchandise_router, prefix="/merchandise", tags=["Merchandise"])
