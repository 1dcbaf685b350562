"""관리자 API 라우터 패키지 — 모든 스튜디오 측 엔드포인트 통합.

Admin API Router package — Aggregates all studio-side (admin, staff,
teacher) endpoints into a single router for inclusion in the FastAPI
application.

Included routers (Phase 1 — Foundation):
    - auth: 스튜디오 측 인증, 최초 설정 (Staff-side login & first-run setup)
    - studio: 스튜디오 프로필, 로고, 강의실 (Studio profile, logo, rooms)
    - users: 직원/강사 계정 (Staff and teacher logins)
    - storage: 업로드 URL (Presigned uploads)

Included routers (Phase 2 — People & Classes):
    - teachers, students, guardians
    - dance-styles, classes, schedules

Included routers (Phase 3 — Enrollment & Attendance):
    - enrollments, enrollment-requests, attendance, evaluations

Included routers (Phase 4 — Money):
    - payroll, payments

Included routers (Phase 5 — Recitals & Merchandise):
    - venues, recitals, merchandise

Included routers (Phase 6 — Communication & Reporting):
    - inbox, analytics
"""

from fastapi import APIRouter

# Phase 1 — Foundation 라우터 임포트
from app.api.admin.auth import router as auth_router
from app.api.admin.studio import router as studio_router
from app.api.admin.users import router as users_router
from app.api.admin.storage import router as storage_router

# Phase 2 — People & Classes 라우터 임포트
from app.api.admin.teachers import router as teachers_router
from app.api.admin.students import guardians_router, router as students_router
from app.api.admin.classes import router as classes_router, styles_router
from app.api.admin.schedules import router as schedules_router

# Phase 3 — Enrollment & Attendance 라우터 임포트
from app.api.admin.enrollments import requests_router as enrollment_requests_router
from app.api.admin.enrollments import router as enrollments_router
from app.api.admin.attendance import router as attendance_router
from app.api.admin.evaluations import router as evaluations_router

# Phase 4 — Money 라우터 임포트
from app.api.admin.payroll import router as payroll_router
from app.api.admin.payments import router as payments_router

# Phase 5 — Recitals & Merchandise 라우터 임포트
from app.api.admin.recitals import router as recitals_router, venues_router
from app.api.admin.merchandise import router as merchandise_router

# Phase 6 — Communication & Reporting 라우터 임포트
from app.api.admin.inbox import router as inbox_router
from app.api.admin.analytics import router as analytics_router

admin_router: APIRouter = APIRouter()

# ---------------------------------------------------------------------------
# Phase 1 라우터 등록 — Register Phase 1 (Foundation) routers
# ---------------------------------------------------------------------------
admin_router.include_router(auth_router, prefix="/auth", tags=["Admin Auth"])
admin_router.include_router(studio_router, prefix="/studio", tags=["Studio"])
admin_router.include_router(users_router, prefix="/users", tags=["Users"])
admin_router.include_router(storage_router, prefix="/storage", tags=["Storage"])

# ---------------------------------------------------------------------------
# Phase 2 라우터 등록 — Register Phase 2 (People & Classes) routers
# ---------------------------------------------------------------------------
admin_router.include_router(teachers_router, prefix="/teachers", tags=["Teachers"])
admin_router.include_router(students_router, prefix="/students", tags=["Students"])
admin_router.include_router(guardians_router, prefix="/guardians", tags=["Guardians"])
admin_router.include_router(styles_router, prefix="/dance-styles", tags=["Dance Styles"])
admin_router.include_router(classes_router, prefix="/classes", tags=["Classes"])
# 스케줄: /schedules 하위 (Terms, slots, publish history)
admin_router.include_router(schedules_router, prefix="/schedules", tags=["Schedules"])

# ---------------------------------------------------------------------------
# Phase 3 라우터 등록 — Register Phase 3 (Enrollment & Attendance) routers
# ---------------------------------------------------------------------------
admin_router.include_router(enrollments_router, prefix="/enrollments", tags=["Enrollments"])
admin_router.include_router(
    enrollment_requests_router, prefix="/enrollment-requests", tags=["Enrollment Requests"]
)
admin_router.include_router(attendance_router, prefix="/attendance", tags=["Attendance"])
admin_router.include_router(evaluations_router, prefix="/evaluations", tags=["Evaluations"])

# ---------------------------------------------------------------------------
# Phase 4 라우터 등록 — Register Phase 4 (Money) routers
# ---------------------------------------------------------------------------
admin_router.include_router(payroll_router, prefix="/payroll", tags=["Payroll"])
admin_router.include_router(payments_router, prefix="/payments", tags=["Payments"])

# ---------------------------------------------------------------------------
# Phase 5 라우터 등록 — Register Phase 5 (Recitals & Merchandise) routers
# ---------------------------------------------------------------------------
admin_router.include_router(venues_router, prefix="/venues", tags=["Venues"])
admin_router.include_router(recitals_router, prefix="/recitals", tags=["Recitals"])
admin_router.include_router(merchandise_router, prefix="/merchandise", tags=["Merchandise"])

# ---------------------------------------------------------------------------
# Phase 6 라우터 등록 — Register Phase 6 (Communication & Reporting) routers
# ---------------------------------------------------------------------------
admin_router.include_router(inbox_router, prefix="/inbox", tags=["Inbox"])
admin_router.include_router(analytics_router, prefix="/analytics", tags=["Analytics"])
