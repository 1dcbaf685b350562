"""관리자 분석 라우터 — 등록, 매출, 유지율, 수업/강사 지표 API.

Admin Analytics Router — Read-only reports over a date range. Admin and
staff; revenue is admin only.
"""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin, require_admin_or_staff
from app.database import get_db
from app.models.user import User
from app.services.analytics_service import analytics_service

router: APIRouter = APIRouter()


@router.get("/enrollment")
async def enrollment_report(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
) -> dict:
    """월별 신규 등록, 탈퇴, 순증가, 스타일·연령대별 분포."""
    return await analytics_service.enrollment(
        db, organization_id=current_user.organization_id, start_date=start_date, end_date=end_date
    )


@router.get("/revenue")
async def revenue_report(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
) -> dict:
    """수강료·티켓·상품 매출 (환불 차감). 관리자만."""
    return await analytics_service.revenue(
        db, organization_id=current_user.organization_id, start_date=start_date, end_date=end_date
    )


@router.get("/retention")
async def retention_report(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
) -> dict:
    """학기 간 재등록률."""
    return await analytics_service.retention(
        db, organization_id=current_user.organization_id, start_date=start_date, end_date=end_date
    )


@router.get("/class-performance")
async def class_performance_report(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
) -> dict:
    """수업별 정원 활용률, 대기자, 출석률."""
    return await analytics_service.class_performance(
        db, organization_id=current_user.organization_id, start_date=start_date, end_date=end_date
    )


@router.get("/teacher-metrics")
async def teacher_metrics_report(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
) -> dict:
    """강사별 담당 수업, 주간 수업 시간, 학생 수, 출석률."""
    return await analytics_service.teacher_metrics(
        db, organization_id=current_user.organization_id, start_date=start_date, end_date=end_date
    )
