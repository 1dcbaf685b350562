"""관리자 평가 라우터 — 학생 수업 평가 API.

Admin Evaluation Router — API endpoints for student class evaluations.

Permission Matrix:
    - 조회/작성: admin + staff + teacher (강사는 담당 수업만)
    - 수정/삭제: admin + staff 는 모두, 강사는 본인 작성 초안만
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_teacher_class_scope, require_instructor
from app.database import get_db
from app.models.user import User
from app.schemas.common import MessageResponse, PaginatedResponse
from app.schemas.evaluation import EvaluationCreate, EvaluationUpdate
from app.services.evaluation_service import evaluation_service
from app.utils.export import bytes_download

router: APIRouter = APIRouter()


@router.get("", response_model=PaginatedResponse)
async def list_evaluations(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
    student_id: Annotated[UUID | None, Query()] = None,
    class_instance_id: Annotated[UUID | None, Query()] = None,
    schedule_id: Annotated[UUID | None, Query()] = None,
    status: Annotated[str | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> dict:
    """평가 목록을 조회합니다."""
    scope = await get_teacher_class_scope(db, current_user)
    return await evaluation_service.list_evaluations(
        db,
        organization_id=current_user.organization_id,
        scope=scope,
        student_id=student_id,
        class_instance_id=class_instance_id,
        schedule_id=schedule_id,
        status=status,
        page=page,
        per_page=per_page,
    )


@router.get("/students/{student_id}/history")
async def student_history(
    student_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> list[dict]:
    """학생의 평가 이력 (최신순)."""
    scope = await get_teacher_class_scope(db, current_user)
    return await evaluation_service.student_history(
        db, student_id=student_id, organization_id=current_user.organization_id, scope=scope
    )


@router.post("", status_code=201)
async def create_evaluation(
    data: EvaluationCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """평가 초안을 작성합니다.

    Teachers may only evaluate students enrolled in classes they teach.
    One evaluation per (student, class, schedule).
    """
    scope = await get_teacher_class_scope(db, current_user)
    result = await evaluation_service.create_evaluation(
        db, organization_id=current_user.organization_id, data=data, current_user=current_user, scope=scope
    )
    await db.commit()
    return result


@router.get("/{evaluation_id}")
async def get_evaluation(
    evaluation_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """평가 상세를 조회합니다."""
    scope = await get_teacher_class_scope(db, current_user)
    return await evaluation_service.get_evaluation(
        db, evaluation_id=evaluation_id, organization_id=current_user.organization_id, scope=scope
    )


@router.put("/{evaluation_id}")
async def update_evaluation(
    evaluation_id: UUID,
    data: EvaluationUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """평가를 수정합니다."""
    scope = await get_teacher_class_scope(db, current_user)
    result = await evaluation_service.update_evaluation(
        db,
        evaluation_id=evaluation_id,
        organization_id=current_user.organization_id,
        data=data,
        current_user=current_user,
        scope=scope,
    )
    await db.commit()
    return result


@router.delete("/{evaluation_id}", response_model=MessageResponse)
async def delete_evaluation(
    evaluation_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """평가를 삭제합니다."""
    scope = await get_teacher_class_scope(db, current_user)
    await evaluation_service.delete_evaluation(
        db,
        evaluation_id=evaluation_id,
        organization_id=current_user.organization_id,
        current_user=current_user,
        scope=scope,
    )
    await db.commit()
    return {"message": "평가가 삭제되었습니다 (Evaluation deleted)"}


@router.post("/{evaluation_id}/submit")
async def submit_evaluation(
    evaluation_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """평가를 제출합니다. 제출 후에는 보호자에게 공개됩니다."""
    scope = await get_teacher_class_scope(db, current_user)
    result = await evaluation_service.submit(
        db,
        evaluation_id=evaluation_id,
        organization_id=current_user.organization_id,
        current_user=current_user,
        scope=scope,
    )
    await db.commit()
    return result


@router.get("/{evaluation_id}/pdf")
async def download_pdf(
    evaluation_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> StreamingResponse:
    """평가 리포트 PDF를 내려받습니다."""
    scope = await get_teacher_class_scope(db, current_user)
    data, filename = await evaluation_service.render_pdf(
        db, evaluation_id=evaluation_id, organization_id=current_user.organization_id, scope=scope
    )
    return bytes_download(data, filename, "application/pdf")
