"""관리자 스케줄 라우터 — 시즌 스케줄, 시간표 슬롯, 게시 API.

Admin Schedule Router — Term schedules, their weekly class slots, the
conflict checker, publishing with history, and duplication into a new
term.

Permission Matrix:
    - 조회: admin + staff + teacher
    - 스케줄/슬롯 변경, 게시, 복제: admin + staff
    - 강제 배치 (force): admin only (checked in the service)
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin_or_staff, require_instructor
from app.database import get_db
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.dance_class import (
    ConflictCheckRequest,
    DuplicateRequest,
    PublishRequest,
    ScheduleCreate,
    ScheduleUpdate,
    SlotCreate,
    SlotUpdate,
)
from app.services.schedule_service import schedule_service

router: APIRouter = APIRouter()


# === 스케줄 CRUD ===

@router.get("")
async def list_schedules(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> list[dict]:
    """스케줄 목록을 조회합니다."""
    return await schedule_service.list_schedules(db, organization_id=current_user.organization_id)


@router.post("", status_code=201)
async def create_schedule(
    data: ScheduleCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """새 스케줄 (학기) 을 생성합니다."""
    result = await schedule_service.create_schedule(db, organization_id=current_user.organization_id, data=data)
    await db.commit()
    return result


# check-conflicts 는 /{schedule_id} 보다 먼저 등록
@router.post("/check-conflicts")
async def check_conflicts(
    data: ConflictCheckRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """슬롯 배치 충돌을 미리 검사합니다 (저장하지 않음).

    Dry run of the room/teacher/availability checks for a candidate slot.
    """
    return await schedule_service.check_conflicts(db, organization_id=current_user.organization_id, data=data)


@router.get("/{schedule_id}")
async def get_schedule(
    schedule_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """스케줄 상세 (슬롯 포함) 를 조회합니다."""
    return await schedule_service.get_schedule(
        db, schedule_id=schedule_id, organization_id=current_user.organization_id
    )


@router.put("/{schedule_id}")
async def update_schedule(
    schedule_id: UUID,
    data: ScheduleUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """스케줄을 수정합니다."""
    result = await schedule_service.update_schedule(
        db, schedule_id=schedule_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


@router.delete("/{schedule_id}", response_model=MessageResponse)
async def delete_schedule(
    schedule_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """스케줄을 삭제합니다."""
    await schedule_service.delete_schedule(db, schedule_id=schedule_id, organization_id=current_user.organization_id)
    await db.commit()
    return {"message": "스케줄이 삭제되었습니다 (Schedule deleted)"}


# === 슬롯 (Class slots) ===

@router.post("/{schedule_id}/classes", status_code=201)
async def add_slot(
    schedule_id: UUID,
    data: SlotCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """스케줄에 수업 슬롯을 추가합니다. 충돌이 있으면 400."""
    result = await schedule_service.add_slot(
        db,
        schedule_id=schedule_id,
        organization_id=current_user.organization_id,
        data=data,
        current_user=current_user,
    )
    await db.commit()
    return result


@router.put("/{schedule_id}/classes/{slot_id}")
async def update_slot(
    schedule_id: UUID,
    slot_id: UUID,
    data: SlotUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """수업 슬롯을 수정합니다. 충돌 검사는 자기 자신을 제외합니다."""
    result = await schedule_service.update_slot(
        db,
        schedule_id=schedule_id,
        slot_id=slot_id,
        organization_id=current_user.organization_id,
        data=data,
        current_user=current_user,
    )
    await db.commit()
    return result


@router.delete("/{schedule_id}/classes/{slot_id}", response_model=MessageResponse)
async def delete_slot(
    schedule_id: UUID,
    slot_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """수업 슬롯을 삭제합니다."""
    await schedule_service.delete_slot(
        db, schedule_id=schedule_id, slot_id=slot_id, organization_id=current_user.organization_id
    )
    await db.commit()
    return {"message": "슬롯이 삭제되었습니다 (Slot deleted)"}


# === 게시 / 복제 (Publish & duplicate) ===

@router.post("/{schedule_id}/publish")
async def publish_schedule(
    schedule_id: UUID,
    data: PublishRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """스케줄을 게시합니다 — 버전 증가 및 이력 기록.

    Publish the schedule: bumps published_version and records history.
    """
    result = await schedule_service.publish(
        db,
        schedule_id=schedule_id,
        organization_id=current_user.organization_id,
        data=data,
        current_user=current_user,
    )
    await db.commit()
    return result


@router.get("/{schedule_id}/history")
async def get_publish_history(
    schedule_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> list[dict]:
    """게시 이력을 조회합니다."""
    return await schedule_service.get_history(db, schedule_id=schedule_id, organization_id=current_user.organization_id)


@router.post("/{schedule_id}/duplicate", status_code=201)
async def duplicate_schedule(
    schedule_id: UUID,
    data: DuplicateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """스케줄을 새 학기로 복제합니다 (선택적으로 슬롯 포함)."""
    result = await schedule_service.duplicate(
        db, schedule_id=schedule_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result
