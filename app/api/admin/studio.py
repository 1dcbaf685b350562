"""관리자 스튜디오 라우터 — 스튜디오 프로필, 로고, 강의실 API.

Admin Studio Router — Studio profile, logo upload and room management.
Reading is open to every studio-side role; changes are admin only.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin, require_instructor
from app.database import get_db
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.organization import (
    LogoFinalizeRequest,
    RoomCreate,
    RoomUpdate,
    StudioResponse,
    StudioUpdate,
    UploadUrlRequest,
)
from app.services.organization_service import organization_service

router: APIRouter = APIRouter()


# === 프로필 (Profile) ===

@router.get("", response_model=StudioResponse)
async def get_studio(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> StudioResponse:
    """현재 스튜디오 정보를 조회합니다."""
    return await organization_service.get_current(db, organization_id=current_user.organization_id)


@router.put("", response_model=StudioResponse)
async def update_studio(
    data: StudioUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> StudioResponse:
    """스튜디오 프로필을 수정합니다. 관리자만 가능.

    Update the studio profile. Admin only.
    """
    result = await organization_service.update_current(db, organization_id=current_user.organization_id, data=data)
    await db.commit()
    return result


@router.post("/logo/upload-url")
async def create_logo_upload_url(
    data: UploadUrlRequest,
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """로고 업로드용 presigned URL을 발급합니다."""
    return organization_service.create_logo_upload_url(data)


@router.put("/logo", response_model=StudioResponse)
async def finalize_logo(
    data: LogoFinalizeRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> StudioResponse:
    """업로드한 로고를 확정합니다.

    Move the temp upload to its final key and store it as the studio logo.
    """
    result = await organization_service.finalize_logo(db, organization_id=current_user.organization_id, data=data)
    await db.commit()
    return result


# === 강의실 (Rooms) ===

@router.get("/rooms")
async def list_rooms(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> list[dict]:
    """강의실 목록을 조회합니다."""
    return await organization_service.list_rooms(db, organization_id=current_user.organization_id)


@router.post("/rooms", status_code=201)
async def create_room(
    data: RoomCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """강의실을 추가합니다."""
    result = await organization_service.create_room(db, organization_id=current_user.organization_id, data=data)
    await db.commit()
    return result


@router.put("/rooms/{room_id}")
async def update_room(
    room_id: UUID,
    data: RoomUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """강의실 정보를 수정합니다."""
    result = await organization_service.update_room(
        db, room_id=room_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


@router.delete("/rooms/{room_id}", response_model=MessageResponse)
async def delete_room(
    room_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """강의실을 삭제합니다."""
    await organization_service.delete_room(db, room_id=room_id, organization_id=current_user.organization_id)
    await db.commit()
    return {"message": "강의실이 삭제되었습니다 (Room deleted)"}
