"""앱 공개 시간표 라우터 — 게시된 활성 스케줄.

App Schedule Router — The studio's published timetable. Open to anyone
with the studio code; a logged-in caller's own studio is used otherwise.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_optional_user, resolve_studio_id
from app.database import get_db
from app.models.user import User
from app.services.schedule_service import schedule_service

router: APIRouter = APIRouter()


@router.get("")
async def get_public_schedule(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_optional_user)],
    studio_code: Annotated[str | None, Query()] = None,
) -> dict:
    """활성 스케줄의 게시된 수업 슬롯을 조회합니다."""
    organization_id = await resolve_studio_id(db, current_user, studio_code)
    return await schedule_service.get_public_schedule(db, organization_id=organization_id)
