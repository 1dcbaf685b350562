"""관리자 스토리지 라우터 — presigned URL 생성 + 로컬 업로드 API.

Admin Storage Router — Generates presigned URLs for S3 or local uploads.
로컬 모드에서는 PUT 엔드포인트로 파일을 직접 받아 저장합니다.
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from app.api.deps import require_instructor
from app.models.user import User
from app.services.storage_service import storage_service

router: APIRouter = APIRouter()


class PresignedUrlRequest(BaseModel):
    filename: str = Field(min_length=1, max_length=255)
    content_type: str = Field(min_length=1, max_length=100)
    folder: Literal["attachments", "logos", "products"] = "attachments"


class PresignedUrlResponse(BaseModel):
    upload_url: str
    file_url: str
    key: str


@router.post("/presigned-url", response_model=PresignedUrlResponse)
async def create_presigned_url(
    data: PresignedUrlRequest,
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """presigned upload URL을 생성합니다 (S3 또는 로컬)."""
    return storage_service.generate_presigned_upload_url(
        filename=data.filename,
        content_type=data.content_type,
        folder=data.folder,
    )


@router.put("/upload/{key:path}")
async def upload_local(
    key: str,
    request: Request,
) -> dict:
    """로컬 모드 전용 — 파일을 서버에 직접 저장합니다.

    The local stand-in for the S3 presigned PUT. No auth header: the URL
    itself was issued to an authenticated caller.
    """
    body = await request.body()
    storage_service.save_local(key, body)
    return {"ok": True}
