"""스튜디오 서비스 — 스튜디오 프로필, 로고, 강의실 비즈니스 로직.

Studio Service — Business logic for the studio profile, logo upload and
rooms. Every operation is scoped to the caller's studio.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.organization import Organization, StudioRoom
from app.repositories.organization_repository import organization_repository, room_repository
from app.schemas.organization import (
    LogoFinalizeRequest,
    RoomCreate,
    RoomUpdate,
    StudioResponse,
    StudioUpdate,
    UploadUrlRequest,
)
from app.services.storage_service import storage_service
from app.utils.exceptions import BadRequestError
from app.utils.timeutil import studio_zone


class OrganizationService:
    """스튜디오 관련 비즈니스 로직을 처리하는 서비스.

    Service handling the studio profile and its rooms.
    """

    def _to_response(self, org: Organization) -> StudioResponse:
        return StudioResponse(
            id=str(org.id),
            name=org.name,
            code=org.code,
            email=org.email,
            phone=org.phone,
            website=org.website,
            address=org.address,
            timezone=org.timezone,
            logo_url=org.logo_url,
            is_active=org.is_active,
            created_at=org.created_at,
        )

    def _room_to_dict(self, room: StudioRoom) -> dict:
        return {
            "id": str(room.id),
            "name": room.name,
            "capacity": room.capacity,
            "is_active": room.is_active,
            "created_at": room.created_at,
        }

    # === 스튜디오 프로필 (Studio profile) ===

    async def get_current(self, db: AsyncSession, organization_id: UUID) -> StudioResponse:
        """현재 스튜디오 정보를 조회합니다.

        Retrieve the caller's studio profile.

        Raises:
            NotFoundError: 스튜디오를 찾을 수 없을 때 (Studio not found)
        """
        org: Organization = await organization_repository.get_or_404(db, organization_id)
        return self._to_response(org)

    async def update_current(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: StudioUpdate,
    ) -> StudioResponse:
        """스튜디오 프로필을 수정합니다.

        Update the studio profile. The timezone must be a known IANA name.

        Raises:
            BadRequestError: 알 수 없는 타임존 (Unknown timezone)
        """
        org: Organization = await organization_repository.get_or_404(db, organization_id)
        update_data: dict = data.model_dump(exclude_unset=True)
        if update_data.get("timezone"):
            if studio_zone(update_data["timezone"]).key != update_data["timezone"]:
                raise BadRequestError("알 수 없는 타임존입니다 (Unknown timezone)")
        org = await organization_repository.update(db, org, update_data)
        return self._to_response(org)

    def create_logo_upload_url(self, data: UploadUrlRequest) -> dict[str, str]:
        """로고 업로드용 presigned URL — Presigned upload for the studio logo."""
        if not data.content_type.startswith("image/"):
            raise BadRequestError("이미지 파일만 업로드할 수 있습니다 (Logo must be an image)")
        return storage_service.generate_presigned_upload_url(
            filename=data.filename,
            content_type=data.content_type,
            folder="logos",
        )

    async def finalize_logo(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: LogoFinalizeRequest,
    ) -> StudioResponse:
        """업로드된 로고를 최종 위치로 옮기고 logo_url 저장.

        Move the uploaded logo out of ``temp/`` and store its final URL.
        """
        org: Organization = await organization_repository.get_or_404(db, organization_id)
        final_url: str = storage_service.finalize_upload(data.file_url)
        org = await organization_repository.update(db, org, {"logo_url": final_url})
        return self._to_response(org)

    # === 강의실 (Rooms) ===

    async def list_rooms(self, db: AsyncSession, organization_id: UUID) -> list[dict]:
        rooms = await room_repository.get_by_org(db, organization_id)
        return [self._room_to_dict(r) for r in rooms]

    async def create_room(self, db: AsyncSession, organization_id: UUID, data: RoomCreate) -> dict:
        room: StudioRoom = await room_repository.create(
            db,
            {
                "organization_id": organization_id,
                "name": data.name,
                "capacity": data.capacity,
                "is_active": data.is_active,
            },
        )
        return self._room_to_dict(room)

    async def update_room(
        self,
        db: AsyncSession,
        room_id: UUID,
        organization_id: UUID,
        data: RoomUpdate,
    ) -> dict:
        room: StudioRoom = await room_repository.get_or_404(db, room_id, organization_id)
        room = await room_repository.update(db, room, data.model_dump(exclude_unset=True))
        return self._room_to_dict(room)

    async def delete_room(self, db: AsyncSession, room_id: UUID, organization_id: UUID) -> None:
        """강의실 삭제 — 편성된 슬롯의 room_id 는 NULL 로 남음."""
        await room_repository.get_or_404(db, room_id, organization_id)
        await room_repository.delete(db, room_id, organization_id)


# 싱글턴 인스턴스 — Singleton instance
organization_service: OrganizationService = OrganizationService()
