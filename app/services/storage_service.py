"""스토리지 서비스 — S3 또는 로컬 파일 저장.

Storage Service — S3 presigned URL or local file storage.
AWS 키가 비어있으면 자동으로 로컬 모드로 전환됩니다.
Client uploads (studio logo, message attachments) go to ``temp/`` first
and are moved to their final key by ``finalize_upload()``. Server
generated files (PDF reports) are written straight to their final key.
"""

import logging
import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path

from app.config import settings

logger = logging.getLogger(__name__)

# 로컬 업로드 디렉토리 — .env의 LOCAL_UPLOADS_DIR 또는 프로젝트 루트의 uploads/
_SERVER_ROOT: Path = Path(__file__).resolve().parent.parent.parent
UPLOADS_DIR: Path = Path(settings.LOCAL_UPLOADS_DIR) if settings.LOCAL_UPLOADS_DIR else _SERVER_ROOT / "uploads"

# 허용 폴더 — Upload folders in use
UPLOAD_FOLDERS: frozenset[str] = frozenset({"logos", "attachments", "reports", "products"})


class StorageService:
    """파일 업로드 서비스 — S3 또는 로컬 모드 자동 선택."""

    def __init__(self) -> None:
        self._client = None

    @property
    def is_local(self) -> bool:
        return not settings.AWS_ACCESS_KEY_ID or not settings.AWS_S3_BUCKET

    @property
    def client(self):
        if self.is_local:
            return None
        if self._client is None:
            import boto3
            from botocore.config import Config as BotoConfig

            self._client = boto3.client(
                "s3",
                region_name=settings.AWS_S3_REGION,
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                config=BotoConfig(signature_version="s3v4"),
            )
        return self._client

    @property
    def _local_base(self) -> str:
        return settings.PUBLIC_BASE_URL.rstrip("/")

    @property
    def _s3_base(self) -> str:
        return f"https://{settings.AWS_S3_BUCKET}.s3.{settings.AWS_S3_REGION}.amazonaws.com"

    def public_url(self, key: str) -> str:
        if self.is_local:
            return f"{self._local_base}/uploads/{key}"
        return f"{self._s3_base}/{key}"

    def _generate_key(self, filename: str, folder: str, temp: bool = True) -> str:
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
        date_prefix = datetime.now(timezone.utc).strftime("%Y/%m/%d")
        key = f"{folder}/{date_prefix}/{uuid.uuid4().hex}.{ext}"
        return f"temp/{key}" if temp else key

    def generate_presigned_upload_url(
        self,
        filename: str,
        content_type: str,
        folder: str = "attachments",
        expires: int = 3600,
    ) -> dict[str, str]:
        """presigned PUT URL과 temp file URL을 반환합니다.

        Return a presigned PUT URL plus the temp file URL. Call
        ``finalize_upload()`` once the client has uploaded the file.
        """
        if folder not in UPLOAD_FOLDERS:
            folder = "attachments"
        key = self._generate_key(filename, folder)

        if self.is_local:
            upload_url = f"{self._local_base}/api/v1/admin/storage/upload/{key}"
            return {"upload_url": upload_url, "file_url": self.public_url(key), "key": key}

        upload_url = self.client.generate_presigned_url(
            "put_object",
            Params={
                "Bucket": settings.AWS_S3_BUCKET,
                "Key": key,
                "ContentType": content_type,
            },
            ExpiresIn=expires,
        )
        return {"upload_url": upload_url, "file_url": self.public_url(key), "key": key}

    def save_local(self, key: str, data: bytes) -> str:
        """로컬 파일 저장. 경로를 반환합니다."""
        path = UPLOADS_DIR / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return str(path)

    def _extract_key(self, file_url: str) -> str | None:
        """file URL에서 storage key를 추출합니다."""
        prefix = f"{self._local_base}/uploads/" if self.is_local else f"{self._s3_base}/"
        if file_url.startswith(prefix):
            return file_url[len(prefix):]
        return None

    def finalize_upload(self, file_url: str) -> str:
        """temp 파일을 최종 위치로 이동합니다. 최종 file_url을 반환합니다.

        temp/ 경로가 아닌 파일은 그대로 반환합니다.
        """
        key = self._extract_key(file_url)
        if not key or not key.startswith("temp/"):
            return file_url

        final_key = key[len("temp/"):]

        if self.is_local:
            src = UPLOADS_DIR / key
            dst = UPLOADS_DIR / final_key
            dst.parent.mkdir(parents=True, exist_ok=True)
            if src.exists():
                shutil.move(str(src), str(dst))
            return self.public_url(final_key)

        self.client.copy_object(
            Bucket=settings.AWS_S3_BUCKET,
            Key=final_key,
            CopySource={"Bucket": settings.AWS_S3_BUCKET, "Key": key},
        )
        self.client.delete_object(Bucket=settings.AWS_S3_BUCKET, Key=key)
        return self.public_url(final_key)


storage_service: StorageService = StorageService()
