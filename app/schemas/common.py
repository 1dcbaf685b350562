"""공통 Pydantic 응답 스키마 정의.

Common Pydantic response schema definitions shared by every API domain:
the paginated list envelope and the generic confirmation message.
"""

from typing import Any
from pydantic import BaseModel


class PaginatedResponse(BaseModel):
    """페이지네이션 응답 스키마.

    Paginated response wrapper schema.

    Attributes:
        items: 항목 목록 (List of result items)
        total: 전체 항목 수 (Total count across all pages)
        page: 현재 페이지 번호 (Current page number, 1-based)
        per_page: 페이지당 항목 수 (Items per page)
        pages: 전체 페이지 수 (Total page count)
    """

    items: list[Any]
    total: int
    page: int
    per_page: int
    pages: int = 0


class MessageResponse(BaseModel):
    """범용 메시지 응답 스키마.

    Generic message response schema for deletes and other actions that
    return a human-readable confirmation.
    """

    message: str
