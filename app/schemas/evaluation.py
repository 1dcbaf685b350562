"""학생 평가 관련 Pydantic 요청 스키마 정의.

Student evaluation Pydantic request schema definitions.
Ratings are integers from 1 to 5; anything else is rejected with 400.
"""

from uuid import UUID
from pydantic import BaseModel, Field


class SkillRating(BaseModel):
    """기술별 점수 (e.g. {"name": "Turns", "rating": 4})."""

    name: str = Field(min_length=1, max_length=100)
    rating: int = Field(ge=1, le=5)


class EvaluationCreate(BaseModel):
    """평가 작성 요청 스키마.

    Attributes:
        student_id: 학생 UUID
        class_instance_id: 수업 UUID
        schedule_id: 학기 UUID (optional)
        overall_rating / effort_rating / attitude_rating: 1~5
        strengths / areas_for_improvement / comments: 서술형 평가
        skills: 기술별 점수 목록
    """

    student_id: UUID
    class_instance_id: UUID
    schedule_id: UUID | None = None
    overall_rating: int | None = Field(default=None, ge=1, le=5)
    effort_rating: int | None = Field(default=None, ge=1, le=5)
    attitude_rating: int | None = Field(default=None, ge=1, le=5)
    strengths: str | None = None
    areas_for_improvement: str | None = None
    comments: str | None = None
    skills: list[SkillRating] = []


class EvaluationUpdate(BaseModel):
    """평가 수정 요청 (부분 업데이트, 제출 전까지만)."""

    overall_rating: int | None = Field(default=None, ge=1, le=5)
    effort_rating: int | None = Field(default=None, ge=1, le=5)
    attitude_rating: int | None = Field(default=None, ge=1, le=5)
    strengths: str | None = None
    areas_for_improvement: str | None = None
    comments: str | None = None
    skills: list[SkillRating] | None = None
