"""인증 관련 Pydantic 요청/응답 스키마 정의.

Authentication-related Pydantic request/response schema definitions.
Covers staff/parent login, parent registration, token issuance/refresh,
first-time studio setup and current user info.
"""

from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    """로그인 요청 스키마.

    Login request schema for the admin and app clients.
    Admin login rejects parent accounts, app login accepts only parents.

    Attributes:
        email: 로그인 이메일 (Login email, case-insensitive)
        password: 비밀번호 (Plain text password, verified against bcrypt hash)
        studio_code: 스튜디오 코드 (Studio code; needed when the email exists at several studios)
    """

    email: EmailStr  # 로그인 이메일 (Login email)
    password: str  # 비밀번호 — 평문, 서버에서 bcrypt 해시와 비교 (Plain text, compared to bcrypt hash)
    studio_code: str | None = None  # 스튜디오 코드 — 선택 (Studio code, optional)


class RegisterRequest(BaseModel):
    """보호자 회원가입 요청 스키마.

    Parent self-registration request schema. Creates a parent login and
    the matching guardian record in the studio identified by ``studio_code``.

    Attributes:
        studio_code: 스튜디오 코드 (Code handed out by the studio)
        email: 이메일 (Login email, unique within the studio)
        password: 비밀번호 (At least 8 characters, bcrypt-hashed on server)
        first_name / last_name: 보호자 이름 (Guardian name)
        phone: 연락처 (Optional phone)
    """

    studio_code: str = Field(min_length=6, max_length=6)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=50)


class SetupRequest(BaseModel):
    """최초 설정 요청 — 첫 스튜디오와 관리자 계정 생성.

    First-run setup request. Only accepted while no studio exists.
    """

    studio_name: str = Field(min_length=1, max_length=255)
    timezone: str = "America/New_York"
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    full_name: str = Field(min_length=1, max_length=255)


class TokenResponse(BaseModel):
    """JWT 토큰 발급 응답 스키마.

    JWT token issuance response schema.
    Returned after successful login, registration or token refresh.

    Attributes:
        access_token: JWT 액세스 토큰 (Short-lived access token)
        refresh_token: JWT 리프레시 토큰 (Long-lived refresh token)
        token_type: 토큰 유형 (Always "bearer" for Authorization header)
    """

    access_token: str  # JWT 액세스 토큰 — 만료: 30분 기본 (Access token, default TTL: 30min)
    refresh_token: str  # JWT 리프레시 토큰 — 만료: 7일 기본 (Refresh token, default TTL: 7 days)
    token_type: str = "bearer"  # 토큰 유형 — 항상 "bearer" (Token type for Authorization header)


class RefreshRequest(BaseModel):
    """토큰 갱신 요청 스키마.

    Exchanges a valid refresh token for a new access/refresh token pair.
    """

    refresh_token: str  # 기존 리프레시 토큰 (Current refresh token)


class UserMeResponse(BaseModel):
    """현재 사용자 정보 응답 스키마 (GET /me).

    Current user info response schema for the /me endpoint.

    Attributes:
        id: 사용자 UUID (User unique identifier)
        email: 로그인 이메일 (Login email)
        full_name: 실명 (Full display name)
        role: 역할 (admin | staff | teacher | parent)
        organization_id: 소속 스튜디오 UUID (Studio identifier)
        organization_name: 스튜디오 이름 (Studio name)
        studio_code: 스튜디오 코드 (Studio registration code)
        teacher_id: 연결된 강사 UUID (Teacher logins only)
        guardian_id: 연결된 보호자 UUID (Parent logins only)
    """

    id: str
    email: str
    full_name: str
    role: str
    organization_id: str
    organization_name: str
    studio_code: str
    is_active: bool
    teacher_id: str | None = None
    guardian_id: str | None = None
