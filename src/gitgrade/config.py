"""설정 관리 모듈."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """애플리케이션 설정."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # AI 게이트웨이
    ai_gateway_api_key: str | None = Field(
        default=None,
        description="AI 게이트웨이 API 키 (없으면 분석 불가)",
    )
    ai_gateway_url: str = Field(
        default="https://ai.gateway.lovable.dev/v1/chat/completions",
        description="Chat completion 엔드포인트",
    )
    ai_model: str = Field(
        default="google/gemini-2.5-flash",
        description="사용할 모델 식별자",
    )

    # GitHub
    github_token: str | None = Field(default=None, description="GitHub 액세스 토큰")
    github_api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API 베이스 URL",
    )
    github_metadata_attempts: int = Field(
        default=3,
        ge=1,
        le=3,
        description="기본 메타데이터 호출 최대 시도 횟수 (403일 때만 재시도)",
    )
    github_retry_wait: float = Field(
        default=1.0,
        ge=0,
        description="403 재시도 간 고정 대기 시간 (초)",
    )

    http_timeout: float = Field(default=10.0, description="HTTP 요청 타임아웃 (초)")

    # 스냅샷 크기 제한 (프롬프트 크기 제한용)
    readme_char_limit: int = Field(default=2000, description="README 최대 문자 수")
    manifest_list_limit: int = Field(
        default=40, description="package.json 항목별 최대 이름 수"
    )
    recent_commit_limit: int = Field(default=10, description="최근 커밋 최대 개수")

    # 요청 처리
    max_url_length: int = Field(default=200, description="저장소 URL 최대 길이")
    allowed_origins: list[str] = Field(
        default=[
            "https://gitgrade.lovable.app",
            "https://gitgrade.dev",
            "http://localhost:5173",
            "http://localhost:8080",
            "http://127.0.0.1:5173",
        ],
        min_length=1,
        description="CORS 허용 Origin 목록 (첫 번째가 기본값)",
    )

    # 사용자별 요청 제한
    rate_limit_requests: int = Field(
        default=10, ge=1, description="윈도우당 최대 분석 요청 수"
    )
    rate_limit_window_seconds: int = Field(
        default=3600, ge=1, description="요청 제한 윈도우 (초)"
    )

    # Supabase (요청 제한 카운터 저장소)
    supabase_url: str | None = Field(default=None, description="Supabase URL")
    supabase_key: str | None = Field(default=None, description="Supabase anon key")

    log_level: str = Field(default="INFO", description="로그 레벨")


settings = Settings()
