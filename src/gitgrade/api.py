"""분석 요청 HTTP 핸들러."""

import json
import logging
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from gitgrade import __version__
from gitgrade.config import settings
from gitgrade.errors import AnalysisError, AnalysisFailed, InvalidUrl
from gitgrade.service import RepositoryAnalyzer
from gitgrade.storage import InMemoryRateLimitStore, RateLimiter, SupabaseRateLimitStore

logger = logging.getLogger(__name__)

ALLOWED_HEADERS = "authorization, x-client-info, apikey, content-type"


def cors_headers(origin: str | None, allowed_origins: list[str]) -> dict[str, str]:
    """허용 목록에 있는 Origin만 그대로 돌려주고, 아니면 기본 Origin을 사용한다."""
    allow = origin if origin in allowed_origins else allowed_origins[0]
    return {
        "Access-Control-Allow-Origin": allow,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Vary": "Origin",
    }


def client_identity(request: Request) -> str:
    """요청 제한용 사용자 식별자.

    클라이언트가 바꿀 수 있는 헤더 대신 접속 주소를 쓴다.
    """
    return request.client.host if request.client else "anonymous"


async def _read_body(request: Request) -> dict[str, Any]:
    raw = await request.body()
    try:
        body = json.loads(raw or b"{}")
    except ValueError as e:
        raise InvalidUrl("request body is not valid JSON") from e
    if not isinstance(body, dict):
        raise InvalidUrl("request body is not a JSON object")
    return body


def default_rate_limiter() -> RateLimiter:
    """설정에 따라 요청 제한기를 생성한다. Supabase가 없으면 메모리 저장소를 쓴다."""
    supabase = SupabaseRateLimitStore(settings.supabase_url, settings.supabase_key)
    if supabase.is_configured:
        store = supabase
    else:
        logger.warning("Supabase not configured, using in-memory rate limit store")
        store = InMemoryRateLimitStore(settings.rate_limit_window_seconds)
    return RateLimiter(
        store,
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


def create_app(
    analyzer: RepositoryAnalyzer | None = None,
    rate_limiter: RateLimiter | None = None,
    allowed_origins: list[str] | None = None,
) -> FastAPI:
    """FastAPI 애플리케이션을 생성한다."""
    analyzer = analyzer or RepositoryAnalyzer()
    limiter = rate_limiter or default_rate_limiter()
    origins = allowed_origins or settings.allowed_origins

    app = FastAPI(title="GitGrade Analyzer API", version=__version__)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.options("/analyze-repo")
    async def analyze_repo_preflight(request: Request) -> Response:
        return Response(headers=cors_headers(request.headers.get("origin"), origins))

    @app.post("/analyze-repo")
    async def analyze_repo(request: Request) -> JSONResponse:
        headers = cors_headers(request.headers.get("origin"), origins)

        try:
            body = await _read_body(request)
            ref = analyzer.parse_url(body.get("repoUrl"))
            await limiter.check(client_identity(request))
            report = await analyzer.analyze_ref(ref)
        except AnalysisError as e:
            logger.warning(
                f"Analysis request failed with {e.status_code} "
                f"({type(e).__name__}): {e}"
            )
            return JSONResponse(
                {"error": e.message}, status_code=e.status_code, headers=headers
            )
        except Exception:
            logger.exception("Unexpected error while analyzing repository")
            return JSONResponse(
                {"error": AnalysisFailed.message},
                status_code=AnalysisFailed.status_code,
                headers=headers,
            )

        return JSONResponse(report.to_response(), headers=headers)

    return app
