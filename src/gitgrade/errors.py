"""분석 파이프라인 예외 정의.

모든 예외는 사용자에게 노출해도 안전한 고정 메시지와 HTTP 상태 코드를 가진다.
업스트림 응답 본문은 로그에만 남기고 메시지에는 절대 포함하지 않는다.
"""


class AnalysisError(Exception):
    """분석 파이프라인 예외의 기반 클래스."""

    status_code: int = 500
    message: str = "Failed to analyze repository. Please try again."

    def __init__(self, detail: str | None = None) -> None:
        """
        Args:
            detail: 로그용 상세 정보 (응답에는 포함되지 않음)
        """
        super().__init__(detail or self.message)
        self.detail = detail


class InvalidUrl(AnalysisError):
    """저장소 URL이 없거나 형식이 잘못됨."""

    status_code = 400
    message = "Invalid repository URL. Expected https://github.com/<owner>/<repo>."


class NotFound(AnalysisError):
    """GitHub 404."""

    status_code = 404
    message = "Repository not found. Make sure it exists and is public."


class AccessDenied(AnalysisError):
    """할당량 소진이 아닌 GitHub 403."""

    status_code = 403
    message = "Access to this repository is forbidden."


class RateLimited(AnalysisError):
    """GitHub, AI 제공자 또는 사용자별 요청 한도 초과."""

    status_code = 429
    message = "Rate limit exceeded. Please try again in a moment."


class ServiceUnavailable(AnalysisError):
    """AI 키 누락 또는 AI 제공자 402."""

    status_code = 503
    message = "Service temporarily unavailable. Please try again later."


class AnalysisFailed(AnalysisError):
    """AI 호출 실패, 응답 파싱/스키마 검증 실패."""

    status_code = 500


class UpstreamError(AnalysisFailed):
    """GitHub 또는 AI 제공자의 기타 실패 응답, 네트워크 오류."""
