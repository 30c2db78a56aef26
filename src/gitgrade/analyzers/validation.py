"""AI 응답 검증 모듈.

AI 응답은 신뢰할 수 없는 입력으로 취급한다. 스키마를 완전히 통과한 경우에만
AnalysisReport를 반환하며, 부분 수용이나 필드 보정은 하지 않는다.
"""

import logging
import re

from pydantic import ValidationError

from gitgrade.errors import AnalysisFailed
from gitgrade.models import AnalysisReport

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^\s*```[A-Za-z0-9_-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```\s*$")


def strip_code_fences(text: str) -> str:
    """앞뒤의 markdown 코드 펜스(```json 등)를 제거한다."""
    stripped = _LEADING_FENCE.sub("", text, count=1)
    stripped = _TRAILING_FENCE.sub("", stripped, count=1)
    return stripped.strip()


def parse_report(text: str) -> AnalysisReport:
    """AI 응답 텍스트를 AnalysisReport로 파싱하고 검증한다.

    JSON 모드로 검증하므로 숫자 문자열, 실수, bool 등은 변환 없이 거부된다.

    Raises:
        AnalysisFailed: JSON 파싱 또는 스키마 검증 실패
    """
    cleaned = strip_code_fences(text)

    try:
        return AnalysisReport.model_validate_json(cleaned)
    except ValidationError as e:
        if any(error["type"] == "json_invalid" for error in e.errors()):
            logger.error(f"Failed to parse AI response as JSON: {cleaned[:200]!r}")
            raise AnalysisFailed("AI response is not valid JSON") from e
        logger.error(f"AI response failed schema validation: {e.error_count()} errors")
        raise AnalysisFailed("AI response failed schema validation") from e
