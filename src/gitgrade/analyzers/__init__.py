"""AI 분석 모듈."""

from gitgrade.analyzers.gateway import AIGatewayClient
from gitgrade.analyzers.validation import parse_report, strip_code_fences

__all__ = ["AIGatewayClient", "parse_report", "strip_code_fences"]
