"""분석 파이프라인 모듈."""

import logging
from typing import Protocol

from gitgrade.analyzers import AIGatewayClient, parse_report
from gitgrade.config import settings
from gitgrade.models import AnalysisReport, RepositoryRef, RepositorySnapshot
from gitgrade.prompts import build_prompt
from gitgrade.sources import GitHubRepositoryFetcher
from gitgrade.urls import parse_repository_url

logger = logging.getLogger(__name__)


class SnapshotFetcher(Protocol):
    """저장소 스냅샷 수집기 프로토콜."""

    async def fetch(self, ref: RepositoryRef) -> RepositorySnapshot:
        """스냅샷을 수집한다."""
        ...


class CompletionClient(Protocol):
    """AI completion 클라이언트 프로토콜."""

    async def complete(self, prompt: str) -> str:
        """프롬프트에 대한 응답 텍스트를 반환한다."""
        ...


class RepositoryAnalyzer:
    """URL 검증 → 수집 → 프롬프트 → AI 호출 → 검증 순서로 저장소를 분석한다."""

    def __init__(
        self,
        fetcher: SnapshotFetcher | None = None,
        completion: CompletionClient | None = None,
        max_url_length: int | None = None,
    ) -> None:
        """
        Args:
            fetcher: 스냅샷 수집기. None이면 설정값으로 생성.
            completion: AI 클라이언트. None이면 설정값으로 생성.
            max_url_length: 허용하는 최대 URL 길이. None이면 설정값 사용.
        """
        self.fetcher = fetcher or GitHubRepositoryFetcher(token=settings.github_token)
        self.completion = completion or AIGatewayClient(
            api_key=settings.ai_gateway_api_key
        )
        self.max_url_length = max_url_length or settings.max_url_length

    def parse_url(self, repo_url: object) -> RepositoryRef:
        """URL을 검증한다. 네트워크 호출 전에 실패한다."""
        return parse_repository_url(repo_url, self.max_url_length)

    async def analyze_ref(self, ref: RepositoryRef) -> AnalysisReport:
        """검증된 저장소를 분석한다."""
        logger.info(f"Fetching GitHub data for {ref.full_name}")
        snapshot = await self.fetcher.fetch(ref)
        logger.info(
            f"Snapshot ready: {snapshot.full_name} "
            f"({snapshot.stars} stars, {len(snapshot.root_files)} root entries)"
        )

        prompt = build_prompt(snapshot)
        logger.info(f"Sending prompt to AI ({len(prompt)} chars)")
        raw = await self.completion.complete(prompt)

        report = parse_report(raw)
        logger.info(f"Analysis complete: {ref.full_name} scored {report.score}")
        return report

    async def analyze(self, repo_url: object) -> AnalysisReport:
        """저장소 URL을 분석하여 검증된 리포트를 반환한다.

        Raises:
            AnalysisError: 각 단계의 실패 (gitgrade.errors 참고)
        """
        return await self.analyze_ref(self.parse_url(repo_url))
