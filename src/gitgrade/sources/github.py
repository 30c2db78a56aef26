"""GitHub REST API 저장소 데이터 수집기."""

import asyncio
import base64
import json
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from gitgrade.config import settings
from gitgrade.errors import AccessDenied, NotFound, RateLimited, UpstreamError
from gitgrade.models import (
    CommitSummary,
    PackageManifest,
    RepositoryRef,
    RepositorySnapshot,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

USER_AGENT = "GitGrade-Analyzer"

# 루트 항목 이름에 포함되면 해당 플래그를 켠다 (대소문자 무시)
FLAG_KEYWORDS: dict[str, tuple[str, ...]] = {
    "has_tests": ("test", "spec", "__tests__"),
    "has_license": ("license", "licence", "copying"),
    "has_contributing": ("contributing",),
    "has_changelog": ("changelog", "changes", "history"),
    "has_code_of_conduct": ("code_of_conduct", "code-of-conduct"),
    "has_security_policy": ("security",),
    "has_docs": ("docs", "documentation"),
    "has_dockerfile": ("dockerfile", "docker-compose", "compose.yml", "compose.yaml"),
    "has_makefile": ("makefile",),
}

# CI 설정 파일/디렉토리 이름 -> CI 시스템 이름
CI_CONFIG_FILES: dict[str, str] = {
    ".github": "GitHub Actions",
    ".gitlab-ci.yml": "GitLab CI",
    "jenkinsfile": "Jenkins",
    ".travis.yml": "Travis CI",
    ".circleci": "CircleCI",
    "azure-pipelines.yml": "Azure Pipelines",
    "bitbucket-pipelines.yml": "Bitbucket Pipelines",
    ".drone.yml": "Drone",
    "appveyor.yml": "AppVeyor",
    ".buildkite": "Buildkite",
}

class _ForbiddenResponse(Exception):
    """재시도 대상인 403 응답."""

    def __init__(self, response: httpx.Response) -> None:
        super().__init__(f"GitHub returned 403 for {response.request.url}")
        self.response = response


def decode_content(content: str) -> str:
    """GitHub contents API의 base64 본문을 디코딩한다."""
    raw = base64.b64decode(content.replace("\n", ""))
    return raw.decode("utf-8", errors="replace")


def last_page(response: httpx.Response) -> int | None:
    """Link 헤더의 rel="last" 페이지 번호를 반환한다. 없으면 None."""
    last = response.links.get("last")
    if not last or "url" not in last:
        return None
    page = httpx.URL(last["url"]).params.get("page")
    if page and page.isdigit():
        return int(page)
    return None


def detect_flags(names: list[str]) -> dict[str, bool]:
    """루트 항목 이름으로 존재 여부 플래그를 계산한다."""
    lowered = [name.lower() for name in names]
    return {
        flag: any(keyword in name for name in lowered for keyword in keywords)
        for flag, keywords in FLAG_KEYWORDS.items()
    }


def detect_ci_systems(names: list[str]) -> tuple[str, ...]:
    """루트 항목 이름으로 CI 시스템을 감지한다."""
    found = []
    for name in names:
        system = CI_CONFIG_FILES.get(name.lower())
        if system and system not in found:
            found.append(system)
    return tuple(found)


def parse_manifest(text: str, list_limit: int) -> PackageManifest:
    """package.json 본문을 PackageManifest로 변환한다."""
    data: dict[str, Any] = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("package.json is not an object")

    def _keys(field: str) -> tuple[str, ...]:
        value = data.get(field) or {}
        if not isinstance(value, dict):
            return ()
        return tuple(str(key) for key in list(value)[:list_limit])

    def _text(field: str) -> str | None:
        value = data.get(field)
        return value if isinstance(value, str) else None

    return PackageManifest(
        name=_text("name"),
        version=_text("version"),
        description=_text("description"),
        scripts=_keys("scripts"),
        dependencies=_keys("dependencies"),
        dev_dependencies=_keys("devDependencies"),
    )


class GitHubRepositoryFetcher:
    """GitHub REST API로 저장소 정보를 수집하여 RepositorySnapshot을 만든다."""

    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        max_attempts: int | None = None,
        retry_wait: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            token: GitHub 액세스 토큰. None이면 익명 호출 (낮은 할당량).
            base_url: API 베이스 URL. None이면 설정값 사용.
            timeout: HTTP 요청 타임아웃 (초). None이면 설정값 사용.
            max_attempts: 기본 메타데이터 호출 최대 시도 횟수. None이면 설정값 사용.
            retry_wait: 403 재시도 간 대기 시간 (초). None이면 설정값 사용.
            transport: 테스트용 httpx transport
        """
        self.token = token
        self.base_url = base_url or settings.github_api_url
        self.timeout = timeout if timeout is not None else settings.http_timeout
        self.max_attempts = max_attempts or settings.github_metadata_attempts
        self.retry_wait = (
            retry_wait if retry_wait is not None else settings.github_retry_wait
        )
        self.transport = transport

    def _build_headers(self) -> dict[str, str]:
        """요청 헤더를 생성한다."""
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._build_headers(),
            timeout=self.timeout,
            transport=self.transport,
            follow_redirects=True,
        )

    async def _request_repository(
        self, client: httpx.AsyncClient, path: str
    ) -> httpx.Response:
        """기본 메타데이터를 요청한다. 403이면 재시도를 위해 예외를 던진다."""
        try:
            response = await client.get(path)
        except httpx.RequestError as e:
            raise UpstreamError(f"GitHub request failed: {e}") from e

        if response.status_code == 403:
            logger.warning(f"GitHub returned 403 for {path}")
            raise _ForbiddenResponse(response)
        return response

    async def _fetch_repository(
        self, client: httpx.AsyncClient, ref: RepositoryRef
    ) -> dict[str, Any]:
        """기본 메타데이터를 가져온다. 실패하면 전체 수집을 중단한다."""
        path = f"/repos/{ref.owner}/{ref.name}"
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.retry_wait),
            retry=retry_if_exception_type(_ForbiddenResponse),
            reraise=True,
        )

        try:
            response = await retrying(self._request_repository, client, path)
        except _ForbiddenResponse as e:
            if e.response.headers.get("x-ratelimit-remaining") == "0":
                raise RateLimited("GitHub API quota exhausted") from e
            raise AccessDenied(f"GitHub denied access to {ref.full_name}") from e

        if response.status_code == 404:
            raise NotFound(f"{ref.full_name} not found")
        if response.status_code == 429:
            raise RateLimited("GitHub secondary rate limit")
        if not response.is_success:
            logger.error(
                f"GitHub API error for {ref.full_name}: "
                f"{response.status_code} {response.text[:200]}"
            )
            raise UpstreamError(f"GitHub returned {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError("GitHub returned invalid JSON") from e
        if not isinstance(data, dict):
            raise UpstreamError("GitHub returned unexpected repository payload")
        return data

    async def _get(
        self,
        client: httpx.AsyncClient,
        path: str,
        params: dict[str, str | int] | None = None,
    ) -> httpx.Response:
        response = await client.get(path, params=params)
        response.raise_for_status()
        return response

    async def _best_effort(self, label: str, call: Awaitable[T], default: T) -> T:
        """enrichment 호출을 실행하고, 어떤 예외든 기본값으로 대체한다."""
        try:
            return await call
        except Exception as e:
            logger.warning(
                f"Enrichment '{label}' failed, using default: {e!r}", exc_info=True
            )
            return default

    async def _count(
        self,
        client: httpx.AsyncClient,
        path: str,
        params: dict[str, str | int] | None = None,
    ) -> int:
        """페이지네이션 메타데이터로 전체 개수를 구한다.

        Link 헤더가 없으면 첫 페이지 길이로 근사한다.
        """
        response = await self._get(client, path, {"per_page": 1, **(params or {})})
        page = last_page(response)
        if page is not None:
            return page
        data = response.json()
        return len(data) if isinstance(data, list) else 0

    async def _fetch_languages(
        self, client: httpx.AsyncClient, base: str
    ) -> dict[str, int]:
        data = (await self._get(client, f"{base}/languages")).json()
        return {str(name): int(size) for name, size in data.items()}

    async def _fetch_readme(self, client: httpx.AsyncClient, base: str) -> str | None:
        data = (await self._get(client, f"{base}/readme")).json()
        return decode_content(data["content"])[: settings.readme_char_limit]

    async def _fetch_recent_commits(
        self, client: httpx.AsyncClient, base: str
    ) -> tuple[CommitSummary, ...]:
        limit = settings.recent_commit_limit
        data = (
            await self._get(client, f"{base}/commits", {"per_page": limit})
        ).json()

        commits = []
        for item in data[:limit]:
            commit = item.get("commit") or {}
            message = (commit.get("message") or "").strip().splitlines()
            author = commit.get("author") or {}
            committer = commit.get("committer") or {}
            login = (item.get("author") or {}).get("login")
            commits.append(
                CommitSummary(
                    message=message[0][:200] if message else "",
                    date=committer.get("date") or author.get("date") or "",
                    author=author.get("name") or login or "",
                )
            )
        return tuple(commits)

    async def _fetch_topics(
        self, client: httpx.AsyncClient, base: str
    ) -> tuple[str, ...]:
        data = (await self._get(client, f"{base}/topics")).json()
        return tuple(str(name) for name in data.get("names", []))

    async def _fetch_manifest(
        self, client: httpx.AsyncClient, base: str
    ) -> PackageManifest:
        data = (await self._get(client, f"{base}/contents/package.json")).json()
        text = decode_content(data["content"])
        return parse_manifest(text, settings.manifest_list_limit)

    async def _fetch_root(
        self, client: httpx.AsyncClient, base: str
    ) -> tuple[list[dict[str, str]], PackageManifest | None]:
        """루트 디렉토리 목록과 (있으면) package.json을 가져온다."""
        data = (await self._get(client, f"{base}/contents")).json()
        if not isinstance(data, list):
            return [], None

        entries = [
            {"type": str(item.get("type", "")), "name": str(item.get("name", ""))}
            for item in data
        ]

        manifest = None
        if any(
            e["name"] == "package.json" and e["type"] == "file" for e in entries
        ):
            manifest = await self._best_effort(
                "package.json", self._fetch_manifest(client, base), None
            )
        return entries, manifest

    async def fetch(self, ref: RepositoryRef) -> RepositorySnapshot:
        """저장소 정보를 수집한다.

        Args:
            ref: 검증된 저장소 식별자

        Returns:
            RepositorySnapshot

        Raises:
            NotFound: 저장소가 없을 때
            AccessDenied: 할당량 소진이 아닌 403
            RateLimited: GitHub 할당량 소진
            UpstreamError: 그 외 기본 메타데이터 호출 실패
        """
        base = f"/repos/{ref.owner}/{ref.name}"

        async with self._client() as client:
            repo = await self._fetch_repository(client, ref)
            logger.info(f"Fetched metadata for {ref.full_name}")

            default_topics = tuple(repo.get("topics") or ())
            (
                languages,
                readme,
                recent_commits,
                total_commits,
                (entries, manifest),
                contributors,
                branches,
                releases,
                open_pulls,
                closed_issues,
                topics,
            ) = await asyncio.gather(
                self._best_effort("languages", self._fetch_languages(client, base), {}),
                self._best_effort("readme", self._fetch_readme(client, base), None),
                self._best_effort(
                    "commits", self._fetch_recent_commits(client, base), ()
                ),
                self._best_effort(
                    "commit count", self._count(client, f"{base}/commits"), 0
                ),
                self._best_effort("contents", self._fetch_root(client, base), ([], None)),
                self._best_effort(
                    "contributors",
                    self._count(client, f"{base}/contributors", {"anon": "true"}),
                    0,
                ),
                self._best_effort(
                    "branches", self._count(client, f"{base}/branches"), 0
                ),
                self._best_effort(
                    "releases", self._count(client, f"{base}/releases"), 0
                ),
                self._best_effort(
                    "pulls",
                    self._count(client, f"{base}/pulls", {"state": "open"}),
                    0,
                ),
                self._best_effort(
                    "closed issues",
                    self._count(client, f"{base}/issues", {"state": "closed"}),
                    0,
                ),
                self._best_effort(
                    "topics", self._fetch_topics(client, base), default_topics
                ),
            )

        names = [entry["name"] for entry in entries]
        ci_systems = detect_ci_systems(names)
        license_info = repo.get("license") or {}
        flags = detect_flags(names)
        flags["has_license"] = flags["has_license"] or bool(license_info)

        return RepositorySnapshot(
            name=repo.get("name") or ref.name,
            full_name=repo.get("full_name") or ref.full_name,
            description=repo.get("description") or "",
            primary_language=repo.get("language"),
            topics=topics,
            homepage=repo.get("homepage") or None,
            default_branch=repo.get("default_branch") or "main",
            license=license_info.get("spdx_id"),
            is_fork=bool(repo.get("fork")),
            is_archived=bool(repo.get("archived")),
            languages=languages,
            stars=repo.get("stargazers_count") or 0,
            forks=repo.get("forks_count") or 0,
            watchers=repo.get("subscribers_count") or repo.get("watchers_count") or 0,
            open_issues=repo.get("open_issues_count") or 0,
            created_at=repo.get("created_at"),
            updated_at=repo.get("updated_at"),
            pushed_at=repo.get("pushed_at"),
            has_readme=readme is not None,
            has_ci=bool(ci_systems),
            ci_systems=ci_systems,
            uses_typescript="TypeScript" in languages or "tsconfig.json" in names,
            total_commits=total_commits,
            contributors=contributors,
            branches=branches,
            releases=releases,
            open_pull_requests=open_pulls,
            closed_issues=closed_issues,
            root_files=tuple(f"{e['type']}: {e['name']}" for e in entries),
            recent_commits=recent_commits,
            readme_excerpt=readme or "",
            package_manifest=manifest,
            **flags,
        )
