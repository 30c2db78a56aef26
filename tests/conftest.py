"""공용 테스트 픽스처."""

import base64
import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from gitgrade.models import RepositorySnapshot

REPO_PATH = "/repos/octocat/Hello-World"

Route = httpx.Response | Callable[[httpx.Request], httpx.Response]


def encode(text: str) -> str:
    """GitHub contents API처럼 줄바꿈이 섞인 base64를 만든다."""
    raw = base64.b64encode(text.encode()).decode()
    return "\n".join(raw[i : i + 60] for i in range(0, len(raw), 60))


def last_link(path: str, page: int) -> dict[str, str]:
    """rel="last" Link 헤더를 만든다."""
    base = f"https://api.github.com{path}?per_page=1"
    return {"Link": f'<{base}&page=2>; rel="next", <{base}&page={page}>; rel="last"'}


def _commits(request: httpx.Request) -> httpx.Response:
    if request.url.params.get("per_page") == "1":
        return httpx.Response(
            200, json=[{}], headers=last_link(f"{REPO_PATH}/commits", 42)
        )
    return httpx.Response(
        200,
        json=[
            {
                "commit": {
                    "message": "Add tests\n\nlong body",
                    "author": {"name": "Mona", "date": "2024-05-01T10:00:00Z"},
                    "committer": {"date": "2024-05-01T10:05:00Z"},
                },
                "author": {"login": "mona"},
            },
            {
                "commit": {
                    "message": "Initial commit",
                    "author": {"date": "2024-04-01T09:00:00Z"},
                },
                "author": {"login": "octocat"},
            },
        ],
    )


def default_routes() -> dict[str, Route]:
    """정상 저장소에 대한 GitHub API 응답."""
    package_json = json.dumps(
        {
            "name": "hello-world",
            "version": "1.0.0",
            "scripts": {"test": "vitest", "build": "tsc"},
            "dependencies": {"react": "^18.0.0"},
            "devDependencies": {"typescript": "^5.0.0", "vitest": "^1.0.0"},
        }
    )
    return {
        REPO_PATH: httpx.Response(
            200,
            json={
                "name": "Hello-World",
                "full_name": "octocat/Hello-World",
                "description": "My first repository on GitHub!",
                "language": "Python",
                "topics": ["fallback"],
                "license": {"spdx_id": "MIT"},
                "default_branch": "master",
                "stargazers_count": 1500,
                "forks_count": 300,
                "subscribers_count": 80,
                "open_issues_count": 12,
                "created_at": "2011-01-26T19:01:12Z",
                "updated_at": "2024-05-01T10:00:00Z",
                "pushed_at": "2024-05-01T10:00:00Z",
            },
        ),
        f"{REPO_PATH}/languages": httpx.Response(
            200, json={"Python": 8000, "TypeScript": 2000}
        ),
        f"{REPO_PATH}/readme": httpx.Response(
            200, json={"content": encode("# Hello World\n" + "x" * 5000)}
        ),
        f"{REPO_PATH}/commits": _commits,
        f"{REPO_PATH}/contents": httpx.Response(
            200,
            json=[
                {"type": "dir", "name": ".github"},
                {"type": "dir", "name": "tests"},
                {"type": "dir", "name": "docs"},
                {"type": "file", "name": "LICENSE"},
                {"type": "file", "name": "Dockerfile"},
                {"type": "file", "name": "CONTRIBUTING.md"},
                {"type": "file", "name": "package.json"},
                {"type": "file", "name": "README.md"},
            ],
        ),
        f"{REPO_PATH}/contents/package.json": httpx.Response(
            200, json={"content": encode(package_json)}
        ),
        f"{REPO_PATH}/contributors": httpx.Response(
            200, json=[{}], headers=last_link(f"{REPO_PATH}/contributors", 5)
        ),
        f"{REPO_PATH}/branches": httpx.Response(200, json=[{"name": "master"}]),
        f"{REPO_PATH}/releases": httpx.Response(
            200, json=[{}], headers=last_link(f"{REPO_PATH}/releases", 3)
        ),
        f"{REPO_PATH}/pulls": httpx.Response(200, json=[]),
        f"{REPO_PATH}/issues": httpx.Response(
            200, json=[{}], headers=last_link(f"{REPO_PATH}/issues", 7)
        ),
        f"{REPO_PATH}/topics": httpx.Response(200, json={"names": ["demo", "octocat"]}),
    }


class GitHubStub:
    """경로별 응답을 돌려주고 요청을 기록하는 GitHub API 대역."""

    def __init__(self, overrides: dict[str, Route] | None = None) -> None:
        self.routes = {**default_routes(), **(overrides or {})}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if callable(route):
            return route(request)
        return route

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def github() -> GitHubStub:
    """기본 GitHub API 대역을 반환한다."""
    return GitHubStub()


@pytest.fixture
def report_data() -> dict[str, Any]:
    """스키마를 만족하는 AI 응답 객체를 반환한다."""
    return {
        "score": 72,
        "level": "Advanced",
        "summary": "A well-organized repository with room for better tests.",
        "strengths": ["Clear README", "Consistent structure"],
        "weaknesses": ["Few tests"],
        "metrics": {
            "codeQuality": 75,
            "documentation": 80,
            "testCoverage": 40,
            "projectStructure": 85,
            "gitPractices": 70,
            "realWorldRelevance": 65,
        },
        "roadmap": [
            {
                "title": "Add tests",
                "description": "Cover the core modules with unit tests.",
                "priority": "high",
            },
            {
                "title": "Set up CI",
                "description": "Run the test suite on every pull request.",
                "priority": "medium",
            },
        ],
    }


@pytest.fixture
def snapshot() -> RepositorySnapshot:
    """최소 필드만 채운 스냅샷을 반환한다."""
    return RepositorySnapshot(
        name="Hello-World",
        full_name="octocat/Hello-World",
        description="My first repository on GitHub!",
        primary_language="Python",
        languages={"Python": 8000, "TypeScript": 2000},
        stars=1500,
        has_readme=True,
        has_tests=True,
        ci_systems=("GitHub Actions",),
        has_ci=True,
        root_files=("dir: tests", "file: README.md"),
        readme_excerpt="# Hello World",
    )


@pytest.fixture
def make_github() -> Callable[..., GitHubStub]:
    """응답 일부를 바꾼 GitHub API 대역을 만드는 팩토리를 반환한다."""
    return GitHubStub
