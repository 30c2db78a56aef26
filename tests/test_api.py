"""분석 API 핸들러 테스트."""

import json
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from gitgrade.analyzers import AIGatewayClient
from gitgrade.api import create_app
from gitgrade.service import RepositoryAnalyzer
from gitgrade.sources import GitHubRepositoryFetcher
from gitgrade.storage import InMemoryRateLimitStore, RateLimiter

REPO_URL = "https://github.com/octocat/Hello-World"
ORIGINS = ["https://gitgrade.dev", "http://localhost:5173"]


class AIStub:
    """고정 응답을 돌려주고 요청을 기록하는 AI 게이트웨이 대역."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


def _reply(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


@pytest.fixture
def ai(report_data: dict[str, Any]) -> AIStub:
    """유효한 리포트를 돌려주는 AI 대역을 반환한다."""
    return AIStub(_reply(json.dumps(report_data)))


def _client(
    github: Any,
    ai: AIStub,
    api_key: str | None = "secret",
    max_requests: int = 100,
) -> TestClient:
    analyzer = RepositoryAnalyzer(
        fetcher=GitHubRepositoryFetcher(transport=github.transport, retry_wait=0),
        completion=AIGatewayClient(
            api_key=api_key, transport=httpx.MockTransport(ai)
        ),
    )
    limiter = RateLimiter(
        InMemoryRateLimitStore(), max_requests=max_requests, window_seconds=3600
    )
    app = create_app(analyzer=analyzer, rate_limiter=limiter, allowed_origins=ORIGINS)
    return TestClient(app)


class TestAnalyzeRepo:
    """POST /analyze-repo 테스트."""

    def test_success_returns_report_unchanged(
        self, github, ai: AIStub, report_data: dict[str, Any]
    ) -> None:
        """성공하면 AI 응답 객체를 그대로 200으로 반환한다."""
        response = _client(github, ai).post("/analyze-repo", json={"repoUrl": REPO_URL})

        assert response.status_code == 200
        assert response.json() == report_data
        assert len(ai.requests) == 1

    def test_fenced_ai_reply(self, github, report_data: dict[str, Any]) -> None:
        """펜스로 감싼 AI 응답도 성공한다."""
        ai = AIStub(_reply(f"```json\n{json.dumps(report_data)}\n```"))
        response = _client(github, ai).post("/analyze-repo", json={"repoUrl": REPO_URL})

        assert response.status_code == 200
        assert response.json() == report_data

    @pytest.mark.parametrize(
        "body",
        [
            {"repoUrl": "not-a-url"},
            {"repoUrl": "https://github.com/octocat"},
            {"repoUrl": "https://github.com/octocat/" + "a" * 300},
            {"repoUrl": 42},
            {},
        ],
    )
    def test_invalid_url_makes_no_calls(
        self, github, ai: AIStub, body: dict[str, Any]
    ) -> None:
        """잘못된 URL은 네트워크 호출 없이 400이다."""
        response = _client(github, ai).post("/analyze-repo", json=body)

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid repository URL")
        assert github.requests == []
        assert ai.requests == []

    def test_invalid_json_body(self, github, ai: AIStub) -> None:
        """JSON이 아닌 본문도 400이다."""
        response = _client(github, ai).post(
            "/analyze-repo",
            content=b"repoUrl=x",
            headers={"Content-Type": "text/plain"},
        )

        assert response.status_code == 400
        assert github.requests == []

    def test_not_found(self, make_github, ai: AIStub) -> None:
        """기본 메타데이터 404는 404다."""
        github = make_github(
            {"/repos/octocat/Hello-World": httpx.Response(404, json={"message": "x"})}
        )
        response = _client(github, ai).post("/analyze-repo", json={"repoUrl": REPO_URL})

        assert response.status_code == 404
        assert response.json() == {
            "error": "Repository not found. Make sure it exists and is public."
        }
        assert ai.requests == []

    def test_access_denied(self, make_github, ai: AIStub) -> None:
        """할당량이 남은 403은 403이다."""
        github = make_github(
            {"/repos/octocat/Hello-World": lambda request: httpx.Response(403)}
        )
        response = _client(github, ai).post("/analyze-repo", json={"repoUrl": REPO_URL})

        assert response.status_code == 403

    def test_enrichment_failure_still_succeeds(
        self, make_github, ai: AIStub
    ) -> None:
        """enrichment 실패는 결과에 영향을 주지 않는다."""
        github = make_github(
            {"/repos/octocat/Hello-World/releases": httpx.Response(500)}
        )
        response = _client(github, ai).post("/analyze-repo", json={"repoUrl": REPO_URL})

        assert response.status_code == 200
        prompt = json.loads(ai.requests[0].content)["messages"][1]["content"]
        assert "- Releases: 0" in prompt

    def test_missing_ai_key(self, github, ai: AIStub) -> None:
        """AI 키가 없으면 503이다."""
        client = _client(github, ai, api_key=None)
        response = client.post("/analyze-repo", json={"repoUrl": REPO_URL})

        assert response.status_code == 503
        assert ai.requests == []

    @pytest.mark.parametrize(
        ("status", "expected"),
        [(429, 429), (402, 503), (500, 500)],
    )
    def test_ai_errors(self, github, status: int, expected: int) -> None:
        """AI 제공자 오류는 정해진 상태 코드로 매핑되고 원문은 노출되지 않는다."""
        ai = AIStub(httpx.Response(status, text="internal provider detail"))
        response = _client(github, ai).post("/analyze-repo", json={"repoUrl": REPO_URL})

        assert response.status_code == expected
        assert "internal provider detail" not in response.text

    def test_invalid_report_is_500(
        self, github, report_data: dict[str, Any]
    ) -> None:
        """스키마를 벗어난 리포트는 부분 반환 없이 500이다."""
        report_data["score"] = 150
        ai = AIStub(_reply(json.dumps(report_data)))
        response = _client(github, ai).post("/analyze-repo", json={"repoUrl": REPO_URL})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to analyze repository. Please try again."}

    def test_rate_limit_per_client(self, github, ai: AIStub) -> None:
        """같은 사용자가 한도를 넘으면 429다."""
        client = _client(github, ai, max_requests=1)

        first = client.post("/analyze-repo", json={"repoUrl": REPO_URL})
        second = client.post("/analyze-repo", json={"repoUrl": REPO_URL})

        assert first.status_code == 200
        assert second.status_code == 429
        assert len(ai.requests) == 1

    def test_rate_limit_ignores_client_supplied_id(self, github, ai: AIStub) -> None:
        """요청마다 다른 X-Client-Id를 보내도 같은 주소면 한도를 공유한다."""
        client = _client(github, ai, max_requests=1)

        first = client.post(
            "/analyze-repo",
            json={"repoUrl": REPO_URL},
            headers={"X-Client-Id": "user-1"},
        )
        second = client.post(
            "/analyze-repo",
            json={"repoUrl": REPO_URL},
            headers={"X-Client-Id": "user-2"},
        )

        assert first.status_code == 200
        assert second.status_code == 429
        assert len(ai.requests) == 1


class TestCors:
    """CORS 처리 테스트."""

    def test_preflight_echoes_allowed_origin(self, github, ai: AIStub) -> None:
        """허용된 Origin의 preflight는 그 Origin을 돌려준다."""
        response = _client(github, ai).options(
            "/analyze-repo", headers={"Origin": "http://localhost:5173"}
        )

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
        assert github.requests == []

    def test_unknown_origin_gets_default(self, github, ai: AIStub) -> None:
        """허용되지 않은 Origin에는 기본 Origin을 돌려준다."""
        response = _client(github, ai).post(
            "/analyze-repo",
            json={"repoUrl": "not-a-url"},
            headers={"Origin": "https://evil.example"},
        )

        assert response.headers["access-control-allow-origin"] == "https://gitgrade.dev"
