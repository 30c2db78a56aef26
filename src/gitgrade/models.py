"""데이터 모델 정의."""

from datetime import UTC, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

# 점수 구간 순서대로 정렬된 레벨 라벨
LEVELS: tuple[str, ...] = ("Beginner", "Intermediate", "Advanced", "Expert")

Level = Literal["Beginner", "Intermediate", "Advanced", "Expert"]
Priority = Literal["high", "medium", "low"]
Score = Annotated[int, Field(ge=0, le=100)]

# 공백만 있는 문자열은 거부한다
NON_BLANK = r"^\s*\S"
ShortText = Annotated[str, StringConstraints(max_length=500, pattern=NON_BLANK)]
TitleText = Annotated[str, StringConstraints(max_length=200, pattern=NON_BLANK)]
DescriptionText = Annotated[str, StringConstraints(max_length=1000, pattern=NON_BLANK)]
SummaryText = Annotated[str, StringConstraints(max_length=2000, pattern=NON_BLANK)]


class RepositoryRef(BaseModel):
    """정규화된 저장소 식별자 (owner/repo)."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(description="저장소 소유자")
    name: str = Field(description="저장소 이름")

    @property
    def full_name(self) -> str:
        """owner/repo 형태의 전체 이름."""
        return f"{self.owner}/{self.name}"


class CommitSummary(BaseModel):
    """최근 커밋 요약."""

    model_config = ConfigDict(frozen=True)

    message: str = Field(description="커밋 메시지 첫 줄")
    date: str = Field(default="", description="커밋 일시 (ISO 8601)")
    author: str = Field(default="", description="작성자 이름")


class PackageManifest(BaseModel):
    """파싱된 package.json."""

    model_config = ConfigDict(frozen=True)

    name: str | None = Field(default=None, description="패키지 이름")
    version: str | None = Field(default=None, description="패키지 버전")
    description: str | None = Field(default=None, description="패키지 설명")
    scripts: tuple[str, ...] = Field(default=(), description="npm 스크립트 이름")
    dependencies: tuple[str, ...] = Field(default=(), description="런타임 의존성")
    dev_dependencies: tuple[str, ...] = Field(default=(), description="개발 의존성")


class RepositorySnapshot(BaseModel):
    """요청 1회 동안 수집한 GitHub 저장소 정보.

    기본 메타데이터 외의 필드는 enrichment 호출 실패 시 기본값(빈 값/0)을 가진다.
    """

    model_config = ConfigDict(frozen=True)

    # 식별 정보
    name: str = Field(description="저장소 이름")
    full_name: str = Field(description="저장소 전체 이름 (owner/repo)")
    description: str = Field(default="", description="저장소 설명")
    primary_language: str | None = Field(default=None, description="주 언어")
    topics: tuple[str, ...] = Field(default=(), description="토픽 목록")
    homepage: str | None = Field(default=None, description="홈페이지 URL")
    default_branch: str = Field(default="main", description="기본 브랜치")
    license: str | None = Field(default=None, description="라이선스 SPDX ID")
    is_fork: bool = Field(default=False, description="포크 여부")
    is_archived: bool = Field(default=False, description="아카이브 여부")

    # 언어별 바이트 수
    languages: dict[str, int] = Field(default_factory=dict, description="언어 분포")

    # 인기도
    stars: int = Field(default=0, description="스타 수")
    forks: int = Field(default=0, description="포크 수")
    watchers: int = Field(default=0, description="워처 수")
    open_issues: int = Field(default=0, description="열린 이슈 수 (PR 포함)")

    # 활동 시각
    created_at: str | None = Field(default=None, description="생성 일시")
    updated_at: str | None = Field(default=None, description="마지막 수정 일시")
    pushed_at: str | None = Field(default=None, description="마지막 푸시 일시")

    # 존재 여부 플래그
    has_readme: bool = False
    has_tests: bool = False
    has_license: bool = False
    has_ci: bool = False
    has_contributing: bool = False
    has_changelog: bool = False
    has_code_of_conduct: bool = False
    has_security_policy: bool = False
    has_docs: bool = False
    has_dockerfile: bool = False
    has_makefile: bool = False
    uses_typescript: bool = False
    ci_systems: tuple[str, ...] = Field(default=(), description="감지된 CI 시스템")

    # 개수
    total_commits: int = Field(default=0, description="전체 커밋 수")
    contributors: int = Field(default=0, description="기여자 수")
    branches: int = Field(default=0, description="브랜치 수")
    releases: int = Field(default=0, description="릴리스 수")
    open_pull_requests: int = Field(default=0, description="열린 PR 수")
    closed_issues: int = Field(default=0, description="닫힌 이슈 수")

    root_files: tuple[str, ...] = Field(
        default=(), description="루트 디렉토리 항목 ('type: name')"
    )
    recent_commits: tuple[CommitSummary, ...] = Field(
        default=(), description="최근 커밋 요약"
    )
    readme_excerpt: str = Field(default="", description="README 앞부분")
    package_manifest: PackageManifest | None = Field(
        default=None, description="package.json (있는 경우만)"
    )


class _StrictModel(BaseModel):
    """AI 응답 검증용 기반 모델. 타입 변환, 누락, 미지정 필드를 모두 거부한다."""

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)


class Metrics(_StrictModel):
    """6개 세부 지표 (각 0-100)."""

    code_quality: Score = Field(alias="codeQuality")
    documentation: Score
    test_coverage: Score = Field(alias="testCoverage")
    project_structure: Score = Field(alias="projectStructure")
    git_practices: Score = Field(alias="gitPractices")
    real_world_relevance: Score = Field(alias="realWorldRelevance")


class RoadmapItem(_StrictModel):
    """개선 로드맵 단계."""

    title: TitleText
    description: DescriptionText
    priority: Priority


class AnalysisReport(_StrictModel):
    """검증된 AI 분석 결과."""

    score: Score
    level: Level
    summary: SummaryText
    strengths: list[ShortText] = Field(min_length=1, max_length=8)
    weaknesses: list[ShortText] = Field(min_length=1, max_length=8)
    metrics: Metrics
    roadmap: list[RoadmapItem] = Field(min_length=1, max_length=10)

    def to_response(self) -> dict[str, object]:
        """AI가 사용한 camelCase 키 그대로 직렬화한다."""
        return self.model_dump(by_alias=True)


class RateLimitRecord(BaseModel):
    """사용자별 요청 제한 카운터."""

    identity: str = Field(description="요청자 식별자")
    request_count: int = Field(default=0, ge=0, description="윈도우 내 요청 수")
    window_start: datetime = Field(description="현재 윈도우 시작 시각 (UTC)")

    @field_validator("window_start")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """시간대가 없는 시각(Postgres timestamp 컬럼 등)은 UTC로 간주한다."""
        return v.replace(tzinfo=UTC) if v.tzinfo is None else v
