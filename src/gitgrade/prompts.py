"""평가 프롬프트 생성 모듈."""

from gitgrade.models import LEVELS, RepositorySnapshot

SYSTEM_PROMPT = (
    "You are an expert code reviewer. Always respond with valid JSON only, "
    "no markdown formatting."
)

# (지표 키, 설명, 가중치 %)
METRIC_WEIGHTS: tuple[tuple[str, str, int], ...] = (
    ("codeQuality", "language choice, structure, patterns, TypeScript/typing", 25),
    ("documentation", "README depth, contributing guide, docs folder", 20),
    ("testCoverage", "presence and structure of tests, CI running them", 20),
    ("projectStructure", "folder organization, build tooling, containerization", 15),
    ("gitPractices", "commit history, branches, releases, PRs and issues", 10),
    ("realWorldRelevance", "usefulness, completeness, community adoption", 10),
)

# 레벨 라벨별 점수 하한 (LEVELS 순서와 동일)
LEVEL_FLOORS: tuple[int, ...] = (0, 40, 65, 85)

SCORE_BANDS = """\
- 90-100: exemplary, nothing significant to improve
- 70-89: solid, minor gaps
- 50-69: adequate, several clear gaps
- 30-49: weak, major gaps
- 0-29: missing or nearly missing"""


def _yes_no(value: bool) -> str:
    return "yes" if value else "no"


def _level_table() -> str:
    """점수 구간별 레벨 라벨 표를 생성한다."""
    rows = []
    for i, (label, floor) in enumerate(zip(LEVELS, LEVEL_FLOORS, strict=True)):
        ceiling = LEVEL_FLOORS[i + 1] - 1 if i + 1 < len(LEVEL_FLOORS) else 100
        rows.append(f"- {floor}-{ceiling}: {label}")
    return "\n".join(rows)


def _languages_section(languages: dict[str, int]) -> str:
    if not languages:
        return "Unknown"
    total = sum(languages.values()) or 1
    ordered = sorted(languages.items(), key=lambda item: (-item[1], item[0]))
    return "\n".join(
        f"- {name}: {size:,} bytes ({size * 100 / total:.1f}%)"
        for name, size in ordered
    )


def _snapshot_sections(snapshot: RepositorySnapshot) -> str:
    """스냅샷의 모든 필드를 섹션별 텍스트로 직렬화한다."""
    topics = ", ".join(snapshot.topics) or "none"
    ci = ", ".join(snapshot.ci_systems) or "none"

    commits = "\n".join(
        f"- [{c.date or 'unknown date'}] {c.author or 'unknown'}: {c.message}"
        for c in snapshot.recent_commits
    )

    manifest = "No package.json"
    if snapshot.package_manifest:
        m = snapshot.package_manifest
        manifest = (
            f"- Name: {m.name or 'unknown'} {m.version or ''}".rstrip()
            + f"\n- Description: {m.description or 'none'}"
            + f"\n- Scripts: {', '.join(m.scripts) or 'none'}"
            + f"\n- Dependencies: {', '.join(m.dependencies) or 'none'}"
            + f"\n- Dev dependencies: {', '.join(m.dev_dependencies) or 'none'}"
        )

    return f"""## Repository
- Name: {snapshot.name}
- Full name: {snapshot.full_name}
- Description: {snapshot.description or 'none'}
- Primary language: {snapshot.primary_language or 'Unknown'}
- Topics: {topics}
- Homepage: {snapshot.homepage or 'none'}
- Default branch: {snapshot.default_branch}
- License: {snapshot.license or 'none'}
- Fork: {_yes_no(snapshot.is_fork)}, Archived: {_yes_no(snapshot.is_archived)}

## Popularity
- Stars: {snapshot.stars:,}
- Forks: {snapshot.forks:,}
- Watchers: {snapshot.watchers:,}
- Open issues: {snapshot.open_issues:,}

## Activity
- Created: {snapshot.created_at or 'unknown'}
- Last updated: {snapshot.updated_at or 'unknown'}
- Last pushed: {snapshot.pushed_at or 'unknown'}

## Languages
{_languages_section(snapshot.languages)}

## Project Health
- README: {_yes_no(snapshot.has_readme)}
- Tests: {_yes_no(snapshot.has_tests)}
- License file: {_yes_no(snapshot.has_license)}
- CI/CD: {_yes_no(snapshot.has_ci)} ({ci})
- Contributing guide: {_yes_no(snapshot.has_contributing)}
- Changelog: {_yes_no(snapshot.has_changelog)}
- Code of conduct: {_yes_no(snapshot.has_code_of_conduct)}
- Security policy: {_yes_no(snapshot.has_security_policy)}
- Docs folder: {_yes_no(snapshot.has_docs)}
- Dockerfile: {_yes_no(snapshot.has_dockerfile)}
- Makefile: {_yes_no(snapshot.has_makefile)}
- TypeScript: {_yes_no(snapshot.uses_typescript)}

## Counts
- Total commits: {snapshot.total_commits:,}
- Contributors: {snapshot.contributors:,}
- Branches: {snapshot.branches:,}
- Releases: {snapshot.releases:,}
- Open pull requests: {snapshot.open_pull_requests:,}
- Closed issues: {snapshot.closed_issues:,}

## Root Files
{chr(10).join(snapshot.root_files) or 'none'}

## Recent Commits
{commits or 'none'}

## Package Manifest
{manifest}

## README (excerpt)
{snapshot.readme_excerpt or 'No README found'}"""


def build_prompt(snapshot: RepositorySnapshot) -> str:
    """스냅샷으로 평가 프롬프트를 생성한다.

    같은 스냅샷에 대해 항상 같은 문자열을 반환한다.
    """
    rubric = "\n".join(
        f"- {key} (weight {weight}%): {description}"
        for key, description, weight in METRIC_WEIGHTS
    )
    formula = " + ".join(
        f"{key} * {weight / 100:.2f}" for key, _, weight in METRIC_WEIGHTS
    )
    levels = " | ".join(f'"{label}"' for label in LEVELS)

    return f"""You are an expert code reviewer and mentor. Analyze this GitHub repository data and provide a comprehensive evaluation.

{_snapshot_sections(snapshot)}

# Scoring Rubric
Score each metric from 0 to 100 using these bands:
{SCORE_BANDS}

Metrics and weights:
{rubric}

Overall score = round({formula})

Level by overall score:
{_level_table()}

# Output Format
Respond with a single JSON object and nothing else: no prose, no markdown, no code fences.
{{
  "score": <integer 0-100, the weighted overall score>,
  "level": {levels},
  "summary": "<2-3 sentence evaluation of the repository's current quality>",
  "strengths": ["<2-4 specific strengths>"],
  "weaknesses": ["<2-4 specific areas for improvement>"],
  "metrics": {{
    "codeQuality": <integer 0-100>,
    "documentation": <integer 0-100>,
    "testCoverage": <integer 0-100>,
    "projectStructure": <integer 0-100>,
    "gitPractices": <integer 0-100>,
    "realWorldRelevance": <integer 0-100>
  }},
  "roadmap": [
    {{"title": "<step title>", "description": "<what to do and why>", "priority": "high" | "medium" | "low"}}
  ]
}}
Provide 4-6 roadmap steps ordered by priority. Be honest but constructive."""
