"""GitHub 저장소 URL 검증 모듈."""

import re

from gitgrade.errors import InvalidUrl
from gitgrade.models import RepositoryRef

# https://github.com/<owner>/<repo>[.git][/]
GITHUB_URL_PATTERN = re.compile(
    r"^https://github\.com/"
    r"(?P<owner>[A-Za-z0-9](?:[A-Za-z0-9-]{0,38}))/"
    r"(?P<name>[A-Za-z0-9._-]{1,100}?)"
    r"(?:\.git)?/?$"
)


def parse_repository_url(value: object, max_length: int = 200) -> RepositoryRef:
    """저장소 URL을 검증하고 owner/repo로 정규화한다.

    `.git` 접미사와 끝의 `/`는 제거되므로 같은 저장소는 항상 같은 결과가 된다.

    Args:
        value: 요청 본문의 repoUrl 값
        max_length: 허용하는 최대 URL 길이

    Returns:
        정규화된 RepositoryRef

    Raises:
        InvalidUrl: 값이 없거나, 너무 길거나, 형식이 맞지 않을 때
    """
    if not isinstance(value, str):
        raise InvalidUrl("repoUrl is missing or not a string")

    url = value.strip()
    if not url or len(url) > max_length:
        raise InvalidUrl(f"repoUrl length {len(url)} out of range")

    match = GITHUB_URL_PATTERN.match(url)
    if not match:
        raise InvalidUrl("repoUrl does not match the GitHub URL pattern")

    name = match.group("name")
    if name in {".", ".."}:
        raise InvalidUrl("repoUrl has an invalid repository name")

    return RepositoryRef(owner=match.group("owner"), name=name)
