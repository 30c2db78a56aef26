"""데이터 소스 모듈."""

from gitgrade.sources.github import GitHubRepositoryFetcher

__all__ = ["GitHubRepositoryFetcher"]
