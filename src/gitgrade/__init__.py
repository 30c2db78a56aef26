"""GitHub 저장소 품질 분석기."""

__version__ = "0.1.0"
