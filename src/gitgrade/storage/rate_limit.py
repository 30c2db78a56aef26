"""사용자별 분석 요청 제한 모듈.

카운터 확인과 증가는 원자적이지 않다. 같은 사용자의 동시 요청 두 개가 한도
직전에 들어오면 둘 다 통과할 수 있다 (알려진 제약).
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Protocol

from supabase import Client, create_client

from gitgrade.config import settings
from gitgrade.errors import RateLimited
from gitgrade.models import RateLimitRecord

logger = logging.getLogger(__name__)


class RateLimitStore(Protocol):
    """요청 제한 카운터 저장소 프로토콜."""

    async def get(self, identity: str) -> RateLimitRecord | None:
        """카운터를 조회한다."""
        ...

    async def save(self, record: RateLimitRecord) -> None:
        """카운터를 저장한다."""
        ...


class InMemoryRateLimitStore:
    """프로세스 메모리에 카운터를 저장한다 (개발/테스트용).

    저장할 때마다 윈도우가 끝난 카운터를 버린다.
    """

    def __init__(self, window_seconds: int | None = None) -> None:
        """
        Args:
            window_seconds: 카운터 보관 기간 (초). None이면 설정값 사용.
        """
        self.window = timedelta(
            seconds=window_seconds or settings.rate_limit_window_seconds
        )
        self.records: dict[str, RateLimitRecord] = {}

    async def get(self, identity: str) -> RateLimitRecord | None:
        return self.records.get(identity)

    async def save(self, record: RateLimitRecord) -> None:
        cutoff = record.window_start - self.window
        expired = [
            identity
            for identity, saved in self.records.items()
            if saved.window_start <= cutoff
        ]
        for identity in expired:
            del self.records[identity]
        self.records[record.identity] = record


class SupabaseRateLimitStore:
    """Supabase `rate_limits` 테이블에 카운터를 저장한다."""

    TABLE = "rate_limits"

    def __init__(self, url: str | None, key: str | None) -> None:
        """
        Args:
            url: Supabase 프로젝트 URL
            key: Supabase anon key
        """
        self.client: Client | None = None
        if url and key:
            self.client = create_client(url, key)

    @property
    def is_configured(self) -> bool:
        """Supabase가 설정되었는지 확인한다."""
        return self.client is not None

    async def get(self, identity: str) -> RateLimitRecord | None:
        if not self.client:
            return None

        response = (
            self.client.table(self.TABLE)
            .select("identity, request_count, window_start")
            .eq("identity", identity)
            .execute()
        )
        if not response.data:
            return None
        return RateLimitRecord.model_validate(response.data[0])

    async def save(self, record: RateLimitRecord) -> None:
        if not self.client:
            return

        self.client.table(self.TABLE).upsert(
            {
                "identity": record.identity,
                "request_count": record.request_count,
                "window_start": record.window_start.isoformat(),
            },
            on_conflict="identity",
        ).execute()


class RateLimiter:
    """고정 윈도우 방식으로 사용자별 요청 수를 제한한다."""

    def __init__(
        self,
        store: RateLimitStore,
        max_requests: int,
        window_seconds: int,
    ) -> None:
        """
        Args:
            store: 카운터 저장소
            max_requests: 윈도우당 최대 요청 수
            window_seconds: 윈도우 길이 (초)
        """
        self.store = store
        self.max_requests = max_requests
        self.window = timedelta(seconds=window_seconds)

    async def check(self, identity: str, now: datetime | None = None) -> RateLimitRecord:
        """요청을 허용할지 확인하고 카운터를 증가시킨다.

        Raises:
            RateLimited: 현재 윈도우의 한도를 이미 채웠을 때
        """
        now = now or datetime.now(UTC)
        record = await self.store.get(identity)

        if record is None or now - record.window_start >= self.window:
            record = RateLimitRecord(identity=identity, request_count=0, window_start=now)

        if record.request_count >= self.max_requests:
            logger.info(f"Rate limit reached for {identity}")
            raise RateLimited(f"{identity} exceeded {self.max_requests} requests")

        updated = record.model_copy(update={"request_count": record.request_count + 1})
        await self.store.save(updated)
        return updated
