"""AI 게이트웨이 (OpenAI 호환 chat completion) 클라이언트."""

import logging

import httpx

from gitgrade.config import settings
from gitgrade.errors import (
    AnalysisFailed,
    RateLimited,
    ServiceUnavailable,
    UpstreamError,
)
from gitgrade.prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)


class AIGatewayClient:
    """호스팅된 chat completion 엔드포인트를 1회 호출한다. 재시도하지 않는다."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            api_key: 게이트웨이 API 키. None이면 호출 시 ServiceUnavailable.
            url: chat completion URL. None이면 설정값 사용.
            model: 모델 식별자. None이면 설정값 사용.
            timeout: HTTP 요청 타임아웃 (초). None이면 설정값 사용.
            transport: 테스트용 httpx transport
        """
        self.api_key = api_key
        self.url = url or settings.ai_gateway_url
        self.model = model or settings.ai_model
        self.timeout = timeout if timeout is not None else settings.http_timeout
        self.transport = transport

    def _build_payload(self, prompt: str) -> dict[str, object]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        }

    async def complete(self, prompt: str) -> str:
        """프롬프트를 전송하고 응답 텍스트를 반환한다.

        Raises:
            ServiceUnavailable: API 키가 없거나 제공자가 402를 반환할 때
            RateLimited: 제공자가 429를 반환할 때
            UpstreamError: 그 외 실패 응답 또는 네트워크 오류
            AnalysisFailed: 응답 형식이 choices[0].message.content가 아닐 때
        """
        if not self.api_key:
            logger.error("AI gateway API key is not configured")
            raise ServiceUnavailable("AI gateway API key is not configured")

        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport
        ) as client:
            try:
                response = await client.post(
                    self.url,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json=self._build_payload(prompt),
                )
            except httpx.RequestError as e:
                logger.error(f"AI gateway request failed: {e}")
                raise UpstreamError(f"AI gateway request failed: {e}") from e

        if not response.is_success:
            logger.error(
                f"AI gateway error: {response.status_code} {response.text[:500]}"
            )
            if response.status_code == 429:
                raise RateLimited("AI gateway rate limit exceeded")
            if response.status_code == 402:
                raise ServiceUnavailable("AI gateway credits exhausted")
            raise UpstreamError(f"AI gateway returned {response.status_code}")

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AnalysisFailed("AI gateway returned an unexpected envelope") from e

        if not isinstance(content, str):
            raise AnalysisFailed("AI gateway returned non-text content")

        logger.info(f"AI response received ({len(content)} chars)")
        return content
