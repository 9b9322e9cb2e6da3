"""SDP offer/answer 교환 모듈.

로컬 offer SDP를 HTTP POST로 원격 엔드포인트에 보내고 answer SDP를 받습니다.
한 번의 요청으로 끝나는 단발성 교환이며 재협상이나 trickle ICE는 없습니다.

Request:
    POST {endpoint}?model={model_id}
    Authorization: Bearer {credential}
    Content-Type: application/sdp
    Body: offer SDP 원문

Examples:
    >>> client = SignalingClient()
    >>> answer_sdp = await client.exchange(
    ...     offer_sdp, "ek_123",
    ...     "https://api.openai.com/v1/realtime",
    ...     "gpt-4o-realtime-preview-2024-12-17",
    ... )
"""
import asyncio
import logging
from typing import Optional

import aiohttp

from ..shared import NegotiationError
from .config import SignalingConfig, signaling_config

logger = logging.getLogger(__name__)


class SignalingClient:
    """SDP offer/answer를 HTTP로 교환하는 클라이언트.

    실패한 요청은 자동으로 재시도하지 않습니다.

    Attributes:
        config (SignalingConfig): 타임아웃 등 시그널링 설정
    """

    def __init__(self, config: Optional[SignalingConfig] = None):
        self.config = config or signaling_config

    async def exchange(
        self,
        offer_sdp: str,
        credential: str,
        endpoint: str,
        model_id: str,
    ) -> str:
        """offer를 보내고 answer SDP 원문을 반환합니다.

        Args:
            offer_sdp (str): 로컬에 커밋된 offer SDP
            credential (str): 임시 인증키 값
            endpoint (str): 실시간 API 엔드포인트
            model_id (str): 모델 식별자 (model 쿼리 파라미터)

        Returns:
            str: 원격 answer SDP (수정하지 않은 응답 본문)

        Raises:
            NegotiationError: 2xx가 아닌 응답 또는 네트워크 오류
        """
        headers = {
            "Authorization": f"Bearer {credential}",
            "Content-Type": self.config.CONTENT_TYPE,
        }
        logger.info(f"[Signaling] offer 전송: {endpoint} (model={model_id}, {len(offer_sdp)} bytes)")

        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.HTTP_TIMEOUT)
            ) as session:
                async with session.post(
                    endpoint,
                    params={"model": model_id},
                    data=offer_sdp.encode("utf-8"),
                    headers=headers,
                ) as response:
                    if not 200 <= response.status < 300:
                        logger.error(
                            f"[Signaling] answer 수신 실패: {response.status} - {response.reason}"
                        )
                        raise NegotiationError(response.status, response.reason or "")
                    answer_sdp = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"[Signaling] offer 전송 중 네트워크 오류: {type(e).__name__}: {e}")
            raise NegotiationError(None, f"{type(e).__name__}: {e}") from e

        logger.info(f"[Signaling] answer 수신 ({len(answer_sdp)} bytes)")
        return answer_sdp
