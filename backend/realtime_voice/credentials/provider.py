"""임시 인증키(ephemeral key) 획득 모듈.

WebRTC 미디어 전송을 여는 데 필요한 단기 인증키를 세 가지 전략 중 하나로
획득합니다. 전략은 설정에 따라 하나만 선택되며 서로 연쇄되지 않습니다.

주요 기능:
    - Injected: 외부에서 주입한 비동기 함수 호출
    - HTTP fallback: 고정 엔드포인트에 GET 요청 (aiohttp)
    - Cross-context: 임베딩 컨텍스트에 요청 메시지를 보내고 응답 대기

Payload 형식:
    - 성공: {"client_secret": {"value": "ek_..."}}
    - 실패: {"error": "..."}

Examples:
    >>> provider = create_credential_provider(fetcher=fetch_key)
    >>> credential = await provider.acquire()
    >>> credential.value
    'ek_123'
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

import aiohttp
from pydantic import ValidationError

from ..shared import Credential, CredentialError, CredentialErrorKind, CredentialPayload
from .config import CredentialConfig, credential_config
from .message_port import MessagePort

logger = logging.getLogger(__name__)

CredentialFetcher = Callable[[], Awaitable[Any]]


def parse_credential_payload(payload: Any) -> Credential:
    """인증키 응답 payload를 검증하고 Credential로 변환합니다.

    Args:
        payload: 디코딩된 응답 (dict 예상)

    Returns:
        Credential: client_secret.value를 그대로 담은 인증키

    Raises:
        CredentialError: error 필드가 있거나 client_secret.value가 없을 때 (REJECTED)
    """
    if isinstance(payload, dict) and payload.get("error"):
        error = payload["error"]
        if isinstance(error, dict):
            error = error.get("message") or error
        raise CredentialError(CredentialErrorKind.REJECTED, str(error))

    try:
        parsed = CredentialPayload.model_validate(payload)
    except ValidationError as e:
        raise CredentialError(
            CredentialErrorKind.REJECTED, f"invalid credential payload: {e.error_count()} error(s)"
        ) from e

    if parsed.client_secret is None:
        raise CredentialError(CredentialErrorKind.REJECTED, "client_secret.value missing")

    return Credential(
        value=parsed.client_secret.value,
        expires_at=parsed.client_secret.expires_at,
    )


class CredentialProvider(ABC):
    """인증키 획득 전략 인터페이스."""

    strategy: str = "abstract"

    @abstractmethod
    async def acquire(self) -> Credential:
        """인증키를 획득합니다.

        Raises:
            CredentialError: 획득 실패 시
        """


class InjectedCredentialProvider(CredentialProvider):
    """외부에서 주입된 비동기 함수를 그대로 호출하는 전략."""

    strategy = "injected"

    def __init__(self, fetcher: CredentialFetcher):
        self.fetcher = fetcher

    async def acquire(self) -> Credential:
        try:
            payload = await self.fetcher()
        except CredentialError:
            raise
        except Exception as e:
            logger.error(f"[Credential] 주입된 함수 호출 실패: {type(e).__name__}: {e}")
            raise CredentialError(CredentialErrorKind.REJECTED, f"{type(e).__name__}: {e}") from e
        credential = parse_credential_payload(payload)
        logger.info("[Credential] 주입된 함수로 인증키 획득")
        return credential


class HttpCredentialProvider(CredentialProvider):
    """고정 엔드포인트에 GET 요청하여 인증키를 받는 전략.

    Attributes:
        url (str): 인증키 발급 엔드포인트
        timeout (float): 요청 타임아웃 (초)
    """

    strategy = "http"

    def __init__(self, url: str, timeout: Optional[float] = None):
        self.url = url
        self.timeout = timeout if timeout is not None else credential_config.HTTP_TIMEOUT

    async def acquire(self) -> Credential:
        logger.info(f"[Credential] HTTP 인증키 요청: {self.url}")
        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as session:
                async with session.get(self.url) as response:
                    if not 200 <= response.status < 300:
                        logger.warning(f"[Credential] 인증키 요청 실패: status={response.status}")
                        raise CredentialError(
                            CredentialErrorKind.HTTP_FAILURE,
                            f"{response.status} - {response.reason or ''}".rstrip(" -"),
                            status=response.status,
                        )
                    try:
                        payload = await response.json(content_type=None)
                    except ValueError as e:
                        raise CredentialError(
                            CredentialErrorKind.REJECTED, f"undecodable response: {e}"
                        ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"[Credential] 인증키 요청 중 네트워크 오류: {type(e).__name__}: {e}")
            raise CredentialError(
                CredentialErrorKind.HTTP_FAILURE, f"{type(e).__name__}: {e}"
            ) from e

        credential = parse_credential_payload(payload)
        logger.info("[Credential] HTTP 인증키 획득 완료")
        return credential


class MessagePortCredentialProvider(CredentialProvider):
    """임베딩 컨텍스트에 요청 메시지를 보내고 응답을 기다리는 전략.

    구독은 응답 수신, 타임아웃, 취소 중 어느 경우에도 해제됩니다.
    type이 응답 타입과 다른 메시지는 모두 무시합니다.

    Attributes:
        port (MessagePort): 메시지 포트
        timeout (float): 응답 대기 시간 (초)
    """

    strategy = "message_port"

    def __init__(
        self,
        port: MessagePort,
        timeout: Optional[float] = None,
        config: Optional[CredentialConfig] = None,
    ):
        self.port = port
        self.config = config or credential_config
        self.timeout = timeout if timeout is not None else self.config.TIMEOUT

    async def acquire(self) -> Credential:
        loop = asyncio.get_running_loop()
        response: asyncio.Future = loop.create_future()

        def on_message(message: Any) -> None:
            if not isinstance(message, dict):
                return
            if message.get("type") != self.config.RESPONSE_MESSAGE_TYPE:
                return
            if not response.done():
                response.set_result(message.get("key"))

        subscription = self.port.subscribe(on_message)
        try:
            self.port.post_message({"type": self.config.REQUEST_MESSAGE_TYPE})
            logger.info("[Credential] 임베딩 컨텍스트에 인증키 요청")
            try:
                payload = await asyncio.wait_for(response, timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.warning(f"[Credential] 인증키 응답 대기 시간 초과 ({self.timeout}s)")
                raise CredentialError(
                    CredentialErrorKind.TIMEOUT,
                    f"no {self.config.RESPONSE_MESSAGE_TYPE} response within {self.timeout}s",
                )
        finally:
            subscription.unsubscribe()

        credential = parse_credential_payload(payload)
        logger.info("[Credential] 임베딩 컨텍스트로부터 인증키 수신")
        return credential


def create_credential_provider(
    fetcher: Optional[CredentialFetcher] = None,
    message_port: Optional[MessagePort] = None,
    config: Optional[CredentialConfig] = None,
) -> Optional[CredentialProvider]:
    """설정에 맞는 인증키 전략을 하나 선택합니다.

    우선순위: 주입 함수 > 메시지 포트 > HTTP fallback URL.

    Args:
        fetcher: 외부 주입 비동기 함수
        message_port: cross-context 메시지 포트
        config: 인증키 설정 (기본값: 전역 credential_config)

    Returns:
        Optional[CredentialProvider]: 선택된 전략. 아무것도 설정되지 않았으면 None

    Raises:
        ValueError: fetcher와 message_port가 동시에 주어졌을 때
    """
    config = config or credential_config

    if fetcher is not None and message_port is not None:
        raise ValueError("fetcher and message_port are mutually exclusive credential strategies")

    if fetcher is not None:
        return InjectedCredentialProvider(fetcher)
    if message_port is not None:
        return MessagePortCredentialProvider(message_port, config=config)
    if config.URL:
        return HttpCredentialProvider(config.URL, timeout=config.HTTP_TIMEOUT)

    logger.warning("[Credential] 설정된 인증키 전략 없음")
    return None
