"""Cross-context 메시지 포트 모듈.

임베딩 컨텍스트(부모 애플리케이션)와 메시지를 주고받기 위한 포트 추상화.
프로세스 전역 리스너 대신 명시적인 구독 핸들을 사용합니다.

Examples:
    >>> port = LocalMessagePort(on_post=outbox.append)
    >>> subscription = port.subscribe(print)
    >>> port.deliver({"type": "EPHEMERAL_KEY", "key": {...}})
    >>> subscription.unsubscribe()
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

MessageListener = Callable[[Any], None]


class Subscription:
    """메시지 리스너 구독 핸들.

    unsubscribe()는 여러 번 호출해도 안전합니다.
    """

    def __init__(self, port: "MessagePort", listener: MessageListener):
        self._port = port
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._port._remove_listener(self._listener)


class MessagePort(ABC):
    """임베딩 컨텍스트와의 메시지 채널."""

    @abstractmethod
    def post_message(self, message: Dict[str, Any]) -> None:
        """임베딩 컨텍스트로 메시지를 보냅니다."""

    @abstractmethod
    def subscribe(self, listener: MessageListener) -> Subscription:
        """수신 메시지 리스너를 등록하고 구독 핸들을 반환합니다."""

    @abstractmethod
    def _remove_listener(self, listener: MessageListener) -> None:
        ...


class LocalMessagePort(MessagePort):
    """프로세스 내부 메시지 포트.

    post_message()로 보낸 메시지는 on_post 콜백으로 전달되고, 임베딩 측은
    deliver()로 응답 메시지를 주입합니다.

    Attributes:
        on_post (Optional[Callable]): 발신 메시지를 받는 콜백
        listeners (List[Callable]): 현재 구독 중인 리스너 목록
    """

    def __init__(self, on_post: Optional[Callable[[Dict[str, Any]], None]] = None):
        self.on_post = on_post
        self.listeners: List[MessageListener] = []

    def post_message(self, message: Dict[str, Any]) -> None:
        logger.debug(f"[MessagePort] 발신: type={message.get('type')}")
        if self.on_post:
            self.on_post(message)

    def subscribe(self, listener: MessageListener) -> Subscription:
        self.listeners.append(listener)
        return Subscription(self, listener)

    def _remove_listener(self, listener: MessageListener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    def deliver(self, message: Any) -> None:
        """수신 메시지를 모든 구독자에게 전달합니다."""
        # 리스너가 전달 중에 구독을 해제할 수 있으므로 복사본 순회
        for listener in list(self.listeners):
            listener(message)
