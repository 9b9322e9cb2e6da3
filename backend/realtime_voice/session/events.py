"""데이터 채널 이벤트 분류 모듈.

제어 데이터 채널로 들어오는 메시지를 해석해 세션 로그 또는 트랜스크립트에
반영합니다. 어떤 메시지도 이 경계를 넘어 예외를 던지지 않습니다.

Wire format:
    {"type": "response.text.delta", "delta": "hello"}
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..shared import MessageDecodeError
from .state import Session

logger = logging.getLogger(__name__)

TRANSCRIPT_DELTA_TYPE = "response.text.delta"


class ChannelEventKind(str, Enum):
    TRANSCRIPT_DELTA = "transcript_delta"
    EVENT = "event"
    UNSTRUCTURED = "unstructured"


@dataclass
class ChannelEvent:
    """분류된 수신 메시지."""

    kind: ChannelEventKind
    raw: str
    type: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    delta: Optional[str] = None


class EventChannel:
    """수신 메시지를 분류하고 세션에 반영하는 클래스."""

    @staticmethod
    def decode(raw: str) -> Dict[str, Any]:
        """JSON 객체로 해석합니다.

        Raises:
            MessageDecodeError: JSON이 아니거나 객체가 아닐 때
        """
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            raise MessageDecodeError(raw, str(e)) from e
        if not isinstance(data, dict):
            raise MessageDecodeError(raw, f"expected JSON object, got {type(data).__name__}")
        return data

    def classify(self, message: Union[str, bytes]) -> ChannelEvent:
        if isinstance(message, bytes):
            raw = message.decode("utf-8", errors="replace")
        else:
            raw = str(message)

        try:
            data = self.decode(raw)
        except MessageDecodeError as e:
            logger.debug(f"[Session] 비구조화 메시지: {e.detail}")
            return ChannelEvent(ChannelEventKind.UNSTRUCTURED, raw)

        event_type = data.get("type")
        delta = data.get("delta")
        if event_type == TRANSCRIPT_DELTA_TYPE and isinstance(delta, str):
            return ChannelEvent(ChannelEventKind.TRANSCRIPT_DELTA, raw, event_type, data, delta)

        return ChannelEvent(
            ChannelEventKind.EVENT,
            raw,
            event_type if isinstance(event_type, str) else None,
            data,
        )

    def dispatch(self, session: Session, message: Union[str, bytes]) -> ChannelEvent:
        """메시지를 분류하고 세션의 로그/트랜스크립트에 추가합니다."""
        event = self.classify(message)

        if event.kind == ChannelEventKind.TRANSCRIPT_DELTA:
            session.append_transcript(event.delta)
        elif event.kind == ChannelEventKind.UNSTRUCTURED:
            session.append_log(event.raw)
        else:
            session.append_log(f"AI event: {event.raw}")

        return event
