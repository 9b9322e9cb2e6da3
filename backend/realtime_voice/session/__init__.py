"""세션 모듈.

세션 상태 머신, 세션 상태 집합체, 데이터 채널 이벤트 분류기를 제공합니다.

Classes:
    SessionController: connect/mute/cancel 상태 머신
    Session: 세션 상태 집합체
    SessionState: 세션 상태 열거형
    EventChannel: 데이터 채널 메시지 분류기
"""

from .config import RealtimeConfig, realtime_config, DEFAULT_ENDPOINT, DEFAULT_MODEL_ID
from .state import Session, SessionState
from .events import ChannelEvent, ChannelEventKind, EventChannel, TRANSCRIPT_DELTA_TYPE
from .controller import SessionController

__all__ = [
    "RealtimeConfig",
    "realtime_config",
    "DEFAULT_ENDPOINT",
    "DEFAULT_MODEL_ID",
    "Session",
    "SessionState",
    "ChannelEvent",
    "ChannelEventKind",
    "EventChannel",
    "TRANSCRIPT_DELTA_TYPE",
    "SessionController",
]
