"""Realtime voice session package.

이 패키지는 로컬 마이크와 원격 실시간 AI 엔드포인트 사이의 WebRTC 음성
세션을 구성하고 관리하는 핵심 모듈을 포함합니다.

Modules:
    credentials: 임시 인증키 획득 전략
    media: 마이크 캡처 및 원격 오디오 재생
    signaling: HTTP 기반 SDP offer/answer 교환
    webrtc: 피어 연결 및 데이터 채널
    session: 세션 상태 머신과 이벤트 분류
    shared: 공통 DTO와 오류 분류
"""

from .shared import (
    Credential,
    CredentialError,
    CredentialErrorKind,
    MediaAccessError,
    MediaAccessErrorKind,
    MessageDecodeError,
    NegotiationError,
    RealtimeSessionError,
    SessionSnapshot,
    TransportError,
)
from .credentials import (
    CredentialProvider,
    HttpCredentialProvider,
    InjectedCredentialProvider,
    LocalMessagePort,
    MessagePortCredentialProvider,
    create_credential_provider,
)
from .media import AudioStream, MediaCapture, MutableAudioTrack, PlaybackSink, RecorderPlaybackSink
from .signaling import SignalingClient
from .webrtc import PeerTransport
from .session import EventChannel, RealtimeConfig, Session, SessionController, SessionState

__all__ = [
    # Session
    "SessionController",
    "Session",
    "SessionState",
    "EventChannel",
    "RealtimeConfig",
    # Credentials
    "CredentialProvider",
    "InjectedCredentialProvider",
    "HttpCredentialProvider",
    "MessagePortCredentialProvider",
    "LocalMessagePort",
    "create_credential_provider",
    # Media
    "AudioStream",
    "MediaCapture",
    "MutableAudioTrack",
    "PlaybackSink",
    "RecorderPlaybackSink",
    # Signaling / WebRTC
    "SignalingClient",
    "PeerTransport",
    # Shared
    "Credential",
    "SessionSnapshot",
    "RealtimeSessionError",
    "CredentialError",
    "CredentialErrorKind",
    "MediaAccessError",
    "MediaAccessErrorKind",
    "NegotiationError",
    "MessageDecodeError",
    "TransportError",
]
