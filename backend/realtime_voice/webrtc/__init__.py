"""WebRTC 모듈.

원격 실시간 엔드포인트와의 피어 연결 및 제어 데이터 채널을 제공합니다.

Classes:
    PeerTransport: RTCPeerConnection + 데이터 채널 래퍼

Config:
    ice_config: ICE 서버 설정
    connection_config: WebRTC 연결 설정
"""

from .transport import PeerTransport, build_ice_servers
from .config import (
    ice_config,
    connection_config,
    ICEServerConfig,
    ConnectionConfig,
)

__all__ = [
    # Classes
    "PeerTransport",
    "build_ice_servers",
    # Config
    "ice_config",
    "connection_config",
    "ICEServerConfig",
    "ConnectionConfig",
]
