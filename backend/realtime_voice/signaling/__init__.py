"""시그널링 모듈.

HTTP 기반 SDP offer/answer 교환 클라이언트를 제공합니다.
"""

from .client import SignalingClient
from .config import SignalingConfig, signaling_config

__all__ = [
    "SignalingClient",
    "SignalingConfig",
    "signaling_config",
]
