"""시그널링 모듈 설정."""

import os
import logging
from pathlib import Path
from dataclasses import dataclass, field

# 환경변수 로드 (상위에서 이미 로드됨)
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_env_path = Path(__file__).parent.parent.parent / "config" / ".env"
load_dotenv(_env_path)


@dataclass
class SignalingConfig:
    """SDP offer/answer 교환 설정."""

    # HTTP 요청 타임아웃 (초)
    HTTP_TIMEOUT: float = field(
        default_factory=lambda: float(os.getenv("SIGNALING_HTTP_TIMEOUT", "20"))
    )

    # SDP 본문 Content-Type
    CONTENT_TYPE: str = "application/sdp"


signaling_config = SignalingConfig()

logger.info(f"[Signaling Config] HTTP 타임아웃: {signaling_config.HTTP_TIMEOUT}s")
