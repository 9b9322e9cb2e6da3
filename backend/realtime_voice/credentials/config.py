"""인증키 모듈 설정.

HTTP fallback 인증키 엔드포인트와 대기 시간 설정.
"""

import os
import logging
from pathlib import Path
from dataclasses import dataclass, field

# 환경변수 로드 (상위에서 이미 로드됨)
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_env_path = Path(__file__).parent.parent.parent / "config" / ".env"
load_dotenv(_env_path)


# ============================================================
# 인증키 획득 설정
# ============================================================

@dataclass
class CredentialConfig:
    """임시 인증키 획득 설정."""

    # HTTP fallback 엔드포인트 (빈 문자열이면 비활성화)
    URL: str = field(
        default_factory=lambda: os.getenv("CREDENTIAL_URL", "http://localhost:8000/session")
    )

    # cross-context 응답 대기 시간 (초)
    TIMEOUT: float = field(
        default_factory=lambda: float(os.getenv("CREDENTIAL_TIMEOUT", "30"))
    )

    # HTTP 요청 타임아웃 (초)
    HTTP_TIMEOUT: float = field(
        default_factory=lambda: float(os.getenv("CREDENTIAL_HTTP_TIMEOUT", "10"))
    )

    # cross-context 메시지 타입
    REQUEST_MESSAGE_TYPE: str = "REQUEST_EPHEMERAL_KEY"
    RESPONSE_MESSAGE_TYPE: str = "EPHEMERAL_KEY"


# ============================================================
# 싱글톤 인스턴스
# ============================================================

credential_config = CredentialConfig()

logger.info(f"[Credential Config] HTTP fallback URL: {credential_config.URL or '비활성화'}")
logger.info(f"[Credential Config] 응답 대기 시간: {credential_config.TIMEOUT}s")
