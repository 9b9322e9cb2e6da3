"""세션 모듈 설정.

실시간 API 엔드포인트와 모델 식별자. 두 값 모두 생성 시점에 덮어쓸 수 있습니다.
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

DEFAULT_ENDPOINT = "https://api.openai.com/v1/realtime"
DEFAULT_MODEL_ID = "gpt-4o-realtime-preview-2024-12-17"


@dataclass
class RealtimeConfig:
    """실시간 세션 설정.

    Attributes:
        endpoint (str): SDP offer를 보낼 실시간 API 엔드포인트
        model_id (str): model 쿼리 파라미터로 전달할 모델 식별자

    Examples:
        >>> RealtimeConfig(model_id="gpt-4o-mini-realtime-preview")
    """

    endpoint: str = field(
        default_factory=lambda: os.getenv("REALTIME_ENDPOINT", DEFAULT_ENDPOINT)
    )
    model_id: str = field(
        default_factory=lambda: os.getenv("REALTIME_MODEL", DEFAULT_MODEL_ID)
    )


realtime_config = RealtimeConfig()

logger.info(f"[Session Config] endpoint={realtime_config.endpoint}, model={realtime_config.model_id}")
