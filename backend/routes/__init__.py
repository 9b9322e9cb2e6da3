"""FastAPI 라우터 모듈.

app.py에서 분리된 API 엔드포인트들을 제공합니다.
"""

from .health import router as health_router
from .session import router as session_router
from .realtime import router as realtime_router
from .deps import get_controller, verify_auth_header

__all__ = [
    "health_router",
    "session_router",
    "realtime_router",
    "get_controller",
    "verify_auth_header",
]
