"""Health Check API 라우터.

서비스 상태 확인을 위한 엔드포인트들을 제공합니다.
"""

import os

from fastapi import APIRouter, Request

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
async def health_check(request: Request):
    """전체 서비스 상태를 확인합니다.

    Returns:
        dict: 세션 컨트롤러 및 인증키 발급 설정 상태
    """
    controller = getattr(request.app.state, "controller", None)

    session_status = "not_initialized"
    if controller is not None:
        session_status = controller.state.value

    key_status = "ok" if os.getenv("OPENAI_API_KEY") else "not_configured"
    overall = "ok" if controller is not None and key_status == "ok" else "degraded"

    return {
        "status": overall,
        "services": {
            "session": session_status,
            "ephemeral_key": key_status,
        }
    }
