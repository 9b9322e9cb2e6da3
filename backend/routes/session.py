"""임시 인증키 발급 라우터.

HTTP fallback 인증키 전략이 호출하는 고정 엔드포인트(`GET /session`)를
제공합니다. 서버의 OpenAI API 키로 실시간 세션을 생성하고 응답 JSON을
그대로 반환합니다.

Response:
    성공: {"client_secret": {"value": "ek_...", "expires_at": ...}, ...}
    실패: {"error": "..."}
"""

import logging
import os

import aiohttp
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from realtime_voice.session import DEFAULT_MODEL_ID

logger = logging.getLogger(__name__)

router = APIRouter(tags=["session"])

OPENAI_SESSIONS_URL = os.getenv(
    "OPENAI_SESSIONS_URL", "https://api.openai.com/v1/realtime/sessions"
)


async def request_ephemeral_key(api_key: str, model: str, voice: str) -> tuple:
    """OpenAI에 실시간 세션 생성을 요청합니다.

    Returns:
        tuple: (status, payload)
    """
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=15)) as session:
        async with session.post(
            OPENAI_SESSIONS_URL,
            json={"model": model, "voice": voice},
            headers=headers,
        ) as response:
            if not 200 <= response.status < 300:
                return response.status, {"error": await response.text()}
            return response.status, await response.json(content_type=None)


@router.get("/session")
async def create_session():
    """임시 인증키를 발급합니다.

    Returns:
        JSONResponse: OpenAI 세션 응답 또는 {"error": ...}
    """
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        logger.error("[Session API] OPENAI_API_KEY 미설정")
        return JSONResponse({"error": "OPENAI_API_KEY is not configured"}, status_code=500)

    model = os.getenv("REALTIME_MODEL", DEFAULT_MODEL_ID)
    voice = os.getenv("REALTIME_VOICE", "verse")

    try:
        status, payload = await request_ephemeral_key(api_key, model, voice)
    except aiohttp.ClientError as e:
        logger.error(f"[Session API] 인증키 발급 요청 실패: {e}")
        return JSONResponse({"error": f"upstream request failed: {e}"}, status_code=502)

    if not isinstance(payload, dict):
        logger.warning(f"[Session API] 인증키 발급 응답 형식 오류: {type(payload).__name__}")
        return JSONResponse({"error": "unexpected upstream response"}, status_code=502)

    if "error" in payload:
        logger.warning(f"[Session API] 인증키 발급 실패: status={status}")
        return JSONResponse(payload, status_code=status if status >= 400 else 502)

    logger.info(f"[Session API] 인증키 발급 완료: model={model}")
    return payload
