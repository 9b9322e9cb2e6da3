"""FastAPI host application for the realtime voice session.

이 모듈은 로컬 장치에서 OpenAI Realtime API와의 WebRTC 음성 세션을 실행하는
호스트 서버를 제공합니다. 세션 컨트롤러 하나를 소유하며, 외부 UI는 HTTP로
connect/mute/cancel 명령을 보내고 상태를 조회합니다.

주요 기능:
    - 임시 인증키 발급 (GET /session, HTTP fallback 인증키 전략이 호출)
    - 세션 제어 (POST /api/realtime/connect, /mute, /cancel)
    - 상태/로그/트랜스크립트 조회 (GET /api/realtime/status)
    - 서비스 상태 확인 (GET /api/health)

Architecture:
    - SessionController: WebRTC 세션 상태 머신 (단일 세션)
    - HTTP fallback 인증키 전략 → 같은 서버의 /session

Run:
    uvicorn app:app --host 0.0.0.0 --port 8000
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# config/.env 환경변수 로드
load_dotenv(Path(__file__).parent / "config" / ".env")

from realtime_voice import SessionController  # noqa: E402
from realtime_voice.utils import setup_logging  # noqa: E402
from routes import health_router, realtime_router, session_router  # noqa: E402

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI 앱의 생명주기를 관리하는 컨텍스트 매니저.

    시작 시 세션 컨트롤러를 만들고, 종료 시 진행 중인 세션을 취소하여
    마이크와 피어 연결을 해제합니다.

    Args:
        app (FastAPI): FastAPI 애플리케이션 인스턴스

    Yields:
        None: 앱이 실행되는 동안 제어를 반환
    """
    logger.info("실시간 음성 세션 서버 시작 중...")

    if getattr(app.state, "controller", None) is None:
        app.state.controller = SessionController()

    yield

    logger.info("서버 종료 중...")
    await app.state.controller.cancel()


app = FastAPI(title="Realtime Voice Session Server", lifespan=lifespan)

# CORS - 로컬 네트워크 UI 허용
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"^http://(localhost|127\.0\.0\.1|192\.168\.\d{1,3}\.\d{1,3}):\d+$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 라우터 등록
app.include_router(health_router)
app.include_router(session_router)
app.include_router(realtime_router)


@app.get("/")
async def root():
    """서버 상태 확인 엔드포인트 (Health check).

    Returns:
        dict: 서버 상태 정보
    """
    return {"status": "ok", "service": "Realtime Voice Session Server"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host="0.0.0.0", port=8000)
