"""실시간 세션 제어 API 라우터.

세션 컨트롤러의 connect/mute/cancel 명령과 관찰 가능한 출력(상태 스냅샷)을
HTTP로 노출합니다.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException

from realtime_voice import SessionController, SessionSnapshot, SessionState

from .deps import get_controller, verify_auth_header

logger = logging.getLogger(__name__)

# 가비지 컬렉션 방지용 백그라운드 태스크 참조
_background_tasks: set = set()

router = APIRouter(
    prefix="/api/realtime",
    tags=["realtime"],
    dependencies=[Depends(verify_auth_header)],
)


@router.post("/connect", response_model=SessionSnapshot, status_code=202)
async def connect(controller: SessionController = Depends(get_controller)):
    """세션 연결을 백그라운드에서 시작합니다.

    연결 결과는 /status에서 확인합니다.

    Returns:
        SessionSnapshot: 연결 시작 직후의 상태
    """
    task = asyncio.create_task(controller.connect())
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    # 다음 루프 틱까지 양보해서 ACQUIRING_RESOURCES 전환을 반영
    await asyncio.sleep(0)
    logger.info(f"[Realtime API] 연결 시작: task={task.get_name()}")
    return controller.snapshot()


@router.post("/mute", response_model=SessionSnapshot)
async def mute(controller: SessionController = Depends(get_controller)):
    """마이크 음소거를 전환합니다.

    Raises:
        HTTPException: 마이크 스트림이 없을 때 (409)
    """
    if controller.mute() is None:
        raise HTTPException(status_code=409, detail="No local audio stream")
    return controller.snapshot()


@router.post("/cancel", response_model=SessionSnapshot)
async def cancel(controller: SessionController = Depends(get_controller)):
    """세션을 취소하고 IDLE로 되돌립니다. 여러 번 호출해도 안전합니다."""
    await controller.cancel()
    return controller.snapshot()


@router.get("/status", response_model=SessionSnapshot)
async def status(controller: SessionController = Depends(get_controller)):
    """현재 상태, 로그, 트랜스크립트, 오류를 반환합니다."""
    return controller.snapshot()


@router.post("/events", status_code=202)
async def send_event(event: dict, controller: SessionController = Depends(get_controller)):
    """연결된 세션의 데이터 채널로 JSON 이벤트를 보냅니다.

    Raises:
        HTTPException: CONNECTED 상태가 아닐 때 (409)
    """
    if controller.state != SessionState.CONNECTED:
        raise HTTPException(status_code=409, detail=f"Session is {controller.state.value}")
    try:
        controller.send_event(event)
    except RuntimeError as e:
        logger.warning(f"[Realtime API] 이벤트 전송 불가: {e}")
        raise HTTPException(status_code=409, detail=str(e))
    return {"status": "sent", "type": event.get("type")}
