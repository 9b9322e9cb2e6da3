"""세션 서버 로깅 설정.

컴포넌트 로거는 `[Session]`, `[WebRTC]` 같은 태그를 메시지 앞에 붙이고,
여기서는 루트 로거의 출력 대상과 포맷만 정합니다.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-25s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# ICE/DTLS 패킷 단위 로그가 많은 라이브러리
QUIET_LOGGERS = ("aioice", "aiortc", "aiohttp.access", "uvicorn.access")

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5


def _build_handlers(log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            log_file,
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding='utf-8'
        ))
    return handlers


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None
) -> None:
    """루트 로거를 콘솔(및 선택적으로 파일) 출력으로 재구성합니다.

    Args:
        level: 로그 레벨 이름 (기본: LOG_LEVEL 환경변수, 없으면 INFO)
        log_file: 회전 로그 파일 경로 (기본: LOG_FILE_PATH 환경변수)
    """
    level = level or os.getenv("LOG_LEVEL", "INFO")
    log_file = log_file or os.getenv("LOG_FILE_PATH")
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    for handler in _build_handlers(log_file):
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(log_level)

    logging.getLogger(__name__).info(
        f"[Logging] level={level}, file={log_file or 'None'}, 억제={', '.join(QUIET_LOGGERS)}"
    )
