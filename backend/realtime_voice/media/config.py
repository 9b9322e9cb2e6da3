"""미디어 모듈 설정.

마이크 캡처 장치와 원격 오디오 재생 장치 설정.
"""

import os
import sys
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

# 환경변수 로드 (상위에서 이미 로드됨)
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_env_path = Path(__file__).parent.parent.parent / "config" / ".env"
load_dotenv(_env_path)


def _default_device_candidates() -> List[Tuple[str, str]]:
    """플랫폼별 기본 ffmpeg 입력 장치 후보 (device, format)."""
    if sys.platform.startswith("linux"):
        return [("default", "pulse"), ("default", "alsa")]
    if sys.platform == "darwin":
        return [(":0", "avfoundation")]
    # Windows dshow는 장치 이름이 필요하므로 명시적 설정 없이는 후보 없음
    return []


# ============================================================
# 마이크 캡처 설정
# ============================================================

@dataclass
class CaptureConfig:
    """마이크 캡처 설정."""

    # ffmpeg 입력 장치 (예: "default", "hw:1,0", ":0", "audio=Microphone")
    DEVICE: Optional[str] = field(default_factory=lambda: os.getenv("MIC_DEVICE"))

    # ffmpeg 입력 포맷 (pulse, alsa, avfoundation, dshow)
    FORMAT: Optional[str] = field(default_factory=lambda: os.getenv("MIC_FORMAT"))

    def candidates(self) -> List[Tuple[str, str]]:
        """시도할 (device, format) 후보 목록. 명시 설정이 있으면 그것만 사용."""
        if self.DEVICE and self.FORMAT:
            return [(self.DEVICE, self.FORMAT)]
        if self.FORMAT:
            return [(self.DEVICE or "default", self.FORMAT)]
        return _default_device_candidates()


# ============================================================
# 원격 오디오 재생 설정
# ============================================================

@dataclass
class PlaybackConfig:
    """원격 오디오 재생 설정."""

    DEVICE: Optional[str] = field(default_factory=lambda: os.getenv("SPEAKER_DEVICE"))
    FORMAT: Optional[str] = field(default_factory=lambda: os.getenv("SPEAKER_FORMAT"))

    def candidates(self) -> List[Tuple[str, str]]:
        if self.FORMAT:
            return [(self.DEVICE or "default", self.FORMAT)]
        if sys.platform.startswith("linux"):
            return [("default", "pulse"), ("default", "alsa")]
        return []


# ============================================================
# 싱글톤 인스턴스
# ============================================================

capture_config = CaptureConfig()
playback_config = PlaybackConfig()

logger.info(f"[Media Config] 마이크 후보: {capture_config.candidates() or '없음'}")
logger.info(f"[Media Config] 스피커 후보: {playback_config.candidates() or '없음 (blackhole)'}")
