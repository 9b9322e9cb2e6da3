"""미디어 모듈.

마이크 캡처, 음소거 가능한 오디오 트랙, 원격 오디오 재생 싱크를 제공합니다.
"""

from .tracks import MutableAudioTrack
from .capture import AudioStream, MediaCapture, PlaybackSink, RecorderPlaybackSink
from .config import CaptureConfig, PlaybackConfig, capture_config, playback_config

__all__ = [
    "MutableAudioTrack",
    "AudioStream",
    "MediaCapture",
    "PlaybackSink",
    "RecorderPlaybackSink",
    "CaptureConfig",
    "PlaybackConfig",
    "capture_config",
    "playback_config",
]
