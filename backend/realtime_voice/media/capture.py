"""마이크 캡처 및 원격 오디오 재생 모듈.

aiortc의 MediaPlayer로 로컬 마이크를 열고, MediaRecorder로 원격 오디오를
재생합니다.

주요 기능:
    - 마이크 스트림 획득 (플랫폼별 ffmpeg 입력 장치 후보 순차 시도)
    - 모든 트랙의 음소거 상태 동시 전환
    - 스트림 해제 (중복 호출 안전)
    - 원격 트랙 재생 싱크 (재생 불가 시 MediaBlackhole로 폐기)

Examples:
    >>> capture = MediaCapture()
    >>> stream = await capture.acquire()
    >>> capture.toggle_mute(stream)
    False
    >>> capture.release(stream)
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

from aiortc import MediaStreamTrack
from aiortc.contrib.media import MediaBlackhole, MediaPlayer, MediaRecorder

from ..shared import MediaAccessError, MediaAccessErrorKind
from .config import CaptureConfig, PlaybackConfig, capture_config, playback_config
from .tracks import MutableAudioTrack

logger = logging.getLogger(__name__)

PlayerFactory = Callable[[str, str], Any]


class AudioStream:
    """획득한 마이크 스트림.

    세션이 단독으로 소유하며, 외부에는 트랙 참조만 노출됩니다.

    Attributes:
        tracks (List[MutableAudioTrack]): 오디오 트랙 목록 (1개 이상)
        source (str): 사용한 입력 장치 설명 (예: "pulse:default")
    """

    def __init__(self, tracks: List[MutableAudioTrack], source: str = "", player: Any = None):
        self.tracks = tracks
        self.source = source
        self.player = player
        self.released = False

    def get_tracks(self) -> List[MutableAudioTrack]:
        return list(self.tracks)

    @property
    def enabled(self) -> bool:
        return bool(self.tracks) and all(track.enabled for track in self.tracks)


class MediaCapture:
    """로컬 마이크 획득과 음소거 상태를 관리하는 클래스.

    Attributes:
        config (CaptureConfig): 입력 장치 설정
        player_factory (Callable): (device, format) -> MediaPlayer 생성 함수
    """

    def __init__(
        self,
        config: Optional[CaptureConfig] = None,
        player_factory: Optional[PlayerFactory] = None,
    ):
        self.config = config or capture_config
        self.player_factory = player_factory or self._create_player

    @staticmethod
    def _create_player(device: str, fmt: str) -> MediaPlayer:
        return MediaPlayer(device, format=fmt)

    def _open(self) -> AudioStream:
        candidates = self.config.candidates()
        if not candidates:
            raise MediaAccessError(
                MediaAccessErrorKind.UNSUPPORTED,
                "no audio capture backend configured for this platform",
            )

        last_error: Optional[Exception] = None
        for device, fmt in candidates:
            try:
                player = self.player_factory(device, fmt)
            except PermissionError as e:
                raise MediaAccessError(MediaAccessErrorKind.PERMISSION_DENIED, str(e)) from e
            except Exception as e:
                logger.debug(f"[Media] 입력 장치 열기 실패: {fmt}:{device} ({e})")
                last_error = e
                continue

            source_track: Optional[MediaStreamTrack] = getattr(player, "audio", None)
            if source_track is None:
                last_error = ValueError(f"{fmt}:{device} has no audio track")
                continue

            logger.info(f"[Media] 마이크 스트림 획득: {fmt}:{device}")
            return AudioStream([MutableAudioTrack(source_track)], f"{fmt}:{device}", player)

        raise MediaAccessError(
            MediaAccessErrorKind.UNSUPPORTED,
            f"no usable audio input device ({last_error})",
        )

    async def acquire(self) -> AudioStream:
        """마이크 스트림을 획득합니다.

        ffmpeg 장치 열기는 블로킹이므로 기본 executor에서 실행합니다.

        Returns:
            AudioStream: 1개 이상의 오디오 트랙을 가진 스트림

        Raises:
            MediaAccessError: 권한 거부(PERMISSION_DENIED) 또는 장치 없음(UNSUPPORTED)
        """
        loop = asyncio.get_running_loop()
        opening = loop.run_in_executor(None, self._open)
        try:
            return await asyncio.shield(opening)
        except asyncio.CancelledError:
            # 취소 후에 열린 장치는 즉시 해제
            opening.add_done_callback(self._release_orphan)
            raise

    def _release_orphan(self, opening: asyncio.Future) -> None:
        if opening.cancelled() or opening.exception() is not None:
            return
        logger.info("[Media] 취소된 요청의 마이크 스트림 해제")
        self.release(opening.result())

    def toggle_mute(self, stream: Optional[AudioStream]) -> Optional[bool]:
        """모든 트랙의 enabled 플래그를 함께 전환합니다.

        Returns:
            Optional[bool]: 전환 후 enabled 상태 (True = 음소거 해제).
                스트림이 없으면 None
        """
        if stream is None or stream.released or not stream.tracks:
            return None

        enabled = not stream.tracks[0].enabled
        for track in stream.tracks:
            track.enabled = enabled

        logger.info(f"[Media] 마이크 {'활성화' if enabled else '음소거'} (트랙 {len(stream.tracks)}개)")
        return enabled

    def release(self, stream: Optional[AudioStream]) -> None:
        """스트림의 모든 트랙을 정지합니다. 이미 해제된 스트림이나 None도 허용."""
        if stream is None or stream.released:
            return
        stream.released = True
        for track in stream.tracks:
            track.stop()
        logger.info(f"[Media] 마이크 스트림 해제: {stream.source}")


class PlaybackSink(ABC):
    """원격 오디오 트랙을 받아 재생하는 포트."""

    @abstractmethod
    async def attach(self, track: MediaStreamTrack) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...


class RecorderPlaybackSink(PlaybackSink):
    """MediaRecorder로 원격 오디오를 스피커에 출력하는 싱크.

    설정된 출력 장치를 열 수 없으면 MediaBlackhole로 소비만 합니다.
    트랙을 소비하지 않으면 수신 버퍼가 쌓이므로 항상 어딘가에 연결해야 합니다.
    """

    def __init__(self, config: Optional[PlaybackConfig] = None):
        self.config = config or playback_config
        self._recorder: Optional[Any] = None

    def _create_recorder(self):
        for device, fmt in self.config.candidates():
            try:
                recorder = MediaRecorder(device, format=fmt)
                logger.info(f"[Media] 원격 오디오 출력: {fmt}:{device}")
                return recorder
            except Exception as e:
                logger.debug(f"[Media] 출력 장치 열기 실패: {fmt}:{device} ({e})")
        logger.warning("[Media] 출력 장치 없음, 원격 오디오 폐기 (blackhole)")
        return MediaBlackhole()

    async def attach(self, track: MediaStreamTrack) -> None:
        if self._recorder is not None:
            await self._recorder.stop()
        recorder = self._create_recorder()
        recorder.addTrack(track)
        await recorder.start()
        self._recorder = recorder

    async def stop(self) -> None:
        recorder, self._recorder = self._recorder, None
        if recorder is not None:
            await recorder.stop()
