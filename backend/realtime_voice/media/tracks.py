"""음소거 가능한 오디오 트랙 모듈.

마이크 트랙을 감싸서 enabled 플래그로 음소거를 제어합니다.
"""

import logging

from aiortc import MediaStreamTrack

logger = logging.getLogger(__name__)


class MutableAudioTrack(MediaStreamTrack):
    """enabled 플래그를 가진 오디오 트랙.

    비활성화 상태에서도 프레임은 계속 전달되지만 샘플은 0으로 채워집니다.
    프레임을 끊지 않으므로 RTP timestamp가 일정하게 유지됩니다.

    Attributes:
        kind (str): 트랙 종류 ("audio")
        track (MediaStreamTrack): 원본 마이크 트랙
        enabled (bool): False이면 무음 프레임 전송

    Examples:
        >>> track = MutableAudioTrack(player.audio)
        >>> track.enabled = False  # 음소거
        >>> frame = await track.recv()  # 무음 프레임
    """
    kind = "audio"

    def __init__(self, track: MediaStreamTrack):
        super().__init__()
        self.track = track
        self.enabled = True

    async def recv(self):
        frame = await self.track.recv()

        if not self.enabled:
            for plane in frame.planes:
                plane.update(bytes(plane.buffer_size))

        return frame

    def stop(self) -> None:
        """원본 트랙까지 정지합니다. 여러 번 호출해도 안전합니다."""
        if self.track.readyState != "ended":
            self.track.stop()
        super().stop()
