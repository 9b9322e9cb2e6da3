"""WebRTC 피어 전송 모듈.

이 모듈은 원격 실시간 AI 엔드포인트와의 RTCPeerConnection 하나와 제어용
데이터 채널 하나를 감쌉니다. 세션 컨트롤러가 단독으로 소유하며 offer 생성,
answer 적용, 종료만 수행합니다.

주요 기능:
    - ICE 서버(STUN/TURN) 설정으로 RTCPeerConnection 생성
    - 로컬 마이크 트랙 추가
    - 원격 트랙 수신 시 콜백 호출 (재생 싱크로 전달)
    - 제어 데이터 채널 열기 및 open/message 이벤트 전달
    - 연결 실패(connectionState == "failed") 감지

WebRTC Flow:
    1. add_tracks(): 로컬 트랙 추가
    2. open_control_channel(): 데이터 채널 생성
    3. create_offer(): offer 생성 및 setLocalDescription (ICE 수집 완료까지 대기)
    4. (외부) SignalingClient.exchange()
    5. apply_answer(): setRemoteDescription

Examples:
    >>> transport = PeerTransport(on_remote_track=sink.attach)
    >>> transport.add_tracks(stream.get_tracks())
    >>> transport.open_control_channel()
    >>> offer_sdp = await transport.create_offer()
    >>> await transport.apply_answer(answer_sdp)
    >>> await transport.close()

See Also:
    aiortc Documentation: https://aiortc.readthedocs.io/
"""
import logging
from typing import Awaitable, Callable, Iterable, List, Optional, Union

from aiortc import (
    MediaStreamTrack,
    RTCConfiguration,
    RTCDataChannel,
    RTCIceServer,
    RTCPeerConnection,
    RTCSessionDescription,
)

from .config import ConnectionConfig, ICEServerConfig, connection_config, ice_config

logger = logging.getLogger(__name__)

TrackCallback = Callable[[MediaStreamTrack], Awaitable[None]]
MessageCallback = Callable[[Union[str, bytes]], None]


def build_ice_servers(config: ICEServerConfig) -> List[RTCIceServer]:
    """ICE 서버 목록을 구성합니다."""
    ice_servers = []

    if config.STUN_SERVER_URL:
        ice_servers.append(RTCIceServer(urls=[config.STUN_SERVER_URL]))
        logger.info(f"[WebRTC] STUN 서버 설정: {config.STUN_SERVER_URL}")

    if config.USE_DEFAULT_STUN:
        for stun_url in config.DEFAULT_STUN_SERVERS:
            ice_servers.append(RTCIceServer(urls=[stun_url]))

    if config.has_turn_server:
        ice_servers.append(RTCIceServer(
            urls=[config.TURN_SERVER_URL],
            username=config.TURN_USERNAME,
            credential=config.TURN_CREDENTIAL
        ))
        logger.info(f"[WebRTC] TURN 서버 설정: {config.TURN_SERVER_URL}")

    return ice_servers


class PeerTransport:
    """RTCPeerConnection과 제어 데이터 채널을 소유하는 클래스.

    Attributes:
        pc (RTCPeerConnection): 피어 연결
        channel (Optional[RTCDataChannel]): 제어 데이터 채널
        closed (bool): close() 호출 여부

    Note:
        - close()는 여러 번 호출해도 안전함
        - 재협상은 지원하지 않음 (offer/answer 한 번)
    """

    def __init__(
        self,
        on_remote_track: Optional[TrackCallback] = None,
        on_channel_open: Optional[Callable[[], None]] = None,
        on_channel_message: Optional[MessageCallback] = None,
        on_failed: Optional[Callable[[], Awaitable[None]]] = None,
        ice: Optional[ICEServerConfig] = None,
        connection: Optional[ConnectionConfig] = None,
    ):
        self.on_remote_track = on_remote_track
        self.on_channel_open = on_channel_open
        self.on_channel_message = on_channel_message
        self.on_failed = on_failed
        self.connection = connection or connection_config

        self.pc = RTCPeerConnection(
            configuration=RTCConfiguration(iceServers=build_ice_servers(ice or ice_config))
        )
        self.channel: Optional[RTCDataChannel] = None
        self.closed = False
        logger.info("[WebRTC] RTCPeerConnection 생성 완료")

        @self.pc.on("track")
        async def on_track(track: MediaStreamTrack):
            logger.info(f"[WebRTC] 원격 {track.kind} 트랙 수신")

            @track.on("ended")
            async def on_ended():
                logger.info(f"[WebRTC] 원격 {track.kind} 트랙 종료")

            if track.kind == "audio" and self.on_remote_track:
                await self.on_remote_track(track)

        @self.pc.on("connectionstatechange")
        async def on_connection_state_change():
            state = self.pc.connectionState
            logger.info(f"[WebRTC] 연결 상태: {state}")
            if state == "failed" and not self.closed and self.on_failed:
                await self.on_failed()

    def add_tracks(self, tracks: Iterable[MediaStreamTrack]) -> int:
        """로컬 트랙을 모두 추가하고 추가된 개수를 반환합니다."""
        count = 0
        for track in tracks:
            self.pc.addTrack(track)
            count += 1
        logger.info(f"[WebRTC] 로컬 트랙 {count}개 추가")
        return count

    def open_control_channel(self, label: Optional[str] = None) -> RTCDataChannel:
        """제어 이벤트용 양방향 데이터 채널을 엽니다."""
        channel = self.pc.createDataChannel(label or self.connection.DATA_CHANNEL_LABEL)

        @channel.on("open")
        def on_open():
            logger.info(f"[WebRTC] 데이터 채널 열림: {channel.label}")
            if self.on_channel_open:
                self.on_channel_open()

        @channel.on("message")
        def on_message(message):
            if self.on_channel_message:
                self.on_channel_message(message)

        self.channel = channel
        return channel

    async def create_offer(self) -> str:
        """offer를 생성하고 로컬에 커밋한 뒤 SDP를 반환합니다.

        aiortc는 setLocalDescription 안에서 ICE 후보 수집을 마치므로
        반환되는 SDP에는 후보가 모두 포함되어 있습니다.
        """
        offer = await self.pc.createOffer()
        await self.pc.setLocalDescription(offer)
        candidate_count = self.pc.localDescription.sdp.count("a=candidate:")
        logger.info(f"[WebRTC] offer 커밋 완료: 후보수={candidate_count}, gathering={self.pc.iceGatheringState}")
        return self.pc.localDescription.sdp

    async def apply_answer(self, answer_sdp: str) -> None:
        """원격 answer SDP를 적용합니다."""
        await self.pc.setRemoteDescription(RTCSessionDescription(sdp=answer_sdp, type="answer"))
        logger.info(f"[WebRTC] answer 적용 완료: signaling={self.pc.signalingState}")

    def send(self, message: str) -> None:
        """데이터 채널로 메시지를 보냅니다."""
        if self.channel is None or self.channel.readyState != "open":
            raise RuntimeError("control channel is not open")
        self.channel.send(message)

    async def close(self) -> None:
        """데이터 채널과 피어 연결을 닫습니다. 여러 번 호출해도 안전합니다."""
        if self.closed:
            return
        self.closed = True
        if self.channel is not None:
            self.channel.close()
        await self.pc.close()
        logger.info("[WebRTC] 피어 연결 종료")
