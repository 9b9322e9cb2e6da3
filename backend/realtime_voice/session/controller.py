"""실시간 음성 세션 컨트롤러 모듈.

이 모듈은 로컬 마이크와 원격 실시간 AI 엔드포인트 사이의 WebRTC 세션 하나를
상태 머신으로 관리합니다. 마이크/인증키 동시 획득, offer/answer 교환,
데이터 채널 이벤트 처리, 음소거와 취소를 담당합니다.

State Machine:
    IDLE → ACQUIRING_RESOURCES → NEGOTIATING → CONNECTED
    - 파이프라인 중 어떤 오류든 ERROR로 전환 (자동 재시도 없음)
    - cancel()은 어느 상태에서든 IDLE로 복귀

Connect Flow:
    1. MediaCapture.acquire()와 CredentialProvider.acquire()를 동시에 시작
    2. 둘 다 끝나면 PeerTransport 생성, 로컬 트랙 추가
    3. 데이터 채널 열기, offer 생성 및 로컬 커밋
    4. SignalingClient.exchange()로 answer 수신
    5. answer 적용 → CONNECTED

Race Guard:
    connect 시도마다 세대(generation) 번호를 부여하고, 모든 재개 지점에서
    현재 세대인지 확인합니다. cancel() 이후 늦게 도착한 결과는 세션을 변경하지
    않고 폐기되며, 늦게 도착한 마이크 스트림은 즉시 해제됩니다.

Examples:
    >>> controller = SessionController(
    ...     credential_fetcher=fetch_ephemeral_key,
    ...     on_transcript=lambda delta, text: print(text),
    ... )
    >>> state = await controller.connect()
    >>> controller.mute()
    False
    >>> await controller.cancel()
"""
import asyncio
import json
import logging
from typing import Any, Callable, Dict, Optional, Set

from ..credentials import (
    CredentialFetcher,
    CredentialProvider,
    MessagePort,
    create_credential_provider,
)
from ..media import AudioStream, MediaCapture, PlaybackSink, RecorderPlaybackSink
from ..shared import (
    Credential,
    CredentialError,
    CredentialErrorKind,
    RealtimeSessionError,
    SessionSnapshot,
    TransportError,
)
from ..signaling import SignalingClient
from ..webrtc import PeerTransport
from .config import RealtimeConfig
from .events import ChannelEventKind, EventChannel
from .state import Session, SessionState

logger = logging.getLogger(__name__)


class SessionController:
    """단일 실시간 음성 세션의 상태 머신.

    Attributes:
        config (RealtimeConfig): 엔드포인트와 모델 식별자
        credential_provider (Optional[CredentialProvider]): 인증키 획득 전략
        media (MediaCapture): 마이크 캡처
        signaling (SignalingClient): offer/answer 교환 클라이언트
        playback_sink (Optional[PlaybackSink]): 원격 오디오 재생 싱크
        transport_factory (Callable): PeerTransport 생성 함수
        events (EventChannel): 데이터 채널 메시지 분류기
        session (Session): 현재 세션 상태

    Callbacks:
        on_log(line): 상태 메시지 추가 시
        on_transcript(delta, transcript): 텍스트 조각 수신 시
        on_error(error): 치명적 오류 발생 시
        on_status(snapshot): 상태/음소거 변경 시

    Note:
        - 컨트롤러당 세션은 하나만 존재
        - 세션 상태는 이벤트 루프 위에서만 변경됨
    """

    def __init__(
        self,
        config: Optional[RealtimeConfig] = None,
        credential_provider: Optional[CredentialProvider] = None,
        credential_fetcher: Optional[CredentialFetcher] = None,
        message_port: Optional[MessagePort] = None,
        media: Optional[MediaCapture] = None,
        signaling: Optional[SignalingClient] = None,
        playback_sink: Optional[PlaybackSink] = None,
        transport_factory: Optional[Callable[..., Any]] = None,
        event_channel: Optional[EventChannel] = None,
        on_log: Optional[Callable[[str], None]] = None,
        on_transcript: Optional[Callable[[str, str], None]] = None,
        on_error: Optional[Callable[[RealtimeSessionError], None]] = None,
        on_status: Optional[Callable[[SessionSnapshot], None]] = None,
    ):
        self.config = config or RealtimeConfig()
        if credential_provider is None:
            credential_provider = create_credential_provider(
                fetcher=credential_fetcher, message_port=message_port
            )
        self.credential_provider = credential_provider
        self.media = media or MediaCapture()
        self.signaling = signaling or SignalingClient()
        self.playback_sink = playback_sink if playback_sink is not None else RecorderPlaybackSink()
        self.transport_factory = transport_factory or PeerTransport
        self.events = event_channel or EventChannel()

        self.on_log = on_log
        self.on_transcript = on_transcript
        self.on_error = on_error
        self.on_status = on_status

        self.session = Session()
        self._generation = 0
        self._pending: Set[asyncio.Future] = set()

        strategy = credential_provider.strategy if credential_provider else "없음"
        logger.info(f"[Session] 컨트롤러 생성: endpoint={self.config.endpoint}, 인증키 전략={strategy}")

    # ------------------------------------------------------------
    # 관찰 가능한 출력
    # ------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self.session.state

    def snapshot(self) -> SessionSnapshot:
        return self.session.snapshot()

    def _log(self, line: str) -> None:
        self.session.append_log(line)
        logger.info(f"[Session] {line}")
        if self.on_log:
            self.on_log(line)

    def _emit_status(self) -> None:
        if self.on_status:
            self.on_status(self.snapshot())

    def _set_state(self, state: SessionState) -> None:
        if self.session.state == state:
            return
        logger.info(f"[Session] 상태 전환: {self.session.state.value} → {state.value}")
        self.session.state = state
        self._emit_status()

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    # ------------------------------------------------------------
    # 연결
    # ------------------------------------------------------------

    async def _acquire_credential(self) -> Credential:
        if self.credential_provider is None:
            raise CredentialError(
                CredentialErrorKind.STRATEGY_MISSING, "no credential strategy configured"
            )
        return await self.credential_provider.acquire()

    async def connect(self) -> SessionState:
        """세션 연결을 시작하고 도달한 상태를 반환합니다.

        파이프라인 오류는 예외로 던지지 않고 ERROR 상태와 on_error 콜백으로
        알립니다. 이미 진행 중이거나 연결된 세션이 있으면 먼저 취소합니다.

        Returns:
            SessionState: CONNECTED, ERROR, 또는 도중에 취소된 경우 IDLE
        """
        if self.session.state not in (SessionState.IDLE, SessionState.ERROR):
            logger.info(f"[Session] 기존 세션 취소 후 재연결 (상태: {self.session.state.value})")
            await self.cancel()

        self._generation += 1
        generation = self._generation

        try:
            return await self._run_attempt(generation)
        except asyncio.CancelledError:
            if self._is_current(generation):
                await self.cancel()
            raise

    async def _run_attempt(self, generation: int) -> SessionState:
        self.session.begin_attempt()
        self._set_state(SessionState.ACQUIRING_RESOURCES)
        self._log("Connecting...")

        # 마이크와 인증키를 서로 기다리지 않고 동시에 획득
        media_task = asyncio.ensure_future(self.media.acquire())
        credential_task = asyncio.ensure_future(self._acquire_credential())
        self._pending.update((media_task, credential_task))
        try:
            media_result, credential_result = await asyncio.gather(
                media_task, credential_task, return_exceptions=True
            )
        finally:
            self._pending.difference_update((media_task, credential_task))

        stream = None if isinstance(media_result, BaseException) else media_result

        if not self._is_current(generation):
            self.media.release(stream)
            logger.info("[Session] 취소된 시도의 획득 결과 폐기")
            return self.session.state

        failures = [r for r in (media_result, credential_result) if isinstance(r, BaseException)]
        if failures:
            for extra in failures[1:]:
                logger.warning(f"[Session] 동시 획득 중 추가 오류: {type(extra).__name__}: {extra}")
            # 다른 쪽에서 획득한 스트림도 ERROR 전환 시 해제
            self.media.release(stream)
            await self._fail(generation, failures[0])
            return self.session.state

        self.session.local_stream = stream
        self.session.muted = False
        self._log("Got audio stream.")
        self.session.set_credential(credential_result)
        self._log("Ephemeral key received.")

        return await self._negotiate(generation, stream)

    async def _negotiate(self, generation: int, stream: AudioStream) -> SessionState:
        self._set_state(SessionState.NEGOTIATING)
        self._log("Starting RealTime connection...")

        try:
            transport = self.transport_factory(
                on_remote_track=self._remote_track_handler(generation),
                on_channel_open=self._channel_open_handler(generation),
                on_channel_message=self._channel_message_handler(generation),
                on_failed=self._transport_failed_handler(generation),
            )
            self.session.transport = transport

            transport.add_tracks(stream.get_tracks())
            transport.open_control_channel()

            # answer를 보내기 전에 offer 로컬 커밋 완료
            offer_sdp = await transport.create_offer()
            if not self._is_current(generation):
                return self.session.state
            self._log("Created SDP offer.")

            answer_sdp = await self.signaling.exchange(
                offer_sdp,
                self.session.credential.value,
                self.config.endpoint,
                self.config.model_id,
            )
            if not self._is_current(generation):
                return self.session.state
            self._log("Received answer SDP.")

            await transport.apply_answer(answer_sdp)
            if not self._is_current(generation):
                return self.session.state
        except Exception as e:
            if self._is_current(generation):
                await self._fail(generation, e)
            else:
                logger.debug(f"[Session] 취소된 시도의 오류 무시: {type(e).__name__}: {e}")
            return self.session.state

        self._set_state(SessionState.CONNECTED)
        self._log("Connected to OpenAI Realtime!")
        return self.session.state

    async def _fail(self, generation: int, exc: BaseException) -> None:
        """시도를 ERROR로 종료하고 전송/스트림을 정리합니다."""
        if isinstance(exc, RealtimeSessionError):
            error = exc
        else:
            logger.error(f"[Session] 예기치 않은 오류: {type(exc).__name__}: {exc}", exc_info=exc)
            error = TransportError.from_exception(exc)

        # 이후 도착하는 콜백은 모두 무시
        self._generation += 1

        stream, transport = self.session.local_stream, self.session.transport
        self.session.local_stream = None
        self.session.transport = None
        self.session.muted = False
        self.media.release(stream)

        self.session.error = error
        logger.error(f"[Session] 연결 실패: {error.describe()}")
        self._set_state(SessionState.ERROR)
        if self.on_error:
            self.on_error(error)

        if transport is not None:
            await transport.close()
        if self.playback_sink is not None:
            await self.playback_sink.stop()

    # ------------------------------------------------------------
    # 전송 이벤트 핸들러
    # ------------------------------------------------------------

    def _remote_track_handler(self, generation: int):
        async def on_remote_track(track) -> None:
            if not self._is_current(generation):
                return
            self._log("Received remote track from model.")
            if self.playback_sink is not None:
                await self.playback_sink.attach(track)
        return on_remote_track

    def _channel_open_handler(self, generation: int):
        def on_channel_open() -> None:
            if self._is_current(generation):
                self._log("Data channel open with AI.")
        return on_channel_open

    def _channel_message_handler(self, generation: int):
        def on_channel_message(message) -> None:
            if not self._is_current(generation):
                return
            event = self.events.dispatch(self.session, message)
            if event.kind == ChannelEventKind.TRANSCRIPT_DELTA:
                if self.on_transcript:
                    self.on_transcript(event.delta, self.session.transcript)
            elif self.on_log:
                self.on_log(self.session.log[-1])
        return on_channel_message

    def _transport_failed_handler(self, generation: int):
        async def on_failed() -> None:
            if self._is_current(generation) and self.session.transport is not None:
                await self._fail(generation, TransportError("peer connection failed"))
        return on_failed

    # ------------------------------------------------------------
    # 외부 명령
    # ------------------------------------------------------------

    def mute(self) -> Optional[bool]:
        """마이크 음소거를 전환합니다. 상태(state)는 바뀌지 않습니다.

        Returns:
            Optional[bool]: 전환 후 enabled 상태 (True = 음소거 해제).
                스트림이 없으면 None (아무 동작 없음)
        """
        enabled = self.media.toggle_mute(self.session.local_stream)
        if enabled is None:
            return None
        self.session.muted = not enabled
        self._log("Microphone unmuted." if enabled else "Microphone muted.")
        self._emit_status()
        return enabled

    def send_event(self, event: Dict[str, Any]) -> None:
        """CONNECTED 상태에서 데이터 채널로 JSON 이벤트를 보냅니다."""
        transport = self.session.transport
        if self.session.state != SessionState.CONNECTED or transport is None:
            raise RuntimeError(f"cannot send event in state {self.session.state.value}")
        transport.send(json.dumps(event))

    async def cancel(self) -> None:
        """스트림과 전송을 정리하고 IDLE로 돌아갑니다.

        어느 상태에서든 호출할 수 있으며, 보유한 자원이 없는 IDLE에서는
        아무 변화도 없습니다. 상태 전환과 스트림 해제는 첫 await 이전에
        끝나므로 진행 중인 connect()는 재개 시 폐기됩니다.
        """
        self._generation += 1
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()

        stream, transport = self.session.local_stream, self.session.transport
        was_idle = self.session.state == SessionState.IDLE
        if was_idle and stream is None and transport is None:
            return

        self.session.local_stream = None
        self.session.transport = None
        self.session.muted = False
        self.session.credential = None
        self.media.release(stream)

        self._set_state(SessionState.IDLE)
        self._log("Session cancelled.")

        if transport is not None:
            await transport.close()
        if self.playback_sink is not None:
            await self.playback_sink.stop()
