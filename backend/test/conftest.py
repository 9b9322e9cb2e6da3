"""Shared pytest fixtures and test doubles for the realtime session tests."""

import asyncio
from contextlib import asynccontextmanager
from typing import List, Optional

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from realtime_voice import (
    AudioStream,
    InjectedCredentialProvider,
    MediaCapture,
    PlaybackSink,
    RealtimeConfig,
    SessionController,
)

VALID_PAYLOAD = {"client_secret": {"value": "ek_test_123", "expires_at": 1735689600}}


@asynccontextmanager
async def serve(*routes):
    """(method, path, handler) 목록으로 임시 aiohttp 서버를 띄웁니다."""
    app = web.Application()
    for method, path, handler in routes:
        app.router.add_route(method, path, handler)
    server = TestServer(app)
    await server.start_server()
    try:
        yield server
    finally:
        await server.close()


class FakeTrack:
    """MutableAudioTrack 대역."""

    kind = "audio"

    def __init__(self):
        self.enabled = True
        self.stopped = False

    def stop(self):
        self.stopped = True


class FakeMediaCapture(MediaCapture):
    """acquire만 대체하고 toggle_mute/release는 실제 구현을 사용합니다."""

    def __init__(self, track_count: int = 1, error: Optional[Exception] = None):
        super().__init__(player_factory=lambda device, fmt: None)
        self.track_count = track_count
        self.error = error
        self.gate: Optional[asyncio.Event] = None
        self.streams: List[AudioStream] = []

    async def acquire(self) -> AudioStream:
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        stream = AudioStream([FakeTrack() for _ in range(self.track_count)], "fake:default")
        self.streams.append(stream)
        return stream


class FakeSignaling:
    def __init__(self, answer: str = "v=0\r\no=- answer\r\n", error: Optional[Exception] = None):
        self.answer = answer
        self.error = error
        self.gate: Optional[asyncio.Event] = None
        self.calls = []

    async def exchange(self, offer_sdp, credential, endpoint, model_id):
        self.calls.append((offer_sdp, credential, endpoint, model_id))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.answer


class FakeTransport:
    def __init__(self, on_remote_track=None, on_channel_open=None, on_channel_message=None, on_failed=None):
        self.on_remote_track = on_remote_track
        self.on_channel_open = on_channel_open
        self.on_channel_message = on_channel_message
        self.on_failed = on_failed
        self.tracks = []
        self.channel_opened = False
        self.offer_committed = False
        self.remote_answer = None
        self.sent = []
        self.closed = False
        self.offer_error: Optional[Exception] = None

    def add_tracks(self, tracks):
        self.tracks.extend(tracks)
        return len(self.tracks)

    def open_control_channel(self, label=None):
        self.channel_opened = True

    async def create_offer(self):
        if self.offer_error is not None:
            raise self.offer_error
        self.offer_committed = True
        return "v=0\r\no=- offer\r\n"

    async def apply_answer(self, answer_sdp):
        assert self.offer_committed, "answer applied before local offer commit"
        self.remote_answer = answer_sdp

    def send(self, message):
        self.sent.append(message)

    async def close(self):
        self.closed = True


class TransportRecorder:
    """transport_factory로 전달되어 생성된 FakeTransport를 기록합니다."""

    def __init__(self):
        self.instances: List[FakeTransport] = []
        self.offer_error: Optional[Exception] = None

    def __call__(self, **kwargs):
        transport = FakeTransport(**kwargs)
        transport.offer_error = self.offer_error
        self.instances.append(transport)
        return transport

    @property
    def last(self) -> Optional[FakeTransport]:
        return self.instances[-1] if self.instances else None


class FakePlaybackSink(PlaybackSink):
    def __init__(self):
        self.attached = []
        self.stop_count = 0

    async def attach(self, track):
        self.attached.append(track)

    async def stop(self):
        self.stop_count += 1


class Harness:
    """컨트롤러와 대역, 콜백 기록을 묶은 테스트 하네스."""

    def __init__(self, credential_provider=None, media=None, signaling=None):
        self.media = media or FakeMediaCapture()
        self.signaling = signaling or FakeSignaling()
        self.transports = TransportRecorder()
        self.sink = FakePlaybackSink()
        self.logs: List[str] = []
        self.errors = []
        self.statuses = []
        self.transcripts = []

        if credential_provider is None:
            credential_provider = InjectedCredentialProvider(self._fetch)
        self.credential_calls = 0

        self.controller = SessionController(
            config=RealtimeConfig(endpoint="https://rt.example.test/v1/realtime", model_id="test-model"),
            credential_provider=credential_provider,
            media=self.media,
            signaling=self.signaling,
            playback_sink=self.sink,
            transport_factory=self.transports,
            on_log=self.logs.append,
            on_transcript=lambda delta, text: self.transcripts.append((delta, text)),
            on_error=self.errors.append,
            on_status=self.statuses.append,
        )

    async def _fetch(self):
        self.credential_calls += 1
        return VALID_PAYLOAD

    @property
    def session(self):
        return self.controller.session

    @property
    def visited_states(self) -> List[str]:
        return [snapshot.state for snapshot in self.statuses]


@pytest.fixture
def harness():
    return Harness()


@pytest.fixture
def make_harness():
    return Harness


@pytest.fixture
def http_server():
    return serve
