"""
Session controller state machine tests.

Media capture, signaling and the peer transport are replaced with in-memory
doubles from conftest.py; credential strategies are the real ones.
"""

import asyncio
import json

import pytest
from aiohttp import web

from realtime_voice import (
    CredentialError,
    CredentialErrorKind,
    HttpCredentialProvider,
    InjectedCredentialProvider,
    MediaAccessError,
    MediaAccessErrorKind,
    NegotiationError,
    SessionState,
    TransportError,
)

from conftest import FakeMediaCapture, FakeSignaling, VALID_PAYLOAD


async def wait_until(predicate, attempts=50):
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


def gated_fetcher(gate, payload=VALID_PAYLOAD):
    async def fetch():
        await gate.wait()
        return payload
    return fetch


class TestConnect:
    @pytest.mark.asyncio
    async def test_happy_path(self, harness):
        state = await harness.controller.connect()

        assert state == SessionState.CONNECTED
        assert harness.controller.state == SessionState.CONNECTED
        assert harness.visited_states == ["AcquiringResources", "Negotiating", "Connected"]
        assert harness.logs == [
            "Connecting...",
            "Got audio stream.",
            "Ephemeral key received.",
            "Starting RealTime connection...",
            "Created SDP offer.",
            "Received answer SDP.",
            "Connected to OpenAI Realtime!",
        ]

        transport = harness.transports.last
        stream = harness.media.streams[0]
        assert transport.tracks == stream.get_tracks()
        assert transport.channel_opened
        assert transport.remote_answer == harness.signaling.answer

        _, credential, endpoint, model_id = harness.signaling.calls[0]
        assert credential == "ek_test_123"
        assert endpoint == "https://rt.example.test/v1/realtime"
        assert model_id == "test-model"

        snapshot = harness.controller.snapshot()
        assert snapshot.connected
        assert snapshot.has_stream
        assert not snapshot.muted
        assert snapshot.error is None

    @pytest.mark.asyncio
    async def test_credential_http_failure(self, make_harness, http_server):
        async def handler(request):
            return web.json_response({"error": "unauthorized"}, status=401)

        async with http_server(("GET", "/session", handler)) as server:
            harness = make_harness(
                credential_provider=HttpCredentialProvider(str(server.make_url("/session")))
            )
            state = await harness.controller.connect()

        assert state == SessionState.ERROR
        error = harness.session.error
        assert isinstance(error, CredentialError)
        assert error.kind == CredentialErrorKind.HTTP_FAILURE
        assert error.status == 401
        assert harness.transports.instances == []
        assert harness.errors == [error]

    @pytest.mark.asyncio
    async def test_credential_error_payload_never_negotiates(self, harness):
        async def fetch():
            return {"error": "session quota exceeded"}

        harness.controller.credential_provider = InjectedCredentialProvider(fetch)
        state = await harness.controller.connect()

        assert state == SessionState.ERROR
        assert "Negotiating" not in harness.visited_states
        assert harness.session.error.kind == CredentialErrorKind.REJECTED
        assert harness.signaling.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("credential_payload", [VALID_PAYLOAD, {"error": "nope"}])
    async def test_media_denied_is_reported_first(self, make_harness, credential_payload):
        denied = MediaAccessError(MediaAccessErrorKind.PERMISSION_DENIED, "denied by user")
        harness = make_harness(media=FakeMediaCapture(error=denied))

        async def fetch():
            return credential_payload

        harness.controller.credential_provider = InjectedCredentialProvider(fetch)
        state = await harness.controller.connect()

        assert state == SessionState.ERROR
        assert harness.session.error is denied
        assert harness.transports.instances == []

    @pytest.mark.asyncio
    async def test_partial_fan_out_failure_releases_stream(self, harness):
        async def fetch():
            return {"error": "rejected"}

        harness.controller.credential_provider = InjectedCredentialProvider(fetch)
        await harness.controller.connect()

        assert harness.media.streams[0].released
        assert harness.session.local_stream is None
        assert not harness.controller.snapshot().has_stream

    @pytest.mark.asyncio
    async def test_failing_fetcher_is_credential_error(self, harness):
        async def fetch():
            raise ConnectionError("embedding app could not mint key")

        harness.controller.credential_provider = InjectedCredentialProvider(fetch)
        state = await harness.controller.connect()

        assert state == SessionState.ERROR
        error = harness.session.error
        assert isinstance(error, CredentialError)
        assert error.kind == CredentialErrorKind.REJECTED
        assert harness.controller.snapshot().error.type == "CredentialError"
        assert harness.transports.instances == []
        assert harness.media.streams[0].released

    @pytest.mark.asyncio
    async def test_missing_strategy(self, harness):
        harness.controller.credential_provider = None

        state = await harness.controller.connect()

        assert state == SessionState.ERROR
        assert harness.session.error.kind == CredentialErrorKind.STRATEGY_MISSING
        assert harness.media.streams[0].released

    @pytest.mark.asyncio
    async def test_signaling_failure(self, make_harness):
        harness = make_harness(
            signaling=FakeSignaling(error=NegotiationError(500, "Internal Server Error"))
        )

        state = await harness.controller.connect()

        assert state == SessionState.ERROR
        error = harness.session.error
        assert isinstance(error, NegotiationError)
        assert error.status == 500

        transport = harness.transports.last
        assert transport.remote_answer is None
        assert transport.closed
        assert harness.session.transport is None
        assert harness.media.streams[0].released
        assert harness.sink.stop_count == 1

    @pytest.mark.asyncio
    async def test_unexpected_offer_failure_is_transport_error(self, harness):
        harness.transports.offer_error = RuntimeError("ice gathering failed")

        state = await harness.controller.connect()

        assert state == SessionState.ERROR
        error = harness.session.error
        assert isinstance(error, TransportError)
        assert error.detail == "RuntimeError - ice gathering failed"
        assert harness.transports.last.closed
        assert harness.signaling.calls == []

    @pytest.mark.asyncio
    async def test_successful_connect_clears_previous_error(self, make_harness):
        harness = make_harness(signaling=FakeSignaling(error=NegotiationError(503, "Unavailable")))
        await harness.controller.connect()
        assert harness.controller.snapshot().error is not None

        harness.signaling.error = None
        state = await harness.controller.connect()

        assert state == SessionState.CONNECTED
        assert harness.session.error is None
        assert harness.controller.snapshot().error is None

    @pytest.mark.asyncio
    async def test_connect_while_connected_restarts(self, harness):
        await harness.controller.connect()
        first = harness.transports.last

        state = await harness.controller.connect()

        assert state == SessionState.CONNECTED
        assert first.closed
        assert len(harness.transports.instances) == 2
        assert harness.media.streams[0].released
        assert harness.credential_calls == 2


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_from_idle_is_noop(self, harness):
        await harness.controller.cancel()

        assert harness.controller.state == SessionState.IDLE
        assert harness.statuses == []
        assert harness.logs == []

    @pytest.mark.asyncio
    async def test_cancel_twice_equals_once(self, harness):
        await harness.controller.connect()
        transport = harness.transports.last

        await harness.controller.cancel()
        await harness.controller.cancel()

        assert harness.controller.state == SessionState.IDLE
        assert harness.logs.count("Session cancelled.") == 1
        assert harness.sink.stop_count == 1
        assert transport.closed
        assert harness.media.streams[0].released
        assert harness.session.local_stream is None
        assert harness.session.transport is None

    @pytest.mark.asyncio
    async def test_cancel_during_acquisition(self, harness):
        gate = asyncio.Event()
        harness.controller.credential_provider = InjectedCredentialProvider(gated_fetcher(gate))

        task = asyncio.ensure_future(harness.controller.connect())
        await wait_until(lambda: harness.media.streams)

        await harness.controller.cancel()
        gate.set()
        state = await task

        assert state == SessionState.IDLE
        assert harness.controller.state == SessionState.IDLE
        assert harness.media.streams[0].released
        assert harness.transports.instances == []
        assert harness.session.credential is None
        assert "Got audio stream." not in harness.logs

    @pytest.mark.asyncio
    async def test_cancel_during_negotiation(self, harness):
        harness.signaling.gate = asyncio.Event()

        task = asyncio.ensure_future(harness.controller.connect())
        await wait_until(lambda: harness.signaling.calls)
        assert harness.controller.state == SessionState.NEGOTIATING

        await harness.controller.cancel()
        harness.signaling.gate.set()
        state = await task

        assert state == SessionState.IDLE
        transport = harness.transports.last
        assert transport.remote_answer is None
        assert transport.closed
        assert harness.media.streams[0].released
        assert "Received answer SDP." not in harness.logs
        assert "Connected" not in harness.visited_states

    @pytest.mark.asyncio
    async def test_error_survives_cancel(self, make_harness):
        harness = make_harness(signaling=FakeSignaling(error=NegotiationError(500, "boom")))
        await harness.controller.connect()

        await harness.controller.cancel()

        assert harness.controller.state == SessionState.IDLE
        assert harness.controller.snapshot().error.type == "NegotiationError"

    @pytest.mark.asyncio
    async def test_callbacks_after_cancel_are_ignored(self, harness):
        await harness.controller.connect()
        transport = harness.transports.last
        await harness.controller.cancel()

        transport.on_channel_message(json.dumps({"type": "response.text.delta", "delta": "late"}))
        await transport.on_failed()

        assert harness.session.transcript == ""
        assert harness.controller.state == SessionState.IDLE
        assert harness.errors == []


class TestMute:
    @pytest.mark.asyncio
    async def test_mute_without_stream_is_noop(self, harness):
        assert harness.controller.mute() is None
        assert harness.logs == []
        assert harness.statuses == []

    @pytest.mark.asyncio
    async def test_mute_toggles_all_tracks(self, make_harness):
        harness = make_harness(media=FakeMediaCapture(track_count=2))
        await harness.controller.connect()
        stream = harness.media.streams[0]

        assert harness.controller.mute() is False
        assert all(not track.enabled for track in stream.tracks)
        assert harness.controller.snapshot().muted
        assert harness.logs[-1] == "Microphone muted."
        assert harness.controller.state == SessionState.CONNECTED

        assert harness.controller.mute() is True
        assert all(track.enabled for track in stream.tracks)
        assert not harness.controller.snapshot().muted
        assert harness.logs[-1] == "Microphone unmuted."


class TestTransportEvents:
    @pytest.mark.asyncio
    async def test_transcript_accumulates(self, harness):
        await harness.controller.connect()
        transport = harness.transports.last

        transport.on_channel_message(json.dumps({"type": "response.text.delta", "delta": "hel"}))
        transport.on_channel_message(json.dumps({"type": "response.text.delta", "delta": "lo"}))

        assert harness.transcripts == [("hel", "hel"), ("lo", "hello")]
        assert harness.controller.snapshot().transcript == "hello"

    @pytest.mark.asyncio
    async def test_unstructured_message_is_logged(self, harness):
        await harness.controller.connect()

        harness.transports.last.on_channel_message("plain text from the model")

        assert harness.logs[-1] == "plain text from the model"
        assert harness.controller.state == SessionState.CONNECTED

    @pytest.mark.asyncio
    async def test_channel_open_and_remote_track(self, harness):
        await harness.controller.connect()
        transport = harness.transports.last
        remote = object()

        transport.on_channel_open()
        await transport.on_remote_track(remote)

        assert "Data channel open with AI." in harness.logs
        assert "Received remote track from model." in harness.logs
        assert harness.sink.attached == [remote]

    @pytest.mark.asyncio
    async def test_peer_failure(self, harness):
        await harness.controller.connect()
        transport = harness.transports.last

        await transport.on_failed()

        assert harness.controller.state == SessionState.ERROR
        assert isinstance(harness.session.error, TransportError)
        assert transport.closed
        assert harness.media.streams[0].released

    @pytest.mark.asyncio
    async def test_send_event(self, harness):
        with pytest.raises(RuntimeError):
            harness.controller.send_event({"type": "response.create"})

        await harness.controller.connect()
        harness.controller.send_event({"type": "response.create"})

        assert harness.transports.last.sent == [json.dumps({"type": "response.create"})]
