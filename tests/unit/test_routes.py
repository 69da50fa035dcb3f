# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from adapters.asr.base import DispatchResult, TranscriptionDispatcher
from config import AppConfig
from server.app import create_app


class RecordingDispatcher(TranscriptionDispatcher):
    def __init__(self, text: str | None = None) -> None:
        self.calls: list[bytes] = []
        self._text = text

    async def dispatch(self, *, wav_bytes: bytes, session_id: str, flush_id: int) -> DispatchResult:
        self.calls.append(wav_bytes)
        return DispatchResult(accepted=True, text=self._text)


def make_client(tmp_path: Path, dispatcher: TranscriptionDispatcher) -> TestClient:
    config = AppConfig(debug_sample_dir=str(tmp_path))
    return TestClient(create_app(config=config, dispatcher=dispatcher))


# ---------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------

def test_health_is_plaintext_ok(tmp_path: Path):
    client = make_client(tmp_path, RecordingDispatcher())

    response = client.get("/health")

    assert response.status_code == 200
    assert response.text == "ok"
    assert response.headers["content-type"].startswith("text/plain")


def test_index_identifies_service(tmp_path: Path):
    client = make_client(tmp_path, RecordingDispatcher())

    response = client.get("/")

    assert response.status_code == 200
    assert response.text == "Instant Talk backend alive"


def test_missing_api_key_fails_fast(tmp_path: Path):
    with pytest.raises(RuntimeError):
        create_app(config=AppConfig(debug_sample_dir=str(tmp_path)))


# ---------------------------------------------------------------------
# WebSocket
# ---------------------------------------------------------------------

def test_websocket_flush_round_trip(tmp_path: Path):
    dispatcher = RecordingDispatcher(text="hello")
    client = make_client(tmp_path, dispatcher)

    with client.websocket_connect("/ws") as ws:
        ws.send_bytes(b"\x00\x01" * 50)
        ws.send_bytes(b"\x00\x02" * 50 + b"\xff")
        ws.send_text("not json")
        ws.send_text(json.dumps({"type": "flush"}))

        ack = ws.receive_json()
        transcript = ws.receive_json()

    assert ack["type"] == "diagnostic"
    assert set(ack["stats"]) == {"duration_ms", "rms", "peak"}
    assert ack["stats"]["duration_ms"] == 6
    assert ack["stats"]["peak"] == round(512 / 32768, 5)
    assert transcript == {"type": "stt", "text": "hello", "final": True, "flush_id": 1}

    (container,) = dispatcher.calls
    assert len(container) == 244


def test_each_connection_has_its_own_buffer(tmp_path: Path):
    dispatcher = RecordingDispatcher()
    client = make_client(tmp_path, dispatcher)

    with client.websocket_connect("/ws") as first:
        first.send_bytes(b"\x10\x00" * 10)

        with client.websocket_connect("/ws") as second:
            second.send_bytes(b"\x20\x00" * 4)
            second.send_text(json.dumps({"type": "flush"}))
            second_ack = second.receive_json()

        first.send_text(json.dumps({"type": "flush"}))
        first_ack = first.receive_json()

    assert second_ack["stats"]["peak"] == round(0x20 / 32768, 5)
    assert first_ack["stats"]["peak"] == round(0x10 / 32768, 5)
    assert [len(c) for c in dispatcher.calls] == [44 + 8, 44 + 20]
