# pylint: disable=missing-module-docstring,missing-function-docstring

import tempfile

import pytest

from config import AppConfig


ENV_VARS = (
    "ENV",
    "HOST",
    "PORT",
    "OPENAI_API_KEY",
    "OPENAI_STT_MODEL",
    "OPENAI_STT_LANGUAGE",
    "SEND_TRANSCRIPTS",
    "DEBUG_SAMPLE_EVERY",
    "DEBUG_SAMPLE_DIR",
    "MAX_BUFFERED_BYTES",
    "BUFFER_OVERFLOW_POLICY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = AppConfig.load_from_env()

    assert config.port == 8080
    assert config.host == "0.0.0.0"
    assert config.openai_api_key is None
    assert config.stt_model == "whisper-1"
    assert config.stt_language is None
    assert config.send_transcripts is True
    assert config.debug_sample_every == 5
    assert config.debug_sample_dir == tempfile.gettempdir()
    assert config.max_buffered_bytes is None
    assert config.buffer_overflow_policy == "reject"


def test_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PORT", "3000")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("OPENAI_STT_LANGUAGE", "fr")
    monkeypatch.setenv("SEND_TRANSCRIPTS", "0")
    monkeypatch.setenv("DEBUG_SAMPLE_EVERY", "0")
    monkeypatch.setenv("DEBUG_SAMPLE_DIR", "/var/tmp/samples")
    monkeypatch.setenv("MAX_BUFFERED_BYTES", "320000")
    monkeypatch.setenv("BUFFER_OVERFLOW_POLICY", "drop_oldest")

    config = AppConfig.load_from_env()

    assert config.port == 3000
    assert config.openai_api_key == "sk-test"
    assert config.stt_language == "fr"
    assert config.send_transcripts is False
    assert config.debug_sample_every == 0
    assert config.debug_sample_dir == "/var/tmp/samples"
    assert config.max_buffered_bytes == 320_000
    assert config.buffer_overflow_policy == "drop_oldest"


@pytest.mark.parametrize("value", ["1", "true", "True", "yes", "on"])
def test_send_transcripts_truthy_spellings(monkeypatch: pytest.MonkeyPatch, value: str):
    monkeypatch.setenv("SEND_TRANSCRIPTS", value)

    assert AppConfig.load_from_env().send_transcripts is True


@pytest.mark.parametrize("value", ["0", "false", "FALSE", "no", "off"])
def test_send_transcripts_falsy_spellings(monkeypatch: pytest.MonkeyPatch, value: str):
    monkeypatch.setenv("SEND_TRANSCRIPTS", value)

    assert AppConfig.load_from_env().send_transcripts is False


def test_empty_port_falls_back_to_default(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PORT", "")

    assert AppConfig.load_from_env().port == 8080


@pytest.mark.parametrize(
    "name, value",
    [
        ("PORT", "eighty"),
        ("PORT", "0"),
        ("MAX_BUFFERED_BYTES", "-1"),
        ("DEBUG_SAMPLE_EVERY", "-5"),
        ("BUFFER_OVERFLOW_POLICY", "drop_newest"),
        ("SEND_TRANSCRIPTS", "maybe"),
    ],
)
def test_invalid_values_rejected(monkeypatch: pytest.MonkeyPatch, name: str, value: str):
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError):
        AppConfig.load_from_env()


def test_config_is_immutable():
    config = AppConfig()

    with pytest.raises(AttributeError):
        config.port = 1  # type: ignore[misc]
