# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
from pathlib import Path
from typing import Any

import pytest

import audio.debug_sampler as sampler_mod
from audio.debug_sampler import DebugSampler


def observe_many(sampler: DebugSampler, count: int) -> list[Path | None]:
    async def run() -> list[Path | None]:
        return [
            await sampler.observe(b"RIFF-%d" % i, session_id="sess_test", flush_id=i)
            for i in range(1, count + 1)
        ]

    return asyncio.run(run())


# ---------------------------------------------------------------------
# Sampling period
# ---------------------------------------------------------------------

def test_persists_exactly_every_fifth_flush(tmp_path: Path):
    sampler = DebugSampler(directory=tmp_path, every_n=5)

    results = observe_many(sampler, 12)

    written = [i + 1 for i, path in enumerate(results) if path is not None]
    assert written == [5, 10]
    assert len(list(tmp_path.iterdir())) == 2
    assert sampler.observed == 12


def test_written_file_holds_container_and_timestamped_name(tmp_path: Path):
    sampler = DebugSampler(directory=tmp_path, every_n=1)

    (path,) = observe_many(sampler, 1)

    assert path is not None
    assert path.read_bytes() == b"RIFF-1"
    prefix, ts_ms, session, flush = path.stem.split("-")
    assert prefix == "pcm"
    assert ts_ms.isdigit()
    assert session == "sess_test"
    assert flush == "1"
    assert path.suffix == ".wav"


def test_zero_period_disables_sampling(tmp_path: Path):
    sampler = DebugSampler(directory=tmp_path, every_n=0)

    results = observe_many(sampler, 10)

    assert results == [None] * 10
    assert not list(tmp_path.iterdir())


def test_creates_missing_directory(tmp_path: Path):
    target = tmp_path / "nested" / "samples"
    sampler = DebugSampler(directory=target, every_n=1)

    (path,) = observe_many(sampler, 1)

    assert path is not None
    assert path.parent == target


def test_negative_period_rejected(tmp_path: Path):
    with pytest.raises(ValueError):
        DebugSampler(directory=tmp_path, every_n=-1)


# ---------------------------------------------------------------------
# Failure handling
# ---------------------------------------------------------------------

def test_write_failure_is_logged_not_raised(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
):
    emitted: list[dict[str, Any]] = []

    def fake_log_event(payload: dict[str, Any]) -> None:
        emitted.append(payload)

    def failing_write(path: Path, data: bytes) -> None:
        raise PermissionError(f"read-only: {path}")

    monkeypatch.setattr(sampler_mod, "log_event", fake_log_event)
    monkeypatch.setattr(sampler_mod, "_write_file", failing_write)

    sampler = DebugSampler(directory=tmp_path, every_n=1)
    results = observe_many(sampler, 2)

    assert results == [None, None]
    assert [e["event_type"] for e in emitted] == ["DEBUG_SAMPLE_FAILED"] * 2
    assert "read-only" in emitted[0]["error"]
    # Counter still advances
    assert sampler.observed == 2


def test_unexpected_write_error_is_logged_not_raised(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
):
    emitted: list[dict[str, Any]] = []

    def fake_log_event(payload: dict[str, Any]) -> None:
        emitted.append(payload)

    def failing_write(path: Path, data: bytes) -> None:
        raise RuntimeError("cannot schedule new futures after shutdown")

    monkeypatch.setattr(sampler_mod, "log_event", fake_log_event)
    monkeypatch.setattr(sampler_mod, "_write_file", failing_write)

    sampler = DebugSampler(directory=tmp_path, every_n=1)

    assert observe_many(sampler, 1) == [None]
    (event,) = emitted
    assert event["event_type"] == "DEBUG_SAMPLE_FAILED"
    assert event["exception"] == "RuntimeError"
