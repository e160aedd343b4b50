"""Shared pytest fixtures for Creative Design tests."""

from __future__ import annotations

import base64
import io
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from creative_design.api.main import create_app
from creative_design.core.config import CreativeDesignConfig
from creative_design.core.generation_client import GenerationCall, GenerationResponse

# Smallest well-formed reference image: three zero bytes, not a decodable picture.
TINY_DATA_URL = "data:image/png;base64,AAAA"


class FakeClock:
    """Controllable clock returning ``now`` in whatever unit the test uses."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, amount: float) -> None:
        self.now += amount


class SleepRecorder:
    """Async sleep replacement that records requested delays and returns at once."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class ScriptedClient:
    """Generation client replaying a script of responses and exceptions.

    Each call consumes the next script entry.  Exceptions are raised, anything
    else is returned.  Once the script is exhausted the last entry repeats.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.calls: list[GenerationCall] = []

    async def generate_image(self, call: GenerationCall) -> GenerationResponse:
        self.calls.append(call)
        index = min(len(self.calls), len(self.script)) - 1
        entry = self.script[index]
        if isinstance(entry, BaseException):
            raise entry
        return entry


def make_png_base64(width: int = 64, height: int = 32) -> str:
    """Encode a solid-colour PNG of the given size as bare base64."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 120, 40)).save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> CreativeDesignConfig:
    """Create a test configuration rooted in a temporary directory.

    Retry delays are shortened to 10ms so failing backends do not slow the
    suite down.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        CreativeDesignConfig instance for testing
    """
    return CreativeDesignConfig(
        data_dir=temp_dir / "data",
        retry_base_delay_ms=10,
        retry_timeout_ms=2000,
        _env_file=None,
    )


@pytest.fixture
def png_base64() -> str:
    """Bare base64 payload of a 64x32 PNG."""
    return make_png_base64()


@pytest.fixture
def png_data_url(png_base64: str) -> str:
    """Data URL of a 64x32 PNG."""
    return f"data:image/png;base64,{png_base64}"


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock(start=1_000_000.0)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def test_client(test_config: CreativeDesignConfig) -> Generator[TestClient, None, None]:
    """FastAPI TestClient backed by the echo generation backend.

    The client is entered as a context manager so the application lifespan
    runs and the services are built from ``test_config``.
    """
    app = create_app(test_config)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def scripted_client():
    """Factory for :class:`ScriptedClient` instances."""
    return ScriptedClient


@pytest.fixture
def tiny_data_url() -> str:
    return TINY_DATA_URL
