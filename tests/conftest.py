"""Shared pytest fixtures for LiveAssist tests."""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any

import numpy as np
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

# liveassist.main builds the app at import time
os.environ.setdefault("GOOGLE_API_KEY", "test-google-key")

from liveassist.config import Settings, get_settings  # noqa: E402
from liveassist.services.audio.protocol import AudioConfig, PermissionState  # noqa: E402
from liveassist.services.live.protocol import AudioChunk  # noqa: E402


def build_settings(**overrides) -> Settings:
    """Create a Settings object with safe test defaults."""
    base = {
        "google_api_key": "test-google-key",
        "database_url": "sqlite+aiosqlite:///:memory:",
        "connect_timeout_seconds": 1.0,
        "reconnect_delay_seconds": 0.0,
        "mode_switch_settle_seconds": 0.0,
        "interaction_log_retry_delay": 0.0,
    }
    base.update(overrides)
    return Settings(**base)


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Return a factory to build Settings with overrides."""
    return build_settings


@pytest.fixture
def settings(settings_factory: Callable[..., Settings]) -> Settings:
    """Default Settings fixture."""
    return settings_factory()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def async_engine(tmp_path):
    """Create an async SQLite engine on a temporary file."""
    # Import models to register them with SQLModel metadata
    from liveassist.db import models  # noqa: F401

    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        future=True,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def async_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create an async database session for testing."""
    async_session_maker = sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest.fixture
def session_context_factory(async_engine):
    """Factory of commit-on-exit session contexts bound to the test engine."""
    from contextlib import asynccontextmanager

    async_session_maker = sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    @asynccontextmanager
    async def session_context() -> AsyncGenerator[AsyncSession, None]:
        async with async_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return session_context


# =============================================================================
# FastAPI Test Client Fixtures
# =============================================================================


@pytest.fixture
def test_client(tmp_path, monkeypatch) -> Generator:
    """FastAPI TestClient backed by a temporary SQLite database."""
    from fastapi.testclient import TestClient

    monkeypatch.setenv("GOOGLE_API_KEY", "test-google-key")
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.setenv("JWT_SECRET", "test-jwt-secret")
    get_settings.cache_clear()

    from liveassist.main import create_app

    app = create_app()
    with TestClient(app) as client:
        yield client

    get_settings.cache_clear()


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Build Authorization headers with an HS256 token for the test secret."""
    import jwt

    def make(sub: str = "user-1", **claims: Any) -> dict[str, str]:
        token = jwt.encode({"sub": sub, **claims}, "test-jwt-secret", algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}

    return make


# =============================================================================
# Live Transport Fakes
# =============================================================================


class FakeLiveSession:
    """In-memory stand-in for a google-genai AsyncSession."""

    def __init__(self) -> None:
        self.client_content: list[tuple[Any, bool]] = []
        self.realtime_inputs: list[dict[str, Any]] = []
        self.tool_responses: list[Any] = []
        self.closed = False
        self.fail_sends: Exception | None = None
        self._inbound: asyncio.Queue[Any] = asyncio.Queue()

    async def send_client_content(self, *, turns: Any = None, turn_complete: bool = True) -> None:
        if self.fail_sends is not None:
            raise self.fail_sends
        self.client_content.append((turns, turn_complete))

    async def send_realtime_input(self, **kwargs: Any) -> None:
        self.realtime_inputs.append(kwargs)

    async def send_tool_response(self, *, function_responses: Any) -> None:
        self.tool_responses.append(function_responses)

    async def receive(self):
        # One iteration per turn; an empty iteration means the stream ended
        while True:
            message = await self._inbound.get()
            if message is None:
                return
            if isinstance(message, BaseException):
                raise message
            yield message

    def push(self, *messages: Any) -> None:
        """Deliver messages followed by the end of the turn."""
        for message in messages:
            self._inbound.put_nowait(message)
        self._inbound.put_nowait(None)

    def end_stream(self) -> None:
        self._inbound.put_nowait(None)

    def raise_error(self, error: BaseException) -> None:
        self._inbound.put_nowait(error)


class _FakeSessionContext:
    def __init__(self, connector: FakeConnector) -> None:
        self._connector = connector
        self.session: FakeLiveSession | None = None

    async def __aenter__(self) -> FakeLiveSession:
        connector = self._connector
        if connector.delay:
            await asyncio.sleep(connector.delay)
        if connector.fail is not None:
            raise connector.fail
        self.session = FakeLiveSession()
        connector.sessions.append(self.session)
        connector.open_count += 1
        connector.max_open = max(connector.max_open, connector.open_count)
        return self.session

    async def __aexit__(self, *exc_info: object) -> None:
        if self.session is not None and not self.session.closed:
            self.session.closed = True
            self._connector.open_count -= 1


class FakeConnector:
    """LiveConnector recording every connection it opens."""

    def __init__(self, *, fail: Exception | None = None, delay: float = 0.0) -> None:
        self.fail = fail
        self.delay = delay
        self.calls: list[tuple[str, Any]] = []
        self.sessions: list[FakeLiveSession] = []
        self.open_count = 0
        self.max_open = 0

    def __call__(self, model: str, config: Any) -> _FakeSessionContext:
        self.calls.append((model, config))
        return _FakeSessionContext(self)

    @property
    def session(self) -> FakeLiveSession:
        """Most recently opened session."""
        return self.sessions[-1]


@pytest.fixture
def fake_connector() -> FakeConnector:
    return FakeConnector()


async def settle(rounds: int = 10) -> None:
    """Let background send/receive tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


# =============================================================================
# Audio Fakes
# =============================================================================


class FakeStream:
    """sounddevice stream stand-in; the test drives the callback."""

    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.callback = kwargs.get("callback")
        self.started = False
        self.closed = False

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.started = False

    def close(self) -> None:
        self.closed = True

    def feed_input(self, samples: np.ndarray) -> None:
        """Run the input callback with one mono block."""
        block = samples.reshape(-1, 1).astype(np.float32)
        self.callback(block, len(samples), None, None)

    def pull_output(self, frames: int) -> np.ndarray:
        """Run the output callback and return the int16 block it filled."""
        outdata = np.zeros((frames, 1), dtype=np.int16)
        self.callback(outdata, frames, None, None)
        return outdata[:, 0]


class FakeStreamFactory:
    def __init__(self, fail: Exception | None = None) -> None:
        self.fail = fail
        self.calls = 0
        self.streams: list[FakeStream] = []

    def __call__(self, **kwargs: Any) -> FakeStream:
        self.calls += 1
        if self.fail is not None:
            raise self.fail
        stream = FakeStream(**kwargs)
        self.streams.append(stream)
        return stream

    @property
    def active(self) -> FakeStream:
        """Most recent stream opened with a callback."""
        return [s for s in self.streams if s.callback is not None][-1]


class FakeAudioPipeline:
    """AudioPipeline stand-in for orchestrator tests."""

    def __init__(self, *, permission_granted: bool = True) -> None:
        self.config = AudioConfig()
        self.permission = PermissionState.PENDING
        self.is_recording = False
        self.is_playing = False
        self.played: list[bytes] = []
        self.stop_audio_calls = 0
        self.disposed = False
        self._permission_granted = permission_granted
        self._callbacks: dict[str, Any] = {}

    def attach(self, **callbacks: Any) -> None:
        self._callbacks.update({k: v for k, v in callbacks.items() if v is not None})

    async def request_microphone_permission(self) -> bool:
        self.permission = (
            PermissionState.GRANTED if self._permission_granted else PermissionState.DENIED
        )
        return self._permission_granted

    async def start_recording(self) -> bool:
        if not await self.request_microphone_permission():
            from liveassist.services.audio.exceptions import MicrophonePermissionError

            self._callbacks["on_error"](MicrophonePermissionError("Microphone permission denied"))
            return False
        self.is_recording = True
        return True

    def stop_recording(self) -> None:
        if self.is_recording:
            self.is_recording = False
            self._callbacks["on_audio_level"](0.0)

    def play_audio(self, pcm: bytes) -> None:
        self.played.append(pcm)
        self.is_playing = True

    def stop_audio(self) -> None:
        self.stop_audio_calls += 1
        self.is_playing = False

    def dispose(self) -> None:
        self.stop_recording()
        self.disposed = True

    # Test drivers

    def emit_chunk(self, chunk: AudioChunk, level: float = 50.0) -> None:
        self._callbacks["on_audio_level"](level)
        self._callbacks["on_audio_chunk"](chunk)

    def finish_playback(self) -> None:
        self.is_playing = False
        self._callbacks["on_playback_complete"]()

    def fail(self, error: Exception) -> None:
        self._callbacks["on_error"](error)


@pytest.fixture
def fake_audio() -> FakeAudioPipeline:
    return FakeAudioPipeline()
