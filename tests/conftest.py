"""Pytest configuration for toolary tests."""
import sys
from pathlib import Path

import pytest

# Add src to path for the tests - conftest is in tests/, so parent.parent is project root
project_root = Path(__file__).resolve().parent.parent
src_path = project_root / "src"

# Insert at the very beginning to override any other paths
sys.path.insert(0, str(src_path))

from toolary.config import EngineConfig  # noqa: E402
from toolary.llm.google import GenerateResult  # noqa: E402
from toolary.storage import MemoryCredentialStore, MemoryPreferenceStore, SecretCipher  # noqa: E402


class FakeClock:
    """Manually advanced clock; ``sleep`` advances time instead of waiting."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.current = start
        self.sleeps = []

    def now(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds


class FakeTransport:
    """Scripted transport: each call pops the next text or raises the next exception."""

    def __init__(self, script=None):
        self.script = list(script or [])
        self.calls = []

    async def generate(self, model: str, secret: str, prompt: str) -> GenerateResult:
        self.calls.append({"model": model, "secret": secret, "prompt": prompt})
        outcome = self.script.pop(0) if self.script else "ok"
        if isinstance(outcome, Exception):
            raise outcome
        return GenerateResult(text=outcome, model=model)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_transport():
    """Factory: ``make_transport(["text", TransientBackendError(...), ...])``."""
    return FakeTransport


@pytest.fixture
def cipher():
    return SecretCipher("test-install")


@pytest.fixture
def credential_store():
    return MemoryCredentialStore()


@pytest.fixture
def preference_store():
    return MemoryPreferenceStore()


@pytest.fixture
def engine_config(tmp_path):
    return EngineConfig(data_dir=tmp_path, install_seed="test-install")
