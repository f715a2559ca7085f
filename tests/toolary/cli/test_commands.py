"""Tests for CLI commands."""

import pytest
from rich.console import Console

from toolary.cli.commands import ask, keys, prefs, status
from toolary.cli.formatting.output import ConsoleOutput, mask_secret
from toolary.engine import AIEngine
from toolary.llm.errors import TransientBackendError
from toolary.llm.pool import RequestOutcome
from toolary.storage import MemoryCredentialStore, MemoryPreferenceStore


@pytest.fixture
def console():
    return ConsoleOutput(Console(record=True, width=120))


def _text(console):
    return console.console.export_text()


def _engine(engine_config, clock, transport):
    return AIEngine(
        config=engine_config,
        credential_store=MemoryCredentialStore(),
        preference_store=MemoryPreferenceStore(),
        transport=transport,
        clock=clock,
    )


def test_mask_secret():
    assert mask_secret("AIzaSyABCDEF1234") == "AIza…1234"
    assert mask_secret("short") == "*****"


@pytest.mark.asyncio
async def test_keys_add_list_remove(engine_config, clock, make_transport, console):
    engine = _engine(engine_config, clock, make_transport())

    assert await keys.run("add", "AIzaFirstKey0001", engine=engine, console=console) == 0
    assert await keys.run("add", "AIzaSecondKey002", engine=engine, console=console) == 0
    assert await keys.run("list", engine=engine, console=console) == 0

    output = _text(console)
    assert "AIza…0001" in output
    assert "AIzaFirstKey0001" not in output

    assert await keys.run("remove", "0", engine=engine, console=console) == 0
    remaining = await engine.get_credentials()
    assert [e.secret_value for e in remaining] == ["AIzaSecondKey002"]


@pytest.mark.asyncio
async def test_keys_add_duplicate_rejected(engine_config, clock, make_transport, console):
    engine = _engine(engine_config, clock, make_transport())
    await engine.set_credentials(["AIzaFirstKey0001"])

    assert await keys.run("add", "AIzaFirstKey0001", engine=engine, console=console) == 1
    assert len(await engine.get_credentials()) == 1


@pytest.mark.asyncio
async def test_keys_remove_bad_index(engine_config, clock, make_transport, console):
    engine = _engine(engine_config, clock, make_transport())

    assert await keys.run("remove", "3", engine=engine, console=console) == 1
    assert await keys.run("remove", "x", engine=engine, console=console) == 1


@pytest.mark.asyncio
async def test_keys_test_reports_failure(engine_config, clock, make_transport, console):
    transport = make_transport([TransientBackendError(429, "Rate limit exceeded")])
    engine = _engine(engine_config, clock, transport)

    assert await keys.run("test", "AIzaTrialKey0001", engine=engine, console=console) == 1
    assert "Rate limit exceeded" in _text(console)


@pytest.mark.asyncio
async def test_status_shows_states(engine_config, clock, make_transport, console):
    engine = _engine(engine_config, clock, make_transport())
    await engine.set_credentials(["k0", "k1"])
    engine.pool.status(1).is_healthy = False

    assert await status.run(engine=engine, console=console) == 0

    output = _text(console)
    assert "active" in output
    assert "error" in output


@pytest.mark.asyncio
async def test_prefs_set_and_show(engine_config, clock, make_transport, console):
    engine = _engine(engine_config, clock, make_transport())

    assert await prefs.run("model", "lite", engine=engine, console=console) == 0
    assert await prefs.run("language", "xx", engine=engine, console=console) == 1
    assert await prefs.run("show", engine=engine, console=console) == 0

    output = _text(console)
    assert "model    = lite" in output
    assert "language = auto" in output


@pytest.mark.asyncio
async def test_ask_prints_response(engine_config, clock, make_transport, console):
    transport = make_transport(["Here is the answer"])
    engine = _engine(engine_config, clock, transport)
    await engine.set_credentials(["k0"])

    assert await ask.run("What?", engine=engine, console=console) == 0
    assert "Here is the answer" in _text(console)


@pytest.mark.asyncio
async def test_ask_rate_limited_exit_code(engine_config, clock, make_transport, console):
    transport = make_transport([TransientBackendError(429, "Rate limit exceeded")])
    engine = _engine(engine_config, clock, transport)
    await engine.set_credentials(["k0"])

    assert await ask.run("What?", engine=engine, console=console) == 2
    assert "try again" in _text(console)


@pytest.mark.asyncio
async def test_ask_without_keys(engine_config, clock, make_transport, console):
    engine = _engine(engine_config, clock, make_transport())

    assert await ask.run("What?", engine=engine, console=console) == 1
    assert "No API keys configured" in _text(console)


@pytest.mark.asyncio
async def test_status_cooldown_uses_engine_clock(engine_config, clock, make_transport, console):
    engine = _engine(engine_config, clock, make_transport())
    await engine.set_credentials(["k0"])
    engine.pool.record_outcome(RequestOutcome(credential_index=0, succeeded=False, http_status=429))
    clock.advance(15)

    assert await status.run(engine=engine, console=console) == 0

    output = _text(console)
    assert "rate_limited" in output
    assert "45s" in output
