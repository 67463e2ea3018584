import asyncio

import pytest

from spec_store.watch.debounce import Debouncer


class Recorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, key, payload):
        self.calls.append((key, payload))


async def _settle(debouncer: Debouncer, delay: float):
    await asyncio.sleep(delay)
    await debouncer.drain()


@pytest.mark.asyncio
async def test_burst_collapses_into_one_call():
    recorder = Recorder()
    debouncer = Debouncer(0.05, recorder)

    debouncer.schedule("a.yaml", "created")
    await asyncio.sleep(0.01)
    debouncer.schedule("a.yaml", "modified")
    await asyncio.sleep(0.01)
    debouncer.schedule("a.yaml", "modified")

    await _settle(debouncer, 0.15)

    assert recorder.calls == [("a.yaml", "modified")]
    assert debouncer.pending_keys == []


@pytest.mark.asyncio
async def test_keys_are_debounced_independently():
    recorder = Recorder()
    debouncer = Debouncer(0.03, recorder)

    debouncer.schedule("a.yaml", "modified")
    debouncer.schedule("b.yaml", "created")

    await _settle(debouncer, 0.1)

    assert sorted(recorder.calls) == [("a.yaml", "modified"), ("b.yaml", "created")]


@pytest.mark.asyncio
async def test_events_outside_window_fire_separately():
    recorder = Recorder()
    debouncer = Debouncer(0.02, recorder)

    debouncer.schedule("a.yaml", "created")
    await _settle(debouncer, 0.06)
    debouncer.schedule("a.yaml", "modified")
    await _settle(debouncer, 0.06)

    assert recorder.calls == [("a.yaml", "created"), ("a.yaml", "modified")]


@pytest.mark.asyncio
async def test_cancel_prevents_call():
    recorder = Recorder()
    debouncer = Debouncer(0.02, recorder)

    debouncer.schedule("a.yaml")
    debouncer.schedule("b.yaml")
    assert debouncer.cancel("a.yaml")
    assert not debouncer.cancel("missing.yaml")
    debouncer.cancel_all()

    await _settle(debouncer, 0.06)

    assert recorder.calls == []


@pytest.mark.asyncio
async def test_callback_errors_are_logged_not_raised(caplog):
    async def failing(key, payload):
        raise RuntimeError("boom")

    debouncer = Debouncer(0.01, failing)
    debouncer.schedule("a.yaml")

    await _settle(debouncer, 0.05)

    assert "Debounced callback failed for a.yaml" in caplog.text
