import asyncio

import pytest

from linkcrawl.coordinator import CompletionCoordinator
from linkcrawl.exceptions import StreamClosedError
from linkcrawl.stream import OutputStream


@pytest.mark.asyncio
async def test_stream_yields_keys_in_order_until_closed():
    stream = OutputStream()
    await stream.put("a")
    await stream.put("b")
    stream.close()

    assert [key async for key in stream] == ["a", "b"]
    assert stream.closed


@pytest.mark.asyncio
async def test_get_after_close_raises():
    stream = OutputStream()
    stream.close()

    with pytest.raises(StreamClosedError):
        await stream.get()
    with pytest.raises(StreamClosedError):
        await stream.get()


@pytest.mark.asyncio
async def test_put_after_close_raises():
    stream = OutputStream()
    stream.close()

    with pytest.raises(StreamClosedError):
        await stream.put("late")


@pytest.mark.asyncio
async def test_double_close_raises():
    stream = OutputStream()
    stream.close()

    with pytest.raises(StreamClosedError):
        stream.close()


@pytest.mark.asyncio
async def test_bounded_stream_blocks_producer():
    stream = OutputStream(maxsize=1)
    await stream.put("a")

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(stream.put("b"), timeout=0.05)

    assert await stream.get() == "a"
    await asyncio.wait_for(stream.put("c"), timeout=0.05)
    assert await stream.get() == "c"


@pytest.mark.asyncio
async def test_coordinator_closes_when_root_finishes():
    stream = OutputStream()
    coordinator = CompletionCoordinator(stream)
    assert coordinator.outstanding == 1

    coordinator.done()

    assert coordinator.finished
    assert stream.closed


@pytest.mark.asyncio
async def test_coordinator_closes_only_after_last_task():
    stream = OutputStream()
    coordinator = CompletionCoordinator(stream)
    coordinator.register()
    coordinator.register()

    coordinator.done()
    coordinator.done()
    assert not stream.closed
    assert coordinator.outstanding == 1

    coordinator.done()
    assert stream.closed
    assert coordinator.total_tasks == 3


@pytest.mark.asyncio
async def test_coordinator_rejects_extra_done():
    coordinator = CompletionCoordinator(OutputStream())
    coordinator.done()

    with pytest.raises(RuntimeError):
        coordinator.done()


@pytest.mark.asyncio
async def test_coordinator_rejects_register_after_finish():
    coordinator = CompletionCoordinator(OutputStream())
    coordinator.done()

    with pytest.raises(RuntimeError):
        coordinator.register()
