"""Unit tests for stackpilot.core.relay — single-slot handoff semantics."""

from __future__ import annotations

import asyncio

import pytest

from stackpilot.core.relay import Relay


class TestAsyncSide:
    async def test_fifo_order(self) -> None:
        relay: Relay[int] = Relay("numbers")
        received: list[int] = []

        async def produce() -> None:
            for i in range(10):
                await relay.send(i)

        producer = asyncio.create_task(produce())
        for _ in range(10):
            received.append(await relay.receive())
        await producer
        assert received == list(range(10))

    async def test_second_send_blocks_until_receive(self) -> None:
        relay: Relay[str] = Relay("log")
        await relay.send("first")
        assert relay.pending

        second = asyncio.create_task(relay.send("second"))
        await asyncio.sleep(0.01)
        assert not second.done()

        assert await relay.receive() == "first"
        await asyncio.wait_for(second, timeout=1)
        assert await relay.receive() == "second"
        assert not relay.pending

    async def test_receive_waits_for_item(self) -> None:
        relay: Relay[str] = Relay("log")
        waiter = asyncio.create_task(relay.receive())
        await asyncio.sleep(0.01)
        assert not waiter.done()
        await relay.send("hello")
        assert await asyncio.wait_for(waiter, timeout=1) == "hello"

    async def test_join_waits_until_item_received(self) -> None:
        relay: Relay[str] = Relay("events")
        await relay.send("evt")
        joiner = asyncio.create_task(relay.join())
        await asyncio.sleep(0.01)
        assert not joiner.done()

        assert await relay.receive() == "evt"
        await asyncio.wait_for(joiner, timeout=1)

    async def test_join_on_empty_relay_returns(self) -> None:
        await asyncio.wait_for(Relay("events").join(), timeout=1)


class TestThreadSide:
    async def test_send_threadsafe_delivers(self) -> None:
        relay: Relay[str] = Relay("events")
        loop = asyncio.get_running_loop()
        sent = asyncio.create_task(asyncio.to_thread(relay.send_threadsafe, "evt", loop))
        assert await asyncio.wait_for(relay.receive(), timeout=2) == "evt"
        assert await sent is True

    async def test_send_threadsafe_blocks_producer(self) -> None:
        relay: Relay[int] = Relay("events")
        loop = asyncio.get_running_loop()

        def produce() -> list[bool]:
            return [relay.send_threadsafe(i, loop) for i in range(3)]

        producer = asyncio.create_task(asyncio.to_thread(produce))
        await asyncio.sleep(0.05)
        assert not producer.done()

        received = [await asyncio.wait_for(relay.receive(), timeout=2) for _ in range(3)]
        assert received == [0, 1, 2]
        assert await producer == [True, True, True]

    async def test_closed_relay_drops_thread_sends(self) -> None:
        relay: Relay[str] = Relay("events")
        loop = asyncio.get_running_loop()
        relay.close()
        assert await asyncio.to_thread(relay.send_threadsafe, "ignored", loop) is False
        assert not relay.pending

    async def test_close_releases_blocked_sender(self) -> None:
        relay: Relay[str] = Relay("events")
        loop = asyncio.get_running_loop()
        await relay.send("occupies slot")

        blocked = asyncio.create_task(asyncio.to_thread(relay.send_threadsafe, "late", loop))
        await asyncio.sleep(0.05)
        assert not blocked.done()

        relay.close()
        assert await asyncio.wait_for(blocked, timeout=2) is False


def test_repr_mentions_name() -> None:
    assert "events" in repr(Relay("events"))


@pytest.mark.parametrize("name", ["log", "events"])
def test_new_relay_is_empty(name: str) -> None:
    relay: Relay[object] = Relay(name)
    assert relay.name == name
    assert not relay.pending
    assert not relay.closed
