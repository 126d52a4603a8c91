import asyncio
import contextlib
import socket

import pytest
from fastapi import FastAPI

from lifecycle.api_server_wrapper import APIServerWrapper
from lifecycle.handlers import APIServerShutdownHandler


def _port_is_free(port: int) -> bool:
    with socket.socket() as s:
        try:
            s.bind(("127.0.0.1", port))
        except OSError:
            return False
    return True


@pytest.fixture
def wrapper(unused_tcp_port):
    return APIServerWrapper(FastAPI(), host="127.0.0.1", port=unused_tcp_port)


async def test_start_and_stop(wrapper, unused_tcp_port):
    task = asyncio.create_task(wrapper.start())
    for _ in range(100):
        if wrapper.server is not None and wrapper.server.started:
            break
        await asyncio.sleep(0.02)

    assert wrapper.is_running

    await wrapper.stop()
    await asyncio.wait_for(task, timeout=2.0)

    assert not wrapper.is_running
    assert _port_is_free(unused_tcp_port)


async def test_stop_without_start(wrapper):
    await wrapper.stop()

    assert not wrapper.is_running


async def test_cancelled_start_stops_server(wrapper, unused_tcp_port):
    task = asyncio.create_task(wrapper.start())
    await asyncio.sleep(0.2)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert wrapper.server is None
    assert _port_is_free(unused_tcp_port)


async def test_shutdown_handler_stops_running_server(wrapper):
    task = asyncio.create_task(wrapper.start())
    await asyncio.sleep(0.2)

    await APIServerShutdownHandler(wrapper).shutdown()
    await asyncio.wait_for(task, timeout=2.0)

    assert not wrapper.is_running


async def test_shutdown_handler_skips_idle_server(wrapper):
    await APIServerShutdownHandler(wrapper).shutdown()

    assert wrapper.server is None
