"""
Tests for the websocket price push
"""

import asyncio
from unittest.mock import AsyncMock

from src.core.exceptions import RateLimited
from src.services.coingecko_service import CoinGeckoService
from src.services.price_broadcaster import MESSAGE_TYPE, PriceBroadcaster
from src.services.schemas import PriceMap
from fakes import PRICE_PAYLOAD


class FakeSocket:
    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    async def send_json(self, payload):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(payload)


def make_broadcaster(interval: float = 30):
    service = AsyncMock(spec=CoinGeckoService)
    service.get_crypto_prices.return_value = PriceMap(PRICE_PAYLOAD)
    return PriceBroadcaster(service, coin_ids=["bitcoin"], interval=interval), service


async def test_subscribe_pushes_immediately():
    broadcaster, service = make_broadcaster()
    socket = FakeSocket()

    await broadcaster.subscribe(socket)

    assert socket.sent == [{"type": MESSAGE_TYPE, "data": PRICE_PAYLOAD}]
    service.get_crypto_prices.assert_awaited_once_with(["bitcoin"])


async def test_error_pushes_empty_data():
    broadcaster, service = make_broadcaster()
    service.get_crypto_prices.side_effect = RateLimited(2000)

    message = await broadcaster.build_message()

    assert message == {"type": "cryptoData", "data": {}}


async def test_broadcast_reaches_all_and_drops_dead_sockets():
    broadcaster, _ = make_broadcaster()
    alive, dead = FakeSocket(), FakeSocket(fail=True)
    broadcaster.subscribers.extend([alive, dead])

    delivered = await broadcaster.broadcast()

    assert delivered == 1
    assert broadcaster.subscribers == [alive]
    assert alive.sent[0]["type"] == "cryptoData"


async def test_broadcast_without_subscribers_skips_fetch():
    broadcaster, service = make_broadcaster()

    assert await broadcaster.broadcast() == 0
    service.get_crypto_prices.assert_not_awaited()


async def test_refresh_and_unsubscribe():
    broadcaster, _ = make_broadcaster()
    socket = FakeSocket()
    await broadcaster.subscribe(socket)

    await broadcaster.refresh(socket)
    broadcaster.unsubscribe(socket)
    broadcaster.unsubscribe(socket)

    assert len(socket.sent) == 2
    assert broadcaster.subscribers == []


async def test_periodic_loop_pushes_updates():
    broadcaster, _ = make_broadcaster(interval=0.01)
    socket = FakeSocket()
    broadcaster.subscribers.append(socket)

    broadcaster.start()
    await asyncio.sleep(0.05)
    await broadcaster.stop()

    assert len(socket.sent) >= 2
