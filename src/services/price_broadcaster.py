# coding: utf-8
"""
Periodic price push to connected websocket clients

One background loop serves every subscriber, so the upstream sees one price
request per interval (and the 30s price cache absorbs the rest) regardless of
how many dashboards are open.
"""
import asyncio
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from config.config import DEFAULT_COIN_IDS, MAX_COINS_WITHOUT_KEY, PRICE_PUSH_INTERVAL
from src.core.exceptions import GatewayError
from src.services.coingecko_service import CoinGeckoService, get_coingecko_service


MESSAGE_TYPE = "cryptoData"


class PriceBroadcaster:
    """
    Pushes {"type": "cryptoData", "data": {...}} to every subscriber

    Subscribers are any objects with an async send_json(payload) method
    (starlette's WebSocket qualifies). A failed send drops the subscriber.
    """

    def __init__(
        self,
        service: CoinGeckoService,
        coin_ids: Optional[Sequence[str]] = None,
        interval: float = PRICE_PUSH_INTERVAL,
    ):
        self.service = service
        if coin_ids is None:
            coin_ids = DEFAULT_COIN_IDS[:MAX_COINS_WITHOUT_KEY]
        self.coin_ids = list(coin_ids)
        self.interval = interval
        self.subscribers: List[Any] = []
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())
            logger.info(f"Price broadcaster started (every {self.interval}s, {len(self.coin_ids)} coins)")

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Price broadcaster stopped")

    async def subscribe(self, subscriber: Any) -> None:
        """Register a client and push current prices to it immediately"""
        self.subscribers.append(subscriber)
        logger.info(f"Client subscribed to price updates ({len(self.subscribers)} total)")
        await self._send(subscriber, await self.build_message())

    def unsubscribe(self, subscriber: Any) -> None:
        if subscriber in self.subscribers:
            self.subscribers.remove(subscriber)
            logger.info(f"Client unsubscribed from price updates ({len(self.subscribers)} left)")

    async def refresh(self, subscriber: Any) -> None:
        """Push current prices to one client on request"""
        await self._send(subscriber, await self.build_message())

    async def build_message(self) -> Dict[str, Any]:
        try:
            prices = await self.service.get_crypto_prices(self.coin_ids)
            data = prices.model_dump()
        except GatewayError as e:
            logger.warning(f"Price push without data: {e}")
            data = {}
        return {"type": MESSAGE_TYPE, "data": data}

    async def broadcast(self) -> int:
        """Push current prices to every subscriber; returns the number reached"""
        if not self.subscribers:
            return 0
        message = await self.build_message()
        results = await asyncio.gather(
            *(self._send(subscriber, message) for subscriber in list(self.subscribers))
        )
        return sum(1 for delivered in results if delivered)

    async def _send(self, subscriber: Any, message: Dict[str, Any]) -> bool:
        try:
            await subscriber.send_json(message)
            return True
        except Exception as e:
            logger.debug(f"Dropping subscriber after failed send: {e}")
            self.unsubscribe(subscriber)
            return False

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.broadcast()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Price broadcast failed: {e}")


# Global broadcaster instance
_price_broadcaster: Optional[PriceBroadcaster] = None


def get_price_broadcaster() -> PriceBroadcaster:
    """Get global price broadcaster (singleton, bound to the global CoinGecko service)"""
    global _price_broadcaster
    if _price_broadcaster is None:
        _price_broadcaster = PriceBroadcaster(get_coingecko_service())
    return _price_broadcaster
