"""
Supervised reconnect loop for a ``BrokerConnection``.
"""
import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from joke_common.messaging.connection import BrokerConnection

logger = logging.getLogger(__name__)

TopologySetup = Callable[[BrokerConnection], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """
    Delay between connection attempts.

    ``jitter_seconds`` adds a uniform random extra delay; ``max_attempts`` of
    ``None`` retries forever.
    """
    interval_seconds: float = 5.0
    jitter_seconds: float = 0.0
    max_attempts: Optional[int] = None

    def next_delay(self) -> float:
        if self.jitter_seconds > 0:
            return self.interval_seconds + random.uniform(0, self.jitter_seconds)
        return self.interval_seconds

    def exhausted(self, attempts: int) -> bool:
        return self.max_attempts is not None and attempts >= self.max_attempts


class ReconnectSupervisor:
    """
    Keeps a broker connection alive.

    Each cycle initializes the connection, runs ``setup`` to declare topology and
    start consumers, then waits until the connection drops. Failures of any step
    are logged and retried after ``policy.next_delay()``. Once the retry policy is
    exhausted the task ends, ``error`` holds the last failure and ``state`` reads "failed".
    """

    def __init__(self, broker: BrokerConnection, setup: TopologySetup, policy: Optional[RetryPolicy] = None):
        self.broker = broker
        self.setup = setup
        self.policy = policy or RetryPolicy()
        self.failed_attempts = 0
        self.error: Optional[BaseException] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> str:
        if self.error is not None:
            return "failed"
        if self._task is not None and not self._task.done():
            return "running"
        return "stopped"

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self.error = None
            self._task = asyncio.create_task(self.run(), name="broker-supervisor")
            self._task.add_done_callback(self._on_done)
        return self._task

    def _on_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.error = exc
            logger.critical(f"Broker supervisor stopped for good, service is running without a broker: {exc}")

    async def stop(self) -> None:
        if self._task is not None:
            if not self._task.done():
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    logger.info("Broker supervisor cancelled successfully")
            self._task = None
        await self.broker.teardown()

    async def run(self) -> None:
        while True:
            try:
                await self.broker.initialize()
                await self.setup(self.broker)
                self.failed_attempts = 0
                await self.broker.wait_closed()
                logger.error(f"Broker connection lost. Reconnecting in {self.policy.interval_seconds}s...")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.failed_attempts += 1
                logger.error(f"Failed to connect to broker ({self.failed_attempts} consecutive failures): {e}")
                if self.policy.exhausted(self.failed_attempts):
                    logger.critical(f"Giving up on broker after {self.failed_attempts} attempts")
                    await self.broker.teardown()
                    raise
            await self.broker.teardown()
            delay = self.policy.next_delay()
            logger.info(f"Retrying broker connection in {delay:.1f} seconds...")
            await asyncio.sleep(delay)
