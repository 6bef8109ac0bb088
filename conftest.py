"""Project-level pytest configuration and shared fixtures."""

import json
from collections import defaultdict, deque
from typing import Any, Deque, Dict, List, Mapping, Optional, Set

import fakeredis
import pytest
import pytest_asyncio
from fastapi_limiter import FastAPILimiter

from joke_common.errors import BrokerUnavailable
from joke_common.messaging.handlers import HandlerOutcome, MessageHandler, dispatch


class FakeIncomingMessage:
    """Stands in for ``aio_pika.abc.AbstractIncomingMessage`` and records how it was settled."""

    def __init__(self, body: bytes):
        self.body = body
        self.acked = False
        self.nacked = False
        self.rejected = False
        self.requeue: Optional[bool] = None

    async def ack(self) -> None:
        self.acked = True

    async def nack(self, requeue: bool = True) -> None:
        self.nacked = True
        self.requeue = requeue

    async def reject(self, requeue: bool = False) -> None:
        self.rejected = True
        self.requeue = requeue


class FakeBroker:
    """
    In-memory broker with the same capability surface as ``BrokerConnection``.

    Queues hold encoded JSON bodies. Consumers are not run in the background;
    tests call ``deliver`` to push pending messages through the registered handler.
    """

    def __init__(self) -> None:
        self.connected = True
        self.queues: Dict[str, Deque[bytes]] = defaultdict(deque)
        self.bindings: Dict[str, Set[str]] = defaultdict(set)
        self.handlers: Dict[str, MessageHandler] = {}
        self.broadcasts: List[Dict[str, Any]] = []
        self.fetched: List[FakeIncomingMessage] = []
        self.settled: List[FakeIncomingMessage] = []

    @property
    def is_connected(self) -> bool:
        return self.connected

    def _require_connection(self) -> None:
        if not self.connected:
            raise BrokerUnavailable("Broker channel not available. Please try again later.")

    async def declare_queue(self, name: str) -> None:
        self._require_connection()
        self.queues[name]

    async def declare_fanout_exchange(self, name: str) -> None:
        self._require_connection()
        self.bindings[name]

    async def bind(self, queue_name: str, exchange_name: str) -> None:
        self._require_connection()
        self.queues[queue_name]
        self.bindings[exchange_name].add(queue_name)

    async def publish(self, queue_name: str, payload: Mapping[str, Any]) -> None:
        self._require_connection()
        self.queues[queue_name].append(json.dumps(payload).encode("utf-8"))

    async def broadcast(self, exchange_name: str, payload: Mapping[str, Any]) -> None:
        self._require_connection()
        self.broadcasts.append({"exchange": exchange_name, "payload": dict(payload)})
        for queue_name in self.bindings[exchange_name]:
            self.queues[queue_name].append(json.dumps(payload).encode("utf-8"))

    async def get(self, queue_name: str) -> Optional[FakeIncomingMessage]:
        self._require_connection()
        if not self.queues[queue_name]:
            return None
        message = FakeIncomingMessage(self.queues[queue_name].popleft())
        self.fetched.append(message)
        return message

    async def consume(self, queue_name: str, handler: MessageHandler) -> None:
        self._require_connection()
        self.queues[queue_name]
        self.handlers[queue_name] = handler

    async def deliver(self, queue_name: str) -> List[HandlerOutcome]:
        """Run every message currently in ``queue_name`` through its consumer once."""
        handler = self.handlers[queue_name]
        outcomes = []
        for _ in range(len(self.queues[queue_name])):
            message = FakeIncomingMessage(self.queues[queue_name].popleft())
            outcomes.append(await dispatch(message, handler))
            self.settled.append(message)
            if message.nacked and message.requeue:
                self.queues[queue_name].append(message.body)
        return outcomes

    def pending(self, queue_name: str) -> List[Dict[str, Any]]:
        return [json.loads(body) for body in self.queues[queue_name]]


@pytest.fixture
def fake_broker() -> FakeBroker:
    """A connected in-memory broker."""
    return FakeBroker()


@pytest.fixture
def make_message():
    """Factory for settle-recording incoming messages."""
    def _make(body: Any) -> FakeIncomingMessage:
        if not isinstance(body, bytes):
            body = json.dumps(body).encode("utf-8")
        return FakeIncomingMessage(body)
    return _make


@pytest.fixture(autouse=True)
def rate_limiting_off_by_default(monkeypatch):
    """Apps built in tests skip the Redis-backed limiter unless a test enables it."""
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")


@pytest_asyncio.fixture
async def limiter_redis():
    """In-memory Redis for fastapi-limiter. Resets the limiter afterwards."""
    redis = fakeredis.FakeAsyncRedis()
    yield redis
    FastAPILimiter.redis = None
    await redis.aclose()
