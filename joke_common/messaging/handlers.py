"""
Tagged results returned by message handlers.

A handler never touches the broker message itself. It returns a ``HandlerOutcome``
and the consumer loop settles the message accordingly, then runs the optional
follow-up once the message is settled.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from aio_pika.abc import AbstractIncomingMessage

logger = logging.getLogger(__name__)

FollowUp = Callable[[], Awaitable[None]]


class HandlerResult(str, enum.Enum):
    ACK = "ack"
    NACK_REQUEUE = "nack_requeue"
    NACK_DROP = "nack_drop"


@dataclass(frozen=True)
class HandlerOutcome:
    result: HandlerResult
    follow_up: Optional[FollowUp] = None

    @classmethod
    def ack(cls, follow_up: Optional[FollowUp] = None) -> "HandlerOutcome":
        return cls(HandlerResult.ACK, follow_up)

    @classmethod
    def nack_requeue(cls) -> "HandlerOutcome":
        return cls(HandlerResult.NACK_REQUEUE)

    @classmethod
    def nack_drop(cls) -> "HandlerOutcome":
        return cls(HandlerResult.NACK_DROP)


MessageHandler = Callable[[bytes], Awaitable[HandlerOutcome]]


async def settle(message: AbstractIncomingMessage, outcome: HandlerOutcome) -> None:
    """Acknowledge, requeue or drop ``message`` according to ``outcome``."""
    if outcome.result is HandlerResult.ACK:
        await message.ack()
    elif outcome.result is HandlerResult.NACK_REQUEUE:
        await message.nack(requeue=True)
    else:
        await message.reject(requeue=False)


async def dispatch(message: AbstractIncomingMessage, handler: MessageHandler) -> HandlerOutcome:
    """
    Run ``handler`` on one delivery, settle it, then run the follow-up.

    An exception escaping the handler is treated as a transient failure and the
    message is requeued. A failing follow-up is logged; the message is already settled.
    """
    try:
        outcome = await handler(message.body)
    except Exception as e:
        logger.error(f"Unhandled error in message handler, requeueing: {e}", exc_info=True)
        outcome = HandlerOutcome.nack_requeue()

    await settle(message, outcome)

    if outcome.follow_up is not None:
        try:
            await outcome.follow_up()
        except Exception as e:
            logger.error(f"Follow-up after {outcome.result.value} failed: {e}", exc_info=True)
    return outcome
