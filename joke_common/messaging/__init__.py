"""
Broker connection management and message handling.
"""

from .connection import BrokerConnection
from .handlers import HandlerOutcome, HandlerResult, dispatch, settle
from .supervisor import ReconnectSupervisor, RetryPolicy
from .type_updates import subscribe_type_updates

__all__ = [
    "BrokerConnection",
    "HandlerOutcome",
    "HandlerResult",
    "ReconnectSupervisor",
    "RetryPolicy",
    "dispatch",
    "settle",
    "subscribe_type_updates",
]
