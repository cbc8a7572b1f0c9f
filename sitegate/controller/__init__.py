from .dispatcher import Ack, WebhookDispatcher
from .registry import ClientRecord, ClientRegistry, MemoryRegistry, RedisRegistry
from .service import StatusController, StatusOutcome

__all__ = [
    "Ack",
    "ClientRecord",
    "ClientRegistry",
    "MemoryRegistry",
    "RedisRegistry",
    "StatusController",
    "StatusOutcome",
    "WebhookDispatcher",
]
