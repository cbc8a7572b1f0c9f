from .extension import SiteGate, default_state_store
from .gate import MaintenanceGate
from .receiver import Ack, WebhookReceiver
from .state import ClientLocalState, LocalStateStore, MemoryStateStore, RedisStateStore

__all__ = [
    "Ack",
    "ClientLocalState",
    "LocalStateStore",
    "MaintenanceGate",
    "MemoryStateStore",
    "RedisStateStore",
    "SiteGate",
    "WebhookReceiver",
    "default_state_store",
]
