"""Local status of a client site and the stores that hold it.

The receiver writes this state and the gate reads it on every request, so a
write replaces status and presentation together: a reader sees either the old
pair or the new pair, never a mix of the two.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from threading import Lock

import redis

from ..errors import StateUnavailable
from ..status import MaintenancePresentation, SiteStatus

logger = logging.getLogger(__name__)

STATE_KEY = "sitegate:site_status"


@dataclass(frozen=True)
class ClientLocalState:
    status: SiteStatus = SiteStatus.ACTIVE
    presentation: MaintenancePresentation | None = None

    def __post_init__(self):
        if self.status is SiteStatus.ACTIVE and self.presentation is not None:
            raise ValueError("An active site carries no maintenance presentation")
        if self.status is SiteStatus.MAINTENANCE and self.presentation is None:
            object.__setattr__(self, "presentation", MaintenancePresentation())

    @property
    def in_maintenance(self) -> bool:
        return self.status is SiteStatus.MAINTENANCE

    @classmethod
    def maintenance(cls, presentation: MaintenancePresentation | None = None) -> "ClientLocalState":
        return cls(SiteStatus.MAINTENANCE, presentation or MaintenancePresentation())

    @classmethod
    def active(cls) -> "ClientLocalState":
        return cls(SiteStatus.ACTIVE, None)


class LocalStateStore(ABC):
    """Load/store capability injected into the receiver and the gate."""

    @abstractmethod
    def load(self) -> ClientLocalState:
        """Return the committed state; a store that was never written reports active."""

    @abstractmethod
    def store(self, state: ClientLocalState) -> None:
        """Replace the committed state in one step."""


class MemoryStateStore(LocalStateStore):
    """Per-process store, used when Redis is unavailable and in tests."""

    def __init__(self, initial: ClientLocalState | None = None):
        self._lock = Lock()
        self._state = initial or ClientLocalState()

    def load(self) -> ClientLocalState:
        with self._lock:
            return self._state

    def store(self, state: ClientLocalState) -> None:
        with self._lock:
            self._state = state


class RedisStateStore(LocalStateStore):
    """State kept in one Redis hash, shared by every pod serving the site.

    Writes delete and rewrite the hash inside MULTI/EXEC, reads use a single
    HGETALL, so no reader can observe maintenance copy left over from an
    earlier write.
    """

    def __init__(self, client: "redis.Redis[str]", key: str = STATE_KEY):
        self.client = client
        self.key = key

    def load(self) -> ClientLocalState:
        try:
            data = self.client.hgetall(self.key)
        except redis.RedisError as e:
            raise StateUnavailable(str(e)) from e
        if not data:
            return ClientLocalState()
        if data.get("status") != SiteStatus.MAINTENANCE.value:
            return ClientLocalState()
        return ClientLocalState.maintenance(
            MaintenancePresentation(
                title=data.get("title", ""),
                logo_url=data.get("logo_url", ""),
                text=data.get("text", ""),
            )
        )

    def store(self, state: ClientLocalState) -> None:
        mapping = {"status": state.status.value}
        if state.presentation is not None:
            mapping.update(state.presentation.to_dict())
        try:
            with self.client.pipeline(transaction=True) as pipe:
                pipe.delete(self.key)
                pipe.hset(self.key, mapping=mapping)
                pipe.execute()
        except redis.RedisError as e:
            raise StateUnavailable(str(e)) from e
        logger.debug("[REDIS] Stored site status %s", state.status.value)
