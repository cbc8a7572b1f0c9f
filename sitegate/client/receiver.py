"""Webhook receiver: authenticates a status change from the controller and applies it."""

import hmac
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from ..errors import ForbiddenOrigin, InvalidSecret
from ..sanitize import clean_rich_text, clean_text, clean_url
from ..status import LOGO_URL_FIELD, TEXT_FIELD, TITLE_FIELD, MaintenancePresentation, SiteStatus
from .state import ClientLocalState, LocalStateStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ack:
    status: SiteStatus

    @property
    def message(self) -> str:
        return f"Status updated to {self.status.value}"

    def to_dict(self) -> dict[str, Any]:
        return {"success": True, "message": self.message}


class WebhookReceiver:
    """Applies ``{"key", "status", "maintenance_*"}`` payloads to the local state.

    Checks run in a fixed order and each one fails closed:
      1. Caller address against the allow-list (skipped when the list is empty)
      2. ``key`` against the configured secret, compared in constant time
      3. ``status`` is exactly ``active`` or ``maintenance``

    Nothing is written unless all three pass.
    """

    def __init__(self, store: LocalStateStore, api_key: str, allowed_ips=()):
        self.store = store
        self.api_key = api_key or ""
        self.allowed_ips = tuple(allowed_ips)

    def handle_update(self, payload: Mapping[str, Any] | None, remote_addr: str | None) -> Ack:
        payload = payload or {}
        self._check_origin(remote_addr)
        self._check_secret(payload.get("key"))
        status = SiteStatus.parse(payload.get("status"))

        if status is SiteStatus.MAINTENANCE:
            state = ClientLocalState.maintenance(
                MaintenancePresentation(
                    title=clean_text(payload.get(TITLE_FIELD)),
                    logo_url=clean_url(payload.get(LOGO_URL_FIELD)),
                    text=clean_rich_text(payload.get(TEXT_FIELD)),
                )
            )
        else:
            state = ClientLocalState.active()

        self.store.store(state)
        logger.info("[WEBHOOK] Status updated to %s (caller %s)", status.value, remote_addr)
        return Ack(status)

    def _check_origin(self, remote_addr: str | None) -> None:
        if not self.allowed_ips:
            return
        if remote_addr not in self.allowed_ips:
            logger.warning("[WEBHOOK] Rejected caller %s: not in allow-list", remote_addr)
            raise ForbiddenOrigin(remote_addr)

    def _check_secret(self, key: Any) -> None:
        supplied = key if isinstance(key, str) else ""
        # Always run the comparison, even for an empty key.
        valid = hmac.compare_digest(supplied.encode("utf-8"), self.api_key.encode("utf-8"))
        if not self.api_key or not supplied or not valid:
            logger.warning("[WEBHOOK] Rejected update: invalid key")
            raise InvalidSecret()
