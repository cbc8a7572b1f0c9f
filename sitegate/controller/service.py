"""Operator actions on the fleet: register, edit, remove and switch sites."""

import logging
from dataclasses import dataclass

from ..errors import DispatchError
from ..status import MaintenancePresentation, SiteStatus
from .dispatcher import WebhookDispatcher
from .registry import ClientRecord, ClientRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusOutcome:
    ok: bool
    record: ClientRecord
    message: str
    error: DispatchError | None = None


class StatusController:
    def __init__(self, registry: ClientRegistry, dispatcher: WebhookDispatcher):
        self.registry = registry
        self.dispatcher = dispatcher

    def register_site(
        self, site_name: str, site_url: str, presentation: MaintenancePresentation | None = None
    ) -> ClientRecord:
        return self.registry.create(site_name, site_url, presentation)

    def update_site(self, record_id: int, **details) -> ClientRecord:
        return self.registry.update_details(record_id, **details)

    def delete_site(self, record_id: int) -> None:
        self.registry.delete(record_id)

    def list_sites(self, page: int = 1, page_size: int = 10):
        return self.registry.list(page, page_size)

    def set_status(self, record_id: int, status: SiteStatus) -> StatusOutcome:
        """Push ``status`` to the site and record it only once the site confirms.

        Dispatch failures come back as an unsuccessful outcome with the record
        untouched. A record edited while the call was in flight raises
        ``StaleRecord``.
        """
        record = self.registry.get(record_id)
        try:
            self.dispatcher.push_status(record, status)
        except DispatchError as e:
            logger.warning("[CONTROLLER] %s stays %s: %s", record.site_name, record.known_status.value, e.reason)
            return StatusOutcome(
                ok=False,
                record=record,
                message=(
                    f'Could not contact the client site "{record.site_name}". '
                    f"Status was not changed. Reason: {e.reason}"
                ),
                error=e,
            )

        record = self.registry.commit_status(record.id, status, expected_version=record.version)
        logger.info("[CONTROLLER] %s is now %s", record.site_name, status.value)
        return StatusOutcome(
            ok=True,
            record=record,
            message=f"Status for {record.site_name} successfully updated to {status.value}.",
        )
