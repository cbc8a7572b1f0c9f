"""Sends a status change to one client site and reports what happened.

The dispatcher only talks to the client. Recording the confirmed status in the
registry is the caller's job, done after ``push_status`` returns an ``Ack``.
"""

import json
import logging
from dataclasses import dataclass

import requests

from ..errors import NetworkError, RemoteRejected
from ..status import DEFAULT_NAMESPACE, SiteStatus, webhook_path
from .registry import ClientRecord

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 20.0


@dataclass(frozen=True)
class Ack:
    status: SiteStatus
    message: str = ""


class WebhookDispatcher:
    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        namespace: str = DEFAULT_NAMESPACE,
        session: requests.Session | None = None,
    ):
        self.timeout = timeout
        self.namespace = namespace
        # requests.Session is not thread-safe; without an injected one each call
        # goes through requests.post, which opens and closes its own session
        self.session = session

    def webhook_url(self, record: ClientRecord) -> str:
        return record.site_url.rstrip("/") + webhook_path(self.namespace)

    @staticmethod
    def build_payload(record: ClientRecord, new_status: SiteStatus) -> dict[str, str]:
        payload = {"key": record.secret, "status": new_status.value}
        if new_status is SiteStatus.MAINTENANCE:
            payload.update(record.presentation.to_payload())
        return payload

    def push_status(self, record: ClientRecord, new_status: SiteStatus) -> Ack:
        """Make exactly one webhook call to ``record``'s site.

        Raises:
            NetworkError: the request never got an HTTP response.
            RemoteRejected: the site answered with anything but a 200 success.
        """
        url = self.webhook_url(record)
        logger.info("[DISPATCH] %s -> %s (%s)", record.site_name, new_status.value, url)
        try:
            post = self.session.post if self.session is not None else requests.post
            response = post(
                url,
                data=json.dumps(self.build_payload(record, new_status)),
                headers={"Content-Type": "application/json; charset=utf-8"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("[DISPATCH] %s unreachable: %s", record.site_name, e)
            raise NetworkError(str(e)) from e

        if response.status_code != 200:
            logger.warning("[DISPATCH] %s answered HTTP %s", record.site_name, response.status_code)
            raise RemoteRejected(response.status_code, response.text)

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict) or body.get("success") is not True:
            logger.warning("[DISPATCH] %s answered 200 without confirming", record.site_name)
            raise RemoteRejected(response.status_code, response.text)

        return Ack(new_status, str(body.get("message", "")))
