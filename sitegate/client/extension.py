"""Flask extension wiring the webhook receiver and the maintenance gate into a site."""

import logging

from flask import Blueprint, Flask, jsonify, request

from ..config import ClientSettings, RedisSettings
from ..errors import SiteGateError
from ..storage import connect_redis
from ..status import webhook_path
from .gate import MaintenanceGate
from .receiver import WebhookReceiver
from .state import LocalStateStore, MemoryStateStore, RedisStateStore

logger = logging.getLogger(__name__)


def default_state_store(redis_settings: RedisSettings | None = None) -> LocalStateStore:
    client = connect_redis(redis_settings or RedisSettings.from_env())
    if client is None:
        return MemoryStateStore()
    return RedisStateStore(client)


class SiteGate:
    """Puts a Flask site under remote maintenance control.

    Usage::

        app = Flask(__name__)
        SiteGate(app, settings=ClientSettings.from_env())

    Registers ``POST /<namespace>/v1/update-status`` and a ``before_request``
    hook that answers 503 with the maintenance page while the site is in
    maintenance. The webhook itself stays reachable so the site can be
    switched back.
    """

    def __init__(
        self,
        app: Flask | None = None,
        store: LocalStateStore | None = None,
        settings: ClientSettings | None = None,
    ):
        self.store = store
        self.settings = settings
        self.receiver: WebhookReceiver | None = None
        self.gate: MaintenanceGate | None = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        settings = self.settings or ClientSettings.from_env()
        if self.store is None:
            self.store = default_state_store()
        if not settings.api_key:
            logger.warning("[WEBHOOK] No API key configured; every status update will be rejected")

        path = webhook_path(settings.namespace)
        self.receiver = WebhookReceiver(self.store, settings.api_key, settings.allowed_ips)
        self.gate = MaintenanceGate(
            self.store,
            template=settings.maintenance_template,
            retry_after=settings.retry_after,
            site_name=settings.site_name,
            exempt_paths={path},
        )

        bp = Blueprint("sitegate", __name__, template_folder="templates")
        bp.add_url_rule(path, "update_status", self._update_status, methods=["POST"])
        bp.register_error_handler(SiteGateError, _error_response)
        app.register_blueprint(bp)
        app.before_request(self.gate.check)
        app.extensions["sitegate"] = self

    def _update_status(self):
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            payload = {}
        ack = self.receiver.handle_update(payload, request.remote_addr)
        return jsonify(ack.to_dict()), 200


def _error_response(error: SiteGateError):
    return jsonify(error.to_dict()), error.http_status
