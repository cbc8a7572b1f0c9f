"""
Fleet controller: registry of client sites and the operator API that switches them.

Routes:
  GET    /api/sites?page=N          one page of sites, newest first
  POST   /api/sites                 register a site (its secret is generated here)
  GET    /api/sites/<id>            one site
  PATCH  /api/sites/<id>            edit name, URL or maintenance copy
  DELETE /api/sites/<id>            deregister
  POST   /api/sites/<id>/status     push {"status": "active"|"maintenance"} to the site
  GET    /api/loopback-ip           the caller address as this server sees it

Run locally:
    REDIS_ENABLED=false python -m sitegate.controller.app
"""

import os
from typing import Any, Mapping

from flask import Flask, jsonify, request

from .. import configure_logging
from ..config import ControllerSettings, RedisSettings
from ..errors import SiteGateError, ValidationError
from ..sanitize import clean_text, clean_url
from ..status import MaintenancePresentation, SiteStatus
from ..storage import connect_redis
from .dispatcher import WebhookDispatcher
from .registry import ClientRegistry, MemoryRegistry, RedisRegistry
from .service import StatusController

PRESENTATION_FIELDS = ("maintenance_title", "maintenance_logo_url", "maintenance_text")


def default_registry(redis_settings: RedisSettings | None = None) -> ClientRegistry:
    client = connect_redis(redis_settings or RedisSettings.from_env())
    if client is None:
        return MemoryRegistry()
    return RedisRegistry(client)


def _json_body() -> dict[str, Any]:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def create_app(
    settings: ControllerSettings | None = None,
    registry: ClientRegistry | None = None,
    dispatcher: WebhookDispatcher | None = None,
    config: Mapping[str, Any] | None = None,
) -> Flask:
    settings = settings or ControllerSettings.from_env()
    controller = StatusController(
        registry or default_registry(),
        dispatcher or WebhookDispatcher(timeout=settings.webhook_timeout, namespace=settings.namespace),
    )

    app = Flask(__name__)
    app.secret_key = settings.secret_key or os.urandom(24)
    if config:
        app.config.update(config)
    app.extensions["sitegate_controller"] = controller

    @app.errorhandler(SiteGateError)
    def handle_error(error: SiteGateError):
        return jsonify(error.to_dict()), error.http_status

    @app.get("/api/sites")
    def list_sites():
        page = request.args.get("page", 1, type=int)
        items, total = controller.list_sites(page, settings.page_size)
        return {
            "items": [record.to_dict() for record in items],
            "total": total,
            "page": page,
            "page_size": settings.page_size,
        }

    @app.post("/api/sites")
    def add_site():
        body = _json_body()
        site_name = clean_text(body.get("site_name"))
        site_url = clean_url(body.get("site_url"))
        if not site_name or not site_url:
            raise ValidationError("A site name and an http(s) site URL are required.")
        record = controller.register_site(site_name, site_url, MaintenancePresentation.from_payload(body))
        return {"success": True, "message": "New client site added successfully.", "site": record.to_dict()}, 201

    @app.get("/api/sites/<int:record_id>")
    def get_site(record_id: int):
        return controller.registry.get(record_id).to_dict()

    @app.patch("/api/sites/<int:record_id>")
    def update_site(record_id: int):
        body = _json_body()
        details = {}
        if "site_name" in body:
            details["site_name"] = clean_text(body["site_name"])
            if not details["site_name"]:
                raise ValidationError("The site name cannot be empty.")
        if "site_url" in body:
            details["site_url"] = clean_url(body["site_url"])
            if not details["site_url"]:
                raise ValidationError("The site URL must be an absolute http(s) URL.")
        if any(key in body for key in PRESENTATION_FIELDS):
            current = controller.registry.get(record_id).presentation.to_payload()
            current.update({key: body[key] for key in PRESENTATION_FIELDS if key in body})
            details["presentation"] = MaintenancePresentation.from_payload(current)
        record = controller.update_site(record_id, **details)
        return {"success": True, "message": "Site details updated successfully.", "site": record.to_dict()}

    @app.delete("/api/sites/<int:record_id>")
    def delete_site(record_id: int):
        controller.delete_site(record_id)
        return {"success": True, "message": "Client site deleted successfully."}

    @app.post("/api/sites/<int:record_id>/status")
    def set_status(record_id: int):
        status = SiteStatus.parse(_json_body().get("status"))
        outcome = controller.set_status(record_id, status)
        payload = {"success": outcome.ok, "message": outcome.message, "site": outcome.record.to_dict()}
        if outcome.ok:
            return payload
        payload["code"] = outcome.error.code
        if getattr(outcome.error, "status_code", None) is not None:
            payload["status_code"] = outcome.error.status_code
        return payload, outcome.error.http_status

    @app.get("/api/loopback-ip")
    def loopback_ip():
        return {"loopback_ip": request.remote_addr or "Unavailable"}

    @app.route("/health")
    @app.route("/healthz")
    def health():
        return {"status": "healthy"}

    return app


if __name__ == "__main__":
    configure_logging()
    create_app().run(host="0.0.0.0", port=8000, debug=False)
