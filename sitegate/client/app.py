"""
Client site under remote maintenance control.

Core pattern:
  1. The controller POSTs a signed status change to /<namespace>/v1/update-status
  2. The receiver authenticates it and commits status + maintenance copy locally
  3. Every page request passes the gate, which reads the committed status only
  4. In maintenance the gate logs the visitor out and answers 503
  5. Health probes and the webhook itself are never gated

Run locally:
    SITEGATE_API_KEY=abc123 REDIS_ENABLED=false python -m sitegate.client.app
"""

import os
from typing import Any, Mapping

from flask import Flask, render_template_string

from .. import configure_logging
from ..config import ClientSettings
from ..errors import StateUnavailable
from .extension import SiteGate
from .state import LocalStateStore


def create_app(
    settings: ClientSettings | None = None,
    store: LocalStateStore | None = None,
    config: Mapping[str, Any] | None = None,
) -> Flask:
    settings = settings or ClientSettings.from_env()

    app = Flask(__name__)
    app.secret_key = settings.secret_key or os.urandom(24)
    if config:
        app.config.update(config)

    sitegate = SiteGate(app, store=store, settings=settings)

    @app.route("/")
    def index():
        """Normal site content; never reached while the site is in maintenance."""
        return render_template_string(INDEX_TEMPLATE, site_name=settings.site_name)

    @app.route("/health")
    @app.route("/healthz")
    def health():
        """Liveness probe: the process is up."""
        return {"status": "healthy", "site": settings.site_name}

    @app.route("/ready")
    @app.route("/readyz")
    def ready():
        """Readiness probe: 503 while in maintenance so the load balancer drains the site."""
        try:
            in_maintenance = sitegate.store.load().in_maintenance
        except StateUnavailable:
            return {"status": "not_ready", "reason": "state_unavailable", "site": settings.site_name}, 503
        if in_maintenance:
            return {"status": "not_ready", "reason": "maintenance_mode", "site": settings.site_name}, 503
        return {"status": "ready", "site": settings.site_name}

    return app


INDEX_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
    <title>{{ site_name }}</title>
    <style>
        body {
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
            max-width: 800px;
            margin: 50px auto;
            padding: 20px;
        }
        .status {
            display: inline-block;
            background: #48bb78;
            color: white;
            padding: 6px 12px;
            border-radius: 20px;
            font-size: 14px;
            font-weight: 600;
        }
    </style>
</head>
<body>
    <h1>Welcome to {{ site_name }}</h1>
    <span class="status">Service Available</span>
</body>
</html>
"""

if __name__ == "__main__":
    configure_logging()
    create_app().run(host="0.0.0.0", port=8080, debug=False)
