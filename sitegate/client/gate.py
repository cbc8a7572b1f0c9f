"""Per-request maintenance gate for a client site."""

import logging

from flask import Response, current_app, make_response, render_template, request, session
from jinja2 import TemplateNotFound

from ..errors import StateUnavailable
from ..sanitize import autop
from ..status import DEFAULT_TEXT, DEFAULT_TITLE
from .state import ClientLocalState, LocalStateStore

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "This site is currently under maintenance. Please check back later."

# Health probes must keep answering so the platform can see the pod is alive
PROBE_PATHS = frozenset({"/health", "/healthz", "/ready", "/readyz"})


class MaintenanceGate:
    """Decides, from committed local state only, whether a request may be served.

    ``check()`` is meant for ``before_request``: it returns ``None`` to let the
    request through, or the 503 maintenance response that replaces it.
    """

    def __init__(
        self,
        store: LocalStateStore,
        template: str = "sitegate/maintenance.html",
        retry_after: int = 300,
        site_name: str = "local",
        exempt_paths=(),
        session_user_key: str = "username",
    ):
        self.store = store
        self.template = template
        self.retry_after = retry_after
        self.site_name = site_name
        self.exempt_paths = PROBE_PATHS | frozenset(exempt_paths)
        self.session_user_key = session_user_key

    def check(self) -> Response | None:
        if request.path in self.exempt_paths or self._is_static_file():
            return None

        try:
            state = self.store.load()
        except StateUnavailable as e:
            logger.error("[GATE] %s; serving request normally", e)
            return None

        if not state.in_maintenance:
            return None

        if session.get(self.session_user_key):
            logger.info("[GATE] Logging out %s for maintenance", session[self.session_user_key])
            session.clear()

        return self.render(state)

    @staticmethod
    def _is_static_file() -> bool:
        # Only the app's own static folder, not routes that merely start with "/static"
        static_path = current_app.static_url_path
        if not static_path:
            return False
        return request.path.startswith(static_path.rstrip("/") + "/")

    def render(self, state: ClientLocalState) -> Response:
        presentation = state.presentation
        try:
            body = render_template(
                self.template,
                title=presentation.title or DEFAULT_TITLE,
                logo_url=presentation.logo_url,
                body=autop(presentation.text or DEFAULT_TEXT),
                site_name=self.site_name,
                retry_after=self.retry_after,
            )
            response = make_response(body)
            response.mimetype = "text/html"
        except TemplateNotFound:
            logger.warning("[GATE] Maintenance template %r not found, using plain text", self.template)
            response = make_response(FALLBACK_MESSAGE)
            response.mimetype = "text/plain"

        response.status_code = 503
        response.headers["Retry-After"] = str(self.retry_after)
        response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
        return response
