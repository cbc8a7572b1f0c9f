"""Error taxonomy.

Every error carries a machine-readable ``code`` and the HTTP status it maps
to, so the Flask layers can render it without knowing the concrete type.
"""

from typing import Any

MAX_ECHOED_BODY = 300


class SiteGateError(Exception):
    code = "sitegate_error"
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "data": {"status": self.http_status}}


# ---------------------------------------------------------------------------
# Receiver side
# ---------------------------------------------------------------------------


class AuthError(SiteGateError):
    http_status = 403


class ForbiddenOrigin(AuthError):
    code = "invalid_ip"

    def __init__(self, remote_addr: str | None):
        super().__init__("Forbidden: IP address not allowed.")
        self.remote_addr = remote_addr


class InvalidSecret(AuthError):
    code = "invalid_key"

    def __init__(self):
        super().__init__("Invalid activation key.")


class ValidationError(SiteGateError):
    code = "invalid_request"
    http_status = 400


class UnrecognizedStatus(ValidationError):
    code = "invalid_status"

    def __init__(self, status: Any):
        super().__init__("Invalid status provided.")
        self.status = status


# ---------------------------------------------------------------------------
# Dispatch side
# ---------------------------------------------------------------------------


class DispatchError(SiteGateError):
    """The controller could not get a confirmed status change from a client."""

    code = "dispatch_failed"
    http_status = 502

    @property
    def reason(self) -> str:
        return self.message


class NetworkError(DispatchError):
    code = "connection_error"

    def __init__(self, detail: str):
        super().__init__(f"Connection Error: {detail}")
        self.detail = detail


class RemoteRejected(DispatchError):
    code = "remote_rejected"

    def __init__(self, status_code: int, body: str):
        body = (body or "")[:MAX_ECHOED_BODY]
        super().__init__(
            f"Client site responded with HTTP code: {status_code}. Response Body: {body}"
        )
        self.status_code = status_code
        self.body = body


# ---------------------------------------------------------------------------
# Registry side
# ---------------------------------------------------------------------------


class RecordNotFound(SiteGateError):
    code = "not_found"
    http_status = 404

    def __init__(self, record_id: int):
        super().__init__("Could not find the specified site.")
        self.record_id = record_id


class StaleRecord(SiteGateError):
    code = "stale_record"
    http_status = 409

    def __init__(self, record_id: int, expected: int, actual: int):
        super().__init__(
            f"Site {record_id} changed while the request was in flight "
            f"(expected version {expected}, found {actual})."
        )
        self.record_id = record_id
        self.expected = expected
        self.actual = actual


# ---------------------------------------------------------------------------
# Local state
# ---------------------------------------------------------------------------


class StateUnavailable(SiteGateError):
    code = "state_unavailable"
    http_status = 503

    def __init__(self, detail: str):
        super().__init__(f"Site status storage unavailable: {detail}")
        self.detail = detail
