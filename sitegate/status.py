"""Status vocabulary shared by the controller and the client sites.

Both sides agree on three things:
  1. The two operating modes a site can be in (``active``/``maintenance``)
  2. The optional copy shown on the maintenance page
  3. The webhook path the controller calls on every client
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Mapping

from .errors import UnrecognizedStatus

DEFAULT_NAMESPACE = "client-controller"

DEFAULT_TITLE = "Under Maintenance"
DEFAULT_TEXT = (
    "Our website is currently undergoing scheduled maintenance. "
    "We should be back online shortly. Thank you for your patience."
)

# Wire names used in the webhook body
TITLE_FIELD = "maintenance_title"
LOGO_URL_FIELD = "maintenance_logo_url"
TEXT_FIELD = "maintenance_text"


class SiteStatus(str, Enum):
    ACTIVE = "active"
    MAINTENANCE = "maintenance"

    @classmethod
    def parse(cls, value: Any) -> "SiteStatus":
        """Return the member named exactly by ``value``.

        Raises:
            UnrecognizedStatus: for anything else, including other casings.
        """
        for member in cls:
            if value == member.value:
                return member
        raise UnrecognizedStatus(value)


@dataclass(frozen=True)
class MaintenancePresentation:
    """Copy shown on a client's maintenance page. Empty strings mean "use the default"."""

    title: str = ""
    logo_url: str = ""
    text: str = ""

    def is_empty(self) -> bool:
        return not (self.title or self.logo_url or self.text)

    def to_payload(self) -> dict[str, str]:
        return {
            TITLE_FIELD: self.title,
            LOGO_URL_FIELD: self.logo_url,
            TEXT_FIELD: self.text,
        }

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "MaintenancePresentation":
        return cls(
            title=_as_str(payload.get(TITLE_FIELD)),
            logo_url=_as_str(payload.get(LOGO_URL_FIELD)),
            text=_as_str(payload.get(TEXT_FIELD)),
        )


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def webhook_path(namespace: str = DEFAULT_NAMESPACE) -> str:
    """Path of the status webhook on a client site, e.g. ``/client-controller/v1/update-status``."""
    return f"/{namespace.strip('/')}/v1/update-status"
