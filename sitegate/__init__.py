"""SiteGate: remote maintenance-mode control for a fleet of sites.

The controller keeps a registry of client sites and pushes status changes to
each one over an authenticated webhook. Every client site runs the receiver
for that webhook and a gate that serves a 503 maintenance page while the site
is in maintenance.
"""

import logging
import sys

from .status import MaintenancePresentation, SiteStatus, webhook_path

__version__ = "1.2.0"

__all__ = ["MaintenancePresentation", "SiteStatus", "configure_logging", "webhook_path"]


def configure_logging(level: int = logging.INFO) -> None:
    """Send log lines to stderr, where the pods' log collectors pick them up."""
    root = logging.getLogger()
    if root.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(level)
