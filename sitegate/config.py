"""Deployment-time configuration, read from the environment.

Client sites and the controller are configured the same way the pods are:
plain environment variables (typically sourced from a ConfigMap or Secret).
"""

import os
import socket
from dataclasses import dataclass

from .status import DEFAULT_NAMESPACE


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


def parse_allowed_ips(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated allow-list, dropping blanks."""
    if not raw:
        return ()
    return tuple(ip.strip() for ip in raw.split(",") if ip.strip())


def _redis_port() -> int:
    # Kubernetes service links inject REDIS_PORT=tcp://10.0.0.1:6379
    raw = os.getenv("REDIS_PORT", "6379")
    if "tcp://" in raw:
        return 6379
    return int(raw)


@dataclass(frozen=True)
class RedisSettings:
    enabled: bool = True
    host: str = "redis"
    port: int = 6379
    db: int = 0
    connect_timeout: float = 2.0

    @classmethod
    def from_env(cls) -> "RedisSettings":
        return cls(
            enabled=_env_bool("REDIS_ENABLED", True),
            host=os.getenv("REDIS_HOST", "redis"),
            port=_redis_port(),
            db=_env_int("REDIS_DB", 0),
        )


@dataclass(frozen=True)
class ClientSettings:
    api_key: str = ""
    allowed_ips: tuple[str, ...] = ()
    namespace: str = DEFAULT_NAMESPACE
    maintenance_template: str = "sitegate/maintenance.html"
    retry_after: int = 300
    site_name: str = "local"
    secret_key: str = ""

    @classmethod
    def from_env(cls) -> "ClientSettings":
        return cls(
            api_key=os.getenv("SITEGATE_API_KEY", ""),
            allowed_ips=parse_allowed_ips(os.getenv("SITEGATE_ALLOWED_IPS")),
            namespace=os.getenv("SITEGATE_NAMESPACE", DEFAULT_NAMESPACE),
            maintenance_template=os.getenv(
                "SITEGATE_MAINTENANCE_TEMPLATE", "sitegate/maintenance.html"
            ),
            retry_after=_env_int("SITEGATE_RETRY_AFTER", 300),
            site_name=os.getenv("HOSTNAME", socket.gethostname() or "local"),
            secret_key=os.getenv("SECRET_KEY", ""),
        )


@dataclass(frozen=True)
class ControllerSettings:
    webhook_timeout: float = 20.0
    namespace: str = DEFAULT_NAMESPACE
    page_size: int = 10
    secret_key: str = ""

    @classmethod
    def from_env(cls) -> "ControllerSettings":
        return cls(
            webhook_timeout=_env_float("SITEGATE_WEBHOOK_TIMEOUT", 20.0),
            namespace=os.getenv("SITEGATE_NAMESPACE", DEFAULT_NAMESPACE),
            page_size=_env_int("SITEGATE_PAGE_SIZE", 10),
            secret_key=os.getenv("SECRET_KEY", ""),
        )
