"""Registry of client sites kept by the controller.

Each mutation bumps the record's ``version``. ``commit_status`` only writes
when the caller's version still matches, so two operators toggling the same
site cannot silently overwrite each other's confirmed result.
"""

import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from threading import Lock

import redis

from ..errors import RecordNotFound, StaleRecord, ValidationError
from ..sanitize import clean_rich_text, clean_text, clean_url
from ..status import MaintenancePresentation, SiteStatus

logger = logging.getLogger(__name__)

KEY_PREFIX = "sitegate:registry"

_UNSET = object()


def generate_secret() -> str:
    return secrets.token_hex(16)


def clean_presentation(presentation: MaintenancePresentation | None) -> MaintenancePresentation:
    if presentation is None:
        return MaintenancePresentation()
    return MaintenancePresentation(
        title=clean_text(presentation.title),
        logo_url=clean_url(presentation.logo_url),
        text=clean_rich_text(presentation.text),
    )


@dataclass(frozen=True)
class ClientRecord:
    id: int
    site_name: str
    site_url: str
    secret: str
    known_status: SiteStatus = SiteStatus.ACTIVE
    presentation: MaintenancePresentation = field(default_factory=MaintenancePresentation)
    activated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = 1

    @property
    def active_presentation(self) -> MaintenancePresentation | None:
        """The copy the site is showing, or ``None`` while it is active."""
        if self.known_status is SiteStatus.MAINTENANCE:
            return self.presentation
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "site_name": self.site_name,
            "site_url": self.site_url,
            "activation_key": self.secret,
            "status": self.known_status.value,
            "activation_date": self.activated_at.isoformat(),
            "version": self.version,
            **self.presentation.to_payload(),
        }


class ClientRegistry(ABC):
    @abstractmethod
    def create(
        self, site_name: str, site_url: str, presentation: MaintenancePresentation | None = None
    ) -> ClientRecord:
        """Add a site; its secret is generated here and never changes afterwards."""

    @abstractmethod
    def get(self, record_id: int) -> ClientRecord:
        """Raises RecordNotFound."""

    @abstractmethod
    def update_details(self, record_id: int, site_name=_UNSET, site_url=_UNSET, presentation=_UNSET) -> ClientRecord:
        """Edit name, URL or maintenance copy. Status and secret are not editable here."""

    @abstractmethod
    def commit_status(self, record_id: int, status: SiteStatus, expected_version: int) -> ClientRecord:
        """Record a status the client confirmed. Raises StaleRecord if the record moved on."""

    @abstractmethod
    def delete(self, record_id: int) -> None:
        """Raises RecordNotFound."""

    @abstractmethod
    def list(self, page: int = 1, page_size: int = 10) -> tuple[list[ClientRecord], int]:
        """One page of records, newest first, plus the total count."""


def _apply_details(record: ClientRecord, site_name, site_url, presentation) -> ClientRecord:
    changes = {}
    if site_name is not _UNSET:
        changes["site_name"] = clean_text(site_name)
        if not changes["site_name"]:
            raise ValidationError("The site name cannot be empty.")
    if site_url is not _UNSET:
        changes["site_url"] = clean_url(site_url)
        if not changes["site_url"]:
            raise ValidationError("The site URL must be an absolute http(s) URL.")
    if presentation is not _UNSET:
        changes["presentation"] = clean_presentation(presentation)
    return replace(record, version=record.version + 1, **changes)


def _page_bounds(page: int, page_size: int) -> tuple[int, int]:
    page = max(page, 1)
    page_size = max(page_size, 1)
    offset = (page - 1) * page_size
    return offset, offset + page_size


class MemoryRegistry(ClientRegistry):
    def __init__(self):
        self._lock = Lock()
        self._records: dict[int, ClientRecord] = {}
        self._next_id = 1

    def create(self, site_name, site_url, presentation=None) -> ClientRecord:
        with self._lock:
            taken = {r.secret for r in self._records.values()}
            secret = generate_secret()
            while secret in taken:
                secret = generate_secret()
            record = ClientRecord(
                id=self._next_id,
                site_name=clean_text(site_name),
                site_url=clean_url(site_url),
                secret=secret,
                presentation=clean_presentation(presentation),
            )
            self._records[record.id] = record
            self._next_id += 1
        logger.info("[REGISTRY] Added site %s (%s)", record.id, record.site_url)
        return record

    def get(self, record_id: int) -> ClientRecord:
        with self._lock:
            try:
                return self._records[record_id]
            except KeyError:
                raise RecordNotFound(record_id) from None

    def update_details(self, record_id, site_name=_UNSET, site_url=_UNSET, presentation=_UNSET) -> ClientRecord:
        with self._lock:
            if record_id not in self._records:
                raise RecordNotFound(record_id)
            record = _apply_details(self._records[record_id], site_name, site_url, presentation)
            self._records[record_id] = record
            return record

    def commit_status(self, record_id, status, expected_version) -> ClientRecord:
        with self._lock:
            if record_id not in self._records:
                raise RecordNotFound(record_id)
            current = self._records[record_id]
            if current.version != expected_version:
                raise StaleRecord(record_id, expected_version, current.version)
            record = replace(current, known_status=status, version=current.version + 1)
            self._records[record_id] = record
            return record

    def delete(self, record_id: int) -> None:
        with self._lock:
            if self._records.pop(record_id, None) is None:
                raise RecordNotFound(record_id)
        logger.info("[REGISTRY] Deleted site %s", record_id)

    def list(self, page=1, page_size=10):
        start, end = _page_bounds(page, page_size)
        with self._lock:
            records = sorted(self._records.values(), key=lambda r: r.id, reverse=True)
        return records[start:end], len(records)


class RedisRegistry(ClientRegistry):
    """Records as Redis hashes, indexed by a sorted set of ids.

    Keys:
      ``<prefix>:next_id``     counter for new ids
      ``<prefix>:ids``         sorted set, score = id
      ``<prefix>:secrets``     set of issued secrets, for uniqueness
      ``<prefix>:site:<id>``   hash with the record fields
    """

    def __init__(self, client: "redis.Redis[str]", prefix: str = KEY_PREFIX):
        self.client = client
        self.prefix = prefix

    def _site_key(self, record_id: int) -> str:
        return f"{self.prefix}:site:{record_id}"

    @staticmethod
    def _to_hash(record: ClientRecord) -> dict[str, str]:
        return {
            "id": str(record.id),
            "site_name": record.site_name,
            "site_url": record.site_url,
            "secret": record.secret,
            "status": record.known_status.value,
            "title": record.presentation.title,
            "logo_url": record.presentation.logo_url,
            "text": record.presentation.text,
            "activated_at": record.activated_at.isoformat(),
            "version": str(record.version),
        }

    @staticmethod
    def _from_hash(data: dict[str, str]) -> ClientRecord:
        return ClientRecord(
            id=int(data["id"]),
            site_name=data.get("site_name", ""),
            site_url=data.get("site_url", ""),
            secret=data["secret"],
            known_status=SiteStatus(data.get("status", SiteStatus.ACTIVE.value)),
            presentation=MaintenancePresentation(
                title=data.get("title", ""),
                logo_url=data.get("logo_url", ""),
                text=data.get("text", ""),
            ),
            activated_at=datetime.fromisoformat(data["activated_at"]),
            version=int(data.get("version", "1")),
        )

    def _issue_secret(self) -> str:
        secret = generate_secret()
        while not self.client.sadd(f"{self.prefix}:secrets", secret):
            secret = generate_secret()
        return secret

    def create(self, site_name, site_url, presentation=None) -> ClientRecord:
        record = ClientRecord(
            id=int(self.client.incr(f"{self.prefix}:next_id")),
            site_name=clean_text(site_name),
            site_url=clean_url(site_url),
            secret=self._issue_secret(),
            presentation=clean_presentation(presentation),
        )
        with self.client.pipeline(transaction=True) as pipe:
            pipe.hset(self._site_key(record.id), mapping=self._to_hash(record))
            pipe.zadd(f"{self.prefix}:ids", {str(record.id): record.id})
            pipe.execute()
        logger.info("[REGISTRY] Added site %s (%s)", record.id, record.site_url)
        return record

    def get(self, record_id: int) -> ClientRecord:
        data = self.client.hgetall(self._site_key(record_id))
        if not data:
            raise RecordNotFound(record_id)
        return self._from_hash(data)

    def _swap(self, record_id: int, mutate) -> ClientRecord:
        """Read, mutate and write one record under WATCH, retrying on concurrent writes."""
        key = self._site_key(record_id)
        with self.client.pipeline(transaction=True) as pipe:
            while True:
                try:
                    pipe.watch(key)
                    data = pipe.hgetall(key)
                    if not data:
                        raise RecordNotFound(record_id)
                    record = mutate(self._from_hash(data))
                    pipe.multi()
                    pipe.hset(key, mapping=self._to_hash(record))
                    pipe.execute()
                    return record
                except redis.WatchError:
                    continue

    def update_details(self, record_id, site_name=_UNSET, site_url=_UNSET, presentation=_UNSET) -> ClientRecord:
        return self._swap(
            record_id, lambda record: _apply_details(record, site_name, site_url, presentation)
        )

    def commit_status(self, record_id, status, expected_version) -> ClientRecord:
        def mutate(current: ClientRecord) -> ClientRecord:
            if current.version != expected_version:
                raise StaleRecord(record_id, expected_version, current.version)
            return replace(current, known_status=status, version=current.version + 1)

        return self._swap(record_id, mutate)

    def delete(self, record_id: int) -> None:
        record = self.get(record_id)
        with self.client.pipeline(transaction=True) as pipe:
            pipe.delete(self._site_key(record_id))
            pipe.zrem(f"{self.prefix}:ids", str(record_id))
            pipe.srem(f"{self.prefix}:secrets", record.secret)
            pipe.execute()
        logger.info("[REGISTRY] Deleted site %s", record_id)

    def list(self, page=1, page_size=10):
        start, end = _page_bounds(page, page_size)
        ids = self.client.zrevrange(f"{self.prefix}:ids", start, end - 1)
        total = self.client.zcard(f"{self.prefix}:ids")
        records = []
        for record_id in ids:
            data = self.client.hgetall(self._site_key(int(record_id)))
            if data:
                records.append(self._from_hash(data))
        return records, int(total)
