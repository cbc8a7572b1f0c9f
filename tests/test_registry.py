"""
Registry tests, run against both the in-memory and the Redis-backed registry.
"""

from __future__ import annotations

import re

import pytest

from sitegate.controller.registry import MemoryRegistry, RedisRegistry
from sitegate.errors import RecordNotFound, StaleRecord, ValidationError
from sitegate.status import MaintenancePresentation, SiteStatus


@pytest.fixture(params=["memory", "redis"])
def any_registry(request, redis_client):
    if request.param == "memory":
        return MemoryRegistry()
    return RedisRegistry(redis_client)


def test_create_generates_hex_secret(any_registry) -> None:
    record = any_registry.create("Shop", "https://shop.test")

    assert re.fullmatch(r"[0-9a-f]{32}", record.secret)
    assert record.known_status is SiteStatus.ACTIVE
    assert record.version == 1
    assert any_registry.get(record.id) == record


def test_secrets_are_unique(any_registry) -> None:
    secrets = {any_registry.create(f"s{n}", f"https://s{n}.test").secret for n in range(20)}
    assert len(secrets) == 20


def test_update_details_never_touches_secret_or_status(any_registry) -> None:
    record = any_registry.create("Shop", "https://shop.test")

    updated = any_registry.update_details(
        record.id,
        site_name="<b>Shop</b> 2",
        site_url="https://shop2.test",
        presentation=MaintenancePresentation(title="Later", logo_url="data:x", text="<p>Hi</p>"),
    )

    assert updated.secret == record.secret
    assert updated.known_status is SiteStatus.ACTIVE
    assert updated.site_name == "Shop 2"
    assert updated.site_url == "https://shop2.test"
    assert updated.presentation == MaintenancePresentation(title="Later", logo_url="", text="<p>Hi</p>")
    assert updated.version == record.version + 1
    assert any_registry.get(record.id) == updated


def test_partial_update_keeps_other_fields(any_registry) -> None:
    record = any_registry.create(
        "Shop", "https://shop.test", MaintenancePresentation(title="Later")
    )
    updated = any_registry.update_details(record.id, site_name="Renamed")
    assert updated.site_url == "https://shop.test"
    assert updated.presentation.title == "Later"


def test_update_details_refuses_to_blank_name_or_url(any_registry) -> None:
    record = any_registry.create("Shop", "https://shop.test")

    with pytest.raises(ValidationError):
        any_registry.update_details(record.id, site_url="ftp://shop.test")
    with pytest.raises(ValidationError):
        any_registry.update_details(record.id, site_name=None)

    assert any_registry.get(record.id) == record


def test_commit_status_bumps_version(any_registry) -> None:
    record = any_registry.create("Shop", "https://shop.test")

    committed = any_registry.commit_status(record.id, SiteStatus.MAINTENANCE, record.version)

    assert committed.known_status is SiteStatus.MAINTENANCE
    assert committed.version == record.version + 1
    assert any_registry.get(record.id).known_status is SiteStatus.MAINTENANCE


def test_commit_with_stale_version_writes_nothing(any_registry) -> None:
    record = any_registry.create("Shop", "https://shop.test")
    any_registry.commit_status(record.id, SiteStatus.MAINTENANCE, record.version)
    current = any_registry.get(record.id)

    with pytest.raises(StaleRecord):
        any_registry.commit_status(record.id, SiteStatus.ACTIVE, record.version)

    assert any_registry.get(record.id) == current


def test_missing_record(any_registry) -> None:
    with pytest.raises(RecordNotFound):
        any_registry.get(42)
    with pytest.raises(RecordNotFound):
        any_registry.update_details(42, site_name="x")
    with pytest.raises(RecordNotFound):
        any_registry.commit_status(42, SiteStatus.ACTIVE, 1)
    with pytest.raises(RecordNotFound):
        any_registry.delete(42)


def test_delete(any_registry) -> None:
    record = any_registry.create("Shop", "https://shop.test")
    any_registry.delete(record.id)
    with pytest.raises(RecordNotFound):
        any_registry.get(record.id)
    assert any_registry.list() == ([], 0)


def test_list_pages_newest_first(any_registry) -> None:
    for n in range(5):
        any_registry.create(f"Site {n}", f"https://s{n}.test")

    page1, total = any_registry.list(page=1, page_size=2)
    page3, _ = any_registry.list(page=3, page_size=2)
    page4, _ = any_registry.list(page=4, page_size=2)

    assert total == 5
    assert [r.site_name for r in page1] == ["Site 4", "Site 3"]
    assert [r.site_name for r in page3] == ["Site 0"]
    assert page4 == []


def test_active_presentation_follows_known_status(any_registry) -> None:
    record = any_registry.create("Shop", "https://shop.test", MaintenancePresentation(title="Later"))
    assert record.active_presentation is None

    committed = any_registry.commit_status(record.id, SiteStatus.MAINTENANCE, record.version)
    assert committed.active_presentation == MaintenancePresentation(title="Later")
