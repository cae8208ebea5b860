"""Tests de los listados: visibilidad, filtros, orden y referencias resueltas."""
from datetime import date

import pytest

from app.domain.errors import ValidationError
from app.domain.models.document import DocumentFilters
from app.domain.models.kind_policy import DocumentKind

OS = DocumentKind.SERVICE_ORDER


def numbers(documents):
    return [document.number for document in documents]


def test_deleted_documents_only_with_include_deleted(store, gateway, make_payload):
    first = store.create(OS, make_payload())
    store.create(OS, make_payload())

    store.soft_delete(first.id)

    assert numbers(gateway.list(OS)) == ["OS-002"]
    assert numbers(gateway.list(OS, DocumentFilters(include_deleted=True))) == ["OS-002", "OS-001"]


def test_active_listing_never_contains_tombstoned_items(store, gateway, make_payload):
    first = store.create(OS, make_payload())
    store.create(OS, make_payload(items=[{"description": "Anemómetro", "quantity": 1, "unitPrice": "30"}]))
    deleted_item_ids = {item.id for item in first.items}

    store.soft_delete(first.id)

    listed_item_ids = {item.id for document in gateway.list(OS) for item in document.items}
    assert listed_item_ids
    assert not listed_item_ids & deleted_item_ids

    audit = gateway.list(OS, DocumentFilters(include_deleted=True))
    tombstoned = next(document for document in audit if document.id == first.id)
    assert {item.id for item in tombstoned.items} == deleted_item_ids
    assert tombstoned.lifecycle.state == "deleted"


def test_newest_first(store, gateway, make_payload):
    for _ in range(3):
        store.create(OS, make_payload())

    assert numbers(gateway.list(OS)) == ["OS-003", "OS-002", "OS-001"]


def test_only_requested_kind(store, gateway, make_payload):
    store.create(OS, make_payload())
    store.create(DocumentKind.PURCHASE_ORDER, make_payload())

    assert numbers(gateway.list(DocumentKind.PURCHASE_ORDER)) == ["OC-001"]


def test_references_are_resolved(store, gateway, make_payload):
    store.create(OS, make_payload())

    [document] = gateway.list(OS)

    assert document.client.ruc == "20512345678"
    assert document.gestor.name == "Rosa Quispe"


def test_references_can_be_left_as_ids(store, gateway, make_payload, client_id, gestor_id):
    store.create(OS, make_payload())

    [document] = gateway.list(OS, DocumentFilters(resolve_references=False))

    assert document.client is None and document.gestor is None
    assert document.client_id == client_id
    assert document.gestor_id == gestor_id


def test_filter_by_client(store, gateway, make_payload, other_client_id):
    store.create(OS, make_payload())
    store.create(OS, make_payload(clientId=other_client_id))

    listed = gateway.list(OS, DocumentFilters(client_id=other_client_id))

    assert numbers(listed) == ["OS-002"]


def test_filter_by_status(store, gateway, make_payload):
    store.create(OS, make_payload())
    store.create(OS, make_payload(status="COMPLETED"))

    assert numbers(gateway.list(OS, DocumentFilters(status="COMPLETED"))) == ["OS-002"]


def test_filter_by_date_range(store, gateway, make_payload):
    store.create(OS, make_payload(date="2024-01-10"))
    store.create(OS, make_payload(date="2024-02-15"))
    store.create(OS, make_payload(date="2024-03-20"))

    listed = gateway.list(OS, DocumentFilters(date_from=date(2024, 2, 1), date_to=date(2024, 3, 20)))

    assert numbers(listed) == ["OS-003", "OS-002"]


def test_unknown_status_filter(gateway):
    with pytest.raises(ValidationError):
        gateway.list(OS, DocumentFilters(status="ACCEPTED"))


def test_inverted_date_range(gateway):
    with pytest.raises(ValidationError):
        gateway.list(OS, DocumentFilters(date_from=date(2024, 3, 1), date_to=date(2024, 1, 1)))
