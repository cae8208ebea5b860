"""Tests de la frontera transaccional y de la traducción de errores de almacenamiento."""
import asyncio
import sqlite3
from datetime import date
from decimal import Decimal
from functools import partial

import pytest
from sqlalchemy import exc as sa_exc
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import sessionmaker

from app.application.use_cases.document_queries import DocumentQueryGateway
from app.application.use_cases.document_store import DocumentAggregateStore
from app.domain.errors import PersistenceFailure, PersistenceTimeout
from app.domain.models.document import LineItemInput
from app.domain.models.kind_policy import DocumentKind
from app.infrastructure.persistence.database import WRITE_INTENT, build_engine
from app.infrastructure.persistence.models import Documento
from app.infrastructure.persistence.unit_of_work import SQLAlchemyUnitOfWork, translate_storage_error


def header(client_id, gestor_id):
    return {
        "date": date(2024, 4, 1), "client_id": client_id, "gestor_id": gestor_id,
        "currency": "PEN", "status": "PENDING",
        "subtotal": Decimal("10.00"), "tax": Decimal("1.80"), "total": Decimal("11.80"),
    }


def test_locked_database_is_a_timeout():
    error = sa_exc.OperationalError("BEGIN IMMEDIATE", {}, sqlite3.OperationalError("database is locked"))

    assert isinstance(translate_storage_error(error), PersistenceTimeout)


def test_pool_timeout_is_a_timeout():
    assert isinstance(translate_storage_error(sa_exc.TimeoutError("QueuePool limit")), PersistenceTimeout)


def test_other_storage_errors_are_failures():
    error = sa_exc.IntegrityError("INSERT", {}, sqlite3.IntegrityError("FOREIGN KEY constraint failed"))

    translated = translate_storage_error(error)

    assert type(translated) is PersistenceFailure
    assert translated.retryable


def test_uncommitted_work_is_discarded(uow_factory, session_factory, client_id, gestor_id):
    items = [LineItemInput(code="A", name="A", quantity=1, days=1, unit_price=Decimal("10"))]

    with uow_factory() as uow:
        uow.documents.add(DocumentKind.SERVICE_ORDER, "OS-001", header(client_id, gestor_id), items)

    with session_factory() as session:
        assert session.query(Documento).count() == 0


def test_cancellation_rolls_back(uow_factory, session_factory, client_id, gestor_id):
    items = [LineItemInput(code="A", name="A", quantity=1, days=1, unit_price=Decimal("10"))]

    with pytest.raises(asyncio.CancelledError):
        with uow_factory() as uow:
            uow.documents.add(DocumentKind.SERVICE_ORDER, "OS-001", header(client_id, gestor_id), items)
            raise asyncio.CancelledError()

    with session_factory() as session:
        assert session.query(Documento).count() == 0


def test_foreign_key_violation_becomes_persistence_failure(uow_factory, gestor_id):
    with pytest.raises(PersistenceFailure):
        with uow_factory() as uow:
            uow.documents.add(DocumentKind.SERVICE_ORDER, "OS-001", header("cliente-fantasma", gestor_id), [])
            uow.commit()


def test_busy_database_times_out_without_partial_writes(engine, database_url, make_payload, session_factory):
    impatient_engine = build_engine(database_url, timeout_seconds=0.2)
    impatient = sessionmaker(autoflush=False, bind=impatient_engine)
    store = DocumentAggregateStore(partial(SQLAlchemyUnitOfWork, impatient))

    blocker = engine.connect().execution_options(**{WRITE_INTENT: True})
    blocker.begin()
    try:
        with pytest.raises(PersistenceTimeout):
            store.create(DocumentKind.SERVICE_ORDER, make_payload())
    finally:
        blocker.rollback()
        blocker.close()
        impatient_engine.dispose()

    with session_factory() as session:
        assert session.query(Documento).count() == 0


def test_readers_do_not_wait_for_a_writer(engine, database_url, store, make_payload):
    document = store.create(DocumentKind.SERVICE_ORDER, make_payload())
    impatient_engine = build_engine(database_url, timeout_seconds=0.2)
    impatient = partial(SQLAlchemyUnitOfWork, sessionmaker(autoflush=False, bind=impatient_engine))

    blocker = engine.connect().execution_options(**{WRITE_INTENT: True})
    blocker.begin()
    try:
        assert DocumentAggregateStore(impatient).get(document.id).number == "OS-001"
        assert DocumentAggregateStore(impatient).peek_next_number(DocumentKind.SERVICE_ORDER).next_number == "OS-002"
        assert [d.id for d in DocumentQueryGateway(impatient).list(DocumentKind.SERVICE_ORDER)] == [document.id]
    finally:
        blocker.rollback()
        blocker.close()
        impatient_engine.dispose()


def test_locking_read_targets_only_the_header_row(uow_factory):
    with uow_factory() as uow:
        query = uow.documents._header_query("doc-1", for_update=True)
        sql = str(query.statement.compile(dialect=postgresql.dialect()))

    assert "FOR UPDATE OF documentos" in sql


def test_plain_read_takes_no_lock(uow_factory):
    with uow_factory() as uow:
        query = uow.documents._header_query("doc-1")
        sql = str(query.statement.compile(dialect=postgresql.dialect()))

    assert "FOR UPDATE" not in sql
