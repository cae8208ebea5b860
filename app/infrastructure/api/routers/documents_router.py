# app/infrastructure/api/routers/documents_router.py
import logging
from datetime import date
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.application.use_cases.document_queries import DocumentQueryGateway
from app.application.use_cases.document_store import DocumentAggregateStore
from app.domain.errors import DocumentError
from app.domain.models.document import Document, DocumentCreate, DocumentFilters, DocumentUpdate, SequenceNumber
from app.domain.models.kind_policy import DocumentKind
from app.infrastructure.api.dependencies import get_document_store, get_query_gateway

router = APIRouter(prefix="/documents", tags=["Documentos"])


def _raise_http(error: DocumentError) -> NoReturn:
    if error.status_code >= 500:
        logging.error(f"{error.__class__.__name__}: {error.message}")
    raise HTTPException(
        status_code=error.status_code,
        detail={
            "error": error.__class__.__name__,
            "message": error.message,
            "retryable": error.retryable,
            **{k: v for k, v in error.context.items() if v is not None},
        },
    ) from error


@router.post("/{kind}", status_code=201, response_model=Document, summary="Crear un documento con sus ítems")
def create_document(kind: DocumentKind, payload: DocumentCreate, store: DocumentAggregateStore = Depends(get_document_store)):
    """
    Crea la cabecera y los ítems en una sola transacción. Si no se envía
    `number`, se asigna el siguiente correlativo del tipo.
    """
    try:
        return store.create(kind, payload)
    except DocumentError as e:
        _raise_http(e)


@router.get("/{kind}", response_model=List[Document], summary="Listar documentos")
def list_documents(
    kind: DocumentKind,
    client_id: Optional[str] = Query(None, alias="clientId"),
    status: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    include_deleted: bool = Query(False, alias="includeDeleted"),
    resolve_references: bool = Query(True, alias="resolveReferences"),
    gateway: DocumentQueryGateway = Depends(get_query_gateway),
):
    filters = DocumentFilters(
        client_id=client_id, status=status, date_from=date_from, date_to=date_to,
        include_deleted=include_deleted, resolve_references=resolve_references,
    )
    try:
        return gateway.list(kind, filters)
    except DocumentError as e:
        _raise_http(e)


@router.get("/{kind}/next-number", response_model=SequenceNumber, summary="Sugerir el siguiente número")
def next_number(kind: DocumentKind, store: DocumentAggregateStore = Depends(get_document_store)):
    """Solo para prellenar formularios: el número definitivo se fija al crear."""
    try:
        return store.peek_next_number(kind)
    except DocumentError as e:
        _raise_http(e)


@router.get("/{kind}/{document_id}", response_model=Document, summary="Obtener un documento")
def get_document(
    kind: DocumentKind,
    document_id: str,
    include_deleted: bool = Query(False, alias="includeDeleted"),
    store: DocumentAggregateStore = Depends(get_document_store),
):
    try:
        return store.get(document_id, kind=kind, include_deleted=include_deleted)
    except DocumentError as e:
        _raise_http(e)


@router.put("/{kind}/{document_id}", response_model=Document, summary="Editar un documento")
def update_document(
    kind: DocumentKind,
    document_id: str,
    changes: DocumentUpdate,
    store: DocumentAggregateStore = Depends(get_document_store),
):
    """Si se envía `items`, reemplaza todos los ítems y recalcula los totales."""
    try:
        return store.update(document_id, changes, kind=kind)
    except DocumentError as e:
        _raise_http(e)


@router.delete("/{kind}/{document_id}", summary="Eliminar (lógicamente) un documento")
def delete_document(kind: DocumentKind, document_id: str, store: DocumentAggregateStore = Depends(get_document_store)):
    try:
        store.soft_delete(document_id, kind=kind)
    except DocumentError as e:
        _raise_http(e)
    return {"success": True}
