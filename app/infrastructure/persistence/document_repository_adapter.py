# app/infrastructure/persistence/document_repository_adapter.py
import zlib
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from app.domain.errors import NumberAlreadyTaken
from app.domain.models.document import Document, DocumentFilters, LineItemInput
from app.domain.models.kind_policy import DocumentKind
from app.domain.ports.document_repository import DocumentRepository
from .directory_adapter import client_summary, staff_summary
from .models import Documento, ItemDocumento

NUMBER_CONSTRAINT = "uq_documentos_kind_number"


def _columns(row) -> Dict[str, Any]:
    return {attr.key: getattr(row, attr.key) for attr in inspect(row).mapper.column_attrs}


def _plain(value):
    return value.value if isinstance(value, Enum) else value


def _is_number_violation(error: IntegrityError) -> bool:
    # PostgreSQL reporta el nombre de la restricción; SQLite, las columnas
    message = str(error.orig)
    return NUMBER_CONSTRAINT in message or "documentos.kind, documentos.number" in message


class SQLAlchemyDocumentRepository(DocumentRepository):
    def __init__(self, db: Session):
        self.db = db

    def _header_query(self, document_id: str, for_update: bool = False):
        query = self.db.query(Documento)\
            .options(
                selectinload(Documento.items),
                joinedload(Documento.client),
                joinedload(Documento.gestor),
            )\
            .filter(Documento.id == document_id)
        if for_update:
            # Solo la fila de la cabecera; SQLite ignora la cláusula
            query = query.with_for_update(of=Documento)
        return query

    def _find(self, document_id: str, for_update: bool = False) -> Optional[Documento]:
        return self._header_query(document_id, for_update).first()

    def _to_domain(self, header: Documento, resolve_references: bool = True) -> Document:
        data = _columns(header)
        # Los ítems de un documento activo nunca están eliminados; en la vista
        # de auditoría se muestran los que cayeron junto con la cabecera.
        data["items"] = [
            _columns(item) for item in header.items
            if header.deleted_at is not None or item.deleted_at is None
        ]
        if resolve_references:
            data["client"] = client_summary(header.client) if header.client else None
            data["gestor"] = staff_summary(header.gestor) if header.gestor else None
        return Document.model_validate(data)

    def _build_item(self, position: int, item: LineItemInput) -> ItemDocumento:
        return ItemDocumento(
            position=position,
            code=item.code,
            name=item.name or item.description,
            description=item.description,
            quantity=item.quantity,
            days=item.days,
            unit_price=item.unit_price,
        )

    def lock_kind(self, kind: DocumentKind) -> None:
        # En SQLite la transacción ya abrió con BEGIN IMMEDIATE
        if self.db.get_bind().dialect.name == "postgresql":
            lock_key = zlib.crc32(f"documentos:{kind.value}".encode("utf-8"))
            self.db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": lock_key})

    def list_numbers(self, kind: DocumentKind) -> List[str]:
        rows = self.db.query(Documento.number).filter(Documento.kind == kind.value).all()
        return [number for (number,) in rows]

    def add(self, kind: DocumentKind, number: str, header: Dict[str, Any], items: List[LineItemInput]) -> str:
        documento = Documento(kind=kind.value, number=number, **{k: _plain(v) for k, v in header.items()})
        documento.items = [self._build_item(position, item) for position, item in enumerate(items, start=1)]
        self.db.add(documento)
        try:
            self.db.flush()
        except IntegrityError as e:
            if _is_number_violation(e):
                raise NumberAlreadyTaken(f"El número {number} ya está registrado", number=number) from e
            raise
        return documento.id

    def update_header(self, document_id: str, changes: Dict[str, Any]) -> None:
        documento = self.db.query(Documento).filter(Documento.id == document_id).one()
        for field, value in changes.items():
            setattr(documento, field, _plain(value))
        documento.updated_at = datetime.now(timezone.utc)
        self.db.flush()
        # Si cambió el cliente o el gestor, la relación cargada quedó desactualizada
        self.db.expire(documento, ["client", "gestor"])

    def replace_items(self, document_id: str, items: List[LineItemInput]) -> None:
        documento = self.db.query(Documento).filter(Documento.id == document_id).one()
        # delete-orphan elimina los ítems anteriores al reasignar la colección
        documento.items = []
        self.db.flush()
        documento.items = [self._build_item(position, item) for position, item in enumerate(items, start=1)]
        documento.updated_at = datetime.now(timezone.utc)
        self.db.flush()

    def mark_deleted(self, document_id: str, deleted_at: datetime) -> None:
        documento = self.db.query(Documento).filter(Documento.id == document_id).one()
        documento.deleted_at = deleted_at
        documento.updated_at = deleted_at
        for item in documento.items:
            if item.deleted_at is None:
                item.deleted_at = deleted_at
                item.updated_at = deleted_at
        self.db.flush()

    def get(self, document_id: str, for_update: bool = False) -> Optional[Document]:
        documento = self._find(document_id, for_update)
        return self._to_domain(documento) if documento else None

    def list(self, kind: DocumentKind, filters: DocumentFilters) -> List[Document]:
        query = self.db.query(Documento).filter(Documento.kind == kind.value)
        if not filters.include_deleted:
            query = query.filter(Documento.deleted_at.is_(None))
        if filters.client_id:
            query = query.filter(Documento.client_id == filters.client_id)
        if filters.status:
            query = query.filter(Documento.status == filters.status)
        if filters.date_from:
            query = query.filter(Documento.date >= filters.date_from)
        if filters.date_to:
            query = query.filter(Documento.date <= filters.date_to)

        options = [selectinload(Documento.items)]
        if filters.resolve_references:
            options += [joinedload(Documento.client), joinedload(Documento.gestor)]
        query = query.options(*options).order_by(Documento.created_at.desc(), Documento.id.desc())
        return [self._to_domain(documento, filters.resolve_references) for documento in query.all()]
