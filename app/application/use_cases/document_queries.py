# app/application/use_cases/document_queries.py
from typing import Callable, List, Optional

from app.domain.errors import ValidationError
from app.domain.models.document import Document, DocumentFilters
from app.domain.models.kind_policy import DocumentKind, policy_for
from app.domain.ports.unit_of_work import UnitOfWork


class DocumentQueryGateway:
    """
    Lado de lectura: listados con filtros. Por defecto solo documentos
    activos, del más reciente al más antiguo (empates por ID).
    """
    def __init__(self, uow_factory: Callable[..., UnitOfWork]):
        self.uow_factory = uow_factory

    def list(self, kind: DocumentKind, filters: Optional[DocumentFilters] = None) -> List[Document]:
        policy = policy_for(kind)
        filters = filters or DocumentFilters()
        if filters.status is not None and filters.status not in policy.statuses:
            raise ValidationError(f"Estado '{filters.status}' no válido para {policy.label}", field="status")
        if filters.date_from and filters.date_to and filters.date_from > filters.date_to:
            raise ValidationError("dateFrom no puede ser posterior a dateTo", field="dateFrom")

        with self.uow_factory() as uow:
            return uow.documents.list(policy.kind, filters)
