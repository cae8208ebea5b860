# app/domain/ports/document_repository.py
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.domain.models.document import Document, DocumentFilters, LineItemInput
from app.domain.models.kind_policy import DocumentKind


class DocumentRepository(ABC):
    """
    Contrato con el almacenamiento de documentos (cabecera + ítems).
    Todas las operaciones corren dentro de la transacción de la unidad de trabajo.
    """

    @abstractmethod
    def lock_kind(self, kind: DocumentKind) -> None:
        """
        Toma el bloqueo del tipo de documento hasta el fin de la transacción,
        para que dos creaciones concurrentes no calculen el mismo correlativo.
        """
        pass

    @abstractmethod
    def list_numbers(self, kind: DocumentKind) -> List[str]:
        """Todos los números del tipo, incluidos los documentos eliminados."""
        pass

    @abstractmethod
    def add(self, kind: DocumentKind, number: str, header: Dict[str, Any], items: List[LineItemInput]) -> str:
        """
        Inserta la cabecera y sus ítems. Retorna el ID del documento creado.
        Lanza NumberAlreadyTaken si el número ya existe para el tipo.
        """
        pass

    @abstractmethod
    def update_header(self, document_id: str, changes: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def replace_items(self, document_id: str, items: List[LineItemInput]) -> None:
        """Borra todos los ítems actuales y crea los nuevos."""
        pass

    @abstractmethod
    def mark_deleted(self, document_id: str, deleted_at: datetime) -> None:
        """Marca como eliminados la cabecera y todos sus ítems."""
        pass

    @abstractmethod
    def get(self, document_id: str, for_update: bool = False) -> Optional[Document]:
        """
        Busca un documento por ID, esté activo o eliminado. Con for_update la
        cabecera queda bloqueada hasta el fin de la transacción.
        """
        pass

    @abstractmethod
    def list(self, kind: DocumentKind, filters: DocumentFilters) -> List[Document]:
        pass
