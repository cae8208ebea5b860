# app/domain/services/soft_delete_ledger.py
import logging
from datetime import datetime, timezone
from typing import Callable

from app.domain.errors import NotFound
from app.domain.models.document import Document
from app.domain.ports.document_repository import DocumentRepository


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SoftDeleteLedger:
    """
    Ciclo de vida Activo -> Eliminado{fecha}. Un documento eliminado se
    conserva para auditoría, no se puede restaurar y arrastra a sus ítems.
    """
    def __init__(self, documents: DocumentRepository, clock: Callable[[], datetime] = utc_now):
        self.documents = documents
        self.clock = clock

    @staticmethod
    def is_visible(document: Document) -> bool:
        return document.deleted_at is None

    def mark_deleted(self, document_id: str) -> bool:
        """
        Elimina lógicamente la cabecera y sus ítems. Retorna False si ya
        estaba eliminado (no es un error).
        """
        document = self.documents.get(document_id, for_update=True)
        if document is None:
            raise NotFound(f"Documento no encontrado: {document_id}", document_id=document_id)
        if not self.is_visible(document):
            logging.info(f"[{document.number}] Ya estaba eliminado desde {document.deleted_at}. Sin cambios.")
            return False

        self.documents.mark_deleted(document_id, self.clock())
        logging.info(f"[{document.number}] Marcado como eliminado junto con {len(document.items)} ítem(s).")
        return True
