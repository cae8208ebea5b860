# app/domain/ports/unit_of_work.py
from abc import ABC, abstractmethod

from app.domain.ports.directory import ClientDirectory, StaffDirectory
from app.domain.ports.document_repository import DocumentRepository


class UnitOfWork(ABC):
    """
    Una transacción completa. Se usa como context manager: al salir sin
    commit(), o con una excepción, todo lo hecho se descarta.
    """
    documents: DocumentRepository
    clients: ClientDirectory
    staff: StaffDirectory

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        pass

    @abstractmethod
    def rollback(self) -> None:
        pass
