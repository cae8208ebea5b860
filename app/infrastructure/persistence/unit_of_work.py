# app/infrastructure/persistence/unit_of_work.py
import logging

from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import sessionmaker

from app.domain.errors import PersistenceFailure, PersistenceTimeout
from app.domain.ports.unit_of_work import UnitOfWork
from .database import WRITE_INTENT, SessionLocal
from .directory_adapter import SQLAlchemyClientDirectory, SQLAlchemyStaffDirectory
from .document_repository_adapter import SQLAlchemyDocumentRepository

# query_canceled (statement_timeout) y lock_not_available (lock_timeout)
POSTGRES_TIMEOUT_CODES = {"57014", "55P03"}


def translate_storage_error(error: sa_exc.SQLAlchemyError) -> PersistenceFailure:
    """Convierte un error de SQLAlchemy en el error de dominio que ve el llamador."""
    if isinstance(error, sa_exc.TimeoutError):
        return PersistenceTimeout("Se agotó la espera por una conexión a la base de datos")
    if isinstance(error, sa_exc.OperationalError):
        code = getattr(error.orig, "pgcode", None)
        message = str(error.orig).lower()
        if code in POSTGRES_TIMEOUT_CODES or "locked" in message or "timeout" in message:
            return PersistenceTimeout("La base de datos no respondió a tiempo", detail=str(error.orig))
    return PersistenceFailure(
        f"Error de almacenamiento: {error.__class__.__name__}",
        detail=str(getattr(error, "orig", error)),
    )


class SQLAlchemyUnitOfWork(UnitOfWork):
    """
    Una sesión y una transacción por operación. Si el bloque termina sin
    commit() o con una excepción (incluida una cancelación) se hace rollback.
    Con write=True la transacción se abre al entrar y reservando la escritura.
    """
    def __init__(self, session_factory: sessionmaker = SessionLocal, write: bool = False):
        self.session_factory = session_factory
        self.write = write
        self.session = None

    def __enter__(self) -> "SQLAlchemyUnitOfWork":
        self.session = self.session_factory()
        if self.write:
            try:
                self.session.connection(execution_options={WRITE_INTENT: True})
            except sa_exc.SQLAlchemyError as e:
                logging.error("No se pudo abrir la transacción de escritura.", exc_info=True)
                self.session.close()
                self.session = None
                raise translate_storage_error(e) from e
        self.documents = SQLAlchemyDocumentRepository(self.session)
        self.clients = SQLAlchemyClientDirectory(self.session)
        self.staff = SQLAlchemyStaffDirectory(self.session)
        return self

    def __exit__(self, exc_type, exc, tb):
        try:
            if isinstance(exc, sa_exc.SQLAlchemyError):
                logging.error("Error de base de datos. Iniciando rollback.", exc_info=(exc_type, exc, tb))
            self.rollback()
        finally:
            self.session.close()
            self.session = None

        if isinstance(exc, sa_exc.SQLAlchemyError):
            raise translate_storage_error(exc) from exc
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
