"""Fixtures compartidos: base SQLite temporal, directorio sembrado y servicios."""
from datetime import datetime, timezone
from decimal import Decimal
from functools import partial

import pytest
from sqlalchemy.orm import sessionmaker

from app.application.use_cases.document_queries import DocumentQueryGateway
from app.application.use_cases.document_store import DocumentAggregateStore
from app.domain.models.document import DocumentCreate
from app.infrastructure.persistence.database import Base, build_engine
from app.infrastructure.persistence.models import Cliente, Usuario
from app.infrastructure.persistence.unit_of_work import SQLAlchemyUnitOfWork

IGV = Decimal("0.18")


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'documentos_test.db'}"


@pytest.fixture
def engine(database_url):
    engine = build_engine(database_url, timeout_seconds=30)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def uow_factory(session_factory):
    return partial(SQLAlchemyUnitOfWork, session_factory)


@pytest.fixture
def store(uow_factory):
    return DocumentAggregateStore(uow_factory, default_tax_rate=IGV)


@pytest.fixture
def gateway(uow_factory):
    return DocumentQueryGateway(uow_factory)


def _insert(session_factory, row):
    with session_factory() as session:
        session.add(row)
        session.commit()
        return row.id


@pytest.fixture
def client_id(session_factory):
    return _insert(session_factory, Cliente(
        name="Minera Los Andes SAC", ruc="20512345678",
        address="Av. Javier Prado 123, Lima", email="compras@losandes.pe",
    ))


@pytest.fixture
def other_client_id(session_factory):
    return _insert(session_factory, Cliente(name="Constructora Pacífico", ruc="20498765432"))


@pytest.fixture
def inactive_client_id(session_factory):
    return _insert(session_factory, Cliente(name="Cliente Antiguo", deleted_at=datetime.now(timezone.utc)))


@pytest.fixture
def gestor_id(session_factory):
    return _insert(session_factory, Usuario(
        name="Rosa Quispe", email="rquispe@empresa.pe", position="Jefa de Operaciones", role="ADMIN",
    ))


@pytest.fixture
def make_payload(client_id, gestor_id):
    """Arma el cuerpo de una orden de servicio; los argumentos sobreescriben campos."""
    def _make(**overrides):
        data = {
            "clientId": client_id,
            "gestorId": gestor_id,
            "currency": "PEN",
            "description": "Monitoreo de calidad de aire",
            "items": [
                {"code": "EQ-01", "description": "Estación meteorológica", "quantity": 2, "days": 3, "unitPrice": "50.00"},
            ],
        }
        data.update(overrides)
        return DocumentCreate.model_validate(data)
    return _make
