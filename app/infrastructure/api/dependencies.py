# app/infrastructure/api/dependencies.py
from functools import partial
from typing import Callable

from fastapi import Depends

import config
from app.application.use_cases.document_queries import DocumentQueryGateway
from app.application.use_cases.document_store import DocumentAggregateStore
from app.domain.ports.unit_of_work import UnitOfWork
from app.infrastructure.persistence.database import SessionLocal
from app.infrastructure.persistence.unit_of_work import SQLAlchemyUnitOfWork


def get_uow_factory() -> Callable[..., UnitOfWork]:
    # La fábrica acepta write=True para las operaciones que modifican datos
    return partial(SQLAlchemyUnitOfWork, SessionLocal)


def get_document_store(uow_factory: Callable[..., UnitOfWork] = Depends(get_uow_factory)) -> DocumentAggregateStore:
    return DocumentAggregateStore(uow_factory, default_tax_rate=config.IGV_RATE)


def get_query_gateway(uow_factory: Callable[..., UnitOfWork] = Depends(get_uow_factory)) -> DocumentQueryGateway:
    return DocumentQueryGateway(uow_factory)
