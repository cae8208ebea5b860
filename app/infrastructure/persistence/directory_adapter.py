# app/infrastructure/persistence/directory_adapter.py
from typing import Optional

from sqlalchemy.orm import Session

from app.domain.models.document import ClientSummary, StaffSummary
from app.domain.ports.directory import ClientDirectory, StaffDirectory
from .models import Cliente, Usuario


def client_summary(cliente: Cliente) -> ClientSummary:
    return ClientSummary(
        id=cliente.id, name=cliente.name, ruc=cliente.ruc,
        address=cliente.address, email=cliente.email,
        active=cliente.deleted_at is None,
    )


def staff_summary(usuario: Usuario) -> StaffSummary:
    # Nunca se expone la contraseña ni otros datos de acceso
    return StaffSummary(
        id=usuario.id, name=usuario.name, email=usuario.email,
        position=usuario.position, department=usuario.department, role=usuario.role,
        active=usuario.deleted_at is None,
    )


class SQLAlchemyClientDirectory(ClientDirectory):
    def __init__(self, db: Session):
        self.db = db

    def find(self, client_id: str) -> Optional[ClientSummary]:
        cliente = self.db.query(Cliente).filter(Cliente.id == client_id).first()
        return client_summary(cliente) if cliente else None


class SQLAlchemyStaffDirectory(StaffDirectory):
    def __init__(self, db: Session):
        self.db = db

    def find(self, user_id: str) -> Optional[StaffSummary]:
        usuario = self.db.query(Usuario).filter(Usuario.id == user_id).first()
        return staff_summary(usuario) if usuario else None
