# app/domain/ports/directory.py
from abc import ABC, abstractmethod
from typing import Optional

from app.domain.models.document import ClientSummary, StaffSummary


class ClientDirectory(ABC):
    """Puerto de solo lectura para el directorio de clientes."""
    @abstractmethod
    def find(self, client_id: str) -> Optional[ClientSummary]:
        pass


class StaffDirectory(ABC):
    """Puerto de solo lectura para el directorio de usuarios (gestores)."""
    @abstractmethod
    def find(self, user_id: str) -> Optional[StaffSummary]:
        pass
