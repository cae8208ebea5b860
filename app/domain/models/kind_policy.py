# app/domain/models/kind_policy.py
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class DocumentKind(str, Enum):
    QUOTATION = "quotation"
    PURCHASE_ORDER = "purchase-order"
    SERVICE_ORDER = "service-order"


class QuotationStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


class PurchaseOrderStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    RECEIVED = "RECEIVED"


class ServiceOrderStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class KindPolicy:
    """
    Reglas que distinguen a cada tipo de documento. Los tres comparten
    cabecera, ítems, totales y numeración; solo cambia lo que está aquí.
    """
    kind: DocumentKind
    label: str
    prefix: str
    statuses: Tuple[str, ...]
    requires_items: bool
    required_fields: Tuple[str, ...]
    # Documentos de alquiler: el total de cada ítem se multiplica por los días
    rental: bool
    # Campos de cabecera que solo tienen sentido en este tipo
    specific_fields: Tuple[str, ...] = ()

    @property
    def default_status(self) -> str:
        return self.statuses[0]

    @property
    def seed_number(self) -> str:
        return f"{self.prefix}-001"


QUOTATION_FIELDS = (
    "validity_days",
    "equipment_release_date",
    "consider_days",
    "return_date",
    "monitoring_location",
    "credit_line",
)

POLICIES: Dict[DocumentKind, KindPolicy] = {
    DocumentKind.QUOTATION: KindPolicy(
        kind=DocumentKind.QUOTATION,
        label="Cotización",
        prefix="COT",
        statuses=tuple(s.value for s in QuotationStatus),
        requires_items=True,
        required_fields=("validity_days",),
        rental=True,
        specific_fields=QUOTATION_FIELDS,
    ),
    DocumentKind.PURCHASE_ORDER: KindPolicy(
        kind=DocumentKind.PURCHASE_ORDER,
        label="Orden de compra",
        prefix="OC",
        statuses=tuple(s.value for s in PurchaseOrderStatus),
        requires_items=True,
        required_fields=("gestor_id",),
        rental=False,
    ),
    DocumentKind.SERVICE_ORDER: KindPolicy(
        kind=DocumentKind.SERVICE_ORDER,
        label="Orden de servicio",
        prefix="OS",
        statuses=tuple(s.value for s in ServiceOrderStatus),
        requires_items=False,
        required_fields=("gestor_id",),
        rental=True,
    ),
}


def policy_for(kind) -> KindPolicy:
    return POLICIES[DocumentKind(kind)]
