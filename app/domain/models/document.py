# app/domain/models/document.py
import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PlainSerializer, computed_field
from pydantic.alias_generators import to_camel

from app.domain.models.kind_policy import DocumentKind

# Los montos viajan como número en el JSON pero se operan como Decimal
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class Currency(str, Enum):
    PEN = "PEN"
    USD = "USD"


class CamelModel(BaseModel):
    """
    Base común: acepta y devuelve camelCase (como el frontend) sin dejar
    de aceptar los nombres en snake_case.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Entradas ---

class LineItemInput(CamelModel):
    code: Optional[str] = None
    name: Optional[str] = None
    description: str = ""
    quantity: int
    days: Optional[int] = None
    unit_price: Decimal


class DocumentCreate(CamelModel):
    number: Optional[str] = None
    date: Optional[dt.date] = None
    client_id: str
    gestor_id: Optional[str] = None
    currency: Currency = Currency.PEN
    status: Optional[str] = None
    description: Optional[str] = None
    comments: Optional[str] = None
    payment_terms: Optional[str] = None
    attendant_name: Optional[str] = None
    notes: Optional[str] = None
    tax_rate: Optional[Decimal] = None

    # Totales manuales (documentos históricos o importados)
    subtotal: Optional[Decimal] = None
    tax: Optional[Decimal] = Field(default=None, validation_alias=AliasChoices("tax", "igv"))
    total: Optional[Decimal] = None

    # Solo cotizaciones
    validity_days: Optional[int] = None
    equipment_release_date: Optional[dt.date] = None
    consider_days: Optional[int] = None
    return_date: Optional[dt.date] = None
    monitoring_location: Optional[str] = None
    credit_line: Optional[Decimal] = None

    items: List[LineItemInput] = Field(default_factory=list)


class DocumentUpdate(CamelModel):
    """Edición parcial: solo se aplican los campos enviados."""
    date: Optional[dt.date] = None
    client_id: Optional[str] = None
    gestor_id: Optional[str] = None
    currency: Optional[Currency] = None
    status: Optional[str] = None
    description: Optional[str] = None
    comments: Optional[str] = None
    payment_terms: Optional[str] = None
    attendant_name: Optional[str] = None
    notes: Optional[str] = None
    tax_rate: Optional[Decimal] = None

    subtotal: Optional[Decimal] = None
    tax: Optional[Decimal] = Field(default=None, validation_alias=AliasChoices("tax", "igv"))
    total: Optional[Decimal] = None

    validity_days: Optional[int] = None
    equipment_release_date: Optional[dt.date] = None
    consider_days: Optional[int] = None
    return_date: Optional[dt.date] = None
    monitoring_location: Optional[str] = None
    credit_line: Optional[Decimal] = None

    # None = no tocar los ítems; una lista = reemplazo completo
    items: Optional[List[LineItemInput]] = None


class DocumentFilters(CamelModel):
    client_id: Optional[str] = None
    status: Optional[str] = None
    date_from: Optional[dt.date] = None
    date_to: Optional[dt.date] = None
    include_deleted: bool = False
    resolve_references: bool = True


# --- Salidas ---

class Totals(CamelModel):
    subtotal: Money
    tax: Money
    total: Money


class ClientSummary(CamelModel):
    id: str
    name: str
    ruc: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    active: bool = True


class StaffSummary(CamelModel):
    id: str
    name: str
    email: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    role: Optional[str] = None
    active: bool = True


class LineItem(CamelModel):
    id: str
    code: str
    name: str
    description: str = ""
    quantity: int
    days: Optional[int] = None
    unit_price: Money

    @computed_field(alias="lineTotal")
    @property
    def line_total(self) -> Money:
        return self.quantity * (self.days or 1) * self.unit_price


class Active(BaseModel):
    state: Literal["active"] = "active"


class Deleted(BaseModel):
    state: Literal["deleted"] = "deleted"
    at: dt.datetime


class Document(CamelModel):
    """Cabecera de un documento con sus ítems y las referencias ya resueltas."""
    id: str
    kind: DocumentKind
    number: str
    date: dt.date
    client_id: str
    client: Optional[ClientSummary] = None
    gestor_id: Optional[str] = None
    gestor: Optional[StaffSummary] = None
    currency: Currency
    status: str
    subtotal: Money
    tax: Money
    total: Money
    tax_rate: Optional[Money] = None
    description: Optional[str] = None
    comments: Optional[str] = None
    payment_terms: Optional[str] = None
    attendant_name: Optional[str] = None
    notes: Optional[str] = None

    validity_days: Optional[int] = None
    equipment_release_date: Optional[dt.date] = None
    consider_days: Optional[int] = None
    return_date: Optional[dt.date] = None
    monitoring_location: Optional[str] = None
    credit_line: Optional[Money] = None

    items: List[LineItem] = Field(default_factory=list)
    created_at: dt.datetime
    updated_at: dt.datetime
    deleted_at: Optional[dt.datetime] = None

    @computed_field
    @property
    def lifecycle(self) -> Union[Active, Deleted]:
        if self.deleted_at is None:
            return Active()
        return Deleted(at=self.deleted_at)


class SequenceNumber(CamelModel):
    next_number: str
    warnings: List[str] = Field(default_factory=list)
