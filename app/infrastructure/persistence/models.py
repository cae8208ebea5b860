# app/infrastructure/persistence/models.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Cliente(Base):
    __tablename__ = "clientes"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(200), nullable=False)
    ruc = Column(String(11), index=True)
    address = Column(String(300))
    email = Column(String(200))
    contact_person = Column(String(200))
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)
    deleted_at = Column(DateTime(timezone=True))


class Usuario(Base):
    __tablename__ = "usuarios"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(200), nullable=False)
    email = Column(String(200), unique=True)
    position = Column(String(100))
    department = Column(String(100))
    role = Column(String(50))
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)
    deleted_at = Column(DateTime(timezone=True))


class Documento(Base):
    """Cabecera de cotizaciones, órdenes de compra y órdenes de servicio."""
    __tablename__ = "documentos"
    __table_args__ = (
        UniqueConstraint("kind", "number", name="uq_documentos_kind_number"),
        CheckConstraint("subtotal >= 0 AND tax >= 0 AND total >= 0", name="ck_documentos_montos"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    kind = Column(String(20), nullable=False, index=True)
    number = Column(String(40), nullable=False)
    date = Column(Date, nullable=False)
    client_id = Column(String(36), ForeignKey("clientes.id"), nullable=False, index=True)
    gestor_id = Column(String(36), ForeignKey("usuarios.id"))
    currency = Column(String(3), nullable=False, default="PEN")
    status = Column(String(20), nullable=False)
    subtotal = Column(Numeric(14, 2), nullable=False, default=0)
    tax = Column(Numeric(14, 2), nullable=False, default=0)
    total = Column(Numeric(14, 2), nullable=False, default=0)
    tax_rate = Column(Numeric(6, 4))
    description = Column(Text)
    comments = Column(Text)
    payment_terms = Column(String(200))
    attendant_name = Column(String(200))
    notes = Column(Text)

    # Cotizaciones
    validity_days = Column(Integer)
    equipment_release_date = Column(Date)
    consider_days = Column(Integer)
    return_date = Column(Date)
    monitoring_location = Column(String(300))
    credit_line = Column(Numeric(14, 2))

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)
    deleted_at = Column(DateTime(timezone=True))

    client = relationship("Cliente")
    gestor = relationship("Usuario")
    items = relationship(
        "ItemDocumento",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="ItemDocumento.position",
    )


class ItemDocumento(Base):
    __tablename__ = "documento_items"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_items_quantity"),
        CheckConstraint("days IS NULL OR days >= 1", name="ck_items_days"),
        CheckConstraint("unit_price >= 0", name="ck_items_unit_price"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    document_id = Column(String(36), ForeignKey("documentos.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    code = Column(String(50), nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    quantity = Column(Integer, nullable=False)
    days = Column(Integer)
    unit_price = Column(Numeric(14, 4), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)
    deleted_at = Column(DateTime(timezone=True))

    document = relationship("Documento", back_populates="items")
