# app/application/use_cases/document_store.py
import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from app.domain.errors import NotFound, NumberAlreadyTaken, SequenceConflict, ValidationError
from app.domain.models.document import Document, DocumentCreate, DocumentUpdate, LineItemInput, SequenceNumber
from app.domain.models.kind_policy import QUOTATION_FIELDS, DocumentKind, KindPolicy, policy_for
from app.domain.ports.unit_of_work import UnitOfWork
from app.domain.services import monetary_calculator
from app.domain.services.sequence_generator import SequenceGenerator, canonical_number
from app.domain.services.soft_delete_ledger import SoftDeleteLedger

TOTAL_FIELDS = ("subtotal", "tax", "total")
# Campos que no se pueden dejar en null una vez creado el documento
NON_NULLABLE_FIELDS = ("date", "client_id", "currency", "status")


class DocumentAggregateStore:
    """
    Crea, edita, consulta y elimina un documento (cabecera + ítems) como una
    sola unidad. Toda validación ocurre antes de escribir: si algo falla,
    la transacción se descarta completa.
    """
    def __init__(self, uow_factory: Callable[..., UnitOfWork], default_tax_rate: Optional[Decimal] = None):
        self.uow_factory = uow_factory
        self.default_tax_rate = default_tax_rate

    # --- Validaciones ---

    def _normalize_items(self, policy: KindPolicy, items: List[LineItemInput]) -> List[LineItemInput]:
        normalized = []
        for position, item in enumerate(items, start=1):
            days = item.days if policy.rental else None
            if policy.rental and days is None:
                days = 1
            candidate = item.model_copy(update={"days": days})
            monetary_calculator.validate_line_item(candidate, position)
            normalized.append(candidate.model_copy(update={
                "code": item.code or f"ITEM-{uuid.uuid4().hex[:6].upper()}",
                "name": item.name or item.description,
                "unit_price": monetary_calculator.round_unit_price(item.unit_price),
            }))
        if policy.requires_items and not normalized:
            raise ValidationError(f"{policy.label}: se requiere al menos un ítem", field="items")
        return normalized

    def _check_status(self, policy: KindPolicy, status: str) -> None:
        if status not in policy.statuses:
            raise ValidationError(
                f"Estado '{status}' no válido para {policy.label}. Permitidos: {', '.join(policy.statuses)}",
                field="status",
            )

    def _check_number(self, policy: KindPolicy, number: Optional[str]) -> Optional[str]:
        if not number or not number.strip():
            return None
        canonical = canonical_number(number, policy.prefix)
        if canonical is None:
            raise ValidationError(
                f"{policy.label}: el número '{number}' no tiene el formato {policy.prefix}-NNN",
                field="number",
            )
        return canonical

    def _check_kind_fields(self, policy: KindPolicy, fields: Dict[str, Any]) -> None:
        for field in policy.required_fields:
            if fields.get(field) in (None, ""):
                raise ValidationError(f"{policy.label}: el campo '{field}' es obligatorio", field=field)
        for field in QUOTATION_FIELDS:
            if field not in policy.specific_fields and fields.get(field) is not None:
                raise ValidationError(f"{policy.label}: el campo '{field}' no aplica", field=field)
        for field in ("validity_days", "consider_days"):
            value = fields.get(field)
            if value is not None and value < 1:
                raise ValidationError(f"El campo '{field}' debe ser mayor o igual a 1", field=field)
        if fields.get("credit_line") is not None and fields["credit_line"] < 0:
            raise ValidationError("La línea de crédito no puede ser negativa", field="credit_line")

    def _check_references(self, uow: UnitOfWork, client_id: Optional[str], gestor_id: Optional[str]) -> None:
        if client_id is not None:
            client = uow.clients.find(client_id)
            if client is None or not client.active:
                raise NotFound(f"Cliente no encontrado: {client_id}", client_id=client_id)
        if gestor_id is not None:
            gestor = uow.staff.find(gestor_id)
            if gestor is None or not gestor.active:
                raise NotFound(f"Gestor no encontrado: {gestor_id}", gestor_id=gestor_id)

    def _effective_tax_rate(self, tax_rate) -> Optional[Decimal]:
        rate = tax_rate if tax_rate is not None else self.default_tax_rate
        return monetary_calculator.validate_tax_rate(rate)

    def _resolve_totals(self, override: Dict[str, Any], items, tax_rate) -> Dict[str, Decimal]:
        if any(override.get(field) is not None for field in TOTAL_FIELDS):
            totals = monetary_calculator.check_override(
                override.get("subtotal"), override.get("tax"), override.get("total")
            )
        else:
            totals = monetary_calculator.compute_totals(items, tax_rate)
        return totals.model_dump()

    def _load_visible(
        self, uow: UnitOfWork, document_id: str, kind: Optional[DocumentKind], for_update: bool = False
    ) -> Document:
        document = uow.documents.get(document_id, for_update=for_update)
        if document is None or not SoftDeleteLedger.is_visible(document) or (kind and document.kind != kind):
            raise NotFound(f"Documento no encontrado: {document_id}", document_id=document_id)
        return document

    # --- Operaciones ---

    def create(self, kind: DocumentKind, payload: DocumentCreate) -> Document:
        policy = policy_for(kind)
        fields = payload.model_dump(exclude={"items", "number", *TOTAL_FIELDS})
        fields["date"] = fields["date"] or date.today()
        fields["status"] = fields["status"] or policy.default_status
        if policy.kind == DocumentKind.QUOTATION and fields["consider_days"] is None:
            fields["consider_days"] = 1
        self._check_status(policy, fields["status"])
        self._check_kind_fields(policy, fields)

        number = self._check_number(policy, payload.number)

        items = self._normalize_items(policy, payload.items)
        fields["tax_rate"] = self._effective_tax_rate(fields["tax_rate"])
        fields.update(self._resolve_totals(payload.model_dump(include=set(TOTAL_FIELDS)), items, fields["tax_rate"]))

        # Un solo reintento si otro proceso tomó el mismo número
        for attempt in (1, 2):
            try:
                return self._insert(policy, number, fields, items)
            except NumberAlreadyTaken:
                if number:
                    raise
                if attempt == 2:
                    logging.error(f"[{policy.prefix}] Conflicto de correlativo tras reintentar.")
                    raise SequenceConflict(
                        f"No se pudo asignar un número para {policy.label}; reintente la operación",
                        kind=policy.kind.value,
                    )
                logging.warning(f"[{policy.prefix}] El número calculado ya fue tomado. Reintentando...")

    def _insert(self, policy: KindPolicy, number: Optional[str], fields: Dict[str, Any], items) -> Document:
        with self.uow_factory(write=True) as uow:
            self._check_references(uow, fields["client_id"], fields["gestor_id"])
            uow.documents.lock_kind(policy.kind)
            if not number:
                sequence = SequenceGenerator(uow.documents).next(policy.kind)
                number = sequence.next_number
                for warning in sequence.warnings:
                    logging.warning(f"[{number}] {warning}")
            document_id = uow.documents.add(policy.kind, number, fields, items)
            document = uow.documents.get(document_id)
            uow.commit()
        logging.info(f"[{document.number}] {policy.label} creada con {len(document.items)} ítem(s). Total: {document.currency.value} {document.total}")
        return document

    def update(self, document_id: str, changes: DocumentUpdate, kind: Optional[DocumentKind] = None) -> Document:
        with self.uow_factory(write=True) as uow:
            # Bloquea la cabecera: una eliminación concurrente espera o ya se ve aquí
            current = self._load_visible(uow, document_id, kind, for_update=True)
            policy = policy_for(current.kind)

            fields = changes.model_dump(exclude_unset=True, exclude={"items", *TOTAL_FIELDS})
            for field in NON_NULLABLE_FIELDS:
                if field in fields and fields[field] is None:
                    raise ValidationError(f"El campo '{field}' no puede quedar vacío", field=field)
            if "status" in fields:
                self._check_status(policy, fields["status"])
            merged = {**current.model_dump(), **fields}
            self._check_kind_fields(policy, merged)
            self._check_references(uow, fields.get("client_id"), fields.get("gestor_id"))

            items = self._normalize_items(policy, changes.items) if changes.items is not None else None
            override = changes.model_dump(include=set(TOTAL_FIELDS), exclude_unset=True)
            if "tax_rate" in fields:
                fields["tax_rate"] = self._effective_tax_rate(fields["tax_rate"])
            tax_rate = fields.get("tax_rate", current.tax_rate)

            if override or items is not None or "tax_rate" in fields:
                fields.update(self._resolve_totals(
                    override, items if items is not None else current.items, tax_rate
                ))

            if fields:
                uow.documents.update_header(document_id, fields)
            if items is not None:
                uow.documents.replace_items(document_id, items)
            document = uow.documents.get(document_id)
            uow.commit()
        logging.info(f"[{document.number}] Actualizado. Ítems reemplazados: {'sí' if items is not None else 'no'}.")
        return document

    def soft_delete(self, document_id: str, kind: Optional[DocumentKind] = None) -> None:
        with self.uow_factory(write=True) as uow:
            document = uow.documents.get(document_id, for_update=True)
            if document is None or (kind and document.kind != kind):
                raise NotFound(f"Documento no encontrado: {document_id}", document_id=document_id)
            if SoftDeleteLedger(uow.documents).mark_deleted(document_id):
                uow.commit()

    def get(self, document_id: str, kind: Optional[DocumentKind] = None, include_deleted: bool = False) -> Document:
        with self.uow_factory() as uow:
            if include_deleted:
                document = uow.documents.get(document_id)
                if document is None or (kind and document.kind != kind):
                    raise NotFound(f"Documento no encontrado: {document_id}", document_id=document_id)
                return document
            return self._load_visible(uow, document_id, kind)

    def peek_next_number(self, kind: DocumentKind) -> SequenceNumber:
        """
        Número que tendría el próximo documento. Solo sirve para prellenar el
        formulario: el número definitivo se fija al crear.
        """
        with self.uow_factory() as uow:
            return SequenceGenerator(uow.documents).next(kind)
