# app/domain/services/sequence_generator.py
import logging
import re
from typing import List, Optional

from app.domain.models.document import SequenceNumber
from app.domain.models.kind_policy import DocumentKind, policy_for
from app.domain.ports.document_repository import DocumentRepository

SEQUENCE_WIDTH = 3


def parse_sequence(number: str, prefix: str) -> Optional[int]:
    """Extrae el correlativo de '<PREFIJO>-<dígitos>'. None si no tiene ese formato."""
    match = re.fullmatch(rf"{re.escape(prefix)}-(\d+)", (number or "").strip())
    return int(match.group(1)) if match else None


def format_number(prefix: str, sequence: int, width: int = SEQUENCE_WIDTH) -> str:
    return f"{prefix}-{sequence:0{width}d}"


def canonical_number(number: str, prefix: str) -> Optional[str]:
    """
    Forma única de un número ingresado a mano: 'OS-7', ' OS-007' y 'OS-0007'
    quedan como 'OS-007'. None si no corresponde al prefijo del tipo.
    """
    sequence = parse_sequence(number, prefix)
    if sequence is None:
        return None
    return format_number(prefix, sequence)


class SequenceGenerator:
    """
    Calcula el siguiente número de un tipo de documento a partir del mayor
    existente. Los eliminados también cuentan, así un número nunca se reutiliza.
    """
    def __init__(self, documents: DocumentRepository):
        self.documents = documents

    def next(self, kind: DocumentKind) -> SequenceNumber:
        policy = policy_for(kind)
        existing = self.documents.list_numbers(policy.kind)
        if not existing:
            return SequenceNumber(next_number=policy.seed_number)

        highest = 0
        width = SEQUENCE_WIDTH
        warnings: List[str] = []
        for number in existing:
            sequence = parse_sequence(number, policy.prefix)
            if sequence is None:
                # Números heredados con otro formato cuentan como cero
                warnings.append(f"Número con formato no reconocido ignorado: {number}")
                logging.warning(f"[{policy.prefix}] Número con formato no reconocido: '{number}'. Se toma como 0.")
                continue
            if sequence >= highest:
                highest = sequence
                width = max(width, len(number.strip()) - len(policy.prefix) - 1)

        next_number = format_number(policy.prefix, highest + 1, width)
        return SequenceNumber(next_number=next_number, warnings=warnings)
