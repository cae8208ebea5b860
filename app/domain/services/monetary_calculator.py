# app/domain/services/monetary_calculator.py
"""
Cálculo de subtotal, impuesto y total de un documento.

Funciones puras: el redondeo a 2 decimales (half-up) se aplica una sola vez
al final, nunca por ítem, para que el total se pueda reproducir exactamente
a partir de los ítems guardados.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional

from app.domain.errors import InvalidLineItem, InvalidTotals, ValidationError
from app.domain.models.document import Totals

TWO_PLACES = Decimal("0.01")
TOTALS_TOLERANCE = Decimal("0.01")
# Precisión con la que se guarda el precio unitario
UNIT_PRICE_PLACES = Decimal("0.0001")


def round_money(value) -> Decimal:
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _as_decimal(value, field: str, position: Optional[int] = None) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        amount = None
    if amount is None or not amount.is_finite():
        raise InvalidLineItem(f"Valor no numérico en '{field}'", field=field, item=position)
    return amount


def round_unit_price(value) -> Decimal:
    return _as_decimal(value, "unitPrice").quantize(UNIT_PRICE_PLACES, rounding=ROUND_HALF_UP)


def validate_line_item(item, position: Optional[int] = None) -> None:
    """Rechaza cantidades o días menores a 1 y precios negativos."""
    quantity = item.quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidLineItem(
            f"La cantidad debe ser un entero mayor o igual a 1 (ítem {position})",
            field="quantity", item=position,
        )
    days = getattr(item, "days", None)
    if days is not None and (isinstance(days, bool) or not isinstance(days, int) or days < 1):
        raise InvalidLineItem(
            f"Los días deben ser un entero mayor o igual a 1 (ítem {position})",
            field="days", item=position,
        )
    if _as_decimal(item.unit_price, "unitPrice", position) < 0:
        raise InvalidLineItem(
            f"El precio unitario no puede ser negativo (ítem {position})",
            field="unitPrice", item=position,
        )


def line_total(quantity: int, days: Optional[int], unit_price) -> Decimal:
    """quantity × days × unitPrice, sin redondear."""
    return quantity * (days or 1) * _as_decimal(unit_price, "unitPrice")


def validate_tax_rate(tax_rate) -> Optional[Decimal]:
    if tax_rate is None:
        return None
    rate = _as_decimal(tax_rate, "taxRate")
    if rate < 0 or rate > 1:
        raise ValidationError("La tasa de impuesto debe estar entre 0 y 1", field="taxRate")
    return rate


def compute_totals(items: Iterable, tax_rate=None) -> Totals:
    gross = Decimal("0")
    for position, item in enumerate(items, start=1):
        validate_line_item(item, position)
        gross += line_total(item.quantity, getattr(item, "days", None), item.unit_price)

    rate = validate_tax_rate(tax_rate)
    subtotal = round_money(gross)
    tax = round_money(gross * rate) if rate is not None else Decimal("0.00")
    return Totals(subtotal=subtotal, tax=tax, total=subtotal + tax)


def check_override(subtotal, tax, total) -> Totals:
    """
    Valida totales ingresados manualmente. Se confía en los montos tal cual,
    pero total debe ser subtotal + impuesto dentro de la tolerancia.
    """
    if subtotal is None or tax is None or total is None:
        raise ValidationError(
            "Para fijar los totales manualmente se requieren subtotal, tax y total",
            field="totals",
        )
    values = {
        "subtotal": _as_decimal(subtotal, "subtotal"),
        "tax": _as_decimal(tax, "tax"),
        "total": _as_decimal(total, "total"),
    }
    for field, amount in values.items():
        if amount < 0:
            raise ValidationError(f"El campo '{field}' no puede ser negativo", field=field)

    difference = abs(values["total"] - (values["subtotal"] + values["tax"]))
    if difference > TOTALS_TOLERANCE:
        raise InvalidTotals(
            f"El total {values['total']} no coincide con subtotal + impuesto "
            f"({values['subtotal']} + {values['tax']})",
            difference=str(difference),
        )
    return Totals(
        subtotal=round_money(values["subtotal"]),
        tax=round_money(values["tax"]),
        total=round_money(values["total"]),
    )
