# ==============================================================================
# UTILIDADES - Conversión de valores de formularios y dinero
# ==============================================================================

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

CENT = Decimal("0.01")

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
URL_RE = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)


def to_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    """Convierte a int; devuelve default si no es posible."""
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """Convierte a Decimal sin redondear; devuelve default si no es posible."""
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        return default
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default
    if not result.is_finite():
        return default
    return result


def money(value: Any) -> Decimal:
    """Redondea a 2 decimales (mitad hacia arriba); 0.00 si no cabe en la precisión decimal."""
    amount = to_decimal(value, Decimal("0")) or Decimal("0")
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return Decimal("0.00")


def format_currency(value: Any) -> str:
    return f"${money(value):.2f}"


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value or ""))


def is_valid_url(value: str) -> bool:
    return bool(URL_RE.match(value or ""))
