# app/services/validation.py
from decimal import Decimal, InvalidOperation
from typing import Any

from app.core import errors


def clean_text(value: Any) -> str | None:
    """Recorta y convierte cadenas vacías en None."""
    if value is None:
        return None
    return str(value).strip() or None


def require_text(value: Any, label: str, *, min_length: int = 1) -> str:
    text = clean_text(value)
    if text is None or len(text) < min_length:
        raise errors.ValidationError(f"El campo {label} es requerido (mínimo {min_length} caracteres).")
    return text


def to_decimal(value: Any, label: str) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise errors.ValidationError(f"El campo {label} debe ser numérico.")
    if not number.is_finite():
        raise errors.ValidationError(f"El campo {label} debe ser un número finito.")
    return number


def to_int(value: Any, label: str) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise errors.ValidationError(f"El campo {label} debe ser un número entero.")


def to_enum(enum_cls, value: Any, label: str):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise errors.ValidationError(f"Valor inválido para {label}: {value!r} (permitidos: {allowed}).")
