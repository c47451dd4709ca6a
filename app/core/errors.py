# app/core/errors.py
"""
Taxonomía de errores del núcleo.

Cada error lleva un ``kind`` estable (para que el front lo pueda traducir) y un
mensaje legible. Los servicios los lanzan; la capa HTTP los convierte en una
respuesta ``{"error": {"kind", "message"}}`` con el status correspondiente.
"""


class DealershipError(Exception):
    kind: str = "error"
    status_code: int = 400
    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class ValidationError(DealershipError):
    kind = "validation_error"
    status_code = 422


class NotFound(DealershipError):
    kind = "not_found"
    status_code = 404


class TenantMismatch(DealershipError):
    kind = "tenant_mismatch"
    status_code = 403


class InvalidStateTransition(DealershipError):
    kind = "invalid_state_transition"
    status_code = 409


class VehicleNotAvailable(DealershipError):
    kind = "vehicle_not_available"
    status_code = 409


class Forbidden(DealershipError):
    kind = "forbidden"
    status_code = 403


class UniquenessConflict(DealershipError):
    kind = "uniqueness_conflict"
    status_code = 409


class InUse(DealershipError):
    """Borrado bloqueado por filas dependientes (restrict-on-delete)."""

    kind = "in_use"
    status_code = 409


class StorageError(DealershipError):
    kind = "storage_error"
    status_code = 503
    retryable = True
