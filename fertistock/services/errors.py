"""
Errores de negocio del libro de stock.

Los routers no los capturan: los traducen a respuestas HTTP los manejadores
registrados en `fertistock.exception_handler`.
"""

from typing import Dict, List


class LedgerError(Exception):
    """Error base de las operaciones sobre entradas de stock."""

    kind = "ledger_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(LedgerError):
    kind = "not_found"


class ReferentialIntegrityError(LedgerError):
    """Uno o varios identificadores enviados no existen."""

    kind = "referential_integrity"

    def __init__(self, missing: Dict[str, List[int]]):
        self.missing = missing
        details = ", ".join(
            f"{field}: {ids}" for field, ids in sorted(missing.items())
        )
        super().__init__(f"Referencias inválidas ({details})")


class InvalidOperationError(LedgerError):
    kind = "invalid_operation"


class NegativeStockError(InvalidOperationError):
    kind = "negative_stock"

    def __init__(self, product_id: int, branch_id: int, requested: int, available: int):
        self.product_id = product_id
        self.branch_id = branch_id
        self.requested = requested
        self.available = available
        super().__init__(
            "No se puede reducir el stock por debajo de cero "
            f"(producto {product_id}, sucursal {branch_id}: "
            f"disponible {available}, ajuste {requested})"
        )


class StorageError(LedgerError):
    """Fallo de la base de datos; la operación completa puede reintentarse."""

    kind = "storage"
