"""
Libro de stock: registro, corrección y retiro de entradas de stock.

Cada operación se ejecuta en una única transacción que modifica la entrada y
ajusta la fila `Stock` del par (producto, sucursal), de modo que:

    Stock.quantity == suma de StockEntry.quantity de las entradas activas

Los ajustes de `Stock` se expresan como sentencias atómicas en la base de datos
(UPDATE ... SET quantity = quantity + n / INSERT ... ON CONFLICT DO UPDATE) y
nunca como lectura + escritura desde Python. Ningún otro módulo escribe en
`Stock`.
"""

import logging
from contextlib import contextmanager
from typing import Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, func, select

from fertistock.models.branch import Branch
from fertistock.models.product import Product
from fertistock.models.stock import Stock
from fertistock.models.stock_entry import StockEntry
from fertistock.models.supplier import Supplier
from fertistock.schemas.stock_entry import (
    RecordEntryInput,
    RetireEntryInput,
    ReviseEntryInput,
)
from fertistock.services.errors import (
    InvalidOperationError,
    LedgerError,
    NegativeStockError,
    NotFoundError,
    ReferentialIntegrityError,
    StorageError,
)
from fertistock.utils.dates import as_utc, utc_now

logger = logging.getLogger(__name__)

ACTIVE = "active"
INACTIVE = "inactive"

# Campos de la entrada que no admiten null en una corrección
_NON_NULLABLE_FIELDS = {
    "product_id",
    "supplier_id",
    "branch_id",
    "quantity",
    "entry_price",
    "entry_date",
    "status",
}


@contextmanager
def _ledger_transaction(db: Session, operation: str):
    """Confirma la transacción al salir o la deshace completa si algo falla."""
    try:
        yield
        db.commit()
    except LedgerError as exc:
        db.rollback()
        logger.warning("%s rechazada: %s", operation, exc.message)
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("%s: error en la base de datos", operation)
        raise StorageError(f"Error en la base de datos durante {operation}.") from exc


def _missing_references(
    db: Session,
    product_id: Optional[int] = None,
    branch_id: Optional[int] = None,
    supplier_id: Optional[int] = None,
) -> Dict[str, List[int]]:
    """Devuelve los identificadores enviados que no existen, agrupados por campo."""
    missing = {}
    for field, model, value in (
        ("product_id", Product, product_id),
        ("branch_id", Branch, branch_id),
        ("supplier_id", Supplier, supplier_id),
    ):
        if value is not None and db.get(model, value) is None:
            missing[field] = [value]
    return missing


def _upsert_statement(db: Session, values: dict):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        insert = postgresql.insert
    elif dialect == "sqlite":
        insert = sqlite.insert
    else:
        return None

    stmt = insert(Stock).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=["product_id", "branch_id"],
        set_={
            "quantity": Stock.quantity + stmt.excluded.quantity,
            "updated_at": stmt.excluded.updated_at,
        },
    )


def _increment_stock(
    db: Session, product: Product, branch_id: int, quantity: int, memo: str
) -> None:
    """Suma `quantity` al stock del par, creando la fila si aún no existe."""
    now = utc_now()
    values = {
        "product_id": product.id,
        "branch_id": branch_id,
        "quantity": quantity,
        "unit": product.unit or "",
        "memo": memo or "",
        "created_at": now,
        "updated_at": now,
    }
    stmt = _upsert_statement(db, values)
    if stmt is not None:
        db.execute(stmt)
        return

    # Otros motores: incremento atómico y, si no había fila, inserción
    result = db.execute(
        update(Stock)
        .where(Stock.product_id == product.id, Stock.branch_id == branch_id)
        .values(quantity=Stock.quantity + quantity, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.add(Stock(**values))
        db.flush()


def _decrement_stock(
    db: Session, product_id: int, branch_id: int, quantity: int
) -> None:
    """Resta `quantity` del stock del par sin dejarlo nunca por debajo de cero."""
    result = db.execute(
        update(Stock)
        .where(
            Stock.product_id == product_id,
            Stock.branch_id == branch_id,
            Stock.quantity >= quantity,
        )
        .values(quantity=Stock.quantity - quantity, updated_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        return

    # Sin fila se considera stock 0
    available = db.exec(
        select(Stock.quantity).where(
            Stock.product_id == product_id, Stock.branch_id == branch_id
        )
    ).first()
    raise NegativeStockError(product_id, branch_id, -quantity, available or 0)


def _shift_stock(
    db: Session, product_id: int, branch_id: int, diff: int, memo: str
) -> None:
    if diff > 0:
        _increment_stock(db, db.get(Product, product_id), branch_id, diff, memo)
    elif diff < 0:
        _decrement_stock(db, product_id, branch_id, -diff)


def _get_active_entry(db: Session, entry_id: int) -> StockEntry:
    # Bloquear la entrada para serializar correcciones y retiros concurrentes
    entry = db.exec(
        select(StockEntry).where(StockEntry.id == entry_id).with_for_update()
    ).first()
    if not entry:
        raise NotFoundError(f"Entrada de stock {entry_id} no encontrada")
    if entry.status != ACTIVE:
        raise InvalidOperationError(
            f"La entrada de stock {entry_id} está inactiva y no admite cambios"
        )
    return entry


def _sparse_changes(data: ReviseEntryInput) -> dict:
    changes = data.model_dump(exclude_unset=True)
    return {
        field: value
        for field, value in changes.items()
        if value is not None or field not in _NON_NULLABLE_FIELDS
    }


def record_entry(
    db: Session, data: RecordEntryInput, default_branch_id: int
) -> StockEntry:
    """Registra una entrada de stock y suma su cantidad al stock del par
    (producto, sucursal). Si no se indica sucursal se usa `default_branch_id`.

    Lanza `NotFoundError` si el producto no existe y `ReferentialIntegrityError`
    si la sucursal o el proveedor no existen. En ambos casos no se escribe nada.
    """
    branch_id = data.branch_id or default_branch_id

    with _ledger_transaction(db, "registro de entrada"):
        product = db.get(Product, data.product_id)
        if not product:
            raise NotFoundError(f"Producto {data.product_id} no encontrado")

        missing = _missing_references(
            db, branch_id=branch_id, supplier_id=data.supplier_id
        )
        if missing:
            raise ReferentialIntegrityError(missing)

        now = utc_now()
        entry = StockEntry(
            product_id=product.id,
            supplier_id=data.supplier_id,
            branch_id=branch_id,
            quantity=data.quantity,
            entry_price=data.entry_price,
            entry_date=as_utc(data.entry_date) or now,
            invoice=data.invoice,
            memo=data.memo,
            status=ACTIVE,
            created_at=now,
            updated_at=now,
        )
        db.add(entry)
        db.flush()

        _increment_stock(db, product, branch_id, data.quantity, data.memo or "")

    db.refresh(entry)
    logger.info(
        "Entrada %s registrada: producto %s, sucursal %s, +%s",
        entry.id,
        entry.product_id,
        entry.branch_id,
        entry.quantity,
    )
    return entry


def revise_entry(db: Session, entry_id: int, data: ReviseEntryInput) -> StockEntry:
    """Corrige una entrada activa con los campos enviados y ajusta el stock.

    - Cantidad cambiada: se aplica la diferencia al par (producto, sucursal).
    - Producto o sucursal cambiados: la cantidad anterior sale del par antiguo
      y la nueva entra en el par nuevo.
    - `status="inactive"`: la entrada se retira como en `retire_entry`.
    """
    changes = _sparse_changes(data)
    if "entry_date" in changes:
        changes["entry_date"] = as_utc(changes["entry_date"])

    with _ledger_transaction(db, f"corrección de la entrada {entry_id}"):
        entry = _get_active_entry(db, entry_id)

        missing = _missing_references(
            db,
            product_id=changes.get("product_id"),
            branch_id=changes.get("branch_id"),
            supplier_id=changes.get("supplier_id"),
        )
        if missing:
            raise ReferentialIntegrityError(missing)

        old_product_id, old_branch_id = entry.product_id, entry.branch_id
        old_quantity = entry.quantity
        retiring = changes.pop("status", ACTIVE) == INACTIVE

        for field, value in changes.items():
            setattr(entry, field, value)
        entry.updated_at = utc_now()

        if retiring:
            _decrement_stock(db, old_product_id, old_branch_id, old_quantity)
            entry.status = INACTIVE
        elif (entry.product_id, entry.branch_id) != (old_product_id, old_branch_id):
            _decrement_stock(db, old_product_id, old_branch_id, old_quantity)
            _increment_stock(
                db,
                db.get(Product, entry.product_id),
                entry.branch_id,
                entry.quantity,
                entry.memo or "",
            )
        else:
            _shift_stock(
                db,
                entry.product_id,
                entry.branch_id,
                entry.quantity - old_quantity,
                entry.memo or "",
            )

        db.add(entry)

    db.refresh(entry)
    logger.info(
        "Entrada %s corregida: cantidad %s -> %s, estado %s",
        entry.id,
        old_quantity,
        entry.quantity,
        entry.status,
    )
    return entry


def retire_entry(db: Session, data: RetireEntryInput) -> int:
    """Retira (borrado lógico) una entrada activa y descuenta su cantidad del stock.

    Si el stock quedara negativo se lanza `NegativeStockError` y la entrada
    sigue activa.
    """
    with _ledger_transaction(db, f"retiro de la entrada {data.entry_id}"):
        entry = _get_active_entry(db, data.entry_id)
        _decrement_stock(db, entry.product_id, entry.branch_id, entry.quantity)
        entry.status = INACTIVE
        entry.updated_at = utc_now()
        db.add(entry)

    logger.info("Entrada %s retirada", data.entry_id)
    return data.entry_id


def describe_entry(db: Session, entry: StockEntry) -> dict:
    """Entrada con los resúmenes de producto, proveedor y sucursal para mostrar."""
    product = db.get(Product, entry.product_id)
    supplier = db.get(Supplier, entry.supplier_id)
    branch = db.get(Branch, entry.branch_id)
    return {
        **entry.model_dump(),
        "product": product.model_dump() if product else None,
        "supplier": supplier.model_dump() if supplier else None,
        "branch": branch.model_dump() if branch else None,
    }


def audit_stock(db: Session) -> dict:
    """Compara cada fila de stock con la suma de sus entradas activas."""
    entries_totals = (
        select(
            StockEntry.product_id,
            StockEntry.branch_id,
            func.sum(StockEntry.quantity).label("total"),
        )
        .where(StockEntry.status == ACTIVE)
        .group_by(StockEntry.product_id, StockEntry.branch_id)
    )
    expected = {
        (row.product_id, row.branch_id): int(row.total or 0)
        for row in db.exec(entries_totals).all()
    }
    actual = {
        (row.product_id, row.branch_id): row.quantity
        for row in db.exec(
            select(Stock.product_id, Stock.branch_id, Stock.quantity)
        ).all()
    }

    discrepancies = []
    for product_id, branch_id in sorted(set(expected) | set(actual)):
        stock_quantity = actual.get((product_id, branch_id), 0)
        entries_quantity = expected.get((product_id, branch_id), 0)
        if stock_quantity != entries_quantity:
            discrepancies.append(
                {
                    "product_id": product_id,
                    "branch_id": branch_id,
                    "stock_quantity": stock_quantity,
                    "entries_quantity": entries_quantity,
                    "difference": stock_quantity - entries_quantity,
                }
            )

    if discrepancies:
        logger.warning("Auditoría de stock: %s descuadres", len(discrepancies))

    return {
        "checked": len(set(expected) | set(actual)),
        "consistent": not discrepancies,
        "discrepancies": discrepancies,
    }
