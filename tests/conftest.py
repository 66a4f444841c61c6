"""
Fixtures comunes: base de datos SQLite en memoria, datos de referencia y
cliente HTTP con las dependencias de sesión y usuario sustituidas.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine, select

from fertistock.main import app
from fertistock.models.branch import Branch
from fertistock.models.category import Category
from fertistock.models.database import create_db_and_tables, get_db
from fertistock.models.product import Product
from fertistock.models.stock import Stock
from fertistock.models.supplier import Supplier
from fertistock.models.user import User
from fertistock.routers.auth import get_current_user
from fertistock.services.default_branch import resolve_default_branch


@pytest.fixture
def engine():
    """Base de datos aislada para cada test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def seed(db):
    """Categoría, dos productos, la sucursal por defecto, otra sucursal y un proveedor."""
    category = Category(name="Fertilizantes")
    db.add(category)
    db.commit()
    db.refresh(category)

    urea = Product(code="UREA-46", name="Urea 46%", unit="saco", category_id=category.id)
    npk = Product(code="NPK-151515", name="NPK 15-15-15", unit=None, category_id=category.id)
    north = Branch(code="NORTE", name="Sucursal norte")
    supplier = Supplier(name="Agroinsumos", company_name="Agroinsumos S.A.")
    db.add_all([urea, npk, north, supplier])
    db.commit()

    default_branch_id = resolve_default_branch(db)

    return SimpleNamespace(
        category_id=category.id,
        product_id=urea.id,
        other_product_id=npk.id,
        default_branch_id=default_branch_id,
        branch_id=north.id,
        supplier_id=supplier.id,
    )


@pytest.fixture
def stock_of(db):
    """Cantidad actual del stock del par, o None si no hay fila."""

    def _stock_of(product_id, branch_id):
        return db.exec(
            select(Stock.quantity).where(
                Stock.product_id == product_id, Stock.branch_id == branch_id
            )
        ).first()

    return _stock_of


@pytest.fixture
def admin_user():
    return User(id=1, name="Admin", email="admin@example.com", passwd="x", role="admin", active=True)


@pytest.fixture
def staff_user():
    return User(id=2, name="Cajero", email="staff@example.com", passwd="x", role="staff", active=True)


@pytest.fixture
def make_client(engine, seed):
    """Crea un cliente HTTP; si se indica `user`, se salta la autenticación JWT."""

    def override_get_db():
        with Session(engine) as session:
            yield session

    def _make(user=None):
        app.dependency_overrides[get_db] = override_get_db
        if user is not None:
            app.dependency_overrides[get_current_user] = lambda: user
        app.state.default_branch_id = seed.default_branch_id
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client, admin_user):
    return make_client(admin_user)


@pytest.fixture
def staff_client(make_client, staff_user):
    return make_client(staff_user)
