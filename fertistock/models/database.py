from sqlmodel import SQLModel, create_engine, Session
from fertistock.utils.settings import DATABASE_URL, SQL_ECHO

# Conectar a la base de datos configurada
engine = create_engine(DATABASE_URL, echo=SQL_ECHO, pool_pre_ping=True)


def get_db():
    """Obtiene una sesión de la base de datos."""
    with Session(engine) as session:
        yield session


def create_db_and_tables(bind=engine):
    # Importar los modelos para que queden registrados en los metadatos
    from fertistock.models import (  # noqa: F401
        branch,
        category,
        product,
        stock,
        stock_entry,
        supplier,
        user,
    )

    SQLModel.metadata.create_all(bind)
