import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session
from fertistock.exception_handler import setup_exception_handlers
from fertistock.models.database import create_db_and_tables, engine
from fertistock.routers import (
    auth,
    branches,
    categories,
    inventory,
    products,
    stock_entries,
    suppliers,
    users,
)
from fertistock.routers.websocket import router as websocket_router
from fertistock.services.default_branch import resolve_default_branch
from fertistock.utils.settings import CORS_ORIGINS, LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# Crear las tablas y resolver la sucursal por defecto al iniciar
@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    with Session(engine) as session:
        app.state.default_branch_id = resolve_default_branch(session)
    logger.info("Sucursal por defecto: %s", app.state.default_branch_id)
    yield


app = FastAPI(title="fertistock", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(categories.router)
app.include_router(products.router)
app.include_router(branches.router)
app.include_router(suppliers.router)
app.include_router(stock_entries.router)
app.include_router(inventory.router)
app.include_router(websocket_router)


@app.get("/")
def read_root():
    return {"message": "API funcionando correctamente"}
