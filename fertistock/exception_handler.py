import logging
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fertistock.services.errors import (
    InvalidOperationError,
    LedgerError,
    NotFoundError,
    ReferentialIntegrityError,
)

logger = logging.getLogger(__name__)


def status_for(exc: LedgerError) -> int:
    """Código HTTP correspondiente a cada error del libro de stock."""
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, (ReferentialIntegrityError, InvalidOperationError)):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(LedgerError)
    async def ledger_exception_handler(request: Request, exc: LedgerError):
        content = {"detail": exc.message, "error": exc.kind}
        if isinstance(exc, ReferentialIntegrityError):
            content["missing"] = exc.missing
        return JSONResponse(content=content, status_code=status_for(exc))

    # Cualquier excepción no controlada
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Excepción no controlada en %s %s", request.method, request.url.path)
        return JSONResponse(
            content={"detail": "Error interno del servidor.", "error": "internal"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
