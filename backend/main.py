"""
NFT Registry — FastAPI Application

cw721-style token registry: mint policy (supply cap, per-wallet cap,
mint price), transfers and sends, per-token approvals, operator grants,
two-step contract ownership and treasury withdrawals.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from domain.errors import DomainError
from domain.responses import error_response
from routes import execute, health, query

# ── Logging ─────────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: create DB tables, instantiate the collection from .env if configured."""
    # Ensure data/ directory exists for SQLite
    os.makedirs("data", exist_ok=True)

    settings.validate_production_settings()

    from database import async_session, init_db
    await init_db()

    from services import registry_service
    async with async_session() as db:
        bootstrapped = await registry_service.bootstrap_from_settings(db)
        info = await registry_service.may_load_collection_info(db)

    if bootstrapped is not None:
        logger.info(f"Collection '{settings.collection_symbol}' instantiated from settings")
    elif info is None:
        logger.warning("Registry not instantiated yet; POST /instantiate or set COLLECTION_* in .env")
    else:
        logger.info(f"Serving collection {info.name} ({info.symbol}), {info.token_count} tokens")
    logger.info(f"Address format: {settings.address_format}")

    yield  # app runs here

    logger.info("Shutting down")


# ── App Factory ─────────────────────────────────────────────────────

app = FastAPI(
    title="NFT Registry API",
    description="cw721-style NFT registry with mint policy, approvals and treasury",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routes ──────────────────────────────────────────────────────────

app.include_router(health.router)
app.include_router(execute.router)
app.include_router(query.router)


# ── Exception Handlers ──────────────────────────────────────────────
# Every failure leaves as {"success": false, "error": {code, message, details}}.


def _error_response(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_response(code, message, details))


def error_code(exc: DomainError) -> str:
    """NotEnoughFundsError -> "notenoughfunds"."""
    return exc.__class__.__name__.replace("Error", "").lower()


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """
    Catch-all for unhandled exceptions.

    Never return raw exception details to clients.
    The full traceback is logged server-side for debugging.
    """
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return _error_response(500, "internal_server_error", "Internal server error")


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request, exc: RequestValidationError):
    """Malformed message bodies and query parameters (422)."""
    return _error_response(
        422, "request_validation", "Request body or parameters are invalid",
        details={"errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """
    Registry errors keep their kind as the error code; plain
    HTTPExceptions (auth, misconfiguration) become "http_error".
    """
    if isinstance(exc, DomainError):
        return _error_response(exc.status_code, error_code(exc), exc.message, exc.details)

    detail = exc.detail
    message = detail if isinstance(detail, str) else "Request failed"
    return _error_response(
        exc.status_code, "http_error", message,
        details=detail if not isinstance(detail, str) else None,
    )


# ── Entrypoint ──────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")
