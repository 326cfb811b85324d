import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from civic_market.api.v1.router import router as v1_router
from civic_market.core.config import settings
from civic_market.core.db import engine
from civic_market.core.errors import AppError
from civic_market.core.telemetry import setup_logging, setup_telemetry
from civic_market.schemas.common import ErrorResponse
from civic_market.services.storage import PUBLIC_PREFIX, LocalMediaStore

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    LocalMediaStore(settings.media_dir, settings.public_base_url)  # ensures the directory exists
    yield
    await engine.dispose()


setup_logging()

app = FastAPI(title="Civic Market API", version="0.1.0", lifespan=lifespan)

setup_telemetry(app)
app.include_router(v1_router)
app.mount(PUBLIC_PREFIX, StaticFiles(directory=settings.media_dir, check_dir=False), name="media")


def _envelope(status_code: int, message: str, errors: list | None = None) -> JSONResponse:
    body = ErrorResponse(message=message, errors=errors or []).model_dump(exclude={"errors"} if not errors else None)
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _envelope(exc.status_code, exc.message, exc.errors)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]
    first = errors[0] if errors else {"loc": [], "msg": "Invalid data"}
    field = ".".join(str(p) for p in first["loc"][1:])
    message = f"{field}: {first['msg']}" if field else first["msg"]
    return _envelope(400, message, errors)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    log.warning("integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return _envelope(409, "Unique constraint violation")


@app.exception_handler(SQLAlchemyError)
async def persistence_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    log.exception("persistence failure on %s %s", request.method, request.url.path)
    message = f"Database error: {exc}" if settings.env == "dev" else "Database error"
    return _envelope(500, message)
