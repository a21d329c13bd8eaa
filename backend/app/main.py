import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.market import CORS_HEADERS, get_bitget_client, router as market_router
from app.config import settings
from app.errors import MarketDataError
from app.schemas.market import ErrorResponse
from app.services.bitget_client import BitgetClient

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def _error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    payload = ErrorResponse(error=error, details=details).model_dump(exclude_none=True)
    return JSONResponse(payload, status_code=status_code, headers=CORS_HEADERS)


def create_app(bitget_client: BitgetClient | None = None) -> FastAPI:
    client = bitget_client or BitgetClient()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting %s (upstream %s)", settings.app_name, settings.bitget_rest_base_url)
        try:
            yield
        finally:
            await client.aclose()
            logger.info("Shutdown complete")

    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MarketDataError)
    async def market_data_error_handler(_: Request, exc: MarketDataError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning("Request failed: %s (%s)", exc.message, exc.details)
        return _error_response(exc.status_code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        parts = []
        for err in exc.errors():
            loc = ".".join(str(i) for i in err.get("loc", []))
            parts.append(f"{loc}: {err.get('msg', 'Invalid value')}")
        return _error_response(400, "Invalid request parameters", "; ".join(parts))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled API exception: %s", exc, exc_info=True)
        return _error_response(500, "Internal server error", "Unexpected server error")

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(market_router)
    app.dependency_overrides[get_bitget_client] = lambda: client
    return app


app = create_app()
