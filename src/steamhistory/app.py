"""FastAPI application factory for SteamHistory."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from steamhistory.common.config import get_settings
from steamhistory.common.exceptions import SteamHistoryError
from steamhistory.common.logging import get_logger, setup_logging
from steamhistory.common.schemas import ErrorResponse, HealthResponse

logger = get_logger("app")


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from steamhistory.deps import get_db
        db = get_db()
        await db.init()
        await db.create_all()
        yield
        # Shutdown
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    @app.exception_handler(SteamHistoryError)
    async def steamhistory_error(request: Request, exc: SteamHistoryError):
        logger.error("Request to %s failed: %s", request.url.path, exc.message)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error=exc.message, code=exc.code).model_dump(),
        )

    @app.exception_handler(SQLAlchemyError)
    async def store_error(request: Request, exc: SQLAlchemyError):
        logger.error("Store failure on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="Store unavailable", code="STORE_ERROR", detail=str(getattr(exc, "orig", None) or exc),
            ).model_dump(),
        )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    from steamhistory.api.router import router as api_router

    app.include_router(api_router, prefix=settings.api_prefix, tags=["api"])

    return app
