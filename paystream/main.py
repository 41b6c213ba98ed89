from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import uvicorn
from loguru import logger

from paystream.core.config import AppSettings
from paystream.core.exceptions import ServiceError
from paystream.api import api_router
from paystream.api.deps import close_clients


def get_app_settings() -> AppSettings:
    try:
        return AppSettings()
    except Exception as e:
        logger.error(f"Error loading settings: {e}")
        logger.error(f"Using default settings")
        return AppSettings.model_construct()

def setup_logging():
    settings = get_app_settings()
    logger.add(
        settings.log_file,
        rotation=settings.log_rotation,
        compression=settings.log_compression.value,
        format=settings.log_format,
        level=settings.app_log_level.value.upper(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("PayStream API starting...")
    yield
    logger.info("PayStream API shutting down...")
    await close_clients()


async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in errors
    )
    logger.warning(f"{request.method} {request.url.path} invalid request: {message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": message or "Invalid request"},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "Server error"},
    )


def create_app():
    settings = get_app_settings()
    app = FastAPI(
        title=settings.app_name,
        description="Pay-per-view video platform API",
        version="1.0.0",
        lifespan=lifespan,
    )
    setup_logging()

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/")
    def read_root():
        return {"message": f"Welcome to {settings.app_name}"}
    @app.get("/health")
    async def health_check():
        return {"status": "ok"}
    app.include_router(api_router)

    return app

app = create_app()

if __name__ == "__main__":
    settings = get_app_settings()
    uvicorn.run(
        "paystream.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_reload,
        reload_dirs=["."],
    )
