from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.api.routes import router
from storefront.config import get_config
from storefront.data.backends.csv_seed import load_seed_data
from storefront.data.interface import Stores
from storefront.data.util import get_stores
from storefront.errors import StorefrontError
from storefront.logging import get_logger


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def register_error_handlers(app: FastAPI) -> None:
    logger = get_logger(__name__)

    @app.exception_handler(StorefrontError)
    async def storefront_error(request: Request, exc: StorefrontError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return _message(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _message(404, "Route not found")
        return _message(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.opt(exception=exc).error(f"{request.method} {request.url.path} crashed: {exc}")
        return _message(500, "Internal server error")


def create_app(stores: Optional[Stores] = None) -> FastAPI:
    """Build the HTTP application.

    Without explicit `stores`, starts from fresh in-memory collections and
    seeds them from `seed_dir` when it is configured.
    """
    config = get_config()
    logger = get_logger(__name__)

    if stores is None:
        stores = get_stores()
        if config.seed_dir:
            load_seed_data(config.seed_dir, stores)

    app = FastAPI(
        title="Storefront",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix=config.api_prefix)
    app.state.stores = stores
    register_error_handlers(app)

    logger.info(f"Storefront ready ({config.app_env}), routes:")
    for route in router.routes:
        for method in sorted(route.methods):
            logger.info(f"  {method:<7} {config.api_prefix}{route.path}")
    return app
