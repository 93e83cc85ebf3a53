"""FastAPI application factory"""

import logging
import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from src.api.error import ClientError, client_error_handler
from src.api.routes import clients, invoices, sessions, webhooks

logger = logging.getLogger(__name__)


def create_app(config) -> FastAPI:
    """
    Build the API application

    Args:
        config: ApplicationConfig (or any object with the same attributes)

    Returns:
        Configured FastAPI app; routers are mounted under API_PREFIX
    """
    logging.basicConfig(
        level=getattr(logging, str(config.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title="KYC Billing Service", version="1.0.0")
    app.state.config = config

    if config.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ORIGINS,
            allow_credentials=config.CORS_ALLOW_CREDENTIALS,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if config.ENABLE_LOGGING_MIDDLEWARE:
        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            start = time.perf_counter()
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.1f}ms)"
            )
            return response

    app.add_exception_handler(ClientError, client_error_handler)

    for router in (webhooks.router, sessions.router, clients.router, invoices.router):
        app.include_router(router, prefix=config.API_PREFIX)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app
