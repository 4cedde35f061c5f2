"""SSO Broker API Server - FastAPI application.

Running the Server
------------------

Development (with auto-reload):
    uv run ssobroker serve --reload

Production:
    uv run ssobroker serve --host 0.0.0.0 --port 8000

Testing the Server
------------------

Health check:
    curl http://localhost:8000/health

Validate a client before showing the login page:
    curl -X POST http://localhost:8000/api/auth/validate-client \
      -H "Content-Type: application/json" \
      -d '{"token": "<client-token>", "redirectUrl": "https://app.example.com/auth"}'

Endpoints
---------
- /                            : API information
- /health, /status             : Health and configuration status
- /version                     : Version information
- /api/auth/*                  : Browser login flow (password, Google, Facebook)
- /api/user/profile            : Profile of the bearer token holder
- /api/rest/auth/*             : REST login for native apps
- /docs                        : OpenAPI documentation
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from ssobroker.api.routers.auth import router as auth_router
from ssobroker.api.routers.auth import user_router
from ssobroker.api.routers.health import router as health_router
from ssobroker.api.routers.rest import router as rest_router
from ssobroker.auth.errors import BrokerError, InvalidRequestError
from ssobroker.settings import settings
from ssobroker.version import __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(f"Starting SSO Broker API (store: {settings.store.backend})")
    if not settings.auth.jwt_secret:
        logger.warning("No JWT secret configured; authentication endpoints will fail")
    yield
    logger.info("Shutting down SSO Broker API")


async def broker_error_handler(request: Request, exc: BrokerError) -> JSONResponse:
    """Rejected flows become ``{success: false, error, code}`` with their status."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} ({exc.message})")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.code}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} invalid request: {exc.errors()}")
    error = InvalidRequestError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"{request.method} {request.url.path} failed unexpectedly")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Server error", "code": "SERVER_ERROR"},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="SSO Broker API",
        description="Multi-tenant single sign-on broker (password, Google, Facebook)",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BrokerError, broker_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "SSO Broker API",
            "version": __version__,
            "docs": "/docs",
            "providers": ["google", "facebook"],
        }

    @app.get("/version")
    async def version():
        """Version information endpoint."""
        return {
            "version": __version__,
            "python_version": "3.11+",
        }

    # Register routers (all public; bearer-protected routes use CurrentUser)
    app.include_router(health_router)  # /health, /status
    app.include_router(auth_router)    # /api/auth/*
    app.include_router(user_router)    # /api/user/*
    app.include_router(rest_router)    # /api/rest/auth/*

    return app


# Create application instance
app = create_app()


# Main entry point for uvicorn
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ssobroker.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
