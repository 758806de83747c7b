"""
Banking API Application Factory
"""

from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from .. import __version__
from ..config import get_config
from ..errors import BankingError, NotFoundError
from ..identity import RandomIdentityGenerator
from ..ledger import AccountLedger, LedgerRules
from ..logging_config import setup_logging
from ..users import UserRegistry
from .users import router as users_router


def _register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"message": exc.message})

    @app.exception_handler(BankingError)
    async def banking_error_handler(request: Request, exc: BankingError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": f"Invalid request. {errors}"}
        )


def create_app(registry: Optional[UserRegistry] = None) -> FastAPI:
    """
    Create and configure the FastAPI application

    Args:
        registry: Registry to serve; a new one built from configuration if omitted
    """
    config = get_config()
    setup_logging(level=config.log_level, fmt=config.log_format)

    if registry is None:
        registry = UserRegistry(
            identity_generator=RandomIdentityGenerator(),
            ledger=AccountLedger(LedgerRules.from_config(config))
        )

    app = FastAPI(
        title="Banking API",
        description="In-memory users and accounts with rule-checked deposits and withdrawals",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.registry = registry

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)
    app.include_router(users_router, prefix="/api/users", tags=["Users"])

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "banking_api",
            "version": __version__,
            "users": app.state.registry.user_count()
        }

    # Root endpoint
    @app.get("/")
    async def get_api_info():
        """Get API information"""
        return {
            "name": "Banking API",
            "version": __version__,
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "users": "/api/users"
            }
        }

    return app


def run_server(host: Optional[str] = None, port: Optional[int] = None,
               reload: Optional[bool] = None):
    """Run the FastAPI server"""
    config = get_config()
    uvicorn.run(
        "banking_api.api:create_app",
        factory=True,
        host=host or config.api_host,
        port=port or config.api_port,
        reload=config.api_reload if reload is None else reload,
        log_level=config.log_level.lower()
    )
