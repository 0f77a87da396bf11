import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from navigator.config import Settings
from navigator.errors import NavigatorError
from navigator.logging_config import configure_logging
from navigator.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _describe_validation_error(exc: RequestValidationError) -> str:
    messages = []
    for err in exc.errors():
        if err.get("type") == "json_invalid":
            return "Invalid JSON body"
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query")]
        field = ".".join(loc) or "request"
        messages.append(f"Invalid {field}: {err.get('msg')}")
    return "; ".join(messages) or "Invalid request"


@asynccontextmanager
async def lifespan(app: FastAPI):
    await app.state.registry.initialize_all()
    yield
    await app.state.registry.close_all()


def create_app(settings: Optional[Settings] = None, registry: Optional[ProviderRegistry] = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings)

    app = FastAPI(
        title="Yield Navigator API",
        description="DeFi portfolio dashboard backend: 1inch swaps, Pendle liquidity and yield tokens, Octav portfolios.",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.registry = registry or ProviderRegistry(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(NavigatorError)
    async def navigator_error_handler(_: Request, exc: NavigatorError):
        return _failure(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(_: Request, exc: StarletteHTTPException):
        return _failure(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_: Request, exc: RequestValidationError):
        return _failure(400, _describe_validation_error(exc))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _failure(500, "Internal server error")

    from navigator.routes import octav, oneinch, pendle, strategy

    app.include_router(oneinch.router, prefix="/api/1inch", tags=["1inch"])
    app.include_router(pendle.router, prefix="/api/pendle", tags=["Pendle"])
    app.include_router(octav.router, prefix="/api", tags=["Octav"])
    app.include_router(strategy.router, prefix="/api/strategy", tags=["Strategy"])

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


def run() -> None:
    import os

    import uvicorn

    port = int(os.environ.get("PORT", 8000))
    reload = os.environ.get("RELOAD", "false").lower() == "true"

    uvicorn.run("navigator.main:app", host="0.0.0.0", port=port, reload=reload)


app = create_app()

if __name__ == "__main__":  # pragma: no cover
    run()
