"""
DataCopilot API application.

Wires routers, middleware and error handlers, and builds the insight
service at startup. A missing provider API key aborts startup.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import analyze, datasets
from .core.config import Settings, settings as default_settings
from .core.logging import configure_logging
from .middleware import ErrorHandlerMiddleware, RequestLoggerMiddleware
from .services.insights import build_insight_service

logger = logging.getLogger("datacopilot.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app_settings: Settings = app.state.settings
    # Raises MissingCredentialsError when the provider key is absent
    app.state.insight_service = build_insight_service(app_settings)
    logger.info("%s %s started (provider=%s)",
                app_settings.APP_NAME, app_settings.APP_VERSION, app_settings.LLM_PROVIDER)
    yield
    logger.info("%s shutting down", app_settings.APP_NAME)


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request body")
    if location:
        message = f"{location}: {message}"
    return JSONResponse(status_code=400, content={"error": message, "kind": "input"})


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    kind = "input" if exc.status_code < 500 else "upstream"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail), "kind": kind},
        headers=getattr(exc, "headers", None),
    )


def create_app(app_settings: Settings = default_settings) -> FastAPI:
    configure_logging(app_settings.LOG_LEVEL)

    app = FastAPI(
        title=app_settings.APP_NAME,
        version=app_settings.APP_VERSION,
        debug=app_settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)

    # Last added runs outermost; the request logger wraps the error handler
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(
        RequestLoggerMiddleware,
        model_paths=[f"{app_settings.API_PREFIX}/analyze"],
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(datasets.router, prefix=app_settings.API_PREFIX)
    app.include_router(analyze.router, prefix=app_settings.API_PREFIX)

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "version": app_settings.APP_VERSION,
            "provider": app_settings.LLM_PROVIDER,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "datacopilot.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.DEBUG,
    )
