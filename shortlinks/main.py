"""FastAPI application entry point for the link shortener service.

This module configures the FastAPI application with middleware, lifecycle
management, error rendering and route registration.

Application Lifecycle Diagram
=============================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌──────────────┐
    │ create_app() │
    │ CORS, metrics│
    │ handlers,    │
    │ routes       │
    └──────┬───────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ startup:    │
    │ LinkStore + │
    │ init()      │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ shutdown:   │
    │ store.close │
    └─────────────┘

How to Use
===========
**Step 1 - Run with uvicorn**::
    uvicorn shortlinks.main:app --host 0.0.0.0 --port 8000

**Step 2 - Make API calls**::
    curl -X POST http://localhost:8000/links \
         -H "Content-Type: application/json" \
         -d '{"target_url": "https://github.com", "code": "GITHUB"}'

    curl -i http://localhost:8000/GITHUB

Key Behaviours
===============
- The link store is constructed explicitly in the lifespan and kept on
  ``app.state``; it is disposed on shutdown.
- Every ``ShortLinkError`` is rendered as ``{"error": message}`` with its
  status code; malformed request bodies are answered with 400.
- Prometheus metrics are exposed at ``/_metrics``.
"""

__all__ = ["app", "create_app"]

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from shortlinks.config import Settings, get_settings
from shortlinks.exceptions import InternalError, ShortLinkError
from shortlinks.logger import setup_logger
from shortlinks.routes import router
from shortlinks.store import LinkStore


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    store = LinkStore.from_settings(app.state.settings)
    await store.init()
    app.state.store = store
    yield
    # Shutdown
    app.state.store = None
    await store.close()


def _format_validation_error(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        if error.get("type") == "missing" and location:
            messages.append(f"{location} is required")
        elif location:
            messages.append(f"{location}: {error.get('msg')}")
        else:
            messages.append(str(error.get("msg")))
    return "; ".join(messages) or "Invalid request"


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logger = setup_logger(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Short codes for long URLs, with click counting",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ShortLinkError)
    async def handle_short_link_error(request: Request, exc: ShortLinkError) -> JSONResponse:
        if isinstance(exc, InternalError):
            logger.error(f"{request.method} {request.url.path} failed: {exc!r}", exc_info=exc)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": _format_validation_error(exc)},
        )

    # Metrics route must be registered before the catch-all redirect route.
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=False,
        should_respect_env_var=False,
    ).instrument(app).expose(app, endpoint="/_metrics", include_in_schema=False)

    app.include_router(router)
    return app


app = create_app()
