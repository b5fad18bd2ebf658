"""Request-scoped dependency injection for the link shortener.

The process-wide :class:`~shortlinks.store.LinkStore` is created by the
application lifespan and kept on ``app.state``; these dependencies hand it to
each request together with a logger that carries request metadata.

Dependency Graph
================
::
    get_link_store ──┐
                     ├──▶ get_request_context ──▶ get_link_service
    Request ─────────┘
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Request

from shortlinks.config import Settings, get_settings
from shortlinks.link_service import LinkService
from shortlinks.logger import LOGGER_NAME
from shortlinks.store import LinkStore

__all__ = [
    "RequestContext",
    "get_link_service",
    "get_link_store",
    "get_request_context",
]


# ============================================================================
# REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request context with tracking information and shared resources.

    Attributes:
        store: Process-wide link store
        settings: Application settings
        request_id: Unique identifier for this request
        trace_id: Correlation ID for distributed tracing
        user_agent: Client user agent string
        client_ip: Client IP address
        start_time: Request start timestamp
    """

    store: LinkStore
    settings: Settings
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    trace_id: Optional[str] = None
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    start_time: float = field(default_factory=time.time)

    @property
    def logger(self) -> logging.LoggerAdapter:
        """Shared logger with request context attached to every record."""
        return logging.LoggerAdapter(
            logging.getLogger(LOGGER_NAME),
            {
                "request_id": self.request_id,
                "trace_id": self.trace_id or self.request_id,
                "client_ip": self.client_ip,
                "user_agent": self.user_agent,
            },
        )

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


def get_link_store(request: Request) -> LinkStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise RuntimeError("Link store not initialized; is the application lifespan running?")
    return store


def get_request_context(
    request: Request,
    store: LinkStore = Depends(get_link_store),
) -> RequestContext:
    kwargs = {}
    request_id = request.headers.get("x-request-id")
    if request_id:
        kwargs["request_id"] = request_id

    return RequestContext(
        store=store,
        settings=get_settings(),
        trace_id=request.headers.get("x-trace-id"),
        user_agent=request.headers.get("user-agent"),
        client_ip=request.client.host if request.client else None,
        **kwargs,
    )


def get_link_service(ctx: RequestContext = Depends(get_request_context)) -> LinkService:
    return LinkService.from_context(ctx)
