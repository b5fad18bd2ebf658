"""FastAPI route definitions for the link shortener REST API.

API Endpoint Overview
=====================
::
    POST   /links
        ├─ LinkCreate (request body)
        └─ LinkResponse (201) or 400/409/500

    GET    /links
        └─ list[LinkResponse] (200), newest first

    GET    /links/:code
        └─ LinkResponse (200) or 404

    DELETE /links/:code
        └─ 204 or 404

    GET    /_healthz
        └─ HealthResponse (200) or 503

    GET    /:code
        └─ 302 Redirect or 404

Request Flow Diagram
====================
::
    ┌─────────────┐
    │  HTTP       │
    │  Request    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Parse body  │
    │ (Pydantic)  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Inject      │
    │ LinkService │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Call Service│──── ShortLinkError ──▶ {"error": ...}
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Serialize   │
    │ Response    │
    └─────────────┘

Key Behaviours
===============
- Service errors are rendered by the exception handlers in ``main.py``.
- Redirects use 302 so browsers do not cache them and every visit is counted.
- The catch-all ``/{code}`` route is declared last so it never shadows the
  fixed paths above it.
- ``_``-prefixed system paths can never collide with a code.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, RedirectResponse

from shortlinks.dependencies import RequestContext, get_link_service, get_request_context
from shortlinks.enums import HealthStatus
from shortlinks.link_service import LinkService
from shortlinks.schemas import ErrorResponse, HealthResponse, LinkCreate, LinkResponse

__all__ = ["router"]

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post(
    "/links",
    response_model=LinkResponse,
    status_code=status.HTTP_201_CREATED,
    responses={k: _ERROR_RESPONSES[k] for k in (400, 409, 500)},
    tags=["links"],
)
async def create_link(
    payload: LinkCreate,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> LinkResponse:
    ctx.logger.info(
        f"Link creation requested: {payload.target_url}",
        extra={"operation": "create_link", "code": payload.code},
    )
    link = await service.create_link(payload.target_url, payload.code)
    return LinkResponse.model_validate(link)


@router.get("/links", response_model=list[LinkResponse], tags=["links"])
async def list_links(service: LinkService = Depends(get_link_service)) -> list[LinkResponse]:
    links = await service.list_links()
    return [LinkResponse.model_validate(link) for link in links]


@router.get("/links/{code}", response_model=LinkResponse, responses={404: _ERROR_RESPONSES[404]}, tags=["links"])
async def get_link(code: str, service: LinkService = Depends(get_link_service)) -> LinkResponse:
    link = await service.get_link(code)
    return LinkResponse.model_validate(link)


@router.delete(
    "/links/{code}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: _ERROR_RESPONSES[404]},
    tags=["links"],
)
async def delete_link(code: str, service: LinkService = Depends(get_link_service)) -> None:
    await service.delete_link(code)


@router.get("/_healthz", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)):
    database = HealthStatus.from_bool(await ctx.store.ping())
    body = HealthResponse(status=database, database=database, version=ctx.settings.APP_VERSION)
    if database is HealthStatus.UNHEALTHY:
        ctx.logger.error("Health check failed: database unreachable")
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body.model_dump(mode="json"))
    return body


@router.get("/{code}", responses={404: _ERROR_RESPONSES[404]}, tags=["redirect"])
async def redirect_to_target(
    code: str,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> RedirectResponse:
    target_url = await service.resolve_redirect(code)
    ctx.logger.debug(
        f"Redirect served for {code}",
        extra={"operation": "redirect", "duration_ms": ctx.get_duration()},
    )
    return RedirectResponse(url=target_url, status_code=status.HTTP_302_FOUND)
