"""Business logic layer for link operations.

This module orchestrates validation, code generation and the link store. It
is the only place business rules live; the store only persists.

Flow Diagram - Link Creation
============================
::
    ┌─────────────┐
    │ create_link │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Validate URL│──── invalid ──▶ InvalidUrlError (400)
    └──────┬──────┘
           ▼
     code given?
    ┌─────┴──────────────┐
    │ YES                 │ NO
    ▼                     ▼
┌──────────┐        ┌──────────────┐
│ Validate │        │ attempt 1..5 │◀─────┐
│ code     │        │ generate     │      │
└────┬─────┘        └──────┬───────┘      │
     ▼                     ▼              │
┌──────────┐        ┌──────────────┐      │
│ store.   │        │ store.create │── collision
│ create   │        └──────┬───────┘      │
└────┬─────┘               │         (retry)
     │ duplicate?          │ 5 collisions ▶ GenerationExhaustedError (500)
     ▼                     ▼
 CodeExistsError        Link (201)
   (409)

Flow Diagram - Redirect
=======================
::
    ┌─────────────┐
    │  GET /:code  │
    └──────┬──────┘
           ▼
    ┌──────────────────────┐
    │ store.increment_     │  one UPDATE ... RETURNING:
    │ clicks(code)         │  lookup + clicks+1 + last_clicked
    └──────┬───────────────┘
    FOUND?  │
    ┌──────┴──────┐
    │ NO           │ YES
    ▼              ▼
┌─────────┐   ┌──────────┐
│ 404     │   │ 302 to   │
│         │   │ target   │
└─────────┘   └──────────┘

Key Behaviours
===============
- Validation runs before any write; invalid input never touches the store.
- An explicit code that is taken is a conflict; generation is never used as
  a fallback for it.
- Generated-code collisions are retried a bounded number of times, then
  surface as an internal error.
- The redirect path never exposes internal errors: anything other than a
  missing code is logged and reported as not found.
- No state is kept between calls; every operation goes to the store.
"""

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from prometheus_client import Counter, Histogram

from shortlinks.codegen import generate_random_code
from shortlinks.config import Settings, get_settings
from shortlinks.enums import RequestStatus
from shortlinks.exceptions import (
    CodeExistsError,
    DuplicateCodeError,
    GenerationExhaustedError,
    InvalidCodeError,
    InvalidUrlError,
    LinkNotFoundError,
    ShortLinkError,
)
from shortlinks.models import Link
from shortlinks.store import LinkStore
from shortlinks.validation import is_valid_code, is_valid_url

if TYPE_CHECKING:
    from shortlinks.dependencies import RequestContext

__all__ = ["LinkService"]


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

LINK_CREATION_REQUESTS_TOTAL = Counter(
    "shortlinks_creation_requests_total",
    "Total link creation requests",
    ["status"],
)
LINK_REDIRECT_REQUESTS_TOTAL = Counter(
    "shortlinks_redirect_requests_total",
    "Total redirect requests",
    ["status"],
)
LINK_DELETION_REQUESTS_TOTAL = Counter(
    "shortlinks_deletion_requests_total",
    "Total link deletion requests",
    ["status"],
)
CODE_COLLISIONS_TOTAL = Counter(
    "shortlinks_code_collisions_total",
    "Generated codes rejected because they were already taken",
)
LINK_CREATION_DURATION = Histogram(
    "shortlinks_creation_duration_seconds",
    "Time taken to create links",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)


# ============================================================================
# CORE SERVICE CLASS
# ============================================================================


class LinkService:
    """Core service for creating, resolving, listing and deleting links.

    Example:
        >>> service = LinkService(store)
        >>> link = await service.create_link("https://github.com", code="GITHUB")
        >>> target = await service.resolve_redirect("GITHUB")
    """

    def __init__(
        self,
        store: LinkStore,
        *,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        settings: Settings | None = None,
        code_generator: Callable[[], str] = generate_random_code,
    ) -> None:
        self._store = store
        self._logger = logger or logging.getLogger("shortlinks")
        self._settings = settings or get_settings()
        self._generate_code = code_generator

    @classmethod
    def from_context(cls, ctx: "RequestContext") -> "LinkService":
        return cls(ctx.store, logger=ctx.logger, settings=ctx.settings)

    @property
    def max_attempts(self) -> int:
        return self._settings.CODE_GENERATION_MAX_ATTEMPTS

    # ========================================================================
    # PUBLIC API METHODS
    # ========================================================================

    async def create_link(self, target_url: str, code: str | None = None) -> Link:
        """Create a link for ``target_url`` under ``code`` or a generated code.

        An empty ``code`` is treated the same as an absent one.

        Raises:
            InvalidUrlError: ``target_url`` is not an absolute http(s) URL.
            InvalidCodeError: ``code`` is not 6-8 ASCII letters or digits.
            CodeExistsError: ``code`` is already taken.
            GenerationExhaustedError: every generated candidate collided.
        """
        start_time = time.perf_counter()
        try:
            if not is_valid_url(target_url):
                raise InvalidUrlError()

            if code:
                if not is_valid_code(code):
                    raise InvalidCodeError()
                link = await self._create_with_explicit_code(code, target_url)
            else:
                link = await self._create_with_generated_code(target_url)

        except ShortLinkError as exc:
            status = _status_for(exc)
            LINK_CREATION_REQUESTS_TOTAL.labels(status=status).inc()
            log = self._logger.error if status is RequestStatus.ERROR else self._logger.warning
            log(f"Link creation failed: {exc.message}")
            raise
        finally:
            LINK_CREATION_DURATION.observe(time.perf_counter() - start_time)

        LINK_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.info(f"Link created: {link.code} -> {link.target_url}")
        return link

    async def resolve_redirect(self, code: str) -> str:
        """Record a click on ``code`` and return the URL to redirect to.

        Raises:
            LinkNotFoundError: for unknown or deleted codes, and for any
                internal failure (logged with its cause).
        """
        try:
            link = await self._store.increment_clicks(code)
        except LinkNotFoundError:
            LINK_REDIRECT_REQUESTS_TOTAL.labels(status=RequestStatus.NOT_FOUND).inc()
            self._logger.warning(f"Redirect failed - code not found: {code}")
            raise
        except Exception as exc:
            LINK_REDIRECT_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            self._logger.exception(f"Redirect failed for {code}: {exc!r}")
            raise LinkNotFoundError() from exc

        LINK_REDIRECT_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.info(f"Redirect: {code} -> {link.target_url} (clicks={link.clicks})")
        return link.target_url

    async def get_link(self, code: str) -> Link:
        link = await self._store.find_by_code(code)
        if link is None:
            self._logger.warning(f"Link not found: {code}")
            raise LinkNotFoundError()
        return link

    async def list_links(self) -> list[Link]:
        return await self._store.list_all()

    async def delete_link(self, code: str) -> None:
        try:
            await self._store.delete(code)
        except LinkNotFoundError:
            LINK_DELETION_REQUESTS_TOTAL.labels(status=RequestStatus.NOT_FOUND).inc()
            self._logger.warning(f"Delete failed - code not found: {code}")
            raise
        LINK_DELETION_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.info(f"Link deleted: {code}")

    # ========================================================================
    # PRIVATE HELPER METHODS
    # ========================================================================

    async def _create_with_explicit_code(self, code: str, target_url: str) -> Link:
        try:
            return await self._store.create(code, target_url)
        except DuplicateCodeError as exc:
            raise CodeExistsError() from exc

    async def _create_with_generated_code(self, target_url: str) -> Link:
        for attempt in range(1, self.max_attempts + 1):
            candidate = self._generate_code()
            try:
                return await self._store.create(candidate, target_url)
            except DuplicateCodeError:
                CODE_COLLISIONS_TOTAL.inc()
                self._logger.warning(
                    f"Generated code collision: {candidate} (attempt {attempt}/{self.max_attempts})"
                )

        self._logger.error(f"Code generation exhausted after {self.max_attempts} attempts")
        raise GenerationExhaustedError()


def _status_for(exc: ShortLinkError) -> RequestStatus:
    if exc.status_code == 400:
        return RequestStatus.VALIDATION_ERROR
    if exc.status_code == 409:
        return RequestStatus.CONFLICT
    if exc.status_code == 404:
        return RequestStatus.NOT_FOUND
    return RequestStatus.ERROR
