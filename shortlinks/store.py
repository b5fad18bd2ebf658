"""Persistence boundary for Link records.

The store is a thin wrapper over one table. It holds no business rules: the
database constraints and statement atomicity are its guarantees.

Operation Overview
==================
::
    create(code, target_url)   INSERT                      -> Link | DuplicateCodeError
    find_by_code(code)         SELECT ... WHERE code       -> Link | None
    list_all()                 SELECT ... ORDER BY created_at DESC
    delete(code)               DELETE ... WHERE code       -> None | LinkNotFoundError
    increment_clicks(code)     UPDATE ... RETURNING        -> Link | LinkNotFoundError

Atomicity
=========
- ``create`` relies on the unique index on ``code``. Two concurrent inserts
  of one code produce exactly one row and one ``DuplicateCodeError``.
- ``increment_clicks`` is a single ``UPDATE ... SET clicks = clicks + 1``
  statement, so concurrent redirects never lose updates and ``clicks`` and
  ``last_clicked`` are always written together.
- ``delete`` is a single statement. A redirect racing it either updates the
  row before it is removed or matches no row and reports not found.

How to Use
===========
**Step 1 - Build and initialize on startup**::
    store = LinkStore.from_settings(get_settings())
    await store.init()

**Step 2 - Use**::
    link = await store.create("GITHUB", "https://github.com")
    link = await store.increment_clicks("GITHUB")

**Step 3 - Close on shutdown**::
    await store.close()
"""

import logging
import uuid

from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from shortlinks.config import Settings
from shortlinks.database import Base, build_engine, build_sessionmaker
from shortlinks.exceptions import DuplicateCodeError, LinkNotFoundError, StorageError
from shortlinks.models import Link, utcnow

__all__ = ["LinkStore"]

logger = logging.getLogger("shortlinks.store")


class LinkStore:
    """Async SQLAlchemy-backed record store for :class:`Link`.

    One instance is created per process and shared by all requests; it owns
    the engine and its connection pool.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        sessionmaker: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        self._engine = engine
        self._sessionmaker = sessionmaker or build_sessionmaker(engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LinkStore":
        return cls(build_engine(settings))

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    async def init(self) -> None:
        """Create the links table and its indexes if they do not exist."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Link store initialized ({self._engine.url.render_as_string(hide_password=True)})")

    async def close(self) -> None:
        await self._engine.dispose()
        logger.info("Link store closed")

    async def ping(self) -> bool:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as exc:
            logger.error(f"Database ping failed: {exc}")
            return False
        return True

    # ========================================================================
    # RECORD OPERATIONS
    # ========================================================================

    async def create(self, code: str, target_url: str) -> Link:
        """Insert a new link; the unique index decides whether ``code`` is free.

        Raises:
            DuplicateCodeError: If a row with ``code`` already exists.
            StorageError: On any other persistence failure.
        """
        link = Link(
            id=str(uuid.uuid4()),
            code=code,
            target_url=target_url,
            clicks=0,
            last_clicked=None,
            created_at=utcnow(),
        )
        try:
            async with self._sessionmaker.begin() as session:
                session.add(link)
        except IntegrityError as exc:
            raise DuplicateCodeError(code) from exc
        except SQLAlchemyError as exc:
            raise StorageError() from exc
        return link

    async def find_by_code(self, code: str) -> Link | None:
        try:
            async with self._sessionmaker() as session:
                result = await session.execute(select(Link).where(Link.code == code))
                return result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError() from exc

    async def list_all(self) -> list[Link]:
        try:
            async with self._sessionmaker() as session:
                result = await session.execute(select(Link).order_by(Link.created_at.desc()))
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise StorageError() from exc

    async def delete(self, code: str) -> None:
        try:
            async with self._sessionmaker.begin() as session:
                result = await session.execute(delete(Link).where(Link.code == code))
                deleted = result.rowcount
        except SQLAlchemyError as exc:
            raise StorageError() from exc

        if not deleted:
            raise LinkNotFoundError()

    async def increment_clicks(self, code: str) -> Link:
        """Atomically bump ``clicks`` and stamp ``last_clicked`` for ``code``.

        Returns:
            Link: The record as committed by this increment.

        Raises:
            LinkNotFoundError: If no row has ``code`` (never created or deleted).
            StorageError: On any other persistence failure.
        """
        stmt = (
            update(Link)
            .where(Link.code == code)
            .values(clicks=Link.clicks + 1, last_clicked=utcnow())
            .returning(Link)
        )
        try:
            async with self._sessionmaker.begin() as session:
                result = await session.execute(stmt)
                link = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError() from exc

        if link is None:
            raise LinkNotFoundError()
        return link
