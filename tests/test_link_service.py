"""Link service tests: creation rules, collision retry, redirect counting."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from conftest import as_utc
from shortlinks.config import Settings
from shortlinks.exceptions import (
    CodeExistsError,
    DuplicateCodeError,
    GenerationExhaustedError,
    InvalidCodeError,
    InvalidInputError,
    InvalidUrlError,
    LinkNotFoundError,
    StorageError,
)
from shortlinks.link_service import LinkService
from shortlinks.models import utcnow
from shortlinks.store import LinkStore
from shortlinks.validation import is_valid_code

# ============================================================================
# TEST FIXTURES AND UTILITIES
# ============================================================================


@pytest.fixture
def mock_store() -> AsyncMock:
    store = AsyncMock(spec=LinkStore)
    store.create = AsyncMock()
    store.increment_clicks = AsyncMock()
    return store


@pytest.fixture
def mock_logger() -> MagicMock:
    return MagicMock()


def sequence_generator(*codes: str):
    remaining = iter(codes)
    return lambda: next(remaining)


# ============================================================================
# CREATE
# ============================================================================


@pytest.mark.asyncio
async def test_create_with_generated_code(service: LinkService) -> None:
    link = await service.create_link("https://example.com")
    assert is_valid_code(link.code)
    assert link.target_url == "https://example.com"
    assert link.clicks == 0
    assert link.last_clicked is None


@pytest.mark.asyncio
async def test_create_with_explicit_code(service: LinkService) -> None:
    link = await service.create_link("https://github.com", code="GITHUB")
    assert link.code == "GITHUB"
    assert link.clicks == 0
    assert link.last_clicked is None


@pytest.mark.asyncio
async def test_empty_code_is_generated(service: LinkService) -> None:
    link = await service.create_link("https://example.com", code="")
    assert is_valid_code(link.code)


@pytest.mark.asyncio
async def test_create_duplicate_explicit_code_conflicts(service: LinkService, store: LinkStore) -> None:
    first = await service.create_link("https://github.com", code="GITHUB")

    with pytest.raises(CodeExistsError):
        await service.create_link("https://different.com", code="GITHUB")

    stored = await store.find_by_code("GITHUB")
    assert stored.id == first.id
    assert stored.target_url == "https://github.com"


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["example.com", "ftp://example.com", "file:///etc/passwd", "not a url", ""])
async def test_invalid_url_rejected_before_store(mock_store: AsyncMock, mock_logger: MagicMock, url: str) -> None:
    service = LinkService(mock_store, logger=mock_logger)
    with pytest.raises(InvalidUrlError):
        await service.create_link(url)
    mock_store.create.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["abc12", "toolong123", "ABC-123", "ABC 123", "ABC_12"])
async def test_invalid_code_rejected_before_store(mock_store: AsyncMock, mock_logger: MagicMock, code: str) -> None:
    service = LinkService(mock_store, logger=mock_logger)
    with pytest.raises(InvalidCodeError):
        await service.create_link("https://example.com", code=code)
    mock_store.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_invalid_url_checked_before_code(mock_store: AsyncMock, mock_logger: MagicMock) -> None:
    service = LinkService(mock_store, logger=mock_logger)
    with pytest.raises(InvalidUrlError) as excinfo:
        await service.create_link("nope", code="!")
    assert isinstance(excinfo.value, InvalidInputError)


@pytest.mark.asyncio
async def test_explicit_code_conflict_does_not_fall_back_to_generation(mock_store: AsyncMock) -> None:
    generator = MagicMock(return_value="fresh12")
    mock_store.create.side_effect = DuplicateCodeError("GITHUB")
    service = LinkService(mock_store, code_generator=generator)

    with pytest.raises(CodeExistsError):
        await service.create_link("https://github.com", code="GITHUB")

    generator.assert_not_called()
    mock_store.create.assert_awaited_once_with("GITHUB", "https://github.com")


@pytest.mark.asyncio
async def test_generated_collision_is_retried(store: LinkStore, settings: Settings) -> None:
    await store.create("AAAAAAA", "https://existing.example.com")
    service = LinkService(store, settings=settings, code_generator=sequence_generator("AAAAAAA", "BBBBBBB"))

    link = await service.create_link("https://example.com")

    assert link.code == "BBBBBBB"
    assert (await store.find_by_code("AAAAAAA")).target_url == "https://existing.example.com"


@pytest.mark.asyncio
async def test_generation_exhausted_after_five_attempts(store: LinkStore, settings: Settings) -> None:
    await store.create("AAAAAAA", "https://existing.example.com")
    generator = MagicMock(return_value="AAAAAAA")
    service = LinkService(store, settings=settings, code_generator=generator)

    with pytest.raises(GenerationExhaustedError):
        await service.create_link("https://example.com")

    assert generator.call_count == 5
    assert len(await store.list_all()) == 1


@pytest.mark.asyncio
async def test_generation_attempts_follow_settings(mock_store: AsyncMock) -> None:
    mock_store.create.side_effect = DuplicateCodeError("AAAAAAA")
    generator = MagicMock(return_value="AAAAAAA")
    service = LinkService(
        mock_store,
        settings=Settings(CODE_GENERATION_MAX_ATTEMPTS=2),
        code_generator=generator,
    )

    with pytest.raises(GenerationExhaustedError):
        await service.create_link("https://example.com")
    assert mock_store.create.await_count == 2


@pytest.mark.asyncio
async def test_storage_failure_on_create_propagates(mock_store: AsyncMock) -> None:
    mock_store.create.side_effect = StorageError()
    service = LinkService(mock_store)
    with pytest.raises(StorageError):
        await service.create_link("https://example.com", code="GITHUB")


# ============================================================================
# REDIRECT
# ============================================================================


@pytest.mark.asyncio
async def test_redirect_returns_target_and_counts(service: LinkService) -> None:
    await service.create_link("https://github.com", code="GITHUB")
    before = utcnow()

    target = await service.resolve_redirect("GITHUB")

    assert target == "https://github.com"
    link = await service.get_link("GITHUB")
    assert link.clicks == 1
    assert as_utc(link.last_clicked) >= before


@pytest.mark.asyncio
async def test_redirect_n_times_counts_n(service: LinkService) -> None:
    await service.create_link("https://python.org", code="python")
    for _ in range(4):
        await service.resolve_redirect("python")
    assert (await service.get_link("python")).clicks == 4


@pytest.mark.asyncio
async def test_concurrent_redirects_count_every_click(service: LinkService) -> None:
    await service.create_link("https://python.org", code="python")
    await asyncio.gather(*(service.resolve_redirect("python") for _ in range(8)))
    assert (await service.get_link("python")).clicks == 8


@pytest.mark.asyncio
async def test_redirect_unknown_code(service: LinkService) -> None:
    with pytest.raises(LinkNotFoundError):
        await service.resolve_redirect("unknown")
    assert await service.list_links() == []


@pytest.mark.asyncio
async def test_redirect_deleted_code(service: LinkService) -> None:
    await service.create_link("https://deleted.example.com", code="deleted1")
    await service.delete_link("deleted1")
    with pytest.raises(LinkNotFoundError):
        await service.resolve_redirect("deleted1")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [StorageError(), OperationalError("UPDATE links", {}, Exception("disk I/O error")), RuntimeError("boom")],
)
async def test_redirect_hides_internal_errors(mock_store: AsyncMock, mock_logger: MagicMock, error: Exception) -> None:
    mock_store.increment_clicks.side_effect = error
    service = LinkService(mock_store, logger=mock_logger)

    with pytest.raises(LinkNotFoundError) as excinfo:
        await service.resolve_redirect("GITHUB")

    assert excinfo.value.__cause__ is error
    mock_logger.exception.assert_called_once()


# ============================================================================
# READ / LIST / DELETE
# ============================================================================


@pytest.mark.asyncio
async def test_get_unknown_link(service: LinkService) -> None:
    with pytest.raises(LinkNotFoundError):
        await service.get_link("unknown")


@pytest.mark.asyncio
async def test_list_links_newest_first(service: LinkService) -> None:
    await service.create_link("https://one.example.com", code="one111")
    await asyncio.sleep(0.01)
    await service.create_link("https://two.example.com", code="two222")
    assert [link.code for link in await service.list_links()] == ["two222", "one111"]


@pytest.mark.asyncio
async def test_delete_once_then_not_found(service: LinkService) -> None:
    await service.create_link("https://example.com", code="remove1")
    await service.delete_link("remove1")

    with pytest.raises(LinkNotFoundError):
        await service.delete_link("remove1")
    with pytest.raises(LinkNotFoundError):
        await service.get_link("remove1")
