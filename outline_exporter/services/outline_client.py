"""Outline API client: paged fetching, retries and pagination."""

import asyncio
from typing import Any, Awaitable, Callable, Type, TypeVar

import httpx
import logfire
from pydantic import ValidationError

from outline_exporter.config import Settings
from outline_exporter.constants import (
    COLLECTIONS_LIST_PATH,
    DOCUMENTS_LIST_PATH,
    MAX_FETCH_RETRIES,
    MAX_LOGGED_BODY_CHARS,
    RETRY_BASE_DELAY_SECONDS,
    RETRYABLE_ERROR_MARKERS,
    USERS_LIST_PATH,
)
from outline_exporter.logging_config import redact_tokens
from outline_exporter.models.outline_models import (
    Collection,
    CollectionsPage,
    Document,
    DocumentsPage,
    Page,
    User,
    UsersPage,
)
from outline_exporter.models.scrape_models import FetchResult

PageT = TypeVar("PageT", bound=Page)


class OutlineAPIError(Exception):
    """Base exception for Outline API failures."""

    stage = "request"

    def __init__(self, message: str, *, path: str, stage: str | None = None):
        super().__init__(message)
        self.path = path
        if stage is not None:
            self.stage = stage


class OutlineTransportError(OutlineAPIError):
    """Raised when the request could not be sent or its body not read."""

    pass


class OutlineStatusError(OutlineAPIError):
    """Raised when Outline answers with a non-2xx status."""

    stage = "status"

    def __init__(self, message: str, *, path: str, status_code: int, body: str):
        super().__init__(message, path=path)
        self.status_code = status_code
        self.body = body


class OutlineDecodeError(OutlineAPIError):
    """Raised when a response body is not a valid page."""

    stage = "decode"


class MaxRetriesExceededError(OutlineAPIError):
    """Raised when a retryable failure persists through every retry."""

    stage = "retry"


def is_retryable(error: Exception) -> bool:
    """
    Decide whether a failed fetch is worth retrying.

    Only transport failures that look like a timeout or a truncated
    connection qualify; HTTP status and decode errors never do.
    """
    if not isinstance(error, OutlineTransportError):
        return False
    cause = error.__cause__
    if isinstance(cause, httpx.TimeoutException):
        return True
    text = f"{type(cause).__name__} {cause}".lower() if cause else str(error).lower()
    return any(marker in text for marker in RETRYABLE_ERROR_MARKERS)


class OutlineClient:
    """Async client for the Outline list endpoints.

    Use as an async context manager; one instance serves one scrape cycle.
    """

    def __init__(
        self,
        settings: Settings,
        max_retries: int = MAX_FETCH_RETRIES,
        retry_base_delay: float = RETRY_BASE_DELAY_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize Outline client.

        Args:
            settings: Application settings (base URL, key, timeout, page limit)
            max_retries: Retries allowed after the first attempt of a page
            retry_base_delay: First backoff delay in seconds, doubled per retry
            transport: Optional httpx transport (tests)
        """
        self.settings = settings
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self._transport = transport
        self._http: httpx.AsyncClient | None = None
        self._sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep

    async def __aenter__(self) -> "OutlineClient":
        self._http = httpx.AsyncClient(
            timeout=self.settings.scrape_timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.settings.outline_api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def fetch_page(
        self,
        path: str,
        page_model: Type[PageT],
        body: dict[str, Any] | None = None,
    ) -> PageT:
        """
        Perform one authenticated POST and decode the page.

        Outline requires POST for list endpoints, so the call is a POST
        even when no body is sent.

        Raises:
            OutlineTransportError: On an unbuildable request, network failure
                or body read failure
            OutlineStatusError: On a non-2xx response
            OutlineDecodeError: On invalid JSON or a schema mismatch
        """
        if self._http is None:
            raise RuntimeError("OutlineClient must be used as an async context manager")

        url = f"{self.settings.outline_api_url}{path}"
        try:
            request = self._http.build_request("POST", url, json=body)
        except Exception as e:  # httpx.InvalidURL is not an httpx.HTTPError
            raise OutlineTransportError(
                f"error creating request to {path}: {e}", path=path, stage="request"
            ) from e
        if self.settings.debug:
            logfire.debug(
                "Outline request",
                method=request.method,
                url=str(request.url),
                headers=redact_tokens(dict(request.headers)),
                body=request.content.decode("utf-8", errors="replace"),
            )

        try:
            response = await self._http.send(request, stream=True)
        except httpx.HTTPError as e:
            raise OutlineTransportError(
                f"error executing request to {path}: {e}", path=path, stage="request"
            ) from e

        try:
            content = await response.aread()
        except httpx.HTTPError as e:
            raise OutlineTransportError(
                f"error reading response body from {path}: {e}", path=path, stage="read"
            ) from e
        finally:
            await response.aclose()

        if self.settings.debug:
            logfire.debug(
                "Outline response",
                url=str(request.url),
                status_code=response.status_code,
                headers=dict(response.headers),
                body=content[:MAX_LOGGED_BODY_CHARS].decode("utf-8", errors="replace"),
            )

        if not response.is_success:
            text = content.decode("utf-8", errors="replace")
            raise OutlineStatusError(
                f"API returned status code {response.status_code}: {text}",
                path=path,
                status_code=response.status_code,
                body=text,
            )

        try:
            return page_model.model_validate_json(content)
        except ValidationError as e:
            raise OutlineDecodeError(
                f"error parsing response from {path}: {e}", path=path
            ) from e

    async def fetch_page_with_retry(
        self,
        path: str,
        page_model: Type[PageT],
        body: dict[str, Any] | None = None,
    ) -> PageT:
        """
        Fetch one page, retrying timeouts and truncated connections.

        Backoff starts at retry_base_delay and doubles after each retry.

        Raises:
            MaxRetriesExceededError: When every retry failed retryably
            OutlineAPIError: Any non-retryable failure, immediately
        """
        last_error: OutlineAPIError | None = None
        for attempt in range(self.max_retries + 1):
            try:
                return await self.fetch_page(path, page_model, body)
            except OutlineAPIError as e:
                if not is_retryable(e):
                    raise
                last_error = e
                if attempt == self.max_retries:
                    break
                delay = self.retry_base_delay * (2**attempt)
                logfire.warn(
                    "Retrying Outline request",
                    path=path,
                    retry=attempt + 1,
                    max_retries=self.max_retries,
                    delay_seconds=delay,
                    error=str(e),
                    error_type=type(e.__cause__ or e).__name__,
                )
                await self._sleep(delay)

        raise MaxRetriesExceededError(
            f"max retries exceeded for {path} ({self.max_retries + 1} attempts): {last_error}",
            path=path,
        ) from last_error

    def should_paginate(self, page: Page, kind: str) -> bool:
        """
        Decide whether another page must be fetched.

        Requires a non-blank nextPath and a full page. A short page ends
        pagination even when a nextPath is present; a full final page costs
        one extra request that comes back short or empty.
        """
        next_path = page.pagination.next_path
        has_next_path = bool(next_path.strip())
        exact_limit = len(page.data) == self.settings.page_limit
        decision = has_next_path and exact_limit
        logfire.debug(
            "Pagination analysis",
            kind=kind,
            next_path=next_path,
            has_next_path=has_next_path,
            item_count=len(page.data),
            limit=self.settings.page_limit,
            exact_limit=exact_limit,
            should_paginate=decision,
        )
        return decision

    async def fetch_all(
        self, kind: str, path: str, page_model: Type[Page]
    ) -> FetchResult:
        """
        Fetch every page of a list endpoint.

        The first page is requested with an explicit limit/offset body;
        continuation paths already encode both and get an empty body.
        A continuation path seen twice stops pagination.

        Returns:
            FetchResult with all items gathered; on failure, the items
            gathered before the failing page and the error
        """
        result: FetchResult = FetchResult()
        first_body = {"limit": self.settings.page_limit, "offset": 0}

        try:
            page = await self.fetch_page_with_retry(path, page_model, first_body)
        except OutlineAPIError as e:
            result.error = e
            return result

        result.items.extend(page.data)
        result.pages = 1
        logfire.info(f"Fetched {kind} first page", kind=kind, count=len(page.data))

        visited: set[str] = set()
        while self.should_paginate(page, kind):
            next_path = page.pagination.next_path.strip()
            if next_path in visited:
                logfire.warn(
                    "Pagination cycle detected, stopping",
                    kind=kind,
                    next_path=next_path,
                    pages=result.pages,
                )
                break
            visited.add(next_path)

            try:
                page = await self.fetch_page_with_retry(next_path, page_model, {})
            except OutlineAPIError as e:
                result.error = e
                logfire.warn(
                    f"Stopped fetching {kind} on page {result.pages + 1}",
                    kind=kind,
                    items_so_far=len(result.items),
                    error=str(e),
                )
                return result

            result.items.extend(page.data)
            result.pages += 1
            logfire.info(
                f"Fetched {kind} page",
                kind=kind,
                page=result.pages,
                count=len(page.data),
                total=len(result.items),
            )

        logfire.info(
            f"Completed fetching {kind}",
            kind=kind,
            total=len(result.items),
            pages=result.pages,
        )
        return result

    async def fetch_all_collections(self) -> FetchResult[Collection]:
        """Fetch all collections (collections.list)."""
        return await self.fetch_all("collections", COLLECTIONS_LIST_PATH, CollectionsPage)

    async def fetch_all_documents(self) -> FetchResult[Document]:
        """Fetch all documents (documents.list)."""
        return await self.fetch_all("documents", DOCUMENTS_LIST_PATH, DocumentsPage)

    async def fetch_all_users(self) -> FetchResult[User]:
        """Fetch all users (users.list)."""
        return await self.fetch_all("users", USERS_LIST_PATH, UsersPage)
