"""Cursor-following client for paged indexer APIs.

This module provides a reusable client that walks a paged transaction API one
page at a time until a predicate matches or the pages run out.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, Mapping, TypeVar

import backoff
import requests

from ..domain import PaginationCursor
from ..errors import (
    Err,
    NetworkError,
    RetriesExhaustedError,
    RifLookupError,
    UpstreamError,
)
from ..logger import get_logger
from .http import fetch_json

logger = get_logger(__name__)

ItemT = TypeVar("ItemT")

RETRYABLE_ERRORS = (NetworkError, UpstreamError)


class TerminationReason(str, Enum):
    FOUND = "found"
    EXHAUSTED = "exhausted"
    RETRIES_EXHAUSTED = "retries_exhausted"


@dataclass(frozen=True)
class PageRequest:
    """A single HTTP GET against an indexer."""

    url: str
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class Page(Generic[ItemT]):
    items: list[ItemT]
    cursor: PaginationCursor | None = None


@dataclass
class PaginationResult(Generic[ItemT]):
    matched: bool
    items: list[ItemT]
    reason: TerminationReason
    pages: int = 0
    retries_used: int = 0
    error: Err | None = None


class PageScheme(ABC, Generic[ItemT]):
    """Indexer-specific pagination: how to ask for pages and read them back."""

    @abstractmethod
    def first_request(self, seed: str) -> PageRequest:
        """Build the request for the first page from an address or URL."""
        ...

    @abstractmethod
    def next_request(
        self, previous: PageRequest, cursor: PaginationCursor
    ) -> PageRequest:
        """Build the request that follows ``previous`` using ``cursor``."""
        ...

    @abstractmethod
    def parse(self, payload: Any) -> Page[ItemT]:
        """Turn a decoded JSON body into a page.

        Raises:
            UpstreamError: If the payload does not have the expected shape
        """
        ...


class _RetryBudget:
    """Retries left for a whole traversal; never refilled between pages."""

    def __init__(self, max_retries: int):
        self.max_retries = max_retries
        self.used = 0

    @property
    def remaining(self) -> int:
        return max(0, self.max_retries - self.used)

    def consume(self) -> None:
        self.used += 1


class PaginatedIndexerClient(Generic[ItemT]):
    """Client for walking a paged indexer API.

    Provides async-compatible traversal with:
    - Early exit as soon as a page matches the predicate
    - One retry budget shared by every page of a traversal
    - Exponential backoff with full jitter between retries
    - Pluggable request building and parsing via ``PageScheme``
    - A fresh HTTP session per traversal, closed when it ends
    """

    def __init__(
        self,
        scheme: PageScheme[ItemT],
        *,
        max_retries: int = 3,
        request_timeout: float = 15.0,
        backoff_factor: float = 0.5,
        backoff_max: float = 8.0,
        headers: Mapping[str, str] | None = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        """Initialize the paginated client.

        Args:
            scheme: Indexer-specific pagination scheme
            max_retries: Default retry budget for a traversal
            request_timeout: HTTP request timeout in seconds
            backoff_factor: Multiplier of the exponential backoff, 0 disables waiting
            backoff_max: Upper bound for a single backoff wait in seconds
            headers: Extra headers sent with every request
            session_factory: Builds the session used by a single traversal
        """
        self._scheme = scheme
        self._max_retries = max_retries
        self._request_timeout = request_timeout
        self._backoff_factor = backoff_factor
        self._backoff_max = backoff_max
        self._headers = dict(headers or {})
        self._session_factory = session_factory

    async def fetch_until(
        self,
        seed: str,
        match: Callable[[ItemT], bool],
        max_retries: int | None = None,
    ) -> PaginationResult[ItemT]:
        """Fetch pages until ``match`` accepts an item or the pages run out.

        Args:
            seed: Address or URL the scheme turns into the first request
            match: Predicate evaluated on the items of each fetched page
            max_retries: Retry budget for the whole traversal (defaults to the
                client's budget)

        Returns:
            PaginationResult with every item accumulated up to termination
        """
        budget = _RetryBudget(self._max_retries if max_retries is None else max_retries)
        with self._session_factory() as session:
            session.headers.update(self._headers)
            return await self._traverse(seed, match, budget, session)

    async def _traverse(
        self,
        seed: str,
        match: Callable[[ItemT], bool],
        budget: _RetryBudget,
        session: requests.Session,
    ) -> PaginationResult[ItemT]:
        items: list[ItemT] = []
        pages = 0
        request = self._scheme.first_request(seed)
        previous_cursor: PaginationCursor | None = None

        while True:
            try:
                page = await self._fetch_page(request, budget, session)
            except RetriesExhaustedError as exc:
                logger.warning(
                    "Indexer traversal gave up — url=%s pages=%d retries=%d error=%s",
                    request.url,
                    pages,
                    budget.used,
                    exc,
                )
                return PaginationResult(
                    matched=False,
                    items=items,
                    reason=TerminationReason.RETRIES_EXHAUSTED,
                    pages=pages,
                    retries_used=budget.used,
                    error=Err.from_exception(exc),
                )

            pages += 1
            items.extend(page.items)

            if any(match(item) for item in page.items):
                logger.debug(
                    "Indexer traversal matched — url=%s pages=%d", request.url, pages
                )
                return PaginationResult(
                    matched=True,
                    items=items,
                    reason=TerminationReason.FOUND,
                    pages=pages,
                    retries_used=budget.used,
                )

            if page.cursor is None:
                break
            if page.cursor == previous_cursor:
                logger.warning(
                    "Indexer returned the same cursor twice, stopping — url=%s cursor=%s",
                    request.url,
                    page.cursor,
                )
                break

            previous_cursor = page.cursor
            try:
                request = self._scheme.next_request(request, page.cursor)
            except RifLookupError as exc:
                logger.warning(
                    "Indexer cursor unusable, stopping — url=%s pages=%d error=%s",
                    request.url,
                    pages,
                    exc,
                )
                return PaginationResult(
                    matched=False,
                    items=items,
                    reason=TerminationReason.EXHAUSTED,
                    pages=pages,
                    retries_used=budget.used,
                    error=Err.from_exception(exc),
                )

        logger.debug(
            "Indexer traversal exhausted — seed=%s pages=%d items=%d",
            seed,
            pages,
            len(items),
        )
        return PaginationResult(
            matched=False,
            items=items,
            reason=TerminationReason.EXHAUSTED,
            pages=pages,
            retries_used=budget.used,
        )

    async def _fetch_page(
        self, request: PageRequest, budget: _RetryBudget, session: requests.Session
    ) -> Page[ItemT]:
        """Fetch and parse one page, retrying from the shared budget."""

        def _on_backoff(details: Any) -> None:
            budget.consume()
            logger.warning(
                "Indexer request failed (retry %d of %d): %s",
                budget.used,
                budget.max_retries,
                details.get("exception"),
            )

        @backoff.on_exception(
            backoff.expo,
            RETRYABLE_ERRORS,
            max_tries=budget.remaining + 1,
            on_backoff=_on_backoff,
            jitter=backoff.full_jitter,
            factor=self._backoff_factor,
            max_value=self._backoff_max,
        )
        async def _attempt() -> Page[ItemT]:
            payload = await asyncio.to_thread(
                fetch_json,
                session,
                request.url,
                request.params,
                timeout=self._request_timeout,
            )
            return self._scheme.parse(payload)

        try:
            return await _attempt()
        except RETRYABLE_ERRORS as exc:
            raise RetriesExhaustedError(
                f"retry budget of {budget.max_retries} exhausted: {exc}"
            ) from exc
