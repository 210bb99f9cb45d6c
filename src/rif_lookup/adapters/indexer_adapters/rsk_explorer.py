"""Rootstock explorer API indexer adapter."""

from __future__ import annotations

from typing import Any

from ...clients.paginated import Page, PageRequest, PageScheme
from ...domain import IdentitySource, PaginationCursor, TransactionEvent
from ...errors import UpstreamError
from ...logger import get_logger
from .base import BaseIndexerAdapter, method_name, parse_position, parse_timestamp

logger = get_logger(__name__)

SUCCESS_STATUSES = {"0x1", "0x01", "1", 1, True}


class RskExplorerTransactionsScheme(PageScheme[TransactionEvent]):
    """Cursor pagination over ``getTransactionsByAddress``.

    The cursor is the opaque ``pages.next`` token, passed back as ``next``.
    """

    def __init__(self, api_url: str, page_size: int = 50):
        self.api_url = api_url.rstrip("/")
        self.page_size = page_size

    def first_request(self, seed: str) -> PageRequest:
        if seed.startswith(("http://", "https://")):
            return PageRequest(url=seed)
        return PageRequest(
            url=self.api_url,
            params={
                "module": "transactions",
                "action": "getTransactionsByAddress",
                "address": seed.lower(),
                "limit": self.page_size,
            },
        )

    def next_request(
        self, previous: PageRequest, cursor: PaginationCursor
    ) -> PageRequest:
        return PageRequest(url=previous.url, params={**previous.params, "next": cursor})

    def parse(self, payload: Any) -> Page[TransactionEvent]:
        if not isinstance(payload, dict):
            raise UpstreamError("Unexpected explorer payload")
        data = payload.get("data")
        if data is None:
            data = []
        if not isinstance(data, list):
            raise UpstreamError("Unexpected explorer transactions payload")

        pages = payload.get("pages")
        cursor = pages.get("next") if isinstance(pages, dict) else None

        events = [
            event
            for event in (self._parse_item(item) for item in data)
            if event is not None
        ]
        return Page(items=events, cursor=cursor or None)

    @staticmethod
    def _parse_item(item: Any) -> TransactionEvent | None:
        if not isinstance(item, dict):
            return None

        receipt = item.get("receipt")
        status = receipt.get("status") if isinstance(receipt, dict) else item.get("status")
        if status not in SUCCESS_STATUSES:
            return None

        counterparty = item.get("to")
        if not isinstance(counterparty, str) or not counterparty:
            return None

        try:
            timestamp = parse_timestamp(item.get("timestamp"))
        except UpstreamError:
            logger.debug("Skipping explorer item without timestamp: %s", item.get("hash"))
            return None

        raw_method = item.get("method") or item.get("_methodName") or item.get("input")
        return TransactionEvent(
            method=method_name(raw_method),
            counterparty=counterparty,
            timestamp=timestamp,
            block_number=parse_position(item.get("blockNumber")),
            position=parse_position(item.get("transactionIndex")),
        )


class RskExplorerAdapter(BaseIndexerAdapter):
    """Adapter for the Rootstock explorer API (transaction history only)."""

    @property
    def adapter_name(self) -> str:
        return "rsk_explorer"

    @property
    def source(self) -> IdentitySource:
        return IdentitySource.INDEXER_B

    def build_scheme(self) -> PageScheme[TransactionEvent]:
        if not self.settings.rsk_explorer_api_url:
            raise ValueError("rsk_explorer_api_url must be configured")
        return RskExplorerTransactionsScheme(
            self.settings.rsk_explorer_api_url,
            page_size=self.settings.indexer_page_size,
        )
