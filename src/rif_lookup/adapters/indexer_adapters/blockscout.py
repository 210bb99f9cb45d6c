"""Rootstock Blockscout (API v2) indexer adapter."""

from __future__ import annotations

from typing import Any

from ...clients.paginated import Page, PageRequest, PageScheme
from ...domain import IdentitySource, PaginationCursor, TransactionEvent
from ...errors import Err, Ok, RifLookupError, SourceResult, UpstreamError
from ...logger import get_logger
from .base import BaseIndexerAdapter, method_name, parse_position, parse_timestamp

logger = get_logger(__name__)


class BlockscoutTransactionsScheme(PageScheme[TransactionEvent]):
    """Keyset pagination over ``/addresses/{address}/transactions``.

    Pages come newest first. The cursor is the ``next_page_params`` object,
    sent back verbatim as query parameters.
    """

    def __init__(self, api_url: str):
        self.api_url = api_url.rstrip("/")

    def first_request(self, seed: str) -> PageRequest:
        if seed.startswith(("http://", "https://")):
            return PageRequest(url=seed)
        return PageRequest(url=f"{self.api_url}/addresses/{seed}/transactions")

    def next_request(
        self, previous: PageRequest, cursor: PaginationCursor
    ) -> PageRequest:
        if not isinstance(cursor, dict):
            raise UpstreamError(f"Unexpected Blockscout cursor: {cursor!r}")
        return PageRequest(url=previous.url, params={**previous.params, **cursor})

    def parse(self, payload: Any) -> Page[TransactionEvent]:
        if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
            raise UpstreamError("Unexpected Blockscout transactions payload")

        events = [
            event
            for event in (self._parse_item(item) for item in payload["items"])
            if event is not None
        ]
        cursor = payload.get("next_page_params") or None
        return Page(items=events, cursor=cursor)

    @staticmethod
    def _parse_item(item: Any) -> TransactionEvent | None:
        if not isinstance(item, dict):
            return None
        if item.get("status") != "ok" and item.get("result") != "success":
            return None

        to = item.get("to")
        counterparty = to.get("hash") if isinstance(to, dict) else to
        if not counterparty:
            return None

        try:
            timestamp = parse_timestamp(item.get("timestamp"))
        except UpstreamError:
            logger.debug("Skipping Blockscout item without timestamp: %s", item.get("hash"))
            return None

        return TransactionEvent(
            method=method_name(item.get("method") or item.get("raw_input")),
            counterparty=counterparty,
            timestamp=timestamp,
            block_number=parse_position(item.get("block_number", item.get("block"))),
            position=parse_position(item.get("position")),
        )


class BlockscoutAdapter(BaseIndexerAdapter):
    """Adapter for the Rootstock Blockscout explorer.

    Supports both direct name lookup (the address endpoint carries the name
    service domain bound to the address) and paged transaction history.
    """

    supports_name_lookup = True

    @property
    def adapter_name(self) -> str:
        return "blockscout"

    @property
    def source(self) -> IdentitySource:
        return IdentitySource.INDEXER_A

    @property
    def api_url(self) -> str:
        if not self.settings.blockscout_api_url:
            raise ValueError("blockscout_api_url must be configured")
        return self.settings.blockscout_api_url.rstrip("/")

    def request_headers(self) -> dict[str, str]:
        headers = super().request_headers()
        if self.settings.blockscout_api_key:
            headers["x-api-key"] = self.settings.blockscout_api_key.get_secret_value()
        return headers

    def build_scheme(self) -> PageScheme[TransactionEvent]:
        return BlockscoutTransactionsScheme(self.api_url)

    async def lookup_name(self, address: str) -> SourceResult[str | None]:
        try:
            payload = await self.get_json(f"{self.api_url}/addresses/{address}")
        except RifLookupError as exc:
            # Blockscout answers 404 for addresses it has never seen
            if isinstance(exc, UpstreamError) and exc.status_code == 404:
                return Ok(None)
            return Err.from_exception(exc)

        if not isinstance(payload, dict):
            return Err.from_exception(
                UpstreamError("Unexpected Blockscout address payload")
            )

        name = payload.get("ens_domain_name")
        if isinstance(name, str) and name.strip():
            return Ok(name.strip())
        return Ok(None)
