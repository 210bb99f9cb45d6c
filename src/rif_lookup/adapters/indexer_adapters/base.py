from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Iterable

import requests
from eth_utils import encode_hex, function_signature_to_4byte_selector

from ...clients.http import fetch_json
from ...clients.paginated import PageScheme, PaginatedIndexerClient
from ...constants import (
    RNS_REGISTRAR_FUNCTION_SIGNATURES,
    STRIF_FUNCTION_SIGNATURES,
)
from ...domain import IdentitySource, TransactionEvent
from ...errors import Ok, SourceResult, UpstreamError
from ...logger import get_logger
from ...settings import RifLookupSettings

logger = get_logger(__name__)

SELECTOR_NAMES: dict[str, str] = {
    encode_hex(function_signature_to_4byte_selector(signature)): signature.split("(")[0]
    for signature in STRIF_FUNCTION_SIGNATURES + RNS_REGISTRAR_FUNCTION_SIGNATURES
}


def method_name(raw: str | None) -> str:
    """Normalize an indexer's method field to a bare function name.

    Indexers report either a decoded name (``depositFor``), a full signature
    (``depositFor(address,uint256)``), or the raw selector / calldata.
    """
    if not raw:
        return ""
    raw = raw.strip()
    if raw.startswith("0x"):
        return SELECTOR_NAMES.get(raw[:10].lower(), raw[:10].lower())
    return raw.split("(")[0]


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string or unix seconds into an aware UTC datetime.

    Raises:
        UpstreamError: If the value is neither
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return datetime.fromtimestamp(int(text), tz=timezone.utc)
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError as exc:
            raise UpstreamError(f"Invalid timestamp: {value!r}") from exc
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    raise UpstreamError(f"Invalid timestamp: {value!r}")


def parse_position(value: Any) -> int | None:
    """Read a block number or transaction index given as int, decimal or hex."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text.startswith("0x"):
            try:
                return int(text, 16)
            except ValueError:
                return None
        if text.isdigit():
            return int(text)
    return None


class BaseIndexerAdapter(ABC):
    """Abstract base class for off-chain indexer adapters.

    An adapter knows how to page through an indexer's transaction history for
    an address and, optionally, how to ask the indexer for a name directly.
    """

    supports_name_lookup: bool = False

    def __init__(
        self,
        settings: RifLookupSettings,
        *,
        session: requests.Session | None = None,
    ):
        self.settings = settings
        self._session = session or requests.Session()
        self._session.headers.update(self.request_headers())
        self.client: PaginatedIndexerClient[TransactionEvent] = PaginatedIndexerClient(
            self.build_scheme(),
            max_retries=settings.indexer_max_retries,
            request_timeout=settings.request_timeout,
            backoff_factor=settings.indexer_backoff_factor,
            backoff_max=settings.indexer_backoff_max,
            headers=self.request_headers(),
        )

    @property
    @abstractmethod
    def adapter_name(self) -> str:
        """Return the name of this adapter."""
        ...

    @property
    @abstractmethod
    def source(self) -> IdentitySource:
        """Identity source reported when this indexer supplies a name."""
        ...

    @abstractmethod
    def build_scheme(self) -> PageScheme[TransactionEvent]:
        """Return the pagination scheme of the indexer's transaction API."""
        ...

    def request_headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    async def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        return await asyncio.to_thread(
            fetch_json,
            self._session,
            url,
            params,
            timeout=self.settings.request_timeout,
        )

    async def lookup_name(self, address: str) -> SourceResult[str | None]:
        """Ask the indexer for a name record bound to ``address``."""
        return Ok(None)

    async def find_registration_evidence(
        self, address: str, registration_contracts: Iterable[str]
    ) -> SourceResult[bool]:
        """Look for any successful call from ``address`` to a registration contract.

        The method called is irrelevant; only the counterparty is matched.
        """
        targets = {contract.lower() for contract in registration_contracts}
        if not targets:
            return Ok(False)

        result = await self.client.fetch_until(
            address, lambda event: event.counterparty.lower() in targets
        )
        if result.matched:
            logger.debug(
                "%s found registration evidence for %s after %d page(s)",
                self.adapter_name,
                address,
                result.pages,
            )
            return Ok(True)
        if result.error:
            return result.error
        return Ok(False)

    async def fetch_history(self, address: str) -> SourceResult[list[TransactionEvent]]:
        """Collect the full transaction history of ``address``.

        A traversal cut short by the retry budget or an unusable cursor still
        returns what it gathered, unless nothing was gathered at all.
        """
        result = await self.client.fetch_until(address, lambda _event: False)
        if result.error:
            if not result.items:
                return result.error
            logger.warning(
                "%s history for %s is partial: %d event(s) over %d page(s)",
                self.adapter_name,
                address,
                len(result.items),
                result.pages,
            )
        return Ok(result.items)
