"""Composition root: identity and staking lookups for one address."""

from __future__ import annotations

import asyncio
import re
from datetime import datetime
from typing import Any, Sequence

from .adapters.indexer_adapters import get_adapter_class
from .adapters.indexer_adapters.base import BaseIndexerAdapter
from .adapters.staking import StRIFStakingReader
from .domain import (
    AddressIdentity,
    IdentityResponse,
    LookupResponse,
    StakingAnalytics,
)
from .errors import Err, Ok, ValidationError, unwrap_or
from .logger import get_logger
from .pricing.quote_cache import Clock, PriceQuoteCache, get_price_cache, utc_now
from .processors.holding_period import holding_period_days, reconstruct
from .processors.name_resolution import NameResolutionAggregator
from .resolvers.rns_registry import RnsRegistryResolver
from .settings import RifLookupSettings

logger = get_logger(__name__)

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def validate_address(address: Any) -> str:
    """Return ``address`` if it is a 0x-prefixed 40 hex digit string.

    Raises:
        ValidationError: For anything else
    """
    if not isinstance(address, str) or ADDRESS_PATTERN.fullmatch(address) is None:
        raise ValidationError(str(address))
    return address


def _settled(value: Any, label: str, default: Any) -> Any:
    """Collapse one gather() slot into a plain value, logging failures."""
    if isinstance(value, BaseException):
        logger.error("%s raised unexpectedly: %s", label, value)
        return default
    if isinstance(value, Err):
        logger.warning("%s unavailable — %s: %s", label, value.kind.value, value.message)
        return default
    if isinstance(value, Ok):
        return value.value
    return value


class IdentityAndStakingService:
    """Answers "who is this address" and "how long has it been staking".

    Every upstream query for a request runs concurrently and fails alone; a
    degraded answer is always preferred over an error. Only a malformed
    address is reported to the caller, before any upstream is contacted.
    """

    def __init__(
        self,
        settings: RifLookupSettings,
        *,
        aggregator: NameResolutionAggregator,
        staking_reader: StRIFStakingReader,
        history_indexers: Sequence[BaseIndexerAdapter],
        price_cache: PriceQuoteCache,
        clock: Clock = utc_now,
    ):
        self.settings = settings
        self.aggregator = aggregator
        self.staking_reader = staking_reader
        self.history_indexers = list(history_indexers)
        self.price_cache = price_cache
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: RifLookupSettings) -> IdentityAndStakingService:
        """Wire every collaborator from configuration."""
        indexers = [get_adapter_class(name)(settings) for name in settings.indexers]
        aggregator = NameResolutionAggregator(
            registry=RnsRegistryResolver(settings),
            indexers=indexers,
            registration_contracts=settings.registration_contracts,
        )
        return cls(
            settings,
            aggregator=aggregator,
            staking_reader=StRIFStakingReader(settings),
            history_indexers=indexers,
            price_cache=get_price_cache(settings),
        )

    async def resolve(self, address: str) -> AddressIdentity:
        return await self.aggregator.resolve(validate_address(address))

    async def identity(self, address: str) -> IdentityResponse:
        resolved = await self.resolve(address)
        return IdentityResponse(name=resolved.name, registered=resolved.registered)

    async def staking(self, address: str) -> StakingAnalytics:
        """Read stRIF figures, the USD quote and the holding period at once."""
        address = validate_address(address)
        reader = self.staking_reader

        balance, supply, votes, price, holding_days = await asyncio.gather(
            reader.balance_of(address),
            reader.total_supply(),
            reader.votes_of(address),
            self.price_cache.get_usd_value(),
            self.holding_period(address),
            return_exceptions=True,
        )

        staked_balance = _settled(balance, "stRIF balanceOf", 0.0)
        price_usd = _settled(price, "USD quote", self.price_cache.quote.value_usd)

        return StakingAnalytics(
            staked_balance=staked_balance,
            staked_balance_usd=price_usd * staked_balance,
            total_supply=_settled(supply, "stRIF totalSupply", 0.0),
            voting_power=_settled(votes, "stRIF getVotes", 0.0),
            holding_period_days=_settled(holding_days, "holding period", 0),
            network=self.settings.network.value,
        )

    async def lookup(self, address: str) -> LookupResponse:
        """Identity and staking analytics in one concurrent pass."""
        address = validate_address(address)
        identity, staking = await asyncio.gather(
            self.identity(address), self.staking(address)
        )
        return LookupResponse(address=address, identity=identity, staking=staking)

    async def holding_period(self, address: str, now: datetime | None = None) -> int:
        """Longest continuous stRIF holding run of ``address`` in days.

        Indexers are tried in configured order until one returns a history.
        """
        staking_contract = self.settings.strif_address_required
        for indexer in self.history_indexers:
            history = await indexer.fetch_history(address)
            if isinstance(history, Err):
                logger.warning(
                    "%s history unavailable for %s — %s",
                    indexer.adapter_name,
                    address,
                    history.message,
                )
                continue

            intervals = reconstruct(unwrap_or(history, []), staking_contract)
            return holding_period_days(intervals, now or self.clock())

        return 0
