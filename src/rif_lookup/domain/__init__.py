"""Domain models for identity and staking lookups."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Union

SECONDS_PER_DAY = 24 * 60 * 60

PaginationCursor = Union[str, dict[str, Any]]


class IdentitySource(str, Enum):
    REGISTRY = "registry"
    INDEXER_A = "indexer_a"
    INDEXER_B = "indexer_b"
    INFERRED = "inferred"


@dataclass(frozen=True)
class AddressIdentity:
    """Identity resolved for an address from one or more sources."""

    address: str
    name: str | None = None
    registered: bool = False
    source: IdentitySource | None = None


@dataclass(frozen=True)
class TransactionEvent:
    """A successful transaction involving the queried address.

    ``block_number`` and ``position`` order transactions mined in the same
    second; None when the indexer does not report them.
    """

    method: str
    counterparty: str
    timestamp: datetime
    block_number: int | None = None
    position: int | None = None


@dataclass(frozen=True)
class HoldingInterval:
    """A continuous staking run.

    ``end`` is None while the stake is still held. ``start`` is None only for
    the placeholder interval of an address that never staked.
    """

    start: datetime | None
    end: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.start is not None and self.end is None

    def duration_days(self, now: datetime) -> int:
        if self.start is None:
            return 0
        elapsed = (self.end or now) - self.start
        days = elapsed.total_seconds() / SECONDS_PER_DAY
        return max(0, math.floor(days + 0.5))


@dataclass(frozen=True)
class PriceQuote:
    """Last known USD quote for a token.

    ``fetched_at`` is None while the compiled-in default is still in use.
    """

    value_usd: float
    fetched_at: datetime | None
    ttl: timedelta

    def is_stale(self, now: datetime) -> bool:
        if self.fetched_at is None:
            return True
        return now - self.fetched_at > self.ttl


@dataclass(frozen=True)
class IdentityResponse:
    name: str | None
    registered: bool

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "registered": self.registered}


@dataclass(frozen=True)
class StakingAnalytics:
    staked_balance: float
    staked_balance_usd: float
    total_supply: float
    voting_power: float
    holding_period_days: int
    network: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "stakedBalance": self.staked_balance,
            "stakedBalanceUSD": self.staked_balance_usd,
            "totalSupply": self.total_supply,
            "votingPower": self.voting_power,
            "holdingPeriodDays": self.holding_period_days,
            "network": self.network,
        }


@dataclass(frozen=True)
class LookupResponse:
    address: str
    identity: IdentityResponse
    staking: StakingAnalytics

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "identity": self.identity.to_dict(),
            "staking": self.staking.to_dict(),
        }
