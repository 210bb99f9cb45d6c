"""Name resolution across the RNS registry and off-chain indexers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence

from ..adapters.indexer_adapters.base import BaseIndexerAdapter
from ..domain import AddressIdentity, IdentitySource
from ..errors import Err, Ok, SourceResult, unwrap_or
from ..logger import get_logger
from ..resolvers.rns_registry import RnsRegistryResolver

logger = get_logger(__name__)


@dataclass(frozen=True)
class SourceOutcome:
    """What one source reported for an address."""

    source: IdentitySource
    name: SourceResult[str | None]
    evidence: SourceResult[bool] = Ok(False)

    @property
    def concrete_name(self) -> str | None:
        name = unwrap_or(self.name, None)
        if isinstance(name, str) and name.strip():
            return name.strip()
        return None

    @property
    def has_evidence(self) -> bool:
        return bool(unwrap_or(self.evidence, False))


Rank = Callable[[str, Sequence[SourceOutcome]], "AddressIdentity | None"]


def _concrete_name(address: str, outcomes: Sequence[SourceOutcome]) -> AddressIdentity | None:
    for outcome in outcomes:
        name = outcome.concrete_name
        if name:
            return AddressIdentity(
                address=address, name=name, registered=True, source=outcome.source
            )
    return None


def _inferred_registration(
    address: str, outcomes: Sequence[SourceOutcome]
) -> AddressIdentity | None:
    if any(outcome.has_evidence for outcome in outcomes):
        return AddressIdentity(
            address=address,
            name=None,
            registered=True,
            source=IdentitySource.INFERRED,
        )
    return None


# Highest precedence first
PRECEDENCE: tuple[Rank, ...] = (_concrete_name, _inferred_registration)


def merge_identities(
    address: str, outcomes: Sequence[SourceOutcome]
) -> AddressIdentity:
    """Pick the identity of ``address`` from per-source outcomes.

    A concrete name beats inferred registration evidence, which beats nothing.
    Between concrete names the first outcome in query order wins, so
    ``outcomes`` must be ordered registry first, then indexers as configured.
    Failed sources count as "no match".
    """
    for rank in PRECEDENCE:
        identity = rank(address, outcomes)
        if identity is not None:
            return identity
    return AddressIdentity(address=address, name=None, registered=False, source=None)


def _as_result(value: Any, label: str) -> SourceResult[Any]:
    """Turn a gather() slot into a result, logging failures."""
    if isinstance(value, BaseException):
        logger.error("%s raised unexpectedly: %s", label, value)
        return Err.from_exception(value)
    if isinstance(value, Err):
        logger.debug("%s failed — %s: %s", label, value.kind.value, value.message)
    return value


class NameResolutionAggregator:
    """Resolves an address to a name using every configured source at once."""

    def __init__(
        self,
        registry: RnsRegistryResolver | None,
        indexers: Sequence[BaseIndexerAdapter],
        registration_contracts: Sequence[str],
    ):
        self.registry = registry
        self.indexers = list(indexers)
        self.registration_contracts = list(registration_contracts)

    async def resolve(self, address: str) -> AddressIdentity:
        """Resolve ``address``; never raises for source failures."""
        labels: list[str] = []
        calls: list[Awaitable[SourceResult[Any]]] = []

        if self.registry is not None:
            labels.append("registry:name")
            calls.append(self.registry.lookup_name(address))

        for indexer in self.indexers:
            if indexer.supports_name_lookup:
                labels.append(f"{indexer.adapter_name}:name")
                calls.append(indexer.lookup_name(address))
            labels.append(f"{indexer.adapter_name}:evidence")
            calls.append(
                indexer.find_registration_evidence(address, self.registration_contracts)
            )

        raw = await asyncio.gather(*calls, return_exceptions=True)
        results = {
            label: _as_result(value, label) for label, value in zip(labels, raw)
        }

        outcomes: list[SourceOutcome] = []
        if self.registry is not None:
            outcomes.append(
                SourceOutcome(
                    source=self.registry.source, name=results["registry:name"]
                )
            )
        for indexer in self.indexers:
            outcomes.append(
                SourceOutcome(
                    source=indexer.source,
                    name=results.get(f"{indexer.adapter_name}:name", Ok(None)),
                    evidence=results[f"{indexer.adapter_name}:evidence"],
                )
            )

        identity = merge_identities(address, outcomes)
        logger.info(
            "Resolved %s — name=%s registered=%s source=%s",
            address,
            identity.name,
            identity.registered,
            identity.source.value if identity.source else None,
        )
        return identity
