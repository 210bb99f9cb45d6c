"""RNS reverse-record resolution.

Reverse records live under ``<address without 0x>.addr.reverse``. The registry
maps that node to a resolver contract, which in turn returns the name.
REF: https://developers.rsk.co/rif/rns/architecture/registry/
"""

from __future__ import annotations

from eth_utils import keccak
from web3 import AsyncWeb3

from ..abi import load_name_resolver_abi, load_rns_registry_abi
from ..clients.rpc import build_async_web3, call_contract, is_zero_address
from ..constants import REVERSE_RECORD_SUFFIX
from ..domain import IdentitySource
from ..errors import Ok, SourceResult
from ..logger import get_logger
from ..settings import RifLookupSettings

logger = get_logger(__name__)

EMPTY_NODE = b"\x00" * 32


def namehash(name: str) -> bytes:
    """Compute the EIP-137 namehash of a dot-separated name."""
    node = EMPTY_NODE
    if name:
        for label in reversed(name.split(".")):
            node = keccak(node + keccak(text=label))
    return node


def reverse_node(address: str) -> bytes:
    """Namehash of the reverse record for ``address``."""
    return namehash(f"{address.lower()[2:]}.{REVERSE_RECORD_SUFFIX}")


class RnsRegistryResolver:
    """Looks up the reverse record of an address in the RNS registry."""

    def __init__(self, settings: RifLookupSettings, w3: AsyncWeb3 | None = None):
        self.settings = settings
        self.w3 = w3 or build_async_web3(
            settings.rpc_url_required, timeout=settings.request_timeout
        )
        self.registry_address = AsyncWeb3.to_checksum_address(
            settings.rns_registry_address_required
        )
        self.registry = self.w3.eth.contract(
            address=self.registry_address, abi=load_rns_registry_abi()
        )

    @property
    def source(self) -> IdentitySource:
        return IdentitySource.REGISTRY

    async def lookup_name(self, address: str) -> SourceResult[str | None]:
        """Return the reverse-record name of ``address``, ``Ok(None)`` if unset."""
        node = reverse_node(address)

        resolver = await self._resolver_of(node)
        if not isinstance(resolver, Ok):
            logger.warning("RNS resolver lookup failed for %s: %s", address, resolver.message)
            return resolver
        if is_zero_address(resolver.value):
            logger.debug("No RNS reverse resolver set for %s", address)
            return Ok(None)

        name = await self._name_of(resolver.value, node)
        if not isinstance(name, Ok):
            logger.warning(
                "RNS name lookup failed for %s on resolver %s: %s",
                address,
                resolver.value,
                name.message,
            )
            return name

        return Ok(name.value or None)

    async def _resolver_of(self, node: bytes) -> SourceResult[str]:
        return await call_contract(self.registry.functions.resolver(node).call())

    async def _name_of(self, resolver_address: str, node: bytes) -> SourceResult[str]:
        resolver = self.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(resolver_address),
            abi=load_name_resolver_abi(),
        )
        return await call_contract(resolver.functions.name(node).call())
