from __future__ import annotations

from decimal import Decimal

from web3 import AsyncWeb3

from ...abi import load_strif_abi
from ...clients.rpc import build_async_web3, call_contract
from ...constants import STRIF_DECIMALS
from ...errors import Ok, SourceResult
from ...logger import get_logger
from ...settings import RifLookupSettings

logger = get_logger(__name__)


def format_units(value: int, decimals: int = STRIF_DECIMALS) -> float:
    """Convert a raw token amount to a float in whole-token units."""
    return float(Decimal(int(value)) / (Decimal(10) ** decimals))


class StRIFStakingReader:
    """Reads staking figures from the stRIF (staked RIF) token contract."""

    def __init__(self, settings: RifLookupSettings, w3: AsyncWeb3 | None = None):
        self.settings = settings
        self.w3 = w3 or build_async_web3(
            settings.rpc_url_required, timeout=settings.request_timeout
        )
        self.token_address = AsyncWeb3.to_checksum_address(
            settings.strif_address_required
        )
        self.contract = self.w3.eth.contract(
            address=self.token_address, abi=load_strif_abi()
        )

    async def balance_of(self, address: str) -> SourceResult[float]:
        account = AsyncWeb3.to_checksum_address(address)
        return self._formatted(
            "balanceOf",
            await call_contract(self.contract.functions.balanceOf(account).call()),
        )

    async def total_supply(self) -> SourceResult[float]:
        return self._formatted(
            "totalSupply",
            await call_contract(self.contract.functions.totalSupply().call()),
        )

    async def votes_of(self, address: str) -> SourceResult[float]:
        account = AsyncWeb3.to_checksum_address(address)
        return self._formatted(
            "getVotes",
            await call_contract(self.contract.functions.getVotes(account).call()),
        )

    def _formatted(self, fn_name: str, result: SourceResult[int]) -> SourceResult[float]:
        if isinstance(result, Ok):
            return Ok(format_units(result.value))
        logger.warning(
            "stRIF %s failed on %s — %s", fn_name, self.token_address, result.message
        )
        return result
