from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError

from rif_lookup.adapters.staking import StRIFStakingReader
from rif_lookup.adapters.staking.strif import format_units
from rif_lookup.errors import Err, ErrorKind, Ok
from rif_lookup.settings import RifLookupSettings

ACCOUNT = "0x1234567890abcdef1234567890abcdef12345678"


@pytest.fixture
def reader():
    reader = StRIFStakingReader(RifLookupSettings(), w3=MagicMock())
    reader.contract = MagicMock()
    return reader


def _stub(reader, fn_name: str, **call_kwargs):
    call = AsyncMock(**call_kwargs)
    getattr(reader.contract.functions, fn_name).return_value.call = call
    return call


def test_format_units_uses_token_decimals():
    assert format_units(1_500_000_000_000_000_000) == 1.5
    assert format_units(0) == 0.0
    assert format_units(1234, decimals=2) == 12.34


@pytest.mark.asyncio
async def test_balance_of_is_scaled_to_whole_tokens(reader):
    _stub(reader, "balanceOf", return_value=250 * 10**18)

    assert await reader.balance_of(ACCOUNT) == Ok(250.0)
    reader.contract.functions.balanceOf.assert_called_once_with(
        AsyncWeb3.to_checksum_address(ACCOUNT)
    )


@pytest.mark.asyncio
async def test_total_supply_and_votes(reader):
    _stub(reader, "totalSupply", return_value=10**24)
    _stub(reader, "getVotes", return_value=3 * 10**17)

    assert await reader.total_supply() == Ok(1_000_000.0)
    assert await reader.votes_of(ACCOUNT) == Ok(0.3)


@pytest.mark.asyncio
async def test_revert_is_an_upstream_error(reader):
    _stub(reader, "balanceOf", side_effect=ContractLogicError("execution reverted"))

    result = await reader.balance_of(ACCOUNT)

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.UPSTREAM


@pytest.mark.asyncio
async def test_transport_failure_is_a_network_error(reader):
    _stub(reader, "totalSupply", side_effect=aiohttp.ClientConnectionError("refused"))

    result = await reader.total_supply()

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.NETWORK
