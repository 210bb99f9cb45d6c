"""Contract-call transport helpers built on web3.py's async provider."""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

import aiohttp
from eth_typing import URI
from web3 import AsyncWeb3
from web3.exceptions import Web3Exception

from ..errors import Err, NetworkError, Ok, SourceResult, UpstreamError

T = TypeVar("T")

NETWORK_FAILURES = (aiohttp.ClientError, asyncio.TimeoutError, OSError)
UPSTREAM_FAILURES = (Web3Exception, ValueError, TypeError)


def build_async_web3(rpc_url: str, timeout: float = 15.0) -> AsyncWeb3:
    return AsyncWeb3(
        AsyncWeb3.AsyncHTTPProvider(
            URI(rpc_url), request_kwargs={"timeout": aiohttp.ClientTimeout(total=timeout)}
        )
    )


def is_zero_address(address: str | None) -> bool:
    if not address:
        return True
    return int(address, 16) == 0


async def call_contract(call: Awaitable[T]) -> SourceResult[T]:
    """Await a contract call and report the outcome as a result.

    Transport failures become ``NETWORK`` errors; reverts, undecodable output
    and JSON-RPC errors become ``UPSTREAM`` errors.
    """
    try:
        return Ok(await call)
    except NETWORK_FAILURES as exc:
        return Err.from_exception(NetworkError(f"RPC transport failed: {exc}"))
    except UPSTREAM_FAILURES as exc:
        return Err.from_exception(UpstreamError(f"RPC call failed: {exc}"))
