from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from eth_utils import encode_hex, function_signature_to_4byte_selector

from rif_lookup.adapters.indexer_adapters.base import method_name, parse_position
from rif_lookup.adapters.indexer_adapters.blockscout import (
    BlockscoutAdapter,
    BlockscoutTransactionsScheme,
)
from rif_lookup.clients import paginated
from rif_lookup.clients.paginated import PageRequest, PaginationResult, TerminationReason
from rif_lookup.domain import IdentitySource, TransactionEvent
from rif_lookup.errors import Err, ErrorKind, NetworkError, Ok, UpstreamError
from rif_lookup.settings import RifLookupSettings

ADDRESS = "0x1234567890abcdef1234567890abcdef12345678"
REGISTRAR = "0xd9c79ced86ecf49f5e4a973594634c83197c35ab"
DEPOSIT_FOR = encode_hex(function_signature_to_4byte_selector("depositFor(address,uint256)"))


@pytest.fixture
def settings():
    return RifLookupSettings(blockscout_api_url="https://blockscout.test/api/v2/")


@pytest.fixture
def scheme():
    return BlockscoutTransactionsScheme("https://blockscout.test/api/v2/")


def _item(**overrides):
    item = {
        "hash": "0xfeed",
        "status": "ok",
        "result": "success",
        "timestamp": "2024-03-01T12:00:00.000000Z",
        "method": "depositFor",
        "to": {"hash": "0x5DB91E24BD32059584BBDB831A901F1199F3D459"},
    }
    item.update(overrides)
    return item


def test_first_request_targets_address_transactions(scheme):
    request = scheme.first_request(ADDRESS)

    assert request.url == f"https://blockscout.test/api/v2/addresses/{ADDRESS}/transactions"
    assert dict(request.params) == {}


def test_next_request_sends_cursor_as_query(scheme):
    first = scheme.first_request(ADDRESS)

    follow = scheme.next_request(first, {"block_number": 10, "index": 3})

    assert follow.url == first.url
    assert dict(follow.params) == {"block_number": 10, "index": 3}


def test_next_request_rejects_non_object_cursor(scheme):
    with pytest.raises(UpstreamError):
        scheme.next_request(PageRequest(url="https://x"), "opaque")


def test_parse_reads_items_and_cursor(scheme):
    page = scheme.parse(
        {"items": [_item()], "next_page_params": {"block_number": 9, "index": 0}}
    )

    assert page.cursor == {"block_number": 9, "index": 0}
    assert page.items == [
        TransactionEvent(
            method="depositFor",
            counterparty="0x5DB91E24BD32059584BBDB831A901F1199F3D459",
            timestamp=datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
        )
    ]


def test_parse_last_page_has_no_cursor(scheme):
    page = scheme.parse({"items": [], "next_page_params": None})

    assert page.items == []
    assert page.cursor is None


def test_parse_drops_failed_transactions(scheme):
    page = scheme.parse(
        {
            "items": [
                _item(status="error", result="Reverted"),
                _item(hash="0xok", method="withdrawTo"),
            ]
        }
    )

    assert [event.method for event in page.items] == ["withdrawTo"]


def test_parse_rejects_unexpected_payload(scheme):
    with pytest.raises(UpstreamError):
        scheme.parse({"message": "rate limited"})


def test_parse_maps_raw_selector_to_method(scheme):
    page = scheme.parse({"items": [_item(method=None, raw_input=DEPOSIT_FOR + "00" * 64)]})

    assert page.items[0].method == "depositFor"


def test_method_name_normalization():
    assert method_name("depositFor(address,uint256)") == "depositFor"
    assert method_name("0xa9059cbb000000") == "transfer"
    assert method_name("0xdeadbeef") == "0xdeadbeef"
    assert method_name(None) == ""


@pytest.mark.asyncio
async def test_lookup_name_returns_domain(settings):
    adapter = BlockscoutAdapter(settings)
    adapter.get_json = AsyncMock(return_value={"ens_domain_name": "alice.rsk"})

    result = await adapter.lookup_name(ADDRESS)

    assert result == Ok("alice.rsk")
    adapter.get_json.assert_awaited_once_with(
        f"https://blockscout.test/api/v2/addresses/{ADDRESS}"
    )


@pytest.mark.asyncio
async def test_lookup_name_unknown_address_is_no_name(settings):
    adapter = BlockscoutAdapter(settings)
    adapter.get_json = AsyncMock(side_effect=UpstreamError("HTTP 404", status_code=404))

    assert await adapter.lookup_name(ADDRESS) == Ok(None)


@pytest.mark.asyncio
async def test_lookup_name_network_failure_is_err(settings):
    adapter = BlockscoutAdapter(settings)
    adapter.get_json = AsyncMock(side_effect=NetworkError("refused"))

    result = await adapter.lookup_name(ADDRESS)

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.NETWORK


@pytest.mark.asyncio
async def test_registration_evidence_matches_counterparty_case_insensitively(settings):
    adapter = BlockscoutAdapter(settings)
    event = TransactionEvent(
        method="register",
        counterparty=REGISTRAR.upper().replace("0X", "0x"),
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    captured = {}

    async def _fetch_until(seed, match, max_retries=None):
        captured["matched"] = match(event)
        return PaginationResult(
            matched=True, items=[event], reason=TerminationReason.FOUND, pages=1
        )

    adapter.client.fetch_until = _fetch_until

    result = await adapter.find_registration_evidence(ADDRESS, [REGISTRAR])

    assert result == Ok(True)
    assert captured["matched"] is True


@pytest.mark.asyncio
async def test_registration_evidence_reports_exhausted_retries(settings):
    adapter = BlockscoutAdapter(settings)
    error = Err(kind=ErrorKind.RETRIES_EXHAUSTED, message="budget spent")
    adapter.client.fetch_until = AsyncMock(
        return_value=PaginationResult(
            matched=False,
            items=[],
            reason=TerminationReason.RETRIES_EXHAUSTED,
            error=error,
        )
    )

    assert await adapter.find_registration_evidence(ADDRESS, [REGISTRAR]) == error


@pytest.mark.asyncio
async def test_history_keeps_partial_results(settings):
    adapter = BlockscoutAdapter(settings)
    event = TransactionEvent(
        method="depositFor",
        counterparty=REGISTRAR,
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    adapter.client.fetch_until = AsyncMock(
        return_value=PaginationResult(
            matched=False,
            items=[event],
            reason=TerminationReason.RETRIES_EXHAUSTED,
            pages=1,
            error=Err(kind=ErrorKind.RETRIES_EXHAUSTED, message="budget spent"),
        )
    )

    assert await adapter.fetch_history(ADDRESS) == Ok([event])


def test_adapter_identity(settings):
    adapter = BlockscoutAdapter(settings)

    assert adapter.adapter_name == "blockscout"
    assert adapter.source is IdentitySource.INDEXER_A
    assert adapter.supports_name_lookup is True


def test_api_key_is_sent_as_header(monkeypatch):
    monkeypatch.setenv("RIF_LOOKUP_BLOCKSCOUT_API_KEY", "k-123")

    adapter = BlockscoutAdapter(RifLookupSettings())

    assert adapter._session.headers["x-api-key"] == "k-123"
    assert adapter.client._headers["x-api-key"] == "k-123"


def test_parse_reads_block_and_position(scheme):
    page = scheme.parse({"items": [_item(block_number=6_100_200, position=4)]})

    assert page.items[0].block_number == 6_100_200
    assert page.items[0].position == 4


def test_parse_accepts_legacy_block_field(scheme):
    page = scheme.parse({"items": [_item(block="6100200")]})

    assert page.items[0].block_number == 6_100_200
    assert page.items[0].position is None


def test_parse_position_formats():
    assert parse_position(7) == 7
    assert parse_position("12") == 12
    assert parse_position("0x1f") == 31
    assert parse_position("0xzz") is None
    assert parse_position(True) is None
    assert parse_position(None) is None


@pytest.mark.asyncio
async def test_history_survives_unusable_cursor(settings, monkeypatch):
    calls = []

    def answer(session, url, params=None, *, timeout=15.0):
        calls.append(url)
        return {"items": [_item()], "next_page_params": "opaque-string-cursor"}

    monkeypatch.setattr(paginated, "fetch_json", answer)
    adapter = BlockscoutAdapter(settings)

    result = await adapter.fetch_history(ADDRESS)

    assert result == Ok(
        [
            TransactionEvent(
                method="depositFor",
                counterparty="0x5DB91E24BD32059584BBDB831A901F1199F3D459",
                timestamp=datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
            )
        ]
    )
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_registration_evidence_reports_unusable_cursor(settings, monkeypatch):
    monkeypatch.setattr(
        paginated,
        "fetch_json",
        lambda session, url, params=None, *, timeout=15.0: {
            "items": [_item()],
            "next_page_params": ["not", "an", "object"],
        },
    )
    adapter = BlockscoutAdapter(settings)

    result = await adapter.find_registration_evidence(ADDRESS, [REGISTRAR])

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.UPSTREAM
