from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from typer.testing import CliRunner

from rif_lookup import main as cli
from rif_lookup.domain import IdentityResponse, StakingAnalytics
from rif_lookup.service import IdentityAndStakingService

ADDRESS = "0x1234567890abcdef1234567890abcdef12345678"

runner = CliRunner()


@pytest.fixture
def fake_service(monkeypatch):
    monkeypatch.setattr(
        IdentityAndStakingService, "from_settings", classmethod(lambda cls, s: MagicMock())
    )
    monkeypatch.setattr(
        IdentityAndStakingService,
        "identity",
        AsyncMock(return_value=IdentityResponse(name="alice.rsk", registered=True)),
    )
    monkeypatch.setattr(
        IdentityAndStakingService,
        "staking",
        AsyncMock(
            return_value=StakingAnalytics(
                staked_balance=12.5,
                staked_balance_usd=1.25,
                total_supply=1000.0,
                voting_power=12.5,
                holding_period_days=3,
                network="mainnet",
            )
        ),
    )


def test_invalid_address_exits_with_validation_error():
    result = runner.invoke(cli.app, ["identity", "0x123"])

    assert result.exit_code == 2
    payload = json.loads(result.stdout.strip().splitlines()[-1])
    assert payload == {"error": "Address is not valid: '0x123'", "address": "0x123"}


def test_identity_prints_json(fake_service):
    result = runner.invoke(cli.app, ["identity", ADDRESS])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {"name": "alice.rsk", "registered": True}


def test_staking_prints_camel_case_document(fake_service):
    result = runner.invoke(cli.app, ["--network", "mainnet", "staking", ADDRESS])

    assert result.exit_code == 0, result.output
    document = json.loads(result.stdout)
    assert document["stakedBalanceUSD"] == 1.25
    assert document["holdingPeriodDays"] == 3


def test_table_format_renders(fake_service):
    result = runner.invoke(cli.app, ["identity", ADDRESS, "--format", "table"])

    assert result.exit_code == 0, result.output
    assert "alice.rsk" in result.stdout


def test_show_config_redacts_secrets(monkeypatch):
    monkeypatch.setenv("RIF_LOOKUP_COINGECKO_API_KEY", "cg-secret")

    result = runner.invoke(cli.app, ["--show-config"])

    assert result.exit_code == 0, result.output
    config = json.loads(result.stdout)
    assert config["coingecko_api_key"] == "***redacted***"
    assert config["network"] == "mainnet"
