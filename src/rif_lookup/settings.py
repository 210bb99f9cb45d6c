"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    COINGECKO_SIMPLE_PRICE_URL,
    DEFAULT_RIF_USD,
    NETWORK_DEFAULTS,
    PRICE_TTL_SECONDS,
    RIF_COINGECKO_ID,
)

load_dotenv()

KNOWN_INDEXERS = ("blockscout", "rsk_explorer")
SECRET_FIELDS = ("blockscout_api_key", "coingecko_api_key")


class Network(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"


class OutputFormat(str, Enum):
    JSON = "json"
    TABLE = "table"


class RifLookupSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with RIF_LOOKUP_)
    - Config file (TOML), lowest precedence

    Network-dependent values left unset are filled from the network defaults.
    Do not read os.environ or files elsewhere in the codebase.
    """

    network: Network = Network.MAINNET

    # --- on-chain ---
    rpc_url: str | None = None
    rns_registry_address: str | None = None
    strif_address: str | None = None
    registration_contracts: list[str] = Field(default_factory=list)

    # --- indexers ---
    indexers: list[str] = Field(default_factory=lambda: list(KNOWN_INDEXERS))
    blockscout_api_url: str | None = None
    rsk_explorer_api_url: str | None = None
    blockscout_api_key: SecretStr | None = None
    indexer_max_retries: int = Field(default=3, ge=0)
    indexer_backoff_factor: float = Field(default=0.5, ge=0)
    indexer_backoff_max: float = Field(default=8.0, gt=0)
    indexer_page_size: int = Field(default=50, gt=0, le=1000)
    request_timeout: float = Field(default=15.0, gt=0)

    # --- pricing ---
    price_api_url: str = COINGECKO_SIMPLE_PRICE_URL
    price_token_id: str = RIF_COINGECKO_ID
    coingecko_api_key: SecretStr | None = None
    default_price_usd: float = Field(default=DEFAULT_RIF_USD, gt=0)
    price_ttl_seconds: int = Field(default=PRICE_TTL_SECONDS, gt=0)

    # --- output ---
    output_format: OutputFormat = OutputFormat.JSON

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="RIF_LOOKUP_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator(*SECRET_FIELDS, mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("indexers")
    @classmethod
    def validate_indexers(cls, v: list[str]) -> list[str]:
        normalized = [name.lower() for name in v]
        unknown = [name for name in normalized if name not in KNOWN_INDEXERS]
        if unknown:
            raise ValueError(
                f"Unknown indexer(s): {', '.join(unknown)}. "
                f"Available: {', '.join(KNOWN_INDEXERS)}"
            )
        return normalized

    @model_validator(mode="after")
    def set_network_defaults(self) -> "RifLookupSettings":
        """Fill unset network-dependent values from the per-network defaults."""
        defaults = NETWORK_DEFAULTS[self.network.value]
        if self.rpc_url is None:
            self.rpc_url = defaults["rpc_url"]
        if self.rns_registry_address is None:
            self.rns_registry_address = defaults["rns_registry"]
        if self.strif_address is None:
            self.strif_address = defaults["strif"]
        if not self.registration_contracts:
            self.registration_contracts = list(defaults["registration_contracts"])
        if self.blockscout_api_url is None:
            self.blockscout_api_url = defaults["blockscout_api_url"]
        if self.rsk_explorer_api_url is None:
            self.rsk_explorer_api_url = defaults["rsk_explorer_api_url"]
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("RIF_LOOKUP_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    local_config = Path("rif-lookup.toml")
                    user_config = Path.home() / ".config" / "rif-lookup" / "config.toml"
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [rif_lookup]
                body = data.get("rif_lookup", data)
                if not isinstance(body, dict):
                    return {}

                for key in SECRET_FIELDS:
                    if key in body:
                        raise ValueError(
                            f"Security violation: '{key}' found in TOML config file. "
                            f"Secrets must only be provided via environment variables."
                        )

                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,  # optional secrets dir
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump(mode="json")
        for key in SECRET_FIELDS:
            if getattr(self, key):
                data[key] = "***redacted***"
        return data

    @property
    def rpc_url_required(self) -> str:
        """Get rpc_url, raising ValueError if not set."""
        if self.rpc_url is None:
            raise ValueError("rpc_url must be configured")
        return self.rpc_url

    @property
    def rns_registry_address_required(self) -> str:
        if self.rns_registry_address is None:
            raise ValueError("rns_registry_address must be configured")
        return self.rns_registry_address

    @property
    def strif_address_required(self) -> str:
        if self.strif_address is None:
            raise ValueError("strif_address must be configured")
        return self.strif_address
