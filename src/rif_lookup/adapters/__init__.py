from __future__ import annotations

from .indexer_adapters import ADAPTER_REGISTRY, get_adapter_class
from .staking import StRIFStakingReader

__all__ = ["ADAPTER_REGISTRY", "StRIFStakingReader", "get_adapter_class"]
