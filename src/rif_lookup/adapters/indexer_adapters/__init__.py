from __future__ import annotations

from .base import BaseIndexerAdapter
from .blockscout import BlockscoutAdapter
from .rsk_explorer import RskExplorerAdapter

ADAPTER_REGISTRY: dict[str, type[BaseIndexerAdapter]] = {
    "blockscout": BlockscoutAdapter,
    "rsk_explorer": RskExplorerAdapter,
}


def get_adapter_class(adapter_name: str) -> type[BaseIndexerAdapter]:
    """Get adapter class by name.

    Args:
        adapter_name: Name of the adapter (case-insensitive)

    Returns:
        Adapter class

    Raises:
        ValueError: If adapter_name is not recognized
    """
    adapter_name_normalized = adapter_name.lower()
    if adapter_name_normalized not in ADAPTER_REGISTRY:
        raise ValueError(
            f"Unknown adapter '{adapter_name}'. "
            f"Available: {', '.join(ADAPTER_REGISTRY.keys())}"
        )
    return ADAPTER_REGISTRY[adapter_name_normalized]


__all__ = [
    "ADAPTER_REGISTRY",
    "BaseIndexerAdapter",
    "BlockscoutAdapter",
    "RskExplorerAdapter",
    "get_adapter_class",
]
