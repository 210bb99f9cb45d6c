from __future__ import annotations

from .rns_registry import RnsRegistryResolver, namehash, reverse_node

__all__ = ["RnsRegistryResolver", "namehash", "reverse_node"]
