from __future__ import annotations

import json
from pathlib import Path

ABIS_DIR = Path(__file__).parent / "abis"

RNS_REGISTRY_ABI_PATH = ABIS_DIR / "RNSRegistry.json"
NAME_RESOLVER_ABI_PATH = ABIS_DIR / "NameResolver.json"
STRIF_ABI_PATH = ABIS_DIR / "StRIF.json"


def load_abi(path: str | Path) -> list[dict]:
    """Load an ABI from a JSON file and return its "abi" field.

    Args:
        path: Path to the JSON file containing an "abi" field.

    Returns:
        ABI as a list of dictionaries.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        KeyError: If the JSON does not contain an "abi" field.
    """
    p = Path(path)
    with p.open() as f:
        data = json.load(f)
    return data["abi"]


def load_rns_registry_abi() -> list[dict]:
    """Load the RNS registry ABI."""
    return load_abi(RNS_REGISTRY_ABI_PATH)


def load_name_resolver_abi() -> list[dict]:
    """Load the RNS name resolver ABI."""
    return load_abi(NAME_RESOLVER_ABI_PATH)


def load_strif_abi() -> list[dict]:
    """Load the stRIF token ABI."""
    return load_abi(STRIF_ABI_PATH)
