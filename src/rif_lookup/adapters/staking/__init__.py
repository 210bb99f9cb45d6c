from __future__ import annotations

from .strif import StRIFStakingReader

__all__ = ["StRIFStakingReader"]
