"""Replay a transaction history into staking holding intervals."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Iterable, Sequence

from ..constants import STAKE_DEPOSIT_METHODS, STAKE_EXIT_METHODS
from ..domain import HoldingInterval, TransactionEvent
from ..logger import get_logger

logger = get_logger(__name__)


class HoldingState(str, Enum):
    IDLE = "idle"
    HOLDING = "holding"


def _chronological(event: TransactionEvent) -> tuple[datetime, int, int]:
    return (
        event.timestamp,
        -1 if event.block_number is None else event.block_number,
        -1 if event.position is None else event.position,
    )


def reconstruct(
    events: Iterable[TransactionEvent], staking_contract: str
) -> list[HoldingInterval]:
    """Rebuild the holding intervals of one address against a staking contract.

    Events may arrive in any order (indexers usually page newest first); they
    are replayed oldest first. Events sharing a timestamp are ordered by block
    and position within the block.

    A deposit while already holding keeps the original start time: only the
    first deposit of a run bounds it from below. This is a policy choice, not a
    ledger reconciliation of partial withdrawals.

    Args:
        events: Transactions of the address, any order
        staking_contract: Address of the staking token contract

    Returns:
        Closed intervals in chronological order, followed by the open one if
        the stake is still held. A single ``HoldingInterval(start=None)`` when
        no deposit was ever seen.
    """
    target = staking_contract.lower()
    relevant = sorted(
        (event for event in events if event.counterparty.lower() == target),
        key=_chronological,
    )

    intervals: list[HoldingInterval] = []
    state = HoldingState.IDLE
    start: datetime | None = None

    for event in relevant:
        method = event.method.lower()
        if method in STAKE_DEPOSIT_METHODS:
            if state is HoldingState.IDLE:
                state = HoldingState.HOLDING
                start = event.timestamp
        elif method in STAKE_EXIT_METHODS:
            if state is HoldingState.HOLDING:
                intervals.append(HoldingInterval(start=start, end=event.timestamp))
                state = HoldingState.IDLE
                start = None

    if state is HoldingState.HOLDING:
        intervals.append(HoldingInterval(start=start, end=None))

    if not intervals:
        return [HoldingInterval(start=None, end=None)]

    logger.debug(
        "Reconstructed %d holding interval(s) from %d staking event(s)",
        len(intervals),
        len(relevant),
    )
    return intervals


def holding_period_days(intervals: Sequence[HoldingInterval], now: datetime) -> int:
    """Longest holding run in whole days, open intervals measured up to ``now``."""
    return max((interval.duration_days(now) for interval in intervals), default=0)
