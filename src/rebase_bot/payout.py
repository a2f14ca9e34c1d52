"""Sum of claimable bond payouts for the staking wallet."""

from __future__ import annotations

import logging
from typing import Iterable

from rebase_bot.models import Position
from rebase_bot.retry import RetryExecutor

log = logging.getLogger("rb.payout")


async def total_pending(
    gateway,
    retry: RetryExecutor,
    positions: Iterable[Position],
    account: str,
    bulk_only: bool = False,
) -> int:
    """Raw pending payout across *positions*, each read under *retry*.

    A position whose read keeps failing stalls the whole sum.
    """
    total = 0
    for position in positions:
        if bulk_only and not position.uses_bulk_redeem:
            log.debug("PAYOUT_SKIP │ %s not redeemed in bulk", position.address)
            continue
        payout = await retry.execute(
            lambda position=position: gateway.pending_payout(position.address, account),
            f"bond [{position.label}] payout for {account}",
        )
        total += payout
    return total
