"""Redeem-and-stake across bulk and supplemental bonds.

The bulk path is a single redeemAll() on the redeem helper covering every
bond it enumerates. Supplemental bonds are unknown to the helper and are
redeemed one transaction each.

A bulk failure aborts the whole procedure so the caller leaves the epoch
unmarked. A supplemental failure only skips that bond: its payout is still
pending on the next tick and is retried then.
"""

from __future__ import annotations

import logging
from typing import Iterable

from rebase_bot.models import C_GREEN, C_RED, C_RESET, Receipt
from rebase_bot.payout import total_pending
from rebase_bot.positions import PositionRegistry
from rebase_bot.retry import RetryExecutor

log = logging.getLogger("rb.redeem")

CONFIRMATIONS = 2


async def redeem_positions(
    gateway,
    tx_gateway,
    retry: RetryExecutor,
    registry: PositionRegistry,
    account: str,
    supplemental_addresses: Iterable[str] = (),
    confirmations: int = CONFIRMATIONS,
) -> list[Receipt]:
    """Redeem and restake every bond with a pending payout.

    Returns the confirmed receipts in submission order.
    """
    receipts: list[Receipt] = []

    bulk_pending = await total_pending(
        gateway, retry, registry.positions(bulk_only=True), account, bulk_only=True,
    )
    if bulk_pending > 0:
        log.warning("REDEEM_ALL │ awaiting redeem & stake of all helper bonds")
        tx_hash = await tx_gateway.redeem_all(account, True)
        receipt = await tx_gateway.await_confirmation(tx_hash, confirmations)
        receipts.append(receipt)
        log.warning(
            "%sREDEEM_ALL │ completed tx=%s │ block=%d%s",
            C_GREEN, receipt.tx_hash, receipt.block_number, C_RESET,
        )

    for address in supplemental_addresses:
        position = registry.get(address)
        if position is None:
            log.warning("REDEEM_BOND │ %s is not a loaded bond, skipping", address)
            continue
        try:
            pending = await gateway.pending_payout(position.address, account)
            if pending <= 0:
                continue
            log.warning("REDEEM_BOND │ awaiting redeem & stake: %s (%s)", position.label, position.address)
            tx_hash = await tx_gateway.redeem_bond(position.address, account, True)
            receipt = await tx_gateway.await_confirmation(tx_hash, confirmations)
        except Exception as e:
            log.error(
                "%sREDEEM_BOND │ %s (%s) failed: %s%s",
                C_RED, position.label, position.address, e, C_RESET,
            )
            continue
        receipts.append(receipt)
        log.warning(
            "%sREDEEM_BOND │ [%s] completed tx=%s │ block=%d%s",
            C_GREEN, position.label, receipt.tx_hash, receipt.block_number, C_RESET,
        )

    return receipts
