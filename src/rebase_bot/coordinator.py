"""Per-tick decision: watch the epoch, redeem & restake once per epoch.

Each tick reads the ledger state (every read under RetryExecutor), projects
the rebase rates, logs a status block and checks the trigger. When the
trigger holds the scheduler is paused for the whole redeem procedure so no
other tick can start a second attempt. A failed attempt leaves the epoch
unmarked; the next tick inside the window tries again.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from rebase_bot.config import BotConfig
from rebase_bot.epochs import EpochLedger
from rebase_bot.formatting import format_number, format_percent, seconds_to_human
from rebase_bot.models import (
    C_RED,
    C_RESET,
    C_YELLOW,
    Epoch,
    Receipt,
    TickSnapshot,
)
from rebase_bot.payout import total_pending
from rebase_bot.positions import PositionRegistry
from rebase_bot.rates import project
from rebase_bot.redeem import redeem_positions
from rebase_bot.retry import RetryExecutor

log = logging.getLogger("rb.coordinator")

TRIGGER_WINDOW_BLOCKS = 5 * 60

_HORIZON_LABELS = (
    ("daily", "Daily    "),
    ("four_day", "Four Day "),
    ("five_day", "Five Day "),
    ("weekly", "Weekly   "),
    ("monthly", "Monthly  "),
    ("yearly", "Yearly   "),
)


def should_trigger(
    delta: int,
    already_triggered: bool,
    pending_payout: int,
    window: int = TRIGGER_WINDOW_BLOCKS,
) -> bool:
    """Close to the epoch end, not yet handled, and something to claim."""
    return delta <= window and not already_triggered and pending_payout > 0


class ActionCoordinator:
    def __init__(
        self,
        gateway,
        tx_gateway,
        registry: PositionRegistry,
        ledger: EpochLedger,
        retry: RetryExecutor,
        cfg: BotConfig,
        scheduler=None,
        gas_account: str = "",
    ) -> None:
        self._gateway = gateway
        self._tx = tx_gateway
        self._registry = registry
        self._ledger = ledger
        self._retry = retry
        self._cfg = cfg
        self._scheduler = scheduler
        self._gas_account = gas_account
        self.state = "IDLE"

    def attach(self, scheduler) -> None:
        self._scheduler = scheduler

    async def tick(self) -> TickSnapshot:
        self.state = "EVALUATING"
        try:
            snapshot = await self._evaluate()
            self._log_status(snapshot)

            already = self._ledger.has_triggered(snapshot.epoch.number)
            if not should_trigger(
                snapshot.delta, already, snapshot.pending_payout, self._cfg.trigger_window_blocks,
            ):
                return snapshot

            if self._cfg.dry_run:
                log.warning(
                    "%sDRY_TRIGGER │ epoch=%d │ delta=%d │ would redeem & stake all bonds%s",
                    C_YELLOW, snapshot.epoch.number, snapshot.delta, C_RESET,
                )
                return snapshot

            self.state = "TRIGGERING"
            triggered = await self._trigger(snapshot.epoch)
            return replace(snapshot, triggered=triggered)
        finally:
            self.state = "IDLE"

    async def _evaluate(self) -> TickSnapshot:
        block_number = await self._retry.execute(self._gateway.get_block_number, "block number")
        epoch = await self._retry.execute(self._gateway.get_epoch, "epoch")
        counters = await self._retry.execute(
            lambda: self._gateway.get_raw_counters(epoch), "rebase counters",
        )
        staked_balance = await self._retry.execute(
            lambda: self._gateway.get_staked_balance(self._cfg.staking_wallet), "staked balance",
        )
        staking_index = await self._retry.execute(self._gateway.get_staking_index, "staking index")
        gas_balance = 0
        if self._gas_account:
            gas_balance = await self._retry.execute(
                lambda: self._gateway.get_balance(self._gas_account), "bot wallet balance",
            )

        pending = await total_pending(
            self._gateway, self._retry, self._registry.positions(),
            self._cfg.staking_wallet, bulk_only=True,
        )
        return TickSnapshot(
            block_number=block_number,
            epoch=epoch,
            delta=epoch.end_block - block_number,
            projection=project(counters),
            pending_payout=pending,
            gas_balance=gas_balance,
            staked_balance=staked_balance,
            staking_index=staking_index,
        )

    async def _trigger(self, epoch: Epoch) -> bool:
        if self._scheduler is not None:
            self._scheduler.pause()
        log.warning("%sTRIGGER │ epoch=%d │ trying to redeem & stake all bonds%s", C_YELLOW, epoch.number, C_RESET)
        try:
            receipts: list[Receipt] = await redeem_positions(
                self._gateway, self._tx, self._retry, self._registry,
                self._cfg.staking_wallet, self._cfg.additional_bonds, self._cfg.confirmations,
            )
        except Exception as e:
            log.error("%sTRIGGER_FAILED │ epoch=%d │ %s%s", C_RED, epoch.number, e, C_RESET)
            return False
        finally:
            if self._scheduler is not None:
                self._scheduler.resume()

        if not receipts:
            log.warning("TRIGGER │ epoch=%d │ nothing was redeemed", epoch.number)
            return False
        self._ledger.record(epoch.number, receipts[-1].block_number)
        return True

    def _log_status(self, s: TickSnapshot) -> None:
        p = s.projection
        log.info("-" * 81)
        log.info(
            "Block: %d => Epoch %d End: %d in %s",
            s.block_number, s.epoch.number, s.epoch.end_block, seconds_to_human(s.delta),
        )
        if self._gas_account:
            log.info("Bot Balance: %s", format_number(s.gas_display).strip())
        log.info(
            "Claimable Bonds: %s %s",
            format_number(s.pending_display).strip(), self._cfg.token_symbol,
        )
        log.info(
            "Staked Balance: %s %s",
            format_number(s.staked_display).strip(), self._cfg.staked_token_symbol,
        )
        log.info("Staking Index: %s", format_number(s.index_display).strip())
        log.info("Current Rates")
        log.info("\t\tEpoch Day: %s", format_number(p.periods_per_day))
        log.info("\t\tEpoch    : %s%%", format_percent(p.rebase_rate))
        for key, label in _HORIZON_LABELS:
            log.info("\t\t%s: %s%%", label, format_percent(p.horizons[key]))
        if self._retry.retries:
            log.info("Remote call retries so far: %d", self._retry.retries)
        log.info("-" * 81)
