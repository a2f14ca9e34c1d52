"""Epoch ledger that survives restarts.

Preloads the epochs already recorded for the configured staking wallet and
writes each new entry through to the database. A failed write is logged and
the epoch still counts as handled for the life of the process.
"""

from __future__ import annotations

import logging
import time

from sqlalchemy import select
from sqlalchemy.engine import Engine as SAEngine
from sqlalchemy.exc import SQLAlchemyError

from rebase_bot.epochs import EpochLedger
from rebase_bot.models import C_RED, C_RESET
from rebase_bot.persistence.schema import triggered_epochs

log = logging.getLogger("rb.persistence")


class SqlEpochLedger(EpochLedger):
    def __init__(self, engine: SAEngine, account: str = "") -> None:
        super().__init__()
        self._engine = engine
        self._account = account.lower()
        with engine.connect() as conn:
            rows = conn.execute(
                select(triggered_epochs.c.epoch_number, triggered_epochs.c.block_number)
                .where(triggered_epochs.c.account == self._account)
            ).all()
        for epoch_number, block_number in rows:
            self._blocks[epoch_number] = block_number
        log.info("LEDGER_LOADED │ %d epochs already handled │ account=%s", len(rows), self._account or "-")

    def _persist(self, epoch_number: int, block_number: int) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(triggered_epochs.insert().values(
                    epoch_number=epoch_number,
                    account=self._account,
                    block_number=block_number,
                    recorded_at=time.time(),
                ))
        except SQLAlchemyError as e:
            log.error(
                "%sLEDGER_WRITE_FAILED │ epoch=%d │ kept in memory only │ %s%s",
                C_RED, epoch_number, e, C_RESET,
            )
