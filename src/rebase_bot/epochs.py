"""Record of epochs whose redeem action already went through.

Once an epoch number is recorded the action is never attempted again for
that epoch, even if the trigger window is still open. Entries are never
removed. The default ledger lives only as long as the process; see
persistence.ledger for the opt-in durable variant.
"""

from __future__ import annotations

import logging

log = logging.getLogger("rb.epochs")


class EpochLedger:
    def __init__(self) -> None:
        self._blocks: dict[int, int] = {}

    def has_triggered(self, epoch_number: int) -> bool:
        return epoch_number in self._blocks

    def record(self, epoch_number: int, block_number: int) -> None:
        if epoch_number in self._blocks:
            log.debug(
                "EPOCH_ALREADY_RECORDED │ epoch=%d │ kept block=%d │ ignored block=%d",
                epoch_number, self._blocks[epoch_number], block_number,
            )
            return
        self._persist(epoch_number, block_number)
        self._blocks[epoch_number] = block_number
        log.info("EPOCH_RECORDED │ epoch=%d │ block=%d", epoch_number, block_number)

    def block_for(self, epoch_number: int) -> int | None:
        return self._blocks.get(epoch_number)

    def _persist(self, epoch_number: int, block_number: int) -> None:
        """Hook for durable subclasses; the in-memory ledger keeps nothing."""

    def __len__(self) -> int:
        return len(self._blocks)

    def __contains__(self, epoch_number: object) -> bool:
        return epoch_number in self._blocks
