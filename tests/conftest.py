"""Shared fixtures for rebase bot tests."""

from __future__ import annotations

import pytest

from rebase_bot.config import BotConfig
from rebase_bot.models import Epoch, Position, RawCounters, Receipt
from rebase_bot.positions import PositionRegistry
from rebase_bot.retry import RetryExecutor

STAKER = "0x" + "11" * 20
BOND_A = "0x" + "aa" * 20
BOND_B = "0x" + "bb" * 20
BOND_C = "0x" + "cc" * 20
EXTRA = "0x" + "ee" * 20


class SleepRecorder:
    """Stand-in for asyncio.sleep that records delays and returns at once."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)


class FakeGateway:
    """In-memory ledger gateway; *failures* maps a method name to a count of
    exceptions to raise before answering normally."""

    def __init__(
        self,
        block_number: int = 998,
        epoch: Epoch | None = None,
        supply: int = 1_000_000,
        blocks_per_second: float = 0.0,
        payouts: dict[str, int] | None = None,
        bond_addresses: list[str] | None = None,
        symbols: dict[str, tuple[str, str]] | None = None,
        vesting: dict[str, int] | None = None,
        balance: int = 10 ** 18,
        staked_balance: int = 0,
        staking_index: int = 10 ** 9,
    ) -> None:
        self.block_number = block_number
        self.epoch = epoch or Epoch(number=12, end_block=1000, length=200, distribute=500)
        self.supply = supply
        self.blocks_per_second = blocks_per_second
        self.payouts = {k.lower(): v for k, v in (payouts or {}).items()}
        self.bond_addresses = bond_addresses or []
        self.symbols = {k.lower(): v for k, v in (symbols or {}).items()}
        self.vesting = {k.lower(): v for k, v in (vesting or {}).items()}
        self.balance = balance
        self.staked_balance = staked_balance
        self.staking_index = staking_index
        self.failures: dict[str, int] = {}
        self.calls: list[str] = []

    def _maybe_fail(self, name: str) -> None:
        self.calls.append(name)
        left = self.failures.get(name, 0)
        if left:
            self.failures[name] = left - 1
            raise ConnectionError(f"{name} unavailable")

    async def get_block_number(self) -> int:
        self._maybe_fail("get_block_number")
        return self.block_number

    async def get_epoch(self) -> Epoch:
        self._maybe_fail("get_epoch")
        return self.epoch

    async def get_circulating_supply(self) -> int:
        self._maybe_fail("get_circulating_supply")
        return self.supply

    async def get_blocks_per_second(self) -> float:
        self._maybe_fail("get_blocks_per_second")
        return self.blocks_per_second

    async def get_raw_counters(self, epoch: Epoch) -> RawCounters:
        return RawCounters(
            circulating_supply=await self.get_circulating_supply(),
            distribute=epoch.distribute,
            epoch_length=epoch.length,
            blocks_per_second=await self.get_blocks_per_second(),
        )

    async def get_staked_balance(self, account: str) -> int:
        self._maybe_fail("get_staked_balance")
        return self.staked_balance

    async def get_staking_index(self) -> int:
        self._maybe_fail("get_staking_index")
        return self.staking_index

    async def get_balance(self, address: str) -> int:
        self._maybe_fail("get_balance")
        return self.balance

    async def get_bond_addresses(self, max_bonds: int) -> list[str]:
        self._maybe_fail("get_bond_addresses")
        return self.bond_addresses[:max_bonds]

    async def get_bond_symbols(self, bond: str) -> tuple[str, str]:
        self._maybe_fail("get_bond_symbols")
        return self.symbols.get(bond.lower(), ("EXOD", ""))

    async def get_vesting_term(self, bond: str) -> int:
        self._maybe_fail("get_vesting_term")
        return self.vesting.get(bond.lower(), 86400)

    async def pending_payout(self, bond: str, account: str) -> int:
        self._maybe_fail("pending_payout")
        return self.payouts.get(bond.lower(), 0)


class FakeTxGateway:
    def __init__(self, start_block: int = 999, fail_bonds: set[str] | None = None) -> None:
        self.sent: list[tuple[str, str]] = []
        self.fail_all = False
        self.fail_bonds = {b.lower() for b in (fail_bonds or set())}
        self._next_block = start_block
        self.address = "0x" + "99" * 20

    async def redeem_all(self, recipient: str, stake: bool = True) -> str:
        if self.fail_all:
            raise RuntimeError("redeemAll reverted")
        self.sent.append(("all", recipient))
        return f"0xall{len(self.sent)}"

    async def redeem_bond(self, bond: str, recipient: str, stake: bool = True) -> str:
        if bond.lower() in self.fail_bonds:
            raise RuntimeError(f"redeem {bond} reverted")
        self.sent.append((bond, recipient))
        return f"0xbond{len(self.sent)}"

    async def await_confirmation(self, tx_hash: str, confirmations: int = 2) -> Receipt:
        self._next_block += 1
        return Receipt(tx_hash=tx_hash, block_number=self._next_block)


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def retry(sleep) -> RetryExecutor:
    return RetryExecutor(delay=2.0, sleep=sleep)


@pytest.fixture
def live_cfg() -> BotConfig:
    return BotConfig(dry_run=False, staking_wallet=STAKER, additional_bonds=(EXTRA,))


@pytest.fixture
def registry() -> PositionRegistry:
    return PositionRegistry([
        Position(address=BOND_A, label="EXOD (4,4)", uses_bulk_redeem=True),
        Position(address=BOND_B, label="EXOD-DAI LP (1,1)", uses_bulk_redeem=True),
        Position(address=EXTRA, label="wFTM (1,1)", uses_bulk_redeem=False),
    ])
