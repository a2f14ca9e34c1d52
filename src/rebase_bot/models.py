"""Data structures for the rebase bot."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# DAO token and its staked twin are 9-decimal ("gwei") tokens
TOKEN_DECIMALS = 9
# Native gas token
NATIVE_DECIMALS = 18

# ANSI colors for log highlights
C_GREEN = "\033[32m"
C_RED = "\033[31m"
C_YELLOW = "\033[33m"
C_RESET = "\033[0m"


def to_display(raw: int, decimals: int = TOKEN_DECIMALS) -> Decimal:
    """Convert a ledger-native fixed-point integer to a display value."""
    return Decimal(raw) / Decimal(10 ** decimals)


@dataclass(frozen=True)
class Epoch:
    number: int
    end_block: int
    length: int  # blocks
    distribute: int  # raw fixed-point reward for the epoch


@dataclass(frozen=True)
class Position:
    address: str
    label: str
    uses_bulk_redeem: bool = True


@dataclass(frozen=True)
class Receipt:
    tx_hash: str
    block_number: int
    status: int = 1
    gas_used: int = 0


@dataclass(frozen=True)
class RawCounters:
    circulating_supply: int
    distribute: int
    epoch_length: int
    blocks_per_second: float


@dataclass(frozen=True)
class RateProjection:
    rebase_rate: float
    periods_per_day: float
    horizons: dict[str, float] = field(default_factory=dict)

    @property
    def daily(self) -> float:
        return self.horizons["daily"]

    @property
    def yearly(self) -> float:
        return self.horizons["yearly"]


@dataclass(frozen=True)
class TickSnapshot:
    block_number: int
    epoch: Epoch
    delta: int
    projection: RateProjection
    pending_payout: int  # raw, bulk-eligible positions only
    gas_balance: int  # raw wei held by the bot wallet
    staked_balance: int = 0  # raw staked tokens held by the DAO wallet
    staking_index: int = 0  # raw, TOKEN_DECIMALS fixed point
    triggered: bool = False

    @property
    def pending_display(self) -> Decimal:
        return to_display(self.pending_payout, TOKEN_DECIMALS)

    @property
    def gas_display(self) -> Decimal:
        return to_display(self.gas_balance, NATIVE_DECIMALS)

    @property
    def staked_display(self) -> Decimal:
        return to_display(self.staked_balance, TOKEN_DECIMALS)

    @property
    def index_display(self) -> Decimal:
        return to_display(self.staking_index, TOKEN_DECIMALS)
