"""Bond discovery and the registry of redeemable positions.

Bonds enumerated by the redeem helper are redeemed in bulk. Supplemental
bonds come from configuration; the helper does not know them, so each is
redeemed with its own transaction.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

from web3 import Web3

from rebase_bot.models import Position
from rebase_bot.retry import RetryExecutor

log = logging.getLogger("rb.positions")

# Vesting term of the DAO's (4,4) bonds: 4 days in seconds
FOUR_FOUR_VESTING_TERM = 345600


def derive_label(symbol0: str, symbol1: str, vesting_term: int) -> str:
    symbol = f"{symbol0}-{symbol1} LP" if symbol1 else symbol0
    tag = "(4,4)" if vesting_term == FOUR_FOUR_VESTING_TERM else "(1,1)"
    return f"{symbol} {tag}"


class PositionRegistry:
    def __init__(self, positions: Iterable[Position] = ()) -> None:
        self._positions: dict[str, Position] = {}
        for p in positions:
            self._positions[p.address.lower()] = p

    @classmethod
    async def discover(
        cls,
        gateway,
        retry: RetryExecutor,
        max_positions: int = 20,
        supplemental_addresses: Iterable[str] = (),
    ) -> PositionRegistry:
        supplemental = [Web3.to_checksum_address(a) for a in supplemental_addresses]
        supplemental_keys = {a.lower() for a in supplemental}

        log.info("=" * 56)
        log.info("DISCOVERY │ fetching up to %d bonds from the redeem helper", max_positions)

        bulk = await retry.execute(
            lambda: gateway.get_bond_addresses(max_positions), "bond enumeration",
        )

        addresses: list[str] = []
        seen: set[str] = set()
        for address in [*bulk, *supplemental]:
            key = address.lower()
            if key in seen:
                continue
            seen.add(key)
            addresses.append(address)

        registry = cls()
        for address in addresses:
            position = await retry.execute(
                lambda address=address: _resolve(
                    gateway, address, address.lower() not in supplemental_keys,
                ),
                f"bond load {address}",
            )
            registry._positions[address.lower()] = position
            log.info(
                "BOND_LOADED │ %20s │ %s%s",
                position.label, address, "" if position.uses_bulk_redeem else " │ individual",
            )

        log.info("DISCOVERY │ loaded %d bonds (%d supplemental)", len(registry), len(supplemental_keys))
        log.info("=" * 56)
        return registry

    def get(self, address: str) -> Position | None:
        return self._positions.get(address.lower())

    def positions(self, bulk_only: bool = False) -> list[Position]:
        if bulk_only:
            return [p for p in self._positions.values() if p.uses_bulk_redeem]
        return list(self._positions.values())

    def __len__(self) -> int:
        return len(self._positions)

    def __iter__(self) -> Iterator[Position]:
        return iter(self._positions.values())


async def _resolve(gateway, address: str, uses_bulk_redeem: bool) -> Position:
    symbol0, symbol1 = await gateway.get_bond_symbols(address)
    vesting_term = await gateway.get_vesting_term(address)
    return Position(
        address=address,
        label=derive_label(symbol0, symbol1, vesting_term),
        uses_bulk_redeem=uses_bulk_redeem,
    )
