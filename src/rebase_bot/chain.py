"""Web3 access to the staking DAO contracts.

ChainGateway covers every read the bot makes; TxGateway signs and submits
the redeem transactions with the bot wallet and waits for confirmations.
Both are async facades over the blocking web3 client; each call runs in
a worker thread so the event loop keeps ticking.

Neither class retries. Reads are wrapped by RetryExecutor at the call site,
submission failures propagate to the coordinator.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from web3 import Web3
from web3.exceptions import ContractLogicError

from rebase_bot.models import Epoch, RawCounters, Receipt

log = logging.getLogger("rb.chain")

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# ── Minimal ABIs ──

STAKING_ABI = [
    {
        "name": "epoch",
        "type": "function",
        "inputs": [],
        "outputs": [
            {"name": "length", "type": "uint256"},
            {"name": "number", "type": "uint256"},
            {"name": "endBlock", "type": "uint256"},
            {"name": "distribute", "type": "uint256"},
        ],
        "stateMutability": "view",
    },
    {
        "name": "index",
        "type": "function",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
]

STAKED_TOKEN_ABI = [
    {
        "name": "circulatingSupply",
        "type": "function",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "name": "balanceOf",
        "type": "function",
        "inputs": [{"name": "who", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
]

BLOCK_TIME_TRACKER_ABI = [
    {
        "name": "average",
        "type": "function",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "name": "precision",
        "type": "function",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
    },
]

BOND_INFORMATION_HELPER_ABI = [
    {
        "name": "symbol",
        "type": "function",
        "inputs": [{"name": "_pair", "type": "address"}],
        "outputs": [
            {"name": "symbol0", "type": "string"},
            {"name": "symbol1", "type": "string"},
        ],
        "stateMutability": "view",
    }
]

REDEEM_HELPER_ABI = [
    {
        "name": "bonds",
        "type": "function",
        "inputs": [{"name": "", "type": "uint256"}],
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
    },
    {
        "name": "redeemAll",
        "type": "function",
        "inputs": [
            {"name": "_recipient", "type": "address"},
            {"name": "_stake", "type": "bool"},
        ],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
]

BOND_ABI = [
    {
        "name": "terms",
        "type": "function",
        "inputs": [],
        "outputs": [
            {"name": "controlVariable", "type": "uint256"},
            {"name": "vestingTerm", "type": "uint256"},
            {"name": "minimumPrice", "type": "uint256"},
            {"name": "maxPayout", "type": "uint256"},
            {"name": "fee", "type": "uint256"},
            {"name": "maxDebt", "type": "uint256"},
        ],
        "stateMutability": "view",
    },
    {
        "name": "pendingPayoutFor",
        "type": "function",
        "inputs": [{"name": "_depositor", "type": "address"}],
        "outputs": [{"name": "pendingPayout_", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "name": "redeem",
        "type": "function",
        "inputs": [
            {"name": "_recipient", "type": "address"},
            {"name": "_stake", "type": "bool"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "nonpayable",
    },
]


@dataclass(frozen=True)
class ContractAddresses:
    staking: str
    staked_token: str
    block_time_tracker: str
    bond_information_helper: str
    redeem_helper: str


class _ContractCache:
    """Builds web3 contract objects once per address.

    *abi_for* may supply a full ABI for an address (e.g. from the block
    explorer); otherwise the minimal inline ABI is used.
    """

    def __init__(self, w3: Web3, abi_for: Callable[[str], list] | None = None) -> None:
        self._w3 = w3
        self._abi_for = abi_for
        self._contracts: dict[str, object] = {}

    def get(self, address: str, default_abi: list):
        checksum = Web3.to_checksum_address(address)
        contract = self._contracts.get(checksum)
        if contract is None:
            abi = self._abi_for(checksum) if self._abi_for else default_abi
            contract = self._w3.eth.contract(address=checksum, abi=abi)
            self._contracts[checksum] = contract
        return contract


class ChainGateway:
    def __init__(
        self,
        w3: Web3,
        addresses: ContractAddresses,
        abi_for: Callable[[str], list] | None = None,
    ) -> None:
        self._w3 = w3
        self._addresses = addresses
        self._cache = _ContractCache(w3, abi_for)

    # ── Ledger state ──

    async def get_block_number(self) -> int:
        return await asyncio.to_thread(lambda: int(self._w3.eth.block_number))

    async def get_epoch(self) -> Epoch:
        def _read() -> Epoch:
            staking = self._cache.get(self._addresses.staking, STAKING_ABI)
            length, number, end_block, distribute = staking.functions.epoch().call()
            return Epoch(
                number=int(number),
                end_block=int(end_block),
                length=int(length),
                distribute=int(distribute),
            )
        return await asyncio.to_thread(_read)

    async def get_circulating_supply(self) -> int:
        def _read() -> int:
            token = self._cache.get(self._addresses.staked_token, STAKED_TOKEN_ABI)
            return int(token.functions.circulatingSupply().call())
        return await asyncio.to_thread(_read)

    async def get_blocks_per_second(self) -> float:
        """Tracker average normalised from its fixed-point precision."""
        def _read() -> float:
            tracker = self._cache.get(self._addresses.block_time_tracker, BLOCK_TIME_TRACKER_ABI)
            average = int(tracker.functions.average().call())
            precision = int(tracker.functions.precision().call())
            return average / (10 ** precision)
        return await asyncio.to_thread(_read)

    async def get_raw_counters(self, epoch: Epoch) -> RawCounters:
        """Everything the rate projection needs for *epoch*."""
        supply = await self.get_circulating_supply()
        blocks_per_second = await self.get_blocks_per_second()
        return RawCounters(
            circulating_supply=supply,
            distribute=epoch.distribute,
            epoch_length=epoch.length,
            blocks_per_second=blocks_per_second,
        )

    async def get_staking_index(self) -> int:
        def _read() -> int:
            staking = self._cache.get(self._addresses.staking, STAKING_ABI)
            return int(staking.functions.index().call())
        return await asyncio.to_thread(_read)

    async def get_staked_balance(self, account: str) -> int:
        def _read() -> int:
            token = self._cache.get(self._addresses.staked_token, STAKED_TOKEN_ABI)
            return int(token.functions.balanceOf(Web3.to_checksum_address(account)).call())
        return await asyncio.to_thread(_read)

    async def get_balance(self, address: str) -> int:
        checksum = Web3.to_checksum_address(address)
        return await asyncio.to_thread(lambda: int(self._w3.eth.get_balance(checksum)))

    # ── Bonds ──

    async def get_bond_addresses(self, max_bonds: int) -> list[str]:
        """Bonds enumerated by the redeem helper, stopping at the first empty slot."""
        def _read() -> list[str]:
            helper = self._cache.get(self._addresses.redeem_helper, REDEEM_HELPER_ABI)
            found: list[str] = []
            for i in range(max_bonds):
                try:
                    address = helper.functions.bonds(i).call()
                except ContractLogicError:
                    break
                if not address or address.lower() == ZERO_ADDRESS:
                    break
                found.append(Web3.to_checksum_address(address))
            return found
        return await asyncio.to_thread(_read)

    async def get_bond_symbols(self, bond: str) -> tuple[str, str]:
        def _read() -> tuple[str, str]:
            helper = self._cache.get(
                self._addresses.bond_information_helper, BOND_INFORMATION_HELPER_ABI,
            )
            symbol0, symbol1 = helper.functions.symbol(Web3.to_checksum_address(bond)).call()
            return symbol0, symbol1
        return await asyncio.to_thread(_read)

    async def get_vesting_term(self, bond: str) -> int:
        def _read() -> int:
            terms = self._cache.get(bond, BOND_ABI).functions.terms().call()
            return int(terms[1])
        return await asyncio.to_thread(_read)

    async def pending_payout(self, bond: str, account: str) -> int:
        def _read() -> int:
            contract = self._cache.get(bond, BOND_ABI)
            return int(contract.functions.pendingPayoutFor(
                Web3.to_checksum_address(account),
            ).call())
        return await asyncio.to_thread(_read)


class TxGateway:
    def __init__(
        self,
        w3: Web3,
        account,
        redeem_helper: str,
        chain_id: int,
        max_gas_price_gwei: int = 2000,
        gas_limit: int = 3_000_000,
        abi_for: Callable[[str], list] | None = None,
        poll_interval_sec: float = 2.0,
        receipt_timeout_sec: int = 120,
    ) -> None:
        self._w3 = w3
        self._account = account
        self._redeem_helper = redeem_helper
        self._chain_id = chain_id
        self._max_gas_price_gwei = max_gas_price_gwei
        self._gas_limit = gas_limit
        self._cache = _ContractCache(w3, abi_for)
        self._poll_interval_sec = poll_interval_sec
        self._receipt_timeout_sec = receipt_timeout_sec

    @property
    def address(self) -> str:
        return self._account.address

    async def redeem_all(self, recipient: str, stake: bool = True) -> str:
        def _send() -> str:
            helper = self._cache.get(self._redeem_helper, REDEEM_HELPER_ABI)
            call = helper.functions.redeemAll(Web3.to_checksum_address(recipient), stake)
            return self._sign_and_send(call, "REDEEM_ALL")
        return await asyncio.to_thread(_send)

    async def redeem_bond(self, bond: str, recipient: str, stake: bool = True) -> str:
        def _send() -> str:
            contract = self._cache.get(bond, BOND_ABI)
            call = contract.functions.redeem(Web3.to_checksum_address(recipient), stake)
            return self._sign_and_send(call, "REDEEM_BOND")
        return await asyncio.to_thread(_send)

    def _sign_and_send(self, call, label: str) -> str:
        gas_price = self._w3.eth.gas_price
        cap_wei = self._w3.to_wei(self._max_gas_price_gwei, "gwei")
        if gas_price > cap_wei:
            raise RuntimeError(
                f"Gas price {self._w3.from_wei(gas_price, 'gwei')} gwei exceeds cap "
                f"{self._max_gas_price_gwei} gwei"
            )

        nonce = self._w3.eth.get_transaction_count(self._account.address, "pending")
        tx = call.build_transaction({
            "from": self._account.address,
            "chainId": self._chain_id,
            "nonce": nonce,
            "gas": self._gas_limit,
            "maxFeePerGas": gas_price * 2,
            "maxPriorityFeePerGas": self._w3.eth.max_priority_fee,
        })
        try:
            estimated = self._w3.eth.estimate_gas(tx)
            tx["gas"] = min(self._gas_limit, int(estimated * 1.2))
        except ContractLogicError as e:
            raise RuntimeError(f"{label} would revert: {e}") from e

        signed = self._account.sign_transaction(tx)
        tx_hash = Web3.to_hex(self._w3.eth.send_raw_transaction(signed.raw_transaction))
        log.info("%s_SENT tx=%s │ nonce=%d │ gas=%d", label, tx_hash, nonce, tx["gas"])
        return tx_hash

    async def await_confirmation(self, tx_hash: str, confirmations: int = 2) -> Receipt:
        """Wait for the receipt, then for *confirmations* blocks including its own."""
        raw = await asyncio.to_thread(
            self._w3.eth.wait_for_transaction_receipt, tx_hash, self._receipt_timeout_sec,
        )
        receipt = Receipt(
            tx_hash=tx_hash,
            block_number=int(raw["blockNumber"]),
            status=int(raw["status"]),
            gas_used=int(raw.get("gasUsed", 0)),
        )
        log.info("TX_RECEIPT status=%d │ block=%d │ gasUsed=%d",
                 receipt.status, receipt.block_number, receipt.gas_used)
        if receipt.status != 1:
            raise RuntimeError(f"Transaction reverted: {tx_hash}")

        target = receipt.block_number + max(confirmations, 1) - 1
        while True:
            current = await asyncio.to_thread(lambda: int(self._w3.eth.block_number))
            if current >= target:
                return receipt
            await asyncio.sleep(self._poll_interval_sec)
