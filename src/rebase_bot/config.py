"""Configuration loading for the rebase bot.

Merge order: dataclass defaults → config.yaml ``rebase_bot`` section →
environment variables (a ``.env`` file is loaded by the entry point).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from web3 import Web3

FANTOM_CHAIN_ID = 250


@dataclass(frozen=True)
class BotConfig:
    enabled: bool = True
    dry_run: bool = True
    poll_interval_sec: int = 60
    retry_delay_sec: float = 2.0

    # Trigger
    trigger_window_blocks: int = 300
    confirmations: int = 2

    # Bonds
    max_bonds: int = 20
    additional_bonds: tuple[str, ...] = ()

    # Chain
    rpc_url: str = "https://rpc.ftm.tools"
    chain_id: int = FANTOM_CHAIN_ID
    max_gas_price_gwei: int = 2000

    # Accounts
    staking_wallet: str = ""
    wallet_filename: str = "token.wallet"
    wallet_password: str = ""

    # Block explorer (only used with abi_source=explorer)
    abi_source: str = "inline"
    explorer_url: str = "https://api.ftmscan.com/api"
    explorer_api_key: str = ""

    # Contracts
    bond_information_helper: str = "0xd915Aff2F6AFB96F4d8765C663b60c8a5AdC6729"
    block_time_tracker: str = "0x706e05D2b47cc6B1fb615EE76DD3789d2329E22e"
    staked_token_contract: str = "0x8de250c65636ef02a75e4999890c91cecd38d03d"
    staking_contract: str = "0x8b8d40f98a2f14e2dd972b3f2e2a2cc227d1e3be"
    redeem_helper: str = "0x9d1530475b6282bd92da5628e36052f70c56a208"
    token_symbol: str = "EXOD"
    staked_token_symbol: str = "sEXOD"

    # Durable epoch ledger; empty keeps it in memory
    ledger_db_url: str = ""


# Environment variable → config field
_ENV_OVERRIDES: dict[str, str] = {
    "DAO_WALLET_ADDRESS": "staking_wallet",
    "BOT_WALLET_FILENAME": "wallet_filename",
    "BOT_WALLET_PASSWORD": "wallet_password",
    "FTM_SCAN_API_KEY": "explorer_api_key",
    "BOND_INFORMATION_HELPER": "bond_information_helper",
    "BLOCK_TIME_TRACKER": "block_time_tracker",
    "STAKED_TOKEN_CONTRACT": "staked_token_contract",
    "STAKING_CONTRACT": "staking_contract",
    "REDEEM_HELPER": "redeem_helper",
    "TOKEN_SYMBOL": "token_symbol",
    "STAKED_TOKEN_SYMBOL": "staked_token_symbol",
    "RPC_URL": "rpc_url",
    "LEDGER_DB_URL": "ledger_db_url",
}

_CONTRACT_FIELDS = (
    "bond_information_helper",
    "block_time_tracker",
    "staked_token_contract",
    "staking_contract",
    "redeem_helper",
)


def _split_addresses(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(str(v).strip() for v in value if str(v).strip())


def load_bot_config(raw: dict[str, Any], environ: Mapping[str, str] | None = None) -> BotConfig:
    """Build BotConfig from config.yaml's rebase_bot section plus the environment."""
    rb = dict(raw.get("rebase_bot", {}) or {})
    env = os.environ if environ is None else environ

    for var, name in _ENV_OVERRIDES.items():
        if env.get(var):
            rb[name] = env[var]
    if env.get("ADDITIONAL_BONDS"):
        rb["additional_bonds"] = env["ADDITIONAL_BONDS"]

    defaults = BotConfig()
    return BotConfig(
        enabled=bool(rb.get("enabled", defaults.enabled)),
        dry_run=bool(rb.get("dry_run", defaults.dry_run)),
        poll_interval_sec=int(rb.get("poll_interval_sec", defaults.poll_interval_sec)),
        retry_delay_sec=float(rb.get("retry_delay_sec", defaults.retry_delay_sec)),
        trigger_window_blocks=int(rb.get("trigger_window_blocks", defaults.trigger_window_blocks)),
        confirmations=int(rb.get("confirmations", defaults.confirmations)),
        max_bonds=int(rb.get("max_bonds", defaults.max_bonds)),
        additional_bonds=_split_addresses(rb.get("additional_bonds")),
        rpc_url=str(rb.get("rpc_url", defaults.rpc_url)),
        chain_id=int(rb.get("chain_id", defaults.chain_id)),
        max_gas_price_gwei=int(rb.get("max_gas_price_gwei", defaults.max_gas_price_gwei)),
        staking_wallet=str(rb.get("staking_wallet", defaults.staking_wallet) or ""),
        wallet_filename=str(rb.get("wallet_filename", defaults.wallet_filename)),
        wallet_password=str(rb.get("wallet_password", defaults.wallet_password) or ""),
        abi_source=str(rb.get("abi_source", defaults.abi_source)),
        explorer_url=str(rb.get("explorer_url", defaults.explorer_url)),
        explorer_api_key=str(rb.get("explorer_api_key", defaults.explorer_api_key) or ""),
        bond_information_helper=str(rb.get("bond_information_helper", defaults.bond_information_helper)),
        block_time_tracker=str(rb.get("block_time_tracker", defaults.block_time_tracker)),
        staked_token_contract=str(rb.get("staked_token_contract", defaults.staked_token_contract)),
        staking_contract=str(rb.get("staking_contract", defaults.staking_contract)),
        redeem_helper=str(rb.get("redeem_helper", defaults.redeem_helper)),
        token_symbol=str(rb.get("token_symbol", defaults.token_symbol)),
        staked_token_symbol=str(rb.get("staked_token_symbol", defaults.staked_token_symbol)),
        ledger_db_url=str(rb.get("ledger_db_url", defaults.ledger_db_url) or ""),
    )


def validate_config(cfg: BotConfig) -> None:
    """Validate config values. Raises ValueError with all issues found."""
    errors: list[str] = []

    if not cfg.staking_wallet:
        errors.append(
            "staking wallet address missing: export DAO_WALLET_ADDRESS=<walletaddress> "
            "or set rebase_bot.staking_wallet"
        )
    elif not Web3.is_address(cfg.staking_wallet):
        errors.append(f"staking_wallet is not an address: {cfg.staking_wallet}")
    for name in _CONTRACT_FIELDS:
        value = getattr(cfg, name)
        if not Web3.is_address(value):
            errors.append(f"{name} is not an address: {value}")
    for bond in cfg.additional_bonds:
        if not Web3.is_address(bond):
            errors.append(f"additional bond is not an address: {bond}")
    if cfg.poll_interval_sec <= 0:
        errors.append(f"poll_interval_sec must be > 0, got {cfg.poll_interval_sec}")
    if cfg.retry_delay_sec < 0:
        errors.append(f"retry_delay_sec must be >= 0, got {cfg.retry_delay_sec}")
    if cfg.trigger_window_blocks <= 0:
        errors.append(f"trigger_window_blocks must be > 0, got {cfg.trigger_window_blocks}")
    if cfg.confirmations < 1:
        errors.append(f"confirmations must be >= 1, got {cfg.confirmations}")
    if cfg.max_bonds < 0:
        errors.append(f"max_bonds must be >= 0, got {cfg.max_bonds}")
    if cfg.max_gas_price_gwei <= 0:
        errors.append(f"max_gas_price_gwei must be > 0, got {cfg.max_gas_price_gwei}")
    if cfg.abi_source not in ("inline", "explorer"):
        errors.append(f"abi_source must be 'inline' or 'explorer', got {cfg.abi_source!r}")

    if errors:
        raise ValueError("Config validation failed:\n  " + "\n  ".join(errors))


def credential_warnings(cfg: BotConfig) -> list[str]:
    """Non-fatal credential problems worth one warning at startup."""
    warnings: list[str] = []
    if not cfg.wallet_password:
        warnings.append(
            "No bot wallet password set in BOT_WALLET_PASSWORD; "
            "the keystore is encrypted with an empty password. This is probably not a good idea..."
        )
    if cfg.abi_source == "explorer" and not cfg.explorer_api_key:
        warnings.append(
            "Using the community FTMscan API quota. Get your own key from https://ftmscan.com/ "
            "and export it as FTM_SCAN_API_KEY=<apikey>"
        )
    return warnings
