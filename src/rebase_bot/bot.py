"""Entry point for the rebase bot."""

import argparse
import asyncio
import logging
import re
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path

import yaml
from dotenv import load_dotenv
from web3 import Web3

from rebase_bot.chain import ChainGateway, ContractAddresses, TxGateway
from rebase_bot.config import BotConfig, credential_warnings, load_bot_config, validate_config
from rebase_bot.coordinator import ActionCoordinator
from rebase_bot.epochs import EpochLedger
from rebase_bot.explorer import ExplorerAbiClient
from rebase_bot.models import C_RESET, C_YELLOW, NATIVE_DECIMALS, to_display
from rebase_bot.positions import PositionRegistry
from rebase_bot.retry import RetryExecutor
from rebase_bot.scheduler import Scheduler
from rebase_bot.wallet import load_or_create_wallet

RULE = "-" * 81


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Redeem & restake bonds once per epoch")
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "debug", "info", "warning", "error"],
        help="Root log level (default: INFO)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--live", action="store_true", help="Send transactions (overrides dry_run)")
    mode.add_argument("--dry-run", action="store_true", help="Never send transactions")
    return parser.parse_args(argv)


class _StripAnsiFormatter(logging.Formatter):
    """Strip ANSI escape codes for clean log files."""
    _ansi_re = re.compile(r'\033\[[0-9;]*m')

    def format(self, record):
        result = super().format(record)
        return self._ansi_re.sub('', result)


class _ColorFormatter(logging.Formatter):
    """Dim DEBUG lines on the console for visual hierarchy."""
    _DIM = "\033[2m"
    _RESET = "\033[0m"

    def format(self, record):
        result = super().format(record)
        if record.levelno <= logging.DEBUG:
            return f"{self._DIM}{result}{self._RESET}"
        return result


def _setup_logging(level_str: str) -> None:
    level = getattr(logging, level_str.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s │ %(name)-16s │ %(message)s",
        datefmt="%H:%M:%S",
    )

    for h in logging.getLogger().handlers:
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler):
            h.setFormatter(_ColorFormatter(
                fmt="%(asctime)s │ %(name)-16s │ %(message)s",
                datefmt="%H:%M:%S",
            ))

    log_dir = Path("logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"rebase_bot_{datetime.now():%Y-%m-%d_%H%M%S}.log"
    fh = logging.FileHandler(log_file)
    fh.setLevel(level)
    fh.setFormatter(_StripAnsiFormatter(
        fmt="%(asctime)s │ %(name)-16s │ %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logging.getLogger().addHandler(fh)

    for noisy in ("web3", "urllib3", "requests", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


log = logging.getLogger("rb.bot")


def _load_raw_config(path: str) -> dict:
    p = Path(path)
    if not p.exists():
        return {}
    with open(p) as f:
        return yaml.safe_load(f) or {}


def _open_ledger(cfg: BotConfig) -> EpochLedger:
    if not cfg.ledger_db_url:
        return EpochLedger()
    from rebase_bot.persistence.db import init_db
    from rebase_bot.persistence.ledger import SqlEpochLedger
    return SqlEpochLedger(init_db(cfg.ledger_db_url), account=cfg.staking_wallet)


def _log_block(level: int, lines: list[str]) -> None:
    log.log(level, RULE)
    for line in lines:
        log.log(level, line)
    log.log(level, RULE)


async def _run(cfg: BotConfig, gateway: ChainGateway, tx_gateway: TxGateway) -> None:
    retry = RetryExecutor(delay=cfg.retry_delay_sec)

    balance = await retry.execute(lambda: gateway.get_balance(tx_gateway.address), "bot wallet balance")
    _log_block(logging.WARNING, [
        "For this bot to claim and stake bonds on your behalf it needs gas.",
        f"Fund the bot wallet {tx_gateway.address}",
        f"It currently holds {to_display(balance, NATIVE_DECIMALS)} of the native token",
    ])

    registry = await PositionRegistry.discover(
        gateway, retry, cfg.max_bonds, cfg.additional_bonds,
    )
    coordinator = ActionCoordinator(
        gateway, tx_gateway, registry, _open_ledger(cfg), retry, cfg,
        gas_account=tx_gateway.address,
    )
    scheduler = Scheduler(coordinator.tick, interval_sec=cfg.poll_interval_sec)
    coordinator.attach(scheduler)

    _log_block(logging.INFO, ["STARTING BOT WATCH LOOP"])
    await scheduler.run()


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    load_dotenv()

    cfg = load_bot_config(_load_raw_config(args.config))
    if args.live:
        cfg = replace(cfg, dry_run=False)
    elif args.dry_run:
        cfg = replace(cfg, dry_run=True)
    _setup_logging(args.log_level)

    try:
        validate_config(cfg)
    except ValueError as e:
        _log_block(logging.ERROR, str(e).splitlines())
        sys.exit(1)

    for warning in credential_warnings(cfg):
        _log_block(logging.WARNING, [warning])

    if not cfg.enabled:
        log.info("Rebase bot is disabled in config")
        sys.exit(0)

    mode = "DRY RUN" if cfg.dry_run else "LIVE"
    log.info("=" * 56)
    log.info("  Rebase Bot  [%s]", mode)
    log.info("=" * 56)
    log.info("  Staking wallet  : %s", cfg.staking_wallet)
    log.info("  RPC             : %s (chain %d)", cfg.rpc_url, cfg.chain_id)
    log.info("  Poll interval   : %ds", cfg.poll_interval_sec)
    log.info("  Trigger window  : %d blocks", cfg.trigger_window_blocks)
    log.info("  Extra bonds     : %d", len(cfg.additional_bonds))
    log.info("  Epoch ledger    : %s", cfg.ledger_db_url or "in-memory")
    log.info("=" * 56)

    w3 = Web3(Web3.HTTPProvider(cfg.rpc_url))
    account = load_or_create_wallet(cfg.wallet_filename, cfg.wallet_password)

    abi_for = None
    if cfg.abi_source == "explorer":
        abi_for = ExplorerAbiClient(cfg.explorer_url, cfg.explorer_api_key).get_abi

    addresses = ContractAddresses(
        staking=cfg.staking_contract,
        staked_token=cfg.staked_token_contract,
        block_time_tracker=cfg.block_time_tracker,
        bond_information_helper=cfg.bond_information_helper,
        redeem_helper=cfg.redeem_helper,
    )
    gateway = ChainGateway(w3, addresses, abi_for=abi_for)
    tx_gateway = TxGateway(
        w3, account, cfg.redeem_helper, cfg.chain_id,
        max_gas_price_gwei=cfg.max_gas_price_gwei, abi_for=abi_for,
    )

    try:
        asyncio.run(_run(cfg, gateway, tx_gateway))
    except KeyboardInterrupt:
        log.info("%sSHUTDOWN user interrupt%s", C_YELLOW, C_RESET)
        sys.exit(0)


if __name__ == "__main__":
    main()
