"""Bot signing wallet kept in an encrypted keystore file."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from eth_account import Account
from eth_account.signers.local import LocalAccount

log = logging.getLogger("rb.wallet")


def resolve_path(filename: str) -> Path:
    """Relative names resolve against the working directory."""
    return (Path.cwd() / filename).resolve()


def load_or_create_wallet(filename: str, password: str) -> LocalAccount:
    """Decrypt the keystore at *filename*, creating a fresh wallet if it is missing."""
    path = resolve_path(filename)

    if not path.exists():
        account = Account.create()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(Account.encrypt(account.key, password)))
        log.info("WALLET │ created new wallet %s", account.address)
        log.info("WALLET │ saved keystore to %s", path)
        return account

    keystore = json.loads(path.read_text())
    account = Account.from_key(Account.decrypt(keystore, password))
    log.info("WALLET │ loaded from %s", path)
    log.info("WALLET │ address %s", account.address)
    return account
