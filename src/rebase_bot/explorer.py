"""Verified contract ABIs from the block explorer API."""

from __future__ import annotations

import json
import logging
from typing import Any

import requests

log = logging.getLogger("rb.explorer")


class ExplorerAbiClient:
    """Fetches and caches ABIs via ``module=contract&action=getabi``.

    Errors are raised, not swallowed; callers read through RetryExecutor.
    """

    def __init__(self, api_url: str, api_key: str = "", timeout: int = 10) -> None:
        self._api_url = api_url
        self._api_key = api_key
        self._timeout = timeout
        self._cache: dict[str, list[dict[str, Any]]] = {}

    def get_abi(self, address: str) -> list[dict[str, Any]]:
        key = address.lower()
        if key in self._cache:
            return self._cache[key]

        params = {"module": "contract", "action": "getabi", "address": address}
        if self._api_key:
            params["apikey"] = self._api_key
        resp = requests.get(self._api_url, params=params, timeout=self._timeout)
        resp.raise_for_status()
        data = resp.json()
        if data.get("status") != "1":
            raise RuntimeError(f"ABI lookup failed for {address}: {data.get('result')}")

        abi = json.loads(data["result"])
        self._cache[key] = abi
        log.debug("ABI_LOADED │ %s │ %d entries", address, len(abi))
        return abi
