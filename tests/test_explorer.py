"""Tests for block-explorer ABI lookups."""

import json
from unittest.mock import MagicMock, patch

import pytest

from rebase_bot.explorer import ExplorerAbiClient

ADDRESS = "0x" + "ab" * 20
ABI = [{"name": "epoch", "type": "function", "inputs": [], "outputs": []}]


def _response(payload):
    resp = MagicMock()
    resp.json.return_value = payload
    return resp


class TestExplorerAbiClient:
    def test_fetches_and_caches(self):
        client = ExplorerAbiClient("https://api.ftmscan.com/api", api_key="KEY")
        with patch("rebase_bot.explorer.requests.get") as get:
            get.return_value = _response({"status": "1", "result": json.dumps(ABI)})
            assert client.get_abi(ADDRESS) == ABI
            assert client.get_abi(ADDRESS.upper().replace("0X", "0x")) == ABI

        get.assert_called_once()
        params = get.call_args.kwargs["params"]
        assert params["action"] == "getabi"
        assert params["apikey"] == "KEY"

    def test_no_key_sends_no_apikey(self):
        client = ExplorerAbiClient("https://api.ftmscan.com/api")
        with patch("rebase_bot.explorer.requests.get") as get:
            get.return_value = _response({"status": "1", "result": json.dumps(ABI)})
            client.get_abi(ADDRESS)
        assert "apikey" not in get.call_args.kwargs["params"]

    def test_unverified_contract_raises(self):
        client = ExplorerAbiClient("https://api.ftmscan.com/api")
        with patch("rebase_bot.explorer.requests.get") as get:
            get.return_value = _response({"status": "0", "result": "Contract source code not verified"})
            with pytest.raises(RuntimeError, match="not verified"):
                client.get_abi(ADDRESS)
