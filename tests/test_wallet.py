"""Tests for keystore load/create."""

import json

import pytest

from rebase_bot.wallet import load_or_create_wallet


class TestWallet:
    def test_creates_then_loads_same_account(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        created = load_or_create_wallet("token.wallet", "secret")
        assert (tmp_path / "token.wallet").exists()
        keystore = json.loads((tmp_path / "token.wallet").read_text())
        assert keystore["address"].lower() == created.address[2:].lower()

        loaded = load_or_create_wallet("token.wallet", "secret")
        assert loaded.address == created.address
        assert loaded.key == created.key

    def test_wrong_password_raises(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        load_or_create_wallet("token.wallet", "secret")
        with pytest.raises(ValueError):
            load_or_create_wallet("token.wallet", "not-the-secret")
