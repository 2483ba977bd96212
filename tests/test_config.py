from pathlib import Path

import pytest

from blocktap.config import BalanceConfig, RelayConfig, TransferConfig, config_path, load_config
from blocktap.errors import ConfigError

FULL_CONFIG = """
rpc_url = "http://localhost:8899"
wallets = ["11111111111111111111111111111111", "Vote111111111111111111111111111111111111111"]
max_concurrency = 4

[[transfers]]
secret_key = "secret-one"
to = "11111111111111111111111111111111"
amount = 1000

[wallet]
rpc_url = "http://localhost:8899"
secret_key = "secret-two"
to = "11111111111111111111111111111111"
amount = 5000

[geyser]
url = "wss://geyser.example.com"
token = "t0ken"
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    p = tmp_path / "config.toml"
    p.write_text(FULL_CONFIG)
    return p


def test_one_file_serves_every_command(config_file):
    balances = load_config(BalanceConfig, config_file)
    assert balances.wallets[0] == "11111111111111111111111111111111"
    assert balances.max_concurrency == 4
    assert balances.commitment == "confirmed"

    transfers = load_config(TransferConfig, config_file)
    assert transfers.transfers[0].amount == 1000
    assert transfers.transfers[0].secret_key.get_secret_value() == "secret-one"

    relay = load_config(RelayConfig, config_file)
    assert relay.wallet.amount == 5000
    assert relay.geyser.token.get_secret_value() == "t0ken"


def test_loading_twice_is_equal(config_file):
    assert load_config(RelayConfig, config_file) == load_config(RelayConfig, config_file)
    assert load_config(BalanceConfig, config_file) == load_config(BalanceConfig, config_file)


def test_secrets_are_masked(config_file):
    relay = load_config(RelayConfig, config_file)
    assert "secret-two" not in repr(relay)
    assert "t0ken" not in repr(relay)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="cannot read"):
        load_config(BalanceConfig, tmp_path / "nope.toml")


def test_malformed_toml(tmp_path):
    p = tmp_path / "config.toml"
    p.write_text("rpc_url = \n")
    with pytest.raises(ConfigError, match="malformed TOML"):
        load_config(BalanceConfig, p)


def test_missing_field(tmp_path):
    p = tmp_path / "config.toml"
    p.write_text('rpc_url = "http://localhost:8899"\n')
    with pytest.raises(ConfigError, match="BalanceConfig"):
        load_config(BalanceConfig, p)


def test_negative_amount_rejected(tmp_path):
    p = tmp_path / "config.toml"
    p.write_text(FULL_CONFIG.replace("amount = 1000", "amount = -1"))
    with pytest.raises(ConfigError):
        load_config(TransferConfig, p)


def test_config_path_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("BLOCKTAP_CONFIG", str(tmp_path / "other.toml"))
    assert config_path() == tmp_path / "other.toml"
    assert config_path("explicit.toml") == Path("explicit.toml")
    monkeypatch.delenv("BLOCKTAP_CONFIG")
    assert config_path() == Path("config.toml")
