from __future__ import annotations

import copy
from pathlib import Path

import pytest

import socialdex.core.config as config
from socialdex.core.constants.base import DEFAULT_FEE_CUT, DEFAULT_TAX_RATE
from socialdex.core.constants.chains import CHAIN_ID_BASE, CHAIN_ID_LOCAL
from socialdex.core.constants.contracts import UNISWAP_V3_NPM, WETH


@pytest.fixture
def restore_global_config() -> None:
    original = copy.deepcopy(config.CONFIG)
    yield
    config.set_config(original)


def test_resolve_config_path_defaults_to_repo_root(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("SOCIALDEX_CONFIG_PATH", raising=False)
    monkeypatch.delenv("SOCIALDEX_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)

    repo_root = Path(__file__).resolve().parents[2]
    assert config.resolve_config_path() == repo_root / "config.json"


def test_resolve_config_path_env_relative_is_repo_relative(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("SOCIALDEX_CONFIG_PATH", "config.example.json")
    monkeypatch.chdir(tmp_path)

    repo_root = Path(__file__).resolve().parents[2]
    assert config.resolve_config_path() == repo_root / "config.example.json"


def test_load_config_json_supports_env_override(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("SOCIALDEX_CONFIG_PATH", "config.example.json")
    monkeypatch.chdir(tmp_path)

    cfg = config.load_config_json()
    assert cfg["launch"]["fee_tier"] == 10000
    assert isinstance(cfg["rpc_urls"], dict)


def test_load_config_json_missing_file(tmp_path: Path) -> None:
    missing = tmp_path / "nope.json"
    assert config.load_config_json(missing) == {}
    with pytest.raises(FileNotFoundError):
        config.load_config_json(missing, require_exists=True)


def test_load_config_json_rejects_bad_json(tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(ValueError, match="Invalid JSON"):
        config.load_config_json(bad)


def test_write_then_load_updates_global_config(
    restore_global_config: None, tmp_path: Path
) -> None:
    path = config.write_config_json(tmp_path / "nested" / "config.json", {"launch": {"fee_cut": 50}})
    config.load_config(path, require_exists=True)

    assert config.CONFIG["launch"]["fee_cut"] == 50
    assert config.get_launch_defaults()["fee_cut"] == 50


def test_launch_defaults_ignore_unknown_and_null_keys(restore_global_config: None) -> None:
    config.set_config({"launch": {"tax_rate": None, "colour": 3, "fee_tier": "3000"}})

    defaults = config.get_launch_defaults()
    assert defaults["tax_rate"] == DEFAULT_TAX_RATE
    assert defaults["fee_cut"] == DEFAULT_FEE_CUT
    assert defaults["fee_tier"] == 3000
    assert "colour" not in defaults


def test_contract_addresses_apply_overrides(restore_global_config: None) -> None:
    deployer = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
    config.set_config({"contracts": {str(CHAIN_ID_BASE): {"deployer": deployer}}})

    addresses = config.get_contract_addresses(CHAIN_ID_BASE)
    assert addresses["deployer"] == deployer
    assert addresses["locker"] is None
    assert addresses["weth"] == WETH[CHAIN_ID_BASE]
    assert addresses["position_manager"] == UNISWAP_V3_NPM[CHAIN_ID_BASE]

    local = config.get_contract_addresses(CHAIN_ID_LOCAL)
    assert local["deployer"] is None
    assert local["uniswap_v3_factory"] is None


def test_token_creation_code_from_config(restore_global_config: None) -> None:
    config.set_config({})
    assert config.get_token_creation_code() is None

    config.set_config({"token_creation_code": "0x6080"})
    assert config.get_token_creation_code() == b"\x60\x80"


@pytest.mark.asyncio
async def test_web3_uses_configured_rpc(restore_global_config: None) -> None:
    config.set_config({"rpc_urls": {"8453": ["https://base.example/rpc"]}})

    from socialdex.core.utils.web3 import web3_from_chain_id

    async with web3_from_chain_id(CHAIN_ID_BASE) as w3:
        assert w3.provider.endpoint_uri == "https://base.example/rpc"


def test_web3_without_rpc_raises(restore_global_config: None) -> None:
    config.set_config({"rpc_urls": {}})

    from socialdex.core.utils.web3 import get_web3s_from_chain_id

    with pytest.raises(ValueError, match="No RPCs configured"):
        get_web3s_from_chain_id(CHAIN_ID_BASE)
