import json
import os
from pathlib import Path
from typing import Any

from socialdex.core.constants.base import (
    DEFAULT_FEE_CUT,
    DEFAULT_FEE_TIER,
    DEFAULT_LOCK_DURATION,
    DEFAULT_SALT_SEARCH_DEPTH,
    DEFAULT_TAX_RATE,
)
from socialdex.core.constants.contracts import (
    UNISWAP_V3_FACTORY,
    UNISWAP_V3_NPM,
    UNISWAP_V3_SWAP_ROUTER,
    WETH,
)

_CONFIG_ENV_KEYS = ("SOCIALDEX_CONFIG_PATH", "SOCIALDEX_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"

_LAUNCH_DEFAULTS: dict[str, int] = {
    "fee_tier": DEFAULT_FEE_TIER,
    "lock_duration": DEFAULT_LOCK_DURATION,
    "fee_cut": DEFAULT_FEE_CUT,
    "tax_rate": DEFAULT_TAX_RATE,
    "salt_search_depth": DEFAULT_SALT_SEARCH_DEPTH,
}


def _find_project_root(start: Path) -> Path | None:
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def _project_root() -> Path | None:
    return _find_project_root(Path.cwd()) or _find_project_root(Path(__file__).parent)


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()

    env_path = next(
        (os.getenv(k, "").strip() for k in _CONFIG_ENV_KEYS if os.getenv(k)), ""
    )
    if env_path:
        p = Path(env_path).expanduser()
        if p.is_absolute():
            return p
        root = _project_root()
        return (root / p) if root else p

    root = _project_root()
    return (root / _DEFAULT_CONFIG_FILENAME) if root else Path(_DEFAULT_CONFIG_FILENAME)


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return {}
    try:
        return json.loads(cfg_path.read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in config file {cfg_path}: {exc}") from exc


def write_config_json(path: str | Path | None, config: dict[str, Any]) -> Path:
    cfg_path = resolve_config_path(path)
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    cfg_path.write_text(json.dumps(config, indent=2) + "\n")
    return cfg_path


CONFIG: dict[str, Any] = load_config_json()


def set_config(config: dict[str, Any]) -> None:
    """Replace the global CONFIG dict in-place.

    This allows code that imported CONFIG at module import time to see updates.
    """
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    """Load config from disk into the global CONFIG dict."""
    set_config(load_config_json(path, require_exists=require_exists))


def get_rpc_urls() -> dict[str, Any]:
    return CONFIG.get("rpc_urls", {})


def get_launch_defaults() -> dict[str, int]:
    """Package launch defaults overlaid with the ``launch`` config section."""
    overrides = CONFIG.get("launch", {}) or {}
    defaults = dict(_LAUNCH_DEFAULTS)
    for key, value in overrides.items():
        if key in defaults and value is not None:
            defaults[key] = int(value)
    return defaults


def get_contract_addresses(chain_id: int) -> dict[str, str | None]:
    """Known collaborator addresses for ``chain_id`` with config overrides applied.

    Overrides live under ``contracts.<chain_id>`` and may also name the
    deployer and locker, which have no built-in defaults.
    """
    addresses: dict[str, str | None] = {
        "weth": WETH.get(chain_id),
        "uniswap_v3_factory": UNISWAP_V3_FACTORY.get(chain_id),
        "position_manager": UNISWAP_V3_NPM.get(chain_id),
        "swap_router": UNISWAP_V3_SWAP_ROUTER.get(chain_id),
        "deployer": None,
        "locker": None,
    }
    overrides = (CONFIG.get("contracts", {}) or {}).get(str(chain_id), {}) or {}
    for key, value in overrides.items():
        if value:
            addresses[key] = str(value)
    return addresses


def get_token_creation_code() -> bytes | None:
    """Token creation bytecode from config, if set (``0x``-prefixed hex)."""
    raw = CONFIG.get("token_creation_code")
    if not raw:
        return None
    text = str(raw).strip()
    return bytes.fromhex(text[2:] if text.startswith("0x") else text)
