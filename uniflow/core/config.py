import json
import os
from pathlib import Path
from typing import Any

from uniflow.core.constants.base import (
    DEFAULT_PLACEHOLDER_FEE,
    DEFAULT_PLACEHOLDER_TICK_SPACING,
    DEFAULT_POLICY_VALUE_CEILING_WEI,
)
from uniflow.core.constants.chains import CHAIN_ID_TO_CODE, PUBLIC_RPC_URLS

_CONFIG_ENV_KEYS = ("UNIFLOW_CONFIG_PATH", "UNIFLOW_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"


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
        raise ValueError(f"Config file {cfg_path} is not valid JSON: {exc}") from exc


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


def _section(name: str) -> dict[str, Any]:
    value = CONFIG.get(name)
    return value if isinstance(value, dict) else {}


def _str_setting(section: str, key: str, env_key: str) -> str | None:
    value = _section(section).get(key)
    if value:
        return str(value).strip()
    env_value = os.environ.get(env_key, "").strip()
    return env_value or None


def get_rpc_urls() -> dict[str, Any]:
    return _section("rpc_urls")


def get_rpc_url(chain_id: int) -> str:
    mapping = get_rpc_urls()
    rpc = mapping.get(str(chain_id))
    if rpc is None:
        rpc = mapping.get(chain_id)  # allow int keys
    if isinstance(rpc, list):
        rpc = rpc[0] if rpc else None
    if rpc:
        return str(rpc).strip()

    code = CHAIN_ID_TO_CODE.get(int(chain_id))
    if code:
        env_rpc = os.environ.get(f"{code.upper()}_RPC_URL", "").strip()
        if env_rpc:
            return env_rpc

    public = PUBLIC_RPC_URLS.get(int(chain_id))
    if public is None:
        raise ValueError(f"No RPC configured for chain ID {chain_id}")
    return public


def get_privy_app_id() -> str | None:
    return _str_setting("privy", "app_id", "PRIVY_APP_ID")


def get_privy_app_secret() -> str | None:
    return _str_setting("privy", "app_secret", "PRIVY_APP_SECRET")


def get_privy_signer_id() -> str | None:
    return _str_setting("privy", "signer_id", "PRIVY_SIGNER_ID")


def get_privy_signer_private_key() -> str | None:
    return _str_setting("privy", "signer_private_key", "PRIVY_SIGNER_PRIVATE_KEY")


def get_privy_policy_id() -> str | None:
    return _str_setting("privy", "policy_id", "PRIVY_POLICY_ID")


def get_privy_api_base_url() -> str:
    return _str_setting("privy", "api_base_url", "PRIVY_API_BASE_URL") or (
        "https://api.privy.io"
    )


def get_policy_value_ceiling_wei() -> int:
    raw = _section("policy").get("value_ceiling_wei")
    if raw is None:
        raw = os.environ.get("POLICY_VALUE_CEILING_WEI")
    if raw is None or str(raw).strip() == "":
        return DEFAULT_POLICY_VALUE_CEILING_WEI
    return int(str(raw).strip())


def get_policy_extra_allowed_contracts() -> list[str]:
    raw = _section("policy").get("extra_allowed_contracts") or []
    if isinstance(raw, str):
        raw = [part for part in raw.split(",") if part.strip()]
    return [str(addr).strip() for addr in raw]


def get_subgraph_api_key() -> str | None:
    return _str_setting("subgraph", "api_key", "THE_GRAPH_API_KEY")


def get_placeholder_pool_params() -> tuple[int, int]:
    discovery = _section("discovery")
    fee = int(discovery.get("default_fee", DEFAULT_PLACEHOLDER_FEE))
    tick_spacing = int(
        discovery.get("default_tick_spacing", DEFAULT_PLACEHOLDER_TICK_SPACING)
    )
    return fee, tick_spacing
