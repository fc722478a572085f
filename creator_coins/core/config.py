import json
import os
from pathlib import Path
from typing import Any

from eth_utils import to_checksum_address
from loguru import logger
from pydantic import BaseModel, ConfigDict

from creator_coins.core.constants.base import (
    DEFAULT_CONFIRMATIONS,
    DEFAULT_TRANSACTION_TIMEOUT,
    DEFAULT_USER_OPERATION_TIMEOUT,
)
from creator_coins.core.constants.chains import (
    DEFAULT_RPC_URLS,
    NETWORK_SEPOLIA,
    NETWORK_TO_CHAIN_ID,
)
from creator_coins.core.constants.contracts import (
    ACTIVITY_TRACKER_BY_CHAIN,
    COIN_FACTORY,
    DEFAULT_PLATFORM_REFERRER,
    ENTRY_POINT_V06,
)

_CONFIG_ENV_KEYS = ("CREATOR_COINS_CONFIG_PATH", "CREATOR_COINS_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"


def _repo_root() -> Path | None:
    """Nearest directory holding a pyproject.toml, from cwd then this package."""
    for start in (Path.cwd(), Path(__file__).parent):
        start = start.resolve()
        for candidate in (start, *start.parents):
            if (candidate / "pyproject.toml").is_file():
                return candidate
    return None


def resolve_config_path(path: str | Path | None = None) -> Path:
    """Explicit path, then the env override, then config.json at the repo root.

    Relative env paths are taken from the repo root.
    """
    if path is not None:
        return Path(path).expanduser()
    from_env = next(
        (os.environ[key].strip() for key in _CONFIG_ENV_KEYS if os.environ.get(key)),
        None,
    )
    target = Path(from_env).expanduser() if from_env else Path(_DEFAULT_CONFIG_FILENAME)
    if target.is_absolute():
        return target
    root = _repo_root()
    return root / target if root else target


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    """Read the config file; a missing or unparsable file reads as empty."""
    cfg_path = resolve_config_path(path)
    try:
        raw = cfg_path.read_text()
    except FileNotFoundError:
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}") from None
        return {}
    try:
        loaded = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning(f"Ignoring unparsable config {cfg_path}: {exc}")
        return {}
    return loaded if isinstance(loaded, dict) else {}


CONFIG: dict[str, Any] = load_config_json()


def set_config(config: dict[str, Any]) -> None:
    """Swap the contents of CONFIG, keeping the same dict object."""
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    set_config(load_config_json(path, require_exists=require_exists))


def _section(name: str) -> dict[str, Any]:
    value = CONFIG.get(name)
    return value if isinstance(value, dict) else {}


def _str_or_env(value: Any, env_key: str) -> str | None:
    if value:
        return str(value).strip()
    env = os.environ.get(env_key, "").strip()
    return env or None


def get_network() -> str:
    network = _str_or_env(CONFIG.get("network"), "CREATOR_COINS_NETWORK")
    return (network or NETWORK_SEPOLIA).lower()


def get_chain_id(network: str | None = None) -> int:
    name = (network or get_network()).lower()
    if name not in NETWORK_TO_CHAIN_ID:
        raise ValueError(f"Unknown network: {name}")
    return NETWORK_TO_CHAIN_ID[name]


def set_rpc_urls(rpc_urls: dict[str, Any]) -> None:
    CONFIG["rpc_urls"] = rpc_urls


def get_rpc_urls() -> dict[str, Any]:
    return CONFIG.get("rpc_urls", {})


def get_rpc_urls_for_chain(chain_id: int) -> list[str]:
    """Configured RPCs for ``chain_id`` (str or int key), else the public ones."""
    configured = get_rpc_urls()
    for key in (str(chain_id), int(chain_id)):
        if configured.get(key):
            rpcs = configured[key]
            break
    else:
        rpcs = DEFAULT_RPC_URLS.get(int(chain_id)) or []
    urls = [rpcs] if isinstance(rpcs, str) else list(rpcs)
    if not urls:
        raise ValueError(f"No RPCs configured for chain ID {chain_id}")
    return urls


def get_factory_address() -> str:
    contracts = _section("contracts")
    return to_checksum_address(contracts.get("factory") or COIN_FACTORY)


def get_activity_tracker_address(chain_id: int) -> str | None:
    trackers = _section("contracts").get("activity_tracker")
    address = None
    if isinstance(trackers, dict):
        address = trackers.get(str(chain_id)) or trackers.get(chain_id)
    elif isinstance(trackers, str):
        address = trackers
    address = _str_or_env(address, "CREATOR_COINS_ACTIVITY_TRACKER")
    if address is None:
        address = ACTIVITY_TRACKER_BY_CHAIN.get(int(chain_id))
    return to_checksum_address(address) if address else None


def get_platform_referrer() -> str:
    referrer = _str_or_env(CONFIG.get("platform_referrer"), "CREATOR_COINS_REFERRER")
    return to_checksum_address(referrer or DEFAULT_PLATFORM_REFERRER)


def get_platform_private_key() -> str | None:
    return _str_or_env(_section("platform").get("private_key"), "PLATFORM_PRIVATE_KEY")


def get_sponsorship_config() -> dict[str, Any]:
    return _section("sponsorship")


def get_paymaster_api_key() -> str | None:
    return _str_or_env(
        get_sponsorship_config().get("api_key"), "CREATOR_COINS_PAYMASTER_KEY"
    )


def get_bundler_url(chain_id: int) -> str | None:
    urls = get_sponsorship_config().get("bundler_urls") or {}
    url = urls.get(str(chain_id)) or urls.get(chain_id)
    if url:
        return str(url).strip()
    api_key = get_paymaster_api_key()
    if not api_key:
        return None
    slug = "base" if int(chain_id) == NETWORK_TO_CHAIN_ID["mainnet"] else "base-sepolia"
    return f"https://api.developer.coinbase.com/rpc/v1/{slug}/{api_key}"


def get_metadata_config() -> dict[str, Any]:
    return _section("metadata")


def get_pinata_jwt() -> str | None:
    return _str_or_env(get_metadata_config().get("pinata_jwt"), "PINATA_JWT")


def get_zora_api_key() -> str | None:
    return _str_or_env(_section("zora").get("api_key"), "ZORA_API_KEY")


def get_earnings_api_base_url() -> str:
    url = _section("zora").get("api_base_url")
    if url:
        return str(url).strip()
    return "https://api-sdk.zora.engineering"


def get_ledger_api_base_url() -> str | None:
    return _str_or_env(
        _section("ledger").get("api_base_url"), "CREATOR_COINS_LEDGER_URL"
    )


class PipelineSettings(BaseModel):
    """Configuration for a single pipeline run, resolved once up front."""

    model_config = ConfigDict(frozen=True)

    network: str
    chain_id: int
    factory_address: str
    platform_referrer: str
    activity_tracker_address: str | None = None
    bundler_url: str | None = None
    earnings_api_base_url: str | None = None
    ledger_api_base_url: str | None = None
    entry_point: str = ENTRY_POINT_V06
    confirmations: int = DEFAULT_CONFIRMATIONS
    transaction_timeout: int = DEFAULT_TRANSACTION_TIMEOUT
    user_operation_timeout: int = DEFAULT_USER_OPERATION_TIMEOUT


def resolve_pipeline_settings(
    *, network: str | None = None, **overrides: Any
) -> PipelineSettings:
    network_name = (network or get_network()).lower()
    chain_id = get_chain_id(network_name)
    values: dict[str, Any] = {
        "network": network_name,
        "chain_id": chain_id,
        "factory_address": get_factory_address(),
        "platform_referrer": get_platform_referrer(),
        "activity_tracker_address": get_activity_tracker_address(chain_id),
        "bundler_url": get_bundler_url(chain_id),
        "earnings_api_base_url": get_earnings_api_base_url(),
        "ledger_api_base_url": get_ledger_api_base_url(),
    }
    sponsorship = get_sponsorship_config()
    if sponsorship.get("entry_point"):
        values["entry_point"] = to_checksum_address(sponsorship["entry_point"])
    values.update({k: v for k, v in overrides.items() if v is not None})
    return PipelineSettings(**values)
