"""Config loader for the bridger project."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

from web3 import Web3

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class ConfigError(ValueError):
    """Raised when configuration data is invalid or missing."""


def _to_checksum(value: str, *, field_name: str) -> str:
    try:
        return Web3.to_checksum_address(value)
    except Exception as exc:  # web3 raises ValueError for malformed inputs
        raise ConfigError(f"Invalid address for {field_name}: {value}") from exc


def _positive_int(value: Any, *, field_name: str) -> int:
    try:
        result = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field_name} must be an integer, got {value!r}") from exc
    if result <= 0:
        raise ConfigError(f"{field_name} must be positive")
    return result


def _positive_amount(value: Any, *, field_name: str) -> str:
    try:
        parsed = Decimal(str(value))
    except InvalidOperation as exc:
        raise ConfigError(f"{field_name} must be a decimal number, got {value!r}") from exc
    if not parsed.is_finite() or parsed <= 0:
        raise ConfigError(f"{field_name} must be positive")
    return str(value)


@dataclass(frozen=True)
class ChainConfig:
    """Connection settings for one layer."""

    name: str
    rpc_url: str
    chain_id: Optional[int] = None
    request_timeout: int = 30

    def ensure_rpc_url(self) -> str:
        """Return the RPC URL or raise if it is missing."""
        if not self.rpc_url:
            raise ConfigError(f"RPC URL required for {self.name} but not configured")
        return self.rpc_url


@dataclass(frozen=True)
class BridgeDefaults:
    """Default operational parameters."""

    amount: str = "10000"
    fee_reserve_wei: int = 10**16
    eth_deposit_gas: int = 300_000
    erc20_deposit_gas: int = 500_000
    confirmation_timeout: int = 300
    poll_interval: int = 5
    tx_timeout: int = 120


@dataclass(frozen=True)
class BridgeConfig:
    """Typed wrapper around everything a bridging run needs."""

    l1: ChainConfig
    l2: ChainConfig
    inbox_address: str
    native_token_address: Optional[str] = None
    defaults: BridgeDefaults = field(default_factory=BridgeDefaults)

    @property
    def uses_token_path(self) -> bool:
        return self.native_token_address is not None


def is_native_token_unset(value: Optional[str]) -> bool:
    """Return ``True`` when ``value`` selects the native-asset path."""
    return not value or value.lower() == ZERO_ADDRESS


def _validate_defaults(defaults: BridgeDefaults) -> BridgeDefaults:
    _positive_amount(defaults.amount, field_name="defaults.amount")
    if defaults.fee_reserve_wei < 0:
        raise ConfigError("defaults.fee_reserve_wei must not be negative")
    for name in ("eth_deposit_gas", "erc20_deposit_gas", "confirmation_timeout", "poll_interval", "tx_timeout"):
        _positive_int(getattr(defaults, name), field_name=f"defaults.{name}")
    if defaults.poll_interval > defaults.confirmation_timeout:
        raise ConfigError("defaults.poll_interval cannot exceed defaults.confirmation_timeout")
    return defaults


def _load_json(path: Path) -> MutableMapping[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file contains invalid JSON: {path}") from exc


@dataclass(frozen=True)
class FileOverrides:
    """Values read from an optional JSON config file."""

    defaults: BridgeDefaults = field(default_factory=BridgeDefaults)
    l1_chain_id: Optional[int] = None
    l2_chain_id: Optional[int] = None


def load_defaults(config_path: Optional[Path] = None) -> FileOverrides:
    """Load operational defaults from ``config_path``.

    Every key is optional; missing values keep their built-in defaults. The
    file may also pin the expected chain IDs under ``chains.l1`` and
    ``chains.l2``.
    """
    if config_path is None:
        return FileOverrides()

    data = _load_json(config_path)
    if not isinstance(data, Mapping):
        raise ConfigError("config root must be a JSON object")

    raw_defaults = data.get("defaults", {})
    if not isinstance(raw_defaults, Mapping):
        raise ConfigError("defaults must be a JSON object")

    known = set(BridgeDefaults.__dataclass_fields__)
    unknown = sorted(set(raw_defaults) - known)
    if unknown:
        raise ConfigError(f"defaults contains unknown keys: {', '.join(unknown)}")

    values = {}
    for key, value in raw_defaults.items():
        if key == "amount":
            values[key] = _positive_amount(value, field_name="defaults.amount")
        elif key == "fee_reserve_wei":
            try:
                values[key] = int(value)
            except (TypeError, ValueError) as exc:
                raise ConfigError("defaults.fee_reserve_wei must be an integer") from exc
        else:
            values[key] = _positive_int(value, field_name=f"defaults.{key}")
    defaults = _validate_defaults(replace(BridgeDefaults(), **values))

    chains = data.get("chains", {})
    chain_ids = {}
    for layer in ("l1", "l2"):
        chain_data = chains.get(layer, {})
        if "chain_id" in chain_data:
            chain_ids[layer] = _positive_int(chain_data["chain_id"], field_name=f"chains.{layer}.chain_id")

    return FileOverrides(
        defaults=defaults,
        l1_chain_id=chain_ids.get("l1"),
        l2_chain_id=chain_ids.get("l2"),
    )


def build_config(
    *,
    l1_rpc_url: str,
    l2_rpc_url: str,
    inbox_address: str,
    native_token_address: Optional[str] = None,
    overrides: Optional[FileOverrides] = None,
    l1_chain_id: Optional[int] = None,
    l2_chain_id: Optional[int] = None,
    confirmation_timeout: Optional[int] = None,
    poll_interval: Optional[int] = None,
) -> BridgeConfig:
    """Validate command-line inputs and assemble a :class:`BridgeConfig`."""
    overrides = overrides or FileOverrides()

    l1 = ChainConfig(name="l1", rpc_url=l1_rpc_url.strip(), chain_id=l1_chain_id or overrides.l1_chain_id)
    l2 = ChainConfig(name="l2", rpc_url=l2_rpc_url.strip(), chain_id=l2_chain_id or overrides.l2_chain_id)
    l1.ensure_rpc_url()
    l2.ensure_rpc_url()

    native_token = None
    if not is_native_token_unset(native_token_address):
        native_token = _to_checksum(native_token_address, field_name="native_token_address")

    defaults = overrides.defaults
    if confirmation_timeout is not None:
        defaults = replace(defaults, confirmation_timeout=confirmation_timeout)
    if poll_interval is not None:
        defaults = replace(defaults, poll_interval=poll_interval)

    return BridgeConfig(
        l1=l1,
        l2=l2,
        inbox_address=_to_checksum(inbox_address, field_name="inbox_address"),
        native_token_address=native_token,
        defaults=_validate_defaults(defaults),
    )


__all__ = [
    "BridgeConfig",
    "BridgeDefaults",
    "ChainConfig",
    "ConfigError",
    "FileOverrides",
    "ZERO_ADDRESS",
    "build_config",
    "is_native_token_unset",
    "load_defaults",
]
