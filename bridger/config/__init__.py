"""Configuration utilities for the bridger."""

from .loader import (
    BridgeConfig,
    BridgeDefaults,
    ChainConfig,
    ConfigError,
    FileOverrides,
    ZERO_ADDRESS,
    build_config,
    is_native_token_unset,
    load_defaults,
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
