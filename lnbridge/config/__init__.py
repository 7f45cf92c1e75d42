"""Configuration module for lnbridge."""

from lnbridge.config.loader import convert_keys, get_config_path, load_config
from lnbridge.config.schema import CLightningOptions, CommandConfig, Config, CredentialData, LndOptions

__all__ = [
    "CLightningOptions",
    "CommandConfig",
    "Config",
    "CredentialData",
    "LndOptions",
    "convert_keys",
    "get_config_path",
    "load_config",
]
