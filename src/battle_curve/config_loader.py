"""
Configuration loading and validation for curve quoting.
"""

import dataclasses
import os
from typing import Any

import yaml
from dotenv import load_dotenv

from battle_curve.core.curve import CurveConfig
from battle_curve.core.tiers import BattleTier, TierConfig, get_tier

REQUIRED_FIELDS = [
    "name",
    "rpc_endpoint",
]

CONFIG_VALIDATION_RULES = [
    ("curve.sol_decimals", int, 0, 18, "curve.sol_decimals must be an integer between 0 and 18"),
    ("curve.token_decimals", int, 0, 18, "curve.token_decimals must be an integer between 0 and 18"),
    ("curve.trading_fee_bps", int, 0, 10_000, "curve.trading_fee_bps must be between 0 and 10000"),
]

# Valid values for enum-like fields
VALID_VALUES = {
    "tier": [t.name.lower() for t in BattleTier],
    "logging.level": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
}

# Tier fields that may be overridden from the config file
TIER_OVERRIDE_FIELDS = (
    "virtual_sol_init",
    "target_sol",
    "victory_volume_sol",
    "qualification_sol",
    "matchmaking_tolerance_sol",
)


def load_curve_config(path: str) -> dict:
    """Load and validate a configuration from a YAML file."""
    with open(path) as f:
        config = yaml.safe_load(f) or {}

    env_file = config.get("env_file")
    if env_file:
        env_path = os.path.join(os.path.dirname(path), env_file)
        if os.path.exists(env_path):
            load_dotenv(env_path, override=True)
        else:
            load_dotenv(env_file, override=True)

    resolve_env_vars(config)

    if "tier" not in config:
        config["tier"] = "production"

    validate_config(config)
    return config


def resolve_env_vars(config: dict) -> None:
    """Recursively resolve ${VAR} references in the configuration."""
    def resolve_env(value):
        if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            env_var = value[2:-1]
            env_value = os.getenv(env_var)
            if env_value is None:
                raise ValueError(f"Environment variable '{env_var}' not found")
            return env_value
        return value

    def resolve_all(d):
        for k, v in d.items():
            if isinstance(v, dict):
                resolve_all(v)
            else:
                d[k] = resolve_env(v)

    resolve_all(config)


def get_nested_value(config: dict, path: str) -> Any:
    """Get a nested value from the configuration using dot notation."""
    keys = path.split(".")
    value = config
    for key in keys:
        if not isinstance(value, dict) or key not in value:
            raise ValueError(f"Missing required config key: {path}")
        value = value[key]
    return value


def validate_config(config: dict) -> None:
    """Validate the configuration against the rules above."""
    for field in REQUIRED_FIELDS:
        get_nested_value(config, field)

    for path, expected_type, min_val, max_val, error_msg in CONFIG_VALIDATION_RULES:
        try:
            value = get_nested_value(config, path)

            if isinstance(value, bool) or not isinstance(value, expected_type):
                raise ValueError(f"Type error: {error_msg}")

            if not (min_val <= value <= max_val):
                raise ValueError(f"Range error: {error_msg}")

        except ValueError as e:
            if str(e).startswith(("Type error:", "Range error:")):
                raise
            continue

    for path, valid_values in VALID_VALUES.items():
        try:
            value = get_nested_value(config, path)
            if value not in valid_values:
                raise ValueError(f"{path} must be one of {valid_values}")
        except ValueError as e:
            if "Missing required config key" not in str(e):
                raise

    overrides = config.get("tiers") or {}
    if not isinstance(overrides, dict):
        raise ValueError("tiers must be a mapping of tier name to overrides")
    for tier_name, fields in overrides.items():
        get_tier(str(tier_name))
        for field, value in (fields or {}).items():
            if field not in TIER_OVERRIDE_FIELDS:
                raise ValueError(
                    f"Unknown tier field 'tiers.{tier_name}.{field}'. "
                    f"Must be one of: {list(TIER_OVERRIDE_FIELDS)}"
                )
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ValueError(f"tiers.{tier_name}.{field} must be a non-negative number")


def build_curve_config(config: dict) -> CurveConfig:
    """Build the CurveConfig described by the `curve` section."""
    curve = config.get("curve") or {}
    defaults = CurveConfig()
    return CurveConfig(
        sol_decimals=curve.get("sol_decimals", defaults.sol_decimals),
        token_decimals=curve.get("token_decimals", defaults.token_decimals),
        trading_fee_bps=curve.get("trading_fee_bps", defaults.trading_fee_bps),
    )


def build_tier_config(config: dict, tier: str | None = None) -> TierConfig:
    """Build the selected tier with any `tiers.<name>` overrides applied.

    Args:
        config: Loaded configuration
        tier: Tier name, defaults to the configured `tier`
    """
    tier_name = (tier or config.get("tier", "production")).lower()
    base = get_tier(tier_name)

    overrides = (config.get("tiers") or {}).get(tier_name) or {}
    if not overrides:
        return base
    return dataclasses.replace(
        base, **{field: float(value) for field, value in overrides.items()}
    )


def print_config_summary(config: dict) -> None:
    """Print a summary of the loaded configuration."""
    curve_config = build_curve_config(config)
    tier = build_tier_config(config)

    print(f"Config name: {config.get('name', 'unnamed')}")
    print(f"RPC endpoint: {config.get('rpc_endpoint', 'not configured')}")
    print("Curve settings:")
    print(f"  - SOL decimals: {curve_config.sol_decimals}")
    print(f"  - Token decimals: {curve_config.token_decimals}")
    print(f"  - Trading fee: {curve_config.trading_fee_bps / 100}%")
    print(f"Tier: {tier.name}")
    print(f"  - Initial virtual SOL: {tier.virtual_sol_init} SOL")
    print(f"  - Target: {tier.target_sol} SOL")
    print(f"  - Victory volume: {tier.victory_volume_sol} SOL")

    print("Configuration loaded successfully!")
