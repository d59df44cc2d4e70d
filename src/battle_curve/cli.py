#!/usr/bin/env python3
"""
Command-line interface for bonding curve quotes and launch state.
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

from solders.pubkey import Pubkey

from battle_curve.config_loader import (
    build_curve_config,
    build_tier_config,
    load_curve_config,
    print_config_summary,
)
from battle_curve.core.client import SolanaClient
from battle_curve.core.curve import CurveCalculator, CurveConfig
from battle_curve.core.tiers import TIERS, TierConfig, get_tier
from battle_curve.platforms.bonkbattle import BonkBattleCurveManager
from battle_curve.utils.logger import get_logger, set_log_level, setup_file_logging

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog="battle-curve", description="Quote trades on a token battle bonding curve."
    )
    parser.add_argument("--config", type=str, help="Path to a YAML configuration file")
    parser.add_argument("--log-file", type=str, help="Also write logs to this file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, amount_flag, amount_help in (
        ("quote-buy", "--sol", "SOL to spend"),
        ("quote-sell", "--tokens", "Tokens to sell"),
    ):
        quote = subparsers.add_parser(name, help=f"Quote a trade ({amount_help.lower()})")
        quote.add_argument(amount_flag, type=str, required=True, dest="amount", help=amount_help)
        quote.add_argument("--reserve", type=str, help="Current virtual SOL reserve")
        quote.add_argument("--k", type=str, help="Curve constant (integer)")
        quote.add_argument(
            "--tier",
            type=str,
            help="Take reserve and k from a fresh curve of this tier (test or production)",
        )
        quote.add_argument(
            "--after-fee", action="store_true", help="Net of the trading fee"
        )

    state = subparsers.add_parser("state", help="Show the curve state of a token launch")
    state.add_argument("address", type=str, help="TokenLaunch address, or mint with --mint")
    state.add_argument("--mint", action="store_true", help="Treat address as the token mint")
    state.add_argument("--rpc-endpoint", type=str, help="Override the RPC endpoint")
    state.add_argument("--usd", action="store_true", help="Read the SOL/USD oracle")

    subparsers.add_parser("tiers", help="List battle tiers")
    subparsers.add_parser("config", help="Validate and summarize the --config file")

    return parser.parse_args(argv)


def _curve_inputs(args: argparse.Namespace, tier: TierConfig | None, curve_config: CurveConfig):
    """Resolve reserve and k from explicit flags or a fresh tier curve."""
    if args.reserve is not None and args.k is not None:
        return args.reserve, args.k
    if tier is None:
        logger.error("Provide both --reserve and --k, or --tier")
        sys.exit(1)

    reserve = args.reserve if args.reserve is not None else str(tier.virtual_sol_init)
    k = args.k if args.k is not None else tier.initial_constant_k(curve_config)
    return reserve, k


def run_quote(args: argparse.Namespace, cfg: dict | None) -> None:
    curve_config = build_curve_config(cfg) if cfg else CurveConfig()
    tier = None
    if args.tier:
        try:
            tier = build_tier_config(cfg, args.tier) if cfg else get_tier(args.tier)
        except ValueError as e:
            logger.error(str(e))
            sys.exit(1)

    reserve, k = _curve_inputs(args, tier, curve_config)
    calculator = CurveCalculator(curve_config)

    if args.command == "quote-buy":
        if args.after_fee:
            result = calculator.quote_buy_after_fee(args.amount, reserve, k)
        else:
            result = calculator.quote_tokens_for_sol(args.amount, reserve, k)
        print(f"{result:.{curve_config.token_decimals}f} tokens")
    else:
        if args.after_fee:
            result = calculator.quote_sell_after_fee(args.amount, reserve, k)
        else:
            result = calculator.quote_sol_for_tokens(args.amount, reserve, k)
        print(f"{result:.{curve_config.sol_decimals}f} SOL")


def print_tiers() -> None:
    for tier_id, tier in TIERS.items():
        print(f"{tier.name} ({tier_id.value}):")
        print(f"  - Initial virtual SOL: {tier.virtual_sol_init} SOL")
        print(f"  - Target: {tier.target_sol} SOL")
        print(f"  - Victory volume: {tier.victory_volume_sol} SOL")
        print(f"  - Qualification: {tier.qualification_sol} SOL")
        print(f"  - Initial market cap: {tier.market_cap_sol(0):.4f} SOL")
        print(f"  - Final market cap: {tier.market_cap_sol(tier.target_sol):.4f} SOL")


async def show_state(args: argparse.Namespace, cfg: dict | None) -> None:
    rpc_endpoint = (
        args.rpc_endpoint
        or (cfg or {}).get("rpc_endpoint")
        or os.environ.get("SOLANA_NODE_RPC_ENDPOINT")
    )
    if not rpc_endpoint or not rpc_endpoint.startswith(("http://", "https://")):
        logger.error("Invalid RPC endpoint. Must start with http:// or https://")
        sys.exit(1)

    try:
        address = Pubkey.from_string(args.address)
    except ValueError:
        logger.error(f"Invalid address: {args.address}")
        sys.exit(1)

    curve_config = build_curve_config(cfg) if cfg else CurveConfig()
    async with SolanaClient(rpc_endpoint) as client:
        health = await client.get_health()
        if health != "ok":
            logger.warning(f"RPC endpoint health check returned {health!r}")

        manager = BonkBattleCurveManager(client, CurveCalculator(curve_config))
        if args.mint:
            address, _ = manager.address_provider.derive_launch(address)

        try:
            sol_price_usd = None
            if args.usd:
                sol_price_usd = (await manager.get_price_oracle()).price_usd
            progress = await manager.get_curve_progress(address, sol_price_usd)
        except ValueError as e:
            logger.error(f"Could not read launch {address}: {e!s}")
            sys.exit(1)

    print(f"Launch: {address}")
    for key, value in progress.items():
        print(f"  - {key}: {value}")


async def main(argv: list[str] | None = None) -> None:
    """Main entry point for the CLI."""
    args = parse_args(argv)

    cfg = None
    if args.config:
        try:
            cfg = load_curve_config(args.config)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load config {args.config}: {e!s}")
            sys.exit(1)

    logging_cfg = (cfg or {}).get("logging") or {}
    log_file = args.log_file or logging_cfg.get("file")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        setup_file_logging(log_file)
    if logging_cfg.get("level"):
        set_log_level(logging_cfg["level"])

    if args.command in ("quote-buy", "quote-sell"):
        run_quote(args, cfg)
    elif args.command == "tiers":
        print_tiers()
    elif args.command == "config":
        if cfg is None:
            logger.error("The config command needs --config")
            sys.exit(1)
        print_config_summary(cfg)
    elif args.command == "state":
        await show_state(args, cfg)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
