"""
Token battle platform exports.

This module provides convenient imports for the token battle account
readers and address derivation.
"""

from .account_layouts import (
    InvalidAccountData,
    LaunchStatus,
    PriceOracleState,
    TokenLaunchState,
    decode_price_oracle,
    decode_token_launch,
)
from .address_provider import BonkBattleAddresses, BonkBattleAddressProvider
from .curve_manager import BonkBattleCurveManager

__all__ = [
    "BonkBattleAddresses",
    "BonkBattleAddressProvider",
    "BonkBattleCurveManager",
    "InvalidAccountData",
    "LaunchStatus",
    "PriceOracleState",
    "TokenLaunchState",
    "decode_price_oracle",
    "decode_token_launch",
]
