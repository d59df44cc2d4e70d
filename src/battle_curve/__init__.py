"""
Bonding curve pricing for the token battle launch platform.
"""

from battle_curve.core.curve import (
    CurveCalculator,
    CurveConfig,
    quote_sol_for_tokens,
    quote_tokens_for_sol,
)

__version__ = "0.1.0"

__all__ = [
    "CurveCalculator",
    "CurveConfig",
    "quote_sol_for_tokens",
    "quote_tokens_for_sol",
]
