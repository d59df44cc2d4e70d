"""
Constant-product bonding curve pricing.

Quotes are computed on integer base units (lamports and token base units)
so a curve constant far beyond float precision is never rounded. Every
division is a floor division, so a quote is a lower bound of what the
on-chain program settles.
"""

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, localcontext

from battle_curve.core.pubkeys import BPS_DENOMINATOR, SOL_DECIMALS, TOKEN_DECIMALS
from battle_curve.utils.logger import get_logger

logger = get_logger(__name__)

# Trading fee charged by the program on buys (2.00%)
DEFAULT_TRADING_FEE_BPS = 200

Amount = int | float | str | Decimal


class CurveError(ValueError):
    """Base error for bonding curve calculations."""


class InvalidCurveInput(CurveError):
    """Raised when an amount, reserve or curve constant is unusable."""


class CurveArithmeticError(CurveError):
    """Raised when the invariant math yields an impossible result."""


@dataclass(frozen=True)
class CurveConfig:
    """Unit and fee settings shared by every quote on a curve."""

    sol_decimals: int = SOL_DECIMALS
    token_decimals: int = TOKEN_DECIMALS
    trading_fee_bps: int = DEFAULT_TRADING_FEE_BPS

    def __post_init__(self) -> None:
        for name in ("sol_decimals", "token_decimals", "trading_fee_bps"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer")
        if self.trading_fee_bps > BPS_DENOMINATOR:
            raise ValueError(f"trading_fee_bps must not exceed {BPS_DENOMINATOR}")

    @property
    def lamports_per_sol(self) -> int:
        return 10**self.sol_decimals

    @property
    def token_base_units(self) -> int:
        return 10**self.token_decimals


DEFAULT_CONFIG = CurveConfig()


def _to_decimal(amount: Amount, name: str) -> Decimal:
    if isinstance(amount, bool):
        raise InvalidCurveInput(f"{name} must be a number, got bool")

    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, (int, float)):
        # str() keeps the shortest repr, so 0.1 stays 0.1 rather than its binary expansion
        value = Decimal(str(amount))
    elif isinstance(amount, str):
        try:
            value = Decimal(amount.strip())
        except InvalidOperation:
            raise InvalidCurveInput(f"{name} is not a number: {amount!r}")
    else:
        raise InvalidCurveInput(f"{name} has unsupported type {type(amount).__name__}")

    if not value.is_finite():
        raise InvalidCurveInput(f"{name} must be finite, got {amount!r}")
    return value


def to_base_units(amount: Amount, decimals: int, name: str = "amount") -> int:
    """Convert a human amount to integer base units, truncating toward zero.

    Floats are read through their shortest repr, so the result follows the
    decimal value as typed (1.1 SOL is 1_100_000_000 lamports) rather than
    the binary float product, which can land one base unit lower.

    Args:
        amount: Human-readable quantity (e.g. 1.5 SOL)
        decimals: Number of decimal places of the asset
        name: Label used in error messages

    Returns:
        Amount in base units

    Raises:
        InvalidCurveInput: If the amount is negative, non-finite or not a number
    """
    value = _to_decimal(amount, name)
    if value < 0:
        raise InvalidCurveInput(f"{name} must not be negative, got {amount!r}")

    with localcontext() as ctx:
        ctx.prec = 100
        return math.floor(value * (Decimal(10) ** decimals))


def parse_constant_k(k: int | str | Decimal) -> int:
    """Parse the curve constant into an exact positive integer.

    Floats are refused: any k worth quoting exceeds 2**53 and a float
    has already lost digits by the time it arrives here.
    """
    if isinstance(k, (bool, float)):
        raise InvalidCurveInput(f"Curve constant must be an integer or decimal string, got {type(k).__name__}")

    if isinstance(k, int):
        value = k
    elif isinstance(k, str):
        text = k.strip()
        if not (text.isascii() and text.isdigit()):
            raise InvalidCurveInput(f"Malformed curve constant: {k!r}")
        value = int(text)
    elif isinstance(k, Decimal):
        if not k.is_finite() or k != k.to_integral_value():
            raise InvalidCurveInput(f"Curve constant must be integral, got {k!r}")
        value = int(k)
    else:
        raise InvalidCurveInput(f"Curve constant has unsupported type {type(k).__name__}")

    if value <= 0:
        raise InvalidCurveInput(f"Curve constant must be positive, got {value}")
    return value


def _check_reserves(x: int, k: int) -> None:
    if x <= 0:
        raise InvalidCurveInput(f"SOL reserve must be at least one base unit, got {x}")
    if k <= 0:
        raise InvalidCurveInput(f"Curve constant must be positive, got {k}")


def tokens_out(x: int, dx: int, k: int) -> int:
    """Token base units released when dx lamports enter a curve at reserve x.

    Args:
        x: Current SOL reserve in lamports
        dx: SOL added in lamports
        k: Curve constant

    Returns:
        Tokens received in base units
    """
    _check_reserves(x, k)
    if dx < 0:
        raise InvalidCurveInput(f"SOL input must not be negative, got {dx}")

    y = k // x
    new_y = k // (x + dx)
    dy = y - new_y
    if dy < 0:
        raise CurveArithmeticError(f"Negative token output {dy} for x={x}, dx={dx}")
    return dy


def lamports_out(x: int, dy: int, k: int) -> int:
    """Lamports released when dy token base units return to a curve at reserve x.

    Args:
        x: Current SOL reserve in lamports
        dy: Tokens sold in base units
        k: Curve constant

    Returns:
        SOL received in lamports
    """
    _check_reserves(x, k)
    if dy < 0:
        raise InvalidCurveInput(f"Token input must not be negative, got {dy}")
    if dy == 0:
        return 0

    y = k // x
    new_x = k // (y + dy)
    dx = x - new_x
    if dx < 0:
        raise CurveArithmeticError(f"Negative SOL output {dx} for x={x}, dy={dy}")
    return dx


class CurveCalculator:
    """Quotes buys and sells against a constant-product curve.

    The calculator holds no curve state: reserve and k arrive with every
    call, so one instance can serve any number of curves that share the
    same CurveConfig.
    """

    def __init__(self, config: CurveConfig | None = None):
        """Initialize the calculator.

        Args:
            config: Unit and fee settings, defaults to SOL/6-decimal tokens
        """
        self.config = config or DEFAULT_CONFIG

    def _reserve_lamports(self, current_virtual_sol_reserve: Amount) -> int:
        if _to_decimal(current_virtual_sol_reserve, "reserve") <= 0:
            raise InvalidCurveInput(
                f"SOL reserve must be positive, got {current_virtual_sol_reserve!r}"
            )
        return to_base_units(
            current_virtual_sol_reserve, self.config.sol_decimals, "reserve"
        )

    def _positive_base_units(self, amount: Amount, decimals: int, name: str) -> int:
        if _to_decimal(amount, name) <= 0:
            raise InvalidCurveInput(f"{name} must be positive, got {amount!r}")
        return to_base_units(amount, decimals, name)

    def quote_tokens_for_sol(
        self,
        sol_amount: Amount,
        current_virtual_sol_reserve: Amount,
        k: int | str | Decimal,
    ) -> float:
        """Quote the tokens received for spending sol_amount SOL.

        Args:
            sol_amount: SOL to spend (human units)
            current_virtual_sol_reserve: Virtual plus raised SOL before the trade
            k: Curve constant as an int or decimal string

        Returns:
            Tokens received in human units, or 0 if no quote is available
        """
        try:
            dx = self._positive_base_units(
                sol_amount, self.config.sol_decimals, "sol_amount"
            )
            x = self._reserve_lamports(current_virtual_sol_reserve)
            dy = tokens_out(x, dx, parse_constant_k(k))
        except CurveError as e:
            logger.warning(f"Token quote unavailable: {e!s}")
            return 0.0
        except Exception as e:
            logger.error(f"Error calculating tokens: {e!s}")
            return 0.0

        return dy / self.config.token_base_units

    def quote_sol_for_tokens(
        self,
        token_amount: Amount,
        current_virtual_sol_reserve: Amount,
        k: int | str | Decimal,
    ) -> float:
        """Quote the SOL received for selling token_amount tokens.

        Args:
            token_amount: Tokens to sell (human units)
            current_virtual_sol_reserve: Virtual plus raised SOL before the trade
            k: Curve constant as an int or decimal string

        Returns:
            SOL received in human units, or 0 if no quote is available
        """
        try:
            dy = self._positive_base_units(
                token_amount, self.config.token_decimals, "token_amount"
            )
            x = self._reserve_lamports(current_virtual_sol_reserve)
            dx = lamports_out(x, dy, parse_constant_k(k))
        except CurveError as e:
            logger.warning(f"SOL quote unavailable: {e!s}")
            return 0.0
        except Exception as e:
            logger.error(f"Error calculating SOL: {e!s}")
            return 0.0

        return dx / self.config.lamports_per_sol

    def spot_price(
        self, current_virtual_sol_reserve: Amount, k: int | str | Decimal
    ) -> float:
        """Current price in SOL per whole token.

        Raises:
            InvalidCurveInput: If the reserve or k is unusable
        """
        x = self._reserve_lamports(current_virtual_sol_reserve)
        y = parse_constant_k(k) // x
        if y <= 0:
            return 0.0

        return (x * self.config.token_base_units) / (y * self.config.lamports_per_sol)

    def apply_trading_fee(self, sol_amount: Amount) -> tuple[int, int]:
        """Split a SOL amount into the part that reaches the curve and the fee.

        Returns:
            Tuple of (net_lamports, fee_lamports)
        """
        lamports = to_base_units(sol_amount, self.config.sol_decimals, "sol_amount")
        return self._split_fee(lamports)

    def _split_fee(self, lamports: int) -> tuple[int, int]:
        fee = lamports * self.config.trading_fee_bps // BPS_DENOMINATOR
        return lamports - fee, fee

    def quote_buy_after_fee(
        self,
        sol_amount: Amount,
        current_virtual_sol_reserve: Amount,
        k: int | str | Decimal,
    ) -> float:
        """Quote a buy after the trading fee has been taken from sol_amount."""
        try:
            net_lamports, _ = self.apply_trading_fee(sol_amount)
        except CurveError as e:
            logger.warning(f"Token quote unavailable: {e!s}")
            return 0.0

        net_sol = Decimal(net_lamports).scaleb(-self.config.sol_decimals)
        return self.quote_tokens_for_sol(net_sol, current_virtual_sol_reserve, k)

    def quote_sell_after_fee(
        self,
        token_amount: Amount,
        current_virtual_sol_reserve: Amount,
        k: int | str | Decimal,
    ) -> float:
        """Quote the SOL paid out for a sell once the trading fee is taken.

        The fee is floored on the lamports released by the curve, the same
        order the program settles a sell in.
        """
        try:
            dy = self._positive_base_units(
                token_amount, self.config.token_decimals, "token_amount"
            )
            x = self._reserve_lamports(current_virtual_sol_reserve)
            net_lamports, _ = self._split_fee(lamports_out(x, dy, parse_constant_k(k)))
        except CurveError as e:
            logger.warning(f"SOL quote unavailable: {e!s}")
            return 0.0
        except Exception as e:
            logger.error(f"Error calculating SOL: {e!s}")
            return 0.0

        return net_lamports / self.config.lamports_per_sol


_default_calculator = CurveCalculator()


def quote_tokens_for_sol(
    sol_amount: Amount,
    current_virtual_sol_reserve: Amount,
    k: int | str | Decimal,
    config: CurveConfig | None = None,
) -> float:
    """Quote tokens for SOL, returning 0 when no quote is available."""
    calculator = CurveCalculator(config) if config else _default_calculator
    return calculator.quote_tokens_for_sol(sol_amount, current_virtual_sol_reserve, k)


def quote_sol_for_tokens(
    token_amount: Amount,
    current_virtual_sol_reserve: Amount,
    k: int | str | Decimal,
    config: CurveConfig | None = None,
) -> float:
    """Quote SOL for tokens, returning 0 when no quote is available."""
    calculator = CurveCalculator(config) if config else _default_calculator
    return calculator.quote_sol_for_tokens(token_amount, current_virtual_sol_reserve, k)
