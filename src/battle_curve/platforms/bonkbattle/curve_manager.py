"""
Token battle curve manager.

Reads launch and oracle accounts over RPC and quotes trades against the
decoded curve state. The program itself is never written to.
"""

from decimal import Decimal
from typing import Any

from solders.pubkey import Pubkey

from battle_curve.core.client import SolanaClient
from battle_curve.core.curve import Amount, CurveCalculator
from battle_curve.core.tiers import get_tier
from battle_curve.platforms.bonkbattle.account_layouts import (
    PriceOracleState,
    TokenLaunchState,
    decode_price_oracle,
    decode_token_launch,
)
from battle_curve.platforms.bonkbattle.address_provider import BonkBattleAddressProvider
from battle_curve.utils.logger import get_logger

logger = get_logger(__name__)

# Whole tokens minted per launch
TOTAL_SUPPLY = 1_000_000_000


class BonkBattleCurveManager:
    """Quotes trades from on-chain token launch state."""

    def __init__(
        self,
        client: SolanaClient,
        calculator: CurveCalculator | None = None,
        address_provider: BonkBattleAddressProvider | None = None,
        total_supply: int = TOTAL_SUPPLY,
    ):
        """Initialize the curve manager.

        Args:
            client: Solana RPC client
            calculator: Curve calculator, defaults to standard SOL/token units
            address_provider: Address provider for PDA derivation
            total_supply: Whole tokens used for market cap
        """
        self.client = client
        self.calculator = calculator or CurveCalculator()
        self.address_provider = address_provider or BonkBattleAddressProvider()
        self.total_supply = total_supply

    async def get_launch_state(self, launch_address: Pubkey) -> TokenLaunchState:
        """Get the current state of a token launch.

        Args:
            launch_address: Address of the TokenLaunch account

        Returns:
            Decoded TokenLaunchState

        Raises:
            ValueError: If the account is missing or cannot be decoded
        """
        try:
            account = await self.client.get_account_info(launch_address)
            if not account.data:
                raise ValueError(f"No data in launch account {launch_address}")

            state = decode_token_launch(bytes(account.data))
            logger.debug(
                f"Decoded launch {launch_address} ({state.layout_version}): "
                f"raised={state.sol_raised} lamports, k={state.constant_k}"
            )
            return state

        except Exception as e:
            logger.error(f"Failed to get launch state: {e!s}")
            raise ValueError(f"Invalid launch state: {e!s}")

    async def get_launch_state_for_mint(self, mint: Pubkey) -> TokenLaunchState:
        """Get launch state by token mint instead of launch address."""
        launch_address, _ = self.address_provider.derive_launch(mint)
        return await self.get_launch_state(launch_address)

    async def get_price_oracle(self) -> PriceOracleState:
        """Get the SOL/USD price oracle.

        Raises:
            ValueError: If the account is missing or cannot be decoded
        """
        oracle_address, _ = self.address_provider.derive_price_oracle()
        try:
            account = await self.client.get_account_info(oracle_address)
            if not account.data:
                raise ValueError(f"No data in price oracle account {oracle_address}")

            return decode_price_oracle(bytes(account.data))

        except Exception as e:
            logger.error(f"Failed to get price oracle: {e!s}")
            raise ValueError(f"Invalid price oracle state: {e!s}")

    def _reserve(self, state: TokenLaunchState) -> Decimal:
        # Exact lamport count, no float round trip
        lamports = state.virtual_sol_init + state.sol_raised
        return Decimal(lamports).scaleb(-self.calculator.config.sol_decimals)

    def quote_buy_from_state(self, state: TokenLaunchState, sol_amount: Amount) -> float:
        return self.calculator.quote_tokens_for_sol(
            sol_amount, self._reserve(state), state.constant_k
        )

    def quote_sell_from_state(self, state: TokenLaunchState, token_amount: Amount) -> float:
        return self.calculator.quote_sol_for_tokens(
            token_amount, self._reserve(state), state.constant_k
        )

    async def quote_buy(self, launch_address: Pubkey, sol_amount: Amount) -> float:
        """Quote tokens received for spending sol_amount SOL.

        Args:
            launch_address: Address of the TokenLaunch account
            sol_amount: SOL to spend (decimal SOL)

        Returns:
            Expected tokens (decimal tokens), 0 if no quote is available
        """
        state = await self.get_launch_state(launch_address)
        return self.quote_buy_from_state(state, sol_amount)

    async def quote_sell(self, launch_address: Pubkey, token_amount: Amount) -> float:
        """Quote SOL received for selling token_amount tokens.

        Args:
            launch_address: Address of the TokenLaunch account
            token_amount: Tokens to sell (decimal tokens)

        Returns:
            Expected SOL (decimal SOL), 0 if no quote is available
        """
        state = await self.get_launch_state(launch_address)
        return self.quote_sell_from_state(state, token_amount)

    async def calculate_price(self, launch_address: Pubkey) -> float:
        """Calculate current token price in SOL."""
        state = await self.get_launch_state(launch_address)
        return self.calculator.spot_price(self._reserve(state), state.constant_k)

    def progress_from_state(
        self, state: TokenLaunchState, sol_price_usd: float | None = None
    ) -> dict[str, Any]:
        tier = get_tier(state.tier)
        price_per_token = self.calculator.spot_price(self._reserve(state), state.constant_k)
        market_cap_sol = price_per_token * self.total_supply

        target_sol = state.target_sol_decimal
        if target_sol > 0:
            progress_percentage = min(state.sol_raised_decimal / target_sol * 100, 100.0)
        else:
            progress_percentage = 0.0

        progress = {
            "name": state.name,
            "symbol": state.symbol,
            "status": getattr(state.status, "name", state.status),
            "tier": tier.name,
            "sol_raised": state.sol_raised_decimal,
            "target_sol": target_sol,
            "progress_percentage": progress_percentage,
            "is_qualified": tier.is_qualified(state.sol_raised),
            "price_per_token": price_per_token,
            "market_cap_sol": market_cap_sol,
            "tokens_sold": state.tokens_sold_decimal,
        }
        if sol_price_usd is not None:
            progress["market_cap_usd"] = market_cap_sol * sol_price_usd if sol_price_usd > 0 else 0.0

        return progress

    async def get_curve_progress(
        self, launch_address: Pubkey, sol_price_usd: float | None = None
    ) -> dict[str, Any]:
        """Get bonding curve progress information.

        Args:
            launch_address: Address of the TokenLaunch account
            sol_price_usd: SOL price for USD market cap, omitted if None

        Returns:
            Dictionary with progress information
        """
        state = await self.get_launch_state(launch_address)
        return self.progress_from_state(state, sol_price_usd)
