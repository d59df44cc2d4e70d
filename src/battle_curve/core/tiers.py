"""
Battle tier definitions and the curve metrics derived from them.

Each tier fixes the initial virtual SOL reserve and the SOL targets a token
must reach. Values are in SOL unless the name says lamports.
"""

from dataclasses import dataclass
from enum import Enum

from battle_curve.core.curve import DEFAULT_CONFIG, CurveConfig, to_base_units
from battle_curve.core.pubkeys import LAMPORTS_PER_SOL, SOL_DECIMALS

# Progress percentage at which a target counts as reached
GRADUATION_THRESHOLD_PCT = 99.5


class BattleTier(Enum):
    """Tier stored in the launch account (u8)."""

    TEST = 0
    PRODUCTION = 1


@dataclass(frozen=True)
class TierConfig:
    """Curve parameters of a battle tier."""

    name: str
    virtual_sol_init: float
    target_sol: float
    victory_volume_sol: float
    qualification_sol: float
    matchmaking_tolerance_sol: float
    virtual_token_init: int = 1_073_000_000
    total_supply: int = 1_000_000_000

    @property
    def virtual_sol_final(self) -> float:
        """Virtual SOL reserve once the curve is full."""
        return self.virtual_sol_init + self.target_sol

    def initial_constant_k(self, config: CurveConfig = DEFAULT_CONFIG) -> int:
        """Curve constant in base units: initial lamports times initial token base units."""
        lamports = to_base_units(self.virtual_sol_init, config.sol_decimals, "virtual_sol_init")
        return lamports * self.virtual_token_init * config.token_base_units

    def current_virtual_sol(self, sol_collected: float) -> float:
        return self.virtual_sol_init + max(sol_collected, 0.0)

    def market_cap_sol(self, sol_collected: float) -> float:
        """Market cap in SOL after sol_collected SOL entered the curve.

        MC = (virtual_sol / virtual_token) * total_supply with
        virtual_token = k / virtual_sol.
        """
        k = self.virtual_sol_init * self.virtual_token_init
        virtual_sol = self.current_virtual_sol(sol_collected)
        virtual_token = k / virtual_sol
        return (virtual_sol / virtual_token) * self.total_supply

    def market_cap_usd(self, sol_collected: float, sol_price_usd: float) -> float:
        if not sol_price_usd or sol_price_usd <= 0:
            return 0.0
        return self.market_cap_sol(sol_collected) * sol_price_usd

    def sol_progress(self, sol_collected_lamports: int) -> float:
        """Percentage of target_sol collected, capped at 100."""
        sol_collected = sol_collected_lamports / LAMPORTS_PER_SOL
        return min((sol_collected / self.target_sol) * 100, 100.0)

    def volume_progress(self, volume_lamports: int) -> float:
        """Percentage of victory_volume_sol traded, capped at 100."""
        volume_sol = volume_lamports / LAMPORTS_PER_SOL
        return min((volume_sol / self.victory_volume_sol) * 100, 100.0)

    def has_met_graduation_conditions(
        self, sol_collected_lamports: int, volume_lamports: int
    ) -> bool:
        return (
            self.sol_progress(sol_collected_lamports) >= GRADUATION_THRESHOLD_PCT
            and self.volume_progress(volume_lamports) >= GRADUATION_THRESHOLD_PCT
        )

    def is_qualified(self, sol_collected_lamports: int) -> bool:
        qualification_lamports = to_base_units(
            self.qualification_sol, SOL_DECIMALS, "qualification_sol"
        )
        return sol_collected_lamports >= qualification_lamports

    def sol_remaining(self, sol_collected_lamports: int) -> float:
        sol_collected = sol_collected_lamports / LAMPORTS_PER_SOL
        return max(0.0, self.target_sol - sol_collected)


TIERS: dict[BattleTier, TierConfig] = {
    BattleTier.TEST: TierConfig(
        name="Test",
        virtual_sol_init=2.05,
        target_sol=6.0,
        victory_volume_sol=6.6,
        qualification_sol=0.12,
        matchmaking_tolerance_sol=3.0,
    ),
    BattleTier.PRODUCTION: TierConfig(
        name="Production",
        virtual_sol_init=13.3,
        target_sol=37.7,
        victory_volume_sol=41.5,
        qualification_sol=0.75,
        matchmaking_tolerance_sol=18.85,
    ),
}


def get_tier(tier: BattleTier | int | str | None) -> TierConfig:
    """Resolve a tier from its enum, on-chain byte or name.

    Missing or unknown numeric tiers fall back to the test tier, the same
    way the launch account is read by the front end.

    Raises:
        ValueError: If a tier name is not recognised
    """
    if isinstance(tier, BattleTier):
        return TIERS[tier]

    if isinstance(tier, str):
        try:
            return TIERS[BattleTier[tier.strip().upper()]]
        except KeyError:
            raise ValueError(
                f"Unknown tier '{tier}'. Must be one of: {[t.name.lower() for t in BattleTier]}"
            )

    try:
        return TIERS[BattleTier(tier)]
    except ValueError:
        return TIERS[BattleTier.TEST]
