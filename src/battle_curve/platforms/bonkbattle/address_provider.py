"""
Token battle address provider.

This module provides the program addresses and PDA derivations used to
locate launch, battle state and price oracle accounts.
"""

from dataclasses import dataclass
from typing import Final

from solders.pubkey import Pubkey
from spl.token.instructions import get_associated_token_address

from battle_curve.core.pubkeys import SystemAddresses


@dataclass
class BonkBattleAddresses:
    """Token battle program addresses and PDA seeds."""

    # Battle program: battle state and price oracle accounts
    PROGRAM: Final[Pubkey] = Pubkey.from_string(
        "6LdnckDuYxXn4UkyyD5YB7w9j2k49AsuZCNmQ3GhR2Eq"
    )
    # Launch program: TokenLaunch accounts holding the curve constant
    LAUNCH_PROGRAM: Final[Pubkey] = Pubkey.from_string(
        "DxchSpAi7A14f9o1LGPr18HikXEjMT6VXj1oy24VXAgN"
    )

    BATTLE_STATE_SEED: Final[bytes] = b"battle_state"
    PRICE_ORACLE_SEED: Final[bytes] = b"price_oracle"
    LAUNCH_SEED: Final[bytes] = b"launch"


class BonkBattleAddressProvider:
    """Derives token battle account addresses."""

    def __init__(
        self,
        program_id: Pubkey | None = None,
        launch_program_id: Pubkey | None = None,
    ):
        """Initialize the address provider.

        Args:
            program_id: Battle program override (e.g. a devnet deployment)
            launch_program_id: Launch program override
        """
        self._program_id = program_id or BonkBattleAddresses.PROGRAM
        self._launch_program_id = launch_program_id or BonkBattleAddresses.LAUNCH_PROGRAM

    @property
    def program_id(self) -> Pubkey:
        """Get the battle program ID."""
        return self._program_id

    @property
    def launch_program_id(self) -> Pubkey:
        """Get the launch program ID."""
        return self._launch_program_id

    def get_system_addresses(self) -> dict[str, Pubkey]:
        """Get all addresses required to read token battle accounts.

        Returns:
            Dictionary mapping address names to Pubkey objects
        """
        system_addresses = SystemAddresses.get_all_system_addresses()

        battle_addresses = {
            "program": self._program_id,
            "launch_program": self._launch_program_id,
            "price_oracle": self.derive_price_oracle()[0],
        }

        return {**system_addresses, **battle_addresses}

    def derive_launch(self, mint: Pubkey) -> tuple[Pubkey, int]:
        """Derive the TokenLaunch PDA for a mint.

        Args:
            mint: Token mint address

        Returns:
            Tuple of (launch address, bump)
        """
        return Pubkey.find_program_address(
            [BonkBattleAddresses.LAUNCH_SEED, bytes(mint)], self._launch_program_id
        )

    def derive_battle_state(self, mint: Pubkey) -> tuple[Pubkey, int]:
        """Derive the battle state PDA for a mint.

        Args:
            mint: Token mint address

        Returns:
            Tuple of (battle state address, bump)
        """
        return Pubkey.find_program_address(
            [BonkBattleAddresses.BATTLE_STATE_SEED, bytes(mint)], self._program_id
        )

    def derive_price_oracle(self) -> tuple[Pubkey, int]:
        """Derive the singleton price oracle PDA."""
        return Pubkey.find_program_address(
            [BonkBattleAddresses.PRICE_ORACLE_SEED], self._program_id
        )

    def derive_user_token_account(self, user: Pubkey, mint: Pubkey) -> Pubkey:
        """Derive user's associated token account address.

        Args:
            user: User's wallet address
            mint: Token mint address

        Returns:
            User's associated token account address
        """
        return get_associated_token_address(user, mint)
