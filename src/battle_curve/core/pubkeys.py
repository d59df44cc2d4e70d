"""
System addresses and constants for Solana blockchain operations.
This module contains only system-level addresses and unit constants.
Program-specific addresses are handled by the platform address provider.
"""

from typing import Final

from solders.pubkey import Pubkey

# Constants
SOL_DECIMALS: Final[int] = 9
TOKEN_DECIMALS: Final[int] = 6
LAMPORTS_PER_SOL: Final[int] = 10**SOL_DECIMALS
TOKEN_BASE_UNITS: Final[int] = 10**TOKEN_DECIMALS
BPS_DENOMINATOR: Final[int] = 10_000

# Core system programs
SYSTEM_PROGRAM: Final[Pubkey] = Pubkey.from_string("11111111111111111111111111111111")
TOKEN_PROGRAM: Final[Pubkey] = Pubkey.from_string(
    "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
)
ASSOCIATED_TOKEN_PROGRAM: Final[Pubkey] = Pubkey.from_string(
    "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
)

# System accounts
RENT: Final[Pubkey] = Pubkey.from_string(
    "SysvarRent111111111111111111111111111111111"
)


class SystemAddresses:
    """System-level Solana addresses."""

    SYSTEM_PROGRAM = SYSTEM_PROGRAM
    TOKEN_PROGRAM = TOKEN_PROGRAM
    ASSOCIATED_TOKEN_PROGRAM = ASSOCIATED_TOKEN_PROGRAM
    RENT = RENT

    @classmethod
    def get_all_system_addresses(cls) -> dict[str, Pubkey]:
        """Get all system addresses as a dictionary.

        Returns:
            Dictionary mapping address names to Pubkey objects
        """
        return {
            "system_program": cls.SYSTEM_PROGRAM,
            "token_program": cls.TOKEN_PROGRAM,
            "associated_token_program": cls.ASSOCIATED_TOKEN_PROGRAM,
            "rent": cls.RENT,
        }
