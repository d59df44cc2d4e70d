"""
Versioned account layouts for the token battle programs.

Layouts are declared as construct field tables. A TokenLaunch account is
matched to its layout by data size, so a new on-chain layout is a new
entry in LAUNCH_LAYOUTS rather than a new set of byte offsets.
"""

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Final

from construct import (
    Bytes,
    BytesInteger,
    Flag,
    If,
    Int8ul,
    Int32ul,
    Int64sl,
    Int64ul,
    PascalString,
    Struct,
    this,
)
from construct.core import ConstructError
from solders.pubkey import Pubkey

from battle_curve.core.pubkeys import LAMPORTS_PER_SOL, TOKEN_BASE_UNITS
from battle_curve.utils.logger import get_logger

logger = get_logger(__name__)

DISCRIMINATOR_SIZE: Final[int] = 8

Int128ul = BytesInteger(16, swapped=True)
BorshString = PascalString(Int32ul, "utf8")


class InvalidAccountData(ValueError):
    """Raised when account bytes do not match the expected layout."""


class LaunchStatus(Enum):
    """Lifecycle status of a token launch (u8)."""

    ACTIVE = 0
    READY_TO_GRADUATE = 1
    GRADUATION_IN_PROGRESS = 2
    GRADUATED = 3
    FAILED = 4
    PAUSED = 5


def account_discriminator(account_name: str) -> bytes:
    """Anchor account discriminator: first 8 bytes of sha256("account:<Name>")."""
    return hashlib.sha256(f"account:{account_name}".encode()).digest()[:DISCRIMINATOR_SIZE]


TOKEN_LAUNCH_DISCRIMINATOR: Final[bytes] = account_discriminator("TokenLaunch")
PRICE_ORACLE_DISCRIMINATOR: Final[bytes] = account_discriminator("PriceOracle")


def _launch_struct(with_holders_thawed: bool) -> Struct:
    fields = [
        "creator" / Bytes(32),
        "mint" / Bytes(32),
        "tier" / Int8ul,
        "virtual_sol_init" / Int64ul,
        "constant_k" / Int128ul,
        "target_sol" / Int64ul,
        "deadline" / Int64sl,
        "sol_raised" / Int64ul,
        "status" / Int8ul,
        "created_at" / Int64sl,
        "has_graduated_at" / Flag,
        "graduated_at" / If(this.has_graduated_at, Int64sl),
        "has_meteora_pool" / Flag,
        "meteora_pool" / If(this.has_meteora_pool, Bytes(32)),
        "total_buyers" / Int32ul,
        "total_tokens_sold" / Int64ul,
    ]
    if with_holders_thawed:
        fields.append("holders_thawed" / Int32ul)
    fields += [
        "name" / BorshString,
        "symbol" / BorshString,
        "uri" / BorshString,
        "bump" / Int8ul,
    ]
    return Struct(*fields)


@dataclass(frozen=True)
class AccountLayout:
    """A named version of an account's field table."""

    version: str
    size: int
    struct: Struct


# Keyed by total account size including the discriminator
LAUNCH_LAYOUTS: dict[int, AccountLayout] = {
    443: AccountLayout("v1", 443, _launch_struct(with_holders_thawed=True)),
    439: AccountLayout("v2", 439, _launch_struct(with_holders_thawed=False)),
}
DEFAULT_LAUNCH_LAYOUT = LAUNCH_LAYOUTS[443]

PRICE_ORACLE_STRUCT = Struct(
    "sol_price_usd" / Int64ul,
    "last_update_timestamp" / Int64sl,
    "next_update_timestamp" / Int64sl,
    "keeper_authority" / Bytes(32),
    "update_count" / Int64ul,
)

# Oracle prices carry 6 decimals (196_000000 = $196)
ORACLE_PRICE_DECIMALS: Final[int] = 6


@dataclass
class TokenLaunchState:
    """Decoded TokenLaunch account. Amounts are in base units."""

    creator: Pubkey
    mint: Pubkey
    tier: int
    virtual_sol_init: int
    constant_k: int
    target_sol: int
    deadline: int
    sol_raised: int
    status: LaunchStatus | int
    created_at: int
    graduated_at: int | None
    meteora_pool: Pubkey | None
    total_buyers: int
    total_tokens_sold: int
    name: str
    symbol: str
    uri: str
    bump: int
    layout_version: str

    @property
    def current_virtual_sol(self) -> float:
        """Virtual plus raised SOL, the reserve the curve is priced at."""
        return (self.virtual_sol_init + self.sol_raised) / LAMPORTS_PER_SOL

    @property
    def sol_raised_decimal(self) -> float:
        return self.sol_raised / LAMPORTS_PER_SOL

    @property
    def target_sol_decimal(self) -> float:
        return self.target_sol / LAMPORTS_PER_SOL

    @property
    def tokens_sold_decimal(self) -> float:
        return self.total_tokens_sold / TOKEN_BASE_UNITS


@dataclass
class PriceOracleState:
    """Decoded PriceOracle account."""

    sol_price_usd: int
    last_update_timestamp: int
    next_update_timestamp: int
    keeper_authority: Pubkey
    update_count: int

    @property
    def price_usd(self) -> float:
        return self.sol_price_usd / 10**ORACLE_PRICE_DECIMALS


def _check_discriminator(data: bytes, expected: bytes, account_name: str) -> None:
    if len(data) < DISCRIMINATOR_SIZE:
        raise InvalidAccountData(f"{account_name} data too short ({len(data)} bytes)")
    if data[:DISCRIMINATOR_SIZE] != expected:
        raise InvalidAccountData(f"Invalid {account_name} discriminator")


def get_launch_layout(data_length: int) -> AccountLayout:
    layout = LAUNCH_LAYOUTS.get(data_length)
    if layout is None:
        logger.warning(
            f"Unexpected TokenLaunch size {data_length}, decoding as {DEFAULT_LAUNCH_LAYOUT.version}"
        )
        return DEFAULT_LAUNCH_LAYOUT
    return layout


def _status(value: int) -> LaunchStatus | int:
    try:
        return LaunchStatus(value)
    except ValueError:
        return value


def decode_token_launch(data: bytes) -> TokenLaunchState:
    """Decode a TokenLaunch account.

    Args:
        data: Raw account data including the discriminator

    Returns:
        Decoded TokenLaunchState

    Raises:
        InvalidAccountData: If the discriminator or layout does not match
    """
    _check_discriminator(data, TOKEN_LAUNCH_DISCRIMINATOR, "TokenLaunch")
    layout = get_launch_layout(len(data))

    try:
        parsed = layout.struct.parse(data[DISCRIMINATOR_SIZE:])
    except (ConstructError, UnicodeDecodeError) as e:
        raise InvalidAccountData(f"Failed to decode TokenLaunch ({layout.version}): {e}")

    return TokenLaunchState(
        creator=Pubkey.from_bytes(parsed.creator),
        mint=Pubkey.from_bytes(parsed.mint),
        tier=parsed.tier,
        virtual_sol_init=parsed.virtual_sol_init,
        constant_k=parsed.constant_k,
        target_sol=parsed.target_sol,
        deadline=parsed.deadline,
        sol_raised=parsed.sol_raised,
        status=_status(parsed.status),
        created_at=parsed.created_at,
        graduated_at=parsed.graduated_at,
        meteora_pool=Pubkey.from_bytes(parsed.meteora_pool) if parsed.meteora_pool else None,
        total_buyers=parsed.total_buyers,
        total_tokens_sold=parsed.total_tokens_sold,
        name=parsed.name.strip(),
        symbol=parsed.symbol.strip(),
        uri=parsed.uri.strip(),
        bump=parsed.bump,
        layout_version=layout.version,
    )


def decode_price_oracle(data: bytes) -> PriceOracleState:
    """Decode a PriceOracle account.

    Raises:
        InvalidAccountData: If the discriminator or layout does not match
    """
    _check_discriminator(data, PRICE_ORACLE_DISCRIMINATOR, "PriceOracle")

    try:
        parsed = PRICE_ORACLE_STRUCT.parse(data[DISCRIMINATOR_SIZE:])
    except ConstructError as e:
        raise InvalidAccountData(f"Failed to decode PriceOracle: {e}")

    return PriceOracleState(
        sol_price_usd=parsed.sol_price_usd,
        last_update_timestamp=parsed.last_update_timestamp,
        next_update_timestamp=parsed.next_update_timestamp,
        keeper_authority=Pubkey.from_bytes(parsed.keeper_authority),
        update_count=parsed.update_count,
    )
