"""Shared fixtures: raw account buffers laid out the way the programs store them."""

import struct

import pytest
from solders.pubkey import Pubkey

from battle_curve.platforms.bonkbattle.account_layouts import (
    PRICE_ORACLE_DISCRIMINATOR,
    TOKEN_LAUNCH_DISCRIMINATOR,
)

CREATOR = Pubkey.from_string("11111111111111111111111111111112")
MINT = Pubkey.from_string("So11111111111111111111111111111111111111112")


def _borsh_string(value: str) -> bytes:
    encoded = value.encode("utf-8")
    return struct.pack("<I", len(encoded)) + encoded


def build_launch_data(
    *,
    tier: int = 1,
    virtual_sol_init: int = 13_300_000_000,
    constant_k: int = 13_300_000_000 * 1_073_000_000 * 1_000_000,
    target_sol: int = 37_700_000_000,
    deadline: int = 1_760_000_000,
    sol_raised: int = 0,
    status: int = 0,
    created_at: int = 1_759_000_000,
    graduated_at: int | None = None,
    meteora_pool: Pubkey | None = None,
    total_buyers: int = 0,
    total_tokens_sold: int = 0,
    holders_thawed: int | None = 0,
    name: str = "Bonk Cat",
    symbol: str = "BCAT",
    uri: str = "https://example.com/bcat.json",
    bump: int = 254,
    size: int | None = None,
) -> bytes:
    """Serialize a TokenLaunch account; holders_thawed=None gives the v2 layout."""
    data = TOKEN_LAUNCH_DISCRIMINATOR
    data += bytes(CREATOR) + bytes(MINT)
    data += struct.pack("<BQ", tier, virtual_sol_init)
    data += constant_k.to_bytes(16, "little")
    data += struct.pack("<QqQBq", target_sol, deadline, sol_raised, status, created_at)
    data += b"\x00" if graduated_at is None else b"\x01" + struct.pack("<q", graduated_at)
    data += b"\x00" if meteora_pool is None else b"\x01" + bytes(meteora_pool)
    data += struct.pack("<IQ", total_buyers, total_tokens_sold)
    if holders_thawed is not None:
        data += struct.pack("<I", holders_thawed)
    data += _borsh_string(name) + _borsh_string(symbol) + _borsh_string(uri)
    data += struct.pack("<B", bump)

    if size is None:
        size = 443 if holders_thawed is not None else 439
    # Accounts are allocated at full size, unused string space stays zeroed
    return data.ljust(size, b"\x00")


def build_oracle_data(
    sol_price_usd: int = 196_000_000,
    last_update: int = 1_760_000_000,
    next_update: int = 1_760_000_300,
    keeper: Pubkey = CREATOR,
    update_count: int = 42,
) -> bytes:
    return (
        PRICE_ORACLE_DISCRIMINATOR
        + struct.pack("<Qqq", sol_price_usd, last_update, next_update)
        + bytes(keeper)
        + struct.pack("<Q", update_count)
    )


@pytest.fixture
def launch_data():
    return build_launch_data


@pytest.fixture
def oracle_data():
    return build_oracle_data
