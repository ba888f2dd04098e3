"""Deterministic deployment addresses for launched tokens.

The deployer creates each token with CREATE2, mixing the creator into the raw
salt so two creators using the same salt never collide. Salt mining is a
bounded linear search for the first salt whose predicted address sorts below
the paired reserve asset and has no code yet.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass

from eth_abi import encode as abi_encode
from eth_utils import keccak, to_bytes, to_checksum_address

from socialdex.core.constants.base import DEFAULT_SALT_SEARCH_DEPTH

DEFAULT_TOKEN_CREATION_CODE = keccak(text="socialdex.LaunchToken(string,string,uint256)")

CREATE2_PREFIX = b"\xff"


@dataclass(frozen=True)
class SaltSearchResult:
    salt: str | None
    predicted_address: str | None
    iterations: int

    @property
    def found(self) -> bool:
        return self.salt is not None

    @property
    def exhausted(self) -> bool:
        return self.salt is None


def salt_to_bytes(salt: int | bytes | str) -> bytes:
    if isinstance(salt, int):
        if salt < 0 or salt >= 1 << 256:
            raise ValueError(f"salt {salt} does not fit in 32 bytes")
        return salt.to_bytes(32, "big")
    raw = to_bytes(hexstr=salt) if isinstance(salt, str) else bytes(salt)
    if len(raw) > 32:
        raise ValueError("salt longer than 32 bytes")
    return raw.rjust(32, b"\x00")


def salt_to_hex(salt: int | bytes | str) -> str:
    return "0x" + salt_to_bytes(salt).hex()


def derive_salt(creator: str, salt: int | bytes | str) -> bytes:
    return keccak(
        abi_encode(
            ["address", "bytes32"],
            [to_checksum_address(creator), salt_to_bytes(salt)],
        )
    )


def token_init_code_hash(
    name: str,
    symbol: str,
    supply: int,
    *,
    creation_code: bytes = DEFAULT_TOKEN_CREATION_CODE,
) -> bytes:
    args = abi_encode(["string", "string", "uint256"], [name, symbol, int(supply)])
    return keccak(bytes(creation_code) + args)


def compute_create2_address(factory: str, salt: bytes, init_code_hash: bytes) -> str:
    if len(salt) != 32 or len(init_code_hash) != 32:
        raise ValueError("salt and init code hash must be 32 bytes")
    factory_bytes = to_bytes(hexstr=to_checksum_address(factory))
    digest = keccak(CREATE2_PREFIX + factory_bytes + salt + init_code_hash)
    return to_checksum_address(digest[12:])


def predict_token_address(
    deployer: str,
    creator: str,
    name: str,
    symbol: str,
    supply: int,
    salt: int | bytes | str,
    *,
    creation_code: bytes = DEFAULT_TOKEN_CREATION_CODE,
) -> str:
    init_hash = token_init_code_hash(name, symbol, supply, creation_code=creation_code)
    return compute_create2_address(deployer, derive_salt(creator, salt), init_hash)


def address_lt(a: str, b: str) -> bool:
    return int(a, 16) < int(b, 16)


def iter_salt_candidates(
    *,
    deployer: str,
    creator: str,
    name: str,
    symbol: str,
    supply: int,
    reserve_address: str,
    max_iterations: int = DEFAULT_SALT_SEARCH_DEPTH,
    creation_code: bytes = DEFAULT_TOKEN_CREATION_CODE,
) -> Iterator[tuple[int, str]]:
    """Yield ``(salt, address)`` for salts in ``[0, max_iterations)`` whose
    address sorts below ``reserve_address``."""
    if max_iterations <= 0:
        raise ValueError("max_iterations must be positive")
    init_hash = token_init_code_hash(name, symbol, supply, creation_code=creation_code)
    reserve = int(reserve_address, 16)
    for salt in range(max_iterations):
        address = compute_create2_address(deployer, derive_salt(creator, salt), init_hash)
        if int(address, 16) < reserve:
            yield salt, address


def generate_salt(
    *,
    deployer: str,
    creator: str,
    name: str,
    symbol: str,
    supply: int,
    reserve_address: str,
    has_code: Callable[[str], bool] | None = None,
    max_iterations: int = DEFAULT_SALT_SEARCH_DEPTH,
    creation_code: bytes = DEFAULT_TOKEN_CREATION_CODE,
) -> SaltSearchResult:
    """Find the first usable salt without mutating anything.

    Returns an exhausted result instead of searching past ``max_iterations``.
    """
    for salt, address in iter_salt_candidates(
        deployer=deployer,
        creator=creator,
        name=name,
        symbol=symbol,
        supply=supply,
        reserve_address=reserve_address,
        max_iterations=max_iterations,
        creation_code=creation_code,
    ):
        if has_code is not None and has_code(address):
            continue
        return SaltSearchResult(salt_to_hex(salt), address, salt + 1)
    return SaltSearchResult(None, None, max_iterations)


async def generate_salt_onchain(
    *,
    deployer: str,
    creator: str,
    name: str,
    symbol: str,
    supply: int,
    reserve_address: str,
    has_code: Callable[[str], Awaitable[bool]],
    max_iterations: int = DEFAULT_SALT_SEARCH_DEPTH,
    creation_code: bytes = DEFAULT_TOKEN_CREATION_CODE,
) -> SaltSearchResult:
    """Same search as :func:`generate_salt` with an async code lookup."""
    for salt, address in iter_salt_candidates(
        deployer=deployer,
        creator=creator,
        name=name,
        symbol=symbol,
        supply=supply,
        reserve_address=reserve_address,
        max_iterations=max_iterations,
        creation_code=creation_code,
    ):
        if await has_code(address):
            continue
        return SaltSearchResult(salt_to_hex(salt), address, salt + 1)
    return SaltSearchResult(None, None, max_iterations)
