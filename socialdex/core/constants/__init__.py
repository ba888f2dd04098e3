from socialdex.core.constants.base import (
    DEFAULT_FEE_CUT,
    DEFAULT_FEE_TIER,
    DEFAULT_FEE_TIER_TICK_SPACING,
    DEFAULT_LOCK_DURATION,
    DEFAULT_SALT_SEARCH_DEPTH,
    DEFAULT_TAX_RATE,
    FEE_DENOMINATOR,
    MAX_UINT128,
    MAX_UINT256,
    PER_MILLE,
    TOKEN_DECIMALS,
    ZERO_ADDRESS,
)
from socialdex.core.constants.chains import (
    CHAIN_CODE_TO_ID,
    CHAIN_ID_BASE,
    CHAIN_ID_LOCAL,
    CHAIN_ID_TO_CODE,
    SUPPORTED_CHAINS,
)

__all__ = [
    "CHAIN_CODE_TO_ID",
    "CHAIN_ID_BASE",
    "CHAIN_ID_LOCAL",
    "CHAIN_ID_TO_CODE",
    "DEFAULT_FEE_CUT",
    "DEFAULT_FEE_TIER",
    "DEFAULT_FEE_TIER_TICK_SPACING",
    "DEFAULT_LOCK_DURATION",
    "DEFAULT_SALT_SEARCH_DEPTH",
    "DEFAULT_TAX_RATE",
    "FEE_DENOMINATOR",
    "MAX_UINT128",
    "MAX_UINT256",
    "PER_MILLE",
    "SUPPORTED_CHAINS",
    "TOKEN_DECIMALS",
    "ZERO_ADDRESS",
]
