ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

MAX_UINT128 = 2**128 - 1
MAX_UINT256 = 2**256 - 1

# Fee cut and tax rate are expressed in parts per thousand.
PER_MILLE = 1_000
# Pool fee tiers are expressed in hundredths of a basis point.
FEE_DENOMINATOR = 1_000_000

DEFAULT_FEE_TIER = 10_000
DEFAULT_LOCK_DURATION = 365 * 24 * 60 * 60
DEFAULT_FEE_CUT = 35
DEFAULT_TAX_RATE = 0
DEFAULT_SALT_SEARCH_DEPTH = 100_000

DEFAULT_FEE_TIER_TICK_SPACING: dict[int, int] = {100: 1, 500: 10, 3000: 60, 10000: 200}

TOKEN_DECIMALS = 18
