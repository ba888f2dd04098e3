CHAIN_ID_ETHEREUM = 1
CHAIN_ID_BASE = 8453
CHAIN_ID_BASE_SEPOLIA = 84532
CHAIN_ID_LOCAL = 31337

CHAIN_CODE_TO_ID = {
    "base": CHAIN_ID_BASE,
    "base-sepolia": CHAIN_ID_BASE_SEPOLIA,
    "ethereum": CHAIN_ID_ETHEREUM,
    "mainnet": CHAIN_ID_ETHEREUM,
    "local": CHAIN_ID_LOCAL,
    "hardhat": CHAIN_ID_LOCAL,
}

CHAIN_ID_TO_CODE: dict[int, str] = {
    v: k for k, v in CHAIN_CODE_TO_ID.items() if k not in ("mainnet", "hardhat")
}

SUPPORTED_CHAINS = [
    CHAIN_ID_ETHEREUM,
    CHAIN_ID_BASE,
    CHAIN_ID_BASE_SEPOLIA,
    CHAIN_ID_LOCAL,
]

# Chains whose blocks carry oversized extraData.
POA_MIDDLEWARE_CHAIN_IDS: set[int] = {
    CHAIN_ID_BASE,
    CHAIN_ID_BASE_SEPOLIA,
}
