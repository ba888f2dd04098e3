from socialdex.core.constants.chains import (
    CHAIN_ID_BASE,
    CHAIN_ID_BASE_SEPOLIA,
    CHAIN_ID_ETHEREUM,
    CHAIN_ID_LOCAL,
)

WETH: dict[int, str] = {
    CHAIN_ID_ETHEREUM: "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
    CHAIN_ID_BASE: "0x4200000000000000000000000000000000000006",
    CHAIN_ID_BASE_SEPOLIA: "0x4200000000000000000000000000000000000006",
    CHAIN_ID_LOCAL: "0x4200000000000000000000000000000000000006",
}

UNISWAP_V3_FACTORY: dict[int, str] = {
    CHAIN_ID_ETHEREUM: "0x1F98431c8aD98523631AE4a59f267346ea31F984",
    CHAIN_ID_BASE: "0x33128a8fC17869897dcE68Ed026d694621f6FDfD",
    CHAIN_ID_BASE_SEPOLIA: "0x4752ba5DBc23f44D87826276BF6Fd6b1C372aD24",
}

UNISWAP_V3_NPM: dict[int, str] = {
    CHAIN_ID_ETHEREUM: "0xC36442b4a4522E871399CD717aBDD847Ab11FE88",
    CHAIN_ID_BASE: "0x03a520b32C04BF3bEEf7BEb72E919cf822Ed34f1",
    CHAIN_ID_BASE_SEPOLIA: "0x27F971cb582BF9E50F397e4d29a5C7A34f11faA2",
}

UNISWAP_V3_SWAP_ROUTER: dict[int, str] = {
    CHAIN_ID_ETHEREUM: "0xE592427A0AEce92De3Edee1F18E0157C05861564",
    CHAIN_ID_BASE: "0x2626664c2603336E57B271c5C0b26F421741e481",
    CHAIN_ID_BASE_SEPOLIA: "0x94cC0AaC535CCDB3C01d6787D6413C739ae12bc4",
}
