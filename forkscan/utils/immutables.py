"""
Known immutables of the compared contracts.

Both the reference (Uniswap V3 on Ethereum mainnet) and the deployed system
bake constructor arguments into the runtime bytecode. These tables list them
so the comparison can mask them out.
"""

from types import MappingProxyType

from .constants import (
    DEFAULT_PERMIT2,
    DEFAULT_WETH9,
    REFERENCE_PAIR_INIT_CODE_HASH,
    REFERENCE_POOL_INIT_CODE_HASH,
    ZERO_HASH,
)
from .helpers import strip_hex_prefix

REFERENCE_FACTORY = "1f98431c8ad98523631ae4a59f267346ea31f984"
REFERENCE_WETH9 = "c02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
REFERENCE_TOKEN_DESCRIPTOR = "ee6a57ec80ea46401049e92587e52f5ec1c24785"
REFERENCE_POSITION_MANAGER = "c36442b4a4522e871399cd717abdd847ab11fe88"
REFERENCE_DESCRIPTOR_LIBRARY = "42b24a95702b9986e82d421cc3568932790a48ec"
REFERENCE_PERMIT2 = "000000000022d473030f116ddee9f6b43ac78ba3"
REFERENCE_V2_FACTORY = "5c69bee701ef814a2b6a3edd4b1652cb9cc5aa6f"
REFERENCE_V4_POOL_MANAGER = "000000000004444c5dc75cb358380d2e3de08a90"
REFERENCE_V4_POSITION_MANAGER = "00000000bd216513d74c8cf14cf4747e6aaa6420"

# Canonical Uniswap V3 deployments on Ethereum mainnet, in comparison order
REFERENCE_CONTRACTS = MappingProxyType(
    {
        "UniswapV3Factory": "0x1F98431c8aD98523631AE4a59f267346ea31F984",
        "Multicall2": "0x5BA1e12693Dc8F9c48aAD8770482f4739bEeD696",
        "ProxyAdmin": "0xB753548F6E010e7e680BA186F9Ca1BdAB2E90cf2",
        "TickLens": "0xbfd8137f7d1516D3ea5cA83523914859ec47F573",
        "NonfungibleTokenPositionDescriptor": "0x91ae842A5Ffd8d12023116943e72A606179294f3",
        "NonfungiblePositionManager": "0xC36442b4a4522E871399CD717aBDD847Ab11FE88",
        "V3Migrator": "0xA5644E29708357803b5A882D272c41cC0dF92B34",
        "UniswapV3Staker": "0xe34139463bA50bD61336E0c446Bd8C0867c6fE65",
        "QuoterV2": "0x61fFE014bA17989E743c5F6cB21bF9697530B21e",
        "SwapRouter02": "0x68b3465833fb72A70ecDF485E0e4C7bD8665Fc45",
        "UniversalRouter": "0x66a9893cC07D91D95644AEDD05D03f95e1dBA8Af",
    }
)

REFERENCE_IMMUTABLES = MappingProxyType(
    {
        "UniswapV3Factory": (REFERENCE_FACTORY,),
        "NonfungiblePositionManager": (
            REFERENCE_FACTORY,
            REFERENCE_WETH9,
            REFERENCE_TOKEN_DESCRIPTOR,
            REFERENCE_POOL_INIT_CODE_HASH,
        ),
        "UniswapV3Staker": (
            REFERENCE_FACTORY,
            REFERENCE_POSITION_MANAGER,
            REFERENCE_POOL_INIT_CODE_HASH,
        ),
        "QuoterV2": (
            REFERENCE_FACTORY,
            REFERENCE_WETH9,
            REFERENCE_POOL_INIT_CODE_HASH,
        ),
        "SwapRouter02": (
            REFERENCE_FACTORY,
            REFERENCE_WETH9,
            REFERENCE_V2_FACTORY,
            REFERENCE_POSITION_MANAGER,
            REFERENCE_POOL_INIT_CODE_HASH,
        ),
        "NonfungibleTokenPositionDescriptor": (
            REFERENCE_WETH9,
            REFERENCE_DESCRIPTOR_LIBRARY,
        ),
        "V3Migrator": (
            REFERENCE_FACTORY,
            REFERENCE_WETH9,
            REFERENCE_POSITION_MANAGER,
            REFERENCE_POOL_INIT_CODE_HASH,
        ),
        "UniversalRouter": (
            REFERENCE_PERMIT2,
            REFERENCE_WETH9,
            REFERENCE_FACTORY,
            REFERENCE_POSITION_MANAGER,
            REFERENCE_V2_FACTORY,
            REFERENCE_V4_POOL_MANAGER,
            REFERENCE_V4_POSITION_MANAGER,
            REFERENCE_POOL_INIT_CODE_HASH,
            REFERENCE_PAIR_INIT_CODE_HASH,
        ),
    }
)

# The deployed system passes the zero address for these features
REFERENCE_ADDRESSES_TO_ZERO = MappingProxyType(
    {
        "SwapRouter02": (REFERENCE_V2_FACTORY,),
        "UniversalRouter": (
            REFERENCE_V4_POOL_MANAGER,
            REFERENCE_V4_POSITION_MANAGER,
            REFERENCE_V2_FACTORY,
        ),
    }
)

EXPECTED_DIFFERENCES = MappingProxyType(
    {
        "UniswapV3Factory": "Minor difference in fee tier encoding (0x02 vs 0x04)",
        "UniversalRouter": "Different size due to V4 placeholder handling and UnsupportedProtocol pattern",
    }
)

CONTRACTS_WITH_POOL_INIT_CODE_HASH = (
    "NonfungiblePositionManager",
    "UniswapV3Staker",
    "QuoterV2",
    "SwapRouter02",
    "UniversalRouter",
)


def get_reference_immutables(contract_name: str) -> list[str]:
    return list(REFERENCE_IMMUTABLES.get(contract_name, ()))


def _resolve(contracts: dict, name: str, default: str | None = None) -> str | None:
    address = contracts.get(name)
    if not address:
        return default
    return strip_hex_prefix(address)


def build_deployed_immutables(
    contracts: dict[str, str], pool_init_code_hash: str
) -> dict[str, list[str]]:
    """
    Builds the immutables of the deployed system from its resolved addresses.

    WETH9 and Permit2 fall back to their well-known addresses when they are
    not configured. Any other role without an address is left out.
    """
    weth = _resolve(contracts, "WETH9", DEFAULT_WETH9)
    factory = _resolve(contracts, "UniswapV3Factory")
    nft_manager = _resolve(contracts, "NonfungiblePositionManager")
    descriptor_proxy = _resolve(contracts, "DescriptorProxy")
    descriptor_library = _resolve(contracts, "NonfungibleTokenDescriptorLibrary")
    permit2 = _resolve(contracts, "Permit2", DEFAULT_PERMIT2)
    pool_hash = strip_hex_prefix(pool_init_code_hash) if pool_init_code_hash else None

    immutables = {
        "UniswapV3Factory": [factory],
        "NonfungiblePositionManager": [factory, weth, descriptor_proxy, pool_hash],
        "UniswapV3Staker": [factory, nft_manager, pool_hash],
        "QuoterV2": [factory, weth, pool_hash],
        "SwapRouter02": [factory, weth, nft_manager, pool_hash],
        "NonfungibleTokenPositionDescriptor": [weth, descriptor_library],
        "V3Migrator": [factory, weth, nft_manager, pool_hash],
        # The deployed router has no V2 pairs, so the pair init code hash is zero
        "UniversalRouter": [
            permit2,
            weth,
            factory,
            nft_manager,
            pool_hash,
            ZERO_HASH,
        ],
    }
    return {
        name: [value for value in values if value]
        for name, values in immutables.items()
    }
