import time

DIGEST_DIR = "digest"
START_TIME = time.time()
START_TIME_INT = int(START_TIME)
LOGS_PATH = f"{DIGEST_DIR}/{START_TIME_INT}/logs.txt"
DEFAULT_ABIS_DIR = "abis"
DEFAULT_ARTIFACTS_ROOT = ".."

DEFAULT_NETWORK = "testnet"
DEPLOYMENT_FILES = {
    "testnet": "addresses.json",
    "mainnet": "mainnetAddresses.json",
}

RPC_ENDPOINTS = {
    "testnet": "https://timothy.megaeth.com/rpc",
    "mainnet": "",
    "ethereum": "https://eth.llamarpc.com",
}

CHAIN_IDS = {
    "testnet": 6343,
    "mainnet": 4326,
    "ethereum": 1,
}

REQUEST_TIMEOUT_SEC = 30
DEFAULT_MAX_DIFFERENCES = 5

NOT_DEPLOYED = "TBA"
EMPTY_CODE = "0x"

# Masks stand in for bytes that must not take part in the comparison
MASK_CHAR = "x"
MISSING_BYTE = "--"

ZERO_ADDRESS = "0" * 40
ZERO_HASH = "0" * 64

DEPLOYED_POOL_INIT_CODE_HASH = (
    "851d77a45b8b9a205fb9f44cb829cceba85282714d2603d601840640628a3da7"
)
REFERENCE_POOL_INIT_CODE_HASH = (
    "e34f199b19b2b4f47f68442619d555527d244f78a3297ea89325f843f87b8b54"
)
REFERENCE_PAIR_INIT_CODE_HASH = (
    "96e8ac4277198ff8b6f785478aa9a39f403cb768dd02cbee326c3e7da348845f"
)

DEFAULT_WETH9 = "4200000000000000000000000000000000000006"
DEFAULT_PERMIT2 = "000000000022d473030f116ddee9f6b43ac78ba3"
