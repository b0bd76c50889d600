import json
import os
import time

from .common import fetch
from .custom_exceptions import ExplorerError
from .custom_types import ArtifactSource, Deployment
from .helpers import create_dirs
from .logger import logger

PERMIT2_ADDRESS = "0x000000000022D473030F116dDEE9F6B43aC78BA3"
EXPLORER_COOLDOWN_SEC = 0.3

ARTIFACT_SOURCES: dict[str, ArtifactSource] = {
    "UniswapV3Factory": {"repo": "v3-core", "path": "artifacts/contracts/UniswapV3Factory.sol/UniswapV3Factory.json"},
    "UniswapV3Pool": {"repo": "v3-core", "path": "artifacts/contracts/UniswapV3Pool.sol/UniswapV3Pool.json"},
    "NonfungiblePositionManager": {"repo": "v3-periphery", "path": "artifacts/contracts/NonfungiblePositionManager.sol/NonfungiblePositionManager.json"},
    "V3Migrator": {"repo": "v3-periphery", "path": "artifacts/contracts/V3Migrator.sol/V3Migrator.json"},
    "TickLens": {"repo": "v3-periphery", "path": "artifacts/contracts/lens/TickLens.sol/TickLens.json"},
    "Multicall2": {"repo": "v3-periphery", "path": "artifacts/contracts/lens/Multicall2.sol/Multicall2.json"},
    "NonfungibleTokenPositionDescriptor": {"repo": "v3-periphery", "path": "artifacts/contracts/NonfungibleTokenPositionDescriptor.sol/NonfungibleTokenPositionDescriptor.json"},
    "SwapRouter02": {"repo": "swap-router-contracts", "path": "artifacts/contracts/SwapRouter02.sol/SwapRouter02.json"},
    "QuoterV2": {"repo": "swap-router-contracts", "path": "artifacts/contracts/lens/QuoterV2.sol/QuoterV2.json"},
    "UniswapV3Staker": {"repo": "v3-staker", "path": "artifacts/contracts/UniswapV3Staker.sol/UniswapV3Staker.json"},
    "UniversalRouter": {"repo": "universal-router", "path": "artifacts/contracts/UniversalRouter.sol/UniversalRouter.json"},
    "ERC20": {"repo": "v3-periphery", "path": "node_modules/@openzeppelin/contracts/build/contracts/ERC20.json"},
}

# Proxies and libraries have no ABI of their own worth keeping
SKIP_CONTRACTS = {
    "WETH9",
    "ProxyAdmin",
    "DescriptorProxy",
    "NonfungibleTokenDescriptorLibrary",
}

ADDITIONAL_ABIS = ("UniswapV3Pool", "ERC20")

BUILD_HINTS = (
    "cd ../v3-core && yarn compile",
    "cd ../v3-periphery && yarn compile",
    "cd ../swap-router-contracts && yarn compile",
    "cd ../v3-staker && yarn compile",
    "cd ../universal-router && forge build",
)


def extract_abi_from_artifact(artifact_path: str) -> list | None:
    if not os.path.isfile(artifact_path):
        return None
    try:
        with open(artifact_path, "r") as artifact_file:
            artifact = json.load(artifact_file)
    except (OSError, ValueError) as e:
        logger.warn(f"Failed to read artifact {artifact_path}: {e}")
        return None
    return artifact.get("abi") if isinstance(artifact, dict) else None


def fetch_abi_from_explorer(address: str, explorer_url: str) -> list | None:
    """Fetches the ABI of a verified contract from a Blockscout-compatible explorer."""
    api_url = f"{explorer_url.rstrip('/')}/api/v2/smart-contracts/{address}"
    try:
        response = fetch(api_url).json()
    except (ExplorerError, ValueError) as e:
        logger.warn(f"Explorer: {e}")
        return None
    if not isinstance(response, dict):
        logger.warn(f"Explorer: unexpected response {response!r}")
        return None
    return response.get("abi")


def fetch_permit2_abi(token: str | None) -> list | None:
    """Fetches the canonical Permit2 ABI from Etherscan mainnet."""
    api_url = (
        "https://api.etherscan.io/v2/api?chainid=1&module=contract&action=getabi"
        f"&address={PERMIT2_ADDRESS}"
    )
    if token:
        api_url = f"{api_url}&apikey={token}"

    try:
        response = fetch(api_url).json()
    except (ExplorerError, ValueError) as e:
        logger.warn(f"Etherscan: {e}")
        return None
    if not isinstance(response, dict):
        logger.warn(f"Etherscan: unexpected response {response!r}")
        return None

    if response.get("status") == "1" and response.get("result"):
        try:
            return json.loads(response["result"])
        except (TypeError, ValueError) as e:
            logger.warn(f"Etherscan: ABI is not valid JSON: {e}")
            return None
    if response.get("result"):
        logger.warn(f"Etherscan: {response['result']}")
    return None


def _find_abi(
    contract_name: str,
    address: str | None,
    deployment: Deployment,
    artifacts_root: str,
    explorer_token: str | None,
) -> tuple[list | None, str]:
    artifact_source = ARTIFACT_SOURCES.get(contract_name)
    if artifact_source:
        artifact_path = os.path.join(
            artifacts_root, artifact_source["repo"], artifact_source["path"]
        )
        abi = extract_abi_from_artifact(artifact_path)
        if abi:
            return abi, f"{artifact_source['repo']} artifacts"

    if contract_name == "Permit2":
        logger.info("Fetching from Etherscan mainnet (canonical deployment)...")
        abi = fetch_permit2_abi(explorer_token)
        time.sleep(EXPLORER_COOLDOWN_SEC)
        if abi:
            return abi, "Etherscan mainnet (canonical)"

    explorer_url = deployment.get("blockExplorer")
    if address and explorer_url:
        logger.info("Trying explorer...")
        abi = fetch_abi_from_explorer(address, explorer_url)
        time.sleep(EXPLORER_COOLDOWN_SEC)
        if abi:
            return abi, "block explorer"

    return None, ""


def fetch_abis(
    deployment: Deployment,
    abis_dir: str,
    artifacts_root: str,
    explorer_token: str | None = None,
    dry_run: bool = False,
) -> dict[str, list[str]]:
    """
    Collects the ABIs of all deployed contracts and writes them to `abis_dir`.

    Returns contract names grouped by outcome: fetched, skipped and failed.
    """
    logger.info(
        f"Loading contracts from {deployment['chainName']} (Chain ID: {deployment['chainId']})"
    )
    logger.info("Explorer", deployment.get("blockExplorer") or "-")
    if dry_run:
        logger.warn("Dry run, no files will be written")

    results = {"fetched": [], "skipped": [], "failed": []}
    contract_names = list(deployment["contracts"])
    contract_names += [name for name in ADDITIONAL_ABIS if name not in contract_names]

    for contract_name in contract_names:
        address = deployment["contracts"].get(contract_name)
        logger.divider()
        logger.info("Contract", contract_name)
        if address:
            logger.info("Address", address)

        if contract_name in SKIP_CONTRACTS:
            logger.warn("Skipped, proxy or library")
            results["skipped"].append(contract_name)
            continue

        abi, source = _find_abi(
            contract_name, address, deployment, artifacts_root, explorer_token
        )
        if abi is None:
            logger.error("Could not fetch ABI")
            results["failed"].append(contract_name)
            continue

        if dry_run:
            logger.okay(f"Would write ABI from {source}")
        else:
            abi_path = os.path.join(abis_dir, f"{contract_name}.json")
            create_dirs(abi_path)
            with open(abi_path, "w") as abi_file:
                abi_file.write(json.dumps(abi, indent=2) + "\n")
            logger.okay(f"Saved from {source}")
        results["fetched"].append(contract_name)

    _report(results, abis_dir, dry_run)
    return results


def _report(results: dict[str, list[str]], abis_dir: str, dry_run: bool) -> None:
    logger.divider()
    logger.okay("Fetched", len(results["fetched"]))
    if results["skipped"]:
        logger.warn("Skipped", ", ".join(results["skipped"]))
    if results["failed"]:
        logger.error("Failed", ", ".join(results["failed"]))
        if "Permit2" in results["failed"]:
            logger.info(
                "For Permit2, set ETHERSCAN_EXPLORER_TOKEN (free at etherscan.io)"
            )
        logger.info("For other contracts, run builds in the source repos:")
        for hint in BUILD_HINTS:
            logger.info(f"  {hint}")
    if not dry_run:
        logger.info("ABIs written to", abis_dir)
