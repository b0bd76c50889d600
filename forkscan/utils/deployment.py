import os

from .common import load_config
from .constants import (
    CHAIN_IDS,
    DEPLOYED_POOL_INIT_CODE_HASH,
    DEPLOYMENT_FILES,
    NOT_DEPLOYED,
    RPC_ENDPOINTS,
)
from .custom_exceptions import DeploymentError
from .custom_types import Deployment
from .helpers import strip_hex_prefix
from .logger import logger


def resolve_deployment_path(target: str) -> tuple[str, str | None]:
    """
    Maps a network name or a path to (deployment file path, network name).

    The network is None when a plain path is given.
    """
    if target in DEPLOYMENT_FILES:
        return DEPLOYMENT_FILES[target], target
    if os.path.isfile(target):
        return target, None
    raise ValueError(
        f"Unknown network or deployment file '{target}', "
        f"expected one of {', '.join(DEPLOYMENT_FILES)} or a path"
    )


def load_deployment(path: str, network: str | None = None) -> Deployment:
    logger.info(f"Loading deployment {path}...")
    try:
        data = load_config(path)
    except FileNotFoundError:
        raise DeploymentError(f"file '{path}' not found")

    contracts = data.get("contracts")
    if not isinstance(contracts, dict):
        raise DeploymentError(f"'contracts' section is missing in {path}")

    rpc = data.get("rpc") or RPC_ENDPOINTS.get(network, "")
    chain_id = data.get("chainId") or CHAIN_IDS.get(network)
    pool_init_code_hash = data.get("poolInitCodeHash")

    return Deployment(
        chainId=chain_id,
        chainName=data.get("chainName") or f"megaeth-{network or 'custom'}",
        rpc=rpc,
        blockExplorer=data.get("blockExplorer", ""),
        contracts=contracts,
        poolInitCodeHash=(
            strip_hex_prefix(pool_init_code_hash)
            if pool_init_code_hash
            else DEPLOYED_POOL_INIT_CODE_HASH
        ),
    )


def get_deployed_address(deployment: Deployment, contract_name: str) -> str | None:
    """Returns the deployed address of the contract, None if it isn't deployed yet."""
    address = deployment["contracts"].get(contract_name)
    if not address or address == NOT_DEPLOYED:
        return None
    return address
