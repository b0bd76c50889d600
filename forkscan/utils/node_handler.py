import json

from concurrent.futures import ThreadPoolExecutor

from .common import pull, mask_text
from .logger import logger
from .custom_exceptions import NodeError


def _call(rpc_url: str, method: str, params: list) -> dict:
    payload = json.dumps({"id": 1, "jsonrpc": "2.0", "method": method, "params": params})
    headers = {"Content-Type": "application/json"}
    try:
        return pull(rpc_url, payload, headers).json()
    except ValueError as json_err:
        raise NodeError(f"Received non-JSON response: {json_err}")


def get_bytecode_from_node(contract_address: str, rpc_url: str) -> str:
    """
    Get the bytecode of a contract from an RPC node.

    Args:
        contract_address: The contract address
        rpc_url: The RPC URL

    Returns:
        The contract bytecode as a hex string, "0x" for an account without code

    Raises:
        NodeError: If the bytecode cannot be retrieved
    """
    logger.log(f'Receiving the bytecode of {contract_address} from "{mask_text(rpc_url)}"')

    response = _call(rpc_url, "eth_getCode", [contract_address, "latest"])
    result = response.get("result") if isinstance(response, dict) else None
    if not isinstance(result, str) or not result.startswith("0x"):
        raise NodeError(f"Received bad response: {response}")

    return result


def get_bytecodes(
    deployed_address: str,
    deployed_rpc_url: str,
    reference_address: str,
    reference_rpc_url: str,
) -> tuple[str, str]:
    """Fetches the deployed and the reference bytecode at the same time."""
    with ThreadPoolExecutor(max_workers=2) as executor:
        deployed = executor.submit(
            get_bytecode_from_node, deployed_address, deployed_rpc_url
        )
        reference = executor.submit(
            get_bytecode_from_node, reference_address, reference_rpc_url
        )
        return deployed.result(), reference.result()


def get_chain_id(rpc_url: str) -> int:
    """
    Get the chain ID from an RPC node.

    Args:
        rpc_url: The RPC URL

    Returns:
        The chain ID as an integer

    Raises:
        NodeError: If the chain ID cannot be retrieved
    """
    logger.info(f'Receiving the chain ID from "{mask_text(rpc_url)}" ...')

    chain_id_response = _call(rpc_url, "eth_chainId", [])

    if "result" not in chain_id_response:
        raise NodeError(f"Failed to retrieve chain ID: {chain_id_response}")

    # Convert hex string to decimal integer
    chain_id = int(chain_id_response["result"], 16)
    return chain_id
