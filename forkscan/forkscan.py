import sys
import time
import argparse
import traceback

from .utils.abi import fetch_abis
from .utils.bytecode import locate_pool_init_code_hash, normalize_and_compare
from .utils.common import load_env
from .utils.constants import (
    DEFAULT_ABIS_DIR,
    DEFAULT_ARTIFACTS_ROOT,
    DEFAULT_MAX_DIFFERENCES,
    DEFAULT_NETWORK,
    EMPTY_CODE,
    REFERENCE_POOL_INIT_CODE_HASH,
    RPC_ENDPOINTS,
    START_TIME,
)
from .utils.custom_exceptions import BaseCustomException, ExceptionHandler
from .utils.custom_types import Deployment
from .utils.deployment import (
    get_deployed_address,
    load_deployment,
    resolve_deployment_path,
)
from .utils.immutables import (
    CONTRACTS_WITH_POOL_INIT_CODE_HASH,
    EXPECTED_DIFFERENCES,
    REFERENCE_CONTRACTS,
    build_deployed_immutables,
    get_reference_immutables,
)
from .utils.logger import logger
from .utils.node_handler import get_bytecode_from_node, get_bytecodes, get_chain_id

__version__ = "0.1.0"


def code_size(bytecode: str) -> int:
    return (len(bytecode) - 2) // 2


def run_bytecode_diff(
    contract_name: str,
    reference_address: str,
    deployment: Deployment,
    deployed_immutables: dict[str, list[str]],
    reference_rpc_url: str,
    max_differences: int,
    deployed_codes: dict[str, str],
) -> list:
    """
    Compares one deployed contract against its reference deployment.

    Returns a row for the summary table: contract name, status, number of
    differences, size delta and expected difference note.
    """
    logger.divider()
    logger.info("Contract", contract_name)

    deployed_address = get_deployed_address(deployment, contract_name)
    if deployed_address is None:
        logger.warn(f"Not deployed on {deployment['chainName']}, skipping")
        return [contract_name, "SKIPPED", "-", "-", ""]

    logger.info("Deployed", deployed_address)
    logger.info("Reference", reference_address)

    deployed_code, reference_code = get_bytecodes(
        deployed_address, deployment["rpc"], reference_address, reference_rpc_url
    )
    deployed_codes[contract_name] = deployed_code

    if deployed_code == EMPTY_CODE:
        logger.warn("Deployed contract has no code")
        return [contract_name, "NO CODE", "-", "-", "deployed side"]
    if reference_code == EMPTY_CODE:
        logger.warn("Reference contract has no code")
        return [contract_name, "NO CODE", "-", "-", "reference side"]

    logger.info("Deployed size", f"{code_size(deployed_code):,} bytes")
    logger.info("Reference size", f"{code_size(reference_code):,} bytes")

    comparison = normalize_and_compare(
        deployed_code,
        reference_code,
        contract_name,
        deployed_immutables.get(contract_name, []),
        get_reference_immutables(contract_name),
    )

    differences_count = len(comparison.differences)
    if comparison.identical:
        logger.okay("Identical, logic bytecode matches (metadata stripped, immutables masked)")
        return [contract_name, "IDENTICAL", 0, comparison.size_delta, ""]

    logger.error(f"{differences_count} byte(s) differ")
    logger.differences(comparison.differences, max_differences)

    expected_reason = EXPECTED_DIFFERENCES.get(contract_name, "")
    if expected_reason:
        logger.warn("Expected difference", expected_reason)
        return [
            contract_name,
            "EXPECTED",
            differences_count,
            comparison.size_delta,
            expected_reason,
        ]
    return [contract_name, "DIFFERENT", differences_count, comparison.size_delta, ""]


def run_pool_init_code_hash_check(
    deployment: Deployment, deployed_codes: dict[str, str]
) -> bool:
    """Checks that every pool address deriving contract embeds the deployed hash."""
    logger.divider()
    logger.info("POOL_INIT_CODE_HASH verification")

    is_correct = True
    for contract_name in CONTRACTS_WITH_POOL_INIT_CODE_HASH:
        deployed_address = get_deployed_address(deployment, contract_name)
        if deployed_address is None:
            continue

        try:
            bytecode = deployed_codes.get(contract_name) or get_bytecode_from_node(
                deployed_address, deployment["rpc"]
            )
        except BaseCustomException as custom_exc:
            ExceptionHandler.raise_exception_or_log(custom_exc)
            is_correct = False
            continue

        status, position = locate_pool_init_code_hash(
            bytecode, deployment["poolInitCodeHash"], REFERENCE_POOL_INIT_CODE_HASH
        )
        if status == "FOUND":
            logger.okay(f"{contract_name}: deployed hash found at byte {position}")
        elif status == "WRONG":
            logger.error(f"{contract_name}: reference hash found instead at byte {position}")
            is_correct = False
        else:
            logger.warn(f"{contract_name}: neither hash found")

    return is_correct


def check_chain_id(deployment: Deployment) -> None:
    """Warns when the RPC endpoint serves another chain than the deployment file names."""
    if not deployment["chainId"]:
        return
    try:
        chain_id = get_chain_id(deployment["rpc"])
    except BaseCustomException as custom_exc:
        ExceptionHandler.raise_exception_or_log(custom_exc)
        return
    if chain_id != deployment["chainId"]:
        logger.warn(
            f"RPC chain ID {chain_id} doesn't match the deployment chain ID",
            deployment["chainId"],
        )


def process_deployment(
    target: str,
    max_differences: int,
    fail_on_difference: bool,
    skip_hash_check: bool,
) -> bool:
    path, network = resolve_deployment_path(target)
    deployment = load_deployment(path, network)

    deployed_rpc_url = load_env("DEPLOYED_RPC_URL", required=False, masked=True)
    if deployed_rpc_url:
        deployment["rpc"] = deployed_rpc_url
    if not deployment["rpc"]:
        logger.error(f"No RPC endpoint configured for {network or path}")
        sys.exit(1)

    reference_rpc_url = (
        load_env("REFERENCE_RPC_URL", required=False, masked=True)
        or RPC_ENDPOINTS["ethereum"]
    )

    check_chain_id(deployment)

    deployed_immutables = build_deployed_immutables(
        deployment["contracts"], deployment["poolInitCodeHash"]
    )

    logger.divider()
    logger.info(
        f"Bytecode comparison: {deployment['chainName']} vs Uniswap V3 (Ethereum)"
    )
    logger.info("Deployed POOL_INIT_CODE_HASH", "0x" + deployment["poolInitCodeHash"])
    logger.info("Reference POOL_INIT_CODE_HASH", "0x" + REFERENCE_POOL_INIT_CODE_HASH)

    report = []
    deployed_codes = {}
    for contract_name, reference_address in REFERENCE_CONTRACTS.items():
        try:
            row = run_bytecode_diff(
                contract_name,
                reference_address,
                deployment,
                deployed_immutables,
                reference_rpc_url,
                max_differences,
                deployed_codes,
            )
        except BaseCustomException as custom_exc:
            ExceptionHandler.raise_exception_or_log(custom_exc)
            traceback.print_exc()
            row = [contract_name, "ERROR", "-", "-", custom_exc.message]
        report.append(row)

    is_hash_correct = skip_hash_check or run_pool_init_code_hash_check(
        deployment, deployed_codes
    )

    logger.divider()
    logger.report_table([[index + 1, *row] for index, row in enumerate(report)])

    unexpected = [row[0] for row in report if row[1] in ("DIFFERENT", "ERROR")]
    if unexpected:
        logger.warn("Contracts with unexpected differences", ", ".join(unexpected))

    if fail_on_difference:
        return not unexpected and is_hash_correct
    return True


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="Compare deployed Uniswap V3 fork bytecode against canonical Uniswap V3"
    )
    parser.add_argument(
        "--version", "-V", action="store_true", help="Display version information"
    )
    parser.add_argument(
        "target",
        nargs="?",
        default=DEFAULT_NETWORK,
        help="Network (testnet, mainnet) or path to a deployment file",
    )
    parser.add_argument(
        "--max-differences",
        "-n",
        type=int,
        default=DEFAULT_MAX_DIFFERENCES,
        help="Number of differences to print per contract",
    )
    parser.add_argument(
        "--fail-on-difference",
        help="Exit with a non-zero code on unexpected differences",
        action="store_true",
    )
    parser.add_argument(
        "--fail-fast",
        help="Stop on the first contract that can't be compared",
        action="store_true",
    )
    parser.add_argument(
        "--skip-hash-check",
        help="Skip POOL_INIT_CODE_HASH verification",
        action="store_true",
    )
    parser.add_argument(
        "--fetch-abis",
        help="Fetch ABIs of the deployed contracts instead of comparing bytecode",
        action="store_true",
    )
    parser.add_argument(
        "--artifacts-root",
        default=DEFAULT_ARTIFACTS_ROOT,
        help="Directory holding the build artifact repos",
    )
    parser.add_argument(
        "--abis-dir", default=DEFAULT_ABIS_DIR, help="Directory to write ABIs to"
    )
    parser.add_argument(
        "--dry-run",
        help="Preview ABI fetching without writing files",
        action="store_true",
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_arguments(argv)
    if args.version:
        print(f"Forkscan {__version__}")
        return
    logger.info("Welcome to Forkscan!")
    logger.divider()

    ExceptionHandler.initialize(args.fail_fast)

    is_passed = True
    try:
        if args.fetch_abis:
            path, network = resolve_deployment_path(args.target)
            explorer_token = load_env(
                "ETHERSCAN_EXPLORER_TOKEN", required=False, masked=True
            )
            fetch_abis(
                load_deployment(path, network),
                args.abis_dir,
                args.artifacts_root,
                explorer_token,
                args.dry_run,
            )
        else:
            is_passed = process_deployment(
                args.target,
                args.max_differences,
                args.fail_on_difference,
                args.skip_hash_check,
            )
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt by user")
    except BaseCustomException as custom_exc:
        logger.error(custom_exc.message)
        sys.exit(1)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    execution_time = time.time() - START_TIME
    logger.okay(f"Done in {round(execution_time, 3)}s ✨")

    if not is_passed:
        sys.exit(1)


if __name__ == "__main__":
    main()
