import string

from dataclasses import dataclass

from .constants import MASK_CHAR, MISSING_BYTE
from .helpers import strip_hex_prefix
from .immutables import REFERENCE_ADDRESSES_TO_ZERO

# A mask must never be mistaken for a real byte
assert MASK_CHAR not in string.hexdigits.lower()

METADATA_LENGTH_FIELD = 4
MAX_METADATA_LENGTH = 100


@dataclass(frozen=True)
class DifferenceRecord:
    position: int
    deployed: str
    reference: str


@dataclass(frozen=True)
class ComparisonResult:
    identical: bool
    size_delta: int
    differences: tuple[DifferenceRecord, ...]


def strip_metadata(bytecode: str) -> str:
    """
    Strips the Solidity CBOR metadata from the end of the bytecode, if present.

    The last 2 bytes hold the big-endian length of the metadata blob. Lengths
    of 100 bytes and more are not treated as metadata, so bytecode which does
    not end with a real blob is left alone. The result is lower-cased and has
    no '0x' prefix.
    """
    bytecode = strip_hex_prefix(bytecode)
    if len(bytecode) < METADATA_LENGTH_FIELD:
        return bytecode

    length_field = bytecode[-METADATA_LENGTH_FIELD:]
    if not all(char in string.hexdigits for char in length_field):
        return bytecode
    metadata_length = int(length_field, 16)

    if 0 < metadata_length < MAX_METADATA_LENGTH:
        stripped_length = len(bytecode) - metadata_length * 2 - METADATA_LENGTH_FIELD
        if stripped_length > 0:
            return bytecode[:stripped_length]
    return bytecode


def filter_values(values) -> list[str]:
    """Drops absent values, masking against them is not allowed."""
    return [value for value in values if value]


def mask_values(bytecode: str, values) -> str:
    """
    Replaces every occurrence of each value with a run of MASK_CHAR of the same length.

    Matching is a plain case-insensitive substring search, not aligned to bytes.
    Values are processed in the given order.
    """
    masked = bytecode.lower()
    for value in values:
        if not value:
            raise ValueError("Cannot mask an empty value, filter it out first")
        value = value.lower()
        masked = masked.replace(value, MASK_CHAR * len(value))
    return masked


def normalize_addresses(bytecode: str, contract_name: str) -> str:
    """Zeroes reference addresses of features the deployed system doesn't have."""
    addresses_to_zero = REFERENCE_ADDRESSES_TO_ZERO.get(contract_name)
    if not addresses_to_zero:
        return bytecode

    normalized = bytecode.lower()
    for address in addresses_to_zero:
        address = address.lower()
        normalized = normalized.replace(address, "0" * len(address))
    return normalized


def compare_bytecode(deployed_bytecode: str, reference_bytecode: str) -> ComparisonResult:
    """
    Compares two normalized '0x' prefixed bytecodes byte by byte.

    A byte missing on one side is reported as MISSING_BYTE, bytes touching a
    mask on either side are skipped. Every difference is reported in order.
    """
    deployed_bytes = deployed_bytecode[2:]
    reference_bytes = reference_bytecode[2:]

    differences = []
    max_length = max(len(deployed_bytes), len(reference_bytes))

    for i in range(0, max_length, 2):
        deployed_byte = deployed_bytes[i : i + 2] or MISSING_BYTE
        reference_byte = reference_bytes[i : i + 2] or MISSING_BYTE
        if MASK_CHAR in deployed_byte or MASK_CHAR in reference_byte:
            continue
        if deployed_byte != reference_byte:
            differences.append(
                DifferenceRecord(
                    position=i // 2, deployed=deployed_byte, reference=reference_byte
                )
            )

    return ComparisonResult(
        identical=not differences,
        size_delta=int((len(deployed_bytes) - len(reference_bytes)) / 2),
        differences=tuple(differences),
    )


def normalize_and_compare(
    deployed_bytecode: str,
    reference_bytecode: str,
    contract_name: str,
    deployed_immutables,
    reference_immutables,
) -> ComparisonResult:
    normalized_reference = normalize_addresses(reference_bytecode, contract_name)

    stripped_deployed = "0x" + strip_metadata(deployed_bytecode)
    stripped_reference = "0x" + strip_metadata(normalized_reference)

    masked_deployed = mask_values(stripped_deployed, filter_values(deployed_immutables))
    masked_reference = mask_values(
        stripped_reference, filter_values(reference_immutables)
    )
    return compare_bytecode(masked_deployed, masked_reference)


def locate_pool_init_code_hash(
    bytecode: str, expected_hash: str, foreign_hash: str
) -> tuple[str, int | None]:
    """
    Looks for the pool init code hash in a deployed bytecode.

    Returns ("FOUND", byte offset) when the expected hash is embedded,
    ("WRONG", byte offset) when the foreign hash is embedded instead,
    ("MISSING", None) otherwise.
    """
    bytecode = strip_hex_prefix(bytecode)

    position = bytecode.find(strip_hex_prefix(expected_hash))
    if position != -1:
        return "FOUND", position // 2

    position = bytecode.find(strip_hex_prefix(foreign_hash))
    if position != -1:
        return "WRONG", position // 2

    return "MISSING", None
