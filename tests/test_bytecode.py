import pytest

from forkscan.utils.bytecode import (
    ComparisonResult,
    DifferenceRecord,
    compare_bytecode,
    filter_values,
    locate_pool_init_code_hash,
    mask_values,
    normalize_addresses,
    normalize_and_compare,
    strip_metadata,
)
from forkscan.utils.constants import (
    DEPLOYED_POOL_INIT_CODE_HASH,
    REFERENCE_POOL_INIT_CODE_HASH,
    ZERO_ADDRESS,
)
from forkscan.utils.immutables import REFERENCE_FACTORY, REFERENCE_V2_FACTORY

DEPLOYED_FACTORY = "68b3465833fb72a70ecdf485e0e4c7bd8665fc99"


def test_strip_metadata_removes_trailer():
    assert strip_metadata("0x6080604052" + "a1b2c3" + "0003") == "6080604052"


def test_strip_metadata_too_long_length_field_is_kept():
    # 0x29 = 41 bytes of metadata can't fit into a 6 byte code
    assert strip_metadata("601234560029") == "601234560029"


def test_strip_metadata_ignores_large_length():
    bytecode = "6080604052" + "00ff"
    assert strip_metadata(bytecode) == bytecode


def test_strip_metadata_zero_length():
    assert strip_metadata("0x60806040" + "0000") == "608060400000"


def test_strip_metadata_short_input():
    assert strip_metadata("0x1") == "1"
    assert strip_metadata("") == ""


def test_strip_metadata_non_hex_tail():
    assert strip_metadata("6080zzzz") == "6080zzzz"


def test_strip_metadata_is_idempotent():
    once = strip_metadata("0x6080604052" + "a1b2c3" + "0003")
    assert strip_metadata(once) == once


def test_strip_metadata_lowercases():
    assert strip_metadata("0x60AB" + "CD" + "0001") == "60ab"


def test_mask_values_case_folded():
    assert mask_values("0xAABBCCdd", ["aabbcc"]) == "0xxxxxxxdd"


def test_mask_values_every_occurrence():
    assert mask_values("0xab12ab", ["AB"]) == "0xxx12xx"


def test_mask_values_preserves_length():
    bytecode = "0x" + "73" + REFERENCE_FACTORY + "5b" + REFERENCE_FACTORY[:10]
    masked = mask_values(bytecode, [REFERENCE_FACTORY, "5b", "ffff"])
    assert len(masked) == len(bytecode)


def test_mask_values_absent_value_is_transparent():
    assert mask_values("0x6080604052", ["deadbeef"]) == "0x6080604052"


def test_mask_values_empty_value_rejected():
    with pytest.raises(ValueError, match="empty value"):
        mask_values("0x6080", [""])


def test_mask_values_not_byte_aligned():
    assert mask_values("0x1234", ["23"]) == "0x1xx4"


def test_filter_values_drops_absent():
    assert filter_values(["ab", "", None, "cd"]) == ["ab", "cd"]


def test_normalize_addresses_zeroes_listed_contract():
    bytecode = "0x73" + REFERENCE_V2_FACTORY.upper() + "5b"
    assert normalize_addresses(bytecode, "SwapRouter02") == "0x73" + ZERO_ADDRESS + "5b"


def test_normalize_addresses_other_contract_untouched():
    bytecode = "0x73" + REFERENCE_V2_FACTORY.upper() + "5b"
    assert normalize_addresses(bytecode, "QuoterV2") == bytecode


def test_compare_identical():
    assert compare_bytecode("0x1234", "0x1234") == ComparisonResult(
        identical=True, size_delta=0, differences=()
    )


def test_compare_single_difference():
    result = compare_bytecode("0x1234", "0x12ff")
    assert not result.identical
    assert result.differences == (
        DifferenceRecord(position=1, deployed="34", reference="ff"),
    )


def test_compare_size_mismatch_tail():
    result = compare_bytecode("0x1234", "0x123400")
    assert result.size_delta == -1
    assert DifferenceRecord(position=2, deployed="--", reference="00") in result.differences


def test_compare_size_delta_symmetry():
    a, b = "0x12345678", "0x12"
    assert compare_bytecode(a, b).size_delta == -compare_bytecode(b, a).size_delta == 3


def test_compare_skips_masked_bytes():
    result = compare_bytecode("0x12xxxx56", "0x12abcd56")
    assert result.identical
    assert result.differences == ()


def test_compare_skips_partially_masked_byte():
    # A mask not aligned to bytes still hides the whole byte it touches
    assert compare_bytecode("0x1xx4", "0x1234ff").differences == (
        DifferenceRecord(position=2, deployed="--", reference="ff"),
    )


def test_compare_reports_every_difference_in_order():
    result = compare_bytecode("0x" + "00" * 10, "0x" + "01" * 10)
    assert [diff.position for diff in result.differences] == list(range(10))


def test_normalize_and_compare_masks_immutables():
    deployed = "0x6080" + "73" + DEPLOYED_FACTORY + "5b" + "a1b2" + "0002"
    reference = "0x6080" + "73" + REFERENCE_FACTORY.upper() + "5b" + "c3d4e5" + "0003"

    result = normalize_and_compare(
        deployed,
        reference,
        "UniswapV3Factory",
        [DEPLOYED_FACTORY],
        [REFERENCE_FACTORY],
    )
    assert result.identical
    assert result.size_delta == 0


def test_normalize_and_compare_zeroes_absent_features():
    deployed = "0x6080" + "73" + ZERO_ADDRESS + "5b" + "a1b2" + "0002"
    reference = "0x6080" + "73" + REFERENCE_V2_FACTORY + "5b" + "a1b2" + "0002"

    result = normalize_and_compare(deployed, reference, "SwapRouter02", [], [])
    assert result.identical


def test_normalize_and_compare_reports_logic_difference():
    deployed = "0x6080" + "73" + DEPLOYED_FACTORY + "02" + "a1b2" + "0002"
    reference = "0x6080" + "73" + REFERENCE_FACTORY + "04" + "a1b2" + "0002"

    result = normalize_and_compare(
        deployed,
        reference,
        "UniswapV3Factory",
        [DEPLOYED_FACTORY, None],
        [REFERENCE_FACTORY, ""],
    )
    assert result.differences == (
        DifferenceRecord(position=23, deployed="02", reference="04"),
    )


def test_locate_pool_init_code_hash_found():
    bytecode = "0x6080" + "7f" + DEPLOYED_POOL_INIT_CODE_HASH
    assert locate_pool_init_code_hash(
        bytecode, DEPLOYED_POOL_INIT_CODE_HASH, REFERENCE_POOL_INIT_CODE_HASH
    ) == ("FOUND", 3)


def test_locate_pool_init_code_hash_wrong():
    bytecode = "0x7f" + REFERENCE_POOL_INIT_CODE_HASH.upper()
    assert locate_pool_init_code_hash(
        bytecode, DEPLOYED_POOL_INIT_CODE_HASH, REFERENCE_POOL_INIT_CODE_HASH
    ) == ("WRONG", 1)


def test_locate_pool_init_code_hash_missing():
    assert locate_pool_init_code_hash(
        "0x6080", "0x" + DEPLOYED_POOL_INIT_CODE_HASH, REFERENCE_POOL_INIT_CODE_HASH
    ) == ("MISSING", None)


def test_compare_size_delta_symmetry_odd_length():
    forward = compare_bytecode("0x123", "0x12")
    backward = compare_bytecode("0x12", "0x123")
    assert forward.size_delta == -backward.size_delta == 0


@pytest.mark.parametrize("tail", ["+0_1", " 0_1", "0_01", "-001"])
def test_strip_metadata_length_field_not_plain_hex(tail):
    assert strip_metadata("60806040" + tail) == "60806040" + tail
