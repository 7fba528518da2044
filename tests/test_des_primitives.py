import pytest

from descli import des
from descli.errors import InvalidArgumentError

# Worked example key/block from the classic DES walkthrough
KEY = bytes.fromhex("133457799BBCDFF1")
BLOCK = bytes.fromhex("0123456789ABCDEF")


def test_initial_permutation_known_value():
    assert des.initial_permutation(BLOCK) == bytes.fromhex("CC00CCFFF0AAF0AA")


@pytest.mark.parametrize(
    "block_hex",
    ["0000000000000000", "FFFFFFFFFFFFFFFF", "0123456789ABCDEF", "8000000000000001", "DEADBEEFCAFEBABE"],
)
def test_final_permutation_inverts_initial(block_hex):
    block = bytes.fromhex(block_hex)
    assert des.final_permutation(des.initial_permutation(block)) == block
    assert des.initial_permutation(des.final_permutation(block)) == block


def test_initial_permutation_moves_bits():
    assert des.initial_permutation(BLOCK) != BLOCK


def test_fp_table_is_inverse_of_ip_table():
    for out_pos, src in enumerate(des.IP_TABLE, start=1):
        assert des.FP_TABLE[src - 1] == out_pos


@pytest.mark.parametrize("bad", [None, b"", b"\x00" * 7, b"\x00" * 9, "01234567"])
def test_permutation_rejects_bad_block(bad):
    with pytest.raises(InvalidArgumentError):
        des.initial_permutation(bad)
    with pytest.raises(InvalidArgumentError):
        des.final_permutation(bad)


def test_expansion_of_right_half():
    assert des.apply_permutation(des.E, bytes.fromhex("F0AAF0AA")) == bytes.fromhex("7A15557A1555")


def test_expansion_requires_four_bytes():
    with pytest.raises(InvalidArgumentError):
        des.apply_permutation(des.E, b"\x00" * 8)


def test_permutation_accepts_bytearray_and_returns_bytes():
    out = des.initial_permutation(bytearray(BLOCK))
    assert isinstance(out, bytes)
    assert out == des.initial_permutation(BLOCK)


def test_left_rotate_wraps_top_bit():
    assert des.left_rotate(1 << 27, 1, 28) == 1
    assert des.left_rotate(0b11 << 26, 2, 28) == 0b11


# ---- key schedule ----

def test_round_keys_shape():
    keys = des.generate_round_keys(KEY)
    assert len(keys) == 16
    assert all(isinstance(k, bytes) and len(k) == 6 for k in keys)


def test_round_keys_known_values():
    keys = des.generate_round_keys(KEY)
    assert keys[0] == bytes.fromhex("1B02EFFC7072")
    assert keys[1] == bytes.fromhex("79AED9DBC9E5")
    assert keys[15] == bytes.fromhex("CB3D8B0E17F5")


def test_all_zero_key_gives_all_zero_subkeys():
    assert des.generate_round_keys(bytes(8)) == (bytes(6),) * 16


def test_round_keys_are_deterministic():
    assert des.generate_round_keys(KEY) == des.generate_round_keys(bytes(KEY))


def test_derive_schedule_matches_byte_form():
    ints = des.derive_schedule(KEY)
    assert tuple(k.to_bytes(6, "big") for k in ints) == des.generate_round_keys(KEY)


@pytest.mark.parametrize("bad", [None, b"", b"\x01" * 7, b"\x01" * 9, "133457799BBCDFF1"])
def test_round_keys_reject_bad_key(bad):
    with pytest.raises(InvalidArgumentError):
        des.generate_round_keys(bad)


# ---- S-boxes ----

def test_sbox_all_zero_input():
    assert des.sbox_substitution(bytes(6)) == bytes.fromhex("EFA72C4D")


def test_sbox_known_value():
    # E(R0) xor K1 from the worked example
    assert des.sbox_substitution(bytes.fromhex("6117BA866527")) == bytes.fromhex("5C82B597")


def test_sbox_row_and_column_selection():
    # first group 0b111111: row 3, column 15 of S1 is 13
    out = des.sbox_substitution(bytes.fromhex("FC0000000000"))
    assert out[0] >> 4 == 13


def test_sbox_is_deterministic():
    data = bytes.fromhex("0123456789AB")
    assert des.sbox_substitution(data) == des.sbox_substitution(data)


@pytest.mark.parametrize("bad", [None, b"", bytes(5), bytes(7)])
def test_sbox_rejects_bad_length(bad):
    with pytest.raises(InvalidArgumentError):
        des.sbox_substitution(bad)


# ---- round function ----

def test_feistel_known_value():
    right = bytes.fromhex("F0AAF0AA")
    subkey = bytes.fromhex("1B02EFFC7072")
    assert des.feistel(right, subkey) == bytes.fromhex("234AA9BB")


def test_feistel_is_deterministic():
    right = bytes.fromhex("12345678")
    subkey = bytes.fromhex("A1B2C3D4E5F6")
    assert des.feistel(right, subkey) == des.feistel(right, subkey)


def test_feistel_depends_on_subkey():
    right = bytes.fromhex("F0AAF0AA")
    outputs = {des.feistel(right, k) for k in des.generate_round_keys(KEY)}
    assert len(outputs) > 1
    assert des.feistel(right, bytes(6)) != des.feistel(right, bytes.fromhex("1B02EFFC7072"))


@pytest.mark.parametrize(
    "right,subkey",
    [
        (None, bytes(6)),
        (bytes(4), None),
        (bytes(3), bytes(6)),
        (bytes(8), bytes(6)),
        (bytes(4), bytes(8)),
        (bytes(4), bytes(5)),
    ],
)
def test_feistel_rejects_bad_lengths(right, subkey):
    with pytest.raises(InvalidArgumentError):
        des.feistel(right, subkey)
