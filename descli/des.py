"""
des.py - Python implementation of the Data Encryption Standard (DES)

This module implements:
    - the DES primitives: IP/FP, the E and P permutations, the key schedule,
      the eight S-boxes and the round function F
    - ECB mode with PKCS#7 padding for arbitrary-length byte strings

Public functions:

    des_encrypt(data: bytes, key: bytes) -> bytes
    des_decrypt(data: bytes, key: bytes) -> bytes

    # For single 8-byte blocks (no padding):
    des_encrypt_block(block: bytes, key: bytes) -> bytes
    des_decrypt_block(block: bytes, key: bytes) -> bytes

    # Primitives, byte buffers in and out:
    generate_round_keys(key: bytes) -> tuple of 16 x 6 bytes
    initial_permutation(block: bytes) -> bytes
    final_permutation(block: bytes) -> bytes
    feistel(right: bytes, subkey: bytes) -> bytes
    sbox_substitution(data: bytes) -> bytes

Callers that want to swap the cipher out (tests, the CLI) should depend on
the BlockCipher interface and use StandardDes as the real implementation.

All the math is done on big-endian integers. Bit 1 of a table is the most
significant bit of byte 0 of the input.
"""

import abc
import logging
from typing import NamedTuple, Sequence, Tuple, Union

from descli.errors import InvalidArgumentError, PaddingError

log = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]

# 16 round keys, each a 48-bit integer, encryption order
RoundKeySet = Tuple[int, ...]

BLOCK_SIZE = 8
KEY_SIZE = 8
HALF_SIZE = 4
SUBKEY_SIZE = 6
ROUNDS = 16

_MASK28 = (1 << 28) - 1
_MASK32 = 0xFFFFFFFF

# ============================================================
# DES TABLES (from the standard)
# ============================================================

# Initial Permutation (IP)
IP_TABLE = (
    58, 50, 42, 34, 26, 18, 10,  2,
    60, 52, 44, 36, 28, 20, 12,  4,
    62, 54, 46, 38, 30, 22, 14,  6,
    64, 56, 48, 40, 32, 24, 16,  8,
    57, 49, 41, 33, 25, 17,  9,  1,
    59, 51, 43, 35, 27, 19, 11,  3,
    61, 53, 45, 37, 29, 21, 13,  5,
    63, 55, 47, 39, 31, 23, 15,  7,
)

# Final Permutation (IP^-1)
FP_TABLE = (
    40,  8, 48, 16, 56, 24, 64, 32,
    39,  7, 47, 15, 55, 23, 63, 31,
    38,  6, 46, 14, 54, 22, 62, 30,
    37,  5, 45, 13, 53, 21, 61, 29,
    36,  4, 44, 12, 52, 20, 60, 28,
    35,  3, 43, 11, 51, 19, 59, 27,
    34,  2, 42, 10, 50, 18, 58, 26,
    33,  1, 41,  9, 49, 17, 57, 25,
)

# Expansion E (32 -> 48 bits)
E_TABLE = (
    32,  1,  2,  3,  4,  5,
     4,  5,  6,  7,  8,  9,
     8,  9, 10, 11, 12, 13,
    12, 13, 14, 15, 16, 17,
    16, 17, 18, 19, 20, 21,
    20, 21, 22, 23, 24, 25,
    24, 25, 26, 27, 28, 29,
    28, 29, 30, 31, 32,  1,
)

# P-box permutation (32 -> 32 bits)
P_TABLE = (
    16,  7, 20, 21,
    29, 12, 28, 17,
     1, 15, 23, 26,
     5, 18, 31, 10,
     2,  8, 24, 14,
    32, 27,  3,  9,
    19, 13, 30,  6,
    22, 11,  4, 25,
)

# S-boxes: 8 boxes, each 4 rows x 16 columns
S_BOXES = (
    # S1
    (
        (14,  4, 13,  1,  2, 15, 11,  8,  3, 10,  6, 12,  5,  9,  0,  7),
        ( 0, 15,  7,  4, 14,  2, 13,  1, 10,  6, 12, 11,  9,  5,  3,  8),
        ( 4,  1, 14,  8, 13,  6,  2, 11, 15, 12,  9,  7,  3, 10,  5,  0),
        (15, 12,  8,  2,  4,  9,  1,  7,  5, 11,  3, 14, 10,  0,  6, 13),
    ),
    # S2
    (
        (15,  1,  8, 14,  6, 11,  3,  4,  9,  7,  2, 13, 12,  0,  5, 10),
        ( 3, 13,  4,  7, 15,  2,  8, 14, 12,  0,  1, 10,  6,  9, 11,  5),
        ( 0, 14,  7, 11, 10,  4, 13,  1,  5,  8, 12,  6,  9,  3,  2, 15),
        (13,  8, 10,  1,  3, 15,  4,  2, 11,  6,  7, 12,  0,  5, 14,  9),
    ),
    # S3
    (
        (10,  0,  9, 14,  6,  3, 15,  5,  1, 13, 12,  7, 11,  4,  2,  8),
        (13,  7,  0,  9,  3,  4,  6, 10,  2,  8,  5, 14, 12, 11, 15,  1),
        (13,  6,  4,  9,  8, 15,  3,  0, 11,  1,  2, 12,  5, 10, 14,  7),
        ( 1, 10, 13,  0,  6,  9,  8,  7,  4, 15, 14,  3, 11,  5,  2, 12),
    ),
    # S4
    (
        ( 7, 13, 14,  3,  0,  6,  9, 10,  1,  2,  8,  5, 11, 12,  4, 15),
        (13,  8, 11,  5,  6, 15,  0,  3,  4,  7,  2, 12,  1, 10, 14,  9),
        (10,  6,  9,  0, 12, 11,  7, 13, 15,  1,  3, 14,  5,  2,  8,  4),
        ( 3, 15,  0,  6, 10,  1, 13,  8,  9,  4,  5, 11, 12,  7,  2, 14),
    ),
    # S5
    (
        ( 2, 12,  4,  1,  7, 10, 11,  6,  8,  5,  3, 15, 13,  0, 14,  9),
        (14, 11,  2, 12,  4,  7, 13,  1,  5,  0, 15, 10,  3,  9,  8,  6),
        ( 4,  2,  1, 11, 10, 13,  7,  8, 15,  9, 12,  5,  6,  3,  0, 14),
        (11,  8, 12,  7,  1, 14,  2, 13,  6, 15,  0,  9, 10,  4,  5,  3),
    ),
    # S6
    (
        (12,  1, 10, 15,  9,  2,  6,  8,  0, 13,  3,  4, 14,  7,  5, 11),
        (10, 15,  4,  2,  7, 12,  9,  5,  6,  1, 13, 14,  0, 11,  3,  8),
        ( 9, 14, 15,  5,  2,  8, 12,  3,  7,  0,  4, 10,  1, 13, 11,  6),
        ( 4,  3,  2, 12,  9,  5, 15, 10, 11, 14,  1,  7,  6,  0,  8, 13),
    ),
    # S7
    (
        ( 4, 11,  2, 14, 15,  0,  8, 13,  3, 12,  9,  7,  5, 10,  6,  1),
        (13,  0, 11,  7,  4,  9,  1, 10, 14,  3,  5, 12,  2, 15,  8,  6),
        ( 1,  4, 11, 13, 12,  3,  7, 14, 10, 15,  6,  8,  0,  5,  9,  2),
        ( 6, 11, 13,  8,  1,  4, 10,  7,  9,  5,  0, 15, 14,  2,  3, 12),
    ),
    # S8
    (
        (13,  2,  8,  4,  6, 15, 11,  1, 10,  9,  3, 14,  5,  0, 12,  7),
        ( 1, 15, 13,  8, 10,  3,  7,  4, 12,  5,  6, 11,  0, 14,  9,  2),
        ( 7, 11,  4,  1,  9, 12, 14,  2,  0,  6, 10, 13, 15,  3,  5,  8),
        ( 2,  1, 14,  7,  4, 10,  8, 13, 15, 12,  9,  0,  3,  5,  6, 11),
    ),
)

# PC-1 (key permutation, 64 -> 56 bits)
PC1_TABLE = (
    57, 49, 41, 33, 25, 17,  9,
     1, 58, 50, 42, 34, 26, 18,
    10,  2, 59, 51, 43, 35, 27,
    19, 11,  3, 60, 52, 44, 36,
    63, 55, 47, 39, 31, 23, 15,
     7, 62, 54, 46, 38, 30, 22,
    14,  6, 61, 53, 45, 37, 29,
    21, 13,  5, 28, 20, 12,  4,
)

# PC-2 (key compression, 56 -> 48 bits)
PC2_TABLE = (
    14, 17, 11, 24,  1,  5,
     3, 28, 15,  6, 21, 10,
    23, 19, 12,  4, 26,  8,
    16,  7, 27, 20, 13,  2,
    41, 52, 31, 37, 47, 55,
    30, 40, 51, 45, 33, 48,
    44, 49, 39, 56, 34, 53,
    46, 42, 50, 36, 29, 32,
)

# Left shifts per round (16 rounds)
LEFT_SHIFTS = (1, 1, 2, 2, 2, 2, 2, 2,
               1, 2, 2, 2, 2, 2, 2, 1)


class Permutation(NamedTuple):
    """A bit-selection table together with the width of the input it reads."""

    table: Tuple[int, ...]
    input_bits: int

    @property
    def output_bits(self) -> int:
        return len(self.table)


IP = Permutation(IP_TABLE, 64)
FP = Permutation(FP_TABLE, 64)
E = Permutation(E_TABLE, 32)
P = Permutation(P_TABLE, 32)
PC1 = Permutation(PC1_TABLE, 64)
PC2 = Permutation(PC2_TABLE, 56)

# ============================================================
# Argument checks
# ============================================================

def _as_bytes(value: BytesLike, name: str) -> bytes:
    if value is None:
        raise InvalidArgumentError(f"{name} must not be None")
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise InvalidArgumentError(f"{name} must be a bytes-like object, not {type(value).__name__}")
    return bytes(value)


def _require_length(value: BytesLike, length: int, name: str) -> bytes:
    data = _as_bytes(value, name)
    if len(data) != length:
        raise InvalidArgumentError(f"{name} must be exactly {length} bytes, got {len(data)}")
    return data

# ============================================================
# Bit/Permutation helpers
# ============================================================

def bytes_to_int(block: bytes) -> int:
    """Convert a sequence of bytes to an integer (big endian)."""
    return int.from_bytes(block, "big")


def int_to_bytes(value: int, length: int) -> bytes:
    """Convert an integer to a big-endian byte string of given length."""
    return value.to_bytes(length, "big")


def permute(block: int, table: Sequence[int], input_bits: int) -> int:
    """
    Generic permutation.
    - block: integer containing 'input_bits' bits.
    - table: list of positions (1-based from MSB) to select from the input.
    Returns an integer whose bit length == len(table).
    """
    result = 0
    for position in table:
        # Position 1 -> bit index input_bits-1
        bit = (block >> (input_bits - position)) & 1
        result = (result << 1) | bit
    return result


def apply_permutation(perm: Permutation, data: BytesLike) -> bytes:
    """
    Apply a permutation table to a byte buffer.

    The input must be exactly perm.input_bits wide. The output is
    ceil(len(perm.table) / 8) bytes; a partial last byte is filled from the
    most significant bit down and zero-padded.
    """
    data = _require_length(data, perm.input_bits // 8, "input")
    out_bits = perm.output_bits
    out_len = (out_bits + 7) // 8
    value = permute(bytes_to_int(data), perm.table, perm.input_bits)
    return int_to_bytes(value << (out_len * 8 - out_bits), out_len)


def left_rotate(value: int, shift: int, bit_len: int) -> int:
    """Circular left shift on a bit_len-bit value."""
    shift %= bit_len
    return ((value << shift) & ((1 << bit_len) - 1)) | (value >> (bit_len - shift))


def initial_permutation(block: BytesLike) -> bytes:
    return apply_permutation(IP, block)


def final_permutation(block: BytesLike) -> bytes:
    return apply_permutation(FP, block)

# ============================================================
# Key schedule
# ============================================================

def derive_schedule(key: BytesLike) -> RoundKeySet:
    """
    Derive the 16 round keys (each a 48-bit int) from an 8-byte key.

    Steps:
        - PC-1: 64 -> 56 bits (parity bits dropped)
        - split into C and D (28 bits each)
        - for each round: rotate C and D left, combine, apply PC-2: 56 -> 48 bits

    Decryption uses the same set in reverse order.
    """
    key = _require_length(key, KEY_SIZE, "key")
    key56 = permute(bytes_to_int(key), PC1_TABLE, 64)

    C = (key56 >> 28) & _MASK28
    D = key56 & _MASK28

    round_keys = []
    for shift in LEFT_SHIFTS:
        C = left_rotate(C, shift, 28)
        D = left_rotate(D, shift, 28)
        round_keys.append(permute((C << 28) | D, PC2_TABLE, 56))

    return tuple(round_keys)


def generate_round_keys(key: BytesLike) -> Tuple[bytes, ...]:
    """Return the 16 round keys for key as 6-byte strings, round 1 first."""
    return tuple(int_to_bytes(k, SUBKEY_SIZE) for k in derive_schedule(key))

# ============================================================
# Round function F (Feistel)
# ============================================================

def sbox_substitution_int(block48: int) -> int:
    """
    Apply the 8 DES S-boxes to a 48-bit value, giving 32 bits.

    Chunk 0 is the leftmost 6 bits and goes through S1. The row is the
    outer pair of bits, the column the inner four.
    """
    result = 0
    for i in range(8):
        six_bits = (block48 >> (6 * (7 - i))) & 0b111111
        row = ((six_bits & 0b100000) >> 4) | (six_bits & 0b000001)
        col = (six_bits >> 1) & 0b1111
        result = (result << 4) | S_BOXES[i][row][col]
    return result


def sbox_substitution(data: BytesLike) -> bytes:
    data = _require_length(data, SUBKEY_SIZE, "S-box input")
    return int_to_bytes(sbox_substitution_int(bytes_to_int(data)), HALF_SIZE)


def feistel_f(R: int, K: int) -> int:
    """
    DES round function F.
    - R: 32-bit right half
    - K: 48-bit subkey for this round
    Steps:
        1. Expansion E: 32 -> 48 bits
        2. XOR with subkey K
        3. S-box substitution: eight 6->4 boxes, yields 32 bits
        4. P permutation on the 32-bit result
    """
    x = permute(R, E_TABLE, 32) ^ K
    return permute(sbox_substitution_int(x), P_TABLE, 32)


def feistel(right: BytesLike, subkey: BytesLike) -> bytes:
    right = _require_length(right, HALF_SIZE, "right half")
    subkey = _require_length(subkey, SUBKEY_SIZE, "subkey")
    return int_to_bytes(feistel_f(bytes_to_int(right), bytes_to_int(subkey)), HALF_SIZE)

# ============================================================
# Block encryption/decryption (single 64-bit block)
# ============================================================

def crypt_block_int(block64: int, round_keys: Sequence[int]) -> int:
    """
    Run one 64-bit block through IP, 16 Feistel rounds and FP.

    Pass the schedule as-is to encrypt and reversed to decrypt.
    """
    ip = permute(block64, IP_TABLE, 64)

    L = (ip >> 32) & _MASK32
    R = ip & _MASK32

    for K in round_keys:
        L, R = R, L ^ feistel_f(R, K)

    # R before L: the last round's swap is undone here
    return permute((R << 32) | L, FP_TABLE, 64)


def des_encrypt_block(block: BytesLike, key: BytesLike) -> bytes:
    """
    Encrypt a single 8-byte block with DES.
    - block: 8 bytes plaintext
    - key:   8 bytes key (64 bits incl. parity)
    """
    block = _require_length(block, BLOCK_SIZE, "block")
    round_keys = derive_schedule(key)
    return int_to_bytes(crypt_block_int(bytes_to_int(block), round_keys), BLOCK_SIZE)


def des_decrypt_block(block: BytesLike, key: BytesLike) -> bytes:
    """
    Decrypt a single 8-byte block with DES.
    """
    block = _require_length(block, BLOCK_SIZE, "block")
    round_keys = derive_schedule(key)
    return int_to_bytes(crypt_block_int(bytes_to_int(block), round_keys[::-1]), BLOCK_SIZE)

# ============================================================
# Padding + ECB mode for arbitrary-length data
# ============================================================

def pkcs7_pad(data: bytes) -> bytes:
    """
    PKCS#7 padding for 8-byte blocks.
    If len(data) is already a multiple of 8, an extra block of 8 bytes (0x08) is added.
    """
    pad_len = BLOCK_SIZE - (len(data) % BLOCK_SIZE)
    return data + bytes([pad_len]) * pad_len


def pkcs7_unpad(data: bytes) -> bytes:
    """
    Remove PKCS#7 padding, raising PaddingError if it does not check out.
    """
    if not data:
        raise PaddingError("Cannot unpad empty data")

    pad_len = data[-1]
    if pad_len < 1 or pad_len > BLOCK_SIZE:
        raise PaddingError(f"Invalid padding length byte 0x{pad_len:02X}")
    if pad_len > len(data):
        raise PaddingError("Padding longer than data")
    if data[-pad_len:] != bytes([pad_len]) * pad_len:
        raise PaddingError("Invalid padding bytes")

    return data[:-pad_len]


def _ecb(data: bytes, round_keys: Sequence[int]) -> bytes:
    result = bytearray()
    for i in range(0, len(data), BLOCK_SIZE):
        block64 = bytes_to_int(data[i:i + BLOCK_SIZE])
        result += int_to_bytes(crypt_block_int(block64, round_keys), BLOCK_SIZE)
    return bytes(result)


def des_encrypt(data: BytesLike, key: BytesLike) -> bytes:
    """
    Encrypt arbitrary-length data using DES in ECB mode with PKCS#7 padding.

    The result is always a positive multiple of 8 bytes; empty input gives
    one encrypted block of padding.
    """
    data = _as_bytes(data, "plaintext")
    round_keys = derive_schedule(key)

    padded = pkcs7_pad(data)
    log.debug("DES encrypt: %d bytes in, %d blocks", len(data), len(padded) // BLOCK_SIZE)
    return _ecb(padded, round_keys)


def des_decrypt(data: BytesLike, key: BytesLike) -> bytes:
    """
    Decrypt data encrypted with des_encrypt (ECB + PKCS#7).

    Raises InvalidArgumentError for a bad key or a ciphertext that is not a
    positive multiple of 8 bytes, and PaddingError when the recovered
    padding is invalid.
    """
    data = _as_bytes(data, "ciphertext")
    if not data or len(data) % BLOCK_SIZE != 0:
        raise InvalidArgumentError(
            f"Ciphertext length must be a positive multiple of {BLOCK_SIZE}, got {len(data)}"
        )
    round_keys = derive_schedule(key)

    log.debug("DES decrypt: %d blocks", len(data) // BLOCK_SIZE)
    return pkcs7_unpad(_ecb(data, round_keys[::-1]))

# ============================================================
# Cipher interface
# ============================================================

class BlockCipher(abc.ABC):
    """
    What the command line layer needs from a cipher.

    StandardDes is the real thing; tests substitute their own fakes.
    """

    @abc.abstractmethod
    def encrypt(self, plaintext: bytes, key: bytes) -> bytes:
        ...

    @abc.abstractmethod
    def decrypt(self, ciphertext: bytes, key: bytes) -> bytes:
        ...

    @abc.abstractmethod
    def initial_permutation(self, block: bytes) -> bytes:
        ...

    @abc.abstractmethod
    def final_permutation(self, block: bytes) -> bytes:
        ...

    @abc.abstractmethod
    def feistel(self, right: bytes, subkey: bytes) -> bytes:
        ...

    @abc.abstractmethod
    def sbox_substitution(self, data: bytes) -> bytes:
        ...


class StandardDes(BlockCipher):
    """DES in ECB mode with PKCS#7 padding, backed by the functions above."""

    def encrypt(self, plaintext: bytes, key: bytes) -> bytes:
        return des_encrypt(plaintext, key)

    def decrypt(self, ciphertext: bytes, key: bytes) -> bytes:
        return des_decrypt(ciphertext, key)

    def initial_permutation(self, block: bytes) -> bytes:
        return initial_permutation(block)

    def final_permutation(self, block: bytes) -> bytes:
        return final_permutation(block)

    def feistel(self, right: bytes, subkey: bytes) -> bytes:
        return feistel(right, subkey)

    def sbox_substitution(self, data: bytes) -> bytes:
        return sbox_substitution(data)
