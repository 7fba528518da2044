"""
descli - DES (ECB, PKCS#7) encryption engine and command line tool.
"""

from descli.des import (
    BlockCipher,
    StandardDes,
    des_decrypt,
    des_decrypt_block,
    des_encrypt,
    des_encrypt_block,
    feistel,
    final_permutation,
    generate_round_keys,
    initial_permutation,
    sbox_substitution,
)
from descli.errors import DesError, InvalidArgumentError, KeyResolutionError, PaddingError

__version__ = "0.1.0"
