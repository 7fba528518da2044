"""
Exceptions raised by descli.

Everything the package raises on its own derives from DesError, so callers
can catch the whole family in one place.
"""


class DesError(Exception):
    """
    Base descli exception.
    """


class InvalidArgumentError(DesError, ValueError):
    """
    A caller passed something unusable: a missing buffer, a buffer of the
    wrong fixed length, a ciphertext that is not a whole number of blocks,
    or a command-line option combination that cannot be honoured.
    """


class PaddingError(DesError):
    """
    PKCS#7 padding did not validate after decryption.

    Either the key is wrong or the ciphertext was corrupted.
    """


class KeyResolutionError(InvalidArgumentError):
    """
    No usable 8-byte key could be obtained from the given key source.
    """
