"""
keys.py - turning what the user typed into an 8-byte DES key

A key can come from a hex string, an ASCII passphrase (first 8 bytes) or
the raw contents of a file. The order in which sources are considered:

    1. key_file, if given (combining it with key_format is an error)
    2. key_format, if given: hex, ascii or file, applied to key
    3. otherwise key is hex when it is an even-length run of hex digits,
       and a file path in every other case

ASCII is never guessed. A passphrase such as "deadbeef" is also valid hex,
so it has to be asked for with key_format="ascii".
"""

import enum
import logging
import string
from typing import Callable, Optional, Union

from descli.des import KEY_SIZE
from descli.errors import InvalidArgumentError, KeyResolutionError
from descli.fileio import read_input

log = logging.getLogger(__name__)

_HEX_DIGITS = frozenset(string.hexdigits)


class KeyFormat(str, enum.Enum):
    HEX = "hex"
    ASCII = "ascii"
    FILE = "file"


def is_hex(text: str) -> bool:
    """True when text is a non-empty, even-length string of hex digits."""
    return bool(text) and len(text) % 2 == 0 and all(c in _HEX_DIGITS for c in text)


def parse_hex(text: str) -> bytes:
    """Parse a hex string, ignoring surrounding whitespace and a 0x prefix."""
    s = text.strip()
    if s[:2].lower() == "0x":
        s = s[2:]
    if not is_hex(s):
        raise InvalidArgumentError(f"Not a valid hex string: {text!r}")
    return bytes.fromhex(s)


def parse_ascii(text: str) -> bytes:
    try:
        raw = text.encode("ascii")
    except UnicodeEncodeError as e:
        raise InvalidArgumentError("ASCII key contains non-ASCII characters.") from e
    if len(raw) < KEY_SIZE:
        raise InvalidArgumentError(
            f"ASCII key must be at least {KEY_SIZE} bytes. Provide an {KEY_SIZE}-character key."
        )
    return raw[:KEY_SIZE]


def resolve_key(
    key: Optional[str] = None,
    key_format: Union[KeyFormat, str, None] = None,
    key_file: Optional[str] = None,
    reader: Callable[[str], bytes] = read_input,
) -> bytes:
    """
    Produce the 8-byte key described by the arguments.

    :param key: key text: hex digits, a passphrase or a path, depending on key_format
    :param key_format: how to interpret key; None means auto-detect
    :param key_file: path of a file whose raw bytes are the key
    :param reader: callable returning the bytes at a path
    :return: the key, exactly 8 bytes
    """
    if not key and not key_file:
        raise KeyResolutionError("Key not specified. Use -k <hex|path> or --key-file <path>.")
    if key_format and key_file:
        raise KeyResolutionError("Cannot specify both --key-format and --key-file. Choose one.")

    if key_format and not isinstance(key_format, KeyFormat):
        try:
            key_format = KeyFormat(str(key_format).lower())
        except ValueError:
            raise KeyResolutionError(
                f"Unknown key format '{key_format}'. Supported: hex, ascii, file."
            ) from None

    try:
        if key_file:
            source = "key file"
            key_bytes = reader(key_file)
        elif key_format is KeyFormat.HEX:
            source = "hex"
            key_bytes = parse_hex(key)
        elif key_format is KeyFormat.ASCII:
            source = "ascii"
            key_bytes = parse_ascii(key)
        elif key_format is KeyFormat.FILE:
            source = "file"
            key_bytes = reader(key)
        elif is_hex(key):
            source = "hex (detected)"
            key_bytes = bytes.fromhex(key)
        else:
            source = "file (detected)"
            key_bytes = reader(key)
    except (InvalidArgumentError, OSError) as e:
        raise KeyResolutionError(f"Failed to obtain key bytes: {e}") from e

    log.debug("Key taken from %s source", source)

    if len(key_bytes) != KEY_SIZE:
        raise KeyResolutionError(
            f"DES key must be {KEY_SIZE} bytes (64 bits). Provided key length: {len(key_bytes)}."
        )
    return key_bytes
