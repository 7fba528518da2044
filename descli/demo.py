"""
demo.py - interactive walk through one DES encrypt/decrypt round trip

Asks for a line of text and a key, then shows the plaintext, the padded
plaintext, the ciphertext and the decrypted result as grouped hex.
"""

import sys
from typing import Callable

from descli.des import KEY_SIZE, StandardDes, pkcs7_pad
from descli.errors import DesError
from descli.keys import parse_hex

DEFAULT_KEY_HEX = "0123456789ABCDEF"

BANNER = """\
*************************************************************
*        Data Encryption Standard (DES) Interactive Demo    *
*                                                           *
*        This demo                                          *
*        - asks the plaintext from the user,                *
*        - converts it to hexadecimal representation,       *
*        - applies padding if necessary,                    *
*        - encrypts the plaintext to ciphertext, and        *
*        - decrypts the ciphertext to plaintext again.      *
*************************************************************"""


def _print_err(*args) -> None:
    print(*args, file=sys.stderr)


def to_grouped_hex(data: bytes, bytes_per_group: int = 4, groups_per_line: int = 4) -> str:
    """
    Format bytes as uppercase hex, e.g. "01 02 03 04  05 06 ...".

    One space between bytes, two between groups, and a line break after
    every groups_per_line groups.
    """
    per_line = bytes_per_group * groups_per_line
    out = []
    for i, b in enumerate(data):
        out.append(f"{b:02X}")
        if i == len(data) - 1:
            break
        if (i + 1) % per_line == 0:
            out.append("\n")
        elif (i + 1) % bytes_per_group == 0:
            out.append("  ")
        else:
            out.append(" ")
    return "".join(out)


def run_demo(
    read_line: Callable[[str], str] = input,
    write: Callable[..., None] = print,
    error: Callable[..., None] = _print_err,
) -> int:
    write(BANNER)
    write()

    try:
        text = read_line("Enter a line of text (UTF-8). Press Enter to submit:\n")
    except EOFError:
        text = ""
    if not text:
        write("No input provided. Exiting.")
        return 0

    try:
        key_hex = read_line(f"Enter 16-hex key (or press Enter to use default {DEFAULT_KEY_HEX}): ")
    except EOFError:
        key_hex = ""
    if not key_hex or not key_hex.strip():
        key_hex = DEFAULT_KEY_HEX
        write(f"Using default key: {key_hex}")

    try:
        key = parse_hex(key_hex)
    except DesError as e:
        error(f"Invalid hex key: {e}")
        return 1
    if len(key) != KEY_SIZE:
        error(f"Key must be {KEY_SIZE} bytes (16 hex chars). Provided length: {len(key)} bytes.")
        return 1

    cipher = StandardDes()
    plain = text.encode("utf-8")

    write()
    write("Plaintext (hex, grouped):")
    write(to_grouped_hex(plain))

    write()
    write("Padded plaintext (hex, grouped):")
    write(to_grouped_hex(pkcs7_pad(plain)))

    encrypted = cipher.encrypt(plain, key)
    write()
    write("Encrypted (hex, grouped):")
    write(to_grouped_hex(encrypted))

    decrypted = cipher.decrypt(encrypted, key)
    write()
    write("Decrypted (hex, grouped):")
    write(to_grouped_hex(decrypted))

    write()
    write("Decrypted back to text:")
    write(decrypted.decode("utf-8"))
    return 0
