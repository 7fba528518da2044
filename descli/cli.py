"""
cli.py - command line front end

    descli encrypt -i <input> -o <output> -k <key>
    descli decrypt -i <input> -o <output> -k <key>

CliHandler parses the arguments, resolves the key, reads the input, runs the
cipher and writes the result. The cipher and the file layer are injected so
either can be replaced in tests. Run with no arguments for the interactive
demo instead.
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import List, Optional, Sequence

from descli.des import BlockCipher, StandardDes
from descli.errors import DesError, InvalidArgumentError
from descli.fileio import FileProcessor, LocalFileProcessor
from descli.keys import resolve_key

log = logging.getLogger(__name__)

MODES = ("encrypt", "decrypt")

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

USAGE = """\
Usage:
  descli encrypt -i <input> -o <output> -k <key>
  descli decrypt -i <input> -o <output> -k <key>

Arguments:
  encrypt|decrypt                Mode of operation (or --mode).
  -i, --input <path>             Input file path (use '-' for stdin).
  -o, --output <path>            Output file path (use '-' for stdout).
  -k, --key <hex|path>           Key string (hex or path) or positional key.
  --key-format <hex|file|ascii>  Explicitly specify how to interpret the -k value.
  --key-file <path>              Explicitly provide a key file (alternative to -k).
  -v, --verbose                  Log progress to stderr.

Notes:
  If --key-format is omitted, -k is parsed as hex when it is an even number of
  hex digits, otherwise it is treated as a path to a key file.
  Use --key-format ascii to supply an 8-character ASCII key.

Examples:
  descli encrypt -i sample.bin -o sample.enc -k 0123456789ABCDEF --key-format hex
  descli encrypt -i sample.bin -o sample.enc --key-file keyfile.bin
  descli encrypt -i sample.bin -o sample.enc -k mysecretK --key-format ascii"""


@dataclass(frozen=True)
class CliOptions:
    mode: str
    input: str
    output: str
    key: Optional[str] = None
    key_format: Optional[str] = None
    key_file: Optional[str] = None
    verbose: bool = False


class _ArgumentParser(argparse.ArgumentParser):
    # report problems to CliHandler instead of exiting
    def error(self, message):
        raise InvalidArgumentError(message)


def _build_parser() -> argparse.ArgumentParser:
    ap = _ArgumentParser(prog="descli", add_help=False)
    ap.add_argument("positionals", nargs="*")
    ap.add_argument("-i", "--input")
    ap.add_argument("-o", "--output")
    ap.add_argument("-k", "--key")
    ap.add_argument("--key-format")
    ap.add_argument("--key-file")
    ap.add_argument("--mode")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def parse_args(argv: Sequence[str]) -> CliOptions:
    """
    Turn argv into CliOptions.

    argv[0] is the mode when it reads encrypt or decrypt, and must then agree
    with --mode if that is given too. Other positionals fill input, output
    and key, skipping whichever were given as switches.
    """
    argv = list(argv)
    ns = _build_parser().parse_intermixed_args(argv)
    positionals: List[str] = list(ns.positionals)

    mode = ns.mode
    if argv and argv[0].lower() in MODES and positionals and positionals[0] == argv[0]:
        positional_mode = positionals.pop(0)
        if mode and mode.lower() != positional_mode.lower():
            raise InvalidArgumentError(
                f"Conflicting modes: '{positional_mode}' and --mode '{mode}'."
            )
        mode = positional_mode

    values = {"input": ns.input, "output": ns.output, "key": ns.key}
    for token in positionals:
        slot = next((name for name, value in values.items() if value is None), None)
        if slot is None:
            raise InvalidArgumentError(f"Unknown argument or too many positional arguments: {token}")
        values[slot] = token

    if not mode:
        raise InvalidArgumentError("Mode not specified. Use 'encrypt' or 'decrypt' (or --mode).")
    mode = mode.lower()
    if mode not in MODES:
        raise InvalidArgumentError(f"Unknown mode '{mode}'. Use 'encrypt' or 'decrypt'.")
    if not values["input"]:
        raise InvalidArgumentError("Input path not specified. Use -i <path> or positional.")
    if not values["output"]:
        raise InvalidArgumentError("Output path not specified. Use -o <path> or positional.")
    if not values["key"] and not ns.key_file:
        raise InvalidArgumentError(
            "Key not specified. Use -k <hex|path> or --key-file <path> or positional."
        )

    return CliOptions(
        mode=mode,
        input=values["input"],
        output=values["output"],
        key=values["key"],
        key_format=ns.key_format,
        key_file=ns.key_file,
        verbose=ns.verbose,
    )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


class CliHandler:
    def __init__(self, cipher: Optional[BlockCipher] = None, files: Optional[FileProcessor] = None):
        self.cipher = cipher if cipher is not None else StandardDes()
        self.files = files if files is not None else LocalFileProcessor()

    def handle(self, argv: Optional[Sequence[str]]) -> int:
        """Run one command. Returns the process exit status."""
        argv = list(argv or [])
        if not argv or "-h" in argv or "--help" in argv:
            print(USAGE)
            return 0

        try:
            options = parse_args(argv)
            configure_logging(options.verbose)
            self.run(options)
        except (DesError, OSError) as e:
            print(f"Error: {e}", file=sys.stderr)
            print(file=sys.stderr)
            print(USAGE, file=sys.stderr)
            return 1
        return 0

    def run(self, options: CliOptions) -> None:
        key = resolve_key(
            key=options.key,
            key_format=options.key_format,
            key_file=options.key_file,
            reader=self.files.read_input,
        )

        data = self.files.read_input(options.input)
        log.info("%s %d bytes from %s", options.mode, len(data), options.input)

        if options.mode == "encrypt":
            result = self.cipher.encrypt(data, key)
        else:
            result = self.cipher.decrypt(data, key)

        self.files.write_output(options.output, result)
        log.info("wrote %d bytes to %s", len(result), options.output)


def main(argv: Optional[Sequence[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    if not argv:
        from descli.demo import run_demo

        return run_demo()
    return CliHandler().handle(argv)


if __name__ == "__main__":
    raise SystemExit(main())
