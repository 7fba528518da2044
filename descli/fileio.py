"""
fileio.py - reading and writing the byte streams the CLI works on

"-" stands for stdin when reading and stdout when writing. File writes are
atomic: the data goes to a temporary file next to the destination, which is
then renamed over it, so readers never see a half-written output.
"""

import abc
import logging
import os
import shutil
import sys
import tempfile
from typing import BinaryIO, Optional

from descli.errors import InvalidArgumentError

log = logging.getLogger(__name__)

STDIO_MARKER = "-"


def _check_path(path: Optional[str]) -> str:
    if not path:
        raise InvalidArgumentError("Path cannot be None or empty.")
    return path


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


class FileProcessor(abc.ABC):
    """Byte-stream provider used by the CLI."""

    @abc.abstractmethod
    def read_input(self, path: str) -> bytes:
        ...

    @abc.abstractmethod
    def write_output(self, path: str, data: bytes) -> None:
        ...

    @abc.abstractmethod
    def read_input_stream(self, path: str) -> BinaryIO:
        ...

    @abc.abstractmethod
    def write_output_stream(self, path: str, stream: BinaryIO) -> None:
        ...


class LocalFileProcessor(FileProcessor):
    """FileProcessor over the local filesystem and the process's stdio."""

    def read_input(self, path: str) -> bytes:
        path = _check_path(path)
        if path == STDIO_MARKER:
            return sys.stdin.buffer.read()
        if not os.path.isfile(path):
            raise FileNotFoundError(f"Input file not found: {path}")
        with open(path, "rb") as f:
            data = f.read()
        log.debug("Read %d bytes from %s", len(data), path)
        return data

    def write_output(self, path: str, data: bytes) -> None:
        path = _check_path(path)
        if data is None:
            raise InvalidArgumentError("Data to write cannot be None.")
        if path == STDIO_MARKER:
            sys.stdout.buffer.write(data)
            sys.stdout.buffer.flush()
            return
        self._atomic_write(path, lambda f: f.write(data))
        log.debug("Wrote %d bytes to %s", len(data), path)

    def read_input_stream(self, path: str) -> BinaryIO:
        """
        Open path for binary reading. The caller closes the stream.

        For "-" this is the stdin buffer, which must not be closed by the
        caller if it wants to keep using stdin.
        """
        path = _check_path(path)
        if path == STDIO_MARKER:
            return sys.stdin.buffer
        if not os.path.isfile(path):
            raise FileNotFoundError(f"Input file not found: {path}")
        return open(path, "rb")

    def write_output_stream(self, path: str, stream: BinaryIO) -> None:
        path = _check_path(path)
        if stream is None:
            raise InvalidArgumentError("Stream to write cannot be None.")
        if path == STDIO_MARKER:
            shutil.copyfileobj(stream, sys.stdout.buffer)
            sys.stdout.buffer.flush()
            return
        self._atomic_write(path, lambda f: shutil.copyfileobj(stream, f))

    @staticmethod
    def _atomic_write(path: str, fill) -> None:
        target_dir = os.path.dirname(os.path.abspath(path))
        os.makedirs(target_dir, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=target_dir, prefix=".descli-", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                fill(f)
                f.flush()
                os.fsync(f.fileno())
            # mkstemp creates 0600; keep the destination's mode or the umask default
            if os.path.exists(path):
                shutil.copymode(path, tmp_path)
            else:
                os.chmod(tmp_path, 0o666 & ~_current_umask())
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise


_default = LocalFileProcessor()


def read_input(path: str) -> bytes:
    return _default.read_input(path)


def write_output(path: str, data: bytes) -> None:
    _default.write_output(path, data)
