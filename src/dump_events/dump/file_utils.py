"""
File utilities for the dump module.

Provides opening of dump files regardless of gzip compression.
"""

import gzip
from pathlib import Path
from typing import IO, Union

GZIP_MAGIC = b"\x1f\x8b"

# Raw BLOB bytes survive decoding as lone surrogates
DECODE_ERRORS = "surrogateescape"


def open_file_auto_decompress(
    file_path: Union[str, Path],
    encoding: str = "utf-8",
) -> IO[str]:
    """
    Open a dump file, automatically detecting gzip compression.

    Gzip detection is performed by:
    1. Checking for .gz file extension
    2. Checking for gzip magic bytes (0x1f 0x8b) even without .gz extension

    Line endings are not translated, so a ``\\r\\n`` terminated line keeps
    its ``\\r`` and a lone ``\\r`` never ends a line. Bytes that
    are not valid in the encoding (BLOB columns dumped without --hex-blob)
    decode to lone surrogates and encode back to the original bytes with
    ``errors="surrogateescape"``.

    Args:
        file_path: Path to the file
        encoding: Text encoding (default: utf-8)

    Returns:
        Open file handle (text mode)

    Raises:
        FileNotFoundError: If file doesn't exist
        PermissionError: If file cannot be read
        gzip.BadGzipFile: If file has .gz extension but is not valid gzip
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    if path.suffix.lower() == ".gz":
        return gzip.open(
            path, "rt", encoding=encoding, errors=DECODE_ERRORS, newline="\n"
        )

    with open(path, "rb") as f:
        magic = f.read(2)
    if magic == GZIP_MAGIC:
        return gzip.open(
            path, "rt", encoding=encoding, errors=DECODE_ERRORS, newline="\n"
        )

    return open(path, "r", encoding=encoding, errors=DECODE_ERRORS, newline="\n")
