from __future__ import annotations

import hashlib
from typing import BinaryIO

CHUNK_SIZE = 1024 * 1024


def sha256_bytes(b: bytes) -> str:
    return hashlib.sha256(b).hexdigest()


def sha256_stream(fp: BinaryIO) -> str:
    """Hex digest of everything left in `fp`, read in CHUNK_SIZE pieces."""
    h = hashlib.sha256()
    while True:
        chunk = fp.read(CHUNK_SIZE)
        if not chunk:
            break
        h.update(chunk)
    return h.hexdigest()


def sha256_file(path: str) -> str:
    with open(path, "rb") as f:
        return sha256_stream(f)
