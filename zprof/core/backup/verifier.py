from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import List

from pydantic import ValidationError

from zprof.core.backup.hasher import sha256_bytes, sha256_file
from zprof.core.backup.models import SnapshotManifest
from zprof.core.errors import (
    ChecksumMismatchError,
    FileMissingError,
    ManifestMissingError,
    ManifestUnreadableError,
)

MANIFEST_FILENAME = "manifest.json"
MANIFEST_DIGEST_FILENAME = "manifest.sha256"


@dataclass(frozen=True)
class VerifyResult:
    ok: bool
    errors: List[str]
    checked_files: int


def manifest_path(snapshot_dir: str) -> str:
    return os.path.join(snapshot_dir, MANIFEST_FILENAME)


def snapshot_exists(snapshot_dir: str) -> bool:
    return os.path.isdir(snapshot_dir) and os.path.isfile(manifest_path(snapshot_dir))


def validate_snapshot(snapshot_dir: str) -> SnapshotManifest:
    """
    Load the manifest of a snapshot without hashing its payload.

    Payload checksums are verified lazily, one file at a time, during restoration.
    """
    path = manifest_path(snapshot_dir)
    if not os.path.isfile(path):
        raise ManifestMissingError(f"Snapshot manifest not found at {path}", snapshot_dir=snapshot_dir)
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except OSError as e:
        raise ManifestUnreadableError(f"Failed to read snapshot manifest {path}: {e}", snapshot_dir=snapshot_dir) from e

    digest_path = os.path.join(snapshot_dir, MANIFEST_DIGEST_FILENAME)
    if os.path.isfile(digest_path):
        try:
            with open(digest_path, "r", encoding="utf-8") as f:
                expected = f.read().strip()
        except OSError as e:
            raise ManifestUnreadableError(f"Failed to read {digest_path}: {e}", snapshot_dir=snapshot_dir) from e
        if expected != sha256_bytes(raw):
            raise ManifestUnreadableError(f"Snapshot manifest at {path} does not match {MANIFEST_DIGEST_FILENAME}", snapshot_dir=snapshot_dir)

    try:
        data = json.loads(raw.decode("utf-8"))
        return SnapshotManifest.model_validate(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ManifestUnreadableError(f"Snapshot manifest at {path} is not valid JSON: {e}", snapshot_dir=snapshot_dir) from e
    except ValidationError as e:
        raise ManifestUnreadableError(f"Snapshot manifest at {path} is invalid: {e.error_count()} error(s)", snapshot_dir=snapshot_dir) from e


def verify_checksum(path: str, expected_hex: str) -> bool:
    if not os.path.isfile(path):
        raise FileMissingError(f"File does not exist: {path}", path=path)
    actual = sha256_file(path)
    if actual != expected_hex:
        raise ChecksumMismatchError(f"Checksum mismatch for {path}: expected {expected_hex}, got {actual}", path=path, expected=expected_hex, actual=actual)
    return True


def verify_snapshot(snapshot_dir: str) -> VerifyResult:
    """Eager audit of every payload file; used on demand to detect silent corruption."""
    try:
        manifest = validate_snapshot(snapshot_dir)
    except (ManifestMissingError, ManifestUnreadableError) as e:
        return VerifyResult(ok=False, errors=[e.user_message], checked_files=0)

    errors: List[str] = []
    checked = 0
    for entry in manifest.files:
        payload = os.path.join(snapshot_dir, entry.relative_path)
        try:
            verify_checksum(payload, entry.checksum)
            if os.path.getsize(payload) != entry.size_bytes:
                errors.append(f"size mismatch: {entry.relative_path}")
            checked += 1
        except FileMissingError:
            errors.append(f"missing file: {entry.relative_path}")
        except ChecksumMismatchError:
            errors.append(f"hash mismatch: {entry.relative_path}")
        except OSError as e:
            errors.append(f"error reading {entry.relative_path}: {e}")
    return VerifyResult(ok=(len(errors) == 0), errors=errors, checked_files=checked)
