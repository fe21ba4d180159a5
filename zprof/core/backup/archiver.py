from __future__ import annotations

import json
import os
import time
import zipfile
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from zprof import __version__
from zprof.core.backup.hasher import sha256_bytes, sha256_file, sha256_stream
from zprof.core.backup.verifier import MANIFEST_DIGEST_FILENAME, MANIFEST_FILENAME, VerifyResult
from zprof.core.errors import normalize_os_error

_RESERVED = {MANIFEST_FILENAME, MANIFEST_DIGEST_FILENAME}


@dataclass(frozen=True)
class SafetySummary:
    path: str
    size_bytes: int
    file_count: int


def safety_snapshot_name(now: Optional[float] = None) -> str:
    ts = time.strftime("%Y%m%d-%H%M%S", time.localtime(time.time() if now is None else now))
    return f"final-snapshot-{ts}.zip"


def _collect(managed_dir: str, exclude: str) -> List[Tuple[str, str]]:
    """(absolute_path, archive_name) for every regular file under managed_dir."""
    base = os.path.basename(os.path.normpath(managed_dir))
    out: List[Tuple[str, str]] = []
    for dirpath, dirnames, filenames in os.walk(managed_dir):
        dirnames.sort()
        for fn in sorted(filenames):
            p = os.path.join(dirpath, fn)
            if os.path.abspath(p) == exclude or not os.path.isfile(p):
                continue
            rel = os.path.relpath(p, managed_dir).replace(os.sep, "/")
            out.append((p, f"{base}/{rel}"))
    return out


def create_safety_snapshot(managed_dir: str, out_path: str) -> SafetySummary:
    """
    Archive the whole managed tree into one compressed file before anything is deleted.

    The archive carries its own manifest.json / manifest.sha256 so it can be
    checked later with verify_safety_snapshot().
    """
    out_abs = os.path.abspath(out_path)
    files = _collect(managed_dir, out_abs)
    contents: List[Dict[str, Any]] = []
    try:
        os.makedirs(os.path.dirname(out_abs) or ".", exist_ok=True)
        with zipfile.ZipFile(out_abs, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=6) as z:
            for abs_path, arcname in files:
                z.write(abs_path, arcname=arcname)
                contents.append({"relative_path": arcname, "sha256": sha256_file(abs_path), "size_bytes": os.path.getsize(abs_path)})
            manifest = {
                "kind": "zprof-safety-snapshot",
                "created_at": time.time(),
                "source": os.path.abspath(managed_dir),
                "tool_version": __version__,
                "contents": contents,
            }
            manifest_json = json.dumps(manifest, ensure_ascii=False, indent=2, sort_keys=True).encode("utf-8")
            z.writestr(MANIFEST_FILENAME, manifest_json)
            z.writestr(MANIFEST_DIGEST_FILENAME, (sha256_bytes(manifest_json) + "\n").encode("utf-8"))
        os.chmod(out_abs, 0o600)
        size = os.path.getsize(out_abs)
    except OSError as e:
        raise normalize_os_error(e, path=out_abs, action="create safety snapshot") from e
    return SafetySummary(path=out_abs, size_bytes=size, file_count=len(contents))


def verify_safety_snapshot(zip_path: str) -> VerifyResult:
    errors: List[str] = []
    checked = 0
    try:
        z = zipfile.ZipFile(zip_path, "r")
    except (OSError, zipfile.BadZipFile) as e:
        return VerifyResult(ok=False, errors=[f"cannot open archive: {e}"], checked_files=0)
    with z:
        try:
            manifest_bytes = z.read(MANIFEST_FILENAME)
        except KeyError:
            return VerifyResult(ok=False, errors=[f"missing {MANIFEST_FILENAME}"], checked_files=0)
        try:
            man = json.loads(manifest_bytes.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            return VerifyResult(ok=False, errors=[f"invalid {MANIFEST_FILENAME}: {e}"], checked_files=0)
        try:
            sig = z.read(MANIFEST_DIGEST_FILENAME).decode("utf-8").strip()
            if sig != sha256_bytes(manifest_bytes):
                errors.append(f"{MANIFEST_DIGEST_FILENAME} mismatch")
        except KeyError:
            errors.append(f"missing {MANIFEST_DIGEST_FILENAME}")

        for ent in man.get("contents") or []:
            rel = ent.get("relative_path")
            if not rel or rel in _RESERVED:
                continue
            try:
                with z.open(rel, "r") as fp:
                    data_hash = sha256_stream(fp)
                if int(z.getinfo(rel).file_size) != int(ent.get("size_bytes") or 0):
                    errors.append(f"size mismatch: {rel}")
                if data_hash != ent.get("sha256"):
                    errors.append(f"hash mismatch: {rel}")
                checked += 1
            except KeyError:
                errors.append(f"missing file: {rel}")
            except (OSError, zipfile.BadZipFile) as e:
                errors.append(f"error reading {rel}: {e}")

    return VerifyResult(ok=(len(errors) == 0), errors=errors, checked_files=checked)
