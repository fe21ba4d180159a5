from __future__ import annotations

import json
import os
import tempfile
import tomllib
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import ValidationError

from zprof.core.config.models import Settings


@dataclass(frozen=True)
class ReadResult:
    ok: bool
    data: Dict[str, Any]
    error: Optional[str] = None


def ensure_dirs(*dirs: str) -> None:
    for d in dirs:
        os.makedirs(d, exist_ok=True)


def read_toml_file(path: str) -> ReadResult:
    if not os.path.exists(path):
        return ReadResult(ok=False, data={}, error="missing")
    try:
        with open(path, "rb") as f:
            obj = tomllib.load(f)
        return ReadResult(ok=True, data=obj)
    except tomllib.TOMLDecodeError as e:
        return ReadResult(ok=False, data={}, error=f"corrupt_toml:{e}")
    except OSError as e:
        return ReadResult(ok=False, data={}, error=str(e))


def load_settings(path: str, *, logger=None) -> Settings:  # noqa: ANN001
    rr = read_toml_file(path)
    if not rr.ok:
        if rr.error != "missing" and logger is not None:
            logger.warning(f"Unreadable settings at {path} ({rr.error}); using defaults.")
        return Settings()
    try:
        return Settings.model_validate(rr.data)
    except ValidationError as e:
        if logger is not None:
            logger.warning(f"Invalid settings at {path}: {e.error_count()} error(s); using defaults.")
        return Settings()


def dump_json_bytes(data: Dict[str, Any]) -> bytes:
    return (json.dumps(data, indent=2, ensure_ascii=False, sort_keys=True) + "\n").encode("utf-8")


def atomic_write_bytes(path: str, payload: bytes, *, mode: Optional[int] = None) -> None:
    ensure_dirs(os.path.dirname(path) or ".")
    fd, tmp = tempfile.mkstemp(prefix=".tmp_", dir=os.path.dirname(path) or ".")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            os.chmod(tmp, mode)
        os.replace(tmp, path)
    finally:
        try:
            if os.path.exists(tmp):
                os.remove(tmp)
        except OSError:
            pass
