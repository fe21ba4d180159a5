from __future__ import annotations

import re
import time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from zprof import __version__

_HEX64 = re.compile(r"^[0-9a-f]{64}$")


class EnvironmentInfo(BaseModel):
    """Informational only; never validated against the current host."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    shell_version: str = "unknown"
    os: str = ""
    tool_version: str = __version__


class DetectedFramework(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    install_path: str
    config_files: List[str] = Field(default_factory=list)


class BackedUpFile(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    relative_path: str
    size_bytes: int = Field(default=0, ge=0)
    checksum: str
    permissions: int = Field(default=0o644, ge=0)

    @field_validator("relative_path")
    @classmethod
    def _relative_inside_home(cls, v: str) -> str:
        norm = v.replace("\\", "/")
        if not norm or norm.startswith("/") or ".." in norm.split("/"):
            raise ValueError(f"relative_path must stay inside the home directory: {v!r}")
        return norm

    @field_validator("checksum")
    @classmethod
    def _lower_hex(cls, v: str) -> str:
        if not _HEX64.match(v):
            raise ValueError("checksum must be a lowercase hex SHA-256 digest")
        return v


class SnapshotManifest(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    manifest_version: int = Field(default=1, ge=1)
    created_at: float = Field(default_factory=lambda: time.time())
    environment: EnvironmentInfo = Field(default_factory=EnvironmentInfo)
    detected_framework: Optional[DetectedFramework] = None
    files: List[BackedUpFile] = Field(default_factory=list)

    @field_validator("files")
    @classmethod
    def _unique_paths(cls, v: List[BackedUpFile]) -> List[BackedUpFile]:
        seen = set()
        for f in v:
            if f.relative_path in seen:
                raise ValueError(f"duplicate relative_path in manifest: {f.relative_path}")
            seen.add(f.relative_path)
        return v

    def created_at_iso(self) -> str:
        return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(self.created_at))

    def file(self, relative_path: str) -> Optional[BackedUpFile]:
        for f in self.files:
            if f.relative_path == relative_path:
                return f
        return None
