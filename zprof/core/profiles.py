from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from pydantic import ValidationError

from zprof.core.config.io import read_toml_file
from zprof.core.config.models import ProfileManifest
from zprof.core.logger import get_logger

PROFILE_MANIFEST = "profile.toml"


@dataclass(frozen=True)
class ProfileInfo:
    name: str
    path: str
    framework: str
    is_active: bool = False


def scan_profiles(profiles_dir: str, active_profile: Optional[str] = None, *, logger=None) -> List[ProfileInfo]:  # noqa: ANN001
    log = get_logger(logger)
    if not os.path.isdir(profiles_dir):
        return []
    out: List[ProfileInfo] = []
    for entry in sorted(os.listdir(profiles_dir)):
        path = os.path.join(profiles_dir, entry)
        if not os.path.isdir(path):
            continue
        rr = read_toml_file(os.path.join(path, PROFILE_MANIFEST))
        if not rr.ok:
            log.warning(f"Profile '{entry}' has no readable {PROFILE_MANIFEST} ({rr.error}), skipping")
            continue
        try:
            manifest = ProfileManifest.model_validate(rr.data)
        except ValidationError:
            log.warning(f"Profile '{entry}' has an invalid {PROFILE_MANIFEST}, skipping")
            continue
        out.append(ProfileInfo(name=entry, path=path, framework=manifest.profile.framework, is_active=(active_profile == entry)))
    return out
