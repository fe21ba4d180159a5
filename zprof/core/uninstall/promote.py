from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from typing import List

from zprof.core.errors import ProfileNotFoundError, normalize_os_error
from zprof.core.logger import get_logger

PROFILE_SHELL_FILES = (".zshrc", ".zshenv", ".zprofile", ".zlogin", ".zlogout")
HISTORY_FILE = ".zsh_history"


@dataclass(frozen=True)
class PromotionResult:
    profile: str
    copied: List[str]
    history_copied: bool


def promote_profile(home_dir: str, profiles_dir: str, name: str, *, logger=None) -> PromotionResult:  # noqa: ANN001
    """Copy a profile's shell files (and history) straight into `home_dir`, overwriting."""
    log = get_logger(logger)
    src_dir = os.path.join(profiles_dir, name)
    if not os.path.isdir(src_dir):
        raise ProfileNotFoundError(f"Profile '{name}' not found at {src_dir}", profile=name)

    log.info(f"Promoting profile '{name}' to root configuration")
    copied: List[str] = []
    history = False
    for fn in (*PROFILE_SHELL_FILES, HISTORY_FILE):
        src = os.path.join(src_dir, fn)
        if not os.path.isfile(src):
            continue
        dst = os.path.join(home_dir, fn)
        try:
            shutil.copy2(src, dst)
        except OSError as e:
            raise normalize_os_error(e, path=dst, action=f"promote profile '{name}' to") from e
        copied.append(fn)
        if fn == HISTORY_FILE:
            history = True
        log.info(f"Copied {fn}")
    return PromotionResult(profile=name, copied=copied, history_copied=history)
