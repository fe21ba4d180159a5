from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

from zprof.core.backup.models import DetectedFramework
from zprof.core.logger import get_logger

MAX_CONFIG_BYTES = 1_048_576


@dataclass(frozen=True)
class FrameworkSignature:
    name: str
    install_dirs: Tuple[str, ...]
    config_file: str
    # Substrings of which at least one must appear in the config file; empty = presence is enough.
    markers: Tuple[str, ...] = ()


SIGNATURES: Tuple[FrameworkSignature, ...] = (
    FrameworkSignature("oh-my-zsh", (".oh-my-zsh",), ".zshrc", ("oh-my-zsh.sh",)),
    FrameworkSignature("zimfw", (".zim", ".zimfw"), ".zimrc"),
    FrameworkSignature("prezto", (".zprezto",), ".zpreztorc"),
    FrameworkSignature("zinit", (".zinit", ".local/share/zinit"), ".zshrc", ("zinit",)),
    FrameworkSignature("zap", (".local/share/zap",), ".zshrc", ("zap",)),
)


def _read_config(path: str, *, logger) -> Optional[str]:  # noqa: ANN001
    try:
        if os.path.getsize(path) > MAX_CONFIG_BYTES:
            logger.warning(f"Config file too large, ignoring for framework detection: {path}")
            return None
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return f.read()
    except OSError as e:
        logger.warning(f"Could not read {path}: {e}")
        return None


def _match(home_dir: str, sig: FrameworkSignature, *, logger) -> Optional[DetectedFramework]:  # noqa: ANN001
    install = next((os.path.join(home_dir, d) for d in sig.install_dirs if os.path.isdir(os.path.join(home_dir, d))), None)
    if install is None:
        return None
    config = os.path.join(home_dir, sig.config_file)
    if not os.path.isfile(config):
        return None
    if sig.markers:
        content = _read_config(config, logger=logger)
        if content is None or not any(m in content for m in sig.markers):
            return None
    return DetectedFramework(name=sig.name, install_path=install, config_files=[sig.config_file])


def detect_framework(home_dir: str, *, logger=None) -> Optional[DetectedFramework]:  # noqa: ANN001
    """
    Return the framework installed under `home_dir`, if any.

    When several are present the one whose config file was modified last wins.
    """
    log = get_logger(logger)
    found: List[DetectedFramework] = []
    for sig in SIGNATURES:
        hit = _match(home_dir, sig, logger=log)
        if hit is not None:
            found.append(hit)
    if not found:
        return None

    def _mtime(fw: DetectedFramework) -> float:
        try:
            return os.path.getmtime(os.path.join(home_dir, fw.config_files[0]))
        except OSError:
            return 0.0

    return max(found, key=_mtime)
