from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from typing import List

from zprof.core.logger import get_logger

MANAGED_SUBDIRS = ("profiles", "shared", "cache")
BACKUPS_SUBDIR = "backups"
SETTINGS_FILENAME = "config.toml"
ZSHENV_MARKER = "ZDOTDIR"


@dataclass(frozen=True)
class CleanupFailure:
    path: str
    error: str


@dataclass
class CleanupReport:
    removed_files: List[str] = field(default_factory=list)
    removed_dirs: List[str] = field(default_factory=list)
    preserved: List[str] = field(default_factory=list)
    errors: List[CleanupFailure] = field(default_factory=list)

    def is_successful(self) -> bool:
        return len(self.errors) == 0

    def total_removed(self) -> int:
        return len(self.removed_files) + len(self.removed_dirs)


@dataclass(frozen=True)
class CleanupSummary:
    profile_count: int
    total_size: int
    directories: List[str]


def remove_generated_zshenv(home_dir: str, root_name: str, report: CleanupReport, *, logger=None) -> None:  # noqa: ANN001
    """Delete ~/.zshenv only when it is the one we generated (it points ZDOTDIR into the managed tree)."""
    log = get_logger(logger)
    path = os.path.join(home_dir, ".zshenv")
    if not os.path.exists(path):
        return
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            content = f.read()
    except OSError as e:
        report.errors.append(CleanupFailure(path=path, error=f"Failed to read: {e}"))
        return
    if ZSHENV_MARKER in content and root_name in content:
        try:
            os.remove(path)
            report.removed_files.append(path)
            log.info(f"Removed generated {path}")
        except OSError as e:
            report.errors.append(CleanupFailure(path=path, error=str(e)))
    else:
        report.preserved.append(path)
        log.info(f"{path} was not generated by zprof, leaving it in place")


def _remove_dir(path: str, report: CleanupReport, log) -> None:  # noqa: ANN001
    if not os.path.isdir(path):
        return
    try:
        shutil.rmtree(path)
        report.removed_dirs.append(path)
        log.info(f"Removed {path}")
    except OSError as e:
        report.errors.append(CleanupFailure(path=path, error=str(e)))
        log.warning(f"Could not remove {path}: {e}")


def cleanup(profiles_dir: str, home_dir: str, keep_backups: bool, *, logger=None) -> CleanupReport:  # noqa: ANN001
    """
    Remove the managed tree rooted at `profiles_dir` (e.g. ~/.zsh-profiles).

    Each removal is attempted independently; failures land in `report.errors`
    and never stop the remaining removals.
    """
    log = get_logger(logger)
    report = CleanupReport()
    remove_generated_zshenv(home_dir, os.path.basename(os.path.normpath(profiles_dir)), report, logger=log)

    if not keep_backups:
        _remove_dir(profiles_dir, report, log)
        return report

    for name in MANAGED_SUBDIRS:
        _remove_dir(os.path.join(profiles_dir, name), report, log)

    settings = os.path.join(profiles_dir, SETTINGS_FILENAME)
    if os.path.isfile(settings):
        try:
            os.remove(settings)
            report.removed_files.append(settings)
            log.info(f"Removed {settings}")
        except OSError as e:
            report.errors.append(CleanupFailure(path=settings, error=str(e)))
            log.warning(f"Could not remove {settings}: {e}")

    backups = os.path.join(profiles_dir, BACKUPS_SUBDIR)
    if os.path.isdir(backups):
        report.preserved.append(backups)
    return report


def _tree_size(path: str) -> int:
    total = 0
    for dirpath, _dirnames, filenames in os.walk(path):
        for fn in filenames:
            try:
                total += os.path.getsize(os.path.join(dirpath, fn))
            except OSError:
                continue
    return total


def summarize(profiles_dir: str) -> CleanupSummary:
    """What cleanup would remove; shown on the confirmation screen."""
    profiles = os.path.join(profiles_dir, "profiles")
    count = 0
    if os.path.isdir(profiles):
        count = sum(1 for e in os.listdir(profiles) if os.path.isdir(os.path.join(profiles, e)))
    dirs = [d for d in (*MANAGED_SUBDIRS, BACKUPS_SUBDIR) if os.path.isdir(os.path.join(profiles_dir, d))]
    return CleanupSummary(profile_count=count, total_size=_tree_size(profiles_dir) if os.path.isdir(profiles_dir) else 0, directories=dirs)


def format_size(num_bytes: int) -> str:
    size = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{int(size)} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"
