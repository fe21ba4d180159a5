from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from zprof.core.backup.verifier import validate_snapshot
from zprof.core.cleanup import format_size, summarize
from zprof.core.config.paths import ZprofPaths
from zprof.core.errors import ManifestMissingError, ManifestUnreadableError
from zprof.core.uninstall.options import CleanRemoval, PromoteProfile, RestoreOption, RestoreOriginal, describe
from zprof.core.uninstall.promote import HISTORY_FILE, PROFILE_SHELL_FILES


@dataclass(frozen=True)
class UninstallSummary:
    option_label: str
    file_count: int
    history_entries: int
    snapshot_date: Optional[str]
    profile_count: int
    managed_size: int
    safety_snapshot: bool
    keep_backups: bool
    warnings: List[str]


def _count_lines(path: str) -> int:
    try:
        with open(path, "rb") as f:
            return sum(1 for line in f if line.strip())
    except OSError:
        return 0


def build_summary(
    paths: ZprofPaths,
    option: RestoreOption,
    *,
    safety_snapshot: bool,
    keep_backups: bool,
    warnings: Optional[List[str]] = None,
) -> UninstallSummary:
    files = 0
    history = 0
    snapshot_date: Optional[str] = None
    if isinstance(option, RestoreOriginal):
        try:
            manifest = validate_snapshot(paths.pre_install_dir)
            files = len(manifest.files)
            snapshot_date = manifest.created_at_iso()
            if manifest.file(HISTORY_FILE) is not None:
                history = _count_lines(os.path.join(paths.pre_install_dir, HISTORY_FILE))
        except (ManifestMissingError, ManifestUnreadableError):
            pass
    elif isinstance(option, PromoteProfile):
        if option.profile:
            src = os.path.join(paths.profiles_dir, option.profile)
            files = sum(1 for fn in (*PROFILE_SHELL_FILES, HISTORY_FILE) if os.path.isfile(os.path.join(src, fn)))
            history = _count_lines(os.path.join(src, HISTORY_FILE))
    elif not isinstance(option, CleanRemoval):
        raise TypeError(f"Unknown restore option: {option!r}")

    tree = summarize(paths.root)
    return UninstallSummary(
        option_label=describe(option),
        file_count=files,
        history_entries=history,
        snapshot_date=snapshot_date,
        profile_count=tree.profile_count,
        managed_size=tree.total_size,
        safety_snapshot=safety_snapshot,
        keep_backups=keep_backups,
        warnings=list(warnings or []),
    )


def format_summary(s: UninstallSummary) -> str:
    lines = ["Uninstall summary", "", f"Restoration: {s.option_label}"]
    if s.file_count:
        lines.append(f"  - {s.file_count} file(s) will be restored to your home directory")
    if s.history_entries:
        lines.append(f"  - {s.history_entries} history entries")
    if s.snapshot_date:
        lines.append(f"  - snapshot taken {s.snapshot_date}")
    lines.append("")
    lines.append(f"Cleanup: {s.profile_count} profile(s), {format_size(s.managed_size)} will be removed")
    if s.keep_backups:
        lines.append("  - backups/ will be kept")
    if s.safety_snapshot:
        lines.append("Safety: a final snapshot of the managed tree is taken first")
    else:
        lines.append("Safety: no final snapshot will be taken")
    for w in s.warnings:
        lines.append(f"Warning: {w}")
    return "\n".join(lines)
