from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

from zprof.core.backup.verifier import snapshot_exists
from zprof.core.config.paths import ZprofPaths
from zprof.core.probes import NullProbe, SystemProbe

WRITE_TEST_FILENAME = ".zprof_write_test"


@dataclass(frozen=True)
class ValidationReport:
    installed: bool
    home_dir_valid: bool
    has_write_permissions: bool
    pre_install_snapshot_exists: bool
    active_sessions: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def is_valid(self) -> bool:
        # Snapshot presence and active sessions are advisory only.
        return self.installed and self.home_dir_valid and self.has_write_permissions

    def issues(self) -> List[str]:
        out: List[str] = []
        if not self.installed:
            out.append("zprof is not installed")
        if not self.home_dir_valid:
            out.append("Home directory is not valid or not accessible")
        if not self.has_write_permissions:
            out.append("No write permission to home directory")
        return out


def _can_write(directory: str) -> bool:
    probe = os.path.join(directory, WRITE_TEST_FILENAME)
    try:
        with open(probe, "w", encoding="utf-8") as f:
            f.write("test")
        os.remove(probe)
        return True
    except OSError:
        return False


def validate_preconditions(paths: ZprofPaths, *, probe: Optional[SystemProbe] = None) -> ValidationReport:
    probe = probe or NullProbe()
    home_ok = os.path.isdir(paths.home)
    has_snapshot = snapshot_exists(paths.pre_install_dir)
    sessions = probe.active_sessions()

    warnings: List[str] = []
    if not has_snapshot:
        warnings.append("No pre-install snapshot found; restoring the original configuration is not available")
    if sessions:
        warnings.append(f"{len(sessions)} zsh session(s) appear to be running; restart them after uninstalling")

    return ValidationReport(
        installed=paths.is_installed(),
        home_dir_valid=home_ok,
        has_write_permissions=home_ok and _can_write(paths.home),
        pre_install_snapshot_exists=has_snapshot,
        active_sessions=sessions,
        warnings=warnings,
    )
