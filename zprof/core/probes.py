from __future__ import annotations

import subprocess
import sys
from typing import List, Optional, Protocol, Sequence


class SystemProbe(Protocol):
    """Best-effort look at the host; never raises, degrades to "unknown" / none."""

    def shell_version(self) -> str: ...
    def active_sessions(self) -> List[str]: ...


class NullProbe:
    def shell_version(self) -> str:
        return "unknown"

    def active_sessions(self) -> List[str]:
        return []


def _run(cmd: Sequence[str]) -> Optional[str]:
    try:
        proc = subprocess.run(list(cmd), capture_output=True, text=True, check=False)
    except (OSError, subprocess.SubprocessError):
        return None
    if proc.returncode != 0:
        return None
    return proc.stdout


def _parse_pgrep(stdout: str) -> List[str]:
    shells: List[str] = []
    for line in stdout.splitlines():
        line = line.strip()
        if not line:
            continue
        parts = line.split(" ", 1)
        if len(parts) == 2:
            shells.append(f"PID {parts[0]} ({parts[1].strip()})")
        else:
            shells.append(line)
    return shells


class ProcessProbe:
    """
    Probes through short-lived child processes: `zsh --version` and `pgrep`.

    `pgrep_args` differs per platform (`-a` on Linux, `-fl` on macOS).
    """

    def __init__(self, *, shell: str = "zsh", pgrep_args: Sequence[str] = ("-a",)):
        self.shell = shell
        self.pgrep_args = tuple(pgrep_args)

    def shell_version(self) -> str:
        out = _run([self.shell, "--version"])
        return out.strip() if out and out.strip() else "unknown"

    def active_sessions(self) -> List[str]:
        out = _run(["pgrep", *self.pgrep_args, self.shell])
        if not out:
            return []
        return _parse_pgrep(out)


def default_probe(platform: Optional[str] = None) -> SystemProbe:
    plat = platform or sys.platform
    if plat.startswith("linux"):
        return ProcessProbe(pgrep_args=("-a",))
    if plat == "darwin":
        return ProcessProbe(pgrep_args=("-fl",))
    return NullProbe()
