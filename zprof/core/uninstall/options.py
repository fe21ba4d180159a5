from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from zprof.core.profiles import ProfileInfo
from zprof.core.uninstall.preconditions import ValidationReport


@dataclass(frozen=True)
class RestoreOriginal:
    """Put back the pre-install snapshot."""


@dataclass(frozen=True)
class PromoteProfile:
    """Copy one profile's files into the home directory. `profile=None` means ask."""

    profile: Optional[str] = None


@dataclass(frozen=True)
class CleanRemoval:
    """Remove zprof without restoring anything."""


RestoreOption = Union[RestoreOriginal, PromoteProfile, CleanRemoval]

OPTION_NAMES = ("original", "promote", "clean")


def describe(option: RestoreOption) -> str:
    if isinstance(option, RestoreOriginal):
        return "Restore Original (pre-install snapshot)"
    if isinstance(option, PromoteProfile):
        return f"Promote Profile ({option.profile})" if option.profile else "Promote Profile"
    if isinstance(option, CleanRemoval):
        return "Clean Removal (no restoration)"
    raise TypeError(f"Unknown restore option: {option!r}")


def option_from_name(name: str, profile: Optional[str] = None) -> RestoreOption:
    if name == "original":
        return RestoreOriginal()
    if name == "promote":
        return PromoteProfile(profile=profile)
    if name == "clean":
        return CleanRemoval()
    raise ValueError(f"Unknown restore option '{name}', expected one of: {', '.join(OPTION_NAMES)}")


def available_options(report: ValidationReport, profiles: Sequence[ProfileInfo]) -> List[RestoreOption]:
    out: List[RestoreOption] = []
    if report.pre_install_snapshot_exists:
        out.append(RestoreOriginal())
    if profiles:
        out.append(PromoteProfile())
    out.append(CleanRemoval())
    return out
