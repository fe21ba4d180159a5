from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from zprof.core.backup.archiver import SafetySummary, create_safety_snapshot, safety_snapshot_name, verify_safety_snapshot
from zprof.core.backup.conflicts import ConflictResolver
from zprof.core.backup.restorer import RestorationEngine, RestoreOutcome
from zprof.core.cleanup import CleanupReport, cleanup
from zprof.core.config.io import load_settings
from zprof.core.config.paths import ZprofPaths
from zprof.core.errors import IoFailureError, OptionUnavailableError, PreconditionError, ProfileNotFoundError
from zprof.core.logger import get_logger
from zprof.core.probes import NullProbe, SystemProbe
from zprof.core.profiles import ProfileInfo, scan_profiles
from zprof.core.prompts import Prompter, TerminalPrompter
from zprof.core.uninstall.options import (
    CleanRemoval,
    PromoteProfile,
    RestoreOption,
    RestoreOriginal,
    available_options,
    describe,
)
from zprof.core.uninstall.preconditions import ValidationReport, validate_preconditions
from zprof.core.uninstall.promote import PromotionResult, promote_profile
from zprof.core.uninstall.summary import build_summary, format_summary


class UninstallStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NOT_INSTALLED = "not_installed"


@dataclass(frozen=True)
class UninstallRequest:
    option: Optional[RestoreOption] = None
    assume_yes: bool = False
    create_safety_snapshot: bool = True
    keep_backups: bool = False


@dataclass
class UninstallResult:
    status: UninstallStatus
    option: Optional[RestoreOption] = None
    validation: Optional[ValidationReport] = None
    restore_outcome: Optional[RestoreOutcome] = None
    promotion: Optional[PromotionResult] = None
    cleanup: Optional[CleanupReport] = None
    safety: Optional[SafetySummary] = None
    warnings: List[str] = field(default_factory=list)


class UninstallOrchestrator:
    """
    Drives one uninstall:
    validate -> select option -> confirm -> safety snapshot -> restore -> cleanup.

    Nothing on disk changes before the confirmation is accepted.
    """

    def __init__(
        self,
        paths: ZprofPaths,
        *,
        prompter: Optional[Prompter] = None,
        probe: Optional[SystemProbe] = None,
        logger=None,  # noqa: ANN001
    ):
        self.paths = paths
        self.prompter = prompter or TerminalPrompter()
        self.probe = probe or NullProbe()
        self.logger = get_logger(logger)

    def run(self, request: UninstallRequest) -> UninstallResult:
        interactive = not request.assume_yes

        report = validate_preconditions(self.paths, probe=self.probe)
        if not report.installed:
            self.logger.info("zprof is not installed, nothing to uninstall")
            return UninstallResult(status=UninstallStatus.NOT_INSTALLED, validation=report)
        if not report.is_valid():
            raise PreconditionError(report.issues())
        for w in report.warnings:
            self.logger.warning(w)

        settings = load_settings(self.paths.settings_file, logger=self.logger)
        profiles = scan_profiles(self.paths.profiles_dir, settings.active_profile, logger=self.logger)

        option = self._select(request.option, report, profiles, interactive)
        if option is None:
            self.logger.info("Uninstall cancelled")
            return UninstallResult(status=UninstallStatus.CANCELLED, validation=report)
        if isinstance(option, PromoteProfile) and not option.profile:
            raise OptionUnavailableError("A profile name is required to promote a profile")

        if interactive:
            summary = build_summary(
                self.paths,
                option,
                safety_snapshot=request.create_safety_snapshot,
                keep_backups=request.keep_backups,
                warnings=report.warnings,
            )
            if not self.prompter.confirm(format_summary(summary) + "\n\nContinue with uninstall?", default=False):
                self.logger.info("Uninstall cancelled")
                return UninstallResult(status=UninstallStatus.CANCELLED, option=option, validation=report)

        result = UninstallResult(status=UninstallStatus.COMPLETED, option=option, validation=report, warnings=list(report.warnings))

        if request.create_safety_snapshot:
            result.safety = self._safety_snapshot(request.keep_backups)

        if isinstance(option, RestoreOriginal):
            engine = RestorationEngine(
                resolver=ConflictResolver(self.prompter if interactive else None, logger=self.logger),
                logger=self.logger,
            )
            result.restore_outcome = engine.restore(self.paths.home, self.paths.pre_install_dir, interactive=interactive)
            if result.restore_outcome.missing:
                result.warnings.append(f"{len(result.restore_outcome.missing)} file(s) were missing from the snapshot")
            if result.restore_outcome.checksum_warnings:
                result.warnings.append(
                    "Checksum mismatch (possible corruption): " + ", ".join(result.restore_outcome.checksum_warnings)
                )
        elif isinstance(option, PromoteProfile):
            result.promotion = promote_profile(self.paths.home, self.paths.profiles_dir, option.profile, logger=self.logger)
        elif isinstance(option, CleanRemoval):
            self.logger.info("Skipping restoration (clean removal)")
        else:
            raise TypeError(f"Unknown restore option: {option!r}")

        result.cleanup = cleanup(self.paths.root, self.paths.home, request.keep_backups, logger=self.logger)
        if not result.cleanup.is_successful():
            result.warnings.append(
                f"{len(result.cleanup.errors)} path(s) could not be removed; manual removal may be required"
            )
        self.logger.info(f"Uninstall complete ({describe(option)})")
        return result

    def _select(
        self,
        requested: Optional[RestoreOption],
        report: ValidationReport,
        profiles: Sequence[ProfileInfo],
        interactive: bool,
    ) -> Optional[RestoreOption]:
        """Returns None when the user cancels."""
        option = requested
        if option is None:
            if not interactive:
                raise OptionUnavailableError("No restoration option was given; choose one of: original, promote, clean")
            choices = available_options(report, profiles)
            idx = self.prompter.choose(
                "How would you like to restore your shell configuration?",
                [describe(o) for o in choices] + ["Cancel"],
                default=0,
            )
            if idx is None or idx >= len(choices):
                return None
            option = choices[idx]

        if isinstance(option, RestoreOriginal):
            if not report.pre_install_snapshot_exists:
                raise OptionUnavailableError(
                    f"No pre-install snapshot found at {self.paths.pre_install_dir}; cannot restore the original configuration"
                )
            return option
        if isinstance(option, PromoteProfile):
            if not profiles:
                raise OptionUnavailableError("No profiles are available to promote")
            names = [p.name for p in profiles]
            if option.profile is None:
                if not interactive:
                    raise OptionUnavailableError("A profile name is required to promote a profile")
                idx = self.prompter.choose(
                    "Select profile to promote:",
                    [f"{p.name} ({p.framework}){' [active]' if p.is_active else ''}" for p in profiles],
                    default=next((i for i, p in enumerate(profiles) if p.is_active), 0),
                )
                if idx is None:
                    return None
                return PromoteProfile(profile=names[idx])
            if option.profile not in names:
                raise ProfileNotFoundError(f"Profile '{option.profile}' not found", profile=option.profile)
            return option
        if isinstance(option, CleanRemoval):
            return option
        raise TypeError(f"Unknown restore option: {option!r}")

    def _safety_snapshot(self, keep_backups: bool) -> SafetySummary:
        # Cleanup removes everything outside backups/, so without kept backups the archive lives in home.
        out_dir = self.paths.backups_dir if keep_backups else self.paths.home
        out_path = os.path.join(out_dir, safety_snapshot_name())
        self.logger.info(f"Creating safety snapshot at {out_path}")
        summary = create_safety_snapshot(self.paths.root, out_path)
        vr = verify_safety_snapshot(summary.path)
        if not vr.ok:
            raise IoFailureError(
                f"Safety snapshot at {summary.path} failed verification: " + "; ".join(vr.errors[:10]),
                path=summary.path,
            )
        self.logger.info(f"Safety snapshot created: {summary.file_count} file(s), {summary.size_bytes} bytes")
        return summary
