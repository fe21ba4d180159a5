from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from zprof.core.backup.conflicts import (
    CONFLICT_BACKUP_SUFFIX,
    ConflictResolution,
    ConflictResolver,
    conflict_backup_path,
    rollback_stash_path,
    unused_path,
)
from zprof.core.backup.rollback import rollback
from zprof.core.backup.verifier import validate_snapshot, verify_checksum
from zprof.core.errors import (
    ChecksumMismatchError,
    FileMissingError,
    RestorationFailedError,
    RollbackFailureError,
    ZprofError,
    normalize_os_error,
)
from zprof.core.logger import get_logger


@dataclass
class RestoreJournal:
    """Everything needed to undo the run so far, in the order it happened."""

    restored_files: List[str] = field(default_factory=list)
    backed_up_conflicts: List[Tuple[str, str]] = field(default_factory=list)
    stashes: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RestoreOutcome:
    snapshot_dir: str
    created_at: float
    restored: List[str]
    skipped: List[str]
    missing: List[str]
    conflict_backups: List[str]
    checksum_warnings: List[str]


def manual_recovery_guidance(snapshot_dir: str, home_dir: str) -> str:
    return (
        "Automatic rollback did not complete. Your original files are still intact in the "
        f"pre-install snapshot at {snapshot_dir}.\n"
        f"Files that were in the way were saved next to their originals in {home_dir} with the "
        f"suffix '{CONFLICT_BACKUP_SUFFIX}'.\n"
        "To recover by hand, copy the files from the snapshot directory back into your home "
        f"directory, or rename the '{CONFLICT_BACKUP_SUFFIX}' files back to their original names."
    )


class RestorationEngine:
    def __init__(self, resolver: Optional[ConflictResolver] = None, logger=None):  # noqa: ANN001
        self.logger = get_logger(logger)
        self.resolver = resolver or ConflictResolver(logger=self.logger)

    def restore(self, home_dir: str, snapshot_dir: str, *, interactive: bool = False) -> RestoreOutcome:
        """
        Replay the pre-install snapshot into `home_dir`, in manifest order.

        Missing payloads and checksum mismatches are warnings. Any other I/O
        failure rolls back everything this call wrote and raises
        RestorationFailedError.
        """
        manifest = validate_snapshot(snapshot_dir)
        self.logger.info(f"Restoring {len(manifest.files)} file(s) from snapshot taken {manifest.created_at_iso()}")

        journal = RestoreJournal()
        skipped: List[str] = []
        missing: List[str] = []
        conflict_backups: List[str] = []
        checksum_warnings: List[str] = []

        for entry in manifest.files:
            payload = os.path.join(snapshot_dir, entry.relative_path)
            dest = os.path.join(home_dir, entry.relative_path)
            try:
                if not os.path.isfile(payload):
                    self.logger.warning(f"Backup file {entry.relative_path} is missing from the snapshot, skipping")
                    missing.append(entry.relative_path)
                    continue

                if os.path.exists(dest):
                    resolution = self.resolver.resolve(dest, interactive)
                    if resolution == ConflictResolution.SKIP:
                        self.logger.info(f"Skipped {entry.relative_path}")
                        skipped.append(entry.relative_path)
                        continue
                    if resolution == ConflictResolution.BACKUP_THEN_OVERWRITE:
                        backup = unused_path(conflict_backup_path(dest))
                        self._move_aside(dest, backup, journal)
                        conflict_backups.append(backup)
                        self.logger.info(f"Backed up existing {entry.relative_path} to {os.path.basename(backup)}")
                    else:
                        journal.stashes.append(self._move_aside(dest, unused_path(rollback_stash_path(dest)), journal))
                elif os.path.islink(dest):
                    self.logger.info(f"Replacing dangling symlink {entry.relative_path}")
                    journal.stashes.append(self._move_aside(dest, unused_path(rollback_stash_path(dest)), journal))

                os.makedirs(os.path.dirname(dest) or ".", exist_ok=True)
                journal.restored_files.append(dest)
                shutil.copyfile(payload, dest)
                os.chmod(dest, entry.permissions)

                try:
                    verify_checksum(dest, entry.checksum)
                except ChecksumMismatchError as e:
                    self.logger.warning(f"{e.user_message} (file may be corrupted)")
                    checksum_warnings.append(entry.relative_path)

                self.logger.info(f"Restored {entry.relative_path}")
            except OSError as e:
                self._fail(journal, normalize_os_error(e, path=dest, action="restore"), snapshot_dir, home_dir)
            except FileMissingError as e:
                self._fail(journal, e, snapshot_dir, home_dir)

        self._discard_stashes(journal)
        self.logger.info(f"Restored {len(journal.restored_files)} file(s) from pre-install snapshot")
        return RestoreOutcome(
            snapshot_dir=snapshot_dir,
            created_at=manifest.created_at,
            restored=[os.path.relpath(p, home_dir) for p in journal.restored_files],
            skipped=skipped,
            missing=missing,
            conflict_backups=conflict_backups,
            checksum_warnings=checksum_warnings,
        )

    def _fail(self, journal: RestoreJournal, err: ZprofError, snapshot_dir: str, home_dir: str) -> None:
        self.logger.error(f"Restoration failed: {err.user_message}")
        try:
            rollback(journal.restored_files, journal.backed_up_conflicts, logger=self.logger)
        except RollbackFailureError as rb:
            raise RestorationFailedError(
                f"Restoration failed: {err.user_message}\n{rb.user_message}\n\n"
                + manual_recovery_guidance(snapshot_dir, home_dir),
                rolled_back=False,
                cause=err,
                rollback_failures=list(rb.failures),
            ) from err
        raise RestorationFailedError(
            f"Restoration failed and all changes were rolled back: {err.user_message}",
            rolled_back=True,
            cause=err,
        ) from err

    def _move_aside(self, dest: str, aside: str, journal: RestoreJournal) -> str:
        """
        Rename `dest` (file or symlink, never its target) to the unused path `aside`.

        The rename is atomic, so journaling it first never points rollback at a partial copy.
        """
        journal.backed_up_conflicts.append((dest, aside))
        os.rename(dest, aside)
        return aside

    def _discard_stashes(self, journal: RestoreJournal) -> None:
        for stash in journal.stashes:
            try:
                os.remove(stash)
            except FileNotFoundError:
                continue
            except OSError as e:
                self.logger.warning(f"Could not remove temporary file {stash}: {e}")


def restore(
    home_dir: str,
    snapshot_dir: str,
    *,
    interactive: bool = False,
    resolver: Optional[ConflictResolver] = None,
    logger=None,  # noqa: ANN001
) -> RestoreOutcome:
    return RestorationEngine(resolver=resolver, logger=logger).restore(home_dir, snapshot_dir, interactive=interactive)
