from __future__ import annotations

import os
from enum import Enum
from typing import Optional

from zprof.core.logger import get_logger
from zprof.core.prompts import Prompter

CONFLICT_BACKUP_SUFFIX = ".zprofbackup"
ROLLBACK_STASH_SUFFIX = ".zprofrollback"


class ConflictResolution(str, Enum):
    OVERWRITE = "overwrite"
    BACKUP_THEN_OVERWRITE = "backup_then_overwrite"
    SKIP = "skip"


# Order matters: index 0 is the safe default.
_CHOICES = (
    ("Backup existing file and restore", ConflictResolution.BACKUP_THEN_OVERWRITE),
    ("Overwrite existing file", ConflictResolution.OVERWRITE),
    ("Skip this file", ConflictResolution.SKIP),
)


def conflict_backup_path(destination: str) -> str:
    return destination + CONFLICT_BACKUP_SUFFIX


def rollback_stash_path(destination: str) -> str:
    return destination + ROLLBACK_STASH_SUFFIX


def unused_path(path: str) -> str:
    """`path` itself if nothing is there (not even a dangling link), else `path.1`, `path.2`, ..."""
    if not os.path.lexists(path):
        return path
    n = 1
    while os.path.lexists(f"{path}.{n}"):
        n += 1
    return f"{path}.{n}"


class ConflictResolver:
    """
    Decides what happens to a destination file that already exists.

    Without a prompter (or when not interactive) the answer is always the
    non-destructive BACKUP_THEN_OVERWRITE.
    """

    def __init__(self, prompter: Optional[Prompter] = None, logger=None):  # noqa: ANN001
        self.prompter = prompter
        self.logger = get_logger(logger)

    def resolve(self, destination_path: str, interactive: bool) -> ConflictResolution:
        # A dangling symlink is not a conflict; the restorer moves it aside on its own.
        if not os.path.exists(destination_path):
            return ConflictResolution.OVERWRITE
        if not interactive or self.prompter is None:
            return ConflictResolution.BACKUP_THEN_OVERWRITE

        name = os.path.basename(destination_path)
        idx = self.prompter.choose(
            f"File {name} already exists. What would you like to do?",
            [label for label, _ in _CHOICES],
            default=0,
        )
        if idx is None or not (0 <= idx < len(_CHOICES)):
            self.logger.warning(f"No valid choice for {name}; backing up existing file before restoring")
            return ConflictResolution.BACKUP_THEN_OVERWRITE
        return _CHOICES[idx][1]
