from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from zprof.core.errors import RollbackFailureError
from zprof.core.logger import get_logger


@dataclass(frozen=True)
class RollbackResult:
    removed: List[str]
    reinstated: List[str]


def rollback(
    restored_files: Sequence[str],
    backed_up_conflicts: Sequence[Tuple[str, str]],
    *,
    logger=None,  # noqa: ANN001
) -> RollbackResult:
    """
    Undo a partially applied restoration.

    Every step is attempted even after a failure; failures are collected and
    raised together as RollbackFailureError at the end.
    """
    log = get_logger(logger)
    log.warning("Rolling back restoration...")
    failures: List[str] = []
    removed: List[str] = []
    reinstated: List[str] = []

    for path in restored_files:
        if not os.path.lexists(path):
            continue
        try:
            os.remove(path)
            removed.append(path)
            log.info(f"Removed restored file {path}")
        except OSError as e:
            failures.append(f"Failed to remove {path}: {e}")

    for original, backup in backed_up_conflicts:
        if not os.path.lexists(backup):
            continue
        try:
            os.replace(backup, original)
            reinstated.append(original)
            log.info(f"Restored {original} from {backup}")
        except OSError as e:
            failures.append(f"Failed to restore {original} from {backup}: {e}")

    if failures:
        for f in failures:
            log.error(f)
        raise RollbackFailureError(failures)
    log.info("Rollback complete")
    return RollbackResult(removed=removed, reinstated=reinstated)
