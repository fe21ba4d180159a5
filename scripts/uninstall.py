from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from zprof.core.cleanup import format_size
from zprof.core.config.paths import ZprofPaths
from zprof.core.errors import ZprofError
from zprof.core.logger import setup_logging
from zprof.core.probes import default_probe
from zprof.core.prompts import TerminalPrompter, has_tty
from zprof.core.uninstall.options import OPTION_NAMES, describe, option_from_name
from zprof.core.uninstall.orchestrator import UninstallOrchestrator, UninstallRequest, UninstallResult, UninstallStatus


def _print_report(res: UninstallResult) -> None:
    print("")
    print(f"Uninstall complete: {describe(res.option)}" if res.option is not None else "Uninstall complete")
    if res.restore_outcome is not None:
        print(f"  restored: {len(res.restore_outcome.restored)} file(s)")
        if res.restore_outcome.skipped:
            print(f"  skipped: {', '.join(res.restore_outcome.skipped)}")
        for b in res.restore_outcome.conflict_backups:
            print(f"  previous file kept at {b}")
    if res.promotion is not None:
        print(f"  promoted '{res.promotion.profile}': {', '.join(res.promotion.copied) or 'no files'}")
    if res.safety is not None:
        print(f"  safety snapshot: {res.safety.path} ({format_size(res.safety.size_bytes)})")
    if res.cleanup is not None:
        print(f"  removed: {res.cleanup.total_removed()} path(s)")
        for p in res.cleanup.preserved:
            print(f"  kept: {p}")
        for f in res.cleanup.errors:
            print(f"  could not remove {f.path}: {f.error}")
    for w in res.warnings:
        print(f"Warning: {w}")


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="zprof uninstall")
    ap.add_argument("--yes", "-y", action="store_true", help="Do not prompt; requires --restore")
    ap.add_argument("--restore", choices=list(OPTION_NAMES), default=None)
    ap.add_argument("--profile", default=None, help="Profile to promote with --restore promote")
    ap.add_argument("--no-backup", action="store_true", help="Skip the final safety snapshot")
    ap.add_argument("--keep-backups", action="store_true", help="Keep the backups/ directory")
    ap.add_argument("--home", default=None)
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)
    if not args.yes and not has_tty():
        print("No terminal available for prompts; re-run with --yes and --restore.", file=sys.stderr)
        return 2

    logger = setup_logging(verbose=args.verbose)
    try:
        paths = ZprofPaths.for_home(args.home) if args.home else ZprofPaths.from_environment()
    except ZprofError as e:
        print(e.user_message, file=sys.stderr)
        return 2
    request = UninstallRequest(
        option=option_from_name(args.restore, args.profile) if args.restore else None,
        assume_yes=args.yes,
        create_safety_snapshot=not args.no_backup,
        keep_backups=args.keep_backups,
    )
    orch = UninstallOrchestrator(paths, prompter=TerminalPrompter(), probe=default_probe(), logger=logger)
    try:
        res = orch.run(request)
    except ZprofError as e:
        print(e.user_message, file=sys.stderr)
        return 2

    if res.status == UninstallStatus.NOT_INSTALLED:
        print("zprof is not installed; nothing to do.")
        return 0
    if res.status == UninstallStatus.CANCELLED:
        print("Uninstall cancelled; no changes were made.")
        return 1
    _print_report(res)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
