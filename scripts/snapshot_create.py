from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from zprof.core.backup.creator import create_snapshot, move_configs_to_backup
from zprof.core.config.paths import ZprofPaths
from zprof.core.errors import ZprofError
from zprof.core.logger import setup_logging
from zprof.core.probes import default_probe


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="zprof pre-install snapshot create")
    ap.add_argument("--home", default=None, help="Home directory to snapshot (defaults to $ZPROF_HOME / $HOME)")
    ap.add_argument("--move", action="store_true", help="Remove the snapshotted shell files from home afterwards")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    logger = setup_logging(verbose=args.verbose)
    try:
        paths = ZprofPaths.for_home(args.home) if args.home else ZprofPaths.from_environment()
        manifest = create_snapshot(paths.home, paths.pre_install_dir, probe=default_probe(), logger=logger)
        moved = move_configs_to_backup(paths.home, manifest.files, logger=logger) if args.move else 0
    except ZprofError as e:
        print(e.user_message, file=sys.stderr)
        return 2
    print(f"{paths.pre_install_dir} ({len(manifest.files)} file(s), taken {manifest.created_at_iso()})")
    if args.move:
        print(f"moved {moved} file(s) out of {paths.home}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
