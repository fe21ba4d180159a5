from __future__ import annotations

import argparse
from typing import List, Optional

from zprof.core.backup.archiver import verify_safety_snapshot
from zprof.core.backup.verifier import verify_snapshot
from zprof.core.config.paths import ZprofPaths


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="zprof snapshot verify")
    ap.add_argument("path", nargs="?", default=None, help="Snapshot directory or final-snapshot-*.zip (defaults to the pre-install snapshot)")
    args = ap.parse_args(argv)

    path = args.path or ZprofPaths.from_environment().pre_install_dir
    res = verify_safety_snapshot(path) if path.endswith(".zip") else verify_snapshot(path)
    print(f"{path}: {'ok' if res.ok else 'FAILED'} ({res.checked_files} file(s) checked)")
    for err in res.errors:
        print(f"  - {err}")
    return 0 if res.ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
