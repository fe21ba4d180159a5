from __future__ import annotations

import os
import platform
import shutil
import stat
from typing import List, Optional, Sequence

from zprof import __version__
from zprof.core.backup.hasher import sha256_bytes, sha256_file
from zprof.core.backup.models import BackedUpFile, EnvironmentInfo, SnapshotManifest
from zprof.core.backup.verifier import MANIFEST_DIGEST_FILENAME, manifest_path, snapshot_exists, validate_snapshot
from zprof.core.config.io import atomic_write_bytes, dump_json_bytes
from zprof.core.errors import normalize_os_error
from zprof.core.frameworks import detect_framework
from zprof.core.logger import get_logger
from zprof.core.probes import NullProbe, SystemProbe

SHELL_CONFIG_FILES = (
    ".zshrc",
    ".zshenv",
    ".zprofile",
    ".zlogin",
    ".zlogout",
    ".zsh_history",
)


def _permissions(path: str) -> int:
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except OSError:
        return 0o644


def _make_private_dir(path: str) -> None:
    os.makedirs(path, mode=0o700, exist_ok=True)
    os.chmod(path, 0o700)


def create_snapshot(
    source_dir: str,
    snapshot_dir: str,
    *,
    probe: Optional[SystemProbe] = None,
    logger=None,  # noqa: ANN001
) -> SnapshotManifest:
    """
    Take the one-time pre-install snapshot of the shell files in `source_dir`.

    - an existing manifest makes this a no-op that returns it
    - payload files are copied first; the manifest is written last and its
      presence is what makes the snapshot discoverable
    """
    log = get_logger(logger)
    if snapshot_exists(snapshot_dir):
        log.info(f"Pre-install snapshot already exists at {snapshot_dir}, skipping creation")
        return validate_snapshot(snapshot_dir)

    log.info(f"Creating pre-install snapshot at {snapshot_dir}")
    try:
        _make_private_dir(snapshot_dir)
    except OSError as e:
        raise normalize_os_error(e, path=snapshot_dir, action="create snapshot directory") from e

    probe = probe or NullProbe()
    framework = detect_framework(source_dir, logger=log)
    if framework is not None:
        log.info(f"Detected {framework.name} framework")
    else:
        log.info("No existing framework detected")

    entries: List[BackedUpFile] = []
    for name in SHELL_CONFIG_FILES:
        src = os.path.join(source_dir, name)
        if not os.path.isfile(src):
            log.info(f"Skipping {name} (does not exist)")
            continue
        dst = os.path.join(snapshot_dir, name)
        try:
            shutil.copy2(src, dst)
            entries.append(
                BackedUpFile(
                    relative_path=name,
                    size_bytes=os.path.getsize(dst),
                    checksum=sha256_file(dst),
                    permissions=_permissions(src),
                )
            )
        except OSError as e:
            raise normalize_os_error(e, path=src, action="back up") from e
        log.info(f"Backed up {name}")

    manifest = SnapshotManifest(
        environment=EnvironmentInfo(
            shell_version=probe.shell_version(),
            os=platform.system(),
            tool_version=__version__,
        ),
        detected_framework=framework,
        files=entries,
    )
    payload = dump_json_bytes(manifest.model_dump(mode="json"))
    target = manifest_path(snapshot_dir)
    try:
        atomic_write_bytes(os.path.join(snapshot_dir, MANIFEST_DIGEST_FILENAME), (sha256_bytes(payload) + "\n").encode("utf-8"), mode=0o600)
        atomic_write_bytes(target, payload, mode=0o600)
    except OSError as e:
        raise normalize_os_error(e, path=target, action="write snapshot manifest") from e

    log.info(f"Pre-install snapshot complete: {len(entries)} file(s) backed up")
    return manifest


def move_configs_to_backup(home_dir: str, files: Sequence[BackedUpFile], *, logger=None) -> int:  # noqa: ANN001
    """
    Remove the snapshotted shell files from `home_dir` once the snapshot holds them.

    Symlinks are unlinked without touching their targets. Read-only files get
    owner write permission first. Returns how many entries were removed.
    """
    log = get_logger(logger)
    moved = 0
    for entry in files:
        path = os.path.join(home_dir, entry.relative_path)
        if not os.path.lexists(path):
            log.info(f"Skipping {entry.relative_path} (no longer exists in HOME)")
            continue
        try:
            if not os.path.islink(path):
                mode = stat.S_IMODE(os.stat(path).st_mode)
                if not mode & stat.S_IWUSR:
                    os.chmod(path, mode | stat.S_IWUSR)
                    log.info(f"Made {entry.relative_path} writable for removal")
            os.remove(path)
        except OSError as e:
            raise normalize_os_error(e, path=path, action="remove after backup") from e
        log.info(f"Moved {entry.relative_path} to backup (removed from HOME)")
        moved += 1
    return moved
