from __future__ import annotations

import hashlib
import json
import os
import stat

import pytest

from zprof.core.backup import creator
from zprof.core.backup.creator import create_snapshot, move_configs_to_backup
from zprof.core.backup.verifier import MANIFEST_FILENAME, snapshot_exists, validate_snapshot
from zprof.core.errors import IoFailureError, ManifestUnreadableError

from .helpers.fakes import FakeProbe, RecordingLogger
from .helpers.fs import read_file, write_file


def test_snapshot_records_existing_shell_files(paths):
    write_file(os.path.join(paths.home, ".zshrc"), "export PATH=/a")
    write_file(os.path.join(paths.home, ".zprofile"), "# login\n")
    m = create_snapshot(paths.home, paths.pre_install_dir, probe=FakeProbe(), logger=RecordingLogger())

    assert [f.relative_path for f in m.files] == [".zshrc", ".zprofile"]
    zshrc = m.file(".zshrc")
    assert zshrc is not None
    assert zshrc.checksum == hashlib.sha256(b"export PATH=/a").hexdigest()
    assert zshrc.size_bytes == len("export PATH=/a")
    assert read_file(os.path.join(paths.pre_install_dir, ".zshrc")) == "export PATH=/a"
    assert m.environment.shell_version.startswith("zsh 5.9")
    assert snapshot_exists(paths.pre_install_dir)


def test_missing_files_are_skipped(paths):
    m = create_snapshot(paths.home, paths.pre_install_dir)
    assert m.files == []
    assert m.detected_framework is None
    assert os.path.isfile(os.path.join(paths.pre_install_dir, MANIFEST_FILENAME))


def test_second_call_is_a_noop(paths):
    rc = write_file(os.path.join(paths.home, ".zshrc"), "export PATH=/a")
    first = create_snapshot(paths.home, paths.pre_install_dir)
    write_file(rc, "export PATH=/b")
    write_file(os.path.join(paths.home, ".zlogin"), "echo hi\n")
    second = create_snapshot(paths.home, paths.pre_install_dir)

    assert second.created_at == first.created_at
    assert second.files == first.files
    assert read_file(os.path.join(paths.pre_install_dir, ".zshrc")) == "export PATH=/a"


@pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
def test_snapshot_dir_and_manifest_are_owner_only(paths):
    rc = write_file(os.path.join(paths.home, ".zshrc"), "x\n")
    os.chmod(rc, 0o640)
    m = create_snapshot(paths.home, paths.pre_install_dir)
    assert stat.S_IMODE(os.stat(paths.pre_install_dir).st_mode) == 0o700
    assert stat.S_IMODE(os.stat(os.path.join(paths.pre_install_dir, MANIFEST_FILENAME)).st_mode) == 0o600
    assert m.file(".zshrc").permissions == 0o640


def test_framework_is_recorded(paths):
    os.makedirs(os.path.join(paths.home, ".oh-my-zsh"))
    write_file(os.path.join(paths.home, ".zshrc"), "source $ZSH/oh-my-zsh.sh\n")
    m = create_snapshot(paths.home, paths.pre_install_dir)
    assert m.detected_framework is not None
    assert m.detected_framework.name == "oh-my-zsh"
    assert m.detected_framework.config_files == [".zshrc"]


def test_failure_before_manifest_leaves_no_snapshot(paths, monkeypatch):
    write_file(os.path.join(paths.home, ".zshrc"), "a\n")
    write_file(os.path.join(paths.home, ".zshenv"), "b\n")
    real_copy = creator.shutil.copy2

    def flaky(src, dst, *a, **k):
        if src.endswith(".zshenv"):
            raise OSError("disk full")
        return real_copy(src, dst, *a, **k)

    monkeypatch.setattr(creator.shutil, "copy2", flaky)
    with pytest.raises(IoFailureError):
        create_snapshot(paths.home, paths.pre_install_dir)
    assert not snapshot_exists(paths.pre_install_dir)

    monkeypatch.setattr(creator.shutil, "copy2", real_copy)
    m = create_snapshot(paths.home, paths.pre_install_dir)
    assert len(m.files) == 2


def test_corrupt_manifest_is_not_overwritten(paths):
    write_file(os.path.join(paths.pre_install_dir, MANIFEST_FILENAME), "{not json")
    write_file(os.path.join(paths.home, ".zshrc"), "a\n")
    with pytest.raises(ManifestUnreadableError):
        create_snapshot(paths.home, paths.pre_install_dir)
    assert read_file(os.path.join(paths.pre_install_dir, MANIFEST_FILENAME)) == "{not json"


def test_manifest_round_trips_through_validator(paths):
    write_file(os.path.join(paths.home, ".zsh_history"), ": 1:0;ls\n: 2:0;pwd\n")
    m = create_snapshot(paths.home, paths.pre_install_dir)
    loaded = validate_snapshot(paths.pre_install_dir)
    assert loaded == m
    with open(os.path.join(paths.pre_install_dir, MANIFEST_FILENAME), "r", encoding="utf-8") as f:
        raw = json.load(f)
    assert raw["manifest_version"] == 1
    assert raw["files"][0]["relative_path"] == ".zsh_history"


def test_move_configs_removes_backed_up_files(paths):
    write_file(os.path.join(paths.home, ".zshrc"), "export PATH=/a")
    write_file(os.path.join(paths.home, ".zprofile"), "# login\n")
    m = create_snapshot(paths.home, paths.pre_install_dir)

    assert move_configs_to_backup(paths.home, m.files) == 2
    assert not os.path.exists(os.path.join(paths.home, ".zshrc"))
    assert not os.path.exists(os.path.join(paths.home, ".zprofile"))
    assert read_file(os.path.join(paths.pre_install_dir, ".zshrc")) == "export PATH=/a"


def test_move_configs_skips_files_already_gone(paths):
    write_file(os.path.join(paths.home, ".zshrc"), "a")
    m = create_snapshot(paths.home, paths.pre_install_dir)
    os.remove(os.path.join(paths.home, ".zshrc"))
    log = RecordingLogger()

    assert move_configs_to_backup(paths.home, m.files, logger=log) == 0
    assert any("no longer exists" in msg for msg in log.messages("info"))


@pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
def test_move_configs_handles_read_only_file(paths):
    rc = write_file(os.path.join(paths.home, ".zshrc"), "a")
    os.chmod(rc, 0o400)
    m = create_snapshot(paths.home, paths.pre_install_dir)

    assert move_configs_to_backup(paths.home, m.files) == 1
    assert not os.path.exists(rc)
    assert read_file(os.path.join(paths.pre_install_dir, ".zshrc")) == "a"


@pytest.mark.skipif(os.name != "posix", reason="symlinks")
def test_move_configs_unlinks_symlink_but_keeps_target(paths):
    target = write_file(os.path.join(paths.home, "dotfiles", "zshrc"), "mine")
    rc = os.path.join(paths.home, ".zshrc")
    os.symlink(target, rc)
    m = create_snapshot(paths.home, paths.pre_install_dir)

    assert move_configs_to_backup(paths.home, m.files) == 1
    assert not os.path.lexists(rc)
    assert read_file(target) == "mine"
    assert read_file(os.path.join(paths.pre_install_dir, ".zshrc")) == "mine"


def test_move_configs_with_nothing_to_move(paths):
    m = create_snapshot(paths.home, paths.pre_install_dir)
    assert move_configs_to_backup(paths.home, m.files) == 0
