from __future__ import annotations

import os

from zprof.core import cleanup as cleanup_mod
from zprof.core.cleanup import cleanup, format_size, summarize

from .helpers.fakes import RecordingLogger
from .helpers.fs import read_file, write_file


def test_full_removal(installed):
    paths = installed()
    rep = cleanup(paths.root, paths.home, keep_backups=False)
    assert rep.is_successful()
    assert not os.path.exists(paths.root)
    assert not os.path.exists(paths.zshenv)
    assert paths.root in rep.removed_dirs
    assert rep.total_removed() == 2


def test_keep_backups_leaves_backups_readable(installed):
    paths = installed()
    kept = write_file(os.path.join(paths.pre_install_dir, ".zshrc"), "export PATH=/a")
    rep = cleanup(paths.root, paths.home, keep_backups=True)

    assert rep.is_successful()
    for sub in (paths.profiles_dir, paths.shared_dir, paths.cache_dir):
        assert not os.path.exists(sub)
    assert not os.path.exists(paths.settings_file)
    assert os.path.isdir(paths.backups_dir)
    assert read_file(kept) == "export PATH=/a"
    assert paths.backups_dir in rep.preserved


def test_foreign_zshenv_is_preserved(installed):
    paths = installed()
    write_file(paths.zshenv, "export EDITOR=vim\n")
    rep = cleanup(paths.root, paths.home, keep_backups=False)
    assert read_file(paths.zshenv) == "export EDITOR=vim\n"
    assert paths.zshenv in rep.preserved
    assert rep.is_successful()


def test_one_failure_does_not_stop_the_rest(installed, monkeypatch):
    paths = installed()
    real_rmtree = cleanup_mod.shutil.rmtree

    def flaky(path, *a, **k):
        if path == paths.shared_dir:
            raise PermissionError(13, "Permission denied", path)
        return real_rmtree(path, *a, **k)

    monkeypatch.setattr(cleanup_mod.shutil, "rmtree", flaky)
    log = RecordingLogger()
    rep = cleanup(paths.root, paths.home, keep_backups=True, logger=log)

    assert not rep.is_successful()
    assert [e.path for e in rep.errors] == [paths.shared_dir]
    assert not os.path.exists(paths.profiles_dir)
    assert not os.path.exists(paths.cache_dir)
    assert not os.path.exists(paths.settings_file)
    assert os.path.isdir(paths.shared_dir)
    assert log.messages("warning")


def test_summarize_counts_profiles_and_size(installed):
    paths = installed(profiles={"work": "zap", "home": "prezto"})
    s = summarize(paths.root)
    assert s.profile_count == 2
    assert s.total_size > 0
    assert s.directories == ["profiles", "shared", "cache", "backups"]


def test_summarize_missing_tree(tmp_path):
    s = summarize(str(tmp_path / "nope"))
    assert (s.profile_count, s.total_size, s.directories) == (0, 0, [])


def test_format_size():
    assert format_size(512) == "512 B"
    assert format_size(1536) == "1.5 KB"
    assert format_size(5 * 1024 * 1024) == "5.0 MB"
