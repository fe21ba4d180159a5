from __future__ import annotations

import logging
import os
from typing import Dict, Optional

import pytest

from zprof.core.config.paths import ZprofPaths

from .helpers.fs import write_file


@pytest.fixture
def paths(tmp_path):
    """An isolated home directory; nothing under it exists yet."""
    home = tmp_path / "home"
    home.mkdir()
    return ZprofPaths(home=str(home))


@pytest.fixture
def installed(paths):
    """
    A home with zprof installed: managed tree with profiles/shared/cache/backups,
    config.toml, one profile "work", and a generated ~/.zshenv.
    """

    def _build(profiles: Optional[Dict[str, str]] = None, active: str = "work") -> ZprofPaths:
        profiles = profiles if profiles is not None else {"work": "oh-my-zsh"}
        os.makedirs(paths.shared_dir, exist_ok=True)
        os.makedirs(paths.cache_dir, exist_ok=True)
        os.makedirs(paths.backups_dir, exist_ok=True)
        write_file(paths.settings_file, f'active_profile = "{active}"\ndefault_framework = "oh-my-zsh"\n')
        for name, framework in profiles.items():
            pdir = os.path.join(paths.profiles_dir, name)
            write_file(os.path.join(pdir, "profile.toml"), f'[profile]\nname = "{name}"\nframework = "{framework}"\n')
            write_file(os.path.join(pdir, ".zshrc"), f"# profile {name}\n")
        os.makedirs(paths.profiles_dir, exist_ok=True)
        write_file(paths.zshenv, f'export ZDOTDIR="$HOME/.zsh-profiles/profiles/{active}"\n')
        return paths

    return _build


@pytest.fixture(autouse=True)
def _reset_zprof_logger():
    yield
    logger = logging.getLogger("zprof")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
