from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from zprof.core.errors import ConfigError


@dataclass(frozen=True)
class ZprofPaths:
    """
    Explicit layout of the user's home and the managed tree.

    Every entry point takes one of these instead of reading HOME itself, so tests
    can point the whole subsystem at an isolated directory.
    """

    home: str
    root_name: str = ".zsh-profiles"

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None) -> "ZprofPaths":
        env = os.environ if environ is None else environ
        home = env.get("ZPROF_HOME") or env.get("HOME") or os.path.expanduser("~")
        return cls(home=os.path.abspath(os.path.expanduser(home)))

    @classmethod
    def for_home(cls, home: str) -> "ZprofPaths":
        """Layout for an explicitly given home, which must already be a directory."""
        path = os.path.abspath(os.path.expanduser(home))
        if not os.path.isdir(path):
            raise ConfigError(f"Home directory {path} does not exist or is not a directory", home=path)
        return cls(home=path)

    @property
    def root(self) -> str:
        return os.path.join(self.home, self.root_name)

    @property
    def profiles_dir(self) -> str:
        return os.path.join(self.root, "profiles")

    @property
    def shared_dir(self) -> str:
        return os.path.join(self.root, "shared")

    @property
    def cache_dir(self) -> str:
        return os.path.join(self.root, "cache")

    @property
    def backups_dir(self) -> str:
        return os.path.join(self.root, "backups")

    @property
    def pre_install_dir(self) -> str:
        return os.path.join(self.backups_dir, "pre-zprof")

    # Files
    @property
    def settings_file(self) -> str:
        return os.path.join(self.root, "config.toml")

    @property
    def zshenv(self) -> str:
        return os.path.join(self.home, ".zshenv")

    def is_installed(self) -> bool:
        return os.path.isdir(self.root) and os.path.isfile(self.settings_file)
