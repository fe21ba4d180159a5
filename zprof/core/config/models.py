from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class Settings(BaseModel):
    """Top-level `config.toml` of the managed tree."""

    model_config = ConfigDict(extra="ignore")
    active_profile: Optional[str] = None
    default_framework: Optional[str] = None


class ProfileSection(BaseModel):
    model_config = ConfigDict(extra="ignore")
    name: str = ""
    framework: str = "unknown"
    theme: str = ""


class ProfileManifest(BaseModel):
    """`profiles/<name>/profile.toml`; only the fields uninstall needs."""

    model_config = ConfigDict(extra="ignore")
    profile: ProfileSection
