from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

CONFIG_DIR = Path.home() / ".config" / "gw"
CONFIG_FILE = CONFIG_DIR / "config.toml"

DEFAULT_WORKSPACE = Path.home() / "gw"

SECTION = "gw"
KNOWN_KEYS = ("workspace", "core_dir", "tree_dir")


def config_path() -> Path:
    """Return the config file location, honouring $GW_CONFIG."""
    override = os.environ.get("GW_CONFIG")
    if override:
        return Path(override).expanduser()
    return CONFIG_FILE


def _read(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "rb") as f:
        return tomllib.load(f)


@dataclass
class Config:
    workspace: Path
    core_dir: Path  # bare clones live here, one directory per repository
    tree_dir: Path  # worktrees live under tree_dir/<repo>/<branch>
    path: Path = CONFIG_FILE
    values: dict[str, str] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path | None = None) -> Config:
        path = path or config_path()
        values = {k: str(v) for k, v in _read(path).get(SECTION, {}).items()}
        return cls.from_values(values, path=path)

    @classmethod
    def from_values(cls, values: dict[str, str], path: Path | None = None) -> Config:
        workspace = Path(values.get("workspace", str(DEFAULT_WORKSPACE))).expanduser()
        core_dir = Path(values.get("core_dir", str(workspace / "core"))).expanduser()
        tree_dir = Path(values.get("tree_dir", str(workspace / "tree"))).expanduser()
        return cls(
            workspace=workspace,
            core_dir=core_dir,
            tree_dir=tree_dir,
            path=path or config_path(),
            values=dict(values),
        )

    @classmethod
    def for_workspace(cls, workspace: Path) -> Config:
        """Build an in-memory config rooted at ``workspace`` (nothing is persisted)."""
        return cls.from_values({"workspace": str(workspace)})

    def get(self, key: str) -> str | None:
        """Return the stored value, the computed default for known keys, or None."""
        if key in self.values:
            return self.values[key]
        if key in KNOWN_KEYS:
            return str(getattr(self, key))
        return None

    def set(self, key: str, value: str) -> Config:
        """Persist ``key = value`` and return the reloaded config."""
        data = _read(self.path)
        section = data.setdefault(SECTION, {})
        section[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "wb") as f:
            tomli_w.dump(data, f)
        return Config.load(self.path)


def get_config() -> Config:
    return Config.load()
