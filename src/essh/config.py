"""Global configuration (~/.config/essh/config.toml)."""

from __future__ import annotations

import tomli
from dataclasses import dataclass, field
from pathlib import Path

from essh.exceptions import ConfigError
from essh.modules import DirectoryModuleLoader, GitModuleLoader, ModuleLoader
from essh.output import warn
from essh.session import DEFAULT_CONFIG_FILE

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "essh" / "config.toml"
DEFAULT_MODULES_DIR = Path.home() / ".essh" / "modules"

KNOWN_FIELDS = {
    "config",
    "modules_dir",
    "module_paths",
    "update_modules",
}


@dataclass
class GlobalConfig:
    """Settings from ~/.config/essh/config.toml."""

    config: str = DEFAULT_CONFIG_FILE
    modules_dir: Path = DEFAULT_MODULES_DIR
    module_paths: list[Path] = field(default_factory=list)
    update_modules: bool = False

    @classmethod
    def load(cls, path: Path | None = None) -> "GlobalConfig":
        """Load global config from file.

        Returns defaults if the file doesn't exist.
        """
        if path is None:
            path = DEFAULT_CONFIG_PATH

        if not path.exists():
            return cls()

        try:
            with open(path, "rb") as f:
                data = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigError(f"{path.name}: {e}")

        unknown = set(data.keys()) - KNOWN_FIELDS
        if unknown:
            warn(f"{path.name}: unknown fields: {', '.join(sorted(unknown))}")

        config = data.get("config", DEFAULT_CONFIG_FILE)
        if not isinstance(config, str):
            raise ConfigError(f"{path.name}: 'config' must be a string")

        modules_dir = data.get("modules_dir", str(DEFAULT_MODULES_DIR))
        if not isinstance(modules_dir, str):
            raise ConfigError(f"{path.name}: 'modules_dir' must be a string")

        module_paths = data.get("module_paths", [])
        if not isinstance(module_paths, list) or not all(isinstance(p, str) for p in module_paths):
            raise ConfigError(f"{path.name}: 'module_paths' must be a list of strings")

        update_modules = data.get("update_modules", False)
        if not isinstance(update_modules, bool):
            raise ConfigError(f"{path.name}: 'update_modules' must be true or false")

        return cls(
            config=config,
            modules_dir=Path(modules_dir).expanduser(),
            module_paths=[Path(p).expanduser() for p in module_paths],
            update_modules=update_modules,
        )

    def module_loader(self, update: bool | None = None) -> ModuleLoader:
        """Local search paths when configured, otherwise git checkouts."""
        if self.module_paths:
            return DirectoryModuleLoader(self.module_paths)
        if update is None:
            update = self.update_modules
        return GitModuleLoader(self.modules_dir, update=update)
