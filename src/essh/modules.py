"""Name-addressed configuration modules.

A module is a Lua script (its index file) whose return value can be
shared between configurations with ``essh.require(name)``. Each module
is evaluated at most once per session; later requires replay the cached
value.
"""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Protocol

from essh.exceptions import CycleError, EsshError, LoaderError
from essh.output import debug, info
from essh.values import convert

INDEX_FILE = "index.lua"


@dataclass
class Module:
    """A loaded module and its cached return value."""

    name: str
    index_file: Path
    raw: Any = None  # runtime value, replayed as-is to scripts

    @property
    def value(self) -> Any:
        return convert(self.raw)


class ModuleLoader(Protocol):
    """Locates (and fetches, if needed) a module's index script."""

    def materialize(self, name: str) -> Path:
        """Return the path of the module's index script.

        Raises LoaderError if the module cannot be found or fetched.
        """
        ...


@dataclass
class DirectoryModuleLoader:
    """Finds modules in local directories.

    ``name`` resolves to ``<path>/<name>/index.lua`` or ``<path>/<name>.lua``
    in the first search path that has either.
    """

    search_paths: list[Path] = field(default_factory=list)

    def materialize(self, name: str) -> Path:
        for base in self.search_paths:
            base = Path(base).expanduser()
            for candidate in (base / name / INDEX_FILE, base / f"{name}.lua"):
                if candidate.is_file():
                    return candidate
        searched = ", ".join(str(p) for p in self.search_paths) or "(no search paths)"
        raise LoaderError(f"module '{name}' not found in {searched}")


def module_dir_name(name: str) -> str:
    """Filesystem-safe directory name for a module name or URL."""
    name = re.sub(r"^[a-z]+://", "", name)
    return re.sub(r"[^A-Za-z0-9._-]+", "-", name).strip("-")


def module_source_url(name: str) -> str:
    if "://" in name or name.startswith("git@"):
        return name
    return f"https://{name}"


class GitModuleLoader:
    """Fetches modules by cloning git repositories into modules_dir."""

    def __init__(self, modules_dir: Path, update: bool = False):
        self.modules_dir = Path(modules_dir).expanduser()
        self.update = update

    def module_dir(self, name: str) -> Path:
        return self.modules_dir / module_dir_name(name)

    def materialize(self, name: str) -> Path:
        dest = self.module_dir(name)
        if not dest.exists():
            info(f"Fetching essh module {name}...")
            self._git(["clone", module_source_url(name), str(dest)], name)
        elif self.update:
            self._git(["-C", str(dest), "pull"], name)
        else:
            debug(f"[module] {name}: using cached copy in {dest}")
        return dest / INDEX_FILE

    def _git(self, args: list[str], name: str) -> None:
        self.modules_dir.mkdir(parents=True, exist_ok=True)
        debug(f"[module] git {' '.join(args)}")
        try:
            result = subprocess.run(["git", *args], capture_output=True, text=True)
        except FileNotFoundError:
            raise LoaderError(f"Could not load essh module '{name}': git is not installed")
        if result.returncode != 0:
            stderr = result.stderr.strip()
            raise LoaderError(
                f"Could not load essh module '{name}': {stderr or 'git failed'}"
            )


class ModuleRegistry:
    """Memoizing module loader for one session."""

    def __init__(
        self,
        loader: ModuleLoader | None,
        evaluate: Callable[[Path], Any],
    ):
        self.loader = loader
        self._evaluate = evaluate
        self._modules: dict[str, Module] = {}
        self._loading: list[str] = []

    def loaded(self, name: str) -> Module | None:
        return self._modules.get(name)

    def names(self) -> list[str]:
        return list(self._modules)

    def require(self, name: str) -> Any:
        """Return the module's value, evaluating its index script on first use.

        Raises:
            CycleError: if name is already being loaded further up the stack.
            LoaderError: if the module cannot be fetched or evaluated.
        """
        module = self._modules.get(name)
        if module is not None:
            return module.raw

        if name in self._loading:
            start = self._loading.index(name)
            raise CycleError(self._loading[start:] + [name])

        if self.loader is None:
            raise LoaderError(f"Could not load essh module '{name}': no module loader configured")

        index_file = self.loader.materialize(name)
        if not index_file.is_file():
            raise LoaderError(f"Could not load essh module '{name}': {index_file} does not exist")

        debug(f"[module] loading {name} from {index_file}")
        self._loading.append(name)
        try:
            raw = self._evaluate(index_file)
        except CycleError:
            raise
        except EsshError as e:
            raise LoaderError(f"Could not load essh module '{name}': {e.message}") from e
        finally:
            self._loading.pop()

        if isinstance(raw, tuple):
            raw = raw[0] if raw else None
        module = Module(name=name, index_file=index_file, raw=raw)
        self._modules[name] = module
        return module.raw
