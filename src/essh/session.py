"""Configuration session: the Lua runtime and everything it defines.

A session evaluates configuration scripts and collects the hosts and
tasks they declare. Scripts see these entry points::

    Host("web01", { HostName = "192.168.0.11", tags = {"web"} })

    Host "web02" {              -- DSL style
        HostName = "192.168.0.12",
    }

    Task "deploy" {
        on = "web",
        script = "make deploy",
        prepare = function(ctx) ctx:payload("v1.2") end,
    }

    local shared = essh.require("shared-hosts")
    essh.reset()

``essh.host`` and ``essh.task`` are aliases of ``Host`` and ``Task``.
The library modules in :mod:`essh.library` are available through the
runtime's ``require`` (``require("essh.json")``).
Everything runs on the calling thread; a session must not be shared
between threads.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

from lupa import LuaError, LuaRuntime

from essh.context import TaskContextBridge
from essh.exceptions import ConfigError, ScriptError, ValidationError
from essh.host import Host, build_host
from essh.library import preload_libraries
from essh.modules import ModuleLoader, ModuleRegistry
from essh.output import debug
from essh.task import Task, build_task
from essh.values import is_table, key_string

DEFAULT_CONFIG_FILE = "esshconfig.lua"


class Session:
    """Owns one Lua runtime plus the hosts, tasks and modules it produces."""

    def __init__(self, loader: ModuleLoader | None = None):
        self.lua = LuaRuntime(unpack_returned_tuples=True)
        self.hosts: list[Host] = []
        self.tasks: list[Task] = []
        self.modules = ModuleRegistry(loader, self.evaluate_file)
        self.context_bridge = TaskContextBridge(self.lua)
        self._bootstrap()

    def _bootstrap(self) -> None:
        g = self.lua.globals()
        g["Host"] = self._host_entry
        g["Task"] = self._task_entry

        essh = self.lua.table()
        essh["host"] = self._host_entry
        essh["task"] = self._task_entry
        essh["require"] = self._require_entry
        essh["reset"] = self._reset_entry
        essh["ssh_config"] = None
        g["essh"] = essh

        preload_libraries(self.lua)

    # Evaluation

    def evaluate_file(self, path: Path | str) -> Any:
        """Evaluate a Lua file and return its chunk's return value."""
        path = Path(path)
        try:
            source = path.read_text()
        except OSError as e:
            raise ConfigError(f"cannot read {path}: {e.strerror or e}")
        return self._run(source, f"@{path}")

    def evaluate_string(self, source: str, name: str = "<string>") -> Any:
        """Evaluate Lua source and return its chunk's return value."""
        return self._run(source, f"={name}")

    def _run(self, source: str, chunk_name: str) -> Any:
        loaded = self.lua.globals().load(source, chunk_name)
        if isinstance(loaded, tuple):
            raise ScriptError(str(loaded[1]))
        try:
            return loaded()
        except LuaError as e:
            raise ScriptError(str(e)) from e
        except UnicodeDecodeError as e:
            raise ScriptError(f"{chunk_name[1:]}: string is not valid UTF-8 ({e.reason})") from e

    # Definitions

    def host(self, name: str, config: Any = None) -> Callable[[Any], None] | None:
        """Define a host now, or return a builder awaiting the config table."""
        if config is None:
            return lambda table: self._define_host(name, _check_table("Host", name, table))
        self._define_host(name, _check_table("Host", name, config))
        return None

    def task(self, name: str, config: Any = None) -> Callable[[Any], None] | None:
        """Define a task now, or return a builder awaiting the config table."""
        if config is None:
            return lambda table: self._define_task(name, _check_table("Task", name, table))
        self._define_task(name, _check_table("Task", name, config))
        return None

    def _define_host(self, name: str, config: Any) -> None:
        host = build_host(name, config)
        for i, existing in enumerate(self.hosts):
            if existing.name == name:
                debug(f"[host] {name}: redefined, replacing earlier definition")
                self.hosts[i] = host
                return
        debug(f"[host] {name}: registered")
        self.hosts.append(host)

    def _define_task(self, name: str, config: Any) -> None:
        task = build_task(name, config, self.context_bridge)
        debug(f"[task] {name}: registered")
        self.tasks.append(task)

    def reset(self) -> None:
        """Forget all hosts and tasks. Loaded modules stay cached."""
        self.hosts = []
        self.tasks = []

    # Lookups

    def find_host(self, name: str) -> Host | None:
        return next((h for h in self.hosts if h.name == name), None)

    def find_task(self, name: str) -> Task | None:
        return next((t for t in self.tasks if t.name == name), None)

    def select_hosts(self, selectors: list[str], include_hidden: bool = False) -> list[Host]:
        """Hosts matching any selector by name or tag, in definition order.

        With no selectors every host matches.
        """
        selected = []
        for host in self.hosts:
            if host.hidden and not include_hidden:
                continue
            if not selectors or any(host.matches(s) for s in selectors):
                selected.append(host)
        return selected

    def task_hosts(self, task: Task) -> list[Host]:
        """Hosts a remote task runs on; empty for local tasks."""
        if not task.is_remote_task():
            return []
        return self.select_hosts(task.on or task.foreach, include_hidden=True)

    # Lua entry points

    def _host_entry(self, *args: Any) -> Any:
        name = _check_name("Host", args)
        if len(args) >= 2:
            return self.host(name, _check_table("Host", name, args[1]))
        return self.host(name)

    def _task_entry(self, *args: Any) -> Any:
        name = _check_name("Task", args)
        if len(args) >= 2:
            return self.task(name, _check_table("Task", name, args[1]))
        return self.task(name)

    def _require_entry(self, *args: Any) -> Any:
        return self.modules.require(_check_name("require", args))

    def _reset_entry(self, *args: Any) -> None:
        self.reset()


def _check_name(func: str, args: tuple) -> str:
    name = args[0] if args else None
    if isinstance(name, str):
        return name
    if isinstance(name, (int, float)) and not isinstance(name, bool):
        return key_string(name)
    raise ValidationError(f"bad argument #1 to '{func}' (string expected, got {name!r})")


def _check_table(func: str, name: str, config: Any) -> Any:
    if not is_table(config):
        raise ValidationError(
            f"bad argument to '{func}' for '{name}' (table expected, got {config!r})"
        )
    return config
