"""Library modules available to every configuration script.

Scripts load them with the runtime's own ``require``::

    local json = require("essh.json")
    local yaml = require("essh.yaml")
    local fs = require("essh.fs")
    local template = require("essh.template")

Functions that can fail follow the Lua convention of returning ``nil``
and an error message instead of raising.
"""

from __future__ import annotations

import glob
import json
import os
import shutil
from pathlib import Path
from typing import Any, Callable

import yaml
from jinja2 import Environment, TemplateError
from lupa import LuaRuntime

from essh.output import debug
from essh.values import as_mapping, as_string, convert


def _to_runtime(lua: LuaRuntime, value: Any) -> Any:
    """Plain Python data to runtime values; dicts and lists become tables."""
    if isinstance(value, (dict, list, tuple)):
        return lua.table_from(value, recursive=True)
    return value


def json_module(lua: LuaRuntime) -> dict[str, Callable[..., Any]]:
    def encode(value: Any = None) -> Any:
        try:
            return json.dumps(convert(value))
        except (TypeError, ValueError) as e:
            return None, str(e)

    def decode(text: Any = None) -> Any:
        source = as_string(text)
        if source is None:
            return None, "string expected"
        try:
            return _to_runtime(lua, json.loads(source))
        except ValueError as e:
            return None, str(e)

    return {"encode": encode, "decode": decode}


def yaml_module(lua: LuaRuntime) -> dict[str, Callable[..., Any]]:
    def parse(text: Any = None) -> Any:
        source = as_string(text)
        if source is None:
            return None, "string expected"
        try:
            return _to_runtime(lua, yaml.safe_load(source))
        except yaml.YAMLError as e:
            return None, str(e)

    def dump(value: Any = None) -> Any:
        try:
            return yaml.safe_dump(convert(value), default_flow_style=False, sort_keys=False)
        except yaml.YAMLError as e:
            return None, str(e)

    return {"parse": parse, "dump": dump}


def fs_module(lua: LuaRuntime) -> dict[str, Callable[..., Any]]:
    def exists(path: str) -> bool:
        return os.path.exists(path)

    def isdir(path: str) -> bool:
        return os.path.isdir(path)

    def read(path: str) -> Any:
        try:
            return Path(path).read_text()
        except (OSError, UnicodeDecodeError) as e:
            return None, str(e)

    def write(path: str, content: Any = "") -> Any:
        try:
            Path(path).write_text(as_string(content) or "")
        except OSError as e:
            return None, str(e)
        return True

    def mkdir(path: str, parents: Any = False) -> Any:
        try:
            Path(path).mkdir(parents=parents is True, exist_ok=parents is True)
        except OSError as e:
            return None, str(e)
        return True

    def remove(path: str, recursive: Any = False) -> Any:
        try:
            if recursive is True and os.path.isdir(path):
                shutil.rmtree(path)
            elif os.path.isdir(path):
                os.rmdir(path)
            else:
                os.remove(path)
        except OSError as e:
            return None, str(e)
        return True

    def glob_(pattern: str) -> Any:
        return lua.table_from(sorted(glob.glob(pattern)))

    return {
        "exists": exists,
        "isdir": isdir,
        "read": read,
        "write": write,
        "mkdir": mkdir,
        "remove": remove,
        "dirname": os.path.dirname,
        "basename": os.path.basename,
        "realpath": os.path.realpath,
        "getcwd": os.getcwd,
        "glob": glob_,
    }


def template_module(lua: LuaRuntime) -> dict[str, Callable[..., Any]]:
    env = Environment(keep_trailing_newline=True)

    def dostring(text: Any = None, variables: Any = None) -> Any:
        source = as_string(text)
        if source is None:
            return None, "string expected"
        try:
            return env.from_string(source).render(as_mapping(variables) or {})
        except TemplateError as e:
            return None, str(e)

    def dofile(path: str, variables: Any = None) -> Any:
        try:
            source = Path(path).read_text()
        except OSError as e:
            return None, str(e)
        return dostring(source, variables)

    return {"dostring": dostring, "dofile": dofile}


LIBRARY_MODULES: dict[str, Callable[[LuaRuntime], dict[str, Callable[..., Any]]]] = {
    "essh.json": json_module,
    "essh.yaml": yaml_module,
    "essh.fs": fs_module,
    "essh.template": template_module,
}


def preload_libraries(lua: LuaRuntime) -> None:
    """Register the library modules with the runtime's ``package.preload``."""
    preload = lua.globals().package.preload
    for name, build in LIBRARY_MODULES.items():
        preload[name] = _loader(lua, name, build)


def _loader(
    lua: LuaRuntime,
    name: str,
    build: Callable[[LuaRuntime], dict[str, Callable[..., Any]]],
) -> Callable[..., Any]:
    def load(*args: Any) -> Any:
        debug(f"[library] loading {name}")
        return lua.table_from(build(lua))

    return load
