"""Task definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from essh.context import TaskContext, TaskContextBridge
from essh.exceptions import CallbackError, ValidationError
from essh.hooks import protected_call
from essh.values import as_bool, as_callback, as_sequence, as_string, table_get

DEFAULT_PREFIX_REMOTE = "[remote:{host}] "
DEFAULT_PREFIX_LOCAL = "[local] "


@dataclass(frozen=True)
class PrepareCallback:
    """Lua ``prepare`` function, called with a TaskContext handle.

    Returning nil or true means success; returning false is reported as
    an error.
    """

    fn: Callable[[Any], Any]
    bridge: TaskContextBridge

    def __call__(self, ctx: TaskContext) -> CallbackError | None:
        with self.bridge.bind(ctx) as handle:
            try:
                ret = protected_call(self.fn, handle)
            except CallbackError as e:
                return e

        if isinstance(ret, tuple):
            ret = ret[0] if ret else None
        if ret is False:
            return CallbackError("returned false from the prepare function.")
        return None


@dataclass
class Task:
    """A unit of work declared by a configuration script."""

    name: str = ""
    description: str = ""
    pty: bool = False
    parallel: bool = False
    privileged: bool = False
    script: str = ""
    file: str = ""
    on: list[str] = field(default_factory=list)
    foreach: list[str] = field(default_factory=list)
    prefix: str = ""
    prepare: PrepareCallback | None = None

    def is_remote_task(self) -> bool:
        return bool(self.on or self.foreach)

    def run_prepare(self, ctx: TaskContext) -> CallbackError | None:
        """Run the prepare callback; a task without one always succeeds."""
        if self.prepare is None:
            return None
        return self.prepare(ctx)


def _string_list(value: Any) -> list[str]:
    """Coerce a string or a list of strings; other elements are dropped."""
    single = as_string(value)
    if single is not None:
        return [single]
    items = as_sequence(value)
    if items is None:
        return []
    return [item for item in items if isinstance(item, str)]


def build_task(name: str, config: Any, bridge: TaskContextBridge) -> Task:
    """Validate a task config table and build the Task.

    Raises:
        ValidationError: on conflicting options or a non-function prepare.
    """
    task = Task(name=name)

    for attr in ("description", "script", "file"):
        value = as_string(table_get(config, attr))
        if value is not None:
            setattr(task, attr, value)

    for attr in ("pty", "parallel", "privileged"):
        flag = as_bool(table_get(config, attr))
        if flag is not None:
            setattr(task, attr, flag)

    if task.file and task.script:
        raise ValidationError(
            "invalid task definition: can't use 'file' and 'script' at the same time."
        )

    task.on = _string_list(table_get(config, "on"))
    task.foreach = _string_list(table_get(config, "foreach"))

    if task.on and task.foreach:
        raise ValidationError(
            "invalid task definition: can't use 'foreach' and 'on' at the same time."
        )

    prefix = table_get(config, "prefix")
    if as_bool(prefix) is not None:
        if prefix:
            task.prefix = DEFAULT_PREFIX_REMOTE if task.is_remote_task() else DEFAULT_PREFIX_LOCAL
    elif as_string(prefix) is not None:
        task.prefix = as_string(prefix)

    prepare = table_get(config, "prepare")
    if prepare is not None:
        fn = as_callback(prepare)
        if fn is None:
            raise ValidationError("prepare have to be function.")
        task.prepare = PrepareCallback(fn, bridge)

    return task
