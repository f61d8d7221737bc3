"""Host definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from essh.exceptions import CallbackError, ValidationError
from essh.hooks import (
    HOOK_ORDER,
    Hook,
    HookPoint,
    NativeCallback,
    RemoteCommand,
    register_hook,
    register_remote_hook,
)
from essh.values import (
    as_bool,
    as_string,
    as_table,
    convert,
    is_table,
    key_string,
    max_n,
    table_get,
    table_items,
)


@dataclass
class Host:
    """A remote target declared by a configuration script."""

    name: str
    config: dict[str, Any] = field(default_factory=dict)
    hooks: dict[HookPoint, Hook] = field(default_factory=dict)
    description: str = ""
    hidden: bool = False
    tags: list[str] = field(default_factory=list)

    def run_hook(self, point: HookPoint) -> CallbackError | None:
        """Invoke an in-process hook.

        Remote command hooks are left to the transport; absent hooks are
        a no-op.
        """
        hook = self.hooks.get(point)
        if isinstance(hook, NativeCallback):
            return hook.invoke()
        return None

    def hook_command(self, point: HookPoint) -> str | None:
        """Remote command registered for point, if any."""
        hook = self.hooks.get(point)
        if isinstance(hook, RemoteCommand):
            return hook.command
        return None

    def matches(self, selector: str) -> bool:
        return selector == self.name or selector in self.tags


def is_exported_key(key: str) -> bool:
    """Keys starting with an upper-case letter are exported host config."""
    return bool(key) and key[0].isupper()


def _exported_config(config: Any) -> dict[str, Any]:
    exported = {}
    for k, v in table_items(config):
        key = key_string(k)
        if is_exported_key(key):
            exported[key] = convert(v)
    return exported


def _in_array_part(key: Any, n: int) -> bool:
    return isinstance(key, int) and not isinstance(key, bool) and 1 <= key <= n


def _tags(value: Any) -> list[str]:
    if value is None:
        return []
    if not is_table(value):
        raise ValidationError("unsupported format of tags.")

    n = max_n(value)
    ordered = [table_get(value, i) for i in range(1, n + 1)]
    rest = [v for k, v in table_items(value) if not _in_array_part(k, n)]

    tags = []
    for v in ordered + rest:
        tag = as_string(v)
        if tag is None:
            raise ValidationError("unsupported format of tags.")
        tags.append(tag)
    return tags


def build_host(name: str, config: Any) -> Host:
    """Validate a host config table and build the Host.

    Raises:
        ValidationError: on an invalid hook or a non-string tag.
    """
    host = Host(name=name, config=_exported_config(config))

    hooks = as_table(table_get(config, "hooks"))
    if hooks is not None:
        for point in HOOK_ORDER:
            value = table_get(hooks, point.value)
            if point.remote_only:
                register_remote_hook(host.hooks, point, value)
            else:
                register_hook(host.hooks, point, value)

    description = as_string(table_get(config, "description"))
    if description is not None:
        host.description = description

    hidden = as_bool(table_get(config, "hidden"))
    if hidden is not None:
        host.hidden = hidden

    host.tags = _tags(table_get(config, "tags"))
    return host
