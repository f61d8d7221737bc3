"""Host lifecycle hooks.

A hook is either a Lua function run inside the essh process
(``NativeCallback``) or a shell command string run on the remote host
(``RemoteCommand``).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Union

from essh.exceptions import CallbackError, ValidationError
from essh.values import as_callback, as_string


class HookPoint(str, enum.Enum):
    """Named points in a host connection lifecycle."""

    BEFORE = "before"  # deprecated, use before_connect
    BEFORE_CONNECT = "before_connect"
    AFTER_CONNECT = "after_connect"
    AFTER = "after"  # deprecated, use after_disconnect
    AFTER_DISCONNECT = "after_disconnect"

    @property
    def remote_only(self) -> bool:
        return self is HookPoint.AFTER_CONNECT


# Registration order; the first invalid hook aborts the rest.
HOOK_ORDER = (
    HookPoint.BEFORE,
    HookPoint.BEFORE_CONNECT,
    HookPoint.AFTER_CONNECT,
    HookPoint.AFTER,
    HookPoint.AFTER_DISCONNECT,
)


def protected_call(fn: Callable[..., Any], *args: Any) -> Any:
    """Call a runtime function, converting any failure into CallbackError.

    Raises:
        CallbackError: the message is the original error's, unchanged.
    """
    try:
        return fn(*args)
    except CallbackError:
        raise
    except Exception as e:
        raise CallbackError(str(e)) from e


@dataclass(frozen=True)
class NativeCallback:
    """Lua function called with no arguments inside the essh process."""

    fn: Callable[[], Any]

    def invoke(self) -> CallbackError | None:
        """Run the callback. Failures are returned, never raised."""
        try:
            protected_call(self.fn)
        except CallbackError as e:
            return e
        return None


@dataclass(frozen=True)
class RemoteCommand:
    """Shell command executed on the remote host."""

    command: str


Hook = Union[NativeCallback, RemoteCommand]


def build_hook(point: HookPoint, value: Any) -> Hook | None:
    """Turn a script value into a Hook.

    Returns None for nil. Remote-only points accept command strings only.

    Raises:
        ValidationError: if the value has no valid hook shape.
    """
    if value is None:
        return None

    if not point.remote_only:
        fn = as_callback(value)
        if fn is not None:
            return NativeCallback(fn)

    command = as_string(value)
    if command is not None:
        return RemoteCommand(command)

    raise ValidationError(f"invalid hook type {value!r} for '{point.value}'")


def register_hook(hooks: dict[HookPoint, Hook], point: HookPoint, value: Any) -> None:
    """Store the hook for point in hooks; nil leaves hooks untouched."""
    hook = build_hook(point, value)
    if hook is not None:
        hooks[point] = hook


def register_remote_hook(hooks: dict[HookPoint, Hook], point: HookPoint, value: Any) -> None:
    """Like register_hook, but only command strings are accepted."""
    if value is not None and as_string(value) is None:
        raise ValidationError(f"invalid hook type {value!r} for '{point.value}'")
    register_hook(hooks, point, value)
