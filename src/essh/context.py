"""Task execution state shared with Lua callbacks."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

from essh.exceptions import ScriptError
from essh.values import key_string

TASK_CONTEXT_CLASS = "TaskContext*"

# Builds the handle scripts receive; only ``ctx:payload([value])`` is exposed.
_HANDLE_FACTORY = """
function(get_payload, set_payload)
  local handle = {}
  local methods = {}

  function methods.payload(self, ...)
    if self ~= handle then
      error("TaskContext expected", 2)
    end
    if select("#", ...) > 0 then
      set_payload((...))
      return
    end
    return get_payload()
  end

  return setmetatable(handle, {
    __index = methods,
    __newindex = function() error("TaskContext is read-only", 2) end,
    __name = "%s",
  })
end
""" % TASK_CONTEXT_CLASS


@dataclass
class TaskContext:
    """Live execution state of a task, owned by the executor."""

    payload: str = ""


class _Binding:
    """Connects one handle to one TaskContext until released."""

    def __init__(self, ctx: TaskContext):
        self.ctx: TaskContext | None = ctx

    def _require_ctx(self) -> TaskContext:
        if self.ctx is None:
            raise ScriptError("TaskContext is no longer available")
        return self.ctx

    def get_payload(self) -> str:
        return self._require_ctx().payload

    def set_payload(self, value: Any) -> None:
        ctx = self._require_ctx()
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise ScriptError(f"payload must be a string, got {value!r}")
        ctx.payload = value if isinstance(value, str) else key_string(value)


class TaskContextBridge:
    """Hands out Lua handles bound to a TaskContext for one callback call."""

    def __init__(self, lua):
        self._factory = lua.eval(_HANDLE_FACTORY)

    @contextmanager
    def bind(self, ctx: TaskContext) -> Iterator[Any]:
        """Yield a handle for ctx; it stops working when the block exits."""
        binding = _Binding(ctx)
        try:
            yield self._factory(binding.get_payload, binding.set_payload)
        finally:
            binding.ctx = None
