"""essh - declarative hosts and tasks defined in Lua."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("essh")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # running from a source tree, not installed
