"""Command-line interface for essh."""

from __future__ import annotations

import argparse
from pathlib import Path

from essh import __version__
from essh.config import GlobalConfig
from essh.exceptions import EsshError, ValidationError
from essh.output import error, format_row, setup_logging
from essh.session import Session


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser."""
    parser = argparse.ArgumentParser(
        prog="essh",
        description="List hosts and tasks defined in an essh Lua configuration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  essh --hosts                        # list visible hosts
  essh --hosts --all                  # include hidden hosts
  essh --hosts --select web           # hosts named or tagged "web"
  essh --tasks                        # list tasks
  essh --config ./other.lua --tasks   # use another configuration file
""",
    )

    parser.add_argument(
        "-V", "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--config", metavar="FILE", help="Lua configuration file")
    parser.add_argument("--hosts", action="store_true", help="List hosts (default)")
    parser.add_argument("--tasks", action="store_true", help="List tasks")
    parser.add_argument("--all", action="store_true", help="Include hidden hosts")
    parser.add_argument(
        "--select",
        action="append",
        default=[],
        metavar="NAME",
        help="Only hosts with this name or tag",
    )
    parser.add_argument("--update", action="store_true", help="Update git modules")
    parser.add_argument("--debug", action="store_true", help="Show debug output")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    try:
        return _main(argv)
    except EsshError as e:
        error(e.message)
        return e.exit_code
    except KeyboardInterrupt:
        return 130


def _main(argv: list[str] | None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.debug)

    if args.hosts and args.tasks:
        raise ValidationError("Conflicting commands: --hosts, --tasks")

    global_config = GlobalConfig.load()
    config_file = Path(args.config or global_config.config)

    session = Session(loader=global_config.module_loader(update=args.update or None))
    session.evaluate_file(config_file)

    if args.tasks:
        print_tasks(session)
    else:
        print_hosts(session, args.select, include_hidden=args.all)
    return 0


def print_hosts(session: Session, selectors: list[str], include_hidden: bool = False) -> None:
    for host in session.select_hosts(selectors, include_hidden=include_hidden):
        print(format_row(host.name, host.description, host.tags, hidden=host.hidden))


def print_tasks(session: Session) -> None:
    for task in session.tasks:
        targets = task.on or task.foreach
        print(format_row(task.name, task.description, targets))
