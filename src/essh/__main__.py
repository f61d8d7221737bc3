"""Entry point for python -m essh."""

import sys


def main():
    from essh.cli import main as cli_main

    sys.exit(cli_main())


if __name__ == "__main__":
    main()
