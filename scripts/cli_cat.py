"""CLI for resolving a chained locator and writing its bytes to stdout."""
from __future__ import annotations

import logging
import shutil
import sys

from chainfs.bootstrap import build_registry
from chainfs.config import Settings
from chainfs.errors import ChainError
from chainfs.resolver import ChainResolver


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("usage: cli_cat.py LOCATOR", file=sys.stderr)
        return 2
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)
    settings = Settings()
    resolver = ChainResolver(build_registry(settings))
    try:
        with resolver.open(args[0]) as stream:
            shutil.copyfileobj(stream, sys.stdout.buffer)
    except ChainError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
