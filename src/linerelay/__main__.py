"""
=============================================================================
LINERELAY CLI ENTRY POINT
=============================================================================

    # Relay on 127.0.0.1:4242
    python -m linerelay 4242
    
    # Same, with arrivals/departures logged to stderr
    python -m linerelay 4242 --log-level INFO

Exit status:
    1  wrong number of arguments ("Wrong number of arguments")
    1  bad port or any fatal server error ("Fatal error")

The relay never exits on its own otherwise.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import LOG_LEVELS, RelayConfig
from .errors import FatalError
from .server import RelayServer


WRONG_ARGUMENTS = "Wrong number of arguments\n"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linerelay",
        description="Relay newline-terminated messages between TCP clients on 127.0.0.1",
    )
    
    # Positional count is checked by hand so the error text stays fixed
    parser.add_argument(
        "port",
        nargs="*",
        help="TCP port to listen on",
    )
    
    parser.add_argument(
        "--log-level", "-l",
        choices=[level for level in LOG_LEVELS if level != "CRITICAL"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"linerelay {__version__}",
    )
    
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.
    
    Returns:
        Process exit status. Only returns at all on error or Ctrl+C.
    """
    args = build_parser().parse_args(argv)
    
    if len(args.port) != 1:
        sys.stderr.write(WRONG_ARGUMENTS)
        return 1
    
    try:
        config = RelayConfig(port=int(args.port[0]), log_level=args.log_level)
        server = RelayServer(config)
    except ValueError:
        sys.stderr.write(FatalError.DIAGNOSTIC)
        return 1
    
    try:
        server.run()
    except FatalError:
        sys.stderr.write(FatalError.DIAGNOSTIC)
        return 1
    
    return 0


if __name__ == "__main__":
    sys.exit(main())
