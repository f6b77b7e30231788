"""Runs .rnj files or the rnj command-line mode, under the error handling context manager. Called from the `rnj`
console script and from `python -m rnj`.
"""

import argparse
import logging
import sys

from rnj.lang.error import ErrorHandler
from rnj.lang.session import Session
from rnj.lang.shell import Shell

RECURSION_LIMIT = 10000  # each rnj call costs about a dozen Python frames


def build_parser():
    parser = argparse.ArgumentParser(prog="rnj", description="rnj language interpreter")
    parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
    parser.add_argument("--ast", action="store_true", help="display the syntax tree before running")
    parser.add_argument("-v", "--verbose", action="store_true", help="log interpreter stages to stderr")
    return parser


def main(argv=None):
    """Runs rnj interpreter."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))

    with ErrorHandler() as error_handler:
        if args.file is not None:
            sess = Session(error_handler, args.file, cmd_line=False, show_ast=args.ast)
            sess.run()

        else:
            Shell(Session(error_handler, Session.SH_FILE, cmd_line=True, show_ast=args.ast)).cmdloop()
